"""
panels.py
HUD panels. Each panel is declared once as a template (key, title, render
function) and re-rendered from a SessionSnapshot whenever state is refreshed.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, List

from chain_arcade.models import SessionSnapshot


CONNECT_HINT = "Connect wallet to see assets"


def short_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


def _clock(ts: int) -> str:
    if not ts:
        return "never"
    try:
        return time.strftime("%H:%M:%S", time.localtime(ts))
    except (OverflowError, OSError, ValueError):
        return f"t={ts}"


def _wallet(s: SessionSnapshot) -> List[str]:
    if not s.address:
        return ["Not connected"]
    lines = [f"Connected: {short_address(s.address)}"]
    if not s.has_contract:
        lines.append("Contract not deployed yet")
    return lines


def _stats(s: SessionSnapshot) -> List[str]:
    p = s.player
    if p is None:
        return [CONNECT_HINT]
    return [
        f"Level: {p.level}   XP: {p.experience}",
        f"Tokens: {p.game_tokens}   Rewards: {p.total_rewards}",
        f"Reputation: {p.reputation}   Achievement pts: {p.achievement_points}",
        f"Last Action: {_clock(p.last_action_time)}",
        f"Last Claim: {_clock(p.last_claim_time)}",
    ]


def _assets(s: SessionSnapshot) -> List[str]:
    p = s.player
    if p is None:
        return [CONNECT_HINT]
    count = p.nft_count or len(p.nfts)
    lines = [f"Player Assets: {count} NFTs"]
    if p.nfts:
        lines.append("Tokens: " + ", ".join(f"#{t}" for t in p.nfts))
    return lines


def _guild(s: SessionSnapshot) -> List[str]:
    if s.player is None or not s.player.guild_id:
        return ["No guild"]
    g = s.guild
    if g is None:
        return [f"Guild #{s.player.guild_id}"]
    return [
        f"{g.name} (#{s.player.guild_id})  Lv {g.level}",
        g.description,
        f"Members: {g.member_count}   Guild XP: {g.total_experience}",
    ]


def _market(s: SessionSnapshot) -> List[str]:
    if not s.market_items:
        return ["No active listings"]
    return ["Listed: " + ", ".join(f"#{t}" for t in s.market_items)]


def _staking(s: SessionSnapshot) -> List[str]:
    if not s.stakes:
        return ["Nothing staked"]
    return ["Staked: " + ", ".join(f"#{t}" for t in s.stakes)]


def _achievements(s: SessionSnapshot) -> List[str]:
    if not s.achievements:
        return ["None yet"]
    return [", ".join(str(a) for a in s.achievements)]


@dataclass(frozen=True)
class Panel:
    key: str
    title: str
    render: Callable[[SessionSnapshot], List[str]]


PANELS = (
    Panel("wallet", "Wallet", _wallet),
    Panel("stats", "Player Stats", _stats),
    Panel("assets", "Assets", _assets),
    Panel("guild", "Guild", _guild),
    Panel("market", "Marketplace", _market),
    Panel("staking", "Staking", _staking),
    Panel("achievements", "Achievements", _achievements),
)


class PanelSet:
    def __init__(self, templates=PANELS):
        self.templates = tuple(templates)
        self.lines: Dict[str, List[str]] = {p.key: [] for p in self.templates}

    def render(self, snapshot: SessionSnapshot) -> Dict[str, List[str]]:
        self.lines = {p.key: p.render(snapshot) for p in self.templates}
        return self.lines

    def titled(self):
        """(title, lines) pairs in declaration order, for drawing."""
        return [(p.title, self.lines.get(p.key, [])) for p in self.templates]
