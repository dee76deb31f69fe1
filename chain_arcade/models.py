"""Immutable snapshots of on-chain game state."""

from dataclasses import dataclass, fields
from typing import Optional, Sequence, Tuple


def _ints(values) -> Tuple[int, ...]:
    return tuple(int(v) for v in (values or ()))


@dataclass(frozen=True)
class PlayerInfo:
    nfts: Tuple[int, ...] = ()
    level: int = 0
    experience: int = 0
    last_action_time: int = 0
    last_claim_time: int = 0
    total_rewards: int = 0
    achievement_points: int = 0
    nft_count: int = 0
    game_tokens: int = 0
    reputation: int = 0
    guild_id: int = 0

    @classmethod
    def from_chain(cls, raw: Sequence) -> "PlayerInfo":
        """
        Build from the positional tuple returned by getPlayerInfo.
        Older deployments return only (nfts, level, experience, lastActionTime);
        missing trailing fields stay 0.
        """
        raw = list(raw)
        if not raw:
            return cls()
        values = {"nfts": _ints(raw[0])}
        for f, value in zip(fields(cls)[1:], raw[1:]):
            values[f.name] = int(value)
        return cls(**values)

    @property
    def registered(self) -> bool:
        return self.level > 0


@dataclass(frozen=True)
class GuildInfo:
    name: str = ""
    description: str = ""
    member_count: int = 0
    level: int = 0
    total_experience: int = 0

    @classmethod
    def from_chain(cls, raw: Sequence) -> "GuildInfo":
        name, description, member_count, level, total_experience = list(raw)[:5]
        return cls(
            name=str(name),
            description=str(description),
            member_count=int(member_count),
            level=int(level),
            total_experience=int(total_experience),
        )


def token_ids(raw) -> Tuple[int, ...]:
    """Market items and stakes come back as plain token id lists."""
    return _ints(raw)


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything the panels render, captured at one point in time."""
    address: Optional[str] = None
    has_contract: bool = False
    player: Optional[PlayerInfo] = None
    guild: Optional[GuildInfo] = None
    market_items: Tuple[int, ...] = ()
    stakes: Tuple[int, ...] = ()
    achievements: Tuple = ()
