import pytest

from chain_arcade.errors import (
    COOLDOWN_HINT,
    ContractRevertError,
    ContractUnavailableError,
    classify_revert,
    user_message,
)
from chain_arcade.models import GuildInfo, PlayerInfo, SessionSnapshot
from chain_arcade.panels import PanelSet


@pytest.mark.parametrize("message, reason", [
    ("execution reverted: Action on cooldown", "cooldown"),
    ("Cooldown active", "cooldown"),
    ("You can only claim once per day", "once_per_day"),
    ("execution reverted", "generic"),
    ("", "generic"),
])
def test_classify_revert(message, reason):
    assert classify_revert(message) == reason
    assert ContractRevertError(message).reason == reason


def test_user_messages():
    assert user_message("performing action", ContractRevertError("on cooldown")) == COOLDOWN_HINT
    assert user_message("minting NFT", ContractUnavailableError()) == "Contract not deployed yet"
    assert user_message("minting NFT", RuntimeError("boom")) == "Error minting NFT: boom"


def test_player_info_from_legacy_tuple():
    info = PlayerInfo.from_chain([[1, 2], 3, 250, 1700000000])
    assert info.nfts == (1, 2)
    assert info.level == 3
    assert info.experience == 250
    assert info.last_action_time == 1700000000
    assert info.guild_id == 0


def test_player_info_from_full_tuple():
    info = PlayerInfo.from_chain([[5], 2, 10, 1, 2, 30, 40, 1, 500, 7, 9])
    assert info.total_rewards == 30
    assert info.achievement_points == 40
    assert info.game_tokens == 500
    assert info.reputation == 7
    assert info.guild_id == 9
    assert PlayerInfo.from_chain([]) == PlayerInfo()
    assert not PlayerInfo().registered


def test_guild_info_from_chain():
    guild = GuildInfo.from_chain(("Knights", "We ride", 3, 2, 450))
    assert guild == GuildInfo("Knights", "We ride", 3, 2, 450)


def test_panels_before_connect():
    lines = PanelSet().render(SessionSnapshot())
    assert lines["wallet"] == ["Not connected"]
    assert lines["stats"] == ["Connect wallet to see assets"]
    assert lines["guild"] == ["No guild"]
    assert lines["market"] == ["No active listings"]


def test_panels_connected_without_contract():
    lines = PanelSet().render(SessionSnapshot(address="0x1234567890abcdef1234567890abcdef12345678"))
    assert lines["wallet"] == ["Connected: 0x1234...5678", "Contract not deployed yet"]


def test_panels_render_snapshot():
    snapshot = SessionSnapshot(
        address="0x1234567890abcdef1234567890abcdef12345678",
        has_contract=True,
        player=PlayerInfo(nfts=(1, 4), level=2, experience=120, nft_count=2, guild_id=3),
        guild=GuildInfo("Knights", "We ride", 3, 2, 450),
        market_items=(9,),
        stakes=(4,),
        achievements=("first-mint",),
    )
    panels = PanelSet()
    lines = panels.render(snapshot)
    assert lines["stats"][0] == "Level: 2   XP: 120"
    assert lines["stats"][3] == "Last Action: never"
    assert lines["assets"] == ["Player Assets: 2 NFTs", "Tokens: #1, #4"]
    assert lines["guild"][2] == "Members: 3   Guild XP: 450"
    assert lines["market"] == ["Listed: #9"]
    assert lines["staking"] == ["Staked: #4"]
    assert lines["achievements"] == ["first-mint"]
    assert [title for title, _ in panels.titled()][0] == "Wallet"


def test_out_of_range_timestamp_does_not_break_rendering():
    snapshot = SessionSnapshot(
        address="0x1234567890abcdef1234567890abcdef12345678",
        has_contract=True,
        player=PlayerInfo(level=1, last_action_time=2 ** 255),
    )
    lines = PanelSet().render(snapshot)
    assert lines["stats"][3] == f"Last Action: t={2 ** 255}"
