import json
from urllib.parse import unquote

import pytest

from chain_arcade.errors import (
    COOLDOWN_HINT,
    ONCE_PER_DAY_HINT,
    ActionBusyError,
    ContractRevertError,
    ContractUnavailableError,
    NotConnectedError,
    TransactionRejectedError,
)
from chain_arcade.background import TaskState
from chain_arcade.manifest import DeploymentManifest
from chain_arcade.models import PlayerInfo
from chain_arcade.session import ACTIONS, ActionState, GameSession, metadata_uri

from conftest import PLAYER, FakeContract, FakeWallet


ACTION_ARGS = {
    "register_player": (),
    "mint_nft": (),
    "perform_action": (),
    "upgrade_nft": (1,),
    "claim_daily_reward": (),
    "create_guild": ("Knights", "We ride"),
    "join_guild": (1,),
    "leave_guild": (),
    "challenge_player": (PLAYER, 10),
    "list_item": (1, 100),
    "buy_item": (7,),
    "stake_nft": (1,),
    "unstake_nft": (1,),
}


def test_every_action_has_arguments_listed():
    assert set(ACTION_ARGS) == set(ACTIONS)


def test_connect_registers_new_player():
    contract = FakeContract(player=PlayerInfo())
    s = GameSession(FakeWallet(), contract=contract)
    assert s.connect_wallet()
    assert ("register_player",) in contract.calls
    assert s.player_info.registered
    assert s.permanent_message.startswith("Connected: 0x1234")


def test_registration_on_connect_holds_the_busy_flag():
    contract = FakeContract(player=PlayerInfo())
    s = GameSession(FakeWallet(), contract=contract)
    manual = []
    contract.on_confirm = lambda name: manual.append(s.register_player())
    assert s.connect_wallet()
    assert isinstance(manual[0].error, ActionBusyError)
    assert contract.calls.count(("register_player",)) == 1
    assert not s.busy("register_player")


def test_connect_skips_registration_when_registered(session, contract):
    assert ("register_player",) not in contract.calls
    assert session.player_info == contract.player
    assert session.market_items == (7, 9)


def test_connect_failure_is_reported_not_raised():
    s = GameSession(FakeWallet(fail=NotConnectedError("No unlocked account #0")))
    assert not s.connect_wallet()
    assert s.status_message == "No unlocked account #0"
    assert not s.status_ok


def test_action_walks_state_machine(session):
    result = session.perform_action()
    assert result.ok
    assert result.message == "Action completed!"
    assert [state for kind, state in session.state_log if kind == "perform_action"] == [
        ActionState.SUBMITTING,
        ActionState.CONFIRMING,
        ActionState.SUCCESS,
        ActionState.IDLE,
    ]
    assert session.action_states["perform_action"] is ActionState.IDLE
    assert not session.busy("perform_action")


def test_mint_refreshes_player_and_panels(session, contract):
    result = session.mint_nft()
    assert result.ok
    assert result.tx_hash.startswith("0x")
    assert session.player_info.nfts == (1,)
    assert session.panels.lines["assets"][0] == "Player Assets: 1 NFTs"
    assert session.achievements == ("first-mint",)
    uri = contract.calls[-1][1]
    assert uri.startswith("data:application/json,")
    metadata = json.loads(unquote(uri.split(",", 1)[1]))
    assert metadata["attributes"][1] == {"trait_type": "rarity", "value": "common"}


def test_metadata_uri_is_percent_encoded():
    uri = metadata_uri({"name": "A B"})
    assert " " not in uri
    assert json.loads(unquote(uri[len("data:application/json,"):])) == {"name": "A B"}


def test_cooldown_revert_gives_cooldown_hint(session, contract):
    contract.submit_errors["perform_action"] = ContractRevertError(
        "execution reverted: Action on cooldown"
    )
    result = session.perform_action()
    assert not result.ok
    assert result.message == COOLDOWN_HINT
    assert session.status_message == COOLDOWN_HINT
    assert not session.status_ok
    assert [s for k, s in session.state_log if k == "perform_action"][-2:] == [
        ActionState.FAILED,
        ActionState.IDLE,
    ]


def test_once_per_day_revert_on_confirmation(session, contract):
    contract.confirm_errors["claim_daily_reward"] = ContractRevertError(
        "Can only claim once per day"
    )
    result = session.claim_daily_reward()
    assert not result.ok
    assert result.message == ONCE_PER_DAY_HINT
    assert result.tx_hash is not None


def test_generic_revert_surfaces_raw_message(session, contract):
    contract.submit_errors["perform_action"] = ContractRevertError("execution reverted: boom")
    result = session.perform_action()
    assert result.message == "Error performing action: execution reverted: boom"


def test_rejection_and_unexpected_errors_stay_inside_the_action(session, contract):
    contract.submit_errors["buy_item"] = TransactionRejectedError("insufficient funds")
    contract.submit_errors["upgrade_nft"] = KeyError("abi")
    assert session.buy_item(7).message == "buying item rejected: insufficient funds"
    result = session.upgrade_nft(1)
    assert not result.ok
    assert isinstance(result.error, KeyError)


def test_failures_are_not_retried(session, contract):
    contract.submit_errors["perform_action"] = ContractRevertError("cooldown")
    session.perform_action()
    assert contract.calls.count(("perform_action",)) == 1


@pytest.mark.parametrize("kind", sorted(ACTIONS))
def test_actions_without_wallet_fail_not_connected(kind, contract):
    s = GameSession(FakeWallet(), contract=contract)
    result = getattr(s, kind)(*ACTION_ARGS[kind])
    assert not result.ok
    assert isinstance(result.error, NotConnectedError)
    assert contract.calls == []


@pytest.mark.parametrize("kind", sorted(ACTIONS))
def test_manifest_without_address_fails_contract_unavailable(kind):
    manifest = DeploymentManifest.from_dict({"network": "localhost", "chainId": 31337})
    s = GameSession(FakeWallet(), manifest=manifest)
    assert s.connect_wallet()
    assert s.contract is None
    result = getattr(s, kind)(*ACTION_ARGS[kind])
    assert not result.ok
    assert isinstance(result.error, ContractUnavailableError)
    assert result.message == "Contract not deployed yet"


def test_same_kind_is_refused_while_in_flight(session, contract):
    nested = []

    def reenter(name):
        if name == "perform_action" and not nested:
            nested.append(session.perform_action())
            nested.append(session.claim_daily_reward())

    contract.on_confirm = reenter
    first = session.perform_action()
    assert first.ok
    busy, other = nested
    assert isinstance(busy.error, ActionBusyError)
    assert busy.message == "perform_action already in progress"
    assert other.ok
    assert contract.calls.count(("perform_action",)) == 1


def test_join_guild_refreshes_guild(session):
    assert session.join_guild(4).ok
    assert session.player_info.guild_id == 4
    assert session.guild_info.name == "Knights"
    assert session.panels.lines["guild"][0] == "Knights (#4)  Lv 2"


def test_stake_refreshes_stakes(session):
    assert session.stake_nft(3).ok
    assert session.stakes == (3,)
    assert session.panels.lines["staking"] == ["Staked: #3"]


def test_read_error_keeps_previous_snapshot(session, contract):
    before = session.player_info
    contract.read_error = ConnectionError("node went away")
    assert session.refresh_player() is before
    assert session.player_info is before


def test_disconnect_discards_snapshots(session):
    session.disconnect()
    assert session.player_info is None
    assert session.market_items == ()
    assert session.panels.lines["stats"] == ["Connect wallet to see assets"]
    assert isinstance(session.perform_action().error, NotConnectedError)


def test_submit_background_runs_action(session):
    task = session.submit_background("perform_action")
    assert task.wait(5)
    assert task.state is TaskState.DONE
    assert task.result.ok


def test_submit_background_rejects_unknown_action(session):
    with pytest.raises(ValueError):
        session.submit_background("self_destruct")


def test_tick_expires_status(session):
    session._set_status("hello", seconds=-1)
    session.tick()
    assert session.status_message is None
