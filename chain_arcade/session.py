"""
session.py
-----------
The bridge between the game window and the GameLogic contract:
  - binds a wallet signer and resolves the contract from the deployment manifest
  - one method per contract action; each one runs
        busy check → preconditions → submit → confirm → refresh → toast
    and never raises: failures come back as an ActionResult and a red toast
  - caches PlayerInfo / guild / market / stakes snapshots and re-renders the
    HUD panels after every refresh
  - exposes status_message so the Pygame UI can show toast notifications

Actions may block for as long as the wallet and the network take. The window
runs them through submit_background() so the frame loop keeps going.
"""

import json
import threading
import time
from collections import deque
from enum import Enum
from typing import Callable, NamedTuple, Optional
from urllib.parse import quote

from chain_arcade.background import BackgroundAction
from chain_arcade.contract_client import ChainConfig, GameContractClient
from chain_arcade.errors import (
    ActionBusyError,
    ContractUnavailableError,
    GameClientError,
    NotConnectedError,
    user_message,
)
from chain_arcade.manifest import DeploymentManifest, load_manifest
from chain_arcade.models import SessionSnapshot
from chain_arcade.panels import PanelSet, short_address
from chain_arcade.wallet_bridge import WalletProvider


class ActionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    SUCCESS = "success"
    FAILED = "failed"


class ActionResult(NamedTuple):
    kind: str
    ok: bool
    message: str
    tx_hash: Optional[str] = None
    error: Optional[BaseException] = None


# action → (progress label, success toast, views refreshed on success)
ACTIONS = {
    "register_player": ("registering player", "Player registered successfully", ()),
    "mint_nft": ("minting NFT", "NFT minted successfully!", ("achievements",)),
    "perform_action": ("performing action", "Action completed!", ("achievements",)),
    "upgrade_nft": ("upgrading NFT", "NFT upgraded!", ()),
    "claim_daily_reward": ("claiming daily reward", "Daily reward claimed!", ()),
    "create_guild": ("creating guild", "Guild created!", ("guild",)),
    "join_guild": ("joining guild", "Joined guild!", ("guild",)),
    "leave_guild": ("leaving guild", "Left guild", ("guild",)),
    "challenge_player": ("challenging player", "Challenge sent!", ()),
    "list_item": ("listing item", "Item listed!", ("market",)),
    "buy_item": ("buying item", "Item purchased!", ("market",)),
    "stake_nft": ("staking NFT", "NFT staked!", ("stakes",)),
    "unstake_nft": ("unstaking NFT", "NFT unstaked!", ("stakes",)),
}


def character_metadata(now: Optional[float] = None) -> dict:
    now = time.time() if now is None else now
    return {
        "name": f"Game Character #{int(now * 1000)}",
        "description": "A unique character in the blockchain game",
        "attributes": [
            {"trait_type": "level", "value": 1},
            {"trait_type": "rarity", "value": "common"},
        ],
    }


def metadata_uri(metadata: dict) -> str:
    """Inline JSON token URI; stands in for an IPFS upload."""
    return "data:application/json," + quote(json.dumps(metadata), safe="-_.!~*'()")


class GameSession:
    """
    Usage in the window
    -------------------
    session = GameSession.open(ChainConfig.from_env())
    session.connect_wallet()
    session.submit_background("mint_nft")          # key handler
    session.tick()                                 # once per frame
    msg = session.status_message                   # str or None
    """

    def __init__(
        self,
        wallet: WalletProvider,
        manifest: Optional[DeploymentManifest] = None,
        config: Optional[ChainConfig] = None,
        contract=None,
    ):
        self.wallet = wallet
        self.manifest = manifest
        self.config = config or ChainConfig()
        self.contract = contract

        # cached on-chain snapshots, replaced wholesale on refresh
        self.player_info = None
        self.guild_info = None
        self.market_items = ()
        self.stakes = ()
        self.achievements = ()

        self.panels = PanelSet()
        self.action_states = {kind: ActionState.IDLE for kind in ACTIONS}
        self.state_log = deque(maxlen=200)
        self._busy = set()
        self._lock = threading.RLock()

        # UI feedback — read by the window's draw() to show the toast
        self.status_message: Optional[str] = None
        self.status_ok: bool = True
        self._status_until: float = 0.0
        self.permanent_message: str = "Not connected"
        self.permanent_ok: bool = False

        self.render_panels()

    # ── factory ───────────────────────────────────────────────────────────────

    @classmethod
    def open(cls, config: Optional[ChainConfig] = None) -> "GameSession":
        """
        Build the wallet provider and load the manifest. Never raises for a
        missing manifest or an unreachable node; the HUD says what is wrong.
        """
        config = config or ChainConfig.from_env()
        wallet = WalletProvider(
            config.rpc_url,
            private_key=config.private_key,
            account_index=config.account_index,
        )
        manifest = load_manifest(config.manifest_path)
        session = cls(wallet, manifest=manifest, config=config)

        try:
            health = wallet.health()
        except Exception as exc:
            health = {"ok": False, "reason": str(exc)}
        if not health.get("ok"):
            print(f"[chain] WARNING: node at {config.rpc_url} unreachable ({health.get('reason')})")
            session._set_permanent(f"Chain OFF: no node at {config.rpc_url}", ok=False)
        else:
            print(f"[chain] Node ok  chainId={health['chainId']}  block={health['block']}")
            if manifest is not None and manifest.chain_id not in (None, health["chainId"]):
                print(
                    f"[chain] WARNING: manifest targets chainId {manifest.chain_id}, "
                    f"node reports {health['chainId']}"
                )
        return session

    # ── connection ────────────────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self.wallet.address is not None

    @property
    def ready(self) -> bool:
        return self.connected and self.contract is not None

    def connect_wallet(self) -> bool:
        try:
            signer = self.wallet.connect()
        except Exception as exc:
            print(f"[chain] Error connecting wallet: {exc}")
            self._set_status(user_message("connecting wallet", exc), ok=False, seconds=8)
            return False

        if self.contract is None:
            self.contract = GameContractClient.from_manifest(self.wallet, self.manifest, self.config)
        print(f"[chain] Wallet connected: {signer.address}")
        self._set_permanent(f"Connected: {short_address(signer.address)}", ok=True)

        if self.contract is None:
            print("[chain] Contract not available, skipping registration")
            self._set_status("Wallet connected (no contract deployed)", ok=False, seconds=6)
        else:
            print(f"[chain] Connected to contract: {self.contract.address}")
            self._ensure_registered()
            self.refresh_all()
            self._set_status("✓ Wallet connected", ok=True)
        self.render_panels()
        return True

    def disconnect(self):
        self.wallet.disconnect()
        with self._lock:
            self.player_info = None
            self.guild_info = None
            self.market_items = ()
            self.stakes = ()
            self.achievements = ()
        self._set_permanent("Not connected", ok=False)
        self.render_panels()

    def _ensure_registered(self):
        try:
            self._acquire("register_player")
        except ActionBusyError:
            print("[chain] Registration already in progress")
            return
        try:
            info = self.contract.get_player_info(self.wallet.address)
            if info.registered:
                print("[chain] Player already registered")
                return
            tx_hash = self.contract.register_player()
            self.contract.wait_for_receipt(tx_hash)
            print("[chain] Player registered successfully")
        except Exception as exc:
            # an already-registered player makes this revert; not fatal
            print(f"[chain] Error registering player: {exc}")
        finally:
            self._release("register_player")

    def _require_ready(self):
        if not self.connected:
            raise NotConnectedError()
        if self.contract is None:
            raise ContractUnavailableError()

    # ── status helpers ─────────────────────────────────────────────────────────

    def _set_status(self, msg: str, ok: bool = True, seconds: float = 4.0):
        self.status_message = msg
        self.status_ok = ok
        self._status_until = time.time() + seconds

    def _set_permanent(self, msg: str, ok: bool = True):
        """Always-visible one-liner at top of HUD (separate from toast)."""
        self.permanent_message = msg
        self.permanent_ok = ok

    def tick(self):
        """Call once per frame to expire status toasts."""
        if self.status_message and time.time() > self._status_until:
            self.status_message = None

    # ── action protocol ────────────────────────────────────────────────────────

    def _transition(self, kind: str, state: ActionState):
        with self._lock:
            self.action_states[kind] = state
            self.state_log.append((kind, state))

    def _acquire(self, kind: str):
        with self._lock:
            if kind in self._busy:
                raise ActionBusyError(kind)
            self._busy.add(kind)

    def _release(self, kind: str):
        with self._lock:
            self._busy.discard(kind)

    def busy(self, kind: str) -> bool:
        with self._lock:
            return kind in self._busy

    def _run_action(self, kind: str, submit: Callable[[], str]) -> ActionResult:
        label, done_msg, views = ACTIONS[kind]
        try:
            self._acquire(kind)
        except ActionBusyError as exc:
            msg = user_message(label, exc)
            self._set_status(msg, ok=False)
            return ActionResult(kind, False, msg, error=exc)

        tx_hash = None
        try:
            self._require_ready()
            self._transition(kind, ActionState.SUBMITTING)
            self._set_status(f"⏳ {label.capitalize()}...", ok=True, seconds=120)
            tx_hash = submit()
            self._transition(kind, ActionState.CONFIRMING)
            self.contract.wait_for_receipt(tx_hash)
        except Exception as exc:
            self._transition(kind, ActionState.FAILED)
            msg = user_message(label, exc)
            if not isinstance(exc, GameClientError):
                print(f"[chain] Unexpected error {label}: {exc!r}")
            else:
                print(f"[chain] Error {label}: {exc}")
            self._set_status(msg, ok=False, seconds=8)
            return ActionResult(kind, False, msg, tx_hash, exc)
        else:
            self._refresh(("player",) + views)
            self._transition(kind, ActionState.SUCCESS)
            print(f"[chain] {done_msg}  tx={tx_hash}")
            self._set_status(f"✓ {done_msg}", ok=True)
            return ActionResult(kind, True, done_msg, tx_hash)
        finally:
            self._transition(kind, ActionState.IDLE)
            self._release(kind)

    def submit_background(self, kind: str, *args, delay: float = 0.0) -> BackgroundAction:
        """Run action `kind` on a daemon thread, optionally after `delay` seconds."""
        if kind not in ACTIONS:
            raise ValueError(f"unknown action {kind!r}")
        method = getattr(self, kind)
        return BackgroundAction(
            kind,
            lambda: method(*args),
            delay=delay,
            failure=lambda result: None if result.ok else result.error,
        ).start()

    # ── contract actions ──────────────────────────────────────────────────────

    def register_player(self) -> ActionResult:
        return self._run_action("register_player", lambda: self.contract.register_player())

    def mint_nft(self, metadata: Optional[dict] = None) -> ActionResult:
        uri = metadata_uri(metadata or character_metadata())
        return self._run_action("mint_nft", lambda: self.contract.mint_nft(uri))

    def perform_action(self) -> ActionResult:
        return self._run_action("perform_action", lambda: self.contract.perform_action())

    def upgrade_nft(self, token_id: int) -> ActionResult:
        return self._run_action("upgrade_nft", lambda: self.contract.upgrade_nft(token_id))

    def claim_daily_reward(self) -> ActionResult:
        return self._run_action("claim_daily_reward", lambda: self.contract.claim_daily_reward())

    def create_guild(self, name: str, description: str) -> ActionResult:
        return self._run_action("create_guild", lambda: self.contract.create_guild(name, description))

    def join_guild(self, guild_id: int) -> ActionResult:
        return self._run_action("join_guild", lambda: self.contract.join_guild(guild_id))

    def leave_guild(self) -> ActionResult:
        return self._run_action("leave_guild", lambda: self.contract.leave_guild())

    def challenge_player(self, opponent: str, amount: int) -> ActionResult:
        return self._run_action(
            "challenge_player", lambda: self.contract.challenge_player(opponent, amount)
        )

    def list_item(self, token_id: int, price: int) -> ActionResult:
        return self._run_action("list_item", lambda: self.contract.list_item(token_id, price))

    def buy_item(self, token_id: int) -> ActionResult:
        return self._run_action("buy_item", lambda: self.contract.buy_item(token_id))

    def stake_nft(self, token_id: int) -> ActionResult:
        return self._run_action("stake_nft", lambda: self.contract.stake_nft(token_id))

    def unstake_nft(self, token_id: int) -> ActionResult:
        return self._run_action("unstake_nft", lambda: self.contract.unstake_nft(token_id))

    # ── refresh ───────────────────────────────────────────────────────────────

    def _read(self, what: str, fn: Callable, fallback):
        """Read errors keep the previous snapshot in place."""
        if not self.ready:
            return fallback
        try:
            return fn()
        except Exception as exc:
            print(f"[chain] Error updating {what}: {exc}")
            return fallback

    def refresh_player(self):
        info = self._read(
            "player stats", lambda: self.contract.get_player_info(self.wallet.address), self.player_info
        )
        with self._lock:
            self.player_info = info
        return info

    def refresh_guild(self):
        player = self.player_info
        if player is None or not player.guild_id:
            guild = None
        else:
            guild = self._read(
                "guild", lambda: self.contract.get_guild_info(player.guild_id), self.guild_info
            )
        with self._lock:
            self.guild_info = guild
        return guild

    def refresh_market(self):
        items = self._read(
            "marketplace", lambda: self.contract.get_active_market_items(), self.market_items
        )
        with self._lock:
            self.market_items = items
        return items

    def refresh_stakes(self):
        stakes = self._read(
            "stakes", lambda: self.contract.get_player_stakes(self.wallet.address), self.stakes
        )
        with self._lock:
            self.stakes = stakes
        return stakes

    def refresh_achievements(self):
        achievements = self._read(
            "achievements",
            lambda: self.contract.get_player_achievements(self.wallet.address),
            self.achievements,
        )
        with self._lock:
            self.achievements = achievements
        return achievements

    _REFRESHERS = {
        "player": "refresh_player",
        "guild": "refresh_guild",
        "market": "refresh_market",
        "stakes": "refresh_stakes",
        "achievements": "refresh_achievements",
    }

    def _refresh(self, views):
        for view in views:
            getattr(self, self._REFRESHERS[view])()
        self.render_panels()

    def refresh_all(self):
        self._refresh(("player", "guild", "market", "stakes", "achievements"))

    # ── panels ────────────────────────────────────────────────────────────────

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                address=self.wallet.address,
                has_contract=self.contract is not None,
                player=self.player_info,
                guild=self.guild_info,
                market_items=tuple(self.market_items),
                stakes=tuple(self.stakes),
                achievements=tuple(self.achievements),
            )

    def render_panels(self):
        return self.panels.render(self.snapshot())
