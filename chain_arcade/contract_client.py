"""
contract_client.py
Builds and submits GameLogic contract transactions and performs the read calls
that feed the HUD panels.

Prerequisites
-------------
- web3 >= 7.0  (pip install web3)
- A deployment manifest (web/contractInfo.json by default) with the contract
  address. Without it the session runs contractless.
- CHAIN_RPC_URL       defaults to http://127.0.0.1:8545 (Hardhat node)
- PLAYER_PRIVATE_KEY  optional; otherwise the first unlocked node account signs.

Flow
----
  1. <action>(...) → estimates gas, signs through the WalletProvider and
     broadcasts. Returns the tx hash.
  2. wait_for_receipt(tx_hash) → blocks until mined; raises on revert.
  3. get_player_info(address) and friends → snapshot reads.
"""

import os
from dataclasses import dataclass
from typing import Optional

from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from chain_arcade.errors import ContractRevertError, TransactionRejectedError
from chain_arcade.manifest import DeploymentManifest
from chain_arcade.models import GuildInfo, PlayerInfo, token_ids
from chain_arcade.wallet_bridge import DEFAULT_RPC_URL, WalletProvider, rpc_error_message


# ── configuration ────────────────────────────────────────────────────────────

def _optional_float(value: Optional[str]) -> Optional[float]:
    value = (value or "").strip()
    return float(value) if value else None


@dataclass
class ChainConfig:
    rpc_url: str = DEFAULT_RPC_URL
    manifest_path: str = os.path.join("web", "contractInfo.json")
    private_key: Optional[str] = None
    account_index: int = 0
    receipt_poll_seconds: float = 1.0
    receipt_timeout: Optional[float] = None
    port: int = 8000
    web_root: str = "web"

    @classmethod
    def from_env(cls) -> "ChainConfig":
        web_root = os.environ.get("WEB_ROOT", "web")
        return cls(
            rpc_url=os.environ.get("CHAIN_RPC_URL", DEFAULT_RPC_URL),
            manifest_path=os.environ.get(
                "GAME_MANIFEST_PATH", os.path.join(web_root, "contractInfo.json")
            ),
            private_key=os.environ.get("PLAYER_PRIVATE_KEY", "").strip() or None,
            account_index=int(os.environ.get("PLAYER_ACCOUNT_INDEX", "0")),
            receipt_poll_seconds=float(os.environ.get("RECEIPT_POLL_SECONDS", "1.0")),
            receipt_timeout=_optional_float(os.environ.get("RECEIPT_TIMEOUT_SECONDS")),
            port=int(os.environ.get("PORT", "8000")),
            web_root=web_root,
        )


# ── client ───────────────────────────────────────────────────────────────────

class GameContractClient:
    """
    Thin wrapper over the GameLogic contract. Every write returns the tx hash
    as soon as the node accepts it; confirmation is a separate step.
    """

    def __init__(self, wallet: WalletProvider, address: str, abi: list,
                 poll_seconds: float = 1.0, receipt_timeout: Optional[float] = None):
        self.wallet = wallet
        self.address = Web3.to_checksum_address(address)
        self.contract = wallet.w3.eth.contract(address=self.address, abi=abi)
        self.poll_seconds = poll_seconds
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_manifest(cls, wallet: WalletProvider, manifest: Optional[DeploymentManifest],
                      config: Optional[ChainConfig] = None) -> Optional["GameContractClient"]:
        """Resolve the game contract handle, or None when the manifest has no address."""
        entry = manifest.game_contract() if manifest is not None else None
        if entry is None:
            return None
        config = config or ChainConfig()
        return cls(
            wallet,
            entry.address,
            entry.abi,
            poll_seconds=config.receipt_poll_seconds,
            receipt_timeout=config.receipt_timeout,
        )

    # ── internal ─────────────────────────────────────────────────────────────

    def _transact(self, function_name: str, *args) -> str:
        """Estimate, sign and broadcast `function_name(*args)` from the bound signer."""
        fn = getattr(self.contract.functions, function_name)(*args)
        try:
            tx = fn.build_transaction({"from": self.wallet.address})
        except ContractLogicError as exc:
            raise ContractRevertError(rpc_error_message(exc)) from exc
        except (ValueError, Web3Exception) as exc:
            raise TransactionRejectedError(rpc_error_message(exc)) from exc
        return self.wallet.send_transaction(tx)

    def _call(self, function_name: str, *args):
        return getattr(self.contract.functions, function_name)(*args).call()

    # ── writes ───────────────────────────────────────────────────────────────

    def register_player(self) -> str:
        return self._transact("registerPlayer")

    def mint_nft(self, uri: str) -> str:
        return self._transact("mintNFT", uri)

    def perform_action(self) -> str:
        return self._transact("performAction")

    def upgrade_nft(self, token_id: int) -> str:
        return self._transact("upgradeNFT", int(token_id))

    def claim_daily_reward(self) -> str:
        return self._transact("claimDailyReward")

    def create_guild(self, name: str, description: str) -> str:
        return self._transact("createGuild", name, description)

    def join_guild(self, guild_id: int) -> str:
        return self._transact("joinGuild", int(guild_id))

    def leave_guild(self) -> str:
        return self._transact("leaveGuild")

    def challenge_player(self, opponent: str, amount: int) -> str:
        return self._transact("challengePlayer", Web3.to_checksum_address(opponent), int(amount))

    def list_item(self, token_id: int, price: int) -> str:
        return self._transact("listItem", int(token_id), int(price))

    def buy_item(self, token_id: int) -> str:
        return self._transact("buyItem", int(token_id))

    def stake_nft(self, token_id: int) -> str:
        return self._transact("stakeNFT", int(token_id))

    def unstake_nft(self, token_id: int) -> str:
        return self._transact("unstakeNFT", int(token_id))

    # ── confirmation ─────────────────────────────────────────────────────────

    def wait_for_receipt(self, tx_hash: str):
        receipt = self.wallet.wait_for_receipt(
            tx_hash, poll_seconds=self.poll_seconds, timeout_seconds=self.receipt_timeout,
        )
        if receipt.get("status", 1) == 0:
            raise ContractRevertError(f"transaction reverted (tx={tx_hash})")
        return receipt

    # ── reads ────────────────────────────────────────────────────────────────

    def get_player_info(self, address: str) -> PlayerInfo:
        return PlayerInfo.from_chain(self._call("getPlayerInfo", address))

    def get_player_achievements(self, address: str) -> tuple:
        return tuple(self._call("getPlayerAchievements", address))

    def get_guild_info(self, guild_id: int) -> GuildInfo:
        return GuildInfo.from_chain(self._call("getGuildInfo", int(guild_id)))

    def get_active_market_items(self) -> tuple:
        return token_ids(self._call("getActiveMarketItems"))

    def get_player_stakes(self, address: str) -> tuple:
        return token_ids(self._call("getPlayerStakes", address))
