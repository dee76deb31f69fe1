import time
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3Exception

from chain_arcade.errors import (
    ContractRevertError,
    NotConnectedError,
    TransactionRejectedError,
)


DEFAULT_RPC_URL = "http://127.0.0.1:8545"


def rpc_error_message(exc: BaseException) -> str:
    """Node errors arrive either as plain strings or as {"code", "message"} dicts."""
    arg = exc.args[0] if exc.args else exc
    if isinstance(arg, dict):
        return str(arg.get("message", arg))
    return str(arg)


@dataclass
class Signer:
    address: str
    account: Optional[object] = None   # eth_account LocalAccount when signing locally


class WalletProvider:
    def __init__(self, rpc_url=DEFAULT_RPC_URL, private_key=None, account_index=0, request_timeout=10):
        self.rpc_url = rpc_url.rstrip("/")
        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": request_timeout}))
        self.account_index = account_index
        self.signer: Optional[Signer] = None
        self._private_key = private_key

    @property
    def address(self) -> Optional[str]:
        return self.signer.address if self.signer else None

    def health(self):
        if not self.w3.is_connected():
            return {"ok": False, "reason": "node_unreachable"}
        return {"ok": True, "chainId": self.w3.eth.chain_id, "block": self.w3.eth.block_number}

    def request_accounts(self):
        return list(self.w3.eth.accounts)

    def connect(self) -> Signer:
        """Bind a signer: the configured private key, else an unlocked node account."""
        if self._private_key:
            account = Account.from_key(self._private_key)
            self.signer = Signer(address=account.address, account=account)
            return self.signer
        accounts = self.request_accounts()
        if len(accounts) <= self.account_index:
            raise NotConnectedError(
                f"No unlocked account #{self.account_index} on {self.rpc_url}"
            )
        self.signer = Signer(address=Web3.to_checksum_address(accounts[self.account_index]))
        return self.signer

    def disconnect(self):
        self.signer = None

    def safe_connect(self):
        try:
            health = self.health()
            if not health.get("ok", False):
                return {"ok": False, "reason": health.get("reason", "node_not_healthy")}
            signer = self.connect()
            return {"ok": True, "address": signer.address, "chainId": health.get("chainId")}
        except NotConnectedError as exc:
            return {"ok": False, "reason": str(exc)}
        except (OSError, Web3Exception):
            return {"ok": False, "reason": "node_unreachable"}

    def send_transaction(self, tx: dict) -> str:
        """Sign (locally or on the node) and broadcast `tx`. Returns the tx hash."""
        if self.signer is None:
            raise NotConnectedError()
        try:
            if self.signer.account is not None:
                tx = dict(tx)
                tx.setdefault(
                    "nonce", self.w3.eth.get_transaction_count(self.signer.address, "pending")
                )
                signed = self.signer.account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            else:
                tx_hash = self.w3.eth.send_transaction(tx)
        except ContractLogicError as exc:
            raise ContractRevertError(rpc_error_message(exc)) from exc
        except (ValueError, Web3Exception) as exc:
            raise TransactionRejectedError(rpc_error_message(exc)) from exc
        return Web3.to_hex(tx_hash)

    def wait_for_receipt(self, tx_hash, poll_seconds=1.0, timeout_seconds=None):
        """
        Poll until the transaction is mined. With timeout_seconds=None this
        waits as long as the network takes.
        """
        started = time.time()
        while timeout_seconds is None or time.time() - started <= timeout_seconds:
            try:
                return self.w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                time.sleep(poll_seconds)
        raise TransactionRejectedError(
            f"confirmation timed out after {timeout_seconds}s (tx={tx_hash})"
        )
