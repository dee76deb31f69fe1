"""
errors.py
Exception types raised at the wallet / contract boundary and the helpers that
turn them into one-line messages for the HUD toast.
"""

from typing import Optional


COOLDOWN_HINT = "Action still on cooldown. Please wait before trying again."
ONCE_PER_DAY_HINT = "Daily reward already claimed. Come back tomorrow."

# (substring, reason, hint) — first match wins
_REVERT_HINTS = (
    ("cooldown", "cooldown", COOLDOWN_HINT),
    ("once per day", "once_per_day", ONCE_PER_DAY_HINT),
)


class GameClientError(Exception):
    """Base class for every error the session turns into a status message."""


class NotConnectedError(GameClientError):
    def __init__(self, message: str = "Please connect wallet first"):
        super().__init__(message)


class ContractUnavailableError(GameClientError):
    def __init__(self, message: str = "Contract not deployed yet"):
        super().__init__(message)


class TransactionRejectedError(GameClientError):
    """The wallet or the node refused the transaction."""


class ActionBusyError(GameClientError):
    def __init__(self, kind: str):
        super().__init__(f"{kind} already in progress")
        self.kind = kind


class ContractRevertError(GameClientError):
    """
    The contract reverted. `reason` is one of "cooldown", "once_per_day" or
    "generic", picked from the revert message.
    """

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason or classify_revert(message)


def classify_revert(message: str) -> str:
    lowered = (message or "").lower()
    for needle, reason, _hint in _REVERT_HINTS:
        if needle in lowered:
            return reason
    return "generic"


def revert_hint(reason: str) -> Optional[str]:
    for _needle, known, hint in _REVERT_HINTS:
        if known == reason:
            return hint
    return None


def user_message(action: str, exc: BaseException) -> str:
    """Message shown to the player when `action` failed with `exc`."""
    if isinstance(exc, ContractRevertError):
        hint = revert_hint(exc.reason)
        if hint:
            return hint
        return f"Error {action}: {exc}"
    if isinstance(exc, (NotConnectedError, ContractUnavailableError, ActionBusyError)):
        return str(exc)
    if isinstance(exc, TransactionRejectedError):
        return f"{action} rejected: {exc}"
    return f"Error {action}: {exc}"
