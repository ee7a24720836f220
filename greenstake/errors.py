"""
Exception types for GreenStake.

Every error raised on purpose by this package derives from GreenStakeError.
"""

from enum import Enum
from typing import Optional


class GreenStakeError(Exception):
    """Base exception for GreenStake."""
    pass


class RecordNotFoundError(GreenStakeError):
    """Raised when a record id is unknown to the store."""
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind.capitalize()} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class VersionConflictError(GreenStakeError):
    """Raised when an update carries a stale record version."""
    def __init__(self, kind: str, record_id: str, expected: int, actual: int):
        super().__init__(
            f"{kind.capitalize()} {record_id} is at version {actual}, "
            f"update expected version {expected}"
        )
        self.expected = expected
        self.actual = actual


class InferenceError(GreenStakeError):
    """Raised when the hosted text-generation call fails."""
    pass


class InferenceUnavailableError(InferenceError):
    """Raised when no inference credential is configured."""
    pass


class InvalidTransitionError(GreenStakeError):
    """Raised when a flow receives an event its current state does not accept."""
    def __init__(self, state: Enum, event: Enum):
        super().__init__(f"Event {event.name} is not valid in state {state.name}")
        self.state = state
        self.event = event


class StakeAmountError(GreenStakeError):
    """Raised when a stake amount is below the configured minimum."""
    pass


class WalletErrorKind(Enum):
    """Best-effort classification of wallet and on-chain failures."""
    USER_REJECTED = "user_rejected"
    FAILED = "failed"


class FlowAbortedError(GreenStakeError):
    """Raised when a stake or trade flow aborts and resets to idle."""
    def __init__(self, message: str, kind: WalletErrorKind, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause
