"""Upload request state machine."""

from enum import Enum


class UploadState(str, Enum):
    """States a single upload request moves through."""

    RECEIVED = "received"
    AUTHENTICATED = "authenticated"
    VALIDATED = "validated"
    STAGED = "staged"
    CACHE_PENDING = "cache_pending"  # cache bookkeeping done, notification pending
    NOTIFIED = "notified"
    RESPONDED = "responded"
    REJECTED_UNAUTHORIZED = "rejected_unauthorized"
    REJECTED_BAD_REQUEST = "rejected_bad_request"
    FAILED_INTERNAL = "failed_internal"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        current_state: UploadState,
        target_state: UploadState,
        message: str | None = None,
    ):
        self.current_state = current_state
        self.target_state = target_state
        self.message = message or f"Invalid transition from {current_state.value} to {target_state.value}"
        super().__init__(self.message)


class UploadStateMachine:
    """Tracks one request through the ingestion pipeline.

    Valid transitions:
    - received -> authenticated | rejected_unauthorized
    - authenticated -> validated | rejected_bad_request
    - validated -> staged | failed_internal
    - staged -> cache_pending | failed_internal
    - cache_pending -> notified | failed_internal
    - notified -> responded | failed_internal

    Every stage runs at most once, so the visited states never repeat. Any
    post-write state may move to failed_internal.
    """

    VALID_TRANSITIONS: set[tuple[UploadState, UploadState]] = {
        (UploadState.RECEIVED, UploadState.AUTHENTICATED),
        (UploadState.RECEIVED, UploadState.REJECTED_UNAUTHORIZED),
        (UploadState.AUTHENTICATED, UploadState.VALIDATED),
        (UploadState.AUTHENTICATED, UploadState.REJECTED_BAD_REQUEST),
        (UploadState.VALIDATED, UploadState.STAGED),
        (UploadState.VALIDATED, UploadState.FAILED_INTERNAL),
        (UploadState.STAGED, UploadState.CACHE_PENDING),
        (UploadState.STAGED, UploadState.FAILED_INTERNAL),
        (UploadState.CACHE_PENDING, UploadState.NOTIFIED),
        (UploadState.CACHE_PENDING, UploadState.FAILED_INTERNAL),
        (UploadState.NOTIFIED, UploadState.RESPONDED),
        (UploadState.NOTIFIED, UploadState.FAILED_INTERNAL),
    }

    TERMINAL_STATES = frozenset(
        {
            UploadState.RESPONDED,
            UploadState.REJECTED_UNAUTHORIZED,
            UploadState.REJECTED_BAD_REQUEST,
            UploadState.FAILED_INTERNAL,
        }
    )

    def __init__(self) -> None:
        self.history: list[UploadState] = [UploadState.RECEIVED]

    @property
    def state(self) -> UploadState:
        """Current state."""
        return self.history[-1]

    @classmethod
    def is_valid_transition(
        cls,
        current_state: UploadState,
        target_state: UploadState,
    ) -> bool:
        """Check if a state transition is valid."""
        return (current_state, target_state) in cls.VALID_TRANSITIONS

    @classmethod
    def is_terminal_state(cls, state: UploadState) -> bool:
        """Check if a state is terminal (no valid transitions out)."""
        return state in cls.TERMINAL_STATES

    def transition(self, target_state: UploadState) -> UploadState:
        """Move to ``target_state``.

        Raises:
            InvalidTransitionError: If transition is not valid
        """
        if not self.is_valid_transition(self.state, target_state):
            raise InvalidTransitionError(self.state, target_state)
        self.history.append(target_state)
        return target_state
