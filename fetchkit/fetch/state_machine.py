"""State machine for a single fetch call."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class FetchState(str, Enum):
    """State of one fetch call.

    - CACHE_CHECK: Looking up the response cache
    - ATTEMPTING: Transport call in progress
    - RETRYING: Waiting out a backoff delay
    - DECODING: Decoding response bytes
    - SUCCEEDED: Decoded value produced
    - FAILED: Terminal error
    """

    CACHE_CHECK = "CACHE_CHECK"
    ATTEMPTING = "ATTEMPTING"
    RETRYING = "RETRYING"
    DECODING = "DECODING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


# Valid state transitions
_VALID_TRANSITIONS: dict[FetchState, set[FetchState]] = {
    # Cache hits skip the transport entirely
    FetchState.CACHE_CHECK: {FetchState.ATTEMPTING, FetchState.DECODING},
    FetchState.ATTEMPTING: {
        FetchState.DECODING,
        FetchState.RETRYING,
        FetchState.FAILED,
    },
    FetchState.RETRYING: {FetchState.ATTEMPTING},
    FetchState.DECODING: {FetchState.SUCCEEDED, FetchState.FAILED},
    FetchState.SUCCEEDED: set(),  # Terminal state
    FetchState.FAILED: set(),  # Terminal state
}


class FetchStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(self, from_state: FetchState, to_state: FetchState) -> None:
        """Initialize the transition error.

        Args:
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal fetch state transition: {from_state.value} -> {to_state.value}"
        )


class FetchStateMachine:
    """Tracks the state of one fetch call and its attempt count.

    Lives on the stack of a single ``fetch`` call; never shared.
    """

    def __init__(
        self,
        fingerprint: str,
        initial_state: FetchState = FetchState.CACHE_CHECK,
    ) -> None:
        """Initialize the state machine.

        Args:
            fingerprint: Request fingerprint, used for log correlation.
            initial_state: Starting state.
        """
        self._state = initial_state
        self._attempt = 0
        self._log = logger.bind(component="fetch", fingerprint=fingerprint[:16])

    @property
    def state(self) -> FetchState:
        """Get the current state."""
        return self._state

    @property
    def attempt(self) -> int:
        """Get the number of transport attempts started."""
        return self._attempt

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state in (FetchState.SUCCEEDED, FetchState.FAILED)

    def can_transition_to(self, target: FetchState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: FetchState) -> None:
        """Transition to a new state.

        Entering ATTEMPTING increments the attempt counter.

        Args:
            target: The target state.

        Raises:
            FetchStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise FetchStateTransitionError(self._state, target)

        old_state = self._state
        self._state = target
        if target == FetchState.ATTEMPTING:
            self._attempt += 1

        self._log.debug(
            "fetch_state_transition",
            from_state=old_state.value,
            to_state=target.value,
            attempt=self._attempt,
        )

    def to_attempting(self) -> None:
        """Transition to ATTEMPTING state."""
        self.transition_to(FetchState.ATTEMPTING)

    def to_retrying(self) -> None:
        """Transition to RETRYING state."""
        self.transition_to(FetchState.RETRYING)

    def to_decoding(self) -> None:
        """Transition to DECODING state."""
        self.transition_to(FetchState.DECODING)

    def to_succeeded(self) -> None:
        """Transition to SUCCEEDED state."""
        self.transition_to(FetchState.SUCCEEDED)

    def to_failed(self) -> None:
        """Transition to FAILED state."""
        self.transition_to(FetchState.FAILED)
