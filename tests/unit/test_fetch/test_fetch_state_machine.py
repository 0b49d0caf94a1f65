"""Unit tests for the per-call fetch state machine."""

import pytest

from fetchkit.fetch.state_machine import (
    FetchState,
    FetchStateMachine,
    FetchStateTransitionError,
)


@pytest.fixture
def machine() -> FetchStateMachine:
    """Create a state machine in its initial state."""
    return FetchStateMachine("a" * 64)


class TestFetchStateMachine:
    """Tests for FetchStateMachine."""

    def test_initial_state(self, machine: FetchStateMachine) -> None:
        """Test initial state and attempt count."""
        assert machine.state == FetchState.CACHE_CHECK
        assert machine.attempt == 0
        assert machine.is_terminal is False

    def test_cache_hit_path(self, machine: FetchStateMachine) -> None:
        """Test CACHE_CHECK -> DECODING -> SUCCEEDED without attempts."""
        machine.to_decoding()
        machine.to_succeeded()

        assert machine.state == FetchState.SUCCEEDED
        assert machine.attempt == 0
        assert machine.is_terminal is True

    def test_retry_path_counts_attempts(self, machine: FetchStateMachine) -> None:
        """Test that every entry into ATTEMPTING increments the counter."""
        machine.to_attempting()
        machine.to_retrying()
        machine.to_attempting()
        machine.to_retrying()
        machine.to_attempting()
        machine.to_failed()

        assert machine.attempt == 3
        assert machine.state == FetchState.FAILED

    def test_decode_failure_path(self, machine: FetchStateMachine) -> None:
        """Test ATTEMPTING -> DECODING -> FAILED."""
        machine.to_attempting()
        machine.to_decoding()
        machine.to_failed()

        assert machine.is_terminal is True
        assert machine.attempt == 1

    @pytest.mark.parametrize(
        ("path", "illegal"),
        [
            ([], FetchState.RETRYING),
            ([], FetchState.SUCCEEDED),
            ([FetchState.ATTEMPTING], FetchState.SUCCEEDED),
            ([FetchState.ATTEMPTING, FetchState.RETRYING], FetchState.FAILED),
            ([FetchState.DECODING, FetchState.SUCCEEDED], FetchState.ATTEMPTING),
            ([FetchState.ATTEMPTING, FetchState.FAILED], FetchState.DECODING),
        ],
    )
    def test_illegal_transitions_raise(
        self,
        machine: FetchStateMachine,
        path: list[FetchState],
        illegal: FetchState,
    ) -> None:
        """Test that transitions outside the table are rejected."""
        for state in path:
            machine.transition_to(state)

        assert machine.can_transition_to(illegal) is False
        with pytest.raises(FetchStateTransitionError) as exc_info:
            machine.transition_to(illegal)

        assert exc_info.value.to_state == illegal
        assert illegal.value in str(exc_info.value)

    def test_failed_transition_keeps_state(self, machine: FetchStateMachine) -> None:
        """Test that a rejected transition leaves state untouched."""
        with pytest.raises(FetchStateTransitionError):
            machine.to_succeeded()

        assert machine.state == FetchState.CACHE_CHECK
