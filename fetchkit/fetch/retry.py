"""Retry policy with exponential backoff and jitter."""

import random
from collections.abc import Callable
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fetchkit.fetch.constants import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_DELAY_SECONDS,
    DEFAULT_JITTER_FRACTION,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_SECONDS,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
)
from fetchkit.fetch.errors import (
    HTTPStatusError,
    NetworkError,
    UnknownFetchError,
)


RetryPredicate = Callable[[BaseException], bool]


def default_retry_predicate(error: BaseException) -> bool:
    """Decide whether an error is transient.

    Network errors, 5xx responses and unclassified errors are retried.
    Invalid URLs and decoding failures are deterministic and never retried,
    and neither is anything that is not a fetch error.

    Args:
        error: The error from the failed attempt.

    Returns:
        True if the request should be retried.
    """
    if isinstance(error, NetworkError | UnknownFetchError):
        return True
    if isinstance(error, HTTPStatusError):
        return (
            HTTP_STATUS_SERVER_ERROR_MIN
            <= error.status_code
            < HTTP_STATUS_SERVER_ERROR_MAX
        )
    return False


class JitterKind(str, Enum):
    """How retry delays are randomized."""

    NONE = "none"
    FRACTIONAL = "fractional"


class Jitter(BaseModel):
    """Jitter applied to a computed backoff delay.

    ``fractional(f)`` scales the delay by a uniform factor in ``[1-f, 1+f]``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: JitterKind = JitterKind.NONE
    fraction: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0

    @classmethod
    def none(cls) -> "Jitter":
        """No jitter."""
        return cls(kind=JitterKind.NONE)

    @classmethod
    def fractional(cls, fraction: float) -> "Jitter":
        """Fractional jitter of +/- ``fraction`` of the delay."""
        return cls(kind=JitterKind.FRACTIONAL, fraction=fraction)

    def apply(self, seconds: float) -> float:
        """Apply jitter to a delay.

        Args:
            seconds: Delay before jitter.

        Returns:
            Jittered delay, never negative.
        """
        if seconds <= 0:
            return 0.0
        if self.kind == JitterKind.NONE:
            return seconds
        factor = random.uniform(1 - self.fraction, 1 + self.fraction)  # noqa: S311
        return seconds * max(0.0, factor)


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Controls how many attempts are made and the backoff between them.
    Uses exponential backoff: delay = initial_delay * (multiplier ^ (n - 1))
    for the n-th retry, capped at max_delay, then jittered.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: Annotated[int, Field(ge=1)] = DEFAULT_MAX_ATTEMPTS
    initial_delay: Annotated[float, Field(ge=0.0)] = DEFAULT_INITIAL_DELAY_SECONDS
    max_delay: Annotated[float, Field(ge=0.0)] = DEFAULT_MAX_DELAY_SECONDS
    multiplier: Annotated[float, Field(ge=1.0)] = DEFAULT_BACKOFF_MULTIPLIER
    jitter: Jitter = Field(
        default_factory=lambda: Jitter.fractional(DEFAULT_JITTER_FRACTION)
    )
    retry_predicate: RetryPredicate = Field(
        default=default_retry_predicate, exclude=True, repr=False
    )

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> "RetryPolicy":
        """Ensure max_delay is not below initial_delay."""
        if self.max_delay < self.initial_delay:
            msg = (
                f"max_delay ({self.max_delay}) must be >= "
                f"initial_delay ({self.initial_delay})"
            )
            raise ValueError(msg)
        return self

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """Policy that makes a single attempt."""
        return cls(max_attempts=1)

    def should_retry(self, error: BaseException) -> bool:
        """Determine if a failed attempt should be retried.

        The attempt budget is enforced by the caller's loop; this only
        classifies the error.

        Args:
            error: The error that occurred.

        Returns:
            True if the error is worth retrying.
        """
        return bool(self.retry_predicate(error))

    def base_delay(self, after_attempt: int) -> float:
        """Calculate the capped backoff delay before jitter.

        Args:
            after_attempt: Retry number, starting at 1 for the first retry.

        Returns:
            Delay in seconds.
        """
        attempt = max(1, after_attempt)
        try:
            delay = self.initial_delay * (self.multiplier ** (attempt - 1))
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)

    def delay(self, after_attempt: int) -> float:
        """Calculate the delay before the next retry attempt.

        Args:
            after_attempt: Retry number, starting at 1 for the first retry.

        Returns:
            Jittered delay in seconds.
        """
        return self.jitter.apply(self.base_delay(after_attempt))


NO_RETRY = RetryPolicy.no_retry()
