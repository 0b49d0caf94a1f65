"""Result model for the HTTP fetch layer."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from fetchkit.fetch.errors import FetchError


T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Result of a fetch operation.

    Holds either a decoded value or the error that ended the call, never
    both. ``attempts`` counts transport calls and is 0 for cache hits and
    requests rejected before sending.
    """

    value: T | None = None
    error: FetchError | None = None
    cache_hit: bool = False
    attempts: int = 0

    @classmethod
    def success(cls, value: T, cache_hit: bool, attempts: int) -> "FetchResult[T]":
        """Build a successful result."""
        return cls(value=value, cache_hit=cache_hit, attempts=attempts)

    @classmethod
    def failure(
        cls, error: FetchError, attempts: int, cache_hit: bool = False
    ) -> "FetchResult[T]":
        """Build a failed result."""
        return cls(error=error, cache_hit=cache_hit, attempts=attempts)

    @property
    def is_success(self) -> bool:
        """Check if the fetch produced a value."""
        return self.error is None

    def unwrap(self) -> T:
        """Get the decoded value.

        Returns:
            The decoded value.

        Raises:
            FetchError: The error that ended the call.
        """
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
