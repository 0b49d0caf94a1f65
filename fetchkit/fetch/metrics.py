"""Metrics collection for the HTTP fetch layer."""

import threading
from dataclasses import dataclass, field
from typing import ClassVar

from fetchkit.fetch.errors import FetchErrorClass


@dataclass
class FetchMetrics:
    """Metrics for fetch operations.

    Singleton class that tracks fetch-related metrics including
    transport calls, cache hits, retries, and failures.
    """

    fetch_total: int = 0
    transport_calls_total: int = 0
    cache_hits_total: int = 0
    cache_misses_total: int = 0
    retry_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)
    bytes_total: int = 0
    duration_ms_total: float = 0.0

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_fetch(self, duration_ms: float) -> None:
        """Record a completed fetch call.

        Args:
            duration_ms: Wall time of the call in milliseconds.
        """
        with self._lock:
            self.fetch_total += 1
            self.duration_ms_total += duration_ms

    def record_transport_call(self, bytes_received: int) -> None:
        """Record a successful transport call.

        Args:
            bytes_received: Number of payload bytes received.
        """
        with self._lock:
            self.transport_calls_total += 1
            self.bytes_total += bytes_received

    def record_cache_hit(self) -> None:
        """Record a cache hit."""
        with self._lock:
            self.cache_hits_total += 1

    def record_cache_miss(self) -> None:
        """Record a cache miss."""
        with self._lock:
            self.cache_misses_total += 1

    def record_retry(self) -> None:
        """Record a retry attempt."""
        with self._lock:
            self.retry_total += 1

    def record_failure(self, error_class: FetchErrorClass) -> None:
        """Record a fetch failure.

        Args:
            error_class: Classification of the failure.
        """
        key = error_class.value
        with self._lock:
            self.failures_total[key] = self.failures_total.get(key, 0) + 1

    def to_dict(self) -> dict[str, int | float | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "fetch_total": self.fetch_total,
                "transport_calls_total": self.transport_calls_total,
                "cache_hits_total": self.cache_hits_total,
                "cache_misses_total": self.cache_misses_total,
                "retry_total": self.retry_total,
                "failures_total": dict(self.failures_total),
                "bytes_total": self.bytes_total,
                "duration_ms_total": self.duration_ms_total,
            }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average fetch duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.fetch_total == 0:
            return 0.0
        return self.duration_ms_total / self.fetch_total
