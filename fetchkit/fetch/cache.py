"""In-memory response cache for the fetch engine.

Maps request fingerprints to response payloads with a time-to-live. Entries
expire lazily: an expired entry is dropped when it is next looked up. There
is no capacity bound.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator


logger = structlog.get_logger()

Clock = Callable[[], float]


class CacheMode(str, Enum):
    """Whether responses are cached."""

    DISABLED = "disabled"
    MEMORY = "memory"


class CachePolicy(BaseModel):
    """Cache configuration for a fetcher.

    ``disabled`` bypasses the cache entirely; ``memory(ttl)`` keeps
    successful payloads in process memory for ``ttl`` seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: CacheMode = CacheMode.DISABLED
    ttl_seconds: float | None = Field(default=None, gt=0.0)

    @model_validator(mode="after")
    def validate_ttl(self) -> "CachePolicy":
        """Require a TTL exactly when caching is enabled."""
        if self.mode == CacheMode.MEMORY and self.ttl_seconds is None:
            msg = "ttl_seconds is required for memory caching"
            raise ValueError(msg)
        if self.mode == CacheMode.DISABLED and self.ttl_seconds is not None:
            msg = "ttl_seconds must not be set when caching is disabled"
            raise ValueError(msg)
        return self

    @classmethod
    def disabled(cls) -> "CachePolicy":
        """Policy with caching turned off."""
        return cls(mode=CacheMode.DISABLED)

    @classmethod
    def memory(cls, ttl_seconds: float) -> "CachePolicy":
        """Policy caching payloads in memory for ``ttl_seconds``."""
        return cls(mode=CacheMode.MEMORY, ttl_seconds=ttl_seconds)

    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return self.mode == CacheMode.MEMORY


@dataclass(frozen=True)
class CacheEntry:
    """Cached payload with its absolute expiry on the cache clock."""

    payload: bytes
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Check if the entry has reached its expiry time."""
        return now >= self.expires_at


class ResponseCache:
    """Thread-safe TTL store of response payloads keyed by fingerprint.

    Every operation runs inside a single lock whose critical section is a
    dictionary access, so concurrent fetches never wait on each other's
    network work. Payloads are stored and returned as immutable bytes.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        """Initialize the cache.

        Args:
            clock: Monotonic time source in seconds.
        """
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._log = logger.bind(component="cache")

    def lookup(self, fingerprint: str) -> bytes | None:
        """Get a cached payload.

        Expired entries are removed and reported as a miss.

        Args:
            fingerprint: Request fingerprint.

        Returns:
            Cached payload, or None on a miss.
        """
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                return None
            if not entry.is_expired(self._clock()):
                return entry.payload
            del self._entries[fingerprint]

        self._log.debug("cache_entry_expired", fingerprint=fingerprint[:16])
        return None

    def store(self, fingerprint: str, payload: bytes, ttl_seconds: float) -> None:
        """Insert or overwrite a cached payload.

        Args:
            fingerprint: Request fingerprint.
            payload: Response payload.
            ttl_seconds: Seconds until the entry expires.
        """
        entry_payload = bytes(payload)
        with self._lock:
            self._entries[fingerprint] = CacheEntry(
                payload=entry_payload,
                expires_at=self._clock() + ttl_seconds,
            )

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()

        self._log.debug("cache_cleared", removed=removed)

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        with self._lock:
            return len(self._entries)
