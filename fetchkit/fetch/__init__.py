"""HTTP fetch layer with caching, retries, and typed decoding.

This module provides resilient HTTP fetch operations with:
- Immutable request descriptors and canonical wire requests
- Configurable retry policy with exponential backoff and jitter
- Fingerprint-keyed in-memory response cache with TTL expiry
- Pluggable transports and body decoders
- Header redaction and metrics for observability
"""

from fetchkit.fetch.cache import CacheEntry, CacheMode, CachePolicy, ResponseCache
from fetchkit.fetch.client import HttpFetcher
from fetchkit.fetch.config import FetchConfig
from fetchkit.fetch.decoding import ByteDecoder, JsonDecoder, RawDecoder
from fetchkit.fetch.errors import (
    DecodingError,
    FetchError,
    FetchErrorClass,
    HTTPStatusError,
    InvalidURLError,
    NetworkError,
    UnknownFetchError,
)
from fetchkit.fetch.fingerprint import compute_body_hash, compute_fingerprint
from fetchkit.fetch.metrics import FetchMetrics
from fetchkit.fetch.models import FetchResult
from fetchkit.fetch.redact import redact_headers, redact_url_credentials
from fetchkit.fetch.request import (
    HttpMethod,
    RequestBuilder,
    RequestDescriptor,
    WireRequest,
    compose_url,
    merge_headers,
)
from fetchkit.fetch.retry import (
    NO_RETRY,
    Jitter,
    JitterKind,
    RetryPolicy,
    default_retry_predicate,
)
from fetchkit.fetch.state_machine import (
    FetchState,
    FetchStateMachine,
    FetchStateTransitionError,
)
from fetchkit.fetch.transport import HttpxTransport, Transport


__all__ = [
    # Client
    "HttpFetcher",
    "FetchResult",
    # Requests
    "HttpMethod",
    "RequestBuilder",
    "RequestDescriptor",
    "WireRequest",
    "compose_url",
    "merge_headers",
    # Transport
    "Transport",
    "HttpxTransport",
    # Retry
    "RetryPolicy",
    "Jitter",
    "JitterKind",
    "NO_RETRY",
    "default_retry_predicate",
    # Cache
    "CacheEntry",
    "CacheMode",
    "CachePolicy",
    "ResponseCache",
    "compute_fingerprint",
    "compute_body_hash",
    # Decoding
    "ByteDecoder",
    "JsonDecoder",
    "RawDecoder",
    # Config
    "FetchConfig",
    # Errors
    "FetchError",
    "FetchErrorClass",
    "InvalidURLError",
    "NetworkError",
    "HTTPStatusError",
    "DecodingError",
    "UnknownFetchError",
    # State machine
    "FetchState",
    "FetchStateMachine",
    "FetchStateTransitionError",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
