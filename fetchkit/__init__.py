"""Resilient async HTTP fetching with retries, caching and typed decoding."""

from fetchkit.fetch import (
    NO_RETRY,
    CachePolicy,
    DecodingError,
    FetchConfig,
    FetchError,
    FetchResult,
    HttpFetcher,
    HttpMethod,
    HTTPStatusError,
    InvalidURLError,
    Jitter,
    NetworkError,
    RequestDescriptor,
    RetryPolicy,
    UnknownFetchError,
)


__version__ = "0.1.0"

__all__ = [
    "NO_RETRY",
    "CachePolicy",
    "DecodingError",
    "FetchConfig",
    "FetchError",
    "FetchResult",
    "HTTPStatusError",
    "HttpFetcher",
    "HttpMethod",
    "InvalidURLError",
    "Jitter",
    "NetworkError",
    "RequestDescriptor",
    "RetryPolicy",
    "UnknownFetchError",
]
