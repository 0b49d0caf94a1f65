"""Request fingerprinting for the response cache.

This module provides deterministic request identity hashing so that two
requests with the same method, final URL, headers and body share a cache key
regardless of how they were constructed.
"""

import hashlib
import json

from fetchkit.fetch.request import WireRequest


def compute_body_hash(body: bytes | None) -> str | None:
    """Compute the SHA-256 hex digest of a request body.

    Args:
        body: Body bytes, or None when the request has no body.

    Returns:
        Hex digest, or None for an absent body. An empty body hashes
        normally and is distinct from an absent one.
    """
    if body is None:
        return None
    return hashlib.sha256(body).hexdigest()


def compute_fingerprint(request: WireRequest) -> str:
    """Compute the cache fingerprint of a wire request.

    The fingerprint covers the method, the final URL (query string
    included), the header set sorted by lower-cased name, and the body hash.
    Header-name casing does not affect the result; header values do.

    Args:
        request: Wire request to fingerprint.

    Returns:
        SHA-256 hex digest of the canonical request identity.

    Examples:
        >>> from fetchkit.fetch.request import HttpMethod
        >>> a = WireRequest(method=HttpMethod.GET, url="https://example.com/a")
        >>> b = WireRequest(method=HttpMethod.GET, url="https://example.com/a")
        >>> compute_fingerprint(a) == compute_fingerprint(b)
        True
    """
    headers = sorted((name.lower(), value) for name, value in request.headers)
    canonical = json.dumps(
        [
            request.method.value,
            request.url,
            headers,
            compute_body_hash(request.body),
        ],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
