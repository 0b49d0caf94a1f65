"""Request descriptors and their canonical wire-level form."""

import json
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from fetchkit.fetch.constants import JSON_CONTENT_TYPE
from fetchkit.fetch.errors import InvalidURLError


HeaderPairs = tuple[tuple[str, str], ...]
QueryPairs = tuple[tuple[str, str], ...]

HeaderInput = Mapping[str, str] | Iterable[tuple[str, str]] | None

_ALLOWED_SCHEMES = frozenset({"http", "https"})


class HttpMethod(str, Enum):
    """HTTP methods supported by the fetch layer."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


def merge_headers(*layers: HeaderInput) -> HeaderPairs:
    """Merge header layers case-insensitively, later layers winning.

    The casing of the last write is kept for each header name.

    Args:
        layers: Header mappings or (name, value) iterables, lowest priority first.

    Returns:
        Tuple of (name, value) pairs with one entry per header name.
    """
    merged: dict[str, tuple[str, str]] = {}
    for layer in layers:
        if not layer:
            continue
        items = layer.items() if isinstance(layer, Mapping) else layer
        for name, value in items:
            merged[name.lower()] = (name, value)
    return tuple(merged.values())


def compose_url(
    base_url: str,
    path: str = "",
    query_params: Iterable[tuple[str, str]] = (),
) -> str:
    """Compose a final request URL.

    The path is joined onto the base URL path and query parameters are
    appended in the order supplied, after any query already present.

    Args:
        base_url: Absolute http(s) URL.
        path: Optional path appended to the base URL path.
        query_params: Ordered (name, value) pairs. Duplicates are kept.

    Returns:
        Final URL string.

    Raises:
        InvalidURLError: If the pieces do not form a valid absolute URI.
    """
    try:
        parts = urlsplit(base_url)
        has_valid_port = parts.port is None or parts.port > 0
    except ValueError as e:
        raise InvalidURLError(base_url, str(e)) from e

    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        raise InvalidURLError(base_url, "URL must be absolute http(s) with a host")
    if not has_valid_port:
        raise InvalidURLError(base_url, "Port must be positive")

    if "?" in path or "#" in path:
        msg = "Path must not contain query or fragment"
        raise InvalidURLError(base_url + path, msg)

    full_path = parts.path
    if path:
        full_path = f"{parts.path.rstrip('/')}/{path.lstrip('/')}"

    query = "&".join(q for q in (parts.query, urlencode(list(query_params))) if q)
    url = urlunsplit((parts.scheme, parts.netloc, full_path, query, parts.fragment))

    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidURLError(url, str(e)) from e

    return url


class WireRequest(BaseModel):
    """Canonical request handed to a transport.

    Holds the final URL (query string included), the merged header set and
    the body bytes exactly as they will be sent.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: HttpMethod
    url: str = Field(min_length=1, description="Final URL including query string")
    headers: HeaderPairs = Field(default=(), description="Merged request headers")
    body: bytes | None = Field(default=None, description="Raw body bytes")

    @property
    def header_dict(self) -> dict[str, str]:
        """Get headers as a plain dictionary."""
        return dict(self.headers)

    def header(self, name: str) -> str | None:
        """Look up a header value case-insensitively.

        Args:
            name: Header name.

        Returns:
            Header value, or None if absent.
        """
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


@runtime_checkable
class RequestBuilder(Protocol):
    """Anything that can produce a wire request.

    ``RequestDescriptor`` is the stock implementation; custom request types
    implement this single method to be accepted by ``HttpFetcher.fetch``.
    """

    def to_wire_request(
        self,
        default_headers: Mapping[str, str] | None = None,
    ) -> WireRequest:
        """Build the canonical wire request.

        Args:
            default_headers: Headers applied underneath the request's own.

        Returns:
            The wire request.

        Raises:
            InvalidURLError: If the URL cannot be composed.
        """
        ...


class RequestDescriptor(BaseModel):
    """Immutable description of an HTTP request.

    Headers are case-insensitive with last write winning; query parameters
    keep their order and duplicates; body bytes are sent verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(description="Absolute base URL")
    path: str = Field(default="", description="Path joined onto the URL path")
    method: HttpMethod = HttpMethod.GET
    headers: HeaderPairs = Field(default=(), description="Request headers")
    query_params: QueryPairs = Field(default=(), description="Ordered query items")
    body: bytes | None = Field(default=None, description="Raw body bytes")

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        """Accept method names in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> HeaderPairs:
        """Collapse headers to one entry per case-insensitive name."""
        return merge_headers(v)

    @field_validator("query_params", mode="before")
    @classmethod
    def normalize_query_params(cls, v: Any) -> QueryPairs:
        """Accept a mapping or an ordered iterable of pairs."""
        if v is None:
            return ()
        items = v.items() if isinstance(v, Mapping) else v
        return tuple((str(name), str(value)) for name, value in items)

    @classmethod
    def json_body(
        cls,
        url: str,
        payload: Any,
        *,
        path: str = "",
        method: HttpMethod = HttpMethod.POST,
        headers: HeaderInput = None,
        query_params: Mapping[str, str] | Iterable[tuple[str, str]] = (),
    ) -> "RequestDescriptor":
        """Build a descriptor with a JSON-encoded body.

        Args:
            url: Absolute base URL.
            payload: JSON-serializable value or pydantic model.
            path: Optional path joined onto the URL path.
            method: HTTP method (default POST).
            headers: Extra headers; these override the JSON content type.
            query_params: Ordered query items.

        Returns:
            New request descriptor.
        """
        if isinstance(payload, BaseModel):
            body = payload.model_dump_json().encode("utf-8")
        else:
            body = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        return cls(
            url=url,
            path=path,
            method=method,
            headers=merge_headers({"Content-Type": JSON_CONTENT_TYPE}, headers),
            query_params=query_params,
            body=body,
        )

    def with_query_param(self, name: str, value: str) -> "RequestDescriptor":
        """Return a copy with one more query parameter appended."""
        return self.model_copy(
            update={"query_params": (*self.query_params, (name, value))}
        )

    def with_header(self, name: str, value: str) -> "RequestDescriptor":
        """Return a copy with a header set (replacing any same-named one)."""
        return self.model_copy(
            update={"headers": merge_headers(self.headers, {name: value})}
        )

    def to_wire_request(
        self,
        default_headers: Mapping[str, str] | None = None,
    ) -> WireRequest:
        """Build the canonical wire request.

        Args:
            default_headers: Headers applied underneath the descriptor's own.

        Returns:
            The wire request.

        Raises:
            InvalidURLError: If the URL cannot be composed.
        """
        return WireRequest(
            method=self.method,
            url=compose_url(self.url, self.path, self.query_params),
            headers=merge_headers(default_headers, self.headers),
            body=self.body,
        )
