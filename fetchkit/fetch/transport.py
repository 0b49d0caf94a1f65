"""Transports that execute wire requests and return response bytes."""

from types import TracebackType
from typing import Protocol, runtime_checkable

import httpx
import structlog

from fetchkit.fetch.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)
from fetchkit.fetch.errors import HTTPStatusError, InvalidURLError, NetworkError
from fetchkit.fetch.redact import redact_url_credentials
from fetchkit.fetch.request import WireRequest


logger = structlog.get_logger()


@runtime_checkable
class Transport(Protocol):
    """Protocol for HTTP transports.

    Implementations must be safe to call from many concurrent fetches and
    keep no per-call state between sends.
    """

    async def send(self, request: WireRequest) -> bytes:
        """Send a request and return the response body.

        Args:
            request: Wire request to send.

        Returns:
            Response body bytes for a 2xx response.

        Raises:
            NetworkError: If no HTTP response could be obtained.
            HTTPStatusError: If the response status is outside 200-299.
        """
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Either wraps a caller-supplied client (which the caller closes) or
    creates and owns one.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        follow_redirects: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Existing client to use. A new one is created if None.
            timeout_seconds: Per-request timeout for an owned client.
            follow_redirects: Whether an owned client follows redirects.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=follow_redirects,
        )
        self._log = logger.bind(component="transport")

    async def send(self, request: WireRequest) -> bytes:
        """Send a request and return the response body.

        Args:
            request: Wire request to send.

        Returns:
            Response body bytes for a 2xx response.

        Raises:
            InvalidURLError: If httpx rejects the URL.
            NetworkError: If no HTTP response could be obtained.
            HTTPStatusError: If the response status is outside 200-299.
        """
        try:
            response = await self._client.request(
                request.method.value,
                request.url,
                headers=list(request.headers),
                content=request.body,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidURLError(request.url, str(e)) from e
        except httpx.TransportError as e:
            self._log.debug(
                "transport_error",
                url=redact_url_credentials(request.url),
                error_type=type(e).__name__,
            )
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        if not HTTP_STATUS_OK_MIN <= response.status_code < HTTP_STATUS_OK_MAX:
            raise HTTPStatusError(
                status_code=response.status_code,
                description=response.reason_phrase or "Unknown Status",
            )

        return response.content

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        """Enter the async context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the transport on exit."""
        await self.aclose()
