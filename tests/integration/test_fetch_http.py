"""Integration tests for HttpFetcher against a local HTTP server."""

import json
import threading
from collections.abc import Generator
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

import pytest
from pydantic import BaseModel

from fetchkit.fetch.cache import CachePolicy
from fetchkit.fetch.client import HttpFetcher
from fetchkit.fetch.config import FetchConfig
from fetchkit.fetch.errors import HTTPStatusError, NetworkError
from fetchkit.fetch.metrics import FetchMetrics
from fetchkit.fetch.request import HttpMethod, RequestDescriptor
from fetchkit.fetch.retry import Jitter, RetryPolicy


FAST_RETRY = RetryPolicy(
    max_attempts=3, initial_delay=0.01, max_delay=0.02, jitter=Jitter.none()
)


class User(BaseModel):
    name: str
    age: int


class ApiHandler(BaseHTTPRequestHandler):
    """HTTP handler with one route per scenario."""

    # Class-level state shared across requests
    request_counts: dict[str, int] = {}
    flaky_failures: int = 2

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        """Suppress log messages during tests."""

    def _count(self) -> int:
        path = self.path.split("?")[0]
        self.request_counts[path] = self.request_counts.get(path, 0) + 1
        return self.request_counts[path]

    def _send_json(self, status: int, payload: object) -> None:
        body = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:  # noqa: N802
        """Handle GET requests."""
        count = self._count()
        path = self.path.split("?")[0]

        if path == "/user":
            self._send_json(200, {"name": "John Doe", "age": 30})
        elif path == "/flaky":
            if count <= self.flaky_failures:
                self._send_json(503, {"error": "unavailable"})
            else:
                self._send_json(200, {"name": "Flaky", "age": count})
        elif path == "/malformed":
            self._send_json(200, {"invalid": "data"})
        else:
            self._send_json(404, {"error": "not found"})

    def do_POST(self) -> None:  # noqa: N802
        """Echo the request body and selected headers."""
        self._count()
        length = int(self.headers.get("Content-Length", "0"))
        body = json.loads(self.rfile.read(length) or b"null")
        self._send_json(
            201,
            {
                "body": body,
                "content_type": self.headers.get("Content-Type"),
                "user_agent": self.headers.get("User-Agent"),
                "query": self.path.partition("?")[2],
            },
        )


@pytest.fixture
def server() -> Generator[HTTPServer]:
    """Start a local HTTP server."""
    ApiHandler.request_counts = {}
    ApiHandler.flaky_failures = 2
    FetchMetrics.reset()
    server = HTTPServer(("127.0.0.1", 0), ApiHandler)
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def base_url(server: HTTPServer) -> str:
    """Get the base URL of the local server."""
    host, port = server.server_address[0], server.server_address[1]
    if isinstance(host, bytes):
        host = host.decode("utf-8")
    return f"http://{host}:{port}"


class TestFetchHttp:
    """End-to-end fetches over real sockets."""

    @pytest.mark.asyncio
    async def test_fetch_and_decode(self, base_url: str) -> None:
        """Test a plain GET decoded into a model."""
        async with HttpFetcher() as fetcher:
            result = await fetcher.fetch(
                RequestDescriptor(url=base_url, path="/user"), User
            )

        assert result.unwrap() == User(name="John Doe", age=30)
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_retries_5xx_until_success(self, base_url: str) -> None:
        """Test that two 503s followed by 200 succeed on the third attempt."""
        async with HttpFetcher() as fetcher:
            result = await fetcher.fetch(
                RequestDescriptor(url=base_url, path="/flaky"), User, FAST_RETRY
            )

        assert result.is_success is True
        assert result.attempts == 3
        assert ApiHandler.request_counts["/flaky"] == 3

    @pytest.mark.asyncio
    async def test_retry_exhaustion_reports_last_status(self, base_url: str) -> None:
        """Test that persistent 503s surface as HTTPStatusError."""
        ApiHandler.flaky_failures = 10

        async with HttpFetcher() as fetcher:
            result = await fetcher.fetch(
                RequestDescriptor(url=base_url, path="/flaky"), User, FAST_RETRY
            )

        assert isinstance(result.error, HTTPStatusError)
        assert result.error.status_code == 503
        assert result.error.description == "Service Unavailable"
        assert ApiHandler.request_counts["/flaky"] == 3

    @pytest.mark.asyncio
    async def test_not_found_not_retried(self, base_url: str) -> None:
        """Test that a 404 is attempted once."""
        async with HttpFetcher() as fetcher:
            result = await fetcher.fetch(
                RequestDescriptor(url=base_url, path="/missing"), User, FAST_RETRY
            )

        assert isinstance(result.error, HTTPStatusError)
        assert result.error.status_code == 404
        assert ApiHandler.request_counts["/missing"] == 1

    @pytest.mark.asyncio
    async def test_cache_serves_repeat_requests(self, base_url: str) -> None:
        """Test that a cached response avoids a second round trip."""
        config = FetchConfig(cache_policy=CachePolicy.memory(60))
        request = RequestDescriptor(url=base_url, path="/user")

        async with HttpFetcher(config=config) as fetcher:
            first = await fetcher.fetch(request, User)
            second = await fetcher.fetch(request, User)
            fetcher.clear_cache()
            third = await fetcher.fetch(request, User)

        assert (first.cache_hit, second.cache_hit, third.cache_hit) == (
            False,
            True,
            False,
        )
        assert ApiHandler.request_counts["/user"] == 2

    @pytest.mark.asyncio
    async def test_decoding_failure(self, base_url: str) -> None:
        """Test that a mismatched body is a decoding error."""
        async with HttpFetcher() as fetcher:
            result = await fetcher.fetch(
                RequestDescriptor(url=base_url, path="/malformed"), User, FAST_RETRY
            )

        assert result.error is not None
        assert result.error.error_class.value == "DECODING"
        assert ApiHandler.request_counts["/malformed"] == 1

    @pytest.mark.asyncio
    async def test_post_json_body(self, base_url: str) -> None:
        """Test that method, body, query and default headers reach the server."""
        request = RequestDescriptor.json_body(
            base_url,
            User(name="Ada", age=36),
            path="/users",
            query_params={"notify": "true"},
        )

        async with HttpFetcher(config=FetchConfig(user_agent="it/1.0")) as fetcher:
            result = await fetcher.fetch(request, dict[str, Any])

        echo = result.unwrap()
        assert request.method == HttpMethod.POST
        assert echo["body"] == {"name": "Ada", "age": 36}
        assert echo["content_type"] == "application/json"
        assert echo["user_agent"] == "it/1.0"
        assert echo["query"] == "notify=true"

    @pytest.mark.asyncio
    async def test_connection_refused_is_network_error(self) -> None:
        """Test that an unreachable host is a network error."""
        probe = HTTPServer(("127.0.0.1", 0), ApiHandler)
        port = probe.server_address[1]
        probe.server_close()

        async with HttpFetcher() as fetcher:
            result = await fetcher.fetch(
                RequestDescriptor(url=f"http://127.0.0.1:{port}", path="/user"), User
            )

        assert isinstance(result.error, NetworkError)
