"""Async HTTP fetcher with caching, retries, and typed decoding."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import TypeVar

import structlog

from fetchkit.fetch.cache import Clock, ResponseCache
from fetchkit.fetch.config import FetchConfig
from fetchkit.fetch.decoding import ByteDecoder, JsonDecoder
from fetchkit.fetch.errors import (
    DecodingError,
    FetchError,
    HTTPStatusError,
    InvalidURLError,
    UnknownFetchError,
)
from fetchkit.fetch.fingerprint import compute_fingerprint
from fetchkit.fetch.metrics import FetchMetrics
from fetchkit.fetch.models import FetchResult
from fetchkit.fetch.redact import redact_headers, redact_url_credentials
from fetchkit.fetch.request import RequestBuilder, WireRequest
from fetchkit.fetch.retry import NO_RETRY, RetryPolicy
from fetchkit.fetch.state_machine import FetchStateMachine
from fetchkit.fetch.transport import HttpxTransport, Transport


logger = structlog.get_logger()

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class HttpFetcher:
    """HTTP client with caching, retries, and typed decoding.

    Provides ``fetch`` operations with:
    - Request fingerprinting and an optional in-memory TTL cache
    - Retry policy with exponential backoff and jitter
    - Pluggable transport and decoder
    - Header and URL redaction for logging

    A single instance is safe to share between concurrent tasks. Apart from
    the response cache it holds no mutable state; everything a call needs
    lives on that call's stack.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: Transport | None = None,
        decoder: ByteDecoder | None = None,
        *,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize the HTTP fetcher.

        Args:
            config: Fetch configuration. Defaults to ``FetchConfig()``.
            transport: Transport for sending requests. Defaults to an
                ``HttpxTransport`` owned (and closed) by this fetcher.
            decoder: Body decoder. Defaults to ``JsonDecoder()``.
            clock: Time source for cache expiry.
            sleep: Coroutine used for backoff waits.
        """
        self._config = config or FetchConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(
            timeout_seconds=self._config.timeout_seconds,
            follow_redirects=self._config.follow_redirects,
        )
        self._decoder: ByteDecoder = decoder or JsonDecoder()
        self._cache_policy = self._config.cache_policy
        self._cache = (
            ResponseCache(clock or time.monotonic)
            if self._cache_policy.enabled
            else None
        )
        self._sleep: Sleep = sleep or asyncio.sleep
        self._default_headers = self._config.request_headers()
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def config(self) -> FetchConfig:
        """Get the fetch configuration."""
        return self._config

    async def fetch(
        self,
        request: RequestBuilder,
        target: type[T],
        retry_policy: RetryPolicy | None = None,
    ) -> FetchResult[T]:
        """Fetch a request and decode the response into ``target``.

        Args:
            request: Request descriptor or any ``RequestBuilder``.
            target: Type to decode the response body into.
            retry_policy: Retry policy. Defaults to a single attempt.

        Returns:
            FetchResult with the decoded value or the final error.
        """
        start_time_ns = time.perf_counter_ns()
        policy = retry_policy or NO_RETRY

        try:
            wire = request.to_wire_request(self._default_headers)
        except InvalidURLError as e:
            self._metrics.record_failure(e.error_class)
            self._log.warning(
                "fetch_invalid_url",
                url=redact_url_credentials(e.url),
                reason=e.reason,
            )
            return FetchResult.failure(e, attempts=0)

        fingerprint = compute_fingerprint(wire)
        log = self._log.bind(
            method=wire.method.value,
            url=redact_url_credentials(wire.url),
            fingerprint=fingerprint[:16],
        )

        result = await self._fetch_wire(wire, fingerprint, target, policy, log)

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_fetch(duration_ms)
        if result.error is not None:
            self._metrics.record_failure(result.error.error_class)

        log.info(
            "fetch_complete",
            success=result.is_success,
            cache_hit=result.cache_hit,
            attempts=result.attempts,
            duration_ms=round(duration_ms, 2),
            error_class=result.error.error_class.value if result.error else None,
        )
        return result

    async def _fetch_wire(
        self,
        wire: WireRequest,
        fingerprint: str,
        target: type[T],
        policy: RetryPolicy,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResult[T]:
        """Run the cache, attempt and decode stages for one call.

        Args:
            wire: Wire request to send.
            fingerprint: Request fingerprint.
            target: Type to decode into.
            policy: Retry policy.
            log: Bound logger.

        Returns:
            FetchResult for the call.
        """
        machine = FetchStateMachine(fingerprint)

        payload = self._lookup_cache(fingerprint)
        cache_hit = payload is not None

        if payload is None:
            machine.to_attempting()
            try:
                payload = await self._send_with_retry(wire, policy, machine, log)
            except FetchError as error:
                machine.to_failed()
                return FetchResult.failure(error, attempts=machine.attempt)
            self._store_cache(fingerprint, payload)
        else:
            log.debug("fetch_cache_hit", bytes=len(payload))

        machine.to_decoding()
        try:
            value = self._decoder.decode(payload, target)
        except Exception as e:  # noqa: BLE001
            decoding_error = DecodingError(e)
            decoding_error.__cause__ = e
            machine.to_failed()
            log.warning(
                "decode_failed",
                target=getattr(target, "__name__", repr(target)),
                underlying_type=type(e).__name__,
                bytes=len(payload),
            )
            return FetchResult.failure(
                decoding_error, attempts=machine.attempt, cache_hit=cache_hit
            )

        machine.to_succeeded()
        return FetchResult.success(value, cache_hit=cache_hit, attempts=machine.attempt)

    async def _send_with_retry(
        self,
        wire: WireRequest,
        policy: RetryPolicy,
        machine: FetchStateMachine,
        log: structlog.stdlib.BoundLogger,
    ) -> bytes:
        """Send a request, retrying transient failures.

        Args:
            wire: Wire request to send.
            policy: Retry policy.
            machine: State machine for this call, already ATTEMPTING.
            log: Bound logger.

        Returns:
            Response payload from the first successful attempt.

        Raises:
            FetchError: The error of the last attempt, unchanged.
        """
        while True:
            log.debug(
                "attempt_started",
                attempt=machine.attempt,
                headers=redact_headers(wire.headers),
            )
            try:
                payload = await self._transport.send(wire)
            except FetchError as e:
                error = e
            except Exception as e:  # noqa: BLE001
                error = UnknownFetchError(f"{type(e).__name__}: {e}")
                error.__cause__ = e
            else:
                self._metrics.record_transport_call(len(payload))
                return payload

            log.warning(
                "attempt_failed",
                attempt=machine.attempt,
                error_class=error.error_class.value,
                status_code=(
                    error.status_code if isinstance(error, HTTPStatusError) else None
                ),
            )

            if machine.attempt >= policy.max_attempts or not policy.should_retry(
                error
            ):
                raise error

            delay = policy.delay(machine.attempt)
            machine.to_retrying()
            self._metrics.record_retry()
            log.info(
                "retry_scheduled",
                attempt=machine.attempt,
                delay_seconds=round(delay, 3),
                max_attempts=policy.max_attempts,
            )
            await self._sleep(delay)
            machine.to_attempting()

    def _lookup_cache(self, fingerprint: str) -> bytes | None:
        """Look up a payload, counting hits and misses when caching is on."""
        if self._cache is None:
            return None
        payload = self._cache.lookup(fingerprint)
        if payload is None:
            self._metrics.record_cache_miss()
        else:
            self._metrics.record_cache_hit()
        return payload

    def _store_cache(self, fingerprint: str, payload: bytes) -> None:
        """Store a payload when caching is on."""
        if self._cache is None or self._cache_policy.ttl_seconds is None:
            return
        self._cache.store(fingerprint, payload, self._cache_policy.ttl_seconds)

    def clear_cache(self) -> None:
        """Drop every cached response. No-op when caching is disabled."""
        if self._cache is None:
            return
        self._cache.clear()
        self._log.info("cache_cleared")

    async def aclose(self) -> None:
        """Close the transport if this fetcher created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    async def __aenter__(self) -> "HttpFetcher":
        """Enter the async context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the fetcher on exit."""
        await self.aclose()
