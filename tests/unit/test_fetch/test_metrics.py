"""Unit tests for fetch metrics."""

from collections.abc import Generator

import pytest

from fetchkit.fetch.errors import FetchErrorClass
from fetchkit.fetch.metrics import FetchMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset the metrics singleton around each test."""
    FetchMetrics.reset()
    yield
    FetchMetrics.reset()


class TestFetchMetrics:
    """Tests for FetchMetrics singleton."""

    def test_singleton(self) -> None:
        """Test that get_instance returns one shared instance."""
        assert FetchMetrics.get_instance() is FetchMetrics.get_instance()

    def test_reset_creates_fresh_instance(self) -> None:
        """Test that reset discards recorded values."""
        FetchMetrics.get_instance().record_retry()

        FetchMetrics.reset()

        assert FetchMetrics.get_instance().retry_total == 0

    def test_counters(self) -> None:
        """Test that each recorder increments its counter."""
        metrics = FetchMetrics.get_instance()

        metrics.record_fetch(10.0)
        metrics.record_fetch(30.0)
        metrics.record_transport_call(128)
        metrics.record_transport_call(64)
        metrics.record_cache_hit()
        metrics.record_cache_miss()
        metrics.record_cache_miss()
        metrics.record_retry()
        metrics.record_failure(FetchErrorClass.NETWORK)
        metrics.record_failure(FetchErrorClass.NETWORK)
        metrics.record_failure(FetchErrorClass.DECODING)

        assert metrics.to_dict() == {
            "fetch_total": 2,
            "transport_calls_total": 2,
            "cache_hits_total": 1,
            "cache_misses_total": 2,
            "retry_total": 1,
            "failures_total": {"NETWORK": 2, "DECODING": 1},
            "bytes_total": 192,
            "duration_ms_total": 40.0,
        }
        assert metrics.avg_duration_ms == 20.0

    def test_average_without_fetches(self) -> None:
        """Test that the average is zero before any fetch."""
        assert FetchMetrics.get_instance().avg_duration_ms == 0.0
