"""Tests for the metrics collector and the timed route decorator."""

import pytest

from app.decorators import timed
from app.errors import UpstreamError, ValidationError
from app.managers.metrics import EndpointStats, MetricsManager


@pytest.fixture
def metrics() -> MetricsManager:
    return MetricsManager()


class TestEndpointStats:
    def test_empty(self) -> None:
        assert EndpointStats().to_dict() == {
            "requests": 0,
            "errors": 0,
            "error_rate": 0.0,
            "avg_ms": 0.0,
            "p95_ms": 0.0,
        }

    def test_rates_and_percentile(self) -> None:
        stats = EndpointStats(requests=4, errors=1)
        stats.durations.extend([0.010, 0.020, 0.030, 0.100])

        summary = stats.to_dict()

        assert summary["error_rate"] == 0.25
        assert summary["avg_ms"] == 40.0
        assert summary["p95_ms"] == 100.0


class TestMetricsManager:
    def test_counters(self, metrics: MetricsManager) -> None:
        metrics.record_llm_request("openai")
        metrics.record_llm_request("openai")
        metrics.record_placeholder("user", 3)
        metrics.record_rate_limit_hit()

        snapshot = metrics.get_metrics()

        assert snapshot["llm_requests"] == {"openai": 2}
        assert snapshot["placeholders"] == {"user": 3}
        assert snapshot["rate_limit_hits"] == 1

    def test_reset(self, metrics: MetricsManager) -> None:
        metrics.record_request("/logs")
        metrics.reset_metrics()

        assert metrics.get_metrics()["endpoints"] == {}


class TestTimed:
    @pytest.mark.asyncio
    async def test_success(self, metrics: MetricsManager) -> None:
        @timed("/blogs/list", metrics=metrics)
        async def handler() -> str:
            return "ok"

        assert await handler() == "ok"
        endpoint = metrics.get_metrics()["endpoints"]["/blogs/list"]
        assert endpoint["requests"] == 1
        assert endpoint["errors"] == 0

    @pytest.mark.asyncio
    async def test_client_errors_are_not_failures(self, metrics: MetricsManager) -> None:
        @timed("/blogs/delete", metrics=metrics)
        async def handler() -> None:
            raise ValidationError("Invalid blog ID format")

        with pytest.raises(ValidationError):
            await handler()
        assert metrics.get_metrics()["endpoints"]["/blogs/delete"]["errors"] == 0

    @pytest.mark.asyncio
    async def test_upstream_errors_are_failures(self, metrics: MetricsManager) -> None:
        @timed(metrics=metrics)
        async def read_logs() -> None:
            raise UpstreamError("monitoring store down")

        with pytest.raises(UpstreamError):
            await read_logs()
        endpoint = metrics.get_metrics()["endpoints"]["read_logs"]
        assert endpoint["errors"] == 1
        assert endpoint["error_rate"] == 1.0
