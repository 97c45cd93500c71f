"""
In-process metrics behind the ``/metrics`` endpoint.

Per-endpoint counters and a bounded window of response times are fed by
the ``timed`` decorator. The enrichment pipeline reports placeholder
fallbacks, the LLM adapters report outbound calls per provider and the
rate limiter reports rejections. Process and host figures come from psutil.
"""

from asyncio import to_thread
from collections import Counter, deque
from dataclasses import dataclass, field
from logging import getLogger
from math import ceil
from os import getpid
from threading import Lock
from typing import Any

from psutil import Process, disk_usage, virtual_memory
from psutil import cpu_percent as get_cpu_percent

from app.configs import file_logger

logger = file_logger(getLogger(__name__))

_BYTES_PER_MB = 1024 * 1024
_TIMING_WINDOW = 1000
_CPU_SAMPLE_INTERVAL = 0.1


@dataclass(slots=True)
class EndpointStats:
    """Counters for one route label plus its most recent response times."""

    requests: int = 0
    errors: int = 0
    durations: deque[float] = field(default_factory=lambda: deque(maxlen=_TIMING_WINDOW))

    def percentile(self, pct: float) -> float:
        if not self.durations:
            return 0.0
        ordered = sorted(self.durations)
        return ordered[max(0, ceil(pct / 100 * len(ordered)) - 1)]

    def to_dict(self) -> dict[str, Any]:
        average = sum(self.durations) / len(self.durations) if self.durations else 0.0
        return {
            "requests": self.requests,
            "errors": self.errors,
            "error_rate": round(self.errors / self.requests, 4) if self.requests else 0.0,
            "avg_ms": round(average * 1000, 2),
            "p95_ms": round(self.percentile(95) * 1000, 2),
        }


class MetricsManager:
    """Thread-safe collector shared by the route decorator, the resolver and the adapters."""

    __slots__ = ("_endpoints", "_llm_requests", "_lock", "_placeholders", "_rate_limit_hits")

    def __init__(self) -> None:
        self._lock = Lock()
        self._endpoints: dict[str, EndpointStats] = {}
        self._llm_requests: Counter[str] = Counter()
        self._placeholders: Counter[str] = Counter()
        self._rate_limit_hits = 0

    def _stats(self, endpoint: str) -> EndpointStats:
        return self._endpoints.setdefault(endpoint, EndpointStats())

    def record_request(self, endpoint: str) -> None:
        with self._lock:
            self._stats(endpoint).requests += 1

    def record_error(self, endpoint: str) -> None:
        with self._lock:
            self._stats(endpoint).errors += 1

    def record_response_time(self, endpoint: str, duration: float) -> None:
        with self._lock:
            self._stats(endpoint).durations.append(duration)

    def record_llm_request(self, provider: str) -> None:
        """Count one outbound call to ``provider`` (openai, anthropic, gemini, openrouter)."""
        with self._lock:
            self._llm_requests[provider] += 1

    def record_placeholder(self, kind: str, count: int = 1) -> None:
        """Count foreign-key lookups of ``kind`` that degraded to a placeholder."""
        with self._lock:
            self._placeholders[kind] += count

    def record_rate_limit_hit(self) -> None:
        with self._lock:
            self._rate_limit_hits += 1

    def get_metrics(self) -> dict[str, Any]:
        """
        Snapshot every counter.

        Returns:
            ``{endpoints: {label: {requests, errors, error_rate, avg_ms, p95_ms}},
            llm_requests, placeholders, rate_limit_hits}``
        """
        with self._lock:
            return {
                "endpoints": {label: stats.to_dict() for label, stats in sorted(self._endpoints.items())},
                "llm_requests": dict(self._llm_requests),
                "placeholders": dict(self._placeholders),
                "rate_limit_hits": self._rate_limit_hits,
            }

    def reset_metrics(self) -> None:
        with self._lock:
            self._endpoints.clear()
            self._llm_requests.clear()
            self._placeholders.clear()
            self._rate_limit_hits = 0
        logger.info("Metrics reset")


metrics_manager = MetricsManager()


def _collect_system_metrics() -> dict[str, Any]:
    memory = virtual_memory()
    process = Process(getpid())
    return {
        "cpu_percent": get_cpu_percent(interval=_CPU_SAMPLE_INTERVAL),
        "memory": {
            "percent": memory.percent,
            "used_mb": round(memory.used / _BYTES_PER_MB, 2),
            "total_mb": round(memory.total / _BYTES_PER_MB, 2),
        },
        "process": {
            "rss_mb": round(process.memory_info().rss / _BYTES_PER_MB, 2),
            "threads": process.num_threads(),
        },
        "disk_percent": disk_usage("/").percent,
    }


async def get_system_metrics() -> dict[str, Any]:
    """Host and process figures; psutil blocks, so it runs in a worker thread."""
    try:
        return await to_thread(_collect_system_metrics)
    except OSError as e:
        logger.exception("Failed to collect system metrics")
        return {"error": f"Failed to collect system metrics: {e}"}
