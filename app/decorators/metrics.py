"""Timing decorator for route handlers."""

from collections.abc import Awaitable, Callable
from functools import wraps
from time import perf_counter

from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from app.errors.base import BaseAppError
from app.managers.metrics import MetricsManager, metrics_manager


def timed[**P, R](
    endpoint: str | None = None,
    metrics: MetricsManager | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Time an async route handler and record the outcome.

    Client errors (an application error below 500, e.g. a bad id or a
    missing session) are counted as requests but not as errors, so the
    error counters only track failures on our side or upstream.

    Args:
        endpoint: Metrics label (defaults to the function name).
        metrics: Optional metrics manager (defaults to the global instance).

    Example:
        @timed("/blogs/list")
        async def list_blogs(...) -> ORJSONResponse:
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        label = endpoint or func.__name__
        manager = metrics or metrics_manager

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            manager.record_request(label)
            start = perf_counter()
            try:
                return await func(*args, **kwargs)
            except BaseAppError as e:
                if e.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
                    manager.record_error(label)
                raise
            except Exception:
                manager.record_error(label)
                raise
            finally:
                manager.record_response_time(label, perf_counter() - start)

        return wrapper

    return decorator
