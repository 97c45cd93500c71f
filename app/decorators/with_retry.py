"""Tenacity retry policy for idempotent upstream reads."""

from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import Any

from httpx import ConnectError, ReadTimeout, RemoteProtocolError, Response
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from app.configs import file_logger

logger = file_logger(getLogger(__name__))

# Transport failures; a connection that never produced a response
RETRIABLE_EXCEPTIONS = (ConnectError, ReadTimeout, RemoteProtocolError, ConnectionError, TimeoutError)
# Gateway answers from the proxy in front of a restarting upstream
RETRIABLE_STATUSES = frozenset({502, 503, 504})


def _log_before_sleep(max_retries: int) -> Callable[[RetryCallState], None]:
    def before_sleep_callback(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is None:
            cause = "unknown"
        elif outcome.failed:
            cause = repr(outcome.exception())
        else:
            cause = f"status {outcome.result().status_code}"
        logger.warning(
            "Retry %d/%d for %s in %.2fs after %s",
            retry_state.attempt_number,
            max_retries,
            retry_state.fn.__name__ if retry_state.fn else "unknown",
            retry_state.next_action.sleep if retry_state.next_action else 0,
            cause,
        )

    return before_sleep_callback


def _last_response(retry_state: RetryCallState) -> Any:
    # Out of attempts on a gateway status: hand the response back so the
    # caller maps it to an error like any other non-2xx answer.
    return retry_state.outcome.result() if retry_state.outcome else None


def with_retry[**P](
    max_retries: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    statuses: frozenset[int] = RETRIABLE_STATUSES,
) -> Callable[[Callable[P, Awaitable[Response]]], Callable[P, Awaitable[Response]]]:
    """
    Retry an async call that returns an ``httpx.Response``.

    Only for requests that are safe to repeat. Transport errors are
    retried and re-raised once attempts run out; a response whose status is
    in ``statuses`` is retried and, on the last attempt, returned as is.

    Args:
        max_retries: Maximum number of attempts.
        base_delay: Initial delay between retries in seconds.
        max_delay: Maximum delay between retries in seconds.
        statuses: Response codes worth another attempt.

    Returns:
        Decorator applying the policy.
    """
    return retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=base_delay, min=base_delay, max=max_delay),
        retry=(
            retry_if_exception_type(RETRIABLE_EXCEPTIONS)
            | retry_if_result(lambda response: response.status_code in statuses)
        ),
        before_sleep=_log_before_sleep(max_retries),
        retry_error_callback=_last_response,
        reraise=True,
    )
