"""Linear-backoff retry helper built on tenacity."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

import structlog
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

logger = structlog.get_logger()

T = TypeVar("T")


def linear_wait(base_delay_seconds: float) -> wait_incrementing:
    """Wait base * attempt before the next try (base, 2*base, 3*base, ...)."""
    return wait_incrementing(start=base_delay_seconds, increment=base_delay_seconds)


def with_retry(
    operation: Callable[[], T],
    *,
    attempts: int = 3,
    base_delay_seconds: float = 1.2,
    sleep: Callable[[float], None] = time.sleep,
    label: str | None = None,
) -> T:
    """Call `operation` until it succeeds or `attempts` calls have failed.

    Every exception is retried the same way. After the last attempt the final
    exception is re-raised unchanged.
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Attempt failed, retrying",
            operation=label,
            attempt=retry_state.attempt_number,
            attempts=attempts,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exc),
        )

    retrying = Retrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=linear_wait(base_delay_seconds),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return retrying(operation)
