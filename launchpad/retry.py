"""Exponential backoff retry for flaky provider calls."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

import structlog

from launchpad.metrics import retry_attempts_total, retry_exhausted_total

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()

T = TypeVar("T")


def backoff_delay(attempt: int, initial_delay: float, max_delay: float) -> float:
    """Delay to wait after the *attempt*-th failure (1-indexed)."""
    return min(initial_delay * (2 ** (attempt - 1)), max_delay)


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    on_retry: Callable[[int, Exception], None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await *operation* until it succeeds or *max_attempts* are used up.

    After the k-th failure the caller is suspended for
    ``min(initial_delay * 2**(k-1), max_delay)`` seconds. *on_retry* is
    called with the attempt number and error before each wait. Errors are
    not classified here: every exception is retried, and once attempts run
    out the last observed exception is re-raised unchanged.
    """
    if max_attempts <= 0:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    fn_label = getattr(operation, "__name__", "operation")
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if attempt == max_attempts:
                retry_exhausted_total.labels(fn_name=fn_label).inc()
                logger.error(
                    "Retries exhausted",
                    fn=fn_label,
                    attempts=max_attempts,
                    error=str(exc),
                )
                raise
            delay = backoff_delay(attempt, initial_delay, max_delay)
            retry_attempts_total.labels(fn_name=fn_label).inc()
            if on_retry is not None:
                on_retry(attempt, exc)
            logger.warning(
                "Retry attempt",
                attempt=attempt,
                max_attempts=max_attempts,
                fn=fn_label,
                delay_s=round(delay, 2),
                error=str(exc),
            )
            await sleep(delay)
    raise AssertionError("unreachable")
