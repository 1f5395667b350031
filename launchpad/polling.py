"""Bounded polling for asynchronous provider-side completion."""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from launchpad.metrics import poll_outcomes_total

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()


class PollStatus(StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


async def poll(
    check: Callable[[], Awaitable[PollStatus]],
    max_attempts: int,
    interval: float,
    *,
    label: str = "poll",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollStatus:
    """Run *check* up to *max_attempts* times, *interval* seconds apart.

    Each iteration waits first and then checks. SUCCEEDED and FAILED end
    the loop immediately; PENDING moves on to the next iteration. An
    exception raised by *check* counts as PENDING for that iteration only.
    Returns TIMED_OUT when no attempt reaches a terminal status.
    """
    if max_attempts <= 0:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        await sleep(interval)
        try:
            status = await check()
        except Exception as exc:
            logger.warning(
                "Poll check failed, treating as pending",
                poll=label,
                attempt=attempt,
                error=str(exc),
            )
            status = PollStatus.PENDING

        if status in (PollStatus.SUCCEEDED, PollStatus.FAILED):
            poll_outcomes_total.labels(outcome=status.value).inc()
            logger.info("Poll finished", poll=label, attempt=attempt, status=status.value)
            return status

        logger.info("Still pending", poll=label, attempt=attempt, max_attempts=max_attempts)

    poll_outcomes_total.labels(outcome=PollStatus.TIMED_OUT.value).inc()
    logger.warning("Poll timed out", poll=label, attempts=max_attempts)
    return PollStatus.TIMED_OUT


async def poll_until(
    check: Callable[[], Awaitable[PollStatus]],
    max_attempts: int,
    interval: float,
    *,
    label: str = "poll",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """Boolean form of :func:`poll`: True only for SUCCEEDED."""
    status = await poll(check, max_attempts, interval, label=label, sleep=sleep)
    return status is PollStatus.SUCCEEDED
