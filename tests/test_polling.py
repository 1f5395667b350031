"""Tests for bounded polling."""

from __future__ import annotations

import pytest

from launchpad.polling import PollStatus, poll, poll_until

from fakes import SleepRecorder


def scripted(*statuses: PollStatus | Exception):
    """A check that returns (or raises) the given values in order."""
    remaining = list(statuses)
    calls = {"count": 0}

    async def check() -> PollStatus:
        calls["count"] += 1
        value = remaining.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    check.calls = calls  # type: ignore[attr-defined]
    return check


class TestPoll:
    @pytest.mark.asyncio
    async def test_returns_on_success(self) -> None:
        sleeper = SleepRecorder()
        check = scripted(PollStatus.PENDING, PollStatus.SUCCEEDED)

        status = await poll(check, 5, 2.0, sleep=sleeper)

        assert status is PollStatus.SUCCEEDED
        assert check.calls["count"] == 2
        assert sleeper.delays == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_waits_before_first_check(self) -> None:
        sleeper = SleepRecorder()

        await poll(scripted(PollStatus.SUCCEEDED), 3, 7.5, sleep=sleeper)

        assert sleeper.delays == [7.5]

    @pytest.mark.asyncio
    async def test_failed_is_terminal(self) -> None:
        check = scripted(PollStatus.FAILED, PollStatus.SUCCEEDED)

        status = await poll(check, 5, 0.0, sleep=SleepRecorder())

        assert status is PollStatus.FAILED
        assert check.calls["count"] == 1

    @pytest.mark.asyncio
    async def test_times_out(self) -> None:
        sleeper = SleepRecorder()
        check = scripted(*[PollStatus.PENDING] * 3)

        status = await poll(check, 3, 1.0, sleep=sleeper)

        assert status is PollStatus.TIMED_OUT
        assert check.calls["count"] == 3
        assert len(sleeper.delays) == 3

    @pytest.mark.asyncio
    async def test_check_exception_counts_as_pending(self) -> None:
        check = scripted(ConnectionError("blip"), PollStatus.SUCCEEDED)

        status = await poll(check, 3, 0.0, sleep=SleepRecorder())

        assert status is PollStatus.SUCCEEDED
        assert check.calls["count"] == 2

    @pytest.mark.asyncio
    async def test_zero_attempts_rejected(self) -> None:
        check = scripted()

        with pytest.raises(ValueError):
            await poll(check, 0, 1.0, sleep=SleepRecorder())
        assert check.calls["count"] == 0


class TestPollUntil:
    @pytest.mark.asyncio
    async def test_true_on_success(self) -> None:
        assert await poll_until(scripted(PollStatus.SUCCEEDED), 1, 0.0, sleep=SleepRecorder())

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "statuses",
        [(PollStatus.FAILED,), (PollStatus.PENDING, PollStatus.PENDING)],
    )
    async def test_false_otherwise(self, statuses) -> None:
        assert not await poll_until(scripted(*statuses), 2, 0.0, sleep=SleepRecorder())
