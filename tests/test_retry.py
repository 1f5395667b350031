"""Tests for exponential backoff retry."""

from __future__ import annotations

import pytest

from launchpad.retry import backoff_delay, retry

from fakes import SleepRecorder


class Flaky:
    """Fails *failures* times with distinct errors, then returns "ok"."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"attempt {self.calls}")
        return "ok"


class TestBackoffDelay:
    def test_doubles_from_initial(self) -> None:
        assert [backoff_delay(k, 1.0, 30.0) for k in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max(self) -> None:
        assert backoff_delay(10, 1.0, 30.0) == 30.0


class TestRetry:
    @pytest.mark.asyncio
    async def test_succeeds_first_try(self) -> None:
        sleeper = SleepRecorder()
        op = Flaky(0)

        assert await retry(op, sleep=sleeper) == "ok"
        assert op.calls == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_succeeds_after_failures(self) -> None:
        sleeper = SleepRecorder()
        op = Flaky(3)

        result = await retry(op, max_attempts=4, initial_delay=1.0, max_delay=30.0, sleep=sleeper)

        assert result == "ok"
        assert op.calls == 4
        assert sleeper.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhausted_reraises_last_error(self) -> None:
        sleeper = SleepRecorder()
        op = Flaky(100)

        with pytest.raises(ConnectionError, match="attempt 3"):
            await retry(op, max_attempts=3, sleep=sleeper)
        assert op.calls == 3
        # No wait after the final attempt
        assert sleeper.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delays_capped(self) -> None:
        sleeper = SleepRecorder()

        with pytest.raises(ConnectionError):
            await retry(Flaky(100), max_attempts=7, initial_delay=1.0, max_delay=30.0, sleep=sleeper)
        assert sleeper.delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0]

    @pytest.mark.asyncio
    async def test_on_retry_sees_attempt_and_error(self) -> None:
        seen: list[tuple[int, str]] = []

        await retry(
            Flaky(2),
            max_attempts=3,
            on_retry=lambda attempt, exc: seen.append((attempt, str(exc))),
            sleep=SleepRecorder(),
        )
        assert seen == [(1, "attempt 1"), (2, "attempt 2")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempts", [0, -1])
    async def test_non_positive_attempts_rejected(self, attempts) -> None:
        op = Flaky(0)

        with pytest.raises(ValueError, match="max_attempts"):
            await retry(op, max_attempts=attempts, sleep=SleepRecorder())
        assert op.calls == 0
