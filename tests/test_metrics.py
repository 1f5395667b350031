"""Tests for Prometheus metric definitions and instrumentation."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from launchpad.metrics import (
    compensation_actions_total,
    poll_outcomes_total,
    retry_attempts_total,
    retry_exhausted_total,
    saga_duration_seconds,
    saga_steps_total,
)
from launchpad.retry import retry

from fakes import FakeDNS, FakeHosting, FakeRegistrar, SleepRecorder, make_saga


class TestMetricDefinitions:
    """Counter._name drops the _total suffix; it is re-added on export."""

    def test_retry_counters(self) -> None:
        assert retry_attempts_total._name == "launchpad_retry_attempts"
        assert retry_exhausted_total._name == "launchpad_retry_exhausted"
        assert "fn_name" in retry_attempts_total._labelnames

    def test_poll_counter(self) -> None:
        assert poll_outcomes_total._name == "launchpad_poll_outcomes"
        assert poll_outcomes_total._labelnames == ("outcome",)

    def test_saga_metrics(self) -> None:
        assert saga_steps_total._labelnames == ("step", "status")
        assert saga_duration_seconds._name == "launchpad_saga_duration_seconds"

    def test_compensation_counter(self) -> None:
        assert compensation_actions_total._labelnames == ("action", "outcome")


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestInstrumentation:
    @pytest.mark.asyncio
    async def test_retry_exhaustion_counted(self) -> None:
        async def always_fails():
            raise ConnectionError("down")

        labels = {"fn_name": "always_fails"}
        attempts_before = _sample("launchpad_retry_attempts_total", labels)
        exhausted_before = _sample("launchpad_retry_exhausted_total", labels)

        with pytest.raises(ConnectionError):
            await retry(always_fails, max_attempts=3, sleep=SleepRecorder())

        assert _sample("launchpad_retry_attempts_total", labels) == attempts_before + 2
        assert _sample("launchpad_retry_exhausted_total", labels) == exhausted_before + 1

    @pytest.mark.asyncio
    async def test_saga_counts_steps_and_rollbacks(self, settings) -> None:
        step = {"step": "zone_created", "status": "failure"}
        manual = {"action": "purchase", "outcome": "manual_action_required"}
        steps_before = _sample("launchpad_saga_steps_total", step)
        manual_before = _sample("launchpad_compensation_actions_total", manual)

        saga = make_saga(settings, FakeRegistrar(), FakeDNS(zone_error="x"), FakeHosting(), SleepRecorder())
        await saga.run("metrics-test.com")

        assert _sample("launchpad_saga_steps_total", step) == steps_before + 1
        assert _sample("launchpad_compensation_actions_total", manual) == manual_before + 1
