"""Prometheus metric definitions for the provisioning saga."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# --- Retry ---

retry_attempts_total = Counter(
    "launchpad_retry_attempts_total",
    "Total retry attempts after a failed operation",
    labelnames=["fn_name"],
)

retry_exhausted_total = Counter(
    "launchpad_retry_exhausted_total",
    "Total times retries were exhausted",
    labelnames=["fn_name"],
)

# --- Polling ---

poll_outcomes_total = Counter(
    "launchpad_poll_outcomes_total",
    "Terminal outcomes of bounded polling loops",
    labelnames=["outcome"],
)

# --- Saga ---

saga_steps_total = Counter(
    "launchpad_saga_steps_total",
    "Provisioning saga step results",
    labelnames=["step", "status"],
)

saga_duration_seconds = Histogram(
    "launchpad_saga_duration_seconds",
    "Wall time of one provisioning saga run",
    buckets=(1, 5, 30, 60, 120, 300, 600, 1200),
)

# --- Compensation ---

compensation_actions_total = Counter(
    "launchpad_compensation_actions_total",
    "Rollback actions by kind and outcome",
    labelnames=["action", "outcome"],
)
