"""Tests for rollback of partially provisioned domains."""

from __future__ import annotations

import pytest

from launchpad.compensation import Compensator
from launchpad.models.compensation import (
    CompensationAction,
    CompensationKind,
    CompensationOutcome,
    CompensationReport,
)
from launchpad.models.workflow import WorkflowState

from fakes import FakeDNS, FakeHosting


def _state(**overrides) -> WorkflowState:
    values = {
        "domain": "example-test.com",
        "domain_purchased": True,
        "zone_id": "Z1",
        "created_record_ids": [],
        "hosting_domain_added": False,
    }
    values.update(overrides)
    return WorkflowState(**values)


class TestCompensator:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1, 5])
    async def test_attempts_exactly_the_created_records(self, count) -> None:
        ids = [f"rec-{i}" for i in range(count)]
        dns = FakeDNS()

        report = await Compensator(dns, FakeHosting()).compensate(_state(created_record_ids=ids))

        assert set(report.attempted_record_ids) == set(ids)
        assert dns.delete_attempts == ids

    @pytest.mark.asyncio
    async def test_no_records_is_a_single_skip(self) -> None:
        report = await Compensator(FakeDNS(), FakeHosting()).compensate(_state())

        deletions = report.by_kind(CompensationKind.RECORD_DELETION)
        assert [a.outcome for a in deletions] == [CompensationOutcome.SKIPPED]

    @pytest.mark.asyncio
    async def test_records_without_zone_are_skipped(self) -> None:
        dns = FakeDNS()

        await Compensator(dns, FakeHosting()).compensate(_state(zone_id=None, created_record_ids=["x"]))

        assert dns.delete_attempts == []

    @pytest.mark.asyncio
    async def test_failed_deletion_does_not_stop_others(self) -> None:
        dns = FakeDNS(failing_deletes=frozenset({"a"}), raise_on_delete=frozenset({"b"}))

        report = await Compensator(dns, FakeHosting()).compensate(
            _state(created_record_ids=["a", "b", "c"])
        )

        assert dns.deleted == ["c"]
        assert [a.target for a in report.failures] == ["a", "b"]
        assert report.failures[1].message == "connection reset"

    @pytest.mark.asyncio
    async def test_hosting_domain_removed_first(self) -> None:
        hosting = FakeHosting()

        report = await Compensator(FakeDNS(), hosting).compensate(
            _state(hosting_domain_added=True, created_record_ids=["r"])
        )

        assert hosting.removed == ["example-test.com"]
        assert report.actions[0].kind is CompensationKind.HOSTING_REMOVAL
        assert report.actions[0].outcome is CompensationOutcome.SUCCEEDED

    @pytest.mark.asyncio
    async def test_hosting_removal_failure_reported(self) -> None:
        hosting = FakeHosting(remove_error="forbidden")

        report = await Compensator(FakeDNS(), hosting).compensate(_state(hosting_domain_added=True))

        assert report.failures[0].kind is CompensationKind.HOSTING_REMOVAL
        assert report.error_messages()[0] == (
            "Rollback hosting removal example-test.com failed: forbidden"
        )

    @pytest.mark.asyncio
    async def test_purchase_yields_manual_action(self) -> None:
        report = await Compensator(FakeDNS(), FakeHosting()).compensate(_state())

        assert len(report.manual_actions) == 1
        assert "cannot be refunded automatically" in report.manual_actions[0].message
        assert report.error_messages() == [report.manual_actions[0].summary()]

    @pytest.mark.asyncio
    async def test_nothing_purchased_nothing_reported(self) -> None:
        report = await Compensator(FakeDNS(), FakeHosting()).compensate(
            _state(domain_purchased=False, zone_id=None)
        )

        assert report.error_messages() == []
        assert all(a.outcome is CompensationOutcome.SKIPPED for a in report.actions)


class TestCompensationReport:
    def test_summary_without_message(self) -> None:
        action = CompensationAction(
            kind=CompensationKind.RECORD_DELETION,
            outcome=CompensationOutcome.SUCCEEDED,
            target="R1",
        )
        assert action.summary() == "Rollback record deletion R1 succeeded"

    def test_skipped_records_not_counted_as_attempted(self) -> None:
        report = CompensationReport(
            actions=[
                CompensationAction(
                    kind=CompensationKind.RECORD_DELETION, outcome=CompensationOutcome.SKIPPED
                ),
                CompensationAction(
                    kind=CompensationKind.RECORD_DELETION,
                    outcome=CompensationOutcome.FAILED,
                    target="R9",
                    message="gone",
                ),
            ]
        )
        assert report.attempted_record_ids == ["R9"]
