"""Tests for workflow state and result models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from launchpad.models.deployment import DeployedWorkflowResult, DeployResult
from launchpad.models.dns import DNSRecord, RecordType
from launchpad.models.workflow import STAGE_ORDER, SagaStage, StepFlags, WorkflowResult, WorkflowState

ALL_TRUE = {name: True for name in StepFlags.model_fields}


class TestStepFlags:
    def test_defaults_all_false(self) -> None:
        assert not any(StepFlags().model_dump().values())

    def test_all_passed(self) -> None:
        assert StepFlags(**ALL_TRUE).all_passed
        assert not StepFlags(**{**ALL_TRUE, "hosting_verified": False}).all_passed


class TestWorkflowResult:
    def test_success_requires_every_step(self) -> None:
        with pytest.raises(ValidationError, match="conjunction"):
            WorkflowResult(domain="a.com", success=True, steps=StepFlags(), errors=["x"])

    def test_failed_step_requires_error(self) -> None:
        with pytest.raises(ValidationError, match="at least one error"):
            WorkflowResult(domain="a.com", success=False)

    def test_successful_result(self) -> None:
        result = WorkflowResult(
            domain="a.com",
            success=True,
            steps=StepFlags(**ALL_TRUE),
            final_stage=SagaStage.VERIFIED,
        )
        assert result.errors == []

    def test_frozen(self) -> None:
        result = WorkflowResult(domain="a.com", success=False, errors=["nope"])
        with pytest.raises(ValidationError):
            result.success = True


class TestWorkflowState:
    def test_record_lists_not_shared(self) -> None:
        first, second = WorkflowState(domain="a.com"), WorkflowState(domain="b.com")
        first.created_record_ids.append("R1")
        assert second.created_record_ids == []


class TestStageOrder:
    def test_linear_and_excludes_failed(self) -> None:
        assert STAGE_ORDER[0] is SagaStage.INIT
        assert STAGE_ORDER[-1] is SagaStage.VERIFIED
        assert SagaStage.FAILED not in STAGE_ORDER


class TestDNSRecord:
    def test_describe(self) -> None:
        record = DNSRecord(type=RecordType.CNAME, name="www", content="cname.vercel-dns.com")
        assert record.describe() == "CNAME www"

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(ValidationError):
            DNSRecord(type="SRV", name="x", content="y")


class TestDeployedWorkflowResult:
    def test_success_needs_both_parts(self) -> None:
        deploy = DeployResult(success=True, project_id="prj_1")
        assert not DeployedWorkflowResult(deploy=deploy).success

        workflow = WorkflowResult(domain="a.com", success=True, steps=StepFlags(**ALL_TRUE))
        assert DeployedWorkflowResult(deploy=deploy, workflow=workflow).success
