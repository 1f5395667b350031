"""Re-exports all Pydantic models."""

from launchpad.models.compensation import (
    CompensationAction,
    CompensationKind,
    CompensationOutcome,
    CompensationReport,
)
from launchpad.models.deployment import DeployedWorkflowResult, DeployResult
from launchpad.models.dns import DNSRecord, RecordType, VerificationRecord
from launchpad.models.workflow import (
    SagaStage,
    StepFlags,
    WorkflowDetails,
    WorkflowResult,
    WorkflowState,
)

__all__ = [
    "CompensationAction",
    "CompensationKind",
    "CompensationOutcome",
    "CompensationReport",
    "DNSRecord",
    "DeployResult",
    "DeployedWorkflowResult",
    "RecordType",
    "SagaStage",
    "StepFlags",
    "VerificationRecord",
    "WorkflowDetails",
    "WorkflowResult",
    "WorkflowState",
]
