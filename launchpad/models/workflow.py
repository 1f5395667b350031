"""State and result types for one provisioning saga run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from launchpad.models.compensation import CompensationReport


class SagaStage(StrEnum):
    """Linear progress of a run. FAILED can be entered from any stage."""

    INIT = "init"
    AVAILABILITY_CHECKED = "availability_checked"
    PURCHASED = "purchased"
    ZONE_CREATED = "zone_created"
    NAMESERVERS_SET = "nameservers_set"
    RECORDS_CREATED = "records_created"
    HOSTING_ADDED = "hosting_added"
    VERIFIED = "verified"
    FAILED = "failed"


STAGE_ORDER: tuple[SagaStage, ...] = (
    SagaStage.INIT,
    SagaStage.AVAILABILITY_CHECKED,
    SagaStage.PURCHASED,
    SagaStage.ZONE_CREATED,
    SagaStage.NAMESERVERS_SET,
    SagaStage.RECORDS_CREATED,
    SagaStage.HOSTING_ADDED,
    SagaStage.VERIFIED,
)


@dataclass
class WorkflowState:
    """Mutable, saga-local record of what exists in the outside world.

    Each compensation field is written right after the call that created
    the resource returns successfully, and never earlier.
    """

    domain: str
    years: int = 1
    whois_guard: bool = True

    domain_purchased: bool = False
    zone_id: str | None = None
    created_record_ids: list[str] = field(default_factory=list)
    hosting_domain_added: bool = False


class StepFlags(BaseModel):
    """Per-step outcome, in execution order."""

    model_config = ConfigDict(frozen=True)

    availability_check: bool = False
    domain_purchase: bool = False
    zone_created: bool = False
    nameservers_set: bool = False
    dns_records: bool = False
    hosting_domain_added: bool = False
    hosting_verified: bool = False

    @property
    def all_passed(self) -> bool:
        return all(self.model_dump().values())


class WorkflowDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain_id: str | None = None
    transaction_id: str | None = None
    charged_amount: str | None = None
    zone_id: str | None = None
    nameservers: list[str] = Field(default_factory=list)
    record_ids: list[str] = Field(default_factory=list)


class WorkflowResult(BaseModel):
    """Immutable outcome of one run.

    ``success`` is true exactly when every step flag is true, and any false
    flag comes with at least one explanatory error.
    """

    model_config = ConfigDict(frozen=True)

    domain: str
    success: bool
    steps: StepFlags = Field(default_factory=StepFlags)
    details: WorkflowDetails = Field(default_factory=WorkflowDetails)
    errors: list[str] = Field(default_factory=list)
    final_stage: SagaStage = SagaStage.INIT
    compensation: CompensationReport | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> WorkflowResult:
        if self.success != self.steps.all_passed:
            raise ValueError("success must equal the conjunction of all step flags")
        if not self.steps.all_passed and not self.errors:
            raise ValueError("a result with a failed step must carry at least one error")
        return self
