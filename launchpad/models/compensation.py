"""Rollback report returned by the compensator."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class CompensationKind(StrEnum):
    HOSTING_REMOVAL = "hosting_removal"
    RECORD_DELETION = "record_deletion"
    PURCHASE = "purchase"


class CompensationOutcome(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    MANUAL_ACTION_REQUIRED = "manual_action_required"


class CompensationAction(BaseModel):
    """One undo attempt (or the decision not to attempt one)."""

    model_config = ConfigDict(frozen=True)

    kind: CompensationKind
    outcome: CompensationOutcome
    target: str = ""
    message: str = ""

    def summary(self) -> str:
        if self.outcome is CompensationOutcome.MANUAL_ACTION_REQUIRED:
            return f"Manual action required: {self.message}"
        label = self.kind.value.replace("_", " ")
        text = f"Rollback {label} {self.target} {self.outcome.value}"
        return f"{text}: {self.message}" if self.message else text


class CompensationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    actions: list[CompensationAction] = Field(default_factory=list)

    def by_kind(self, kind: CompensationKind) -> list[CompensationAction]:
        return [a for a in self.actions if a.kind is kind]

    @property
    def attempted_record_ids(self) -> list[str]:
        return [
            a.target
            for a in self.by_kind(CompensationKind.RECORD_DELETION)
            if a.outcome in (CompensationOutcome.SUCCEEDED, CompensationOutcome.FAILED)
        ]

    @property
    def failures(self) -> list[CompensationAction]:
        return [a for a in self.actions if a.outcome is CompensationOutcome.FAILED]

    @property
    def manual_actions(self) -> list[CompensationAction]:
        return [a for a in self.actions if a.outcome is CompensationOutcome.MANUAL_ACTION_REQUIRED]

    def error_messages(self) -> list[str]:
        """Lines the saga appends to the workflow's error list.

        Failed undo attempts and manual-action notices are reported;
        successful and skipped actions are not.
        """
        return [a.summary() for a in (*self.failures, *self.manual_actions)]
