"""Models for the deploy-then-provision pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from launchpad.models.workflow import WorkflowResult


class DeployResult(BaseModel):
    """Outcome of pushing a site bundle to the source host and hosting platform."""

    model_config = ConfigDict(frozen=True)

    success: bool
    project_id: str = ""
    project_name: str = ""
    deployment_url: str = ""
    repo_url: str = ""
    error: str = ""


class DeployedWorkflowResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    deploy: DeployResult
    workflow: WorkflowResult | None = None

    @property
    def success(self) -> bool:
        return self.deploy.success and self.workflow is not None and self.workflow.success
