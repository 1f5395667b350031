"""Deploy a zipped static site to GitHub + Vercel, then provision its domain."""

from __future__ import annotations

import hashlib
import shutil
import tempfile
import time
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from launchpad.clients.github import GitHubClient
from launchpad.clients.vercel import VercelClient
from launchpad.models.deployment import DeployedWorkflowResult, DeployResult
from launchpad.polling import PollStatus, poll
from launchpad.saga import run_provisioning_workflow

if TYPE_CHECKING:
    from launchpad.config import Settings

logger = structlog.get_logger()

_READY = "READY"
_TERMINAL_FAILURES = frozenset({"ERROR", "CANCELED"})


def extract_zip(zip_path: Path, extract_dir: Path) -> Path:
    """Extract *zip_path* and return the site root.

    Archives that wrap everything in one top-level folder are unwrapped.
    """
    if extract_dir.exists():
        shutil.rmtree(extract_dir)
    with zipfile.ZipFile(zip_path) as archive:
        archive.extractall(extract_dir)

    entries = list(extract_dir.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        logger.info("Detected nested folder", root=str(entries[0]))
        return entries[0]
    return extract_dir


def site_files(root: Path) -> list[str]:
    """Relative POSIX paths of every file under *root*, skipping .git."""
    return sorted(
        p.relative_to(root).as_posix()
        for p in root.rglob("*")
        if p.is_file() and ".git" not in p.relative_to(root).parts
    )


class Deployer:
    """Pushes a site to the source host and creates a production deployment."""

    def __init__(
        self,
        settings: Settings,
        github: GitHubClient | None = None,
        vercel: VercelClient | None = None,
    ) -> None:
        self.settings = settings
        self.github = github or GitHubClient(settings)
        self.vercel = vercel or VercelClient(settings)

    async def deploy_zip(self, zip_path: Path, project_name: str | None = None) -> DeployResult:
        if not zip_path.exists():
            return DeployResult(success=False, error=f"ZIP file not found: {zip_path}")
        self.settings.require("deploy")

        name = project_name or f"site-deploy-{int(time.time())}"
        with tempfile.TemporaryDirectory(prefix="launchpad-") as tmp:
            root = extract_zip(zip_path, Path(tmp) / "site")
            files = site_files(root)
            logger.info("Extracted site", root=str(root), files=len(files))

            repo = await self.github.create_repository(name)
            if not repo["success"]:
                return DeployResult(success=False, project_name=name, error=repo["error"])
            for path in files:
                if not await self.github.upload_file(repo["owner"], name, path, (root / path).read_bytes()):
                    logger.warning("Skipped file that failed to upload", path=path)
            logger.info("Uploaded site to GitHub", repo_url=repo["url"])

            result = await self._deploy_from_git(name, repo["owner"])
            if result is None:
                result = await self._deploy_from_files(name, root, files)
            if not result.success:
                return result.model_copy(update={"repo_url": repo["url"]})

        ready = await self.wait_for_deployment(result.deployment_url)
        if ready is not PollStatus.SUCCEEDED:
            return result.model_copy(
                update={
                    "success": False,
                    "repo_url": repo["url"],
                    "error": f"Deployment did not become ready ({ready.value})",
                }
            )
        logger.info("Deployment ready", url=result.deployment_url, project_id=result.project_id)
        return result.model_copy(update={"repo_url": repo["url"]})

    async def _deploy_from_git(self, name: str, owner: str) -> DeployResult | None:
        """Git-linked project and deployment, or None if the integration is unavailable."""
        project = await self.vercel.create_project(name, git_repo=f"{owner}/{name}")
        if not project["success"]:
            logger.warning("GitHub integration not available, using file upload", reason=project["error"])
            return None
        deployment = await self.vercel.create_deployment(
            name, git_source={"org": owner, "repo": name, "ref": "main"}
        )
        if not deployment["success"]:
            logger.warning("Git deployment failed, using file upload", reason=deployment["error"])
            return None
        return DeployResult(
            success=True,
            project_id=project["project_id"],
            project_name=name,
            deployment_url=deployment["url"],
        )

    async def _deploy_from_files(self, name: str, root: Path, files: list[str]) -> DeployResult:
        manifest: list[dict[str, object]] = []
        for path in files:
            content = (root / path).read_bytes()
            sha = hashlib.sha1(content).hexdigest()  # noqa: S324 - digest required by the API
            if not await self.vercel.upload_file(content, sha):
                logger.warning("File upload failed", path=path)
            manifest.append({"file": path, "sha": sha, "size": len(content)})

        deployment = await self.vercel.create_deployment(name, files=manifest)
        if not deployment["success"]:
            return DeployResult(success=False, project_name=name, error=deployment["error"])
        return DeployResult(
            success=True,
            project_id=deployment["project_id"] or name,
            project_name=name,
            deployment_url=deployment["url"],
        )

    async def wait_for_deployment(self, deployment: str) -> PollStatus:
        async def check() -> PollStatus:
            status = await self.vercel.get_deployment(deployment)
            state = status["ready_state"]
            logger.info("Deployment state", state=state or "unknown")
            if state == _READY:
                return PollStatus.SUCCEEDED
            if state in _TERMINAL_FAILURES:
                return PollStatus.FAILED
            return PollStatus.PENDING

        return await poll(
            check,
            self.settings.deployment_poll_attempts,
            self.settings.deployment_poll_interval,
            label="deployment",
        )


async def run_workflow_with_deploy(
    zip_path: Path,
    domain: str,
    years: int = 1,
    whois_guard: bool = True,
    *,
    settings: Settings,
) -> DeployedWorkflowResult:
    """Deploy the site, then provision *domain* against the new project."""
    deploy = await Deployer(settings).deploy_zip(zip_path, domain.replace(".", "-"))
    if not deploy.success:
        logger.error("Deployment failed", error=deploy.error)
        return DeployedWorkflowResult(deploy=deploy)

    hosting = VercelClient(settings, project_id=deploy.project_id)
    workflow = await run_provisioning_workflow(
        domain, years, whois_guard, settings=settings, hosting=hosting
    )
    return DeployedWorkflowResult(deploy=deploy, workflow=workflow)
