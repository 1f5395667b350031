"""Client for the Vercel REST API.

Covers the two things launchpad needs from the hosting platform: attaching
a custom domain to a project (with ownership verification), and creating
projects and production deployments for a site bundle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog
from typing_extensions import TypedDict

from launchpad.exceptions import ConfigurationError
from launchpad.models.dns import DNSRecord, RecordType, VerificationRecord

if TYPE_CHECKING:
    from launchpad.config import Settings

logger = structlog.get_logger()

VERCEL_APEX_IP = "76.76.21.21"
VERCEL_CNAME_TARGET = "cname.vercel-dns.com"


class AddDomainResult(TypedDict):
    success: bool
    verified: bool
    verification_required: bool
    verification_records: list[VerificationRecord]
    already_attached: bool
    error: str


class VerifyResult(TypedDict):
    verified: bool
    error: str


class RemoveResult(TypedDict):
    success: bool
    error: str


class ProjectResult(TypedDict):
    success: bool
    project_id: str
    error: str


class DeploymentResult(TypedDict):
    success: bool
    deployment_id: str
    url: str
    project_id: str
    ready_state: str
    error: str


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {resp.status_code}"


def _domain_result(data: dict, already_attached: bool = False) -> AddDomainResult:
    verified = bool(data.get("verified"))
    challenges = data.get("verification") or []
    if not verified and challenges:
        return {
            "success": True,
            "verified": False,
            "verification_required": True,
            "verification_records": [
                VerificationRecord(type=c["type"], name=c["domain"], value=c["value"])
                for c in challenges
            ],
            "already_attached": already_attached,
            "error": "",
        }
    return {
        "success": True,
        "verified": verified,
        "verification_required": False,
        "verification_records": [],
        "already_attached": already_attached,
        "error": "",
    }


def _deployment_error(error: str) -> DeploymentResult:
    return {
        "success": False,
        "deployment_id": "",
        "url": "",
        "project_id": "",
        "ready_state": "",
        "error": error,
    }


def hosting_dns_records() -> list[DNSRecord]:
    """Records that route a domain to Vercel: apex A record plus www CNAME."""
    return [
        DNSRecord(type=RecordType.A, name="@", content=VERCEL_APEX_IP, proxied=False),
        DNSRecord(type=RecordType.CNAME, name="www", content=VERCEL_CNAME_TARGET, proxied=False),
    ]


class VercelClient:
    """Vercel client bound to one project.

    *project_id* overrides ``settings.vercel_project_id``; a deployment that
    creates a new project passes its id here rather than editing settings.
    """

    def __init__(
        self,
        settings: Settings,
        project_id: str | None = None,
        dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.project_id = project_id or settings.vercel_project_id
        self.dry_run = dry_run
        self.base_url = "https://api.vercel.com"

    @property
    def is_available(self) -> bool:
        return bool(self.settings.vercel_token and self.project_id)

    def _params(self) -> dict[str, str]:
        return {"teamId": self.settings.vercel_team_id} if self.settings.vercel_team_id else {}

    def _client(self, need_project: bool = True) -> httpx.AsyncClient:
        if not self.settings.vercel_token:
            raise ConfigurationError("Missing required vercel config: VERCEL_TOKEN")
        if need_project and not self.project_id:
            raise ConfigurationError("Missing required vercel config: VERCEL_PROJECT_ID")
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.settings.vercel_token}"},
            params=self._params(),
            timeout=self.settings.http_timeout,
        )

    def hosting_records(self, domain: str) -> list[DNSRecord]:
        """DNS records for *domain* with the apex placeholder expanded."""
        return [
            r.model_copy(update={"name": domain}) if r.name == "@" else r
            for r in hosting_dns_records()
        ]

    # ------------------------------------------------------------------
    # Project domains
    # ------------------------------------------------------------------

    async def add_domain(self, domain: str) -> AddDomainResult:
        """Attach a domain to the bound project.

        Args:
            domain: Apex domain to attach (e.g., "example.com").

        Returns:
            AddDomainResult with keys: success, verified,
            verification_required, verification_records, already_attached,
            error. A 409 from Vercel means an earlier attachment exists; the
            current status is returned with ``already_attached`` set.
        """
        if self.dry_run:
            return _domain_result({"name": domain, "verified": True})

        logger.info("Adding domain to Vercel project", domain=domain, project_id=self.project_id)
        async with self._client() as client:
            try:
                resp = await client.post(
                    f"/v10/projects/{self.project_id}/domains", json={"name": domain}
                )
            except httpx.HTTPError as exc:
                logger.error("Vercel add domain failed", domain=domain, error=str(exc))
                return _add_error(str(exc))

        if resp.status_code == 409:
            logger.warning("Domain already on project, fetching status", domain=domain)
            return await self.get_domain_status(domain, already_attached=True)
        if resp.is_error:
            error = _error_message(resp)
            logger.error("Vercel add domain failed", domain=domain, error=error)
            return _add_error(error)

        result = _domain_result(resp.json())
        if result["verification_required"]:
            logger.warning("Domain requires verification", domain=domain)
        return result

    async def get_domain_status(
        self, domain: str, already_attached: bool = False
    ) -> AddDomainResult:
        async with self._client() as client:
            try:
                resp = await client.get(f"/v9/projects/{self.project_id}/domains/{domain}")
            except httpx.HTTPError as exc:
                logger.error("Vercel domain status failed", domain=domain, error=str(exc))
                return _add_error(str(exc))
        if resp.is_error:
            return _add_error(_error_message(resp))
        return _domain_result(resp.json(), already_attached=already_attached)

    async def check_verified(self, domain: str) -> VerifyResult:
        """Ask Vercel to re-run verification for a domain.

        Args:
            domain: Domain previously attached with :meth:`add_domain`.

        Returns:
            VerifyResult with keys: verified (bool), error. Transport and
            HTTP errors come back as ``verified=False`` with the message.
        """
        if self.dry_run:
            return {"verified": True, "error": ""}

        async with self._client() as client:
            try:
                resp = await client.post(
                    f"/v9/projects/{self.project_id}/domains/{domain}/verify", json={}
                )
            except httpx.HTTPError as exc:
                logger.error("Vercel verify failed", domain=domain, error=str(exc))
                return {"verified": False, "error": str(exc)}
        if resp.is_error:
            return {"verified": False, "error": _error_message(resp)}
        return {"verified": resp.json().get("verified") is True, "error": ""}

    async def remove_domain(self, domain: str) -> RemoveResult:
        if self.dry_run:
            return {"success": True, "error": ""}

        logger.info("Removing domain from Vercel project", domain=domain)
        async with self._client() as client:
            try:
                resp = await client.delete(f"/v9/projects/{self.project_id}/domains/{domain}")
            except httpx.HTTPError as exc:
                logger.error("Vercel remove domain failed", domain=domain, error=str(exc))
                return {"success": False, "error": str(exc)}
        if resp.is_error:
            error = _error_message(resp)
            logger.error("Vercel remove domain failed", domain=domain, error=error)
            return {"success": False, "error": error}
        return {"success": True, "error": ""}

    # ------------------------------------------------------------------
    # Projects and deployments
    # ------------------------------------------------------------------

    async def create_project(self, name: str, git_repo: str | None = None) -> ProjectResult:
        """Create a project, optionally linked to a GitHub ``owner/repo``."""
        payload: dict[str, object] = {"name": name, "framework": None}
        if git_repo:
            payload["gitRepository"] = {"type": "github", "repo": git_repo}
        async with self._client(need_project=False) as client:
            try:
                resp = await client.post("/v10/projects", json=payload)
            except httpx.HTTPError as exc:
                return {"success": False, "project_id": "", "error": str(exc)}
        if resp.is_error:
            return {"success": False, "project_id": "", "error": _error_message(resp)}
        project_id = resp.json()["id"]
        logger.info("Vercel project created", project_id=project_id, git_linked=bool(git_repo))
        return {"success": True, "project_id": project_id, "error": ""}

    async def create_deployment(
        self,
        name: str,
        *,
        git_source: dict[str, str] | None = None,
        files: list[dict[str, object]] | None = None,
    ) -> DeploymentResult:
        """Create a production deployment from a git ref or from uploaded file digests."""
        payload: dict[str, object] = {"name": name, "target": "production"}
        if git_source is not None:
            payload["gitSource"] = {"type": "github", **git_source}
        if files is not None:
            payload["files"] = files
            payload["projectSettings"] = {"framework": None}
        async with self._client(need_project=False) as client:
            try:
                resp = await client.post("/v13/deployments", json=payload)
            except httpx.HTTPError as exc:
                return _deployment_error(str(exc))
        if resp.is_error:
            return _deployment_error(_error_message(resp))
        return self._deployment_result(resp.json())

    async def upload_file(self, content: bytes, sha: str) -> bool:
        """Upload one file by its sha1 digest. Already-known digests count as uploaded."""
        async with self._client(need_project=False) as client:
            try:
                resp = await client.post(
                    "/v2/files",
                    content=content,
                    headers={
                        "Content-Type": "application/octet-stream",
                        "x-vercel-digest": sha,
                    },
                )
            except httpx.HTTPError as exc:
                logger.error("Vercel file upload failed", sha=sha, error=str(exc))
                return False
        if resp.status_code == 409:
            return True
        if resp.is_error:
            logger.error("Vercel file upload failed", sha=sha, error=_error_message(resp))
            return False
        return True

    async def get_deployment(self, deployment: str) -> DeploymentResult:
        async with self._client(need_project=False) as client:
            try:
                resp = await client.get(f"/v13/deployments/{deployment}")
            except httpx.HTTPError as exc:
                return _deployment_error(str(exc))
        if resp.is_error:
            return _deployment_error(_error_message(resp))
        return self._deployment_result(resp.json())

    @staticmethod
    def _deployment_result(data: dict) -> DeploymentResult:
        return {
            "success": True,
            "deployment_id": str(data.get("id", "")),
            "url": str(data.get("url", "")),
            "project_id": str(data.get("projectId", "")),
            "ready_state": str(data.get("readyState", "")),
            "error": "",
        }


def _add_error(error: str) -> AddDomainResult:
    return {
        "success": False,
        "verified": False,
        "verification_required": False,
        "verification_records": [],
        "already_attached": False,
        "error": error,
    }
