"""Client for the GitHub REST API (source host for site bundles)."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING

import httpx
import structlog
from typing_extensions import TypedDict

if TYPE_CHECKING:
    from launchpad.config import Settings

logger = structlog.get_logger()


class RepositoryResult(TypedDict):
    success: bool
    owner: str
    name: str
    url: str
    error: str


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {resp.status_code}"


class GitHubClient:
    """GitHub client authenticated with a personal access token."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.base_url = "https://api.github.com"

    @property
    def is_available(self) -> bool:
        return not self.settings.missing("github")

    def _client(self) -> httpx.AsyncClient:
        self.settings.require("github")
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.settings.github_token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=self.settings.http_timeout,
        )

    async def get_username(self) -> str:
        """Login of the token's owner. Raises httpx.HTTPStatusError on auth failure."""
        async with self._client() as client:
            resp = await client.get("/user")
            resp.raise_for_status()
        return str(resp.json()["login"])

    async def create_repository(self, name: str, private: bool = False) -> RepositoryResult:
        """Create an empty repository owned by the token's user."""
        try:
            owner = await self.get_username()
            async with self._client() as client:
                resp = await client.post(
                    "/user/repos",
                    json={"name": name, "private": private, "auto_init": False},
                )
        except httpx.HTTPError as exc:
            logger.error("GitHub create repository failed", repo=name, error=str(exc))
            return {"success": False, "owner": "", "name": name, "url": "", "error": str(exc)}

        if resp.is_error:
            error = _error_message(resp)
            logger.error("GitHub create repository failed", repo=name, error=error)
            return {"success": False, "owner": owner, "name": name, "url": "", "error": error}

        logger.info("GitHub repository created", owner=owner, repo=name)
        return {
            "success": True,
            "owner": owner,
            "name": name,
            "url": f"https://github.com/{owner}/{name}",
            "error": "",
        }

    async def upload_file(self, owner: str, repo: str, path: str, content: bytes) -> bool:
        """Commit one file through the contents API."""
        async with self._client() as client:
            try:
                resp = await client.put(
                    f"/repos/{owner}/{repo}/contents/{path}",
                    json={
                        "message": f"Add {path}",
                        "content": base64.b64encode(content).decode("ascii"),
                    },
                )
            except httpx.HTTPError as exc:
                logger.error("GitHub upload failed", path=path, error=str(exc))
                return False
        if resp.is_error:
            logger.error("GitHub upload failed", path=path, error=_error_message(resp))
            return False
        logger.debug("Uploaded file", path=path)
        return True
