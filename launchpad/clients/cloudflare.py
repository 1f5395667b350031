"""Client for the Cloudflare v4 DNS API.

Zones hold the records for a domain; after a zone is created the domain's
nameservers at the registrar must point at the Cloudflare nameservers it
returns. API docs: https://developers.cloudflare.com/api/
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog
from typing_extensions import TypedDict

from launchpad.polling import PollStatus, poll

if TYPE_CHECKING:
    from launchpad.config import Settings
    from launchpad.models.dns import DNSRecord

logger = structlog.get_logger()

# Returned when a zone for the domain already exists on the account
ZONE_EXISTS_CODE = 1061


class ZoneResult(TypedDict):
    success: bool
    zone_id: str
    name: str
    status: str
    nameservers: list[str]
    already_exists: bool
    error: str


class RecordResult(TypedDict):
    success: bool
    record_id: str
    error: str


class RecordBatchResult(TypedDict):
    success: bool
    record_ids: list[str]
    errors: list[str]


class DeleteResult(TypedDict):
    success: bool
    error: str


class ZoneStatus(TypedDict):
    status: str
    nameservers: list[str]


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    errors = data.get("errors") if isinstance(data, dict) else None
    if errors:
        return ", ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict)) or str(errors)
    return f"HTTP {resp.status_code}"


def _has_error_code(resp: httpx.Response, code: int) -> bool:
    try:
        data = resp.json()
    except ValueError:
        return False
    errors = data.get("errors") if isinstance(data, dict) else None
    return any(isinstance(e, dict) and e.get("code") == code for e in errors or [])


def _zone_error(error: str) -> ZoneResult:
    return {
        "success": False,
        "zone_id": "",
        "name": "",
        "status": "",
        "nameservers": [],
        "already_exists": False,
        "error": error,
    }


class CloudflareClient:
    """Cloudflare DNS client. Returns mock data in dry-run mode."""

    def __init__(self, settings: Settings, dry_run: bool = False) -> None:
        self.settings = settings
        self.dry_run = dry_run
        self.base_url = "https://api.cloudflare.com/client/v4"

    @property
    def is_available(self) -> bool:
        return not self.settings.missing("cloudflare")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.cloudflare_api_token}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        self.settings.require("cloudflare")
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.settings.http_timeout,
        )

    async def create_zone(self, domain: str) -> ZoneResult:
        """Create a full DNS zone for a domain.

        Args:
            domain: Apex domain (e.g., "example.com").

        Returns:
            ZoneResult with keys: success, zone_id, name, status,
            nameservers, already_exists, error. If the account already has a
            zone for the domain, that zone is returned with
            ``already_exists=True``.
        """
        if self.dry_run:
            return self._mock_create_zone(domain)

        logger.info("Creating Cloudflare zone", domain=domain)
        async with self._client() as client:
            try:
                resp = await client.post(
                    "/zones",
                    json={
                        "name": domain,
                        "account": {"id": self.settings.cloudflare_account_id},
                        "type": "full",
                    },
                )
            except httpx.HTTPError as exc:
                logger.error("Cloudflare create zone failed", domain=domain, error=str(exc))
                return _zone_error(str(exc))

            if resp.status_code == 409 or _has_error_code(resp, ZONE_EXISTS_CODE):
                logger.warning("Zone already exists, fetching existing zone", domain=domain)
                return await self._fetch_existing_zone(client, domain)

            if resp.is_error or not resp.json().get("success"):
                error = _error_message(resp)
                logger.error("Cloudflare create zone failed", domain=domain, error=error)
                return _zone_error(error)

            zone = resp.json()["result"]
            logger.info("Zone created", zone_id=zone["id"])
            return self._zone_result(zone, already_exists=False)

    async def _fetch_existing_zone(self, client: httpx.AsyncClient, domain: str) -> ZoneResult:
        try:
            resp = await client.get(
                "/zones",
                params={"name": domain, "account.id": self.settings.cloudflare_account_id},
            )
        except httpx.HTTPError as exc:
            logger.error("Cloudflare zone lookup failed", domain=domain, error=str(exc))
            return _zone_error(str(exc))

        if resp.is_error:
            return _zone_error(_error_message(resp))
        zones = resp.json().get("result") or []
        if not zones:
            return _zone_error("Zone not found")
        logger.info("Found existing zone", zone_id=zones[0]["id"])
        return self._zone_result(zones[0], already_exists=True)

    @staticmethod
    def _zone_result(zone: dict, already_exists: bool) -> ZoneResult:
        return {
            "success": True,
            "zone_id": zone["id"],
            "name": zone.get("name", ""),
            "status": zone.get("status", ""),
            "nameservers": list(zone.get("name_servers") or []),
            "already_exists": already_exists,
            "error": "",
        }

    async def create_dns_record(self, zone_id: str, record: DNSRecord) -> RecordResult:
        """Create one record in a zone. TTL 1 means automatic.

        Args:
            zone_id: Cloudflare zone id.
            record: Record to create.

        Returns:
            RecordResult with keys: success, record_id, error.
        """
        if self.dry_run:
            return self._mock_create_dns_record(record)

        logger.info(
            "Creating DNS record",
            zone_id=zone_id,
            type=record.type.value,
            name=record.name,
            content=record.content,
        )
        payload: dict[str, object] = {
            "type": record.type.value,
            "name": record.name,
            "content": record.content,
            "ttl": record.ttl or 1,
            "proxied": bool(record.proxied),
        }
        if record.priority is not None:
            payload["priority"] = record.priority

        async with self._client() as client:
            try:
                resp = await client.post(f"/zones/{zone_id}/dns_records", json=payload)
            except httpx.HTTPError as exc:
                logger.error("Cloudflare create record failed", error=str(exc))
                return {"success": False, "record_id": "", "error": str(exc)}

        if resp.is_error or not resp.json().get("success"):
            error = _error_message(resp)
            logger.error("Cloudflare create record failed", error=error)
            return {"success": False, "record_id": "", "error": error}
        record_id = resp.json()["result"]["id"]
        logger.info("DNS record created", record_id=record_id)
        return {"success": True, "record_id": record_id, "error": ""}

    async def create_dns_records(self, zone_id: str, records: list[DNSRecord]) -> RecordBatchResult:
        """Create records one after another, collecting ids and per-record errors.

        A convenience for ad-hoc use, e.g. republishing records by hand. The
        saga creates records itself so each id is recorded as compensable the
        moment it exists; this helper only reports ids once the batch ends.

        Args:
            zone_id: Zone that receives the records.
            records: Records to create, in order.

        Returns:
            RecordBatchResult with keys: success (true when every record was
            created), record_ids, errors (``"<TYPE> <name>: <message>"``).
        """
        record_ids: list[str] = []
        errors: list[str] = []
        for record in records:
            result = await self.create_dns_record(zone_id, record)
            if result["success"] and result["record_id"]:
                record_ids.append(result["record_id"])
            else:
                errors.append(f"{record.describe()}: {result['error']}")
        return {"success": not errors, "record_ids": record_ids, "errors": errors}

    async def delete_dns_record(self, zone_id: str, record_id: str) -> DeleteResult:
        if self.dry_run:
            return {"success": True, "error": ""}

        logger.info("Deleting DNS record", zone_id=zone_id, record_id=record_id)
        async with self._client() as client:
            try:
                resp = await client.delete(f"/zones/{zone_id}/dns_records/{record_id}")
            except httpx.HTTPError as exc:
                logger.error("Cloudflare delete record failed", record_id=record_id, error=str(exc))
                return {"success": False, "error": str(exc)}

        if resp.is_error or not resp.json().get("success"):
            error = _error_message(resp)
            logger.error("Cloudflare delete record failed", record_id=record_id, error=error)
            return {"success": False, "error": error}
        return {"success": True, "error": ""}

    async def get_zone_status(self, zone_id: str) -> ZoneStatus | None:
        """Return the zone's activation status, or None if it cannot be read."""
        if self.dry_run:
            return {"status": "active", "nameservers": list(_MOCK_NAMESERVERS)}

        async with self._client() as client:
            try:
                resp = await client.get(f"/zones/{zone_id}")
            except httpx.HTTPError as exc:
                logger.error("Cloudflare zone status failed", zone_id=zone_id, error=str(exc))
                return None

        if resp.is_error or not resp.json().get("success"):
            return None
        zone = resp.json()["result"]
        return {"status": zone.get("status", ""), "nameservers": list(zone.get("name_servers") or [])}

    async def wait_for_zone_activation(
        self,
        zone_id: str,
        max_attempts: int | None = None,
        interval: float | None = None,
    ) -> PollStatus:
        """Poll until the zone is active, i.e. nameserver delegation has propagated."""

        async def check() -> PollStatus:
            status = await self.get_zone_status(zone_id)
            logger.debug("Zone status", zone_id=zone_id, status=status and status["status"])
            if status is not None and status["status"] == "active":
                return PollStatus.SUCCEEDED
            return PollStatus.PENDING

        return await poll(
            check,
            max_attempts or self.settings.zone_poll_attempts,
            self.settings.zone_poll_interval if interval is None else interval,
            label="zone_activation",
        )

    # ------------------------------------------------------------------
    # Mock data
    # ------------------------------------------------------------------

    def _mock_create_zone(self, domain: str) -> ZoneResult:
        return {
            "success": True,
            "zone_id": f"mock-zone-{domain.replace('.', '-')}",
            "name": domain,
            "status": "pending",
            "nameservers": list(_MOCK_NAMESERVERS),
            "already_exists": False,
            "error": "",
        }

    def _mock_create_dns_record(self, record: DNSRecord) -> RecordResult:
        return {
            "success": True,
            "record_id": f"mock-record-{record.name}-{record.type.value}",
            "error": "",
        }


_MOCK_NAMESERVERS = ("arya.ns.cloudflare.com", "tim.ns.cloudflare.com")
