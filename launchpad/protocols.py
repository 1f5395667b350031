"""Port interfaces (Protocols) for the provider adapters the saga depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from launchpad.clients.cloudflare import DeleteResult, RecordResult, ZoneResult, ZoneStatus
    from launchpad.clients.github import RepositoryResult
    from launchpad.clients.namecheap import AvailabilityResult, NameserverResult, PurchaseResult
    from launchpad.clients.vercel import AddDomainResult, RemoveResult, VerifyResult
    from launchpad.models.dns import DNSRecord


@runtime_checkable
class RegistrarPort(Protocol):
    """Domain registrar. Purchases cannot be undone."""

    async def check_availability(self, domain: str) -> AvailabilityResult: ...
    async def purchase_domain(
        self, domain: str, years: int = 1, whois_guard: bool = True
    ) -> PurchaseResult: ...
    async def set_nameservers(self, domain: str, nameservers: list[str]) -> NameserverResult: ...


@runtime_checkable
class DNSProviderPort(Protocol):
    """Managed DNS zones and records."""

    async def create_zone(self, domain: str) -> ZoneResult: ...
    async def create_dns_record(self, zone_id: str, record: DNSRecord) -> RecordResult: ...
    async def delete_dns_record(self, zone_id: str, record_id: str) -> DeleteResult: ...
    async def get_zone_status(self, zone_id: str) -> ZoneStatus | None: ...


@runtime_checkable
class HostingPort(Protocol):
    """Hosting platform that serves the site on the custom domain."""

    def hosting_records(self, domain: str) -> list[DNSRecord]: ...
    async def add_domain(self, domain: str) -> AddDomainResult: ...
    async def check_verified(self, domain: str) -> VerifyResult: ...
    async def remove_domain(self, domain: str) -> RemoveResult: ...


@runtime_checkable
class SourceHostPort(Protocol):
    """Git host that stores the site's source."""

    async def get_username(self) -> str: ...
    async def create_repository(self, name: str, private: bool = False) -> RepositoryResult: ...
    async def upload_file(self, owner: str, repo: str, path: str, content: bytes) -> bool: ...
