"""In-memory stand-ins for the registrar, DNS provider, and hosting platform."""

from __future__ import annotations

from launchpad.config import Settings
from launchpad.models.dns import DNSRecord, RecordType, VerificationRecord
from launchpad.saga import ProvisioningSaga


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeRegistrar:
    def __init__(
        self,
        available: bool = True,
        is_premium: bool = False,
        availability_error: str = "",
        purchase_error: str = "",
        nameserver_failures: int = 0,
    ) -> None:
        self.available = available
        self.is_premium = is_premium
        self.availability_error = availability_error
        self.purchase_error = purchase_error
        self.nameserver_failures = nameserver_failures
        self.calls: list[str] = []
        self.nameserver_calls: list[list[str]] = []

    async def check_availability(self, domain: str) -> dict:
        self.calls.append("check_availability")
        return {
            "domain": domain,
            "available": self.available and not self.availability_error,
            "is_premium": self.is_premium,
            "premium_price": "999.00" if self.is_premium else "",
            "regular_price": "10.28",
            "error": self.availability_error,
        }

    async def purchase_domain(self, domain: str, years: int = 1, whois_guard: bool = True) -> dict:
        self.calls.append("purchase_domain")
        ok = not self.purchase_error
        return {
            "success": ok,
            "domain_id": "D1" if ok else "",
            "transaction_id": "T1" if ok else "",
            "order_id": "O1" if ok else "",
            "charged_amount": "10.28" if ok else "",
            "error": self.purchase_error,
        }

    async def set_nameservers(self, domain: str, nameservers: list[str]) -> dict:
        self.calls.append("set_nameservers")
        self.nameserver_calls.append(list(nameservers))
        if len(self.nameserver_calls) <= self.nameserver_failures:
            return {"success": False, "error": f"registrar busy ({len(self.nameserver_calls)})"}
        return {"success": True, "error": ""}


class FakeDNS:
    def __init__(
        self,
        zone_error: str = "",
        already_exists: bool = False,
        nameservers: tuple[str, ...] = ("ns1.x", "ns2.x"),
        failing_records: frozenset[str] = frozenset(),
        failing_deletes: frozenset[str] = frozenset(),
        raise_on_delete: frozenset[str] = frozenset(),
        raise_on_records: frozenset[str] = frozenset(),
    ) -> None:
        self.zone_error = zone_error
        self.already_exists = already_exists
        self.nameservers = nameservers
        self.failing_records = failing_records
        self.failing_deletes = failing_deletes
        self.raise_on_delete = raise_on_delete
        self.raise_on_records = raise_on_records
        self.zones: dict[str, str] = {}
        self.created: list[DNSRecord] = []
        self.deleted: list[str] = []
        self.delete_attempts: list[str] = []
        self._record_calls = 0

    async def create_zone(self, domain: str) -> dict:
        if self.zone_error:
            return {
                "success": False,
                "zone_id": "",
                "name": "",
                "status": "",
                "nameservers": [],
                "already_exists": False,
                "error": self.zone_error,
            }
        existed = self.already_exists or domain in self.zones
        zone_id = self.zones.setdefault(domain, "Z1")
        return {
            "success": True,
            "zone_id": zone_id,
            "name": domain,
            "status": "pending",
            "nameservers": list(self.nameservers),
            "already_exists": existed,
            "error": "",
        }

    async def create_dns_record(self, zone_id: str, record: DNSRecord) -> dict:
        self._record_calls += 1
        if record.name in self.raise_on_records:
            raise ConnectionError("connection reset")
        if record.name in self.failing_records:
            return {"success": False, "record_id": "", "error": "record rejected"}
        self.created.append(record)
        return {"success": True, "record_id": f"R{self._record_calls}", "error": ""}

    async def delete_dns_record(self, zone_id: str, record_id: str) -> dict:
        self.delete_attempts.append(record_id)
        if record_id in self.raise_on_delete:
            raise ConnectionError("connection reset")
        if record_id in self.failing_deletes:
            return {"success": False, "error": "record locked"}
        self.deleted.append(record_id)
        return {"success": True, "error": ""}

    async def get_zone_status(self, zone_id: str) -> dict | None:
        return {"status": "active", "nameservers": list(self.nameservers)}


class FakeHosting:
    def __init__(
        self,
        records: list[DNSRecord] | None = None,
        add_error: str = "",
        verification_records: list[VerificationRecord] | None = None,
        verified_after: int | None = 1,
        remove_error: str = "",
        already_attached: bool = False,
    ) -> None:
        self.records = records
        self.add_error = add_error
        self.verification_records = verification_records or []
        self.verified_after = verified_after
        self.remove_error = remove_error
        self.already_attached = already_attached
        self.added: list[str] = []
        self.removed: list[str] = []
        self.verify_checks = 0

    def hosting_records(self, domain: str) -> list[DNSRecord]:
        if self.records is not None:
            return list(self.records)
        return [
            DNSRecord(type=RecordType.A, name=domain, content="76.76.21.21"),
            DNSRecord(type=RecordType.CNAME, name="www", content="cname.vercel-dns.com"),
        ]

    async def add_domain(self, domain: str) -> dict:
        if self.add_error:
            return {
                "success": False,
                "verified": False,
                "verification_required": False,
                "verification_records": [],
                "already_attached": False,
                "error": self.add_error,
            }
        self.added.append(domain)
        return {
            "success": True,
            "verified": not self.verification_records,
            "verification_required": bool(self.verification_records),
            "verification_records": list(self.verification_records),
            "already_attached": self.already_attached,
            "error": "",
        }

    async def check_verified(self, domain: str) -> dict:
        self.verify_checks += 1
        if self.verified_after is not None and self.verify_checks >= self.verified_after:
            return {"verified": True, "error": ""}
        return {"verified": False, "error": ""}

    async def remove_domain(self, domain: str) -> dict:
        if self.remove_error:
            return {"success": False, "error": self.remove_error}
        self.removed.append(domain)
        return {"success": True, "error": ""}


def make_saga(
    settings: Settings,
    registrar: FakeRegistrar,
    dns: FakeDNS,
    hosting: FakeHosting,
    sleeper: SleepRecorder,
) -> ProvisioningSaga:
    return ProvisioningSaga(
        registrar=registrar,
        dns=dns,
        hosting=hosting,
        settings=settings,
        sleep=sleeper,
    )
