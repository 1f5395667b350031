"""Client for the Namecheap XML API (domain registrar).

Every command is a GET against one endpoint with the command name and
credentials as query parameters; responses are XML documents whose root
``Status`` attribute is ``OK`` or ``ERROR``. Purchases are real-money and
cannot be reversed through the API.
API docs: https://www.namecheap.com/support/api/methods/
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

import httpx
import structlog
from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring
from typing_extensions import TypedDict

from launchpad.exceptions import InvalidDomainError

if TYPE_CHECKING:
    from launchpad.config import Settings

logger = structlog.get_logger()

SANDBOX_URL = "https://api.sandbox.namecheap.com/xml.response"
PRODUCTION_URL = "https://api.namecheap.com/xml.response"

_CONTACT_ROLES = ("Registrant", "Tech", "Admin", "AuxBilling")


class AvailabilityResult(TypedDict):
    domain: str
    available: bool
    is_premium: bool
    premium_price: str
    regular_price: str
    error: str


class PurchaseResult(TypedDict):
    success: bool
    domain_id: str
    transaction_id: str
    order_id: str
    charged_amount: str
    error: str


class NameserverResult(TypedDict):
    success: bool
    error: str


class Contact(TypedDict):
    first_name: str
    last_name: str
    address1: str
    address2: str
    city: str
    state_province: str
    postal_code: str
    country: str
    phone: str
    email: str


class ApiError(Exception):
    """Namecheap answered with Status="ERROR" or an unparseable document."""


def split_domain(domain: str) -> tuple[str, str]:
    """Split ``example.co.uk`` into ``("example", "co.uk")``."""
    parts = domain.split(".")
    if len(parts) < 2 or not all(parts):
        raise InvalidDomainError(f"Invalid domain format: {domain}")
    return parts[0], ".".join(parts[1:])


def _parse_response(text: str) -> ET.Element:
    """Parse a response document, dropping XML namespaces from tag names.

    Entity declarations and external references are refused.
    """
    try:
        root = fromstring(text)
    except ET.ParseError as exc:
        raise ApiError(f"Malformed XML response: {exc}") from exc
    except DefusedXmlException as exc:
        raise ApiError(f"Refused XML response: {exc}") from exc
    for element in root.iter():
        if "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]
    if root.get("Status") == "ERROR":
        messages = [e.text or "" for e in root.findall("Errors/Error")]
        raise ApiError(", ".join(m for m in messages if m) or "Unknown error")
    return root


def _text(parent: ET.Element, tag: str) -> str:
    child = parent.find(tag)
    return (child.text or "") if child is not None else ""


class NamecheapClient:
    """Namecheap registrar client. Returns mock data in dry-run mode."""

    def __init__(self, settings: Settings, dry_run: bool = False) -> None:
        self.settings = settings
        self.dry_run = dry_run
        self.base_url = PRODUCTION_URL if settings.environment == "production" else SANDBOX_URL

    @property
    def is_available(self) -> bool:
        return not self.settings.missing("namecheap")

    def _base_params(self) -> dict[str, str]:
        return {
            "ApiUser": self.settings.namecheap_api_user,
            "ApiKey": self.settings.namecheap_api_key,
            "UserName": self.settings.namecheap_username,
            "ClientIp": self.settings.namecheap_client_ip,
        }

    async def _call(self, command: str, **params: str) -> ET.Element:
        """Run one API command and return the parsed ``ApiResponse`` root."""
        self.settings.require("namecheap")
        query = {**self._base_params(), "Command": command, **params}
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            resp = await client.get(self.base_url, params=query)
            resp.raise_for_status()
        return _parse_response(resp.text)

    async def check_availability(self, domain: str) -> AvailabilityResult:
        """Check whether a domain can be registered, and at what price.

        Args:
            domain: Full domain name (e.g., "example.com").

        Returns:
            AvailabilityResult with keys: domain, available, is_premium,
            premium_price, regular_price, error.
        """
        if self.dry_run:
            return self._mock_check_availability(domain)

        logger.info("Checking availability", domain=domain)
        try:
            root = await self._call("namecheap.domains.check", DomainList=domain)
        except (httpx.HTTPError, ApiError) as exc:
            logger.error("Namecheap availability check failed", domain=domain, error=str(exc))
            return _availability_error(domain, str(exc))

        check = root.find("CommandResponse/DomainCheckResult")
        if check is None:
            return _availability_error(domain, "No domain check result returned")
        return {
            "domain": domain,
            "available": check.get("Available") == "true",
            "is_premium": check.get("IsPremiumName") == "true",
            "premium_price": check.get("PremiumRegistrationPrice", ""),
            "regular_price": check.get("RegularPrice", ""),
            "error": "",
        }

    async def purchase_domain(
        self,
        domain: str,
        years: int = 1,
        whois_guard: bool = True,
    ) -> PurchaseResult:
        """Purchase and register a domain. Charges the account on success.

        Args:
            domain: Full domain name to register.
            years: Registration period.
            whois_guard: Enable the free WhoisGuard privacy service.

        Returns:
            PurchaseResult with keys: success, domain_id, transaction_id,
            order_id, charged_amount, error.
        """
        if self.dry_run:
            return self._mock_purchase_domain(domain)

        logger.info("Purchasing domain", domain=domain, years=years, whois_guard=whois_guard)
        split_domain(domain)
        contact = await self._resolve_contact()
        if isinstance(contact, str):
            return _purchase_error(contact)

        flag = "yes" if whois_guard else "no"
        params = {
            "DomainName": domain,
            "Years": str(years),
            "AddFreeWhoisguard": flag,
            "WGEnabled": flag,
        }
        for role in _CONTACT_ROLES:
            params.update(
                {
                    f"{role}FirstName": contact["first_name"],
                    f"{role}LastName": contact["last_name"],
                    f"{role}Address1": contact["address1"],
                    f"{role}City": contact["city"],
                    f"{role}StateProvince": contact["state_province"],
                    f"{role}PostalCode": contact["postal_code"],
                    f"{role}Country": contact["country"],
                    f"{role}Phone": contact["phone"],
                    f"{role}EmailAddress": contact["email"],
                }
            )
            if contact["address2"]:
                params[f"{role}Address2"] = contact["address2"]

        try:
            root = await self._call("namecheap.domains.create", **params)
        except (httpx.HTTPError, ApiError) as exc:
            logger.error("Namecheap purchase failed", domain=domain, error=str(exc))
            return _purchase_error(str(exc))

        created = root.find("CommandResponse/DomainCreateResult")
        if created is None:
            return _purchase_error("No domain create result returned")
        registered = created.get("Registered") == "true"
        return {
            "success": registered,
            "domain_id": created.get("DomainID", ""),
            "transaction_id": created.get("TransactionID", ""),
            "order_id": created.get("OrderID", ""),
            "charged_amount": created.get("ChargedAmount", ""),
            "error": "" if registered else "Registrar did not confirm registration",
        }

    async def set_nameservers(self, domain: str, nameservers: list[str]) -> NameserverResult:
        """Delegate a domain to custom nameservers (e.g., Cloudflare's).

        Args:
            domain: Domain to update.
            nameservers: Nameserver hostnames, in order.

        Returns:
            NameserverResult with keys: success, error.
        """
        if self.dry_run:
            return {"success": True, "error": ""}

        logger.info("Setting nameservers", domain=domain, nameservers=nameservers)
        sld, tld = split_domain(domain)
        try:
            root = await self._call(
                "namecheap.domains.dns.setCustom",
                SLD=sld,
                TLD=tld,
                Nameservers=",".join(nameservers),
            )
        except (httpx.HTTPError, ApiError) as exc:
            logger.error("Namecheap set nameservers failed", domain=domain, error=str(exc))
            return {"success": False, "error": str(exc)}

        updated = root.find("CommandResponse/DomainDNSSetCustomResult")
        if updated is None or updated.get("Updated", updated.get("Update")) != "true":
            return {"success": False, "error": "Registrar did not confirm nameserver update"}
        return {"success": True, "error": ""}

    # ------------------------------------------------------------------
    # Registrant contact
    # ------------------------------------------------------------------

    async def _resolve_contact(self) -> Contact | str:
        """Contact used for every role, or an error message if none is usable."""
        if not self.settings.namecheap_use_default_contacts:
            missing = self.settings.missing("registrant")
            if missing:
                names = ", ".join(m.upper() for m in missing)
                return f"Missing registrant fields: {names}"
            s = self.settings
            return {
                "first_name": s.registrant_first_name,
                "last_name": s.registrant_last_name,
                "address1": s.registrant_address1,
                "address2": s.registrant_address2,
                "city": s.registrant_city,
                "state_province": s.registrant_state_province,
                "postal_code": s.registrant_postal_code,
                "country": s.registrant_country,
                "phone": s.registrant_phone,
                "email": s.registrant_email,
            }

        logger.info("Fetching default contact from Namecheap account")
        try:
            contact = await self._default_address()
        except (httpx.HTTPError, ApiError) as exc:
            logger.error("Namecheap address lookup failed", error=str(exc))
            contact = None
        if contact is None:
            return (
                "Could not fetch a default address from the Namecheap account. Add one in the "
                "Namecheap dashboard, or set NAMECHEAP_USE_DEFAULT_CONTACTS=false and provide "
                "REGISTRANT_* settings"
            )
        return contact

    async def _default_address(self) -> Contact | None:
        root = await self._call("namecheap.users.address.getList")
        addresses = root.findall("CommandResponse/AddressGetListResult/List/Address")
        if not addresses:
            return None
        default = next((a for a in addresses if a.get("IsDefault") == "true"), None)
        if default is None:
            logger.warning("No default address found, using first address")
            default = addresses[0]

        info = await self._call(
            "namecheap.users.address.getInfo", AddressId=default.get("AddressId", "")
        )
        addr = info.find("CommandResponse/GetAddressInfoResult")
        if addr is None:
            return None
        return {
            "first_name": _text(addr, "FirstName"),
            "last_name": _text(addr, "LastName"),
            "address1": _text(addr, "Address1"),
            "address2": _text(addr, "Address2"),
            "city": _text(addr, "City"),
            "state_province": _text(addr, "StateProvince"),
            "postal_code": _text(addr, "Zip"),
            "country": _text(addr, "Country"),
            "phone": _text(addr, "Phone"),
            "email": _text(addr, "EmailAddress"),
        }

    # ------------------------------------------------------------------
    # Mock data
    # ------------------------------------------------------------------

    def _mock_check_availability(self, domain: str) -> AvailabilityResult:
        tld = domain.rsplit(".", 1)[-1] if "." in domain else "com"
        prices = {"com": "10.28", "xyz": "1.98", "site": "1.48", "io": "32.98"}
        return {
            "domain": domain,
            "available": True,
            "is_premium": False,
            "premium_price": "",
            "regular_price": prices.get(tld, "12.98"),
            "error": "",
        }

    def _mock_purchase_domain(self, domain: str) -> PurchaseResult:
        return {
            "success": True,
            "domain_id": f"mock-domain-{domain.replace('.', '-')}",
            "transaction_id": "mock-txn-001",
            "order_id": "mock-order-001",
            "charged_amount": self._mock_check_availability(domain)["regular_price"],
            "error": "",
        }


def _availability_error(domain: str, error: str) -> AvailabilityResult:
    return {
        "domain": domain,
        "available": False,
        "is_premium": False,
        "premium_price": "",
        "regular_price": "",
        "error": error,
    }


def _purchase_error(error: str) -> PurchaseResult:
    return {
        "success": False,
        "domain_id": "",
        "transaction_id": "",
        "order_id": "",
        "charged_amount": "",
        "error": error,
    }
