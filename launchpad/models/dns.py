"""DNS value types exchanged with the DNS provider and hosting platform."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class RecordType(StrEnum):
    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    TXT = "TXT"
    MX = "MX"


class DNSRecord(BaseModel):
    """A record to publish in a zone. ``@`` names the zone apex."""

    model_config = ConfigDict(frozen=True)

    type: RecordType
    name: str
    content: str
    ttl: int | None = None
    proxied: bool | None = None
    priority: int | None = None

    def describe(self) -> str:
        return f"{self.type.value} {self.name}"


class VerificationRecord(BaseModel):
    """Ownership proof the hosting platform asks for before routing traffic."""

    model_config = ConfigDict(frozen=True)

    type: str
    name: str
    value: str
