"""Application configuration via pydantic-settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from launchpad.exceptions import ConfigurationError

Service = Literal["namecheap", "cloudflare", "vercel", "registrant", "github", "deploy"]

_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "namecheap": (
        "namecheap_api_user",
        "namecheap_api_key",
        "namecheap_username",
        "namecheap_client_ip",
    ),
    "cloudflare": ("cloudflare_api_token", "cloudflare_account_id"),
    "vercel": ("vercel_token", "vercel_project_id"),
    "registrant": (
        "registrant_first_name",
        "registrant_last_name",
        "registrant_address1",
        "registrant_city",
        "registrant_state_province",
        "registrant_postal_code",
        "registrant_country",
        "registrant_phone",
        "registrant_email",
    ),
    "github": ("github_token",),
    # Deploying creates the project, so no project id is needed yet
    "deploy": ("github_token", "vercel_token"),
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # "development" targets the Namecheap sandbox
    environment: Literal["development", "production"] = "development"

    # Registrar
    namecheap_api_user: str = ""
    namecheap_api_key: str = ""
    namecheap_username: str = ""
    namecheap_client_ip: str = ""
    namecheap_use_default_contacts: bool = True

    # DNS provider
    cloudflare_api_token: str = ""
    cloudflare_account_id: str = ""

    # Hosting platform
    vercel_token: str = ""
    vercel_project_id: str = ""
    vercel_team_id: str = ""

    # Source host
    github_token: str = ""

    # Registrant contact, used when namecheap_use_default_contacts is off
    registrant_first_name: str = ""
    registrant_last_name: str = ""
    registrant_address1: str = ""
    registrant_address2: str = ""
    registrant_city: str = ""
    registrant_state_province: str = ""
    registrant_postal_code: str = ""
    registrant_country: str = ""
    registrant_phone: str = ""
    registrant_email: str = ""

    # Saga tuning (seconds)
    nameserver_retry_attempts: int = Field(default=3, ge=1)
    nameserver_retry_initial_delay: float = Field(default=5.0, ge=0)
    nameserver_retry_max_delay: float = Field(default=30.0, ge=0)
    verification_poll_attempts: int = Field(default=10, ge=1)
    verification_poll_interval: float = Field(default=30.0, ge=0)
    zone_poll_attempts: int = Field(default=20, ge=1)
    zone_poll_interval: float = Field(default=30.0, ge=0)
    deployment_poll_attempts: int = Field(default=60, ge=1)
    deployment_poll_interval: float = Field(default=5.0, ge=0)

    http_timeout: float = Field(default=30.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    def missing(self, service: Service) -> list[str]:
        """Return the names of required fields for *service* that are empty."""
        return [name for name in _REQUIRED_FIELDS[service] if not getattr(self, name)]

    def require(self, service: Service) -> None:
        """Raise ConfigurationError if any field *service* needs is empty."""
        missing = self.missing(service)
        if missing:
            names = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(f"Missing required {service} config: {names}")
