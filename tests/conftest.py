"""Shared test fixtures."""

from __future__ import annotations

import pytest

from launchpad.config import Settings

from fakes import FakeDNS, FakeHosting, FakeRegistrar, SleepRecorder


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        environment="development",
        namecheap_api_user="nc-user",
        namecheap_api_key="nc-key",
        namecheap_username="nc-user",
        namecheap_client_ip="127.0.0.1",
        namecheap_use_default_contacts=True,
        cloudflare_api_token="cf-token",
        cloudflare_account_id="cf-account",
        vercel_token="vc-token",
        vercel_project_id="prj_123",
        vercel_team_id="",
        github_token="gh-token",
        nameserver_retry_attempts=3,
        nameserver_retry_initial_delay=5.0,
        nameserver_retry_max_delay=30.0,
        verification_poll_attempts=3,
        verification_poll_interval=30.0,
        zone_poll_attempts=2,
        zone_poll_interval=0.0,
        deployment_poll_attempts=2,
        deployment_poll_interval=0.0,
        log_level="DEBUG",
        _env_file=None,
    )


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def registrar() -> FakeRegistrar:
    return FakeRegistrar()


@pytest.fixture()
def dns() -> FakeDNS:
    return FakeDNS()


@pytest.fixture()
def hosting() -> FakeHosting:
    return FakeHosting()
