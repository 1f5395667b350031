"""Click CLI entry point for launchpad."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from launchpad.config import Settings
from launchpad.exceptions import ConfigurationError, WorkflowAbortedError
from launchpad.logging import configure_logging

if TYPE_CHECKING:
    from launchpad.models.workflow import WorkflowResult

_DOUBLE_LINE = "\u2550" * 62  # ═


def _echo_result(result: WorkflowResult) -> None:
    click.echo(_DOUBLE_LINE)
    status = "SUCCEEDED" if result.success else "FAILED"
    click.echo(f"Workflow for {result.domain}: {status} (stage: {result.final_stage.value})")
    click.echo(_DOUBLE_LINE)
    for step, ok in result.steps.model_dump().items():
        click.echo(f"  [{'x' if ok else ' '}] {step}")
    details = result.details
    if details.zone_id:
        click.echo(f"  Zone ID: {details.zone_id}")
    if details.nameservers:
        click.echo(f"  Nameservers: {', '.join(details.nameservers)}")
    if details.record_ids:
        click.echo(f"  DNS records: {', '.join(details.record_ids)}")
    if result.errors:
        click.echo("\nErrors:")
        for error in result.errors:
            click.echo(f"  - {error}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Launchpad: buy a domain, point its DNS at a hosting project, verify it."""
    ctx.ensure_object(dict)
    settings = Settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, log_format=settings.log_format)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("domain")
@click.pass_context
def check(ctx: click.Context, domain: str) -> None:
    """Check whether DOMAIN is available for registration."""
    from launchpad.clients import NamecheapClient

    client = NamecheapClient(ctx.obj["settings"])
    try:
        result = asyncio.run(client.check_availability(domain))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if result["error"]:
        click.echo(f"Error: {result['error']}", err=True)
        sys.exit(1)
    if result["available"]:
        click.echo(f"{domain} is AVAILABLE")
        if result["is_premium"]:
            click.echo(f"  Premium price: {result['premium_price']}")
        elif result["regular_price"]:
            click.echo(f"  Price: {result['regular_price']}")
    else:
        click.echo(f"{domain} is NOT AVAILABLE")


@cli.command()
@click.argument("domain")
@click.option("--years", default=1, type=click.IntRange(1, 10), help="Registration period")
@click.option("--no-whois-guard", is_flag=True, help="Disable WHOIS privacy")
@click.option("--dry-run", is_flag=True, help="Use mock provider responses")
@click.pass_context
def run(ctx: click.Context, domain: str, years: int, no_whois_guard: bool, dry_run: bool) -> None:
    """Purchase DOMAIN and configure DNS and hosting for it."""
    from launchpad.saga import run_provisioning_workflow

    settings: Settings = ctx.obj["settings"]
    if dry_run:
        settings = settings.model_copy(
            update={"verification_poll_interval": 0.0, "nameserver_retry_initial_delay": 0.0}
        )
    try:
        result = asyncio.run(
            run_provisioning_workflow(
                domain,
                years,
                not no_whois_guard,
                settings=settings,
                dry_run=dry_run,
            )
        )
    except WorkflowAbortedError as exc:
        _echo_result(exc.result)
        sys.exit(1)
    _echo_result(result)
    if not result.success:
        sys.exit(1)


@cli.command()
@click.argument("zip_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("project_name", required=False)
@click.pass_context
def deploy(ctx: click.Context, zip_path: Path, project_name: str | None) -> None:
    """Deploy a zipped site to GitHub + Vercel."""
    from launchpad.deploy import Deployer

    try:
        result = asyncio.run(Deployer(ctx.obj["settings"]).deploy_zip(zip_path, project_name))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not result.success:
        click.echo(f"Deployment failed: {result.error}", err=True)
        sys.exit(1)
    click.echo(f"Deployed {result.project_name}: https://{result.deployment_url}")
    if result.repo_url:
        click.echo(f"  Repository: {result.repo_url}")
    click.echo(f"  Project ID: {result.project_id}")
    click.echo("\nTo attach a domain to this project, set VERCEL_PROJECT_ID and run:")
    click.echo("  launchpad run <domain>")


@cli.command("deploy-with-domain")
@click.argument("zip_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("domain")
@click.option("--years", default=1, type=click.IntRange(1, 10), help="Registration period")
@click.pass_context
def deploy_with_domain(ctx: click.Context, zip_path: Path, domain: str, years: int) -> None:
    """Deploy a zipped site, then purchase DOMAIN and attach it."""
    from launchpad.deploy import run_workflow_with_deploy

    try:
        outcome = asyncio.run(
            run_workflow_with_deploy(zip_path, domain, years, settings=ctx.obj["settings"])
        )
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except WorkflowAbortedError as exc:
        _echo_result(exc.result)
        sys.exit(1)

    if not outcome.deploy.success:
        click.echo(f"Deployment failed: {outcome.deploy.error}", err=True)
        sys.exit(1)
    click.echo(f"Deployed: https://{outcome.deploy.deployment_url}")
    if outcome.workflow is not None:
        _echo_result(outcome.workflow)
    if not outcome.success:
        sys.exit(1)


@cli.command("zone-status")
@click.argument("zone_id")
@click.option("--wait", is_flag=True, help="Poll until the zone is active")
@click.pass_context
def zone_status(ctx: click.Context, zone_id: str, wait: bool) -> None:
    """Show (or wait for) activation of a DNS zone."""
    from launchpad.clients import CloudflareClient
    from launchpad.polling import PollStatus

    client = CloudflareClient(ctx.obj["settings"])
    try:
        if wait:
            outcome = asyncio.run(client.wait_for_zone_activation(zone_id))
            click.echo(f"Zone {zone_id}: {'active' if outcome is PollStatus.SUCCEEDED else outcome.value}")
            if outcome is not PollStatus.SUCCEEDED:
                sys.exit(1)
            return
        status = asyncio.run(client.get_zone_status(zone_id))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if status is None:
        click.echo(f"Zone {zone_id} could not be read", err=True)
        sys.exit(1)
    click.echo(f"Zone {zone_id}: {status['status']}")
    click.echo(f"  Nameservers: {', '.join(status['nameservers'])}")
