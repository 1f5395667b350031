"""Provisioning saga: domain purchase through hosting verification.

Steps run strictly in order. Each step that creates something outside
this process records it in WorkflowState as soon as the creating call
returns, so a failure at any later point can be compensated. The purchase
itself is never undone, and a slow verification is reported rather than
rolled back.
"""

from __future__ import annotations

import asyncio
import re
import time
import uuid
from typing import TYPE_CHECKING

import structlog

from launchpad.compensation import Compensator
from launchpad.exceptions import ProviderError, WorkflowAbortedError
from launchpad.metrics import saga_duration_seconds, saga_steps_total
from launchpad.models.dns import DNSRecord, RecordType
from launchpad.models.workflow import (
    STAGE_ORDER,
    SagaStage,
    StepFlags,
    WorkflowDetails,
    WorkflowResult,
    WorkflowState,
)
from launchpad.polling import PollStatus, poll
from launchpad.retry import retry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from launchpad.clients.namecheap import NameserverResult
    from launchpad.config import Settings
    from launchpad.models.compensation import CompensationReport
    from launchpad.protocols import DNSProviderPort, HostingPort, RegistrarPort

logger = structlog.get_logger()

_DOMAIN_RE = re.compile(
    r"^(?=.{4,253}$)([a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z][a-z0-9-]{0,61}[a-z0-9]$"
)


def is_valid_domain(domain: str) -> bool:
    return bool(_DOMAIN_RE.match(domain))


class _Run:
    """Per-run bookkeeping. Never shared between runs."""

    def __init__(self, state: WorkflowState) -> None:
        self.state = state
        self.stage = SagaStage.INIT
        self.steps: dict[str, bool] = dict.fromkeys(StepFlags.model_fields, False)
        self.details: dict[str, object] = {}
        self.errors: list[str] = []
        self.compensation: CompensationReport | None = None

    def advance(self, stage: SagaStage) -> None:
        expected = STAGE_ORDER[STAGE_ORDER.index(self.stage) + 1]
        if stage is not expected:
            raise RuntimeError(f"Illegal saga transition {self.stage} -> {stage}")
        self.stage = stage

    def mark(self, step: str, ok: bool) -> None:
        self.steps[step] = ok
        saga_steps_total.labels(step=step, status="success" if ok else "failure").inc()

    def result(self) -> WorkflowResult:
        steps = StepFlags(**self.steps)
        return WorkflowResult(
            domain=self.state.domain,
            success=steps.all_passed,
            steps=steps,
            details=WorkflowDetails(**self.details, record_ids=list(self.state.created_record_ids)),
            errors=list(self.errors),
            final_stage=self.stage,
            compensation=self.compensation,
        )


class ProvisioningSaga:
    """Coordinates registrar, DNS provider, and hosting platform for one domain at a time.

    The saga object itself holds no per-run state, so one instance may run
    several domains concurrently.
    """

    def __init__(
        self,
        registrar: RegistrarPort,
        dns: DNSProviderPort,
        hosting: HostingPort,
        settings: Settings,
        compensator: Compensator | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.registrar = registrar
        self.dns = dns
        self.hosting = hosting
        self.settings = settings
        self.compensator = compensator or Compensator(dns=dns, hosting=hosting)
        self._sleep = sleep

    async def run(self, domain: str, years: int = 1, whois_guard: bool = True) -> WorkflowResult:
        """Provision *domain* end to end.

        Raises WorkflowAbortedError (carrying the result) only when an
        unexpected exception escaped a step; compensation has already run
        by then. Expected failures are reported in the returned result.
        """
        run = _Run(WorkflowState(domain=domain.strip().lower(), years=years, whois_guard=whois_guard))
        started = time.monotonic()
        with structlog.contextvars.bound_contextvars(
            domain=run.state.domain, run_id=uuid.uuid4().hex[:12]
        ):
            try:
                await self._execute(run)
            except Exception as exc:
                logger.exception("Unexpected error during provisioning")
                run.errors.append(f"Unexpected: {exc}")
                run.stage = SagaStage.FAILED
                await self._rollback(run)
                raise WorkflowAbortedError(str(exc), run.result()) from exc
            finally:
                saga_duration_seconds.observe(time.monotonic() - started)

            result = run.result()
            if result.success:
                logger.info(
                    "Provisioning completed",
                    zone_id=result.details.zone_id,
                    nameservers=result.details.nameservers,
                )
            else:
                logger.warning("Provisioning finished with failures", errors=result.errors)
            return result

    async def _execute(self, run: _Run) -> None:
        if not await self._check_availability(run):
            return
        if not await self._purchase(run):
            return
        nameservers = await self._create_zone(run)
        if nameservers is None:
            return
        if not await self._delegate_nameservers(run, nameservers):
            return
        await self._create_records(run)
        verification_notes = await self._add_hosting_domain(run)
        if verification_notes is None:
            return
        await self._verify(run, verification_notes)

    async def _abort(self, run: _Run, message: str) -> None:
        logger.error("Step failed, rolling back", error=message)
        run.errors.append(message)
        run.stage = SagaStage.FAILED
        await self._rollback(run)

    async def _rollback(self, run: _Run) -> None:
        run.compensation = await self.compensator.compensate(run.state)
        run.errors.extend(run.compensation.error_messages())

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _check_availability(self, run: _Run) -> bool:
        domain = run.state.domain
        logger.info("Step 1: checking availability")
        if not is_valid_domain(domain):
            run.errors.append(f"Availability: Invalid domain format: {domain}")
            run.mark("availability_check", False)
            run.stage = SagaStage.FAILED
            return False

        result = await self.registrar.check_availability(domain)
        if not result["available"]:
            message = result["error"] or "Domain is not available"
            logger.error("Domain is not available", reason=message)
            run.errors.append(f"Availability: {message}")
            run.mark("availability_check", False)
            run.stage = SagaStage.FAILED
            return False

        if result["is_premium"]:
            logger.warning("Premium domain", price=result["premium_price"])
        run.mark("availability_check", True)
        run.advance(SagaStage.AVAILABILITY_CHECKED)
        return True

    async def _purchase(self, run: _Run) -> bool:
        state = run.state
        logger.info("Step 2: purchasing domain", years=state.years)
        result = await self.registrar.purchase_domain(state.domain, state.years, state.whois_guard)
        if not result["success"]:
            logger.error("Purchase failed", error=result["error"])
            run.errors.append(f"Purchase: {result['error']}")
            run.mark("domain_purchase", False)
            run.stage = SagaStage.FAILED
            return False

        state.domain_purchased = True
        run.details.update(
            domain_id=result["domain_id"],
            transaction_id=result["transaction_id"],
            charged_amount=result["charged_amount"],
        )
        run.mark("domain_purchase", True)
        run.advance(SagaStage.PURCHASED)
        logger.info(
            "Domain purchased",
            domain_id=result["domain_id"],
            charged_amount=result["charged_amount"],
        )
        return True

    async def _create_zone(self, run: _Run) -> list[str] | None:
        state = run.state
        logger.info("Step 3: creating DNS zone")
        zone = await self.dns.create_zone(state.domain)
        if not zone["success"]:
            run.mark("zone_created", False)
            await self._abort(run, f"Zone: {zone['error']}")
            return None

        state.zone_id = zone["zone_id"]
        if zone["already_exists"]:
            logger.warning("Reusing existing zone", zone_id=zone["zone_id"])
        run.details.update(zone_id=zone["zone_id"], nameservers=list(zone["nameservers"]))
        run.mark("zone_created", True)
        run.advance(SagaStage.ZONE_CREATED)
        logger.info("Zone ready", zone_id=zone["zone_id"], nameservers=zone["nameservers"])
        return list(zone["nameservers"])

    async def _delegate_nameservers(self, run: _Run, nameservers: list[str]) -> bool:
        domain = run.state.domain
        logger.info("Step 4: delegating nameservers", nameservers=nameservers)
        if not nameservers:
            run.mark("nameservers_set", False)
            await self._abort(run, "Nameservers: zone has no assigned nameservers")
            return False

        async def delegate_nameservers() -> NameserverResult:
            result = await self.registrar.set_nameservers(domain, nameservers)
            if not result["success"]:
                raise ProviderError(result["error"] or "Nameserver update was not confirmed")
            return result

        try:
            await retry(
                delegate_nameservers,
                max_attempts=self.settings.nameserver_retry_attempts,
                initial_delay=self.settings.nameserver_retry_initial_delay,
                max_delay=self.settings.nameserver_retry_max_delay,
                on_retry=lambda attempt, exc: logger.warning(
                    "Nameserver update failed", attempt=attempt, error=str(exc)
                ),
                sleep=self._sleep,
            )
        except ProviderError as exc:
            run.mark("nameservers_set", False)
            await self._abort(run, f"Nameservers: {exc}")
            return False

        run.mark("nameservers_set", True)
        run.advance(SagaStage.NAMESERVERS_SET)
        return True

    async def _create_records(self, run: _Run) -> None:
        state = run.state
        assert state.zone_id is not None
        records = self.hosting.hosting_records(state.domain)
        logger.info("Step 5: creating DNS records", count=len(records))

        failures: list[str] = []
        for record in records:
            result = await self.dns.create_dns_record(state.zone_id, record)
            if result["success"] and result["record_id"]:
                state.created_record_ids.append(result["record_id"])
            else:
                failures.append(f"{record.describe()}: {result['error']}")

        if failures:
            # Partial batches continue; the operator finishes the rest by hand
            logger.warning("Some DNS records failed", errors=failures)
            run.errors.extend(failures)
        else:
            logger.info("DNS records created", record_ids=state.created_record_ids)
        run.mark("dns_records", not failures)
        run.advance(SagaStage.RECORDS_CREATED)

    async def _add_hosting_domain(self, run: _Run) -> list[str] | None:
        """Attach the domain to the hosting project.

        Returns notes about verification records that could not be
        published (reported only if verification does not succeed), or
        None when the step failed and the run was rolled back.
        """
        state = run.state
        logger.info("Step 6: adding domain to hosting platform")
        result = await self.hosting.add_domain(state.domain)
        if not result["success"]:
            run.mark("hosting_domain_added", False)
            await self._abort(run, f"Hosting: {result['error']}")
            return None

        if result["already_attached"]:
            # Attached by an earlier run; rollback must leave it in place
            logger.info("Domain was already on the hosting project", domain=state.domain)
        else:
            state.hosting_domain_added = True
        run.mark("hosting_domain_added", True)
        run.advance(SagaStage.HOSTING_ADDED)

        notes: list[str] = []
        if result["verification_required"]:
            logger.warning("Domain requires verification, publishing TXT records")
            assert state.zone_id is not None
            for challenge in result["verification_records"]:
                if challenge.type.upper() != RecordType.TXT:
                    logger.warning("Skipping unsupported verification record", type=challenge.type)
                    notes.append(
                        f"Verification {challenge.type} {challenge.name}: unsupported record type"
                    )
                    continue
                record = DNSRecord(type=RecordType.TXT, name=challenge.name, content=challenge.value)
                created = await self.dns.create_dns_record(state.zone_id, record)
                if created["success"] and created["record_id"]:
                    state.created_record_ids.append(created["record_id"])
                else:
                    notes.append(f"Verification {record.describe()}: {created['error']}")
        return notes

    async def _verify(self, run: _Run, verification_notes: list[str]) -> None:
        domain = run.state.domain
        attempts = self.settings.verification_poll_attempts
        logger.info("Step 7: waiting for hosting verification", max_attempts=attempts)

        async def check_verified() -> PollStatus:
            result = await self.hosting.check_verified(domain)
            if result["verified"]:
                return PollStatus.SUCCEEDED
            if result["error"]:
                logger.debug("Verification check error", error=result["error"])
            return PollStatus.PENDING

        status = await poll(
            check_verified,
            attempts,
            self.settings.verification_poll_interval,
            label="hosting_verification",
            sleep=self._sleep,
        )
        if status is PollStatus.SUCCEEDED:
            run.mark("hosting_verified", True)
            run.advance(SagaStage.VERIFIED)
            return

        # Everything created so far is valid; keep it and ask for follow-up
        run.mark("hosting_verified", False)
        run.errors.extend(verification_notes)
        run.errors.append(
            f"Hosting verification: not verified after {attempts} attempts - "
            "requires manual review"
        )


async def run_provisioning_workflow(
    domain: str,
    years: int = 1,
    whois_guard: bool = True,
    *,
    settings: Settings | None = None,
    hosting: HostingPort | None = None,
    dry_run: bool = False,
) -> WorkflowResult:
    """Build the provider clients from *settings* and run one saga.

    *hosting* replaces the default hosting client, e.g. one bound to a
    project that was just deployed.
    """
    from launchpad.clients import CloudflareClient, NamecheapClient, VercelClient
    from launchpad.config import Settings

    settings = settings or Settings()
    dns = CloudflareClient(settings, dry_run=dry_run)
    saga = ProvisioningSaga(
        registrar=NamecheapClient(settings, dry_run=dry_run),
        dns=dns,
        hosting=hosting or VercelClient(settings, dry_run=dry_run),
        settings=settings,
    )
    return await saga.run(domain, years=years, whois_guard=whois_guard)
