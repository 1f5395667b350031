"""Best-effort rollback of the reversible side effects of a failed saga run."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from launchpad.metrics import compensation_actions_total
from launchpad.models.compensation import (
    CompensationAction,
    CompensationKind,
    CompensationOutcome,
    CompensationReport,
)

if TYPE_CHECKING:
    from launchpad.models.workflow import WorkflowState
    from launchpad.protocols import DNSProviderPort, HostingPort

logger = structlog.get_logger()


class Compensator:
    """Undo what a saga run created, newest dependency first.

    Order: hosting domain, then DNS records, then the purchase (which only
    yields a manual-action marker, since registrations cannot be reversed).
    Every action is attempted independently and recorded in the report;
    nothing here raises.
    """

    def __init__(self, dns: DNSProviderPort, hosting: HostingPort) -> None:
        self.dns = dns
        self.hosting = hosting

    async def compensate(self, state: WorkflowState) -> CompensationReport:
        logger.warning("Initiating rollback", domain=state.domain)

        actions = [await self._remove_hosting_domain(state)]
        actions.extend(await self._delete_records(state))
        actions.append(self._flag_purchase(state))

        for action in actions:
            compensation_actions_total.labels(
                action=action.kind.value, outcome=action.outcome.value
            ).inc()

        report = CompensationReport(actions=actions)
        logger.info(
            "Rollback completed",
            failures=len(report.failures),
            manual_actions=len(report.manual_actions),
        )
        return report

    async def _remove_hosting_domain(self, state: WorkflowState) -> CompensationAction:
        kind = CompensationKind.HOSTING_REMOVAL
        if not state.hosting_domain_added:
            return CompensationAction(
                kind=kind,
                outcome=CompensationOutcome.SKIPPED,
                target=state.domain,
                message="domain was not attached to the hosting platform by this run",
            )
        try:
            result = await self.hosting.remove_domain(state.domain)
        except Exception as exc:
            logger.error("Failed to remove domain from hosting platform", error=str(exc))
            return CompensationAction(
                kind=kind, outcome=CompensationOutcome.FAILED, target=state.domain, message=str(exc)
            )
        if not result["success"]:
            logger.error("Failed to remove domain from hosting platform", error=result["error"])
            return CompensationAction(
                kind=kind,
                outcome=CompensationOutcome.FAILED,
                target=state.domain,
                message=result["error"],
            )
        logger.info("Removed domain from hosting platform", domain=state.domain)
        return CompensationAction(kind=kind, outcome=CompensationOutcome.SUCCEEDED, target=state.domain)

    async def _delete_records(self, state: WorkflowState) -> list[CompensationAction]:
        kind = CompensationKind.RECORD_DELETION
        if not state.zone_id or not state.created_record_ids:
            return [
                CompensationAction(
                    kind=kind,
                    outcome=CompensationOutcome.SKIPPED,
                    message="no DNS records were created",
                )
            ]

        actions: list[CompensationAction] = []
        for record_id in state.created_record_ids:
            try:
                result = await self.dns.delete_dns_record(state.zone_id, record_id)
                error = "" if result["success"] else result["error"] or "deletion rejected"
            except Exception as exc:
                error = str(exc)
            if error:
                logger.error("Failed to delete DNS record", record_id=record_id, error=error)
                actions.append(
                    CompensationAction(
                        kind=kind, outcome=CompensationOutcome.FAILED, target=record_id, message=error
                    )
                )
            else:
                actions.append(
                    CompensationAction(kind=kind, outcome=CompensationOutcome.SUCCEEDED, target=record_id)
                )
        logger.info(
            "Deleted DNS records",
            deleted=sum(a.outcome is CompensationOutcome.SUCCEEDED for a in actions),
            total=len(actions),
        )
        return actions

    def _flag_purchase(self, state: WorkflowState) -> CompensationAction:
        kind = CompensationKind.PURCHASE
        if not state.domain_purchased:
            return CompensationAction(
                kind=kind,
                outcome=CompensationOutcome.SKIPPED,
                target=state.domain,
                message="domain was not purchased",
            )
        message = (
            f"domain {state.domain} was purchased and cannot be refunded automatically; "
            "contact the registrar if a refund is needed"
        )
        logger.warning("MANUAL ACTION REQUIRED", domain=state.domain, detail=message)
        return CompensationAction(
            kind=kind,
            outcome=CompensationOutcome.MANUAL_ACTION_REQUIRED,
            target=state.domain,
            message=message,
        )
