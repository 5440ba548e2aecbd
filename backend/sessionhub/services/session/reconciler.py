"""
Session Reconciler - Repair sessions left in a partial state.

Drains the drift ledger. For each entry it reloads the session and brings
the Stream resources back in line with the row:

- active session    -> re-create the missing call / channel / membership
                       (create-or-get semantics, safe to repeat); if the
                       session ended meanwhile, tear down instead
- completed session -> delete the call and channel (missing counts as done)
- unknown session   -> drop the entry

Entries that still fail keep their remaining resources and are retried on
the next pass, as are entries that received new drift during the pass.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sessionhub.config.constants import (
    RECONCILE_BATCH_SIZE,
    RESOURCE_CALL,
    RESOURCE_CHANNEL,
    RESOURCE_CHANNEL_MEMBER,
)
from sessionhub.models.session import InterviewSession
from sessionhub.services.metrics import reconcile_results
from sessionhub.services.protocols import RealtimeGatewayProtocol
from .drift import DriftEntry, DriftLedger
from .exceptions import UpstreamProviderError
from .orchestrator import call_metadata, channel_name
from .store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    repaired: List[str] = field(default_factory=list)
    retained: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)


class SessionReconciler:
    """Out-of-band repair loop for partial provisioning / teardown."""

    def __init__(
        self,
        ledger: DriftLedger,
        gateway: RealtimeGatewayProtocol,
        session_factory: Callable[[], AsyncSession],
        batch_size: int = RECONCILE_BATCH_SIZE,
    ):
        self.ledger = ledger
        self.gateway = gateway
        self.session_factory = session_factory
        self.batch_size = batch_size

    async def _reprovision(self, session: InterviewSession, resources: List[str]) -> List[str]:
        """Re-create what an active session is missing. Returns what is still missing."""
        owner = session.host.provider_id
        members = [owner]
        if session.participant is not None:
            members.append(session.participant.provider_id)

        remaining: List[str] = []
        if RESOURCE_CALL in resources:
            try:
                await self.gateway.create_or_get_call(session.call_id, owner, call_metadata(session))
            except UpstreamProviderError:
                remaining.append(RESOURCE_CALL)

        if RESOURCE_CHANNEL in resources:
            try:
                await self.gateway.create_channel(session.call_id, channel_name(session.problem), owner, members)
            except UpstreamProviderError:
                remaining.append(RESOURCE_CHANNEL)
        elif RESOURCE_CHANNEL_MEMBER in resources and session.participant is not None:
            try:
                await self.gateway.add_channel_member(session.call_id, session.participant.provider_id)
            except UpstreamProviderError:
                remaining.append(RESOURCE_CHANNEL_MEMBER)

        return remaining

    async def _teardown(self, session: InterviewSession) -> List[str]:
        """Delete both resources of a completed session. Returns what is still present."""
        remaining: List[str] = []
        try:
            await self.gateway.delete_call(session.call_id, hard=True)
        except UpstreamProviderError:
            remaining.append(RESOURCE_CALL)
        try:
            await self.gateway.delete_channel(session.call_id)
        except UpstreamProviderError:
            remaining.append(RESOURCE_CHANNEL)
        return remaining

    async def _load(self, session_id: str) -> Optional[InterviewSession]:
        async with self.session_factory() as db:
            return await SessionStore(db).find_by_id(session_id)

    async def reconcile_entry(self, entry: DriftEntry) -> str:
        """
        Reconcile one ledger entry.

        Returns:
            'repaired', 'retained' or 'dropped'
        """
        session = await self._load(entry.session_id)

        if session is None:
            logger.warning(f"[Reconciler] Session {entry.session_id} no longer exists, dropping entry")
            await self.ledger.resolve(entry)
            return "dropped"

        if session.is_active:
            remaining = await self._reprovision(session, entry.resources)
            # The host may have ended it while resources were being re-created
            session = await self._load(entry.session_id)
            if not session.is_active:
                logger.warning(f"[Reconciler] Session {session.id} ended during repair, tearing down")
                remaining = await self._teardown(session)
        else:
            remaining = await self._teardown(session)

        if not remaining:
            if not await self.ledger.resolve(entry):
                return "retained"
            logger.info(f"[Reconciler] Session {session.id} ({session.status}) repaired")
            return "repaired"

        entry.resources = remaining
        entry.attempts += 1
        await self.ledger.update(entry)
        logger.warning(
            f"[Reconciler] Session {session.id} still drifting after {entry.attempts} attempt(s): {remaining}"
        )
        return "retained"

    async def run_once(self) -> ReconcileReport:
        """Process one batch of ledger entries."""
        report = ReconcileReport()
        for entry in await self.ledger.entries(limit=self.batch_size):
            outcome = await self.reconcile_entry(entry)
            reconcile_results.labels(outcome=outcome).inc()
            getattr(report, outcome).append(entry.session_id)
        if report.repaired or report.retained or report.dropped:
            logger.info(
                f"[Reconciler] Pass done: repaired={len(report.repaired)} "
                f"retained={len(report.retained)} dropped={len(report.dropped)}"
            )
        return report

    async def run_forever(self, interval_seconds: int):
        """Background task: reconcile every interval until cancelled."""
        logger.info("Starting session reconciler background task")

        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Session reconciler error: {e}")

            await asyncio.sleep(interval_seconds)
