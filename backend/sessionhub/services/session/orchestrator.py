"""
Session Orchestrator - Interview session lifecycle.

Creates, joins and ends sessions while keeping three things in step:
- the durable session row (SessionStore)
- the Stream video call keyed by the session's call id
- the Stream chat channel keyed by the same call id

The row is always written first and is the source of truth. Provider calls
that fail afterwards never undo it: they are recorded in the drift ledger
and reported as PartialProvisioningError / PartialTeardownError so callers
can tell "nothing happened" apart from "state needs reconciliation".

The orchestrator holds no shared state and never retries; one instance is
built per request around a request-scoped store.
"""
import logging
import secrets
import time
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from sessionhub.config.constants import (
    CALL_ID_MAX_ATTEMPTS,
    CALL_ID_PREFIX,
    CALL_ID_RANDOM_BYTES,
    CHANNEL_NAME_TEMPLATE,
    RESOURCE_CALL,
    RESOURCE_CHANNEL,
    RESOURCE_CHANNEL_MEMBER,
)
from sessionhub.models.session import InterviewSession, SessionStatus
from sessionhub.services.identity import CallerIdentity
from sessionhub.services.metrics import partial_failures, session_operations
from sessionhub.services.protocols import DriftRecorderProtocol, RealtimeGatewayProtocol
from .exceptions import (
    AlreadyEndedError,
    ForbiddenError,
    NotFoundError,
    PartialProvisioningError,
    PartialStateError,
    PartialTeardownError,
    SessionFullError,
    SessionServiceError,
    UpstreamProviderError,
    ValidationError,
)
from .store import SessionFilter, SessionStore, is_call_id_conflict

logger = logging.getLogger(__name__)

END_CONFIRMATION = "Session ended successfully"


def generate_call_id() -> str:
    """session_<epoch millis>_<64 random bits as hex>"""
    millis = time.time_ns() // 1_000_000
    return f"{CALL_ID_PREFIX}_{millis}_{secrets.token_hex(CALL_ID_RANDOM_BYTES)}"


def channel_name(problem: str) -> str:
    return CHANNEL_NAME_TEMPLATE.format(problem=problem)


def call_metadata(session: InterviewSession) -> dict:
    return {
        "problem": session.problem,
        "difficulty": session.difficulty,
        "sessionId": session.id,
    }


@dataclass
class SessionEnded:
    session: InterviewSession
    message: str = END_CONFIRMATION


class SessionOrchestrator:
    """Coordinates the session store with the realtime provider."""

    def __init__(
        self,
        store: SessionStore,
        gateway: RealtimeGatewayProtocol,
        drift: Optional[DriftRecorderProtocol] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.drift = drift

    # === Failure reporting ===

    def _failure(self, operation: str, error: SessionServiceError) -> SessionServiceError:
        logger.warning(
            f"[Orchestrator] {operation} failed session={error.session_id}: "
            f"{error.kind}: {error.message}"
        )
        session_operations.labels(operation=operation, outcome=error.kind).inc()
        return error

    async def _partial(self, error: PartialStateError) -> PartialStateError:
        session = error.session
        logger.error(
            f"[Orchestrator] {error.operation} left session={session.id} "
            f"call={session.call_id} in a partial state: {error.kind} resources={error.resources}"
        )
        partial_failures.labels(operation=error.operation, kind=error.kind).inc()
        session_operations.labels(operation=error.operation, outcome=error.kind).inc()
        if self.drift is not None:
            await self.drift.record(session.id, session.call_id, error.operation, error.resources)
        return error

    def _succeeded(self, operation: str, session: InterviewSession):
        session_operations.labels(operation=operation, outcome="ok").inc()
        logger.info(f"[Orchestrator] {operation} ok session={session.id} status={session.status}")

    async def _load(self, operation: str, session_id: str) -> InterviewSession:
        session = await self.store.find_by_id(session_id)
        if not session:
            raise self._failure(operation, NotFoundError("Session not found", session_id=session_id))
        return session

    # === Create ===

    async def _insert_with_fresh_call_id(
        self,
        caller: CallerIdentity,
        problem: str,
        difficulty: str,
    ) -> InterviewSession:
        for attempt in range(1, CALL_ID_MAX_ATTEMPTS + 1):
            call_id = generate_call_id()
            try:
                return await self.store.create(
                    problem=problem,
                    difficulty=difficulty,
                    host_id=caller.local_id,
                    call_id=call_id,
                )
            except IntegrityError as e:
                if not is_call_id_conflict(e):
                    logger.error(f"[Orchestrator] create insert rejected for host={caller.local_id}: {e.orig!r}")
                    raise
                logger.warning(f"[Orchestrator] call id collision (attempt {attempt}): {call_id}")
        raise self._failure("create", SessionServiceError("Could not allocate a session"))

    async def create_session(
        self,
        caller: CallerIdentity,
        problem: Optional[str],
        difficulty: Optional[str],
    ) -> InterviewSession:
        """
        Create a session hosted by the caller, then its call and channel.

        Raises:
            ValidationError: problem or difficulty missing/empty (no side effects)
            PartialProvisioningError: session saved but call and/or channel missing
        """
        problem = (problem or "").strip()
        difficulty = (difficulty or "").strip()
        if not problem or not difficulty:
            raise self._failure("create", ValidationError("Problem and Difficulty are required"))

        session = await self._insert_with_fresh_call_id(caller, problem, difficulty)

        missing: List[str] = []
        try:
            await self.gateway.create_or_get_call(session.call_id, caller.provider_id, call_metadata(session))
        except UpstreamProviderError as e:
            logger.error(f"[Orchestrator] create session={session.id}: call provisioning failed ({e.message})")
            missing.append(RESOURCE_CALL)

        try:
            await self.gateway.create_channel(
                session.call_id,
                channel_name(session.problem),
                caller.provider_id,
                [caller.provider_id],
            )
        except UpstreamProviderError as e:
            logger.error(f"[Orchestrator] create session={session.id}: channel provisioning failed ({e.message})")
            missing.append(RESOURCE_CHANNEL)

        if missing:
            raise await self._partial(PartialProvisioningError(
                "Session was created but its realtime resources are not ready",
                session=session,
                resources=missing,
                operation="create",
            ))

        self._succeeded("create", session)
        return session

    # === Join ===

    async def join_session(self, caller: CallerIdentity, session_id: str) -> InterviewSession:
        """
        Join a session as its participant and add the caller to its chat.

        Raises:
            NotFoundError, ForbiddenError (caller is the host),
            AlreadyEndedError, SessionFullError,
            PartialProvisioningError: joined but chat membership missing
        """
        session = await self._load("join", session_id)

        if session.is_host(caller.local_id):
            raise self._failure("join", ForbiddenError("The host cannot join their own session", session_id=session.id))
        if not session.is_active:
            raise self._failure("join", AlreadyEndedError("Session is already completed", session_id=session.id))
        if session.is_full:
            raise self._failure("join", SessionFullError("Session is full", session_id=session.id))

        if not await self.store.atomic_set_participant(session.id, caller.local_id):
            # Lost a race: report what the winner left behind
            current = await self._load("join", session.id)
            if not current.is_active:
                raise self._failure("join", AlreadyEndedError("Session is already completed", session_id=session.id))
            raise self._failure("join", SessionFullError("Session is full", session_id=session.id))

        session = await self._load("join", session.id)

        try:
            await self.gateway.add_channel_member(session.call_id, caller.provider_id)
        except UpstreamProviderError as e:
            logger.error(f"[Orchestrator] join session={session.id}: adding chat member failed ({e.message})")
            raise await self._partial(PartialProvisioningError(
                "Joined the session but the chat channel could not be updated",
                session=session,
                resources=[RESOURCE_CHANNEL_MEMBER],
                operation="join",
            ))

        self._succeeded("join", session)
        return session

    # === End ===

    async def end_session(self, caller: CallerIdentity, session_id: str) -> SessionEnded:
        """
        End a session (host only) and delete its call and channel.

        Raises:
            NotFoundError, ForbiddenError (not the host), AlreadyEndedError,
            PartialTeardownError: completed but realtime resources remain
        """
        session = await self._load("end", session_id)

        if not session.is_host(caller.local_id):
            raise self._failure("end", ForbiddenError("Only the host can end the session", session_id=session.id))
        if not session.is_active:
            raise self._failure("end", AlreadyEndedError("Session is already completed", session_id=session.id))

        if not await self.store.set_status_completed(session.id):
            raise self._failure("end", AlreadyEndedError("Session is already completed", session_id=session.id))

        session = await self._load("end", session.id)

        orphaned: List[str] = []
        try:
            await self.gateway.delete_call(session.call_id, hard=True)
        except UpstreamProviderError as e:
            logger.error(f"[Orchestrator] end session={session.id}: deleting call failed ({e.message})")
            orphaned.append(RESOURCE_CALL)

        try:
            await self.gateway.delete_channel(session.call_id)
        except UpstreamProviderError as e:
            logger.error(f"[Orchestrator] end session={session.id}: deleting channel failed ({e.message})")
            orphaned.append(RESOURCE_CHANNEL)

        if orphaned:
            raise await self._partial(PartialTeardownError(
                "Session ended but its realtime resources could not be removed",
                session=session,
                resources=orphaned,
                operation="end",
            ))

        self._succeeded("end", session)
        return SessionEnded(session=session)

    # === Queries ===

    async def get_active_sessions(self, limit: Optional[int] = None) -> List[InterviewSession]:
        """Active sessions, newest first, host attached."""
        return await self.store.find(SessionFilter(status=SessionStatus.ACTIVE), limit)

    async def get_my_recent_sessions(
        self,
        caller: CallerIdentity,
        limit: Optional[int] = None,
    ) -> List[InterviewSession]:
        """Completed sessions the caller hosted or joined, newest first."""
        return await self.store.find(
            SessionFilter(status=SessionStatus.COMPLETED, member_id=caller.local_id),
            limit,
        )

    async def get_session(self, session_id: str) -> InterviewSession:
        return await self._load("get", session_id)
