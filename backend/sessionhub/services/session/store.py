"""
Session Store - Durable persistence of session records.

Single Responsibility: data access for the `sessions` table. No business
rules live here beyond the call id unique index and the two conditional
updates that make concurrent writers safe:

- atomic_set_participant: set participant only if currently unset
- set_status_completed: move active -> completed only once

Both are single UPDATE statements judged by their rowcount, never a read
followed by an unconditional write.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy import select, update, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionhub.config.constants import SESSION_LIST_MAX_LIMIT
from sessionhub.models.session import InterviewSession, SessionStatus

logger = logging.getLogger(__name__)

# Unique index on sessions.call_id (named by the model and the migration)
CALL_ID_UNIQUE_INDEX = "ix_sessions_call_id"


@dataclass(frozen=True)
class SessionFilter:
    """Filter for SessionStore.find. Unset fields do not constrain."""
    status: Optional[SessionStatus] = None
    # Match sessions where this profile is host or participant
    member_id: Optional[str] = None


def is_call_id_conflict(error: IntegrityError) -> bool:
    """True if an insert was rejected by the call_id unique index.

    PostgreSQL names the index, SQLite names the column.
    """
    message = str(error.orig)
    return CALL_ID_UNIQUE_INDEX in message or "UNIQUE constraint failed: sessions.call_id" in message


def clamp_limit(limit: Optional[int]) -> int:
    """Bound a requested page size to 1..SESSION_LIST_MAX_LIMIT."""
    if limit is None:
        return SESSION_LIST_MAX_LIMIT
    return max(1, min(int(limit), SESSION_LIST_MAX_LIMIT))


class SessionStore:
    """Data access for InterviewSession rows over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        problem: str,
        difficulty: str,
        host_id: str,
        call_id: str,
    ) -> InterviewSession:
        """
        Insert a new active session without a participant.

        Raises:
            sqlalchemy.exc.IntegrityError if call_id is already taken
            (the transaction is rolled back before re-raising).
        """
        session = InterviewSession(
            problem=problem,
            difficulty=difficulty,
            host_id=host_id,
            call_id=call_id,
            status=SessionStatus.ACTIVE.value,
            participant_id=None,
        )
        self.db.add(session)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self.find_by_id(session.id)

    async def find_by_id(self, session_id: str) -> Optional[InterviewSession]:
        """Load a session (with host/participant) bypassing stale identity-map state."""
        result = await self.db.execute(
            select(InterviewSession)
            .where(InterviewSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        criteria: SessionFilter,
        limit: Optional[int] = None,
    ) -> List[InterviewSession]:
        """
        Query sessions newest-first.

        Ordering is created_at DESC with id DESC as tie-break, so equal
        timestamps still page deterministically.
        """
        conditions = []
        if criteria.status is not None:
            conditions.append(InterviewSession.status == SessionStatus(criteria.status).value)
        if criteria.member_id is not None:
            conditions.append(
                or_(
                    InterviewSession.host_id == criteria.member_id,
                    InterviewSession.participant_id == criteria.member_id,
                )
            )

        stmt = select(InterviewSession)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(
            InterviewSession.created_at.desc(),
            InterviewSession.id.desc(),
        ).limit(clamp_limit(limit))

        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def atomic_set_participant(self, session_id: str, participant_id: str) -> bool:
        """
        Set the participant if the session is active, has none, and the
        joiner is not the host.

        Returns:
            True if this call set the participant, False otherwise.
        """
        result = await self.db.execute(
            update(InterviewSession)
            .where(
                and_(
                    InterviewSession.id == session_id,
                    InterviewSession.participant_id.is_(None),
                    InterviewSession.status == SessionStatus.ACTIVE.value,
                    InterviewSession.host_id != participant_id,
                )
            )
            .values(participant_id=participant_id, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        # Commit even when nothing matched so this connection never holds an
        # open transaction across the caller's next await
        await self.db.commit()
        updated = result.rowcount == 1
        logger.debug(f"[Store] set participant {participant_id} on {session_id}: {updated}")
        return updated

    async def set_status_completed(self, session_id: str) -> bool:
        """
        Move an active session to completed.

        Returns:
            True if this call performed the transition, False if the session
            was missing or already completed.
        """
        result = await self.db.execute(
            update(InterviewSession)
            .where(
                and_(
                    InterviewSession.id == session_id,
                    InterviewSession.status == SessionStatus.ACTIVE.value,
                )
            )
            .values(status=SessionStatus.COMPLETED.value, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        updated = result.rowcount == 1
        logger.debug(f"[Store] complete {session_id}: {updated}")
        return updated
