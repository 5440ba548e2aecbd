"""
InterviewSession Model - Durable Session Record

One row per hosted interview session. The row is the source of truth; the
Stream call and chat channel sharing its `call_id` are companions that exist
while the session is active.

Rows are never deleted. `status` only moves active -> completed and
`participant_id` is written at most once (both enforced by conditional
updates in SessionStore).
"""
from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
import uuid

from .database import Base
from .profile import _utcnow


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class InterviewSession(Base):
    """Hosted interview session"""
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Caller supplied, immutable
    problem = Column(String(255), nullable=False)
    difficulty = Column(String(50), nullable=False)

    # Shared key of the Stream call and chat channel
    call_id = Column(String(100), unique=True, nullable=False, index=True)

    host_id = Column(String(36), ForeignKey('profiles.id', ondelete='RESTRICT'), nullable=False, index=True)
    participant_id = Column(String(36), ForeignKey('profiles.id', ondelete='RESTRICT'), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=SessionStatus.ACTIVE.value, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    host = relationship("Profile", foreign_keys=[host_id], lazy="selectin")
    participant = relationship("Profile", foreign_keys=[participant_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'completed')", name='ck_sessions_status'),
        CheckConstraint("participant_id IS NULL OR participant_id != host_id", name='ck_sessions_distinct_roles'),
        Index('idx_sessions_status_created', 'status', 'created_at'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE.value

    @property
    def is_full(self) -> bool:
        return self.participant_id is not None

    def is_host(self, profile_id: str) -> bool:
        return self.host_id == profile_id

    def to_dict(self):
        return {
            "id": self.id,
            "problem": self.problem,
            "difficulty": self.difficulty,
            "call_id": self.call_id,
            "host_id": self.host_id,
            "participant_id": self.participant_id,
            "status": self.status,
            "host": self.host.to_summary_dict() if self.host else None,
            "participant": self.participant.to_summary_dict() if self.participant else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<InterviewSession {self.id[:8]} {self.status}>"
