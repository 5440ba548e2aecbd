"""
Profile Model - Interview Platform Users

Purpose: Store the local profile of every user that can host or join a session.

Key Fields:
- `provider_id`: The user's id in the identity / messaging provider namespace.
  Inbound tokens carry it as their subject, and Stream users are keyed by it,
  so it is the foreign key into the realtime provider (never the local `id`).
"""
from sqlalchemy import Column, String, DateTime
from datetime import datetime, UTC
import uuid

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Profile(Base):
    """Profile of an authenticated user"""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Identity provider / Stream user id
    provider_id = Column(String(255), unique=True, nullable=False, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    profile_image = Column(String(500), nullable=False, default="")

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_summary_dict(self):
        """Public fields attached to session responses"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "profile_image": self.profile_image,
            "provider_id": self.provider_id,
        }

    def to_dict(self):
        return {
            **self.to_summary_dict(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Profile {self.email or self.id[:8]}>"
