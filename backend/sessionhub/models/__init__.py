"""
Database Models Package

This module exports all SQLAlchemy models for the interview session service.

Tables:
1. profiles - Users that host or join sessions
2. sessions - Durable session records (paired with a Stream call + channel)
"""

from .database import (
    engine,
    AsyncSessionLocal,
    Base,
    init_db,
    reset_db,
    get_db,
)

from .profile import Profile
from .session import InterviewSession, SessionStatus

__all__ = [
    # Database utilities
    "engine",
    "AsyncSessionLocal",
    "Base",
    "init_db",
    "reset_db",
    "get_db",

    # Models
    "Profile",
    "InterviewSession",
    "SessionStatus",
]
