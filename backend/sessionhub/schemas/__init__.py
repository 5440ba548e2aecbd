"""
Schemas Package

Pydantic models for the REST API.
"""

from sessionhub.schemas.session import (
    CreateSessionRequest,
    ProfileSummary,
    SessionInfo,
    SessionResponse,
    SessionListResponse,
    EndSessionResponse,
)
from sessionhub.schemas.profile import (
    SyncProfileRequest,
    ProfileResponse,
    ChatTokenResponse,
)

__all__ = [
    "CreateSessionRequest",
    "ProfileSummary",
    "SessionInfo",
    "SessionResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "SyncProfileRequest",
    "ProfileResponse",
    "ChatTokenResponse",
]
