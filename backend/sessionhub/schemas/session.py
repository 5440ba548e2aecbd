from typing import List, Optional
from pydantic import BaseModel


class CreateSessionRequest(BaseModel):
    # Optional here so an empty/missing field reaches the orchestrator and
    # is reported as a 400 ValidationError rather than a 422
    problem: Optional[str] = None
    difficulty: Optional[str] = None


class ProfileSummary(BaseModel):
    id: str
    name: str
    email: str
    profile_image: str
    provider_id: str


class SessionInfo(BaseModel):
    id: str
    problem: str
    difficulty: str
    call_id: str
    host_id: str
    participant_id: Optional[str]
    status: str
    host: Optional[ProfileSummary]
    participant: Optional[ProfileSummary]
    created_at: Optional[str]
    updated_at: Optional[str]


class SessionResponse(BaseModel):
    session: SessionInfo


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]


class EndSessionResponse(BaseModel):
    session: SessionInfo
    message: str

