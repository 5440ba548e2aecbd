"""
Sessions API - Endpoints for interview session management

Implements:
- Session creation (record + Stream call + chat channel)
- Joining as the participant
- Ending a session (host only)
- Active / recent session lists and session details
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from sessionhub.api.deps import get_current_profile, get_orchestrator
from sessionhub.config.constants import SESSION_LIST_MAX_LIMIT
from sessionhub.models.profile import Profile
from sessionhub.services.identity import CallerIdentity
from sessionhub.services.session import (
    SessionOrchestrator,
    SessionServiceError,
    ValidationError,
    ForbiddenError,
    NotFoundError,
    SessionFullError,
    AlreadyEndedError,
    PartialStateError,
)
from sessionhub.schemas.session import (
    CreateSessionRequest,
    SessionResponse,
    SessionListResponse,
    EndSessionResponse,
)

router = APIRouter()


def _http_error(status_code: int, e: SessionServiceError) -> HTTPException:
    return HTTPException(status_code=status_code, detail=e.to_detail())


def _partial_state_error(e: PartialStateError) -> HTTPException:
    """502 carrying the committed session so the client knows what was saved."""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={
            **e.to_detail(),
            "resources": e.resources,
            "session": e.session.to_dict(),
        },
    )


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    req: CreateSessionRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
    current_profile: Profile = Depends(get_current_profile),
):
    """
    Create a session hosted by the current user.

    Creates:
    - Session record (status=active, no participant)
    - Stream video call and chat channel under the session's call id
    """
    try:
        session = await orchestrator.create_session(
            CallerIdentity.from_profile(current_profile),
            req.problem,
            req.difficulty,
        )
    except ValidationError as e:
        raise _http_error(400, e)
    except PartialStateError as e:
        raise _partial_state_error(e)
    except SessionServiceError as e:
        raise _http_error(500, e)

    return SessionResponse(session=session.to_dict())


@router.get("/sessions/active", response_model=SessionListResponse)
async def get_active_sessions(
    limit: int = Query(SESSION_LIST_MAX_LIMIT, ge=1),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
    current_profile: Profile = Depends(get_current_profile),
):
    """Latest active sessions (newest first) with host info."""
    sessions = await orchestrator.get_active_sessions(limit)
    return SessionListResponse(sessions=[s.to_dict() for s in sessions])


@router.get("/sessions/my-recent", response_model=SessionListResponse)
@router.get("/sessions/mine", response_model=SessionListResponse)
async def get_my_recent_sessions(
    limit: int = Query(SESSION_LIST_MAX_LIMIT, ge=1),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
    current_profile: Profile = Depends(get_current_profile),
):
    """Completed sessions the current user hosted or joined (newest first)."""
    sessions = await orchestrator.get_my_recent_sessions(
        CallerIdentity.from_profile(current_profile), limit
    )
    return SessionListResponse(sessions=[s.to_dict() for s in sessions])


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
    current_profile: Profile = Depends(get_current_profile),
):
    """Session details with host and participant info."""
    try:
        session = await orchestrator.get_session(session_id)
    except NotFoundError as e:
        raise _http_error(404, e)

    return SessionResponse(session=session.to_dict())


@router.post("/sessions/{session_id}/join", response_model=SessionResponse)
async def join_session(
    session_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
    current_profile: Profile = Depends(get_current_profile),
):
    """
    Join a session as its participant.

    Adds the current user to the session's chat channel.
    """
    try:
        session = await orchestrator.join_session(
            CallerIdentity.from_profile(current_profile), session_id
        )
    except NotFoundError as e:
        raise _http_error(404, e)
    except SessionFullError as e:
        raise _http_error(409, e)
    except ForbiddenError as e:
        raise _http_error(403, e)
    except AlreadyEndedError as e:
        raise _http_error(400, e)
    except PartialStateError as e:
        raise _partial_state_error(e)
    except SessionServiceError as e:
        raise _http_error(500, e)

    return SessionResponse(session=session.to_dict())


@router.post("/sessions/{session_id}/end", response_model=EndSessionResponse)
async def end_session(
    session_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
    current_profile: Profile = Depends(get_current_profile),
):
    """
    End a session.

    Only the host can end it. Deletes the Stream call and chat channel.
    """
    try:
        ended = await orchestrator.end_session(
            CallerIdentity.from_profile(current_profile), session_id
        )
    except NotFoundError as e:
        raise _http_error(404, e)
    except ForbiddenError as e:
        raise _http_error(403, e)
    except AlreadyEndedError as e:
        raise _http_error(400, e)
    except PartialStateError as e:
        raise _partial_state_error(e)
    except SessionServiceError as e:
        raise _http_error(500, e)

    return EndSessionResponse(session=ended.session.to_dict(), message=ended.message)
