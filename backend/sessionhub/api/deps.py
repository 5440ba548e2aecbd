from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sessionhub.models.database import get_db
from sessionhub.models.profile import Profile
from sessionhub.services.access_guard import resolve_caller, verify_authorization
from sessionhub.services.protocols import RealtimeGatewayProtocol
from sessionhub.services.session import (
    AuthError,
    DriftLedger,
    NotFoundError,
    SessionOrchestrator,
    SessionStore,
)

logger = logging.getLogger(__name__)


def get_gateway(request: Request) -> RealtimeGatewayProtocol:
    """Process-wide realtime gateway created in the app lifespan."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        logger.error("Realtime gateway requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"kind": "UpstreamProviderError", "message": "Realtime provider is not available"},
        )
    return gateway


def get_drift_ledger(request: Request) -> Optional[DriftLedger]:
    return getattr(request.app.state, "drift_ledger", None)


async def get_token_subject(authorization: Optional[str] = Header(None)) -> str:
    """Verified provider id of the caller (profile may not exist yet)."""
    try:
        return verify_authorization(authorization)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.to_detail())


async def get_current_profile(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    try:
        _, profile = await resolve_caller(authorization, db)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.to_detail())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())
    return profile


def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    gateway: RealtimeGatewayProtocol = Depends(get_gateway),
    drift: Optional[DriftLedger] = Depends(get_drift_ledger),
) -> SessionOrchestrator:
    """Request-scoped orchestrator over the request's DB session."""
    return SessionOrchestrator(SessionStore(db), gateway, drift)
