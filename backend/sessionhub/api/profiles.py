"""
Profiles API - Profile sync and chat credentials

Implements:
- Profile upsert for the authenticated provider user
- Removing the user from the provider namespace
- Stream client token for the current user
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sessionhub.api.deps import get_current_profile, get_gateway, get_token_subject
from sessionhub.models.database import get_db
from sessionhub.models.profile import Profile
from sessionhub.services.profile_service import profile_service
from sessionhub.services.protocols import RealtimeGatewayProtocol
from sessionhub.services.session import UpstreamProviderError
from sessionhub.schemas.profile import (
    SyncProfileRequest,
    ProfileResponse,
    ChatTokenResponse,
)

router = APIRouter()

logger = logging.getLogger(__name__)


@router.put("/profiles/me", response_model=ProfileResponse)
async def sync_my_profile(
    req: SyncProfileRequest,
    provider_id: str = Depends(get_token_subject),
    db: AsyncSession = Depends(get_db),
    gateway: RealtimeGatewayProtocol = Depends(get_gateway),
):
    """
    Create or update the caller's profile.

    The Stream user is upserted first; the profile is only written once the
    provider accepted it.
    """
    try:
        profile = await profile_service.sync_profile(
            db,
            gateway,
            provider_id=provider_id,
            name=req.name,
            email=req.email,
            profile_image=req.profile_image or "",
        )
    except UpstreamProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_detail())
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"kind": "ValidationError", "message": "Email already in use"},
        )

    return ProfileResponse(**profile.to_dict())


@router.get("/profiles/me", response_model=ProfileResponse)
async def get_my_profile(current_profile: Profile = Depends(get_current_profile)):
    return ProfileResponse(**current_profile.to_dict())


@router.delete("/profiles/me/provider-user", status_code=204)
async def remove_my_provider_user(
    current_profile: Profile = Depends(get_current_profile),
    gateway: RealtimeGatewayProtocol = Depends(get_gateway),
):
    """Remove the caller from the Stream user namespace (profile is kept)."""
    try:
        await profile_service.remove_provider_user(gateway, current_profile)
    except UpstreamProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_detail())


@router.get("/chat/token", response_model=ChatTokenResponse)
async def get_chat_token(
    current_profile: Profile = Depends(get_current_profile),
    gateway: RealtimeGatewayProtocol = Depends(get_gateway),
):
    """
    Stream client token for the current user.

    Stream identifies users by provider id, not the local profile id.
    """
    try:
        token = gateway.create_user_token(current_profile.provider_id)
    except UpstreamProviderError as e:
        logger.error(f"Chat token for profile {current_profile.id} failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_detail())

    return ChatTokenResponse(
        token=token,
        user_id=current_profile.provider_id,
        user_name=current_profile.name,
        user_image=current_profile.profile_image or "",
    )
