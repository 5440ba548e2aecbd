"""
Profile Service - Local profiles kept in step with the provider.

A profile is keyed by its provider id. Syncing pushes the user to Stream
first and only then writes the local row, so a provider failure leaves the
database untouched (UpstreamProviderError means nothing changed).
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sessionhub.models.profile import Profile
from sessionhub.services.protocols import RealtimeGatewayProtocol

logger = logging.getLogger(__name__)


class ProfileService:
    """Centralized Profile retrieval and provider sync."""

    @staticmethod
    async def get_by_provider_id(db: AsyncSession, provider_id: str) -> Optional[Profile]:
        result = await db.execute(select(Profile).where(Profile.provider_id == provider_id))
        return result.scalar_one_or_none()

    @classmethod
    async def sync_profile(
        cls,
        db: AsyncSession,
        gateway: RealtimeGatewayProtocol,
        provider_id: str,
        name: str,
        email: str,
        profile_image: str = "",
    ) -> Profile:
        """
        Create or update the profile for a provider id.

        Raises:
            UpstreamProviderError if the provider user cannot be upserted.
        """
        await gateway.upsert_user(provider_id, name, profile_image)

        profile = await cls.get_by_provider_id(db, provider_id)
        if profile is None:
            profile = Profile(provider_id=provider_id)
            db.add(profile)
            logger.info(f"[Profiles] Creating profile for {provider_id}")
        profile.name = name
        profile.email = email
        profile.profile_image = profile_image or ""

        await db.commit()
        await db.refresh(profile)
        return profile

    @staticmethod
    async def remove_provider_user(gateway: RealtimeGatewayProtocol, profile: Profile) -> None:
        """Delete the provider user; the local profile stays for session history."""
        await gateway.delete_user(profile.provider_id)
        logger.info(f"[Profiles] Provider user removed for profile {profile.id}")


# Singleton instance
profile_service = ProfileService()
