"""
Access Guard - Resolve an inbound request to a verified caller.

Inbound requests carry `Authorization: Bearer <jwt>` issued by the identity
provider. The token subject is the caller's provider id, which is also their
Stream user id. The guard verifies the token and loads the matching profile.
"""
import logging
from typing import Optional, Tuple

from jose import jwt, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sessionhub.config.settings import settings
from sessionhub.models.profile import Profile
from sessionhub.services.identity import CallerIdentity
from sessionhub.services.session.exceptions import AuthError, NotFoundError

logger = logging.getLogger(__name__)


def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.AUTH_JWT_SECRET, algorithms=[settings.AUTH_JWT_ALGORITHM])
    except JWTError:
        return None


def verify_authorization(authorization: Optional[str]) -> str:
    """
    Verify a bearer Authorization header.

    Returns:
        The token subject (provider id).

    Raises:
        AuthError if the header or token is missing or invalid.
    """
    if not authorization:
        raise AuthError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Invalid Authorization header")
    payload = decode_token(token)
    if not payload:
        raise AuthError("Unauthorized - invalid token")
    provider_id = payload.get("sub")
    if not provider_id:
        raise AuthError("Unauthorized - invalid token payload")
    return provider_id


async def resolve_caller(
    authorization: Optional[str],
    db: AsyncSession,
) -> Tuple[CallerIdentity, Profile]:
    """
    Resolve the request's caller identity and profile.

    Raises:
        AuthError on a bad token, NotFoundError if no profile exists for it.
    """
    provider_id = verify_authorization(authorization)
    result = await db.execute(select(Profile).where(Profile.provider_id == provider_id))
    profile = result.scalar_one_or_none()
    if not profile:
        logger.warning(f"[AccessGuard] No profile for provider id {provider_id}")
        raise NotFoundError("User not found")
    return CallerIdentity.from_profile(profile), profile
