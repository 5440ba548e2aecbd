import pytest
from jose import jwt

from sessionhub.services.access_guard import resolve_caller, verify_authorization
from sessionhub.services.session import AuthError, NotFoundError
from tests.helpers import create_profile, make_token


def test_verify_authorization_returns_subject():
    assert verify_authorization(f"Bearer {make_token('prov_alice')}") == "prov_alice"


@pytest.mark.parametrize("header,message", [
    (None, "Missing Authorization header"),
    ("", "Missing Authorization header"),
    ("Token abc", "Invalid Authorization header"),
    ("Bearer", "Invalid Authorization header"),
    ("Bearer not-a-jwt", "Unauthorized - invalid token"),
])
def test_verify_authorization_rejects(header, message):
    with pytest.raises(AuthError) as exc:
        verify_authorization(header)
    assert exc.value.message == message


def test_verify_authorization_rejects_foreign_signature():
    token = jwt.encode({"sub": "prov_alice"}, "some-other-secret", algorithm="HS256")
    with pytest.raises(AuthError):
        verify_authorization(f"Bearer {token}")


def test_verify_authorization_requires_subject():
    from sessionhub.config.settings import settings
    token = jwt.encode({"name": "Alice"}, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)
    with pytest.raises(AuthError) as exc:
        verify_authorization(f"Bearer {token}")
    assert exc.value.message == "Unauthorized - invalid token payload"


@pytest.mark.asyncio
async def test_resolve_caller(db):
    profile = await create_profile(db, "Alice Host")

    caller, loaded = await resolve_caller(f"Bearer {make_token(profile.provider_id)}", db)

    assert caller.local_id == profile.id
    assert caller.provider_id == profile.provider_id
    assert loaded.id == profile.id


@pytest.mark.asyncio
async def test_resolve_caller_unknown_profile(db):
    with pytest.raises(NotFoundError) as exc:
        await resolve_caller(f"Bearer {make_token('prov_nobody')}", db)
    assert exc.value.message == "User not found"
