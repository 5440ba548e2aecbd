import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from sessionhub.config.settings import settings
from sessionhub.models.profile import Profile
from sessionhub.services.identity import CallerIdentity
from sessionhub.services.session import UpstreamProviderError


def unique_email(prefix: str = 'user') -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def make_token(provider_id: str) -> str:
    """Bearer token as issued by the identity provider."""
    return jwt.encode({"sub": provider_id}, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def auth_headers(provider_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(provider_id)}"}


async def create_profile(db: AsyncSession, name: str = 'Test User', provider_id: Optional[str] = None) -> Profile:
    profile = Profile(
        provider_id=provider_id or f"prov_{uuid.uuid4().hex[:10]}",
        name=name,
        email=unique_email(name.split()[0].lower()),
        profile_image=f"https://img.example.com/{name.split()[0].lower()}.png",
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def create_caller(db: AsyncSession, name: str = 'Test User') -> Tuple[CallerIdentity, Profile]:
    profile = await create_profile(db, name)
    return CallerIdentity.from_profile(profile), profile


def register_profile(client: TestClient, name: str = 'Test User', provider_id: Optional[str] = None) -> Tuple[Dict[str, str], dict]:
    """Sync a profile through the API; returns (headers, profile json)."""
    provider_id = provider_id or f"prov_{uuid.uuid4().hex[:10]}"
    headers = auth_headers(provider_id)
    r = client.put(
        '/api/profiles/me',
        json={'name': name, 'email': unique_email(name.split()[0].lower())},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    return headers, r.json()


class FakeGateway:
    """In-memory realtime provider.

    Operations named in `fail_on` raise UpstreamProviderError before
    touching state. Every invocation is appended to `requests`.
    """

    def __init__(self, fail_on: Iterable[str] = ()):
        self.fail_on = set(fail_on)
        self.requests: List[Tuple[str, tuple]] = []
        self.calls: Dict[str, Dict[str, Any]] = {}
        self.channels: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, str]] = {}

    def _enter(self, operation: str, *args):
        self.requests.append((operation, args))
        if operation in self.fail_on:
            raise UpstreamProviderError(
                "Realtime provider rejected the request", operation=operation, status_code=500
            )

    def operations(self) -> List[str]:
        return [op for op, _ in self.requests]

    async def create_or_get_call(self, call_id, owner_provider_id, custom):
        self._enter("create_or_get_call", call_id, owner_provider_id)
        call = self.calls.setdefault(
            call_id, {"id": call_id, "created_by_id": owner_provider_id, "custom": dict(custom)}
        )
        return call

    async def get_call(self, call_id):
        self._enter("get_call", call_id)
        return self.calls.get(call_id)

    async def delete_call(self, call_id, hard=True):
        self._enter("delete_call", call_id, hard)
        self.calls.pop(call_id, None)

    async def create_channel(self, call_id, name, owner_provider_id, members):
        self._enter("create_channel", call_id, owner_provider_id)
        channel = self.channels.setdefault(
            call_id, {"id": call_id, "name": name, "created_by_id": owner_provider_id, "members": set()}
        )
        channel["members"].update(members)
        return channel

    async def add_channel_member(self, call_id, provider_id):
        self._enter("add_channel_member", call_id, provider_id)
        channel = self.channels.get(call_id)
        if channel is None:
            raise UpstreamProviderError(
                "Realtime provider rejected the request", operation="add_channel_member", status_code=404
            )
        channel["members"].add(provider_id)

    async def delete_channel(self, call_id):
        self._enter("delete_channel", call_id)
        self.channels.pop(call_id, None)

    async def upsert_user(self, provider_id, name, image=""):
        self._enter("upsert_user", provider_id)
        self.users[provider_id] = {"id": provider_id, "name": name, "image": image}

    async def delete_user(self, provider_id):
        self._enter("delete_user", provider_id)
        self.users.pop(provider_id, None)

    def create_user_token(self, provider_id):
        if "create_user_token" in self.fail_on:
            raise UpstreamProviderError("Realtime provider is not configured", operation="create_user_token")
        return f"stream-token-{provider_id}"


class RecordingDrift:
    """Drift recorder that keeps entries in a list."""

    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    async def record(self, session_id, call_id, operation, resources):
        self.entries.append({
            "session_id": session_id,
            "call_id": call_id,
            "operation": operation,
            "resources": list(resources),
        })
