"""
Stream Gateway - Realtime call + chat provider client

Talks to Stream's server-side REST APIs:
- Video: calls of type "default", keyed by the session call id
- Chat: channels of type "messaging", keyed by the same call id

Requests are authenticated with a server JWT signed by the API secret.
One gateway (and one pooled httpx.AsyncClient) is created at process start
and injected wherever a provider call is needed.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from jose import jwt

from sessionhub.config.settings import settings
from sessionhub.config.constants import STREAM_CALL_TYPE, STREAM_CHANNEL_TYPE
from sessionhub.services.metrics import provider_requests
from sessionhub.services.session.exceptions import UpstreamProviderError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


class StreamGateway:
    """RealtimeGatewayProtocol implementation backed by Stream."""

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str],
        video_base_url: str = "https://video.stream-io-api.com",
        chat_base_url: str = "https://chat.stream-io-api.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.video_base_url = video_base_url.rstrip("/")
        self.chat_base_url = chat_base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=5.0)
        )

    @classmethod
    def from_settings(cls, client: Optional[httpx.AsyncClient] = None) -> "StreamGateway":
        if not settings.STREAM_API_KEY or not settings.STREAM_API_SECRET:
            logger.error("[Gateway] STREAM_API_KEY or STREAM_API_SECRET is missing")
        return cls(
            api_key=settings.STREAM_API_KEY,
            api_secret=settings.STREAM_API_SECRET,
            video_base_url=settings.STREAM_VIDEO_BASE_URL,
            chat_base_url=settings.STREAM_CHAT_BASE_URL,
            timeout=settings.STREAM_TIMEOUT_SECONDS,
            client=client,
        )

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    # === Auth ===

    def _require_credentials(self, operation: str):
        if not self.api_key or not self.api_secret:
            provider_requests.labels(operation=operation, outcome="error").inc()
            raise UpstreamProviderError(
                "Realtime provider is not configured", operation=operation
            )

    def _server_token(self) -> str:
        return jwt.encode({"server": True}, self.api_secret, algorithm=TOKEN_ALGORITHM)

    def create_user_token(self, provider_id: str) -> str:
        """Client token for a provider user (the frontend SDKs connect with it)."""
        self._require_credentials("create_user_token")
        return jwt.encode({"user_id": provider_id}, self.api_secret, algorithm=TOKEN_ALGORITHM)

    # === Transport ===

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Send one request to Stream.

        Returns:
            Parsed JSON body, or None on 404 when allow_not_found is set.

        Raises:
            UpstreamProviderError on transport errors and non-2xx responses.
        """
        self._require_credentials(operation)
        query = {"api_key": self.api_key, **(params or {})}
        headers = {
            "Authorization": self._server_token(),
            "stream-auth-type": "jwt",
        }

        try:
            resp = await self._client.request(method, url, json=json, params=query, headers=headers)
        except httpx.HTTPError as e:
            provider_requests.labels(operation=operation, outcome="error").inc()
            logger.error(f"[Gateway] {operation} failed: {e!r}")
            raise UpstreamProviderError(
                "Realtime provider is unreachable", operation=operation
            ) from e

        if resp.status_code == 404 and allow_not_found:
            provider_requests.labels(operation=operation, outcome="not_found").inc()
            logger.debug(f"[Gateway] {operation}: resource not found at {url}")
            return None

        if resp.status_code >= 400:
            provider_requests.labels(operation=operation, outcome="error").inc()
            logger.error(
                f"[Gateway] {operation} rejected: status={resp.status_code} "
                f"body={(resp.text or '')[:300]}"
            )
            raise UpstreamProviderError(
                "Realtime provider rejected the request",
                operation=operation,
                status_code=resp.status_code,
            )

        provider_requests.labels(operation=operation, outcome="ok").inc()
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return {}

    def _call_url(self, call_id: str) -> str:
        return f"{self.video_base_url}/api/v2/video/call/{STREAM_CALL_TYPE}/{call_id}"

    def _channel_url(self, call_id: str) -> str:
        return f"{self.chat_base_url}/channels/{STREAM_CHANNEL_TYPE}/{call_id}"

    # === Video calls ===

    async def create_or_get_call(
        self,
        call_id: str,
        owner_provider_id: str,
        custom: Dict[str, Any],
    ) -> Dict[str, Any]:
        body = {"data": {"created_by_id": owner_provider_id, "custom": custom}}
        data = await self._request("create_or_get_call", "POST", self._call_url(call_id), json=body)
        logger.info(f"[Gateway] Call {call_id} ready (owner={owner_provider_id})")
        return data.get("call", data)

    async def get_call(self, call_id: str) -> Optional[Dict[str, Any]]:
        data = await self._request("get_call", "GET", self._call_url(call_id), allow_not_found=True)
        if data is None:
            return None
        return data.get("call", data)

    async def delete_call(self, call_id: str, hard: bool = True) -> None:
        await self._request(
            "delete_call",
            "POST",
            f"{self._call_url(call_id)}/delete",
            json={"hard": hard},
            allow_not_found=True,
        )
        logger.info(f"[Gateway] Call {call_id} deleted (hard={hard})")

    # === Chat channels ===

    async def create_channel(
        self,
        call_id: str,
        name: str,
        owner_provider_id: str,
        members: List[str],
    ) -> Dict[str, Any]:
        body = {
            "data": {
                "name": name,
                "created_by_id": owner_provider_id,
                "members": members,
            },
            "state": False,
            "watch": False,
            "presence": False,
        }
        data = await self._request("create_channel", "POST", f"{self._channel_url(call_id)}/query", json=body)
        logger.info(f"[Gateway] Channel {call_id} ready ({len(members)} member(s))")
        return data.get("channel", data)

    async def add_channel_member(self, call_id: str, provider_id: str) -> None:
        await self._request(
            "add_channel_member",
            "POST",
            self._channel_url(call_id),
            json={"add_members": [provider_id]},
        )
        logger.info(f"[Gateway] Added {provider_id} to channel {call_id}")

    async def delete_channel(self, call_id: str) -> None:
        await self._request("delete_channel", "DELETE", self._channel_url(call_id), allow_not_found=True)
        logger.info(f"[Gateway] Channel {call_id} deleted")

    # === Users ===

    async def upsert_user(self, provider_id: str, name: str, image: str = "") -> None:
        body = {"users": {provider_id: {"id": provider_id, "name": name, "image": image}}}
        await self._request("upsert_user", "POST", f"{self.chat_base_url}/users", json=body)
        logger.info(f"[Gateway] Stream user {provider_id} upserted")

    async def delete_user(self, provider_id: str) -> None:
        await self._request(
            "delete_user",
            "DELETE",
            f"{self.chat_base_url}/users/{provider_id}",
            allow_not_found=True,
        )
        logger.info(f"[Gateway] Stream user {provider_id} deleted")
