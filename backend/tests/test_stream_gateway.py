import json

import httpx
import pytest
from jose import jwt

from sessionhub.services.realtime import StreamGateway
from sessionhub.services.session import UpstreamProviderError

VIDEO = "https://video.test"
CHAT = "https://chat.test"


class Recorder:
    """httpx.MockTransport handler that records requests and replays canned responses."""

    def __init__(self, responses=None):
        self.requests = []
        self.responses = responses or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        status, body = self.responses.get(key, (200, {}))
        return httpx.Response(status, json=body)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def _gateway(handler, api_key="key", api_secret="secret"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StreamGateway(api_key, api_secret, VIDEO, CHAT, client=client)


@pytest.mark.asyncio
async def test_create_or_get_call_request():
    call_path = "/api/v2/video/call/default/session_1_ab"
    recorder = Recorder({("POST", call_path): (201, {"call": {"id": "session_1_ab"}})})
    gateway = _gateway(recorder)

    call = await gateway.create_or_get_call("session_1_ab", "prov_alice", {"problem": "Two Sum"})

    assert call == {"id": "session_1_ab"}
    request = recorder.requests[0]
    assert request.url.host == "video.test"
    assert request.url.params["api_key"] == "key"
    assert request.headers["stream-auth-type"] == "jwt"
    claims = jwt.decode(request.headers["Authorization"], "secret", algorithms=["HS256"])
    assert claims == {"server": True}
    assert recorder.body() == {"data": {"created_by_id": "prov_alice", "custom": {"problem": "Two Sum"}}}


@pytest.mark.asyncio
async def test_channel_requests():
    recorder = Recorder()
    gateway = _gateway(recorder)

    await gateway.create_channel("session_1_ab", "Two Sum Session", "prov_alice", ["prov_alice"])
    await gateway.add_channel_member("session_1_ab", "prov_bob")
    await gateway.delete_channel("session_1_ab")

    create, add, delete = recorder.requests
    assert (create.method, create.url.path) == ("POST", "/channels/messaging/session_1_ab/query")
    assert json.loads(create.content)["data"] == {
        "name": "Two Sum Session",
        "created_by_id": "prov_alice",
        "members": ["prov_alice"],
    }
    assert (add.method, add.url.path) == ("POST", "/channels/messaging/session_1_ab")
    assert json.loads(add.content) == {"add_members": ["prov_bob"]}
    assert (delete.method, delete.url.path) == ("DELETE", "/channels/messaging/session_1_ab")
    assert delete.url.host == "chat.test"


@pytest.mark.asyncio
async def test_delete_call_is_hard_and_tolerates_missing():
    path = "/api/v2/video/call/default/session_1_ab/delete"
    recorder = Recorder({("POST", path): (404, {"message": "call not found"})})
    gateway = _gateway(recorder)

    await gateway.delete_call("session_1_ab")

    assert recorder.body() == {"hard": True}


@pytest.mark.asyncio
async def test_get_call_missing_returns_none():
    path = "/api/v2/video/call/default/session_1_ab"
    gateway = _gateway(Recorder({("GET", path): (404, {})}))

    assert await gateway.get_call("session_1_ab") is None


@pytest.mark.asyncio
async def test_rejected_request_raises_upstream_error():
    path = "/channels/messaging/session_1_ab"
    gateway = _gateway(Recorder({("POST", path): (500, {"message": "internal secret detail"})}))

    with pytest.raises(UpstreamProviderError) as exc:
        await gateway.add_channel_member("session_1_ab", "prov_bob")

    assert exc.value.status_code == 500
    assert exc.value.operation == "add_channel_member"
    # Provider bodies never reach the error message
    assert "secret" not in exc.value.message


@pytest.mark.asyncio
async def test_add_member_missing_channel_is_an_error():
    path = "/channels/messaging/session_1_ab"
    gateway = _gateway(Recorder({("POST", path): (404, {})}))

    with pytest.raises(UpstreamProviderError):
        await gateway.add_channel_member("session_1_ab", "prov_bob")


@pytest.mark.asyncio
async def test_transport_error_raises_upstream_error():
    def _unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = _gateway(_unreachable)

    with pytest.raises(UpstreamProviderError) as exc:
        await gateway.create_channel("session_1_ab", "Two Sum Session", "prov_alice", ["prov_alice"])

    assert exc.value.message == "Realtime provider is unreachable"


@pytest.mark.asyncio
async def test_missing_credentials():
    recorder = Recorder()
    gateway = _gateway(recorder, api_key=None, api_secret=None)

    with pytest.raises(UpstreamProviderError):
        await gateway.create_or_get_call("session_1_ab", "prov_alice", {})
    with pytest.raises(UpstreamProviderError):
        gateway.create_user_token("prov_alice")

    assert recorder.requests == []


@pytest.mark.asyncio
async def test_user_requests_and_token():
    recorder = Recorder({("DELETE", "/users/prov_gone"): (404, {})})
    gateway = _gateway(recorder)

    await gateway.upsert_user("prov_alice", "Alice", "a.png")
    await gateway.delete_user("prov_gone")

    assert recorder.body(0) == {"users": {"prov_alice": {"id": "prov_alice", "name": "Alice", "image": "a.png"}}}
    token = gateway.create_user_token("prov_alice")
    assert jwt.decode(token, "secret", algorithms=["HS256"]) == {"user_id": "prov_alice"}
