from tests.helpers import register_profile, auth_headers


def test_sync_profile_creates_and_updates(client, gateway):
    headers, profile = register_profile(client, "Alice Host", provider_id="prov_alice")
    assert profile["provider_id"] == "prov_alice"
    assert gateway.users["prov_alice"]["name"] == "Alice Host"

    r = client.put(
        "/api/profiles/me",
        json={"name": "Alice Renamed", "email": profile["email"], "profile_image": "https://img/a.png"},
        headers=headers,
    )
    assert r.status_code == 200
    updated = r.json()
    assert updated["id"] == profile["id"]
    assert updated["name"] == "Alice Renamed"
    assert gateway.users["prov_alice"]["image"] == "https://img/a.png"

    r = client.get("/api/profiles/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Alice Renamed"


def test_sync_profile_provider_failure_writes_nothing(client, gateway):
    gateway.fail_on.add("upsert_user")
    headers = auth_headers("prov_alice")

    r = client.put("/api/profiles/me", json={"name": "Alice", "email": "alice@example.com"}, headers=headers)
    assert r.status_code == 502
    assert r.json()["detail"]["kind"] == "UpstreamProviderError"

    r = client.get("/api/profiles/me", headers=headers)
    assert r.status_code == 404


def test_sync_profile_duplicate_email(client):
    _, alice = register_profile(client, "Alice Host")

    r = client.put(
        "/api/profiles/me",
        json={"name": "Mallory", "email": alice["email"]},
        headers=auth_headers("prov_mallory"),
    )
    assert r.status_code == 409


def test_chat_token(client, gateway):
    headers, profile = register_profile(client, "Alice Host", provider_id="prov_alice")

    r = client.get("/api/chat/token", headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["token"] == "stream-token-prov_alice"
    # Stream knows users by provider id, not the local profile id
    assert data["user_id"] == "prov_alice"
    assert data["user_name"] == "Alice Host"

    gateway.fail_on.add("create_user_token")
    r = client.get("/api/chat/token", headers=headers)
    assert r.status_code == 502


def test_remove_provider_user_keeps_profile(client, gateway):
    headers, _ = register_profile(client, "Alice Host", provider_id="prov_alice")

    r = client.delete("/api/profiles/me/provider-user", headers=headers)
    assert r.status_code == 204
    assert "prov_alice" not in gateway.users

    r = client.get("/api/profiles/me", headers=headers)
    assert r.status_code == 200


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/api/health").json() == {"status": "ok"}
