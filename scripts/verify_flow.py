"""
End-to-end smoke test against a running SessionHub backend.

Mints bearer tokens with AUTH_JWT_SECRET, syncs two profiles, then walks
one session through create -> join -> end and checks each response.
Needs real Stream credentials on the server side.

Usage:
    BASE_URL=http://localhost:8000 python scripts/verify_flow.py
"""
import asyncio
import logging
import os
import sys
import uuid

import httpx
from jose import jwt

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "supersecret")


def headers_for(provider_id):
    token = jwt.encode({"sub": provider_id}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


async def sync_profile(client, name):
    provider_id = f"verify_{uuid.uuid4().hex[:8]}"
    headers = headers_for(provider_id)
    resp = await client.put(
        f"{BASE_URL}/api/profiles/me",
        json={"name": name, "email": f"{provider_id}@example.com"},
        headers=headers,
    )
    if resp.status_code != 200:
        logger.error(f"Failed to sync {name}: {resp.status_code} {resp.text}")
        return None
    logger.info(f"Synced {name} ({provider_id})")
    return headers


def expect(resp, status_code, step):
    if resp.status_code != status_code:
        logger.error(f"FAILURE at {step}: expected {status_code}, got {resp.status_code} {resp.text}")
        return False
    logger.info(f"SUCCESS: {step}")
    return True


async def run_scenario():
    async with httpx.AsyncClient(timeout=15.0) as client:
        host = await sync_profile(client, "Verify Host")
        guest = await sync_profile(client, "Verify Guest")
        if not host or not guest:
            return False

        resp = await client.post(
            f"{BASE_URL}/api/sessions",
            json={"problem": "Two Sum", "difficulty": "easy"},
            headers=host,
        )
        if not expect(resp, 201, "host creates session"):
            return False
        session_id = resp.json()["session"]["id"]

        resp = await client.get(f"{BASE_URL}/api/sessions/active", headers=guest)
        if not expect(resp, 200, "guest lists active sessions"):
            return False
        if session_id not in [s["id"] for s in resp.json()["sessions"]]:
            logger.error("FAILURE: new session missing from active list")
            return False

        resp = await client.post(f"{BASE_URL}/api/sessions/{session_id}/join", headers=host)
        if not expect(resp, 403, "host cannot join own session"):
            return False

        resp = await client.post(f"{BASE_URL}/api/sessions/{session_id}/join", headers=guest)
        if not expect(resp, 200, "guest joins"):
            return False

        resp = await client.get(f"{BASE_URL}/api/chat/token", headers=guest)
        if not expect(resp, 200, "guest gets chat token"):
            return False

        resp = await client.post(f"{BASE_URL}/api/sessions/{session_id}/end", headers=guest)
        if not expect(resp, 403, "guest cannot end session"):
            return False

        resp = await client.post(f"{BASE_URL}/api/sessions/{session_id}/end", headers=host)
        if not expect(resp, 200, "host ends session"):
            return False

        resp = await client.get(f"{BASE_URL}/api/sessions/my-recent", headers=guest)
        if not expect(resp, 200, "guest lists recent sessions"):
            return False
        return session_id in [s["id"] for s in resp.json()["sessions"]]


if __name__ == "__main__":
    ok = asyncio.run(run_scenario())
    logger.info("Flow verified" if ok else "Flow FAILED")
    sys.exit(0 if ok else 1)
