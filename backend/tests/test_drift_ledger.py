import asyncio

import pytest
from fakeredis import aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from sessionhub.services.session import DriftLedger


@pytest.fixture
def fake_redis():
    return aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def ledger(fake_redis):
    async def _get_fake():
        return fake_redis

    return DriftLedger(redis_getter=_get_fake, key="test:drift")


@pytest.mark.asyncio
async def test_record_and_get(ledger, fake_redis):
    await ledger.record("s1", "session_1_ab", "create", ["call"])

    entry = await ledger.get("s1")
    assert entry.call_id == "session_1_ab"
    assert entry.operation == "create"
    assert entry.resources == ["call"]
    assert entry.attempts == 0
    assert await fake_redis.hlen("test:drift") == 1


@pytest.mark.asyncio
async def test_record_merges_resources_and_keeps_attempts(ledger):
    await ledger.record("s1", "session_1_ab", "create", ["call"])
    entry = await ledger.get("s1")
    entry.attempts = 2
    await ledger.update(entry)

    await ledger.record("s1", "session_1_ab", "join", ["channel_member"])

    merged = await ledger.get("s1")
    assert merged.resources == ["call", "channel_member"]
    assert merged.operation == "join"
    assert merged.attempts == 2


@pytest.mark.asyncio
async def test_entries_oldest_first_and_resolve(ledger):
    await ledger.record("s1", "session_1_aa", "create", ["call"])
    await ledger.record("s2", "session_2_bb", "end", ["channel"])
    await ledger.record("s3", "session_3_cc", "end", ["call", "channel"])

    assert [e.session_id for e in await ledger.entries()] == ["s1", "s2", "s3"]
    assert [e.session_id for e in await ledger.entries(limit=2)] == ["s1", "s2"]

    assert await ledger.resolve(await ledger.get("s2")) is True
    assert await ledger.get("s2") is None
    assert [e.session_id for e in await ledger.entries()] == ["s1", "s3"]


@pytest.mark.asyncio
async def test_record_survives_redis_outage(caplog):
    async def _down():
        raise RedisConnectionError("redis is down")

    ledger = DriftLedger(redis_getter=_down, key="test:drift")

    # Must not mask the partial failure being reported
    await ledger.record("s1", "session_1_ab", "end", ["call"])

    assert "manual cleanup needed" in caplog.text


@pytest.mark.asyncio
async def test_resolve_keeps_entry_recorded_after_read(ledger):
    await ledger.record("s1", "session_1_ab", "create", ["channel"])
    seen = await ledger.get("s1")

    # New drift lands while the reconciler works on its copy
    await ledger.record("s1", "session_1_ab", "join", ["channel_member"])

    assert await ledger.resolve(seen) is False
    kept = await ledger.get("s1")
    assert kept.resources == ["channel", "channel_member"]
    assert kept.revision == seen.revision + 1


@pytest.mark.asyncio
async def test_update_keeps_newer_entry(ledger):
    await ledger.record("s1", "session_1_ab", "end", ["call", "channel"])
    seen = await ledger.get("s1")
    await ledger.record("s1", "session_1_ab", "end", ["call"])

    seen.resources = ["call"]
    seen.attempts += 1
    assert await ledger.update(seen) is False

    kept = await ledger.get("s1")
    assert kept.resources == ["call", "channel"]
    assert kept.attempts == 0


@pytest.mark.asyncio
async def test_update_bumps_revision(ledger):
    await ledger.record("s1", "session_1_ab", "end", ["call", "channel"])
    seen = await ledger.get("s1")
    seen.resources = ["call"]

    assert await ledger.update(seen) is True
    assert seen.revision == 1
    # The caller's copy is current again and can resolve
    assert await ledger.resolve(seen) is True
    assert await ledger.get("s1") is None


@pytest.mark.asyncio
async def test_concurrent_records_merge(ledger):
    await asyncio.gather(
        ledger.record("s1", "session_1_ab", "create", ["call"]),
        ledger.record("s1", "session_1_ab", "join", ["channel_member"]),
        ledger.record("s1", "session_1_ab", "create", ["channel"]),
    )

    entry = await ledger.get("s1")
    assert entry.resources == ["call", "channel", "channel_member"]
    assert entry.revision == 2
