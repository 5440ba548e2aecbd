"""
Drift Ledger - Redis record of sessions in a partial state.

When the store commits but a realtime provider call fails, the session's
status and its Stream resources disagree. The orchestrator records that
here; the reconciler drains it.

Layout: one Redis hash (DRIFT_LEDGER_KEY), field = session id,
value = JSON DriftEntry. Recording the same session twice merges the
resource lists.

Every write bumps the entry's `revision` inside a WATCH/MULTI transaction.
The reconciler only resolves or rewrites an entry whose revision still
matches the one it read, so drift recorded during a pass survives it.
"""
import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, UTC
from typing import Awaitable, Callable, List, Optional

from redis.exceptions import RedisError, WatchError
import redis.asyncio as redis

from sessionhub.config.constants import DRIFT_LEDGER_KEY
from sessionhub.config.redis import get_redis

logger = logging.getLogger(__name__)


@dataclass
class DriftEntry:
    session_id: str
    call_id: str
    operation: str
    resources: List[str] = field(default_factory=list)
    recorded_at: str = ""
    attempts: int = 0
    revision: int = 0

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "DriftEntry":
        data = json.loads(raw)
        return cls(
            session_id=data["session_id"],
            call_id=data["call_id"],
            operation=data.get("operation", ""),
            resources=list(data.get("resources", [])),
            recorded_at=data.get("recorded_at", ""),
            attempts=int(data.get("attempts", 0)),
            revision=int(data.get("revision", 0)),
        )


class DriftLedger:
    """DriftRecorderProtocol implementation backed by a Redis hash."""

    def __init__(
        self,
        redis_getter: Callable[[], Awaitable[redis.Redis]] = get_redis,
        key: str = DRIFT_LEDGER_KEY,
    ):
        self._get_redis = redis_getter
        self.key = key

    async def record(
        self,
        session_id: str,
        call_id: str,
        operation: str,
        resources: List[str],
    ) -> None:
        """
        Record (or extend) the drift entry of a session.

        A Redis outage must not mask the partial failure being reported, so
        it is logged with the full entry for manual cleanup instead of raised.
        """
        entry = DriftEntry(
            session_id=session_id,
            call_id=call_id,
            operation=operation,
            resources=sorted(set(resources)),
            recorded_at=datetime.now(UTC).isoformat(),
        )
        try:
            r = await self._get_redis()
            async with r.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(self.key)
                        existing_raw = await pipe.hget(self.key, session_id)
                        merged = DriftEntry(**asdict(entry))
                        if existing_raw:
                            existing = DriftEntry.from_json(existing_raw)
                            merged.resources = sorted(set(existing.resources) | set(entry.resources))
                            merged.attempts = existing.attempts
                            merged.revision = existing.revision + 1
                        pipe.multi()
                        pipe.hset(self.key, session_id, merged.to_json())
                        await pipe.execute()
                        break
                    except WatchError:
                        continue
            logger.warning(
                f"[Drift] Recorded session={session_id} call={call_id} "
                f"operation={operation} resources={merged.resources}"
            )
        except RedisError as e:
            logger.error(f"[Drift] Could not record drift, manual cleanup needed: {entry.to_json()} ({e})")

    async def get(self, session_id: str) -> Optional[DriftEntry]:
        r = await self._get_redis()
        raw = await r.hget(self.key, session_id)
        return DriftEntry.from_json(raw) if raw else None

    async def entries(self, limit: Optional[int] = None) -> List[DriftEntry]:
        """Return ledger entries, oldest first."""
        r = await self._get_redis()
        raw_entries = await r.hgetall(self.key)
        entries = [DriftEntry.from_json(raw) for raw in raw_entries.values()]
        entries.sort(key=lambda e: e.recorded_at)
        if limit is not None:
            entries = entries[:limit]
        return entries

    async def _replace_if_unchanged(self, entry: DriftEntry, new_raw: Optional[str]) -> bool:
        """
        Overwrite (or delete, when new_raw is None) the stored entry only if
        its revision still equals `entry.revision`.
        """
        r = await self._get_redis()
        async with r.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(self.key)
                    raw = await pipe.hget(self.key, entry.session_id)
                    if not raw or DriftEntry.from_json(raw).revision != entry.revision:
                        await pipe.unwatch()
                        return False
                    pipe.multi()
                    if new_raw is None:
                        pipe.hdel(self.key, entry.session_id)
                    else:
                        pipe.hset(self.key, entry.session_id, new_raw)
                    await pipe.execute()
                    return True
                except WatchError:
                    continue

    async def update(self, entry: DriftEntry) -> bool:
        """
        Store the reconciler's view of an entry it read earlier.

        Returns:
            False if the entry changed (or vanished) since it was read; the
            newer entry is kept.
        """
        updated = DriftEntry(**asdict(entry))
        updated.revision = entry.revision + 1
        stored = await self._replace_if_unchanged(entry, updated.to_json())
        if stored:
            entry.revision = updated.revision
        else:
            logger.info(f"[Drift] session={entry.session_id} changed during reconciliation, keeping newer entry")
        return stored

    async def resolve(self, entry: DriftEntry) -> bool:
        """
        Remove an entry read earlier, unless drift was recorded since.

        Returns:
            True if the entry was removed.
        """
        resolved = await self._replace_if_unchanged(entry, None)
        if resolved:
            logger.info(f"[Drift] Resolved session={entry.session_id}")
        else:
            logger.info(f"[Drift] session={entry.session_id} changed during reconciliation, not resolved")
        return resolved
