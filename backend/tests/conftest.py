import sys
import os
import asyncio
from pathlib import Path

import pytest

# Add project root (2 levels up from tests/) to sys.path so tests can import 'sessionhub'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

# Keep module-level engines off the dev Postgres instance and the
# background reconciler out of the tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RECONCILER_ENABLED", "false")
os.environ.setdefault("STREAM_API_KEY", "test-key")
os.environ.setdefault("STREAM_API_SECRET", "test-secret")

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from sessionhub.main import app
from sessionhub.models.database import Base as DBBase, get_db
from tests.helpers import FakeGateway, RecordingDrift


async def _create_tables(engine):
    async with engine.begin() as conn:
        await conn.run_sync(DBBase.metadata.create_all)


def _run(coro):
    # Private loop: leaves the loop pytest-asyncio installed untouched
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite per test.

    NullPool gives every AsyncSession its own connection, so concurrent
    writers really race and no connection outlives the loop that made it.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}",
        echo=False,
        future=True,
        poolclass=NullPool,
    )
    _run(_create_tables(engine))
    yield engine
    _run(engine.dispose())


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def drift():
    return RecordingDrift()


@pytest.fixture
def client(session_factory, gateway, drift):
    """TestClient over the test database with the fake provider installed.

    The lifespan is not entered, so app.state is wired here instead.
    """
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.state.gateway = gateway
    app.state.drift_ledger = drift
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.gateway = None
    app.state.drift_ledger = None
