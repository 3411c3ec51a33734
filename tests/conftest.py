"""
Test fixtures for the Accounts Service test suite.

  - db_engine / store: Fresh in-memory SQLite database for each test, with a
    LedgerStore bound to it
  - file_store: A LedgerStore over a temporary SQLite FILE, so concurrent
    tasks get separate connections (used by the concurrency tests)
  - client: Async HTTP test client with get_store overridden
  - account / user: Convenience records created through the services

In-memory SQLite (sqlite+aiosqlite://) shares one connection across
sessions, which is fine for sequential tests but can't exercise real
concurrent writers; hence the separate file-backed fixture.
"""

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from accounts_service.database import Base, get_store
from accounts_service.main import app
from accounts_service.services import account_service, user_service
from accounts_service.store import LedgerStore


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


async def _make_engine(url: str):
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


def _make_store(engine, max_update_attempts: int = 5) -> LedgerStore:
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return LedgerStore(session_factory, max_update_attempts=max_update_attempts)


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = await _make_engine(TEST_DATABASE_URL)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(db_engine):
    """LedgerStore bound to the in-memory test engine."""
    return _make_store(db_engine)


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """Engine over a SQLite file: every session gets its own connection."""
    engine = await _make_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def file_store(file_engine):
    """
    LedgerStore for concurrent writers.

    Retries are generous so that many simultaneous updates of one row all
    eventually win; each round at least one writer commits.
    """
    return _make_store(file_engine, max_update_attempts=25)


@pytest_asyncio.fixture
async def client(store):
    """
    Async HTTP test client with the test store injected.

    Overrides get_store so all requests hit the in-memory test database.
    """
    async def override_get_store():
        return store

    app.dependency_overrides[get_store] = override_get_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def account(store):
    """An ACTIVE account with a 100.00 balance."""
    return await account_service.create_account(store, "mp-0001", "100.00")


@pytest_asyncio.fixture
async def user(store):
    """A user holding the default ROLE_USER."""
    return await user_service.create_user(
        store,
        email="rider@example.com",
        hashed_password="$2a$10$opaquehashfromauthservice",
        first_name="Ana",
        last_name="Rider",
    )
