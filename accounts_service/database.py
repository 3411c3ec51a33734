"""
Database engine, session factory, base model class and the Ledger Store.

This module sets up SQLAlchemy 2.0 with async support:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - ledger_store: The process-wide LedgerStore bound to AsyncSessionLocal
  - get_store(): FastAPI dependency that provides the store to routes

Unlike a session-per-request design, transaction boundaries are owned by the
LedgerStore: every store call (or explicit store.transaction() block) opens
its own session, commits on success and rolls back on any exception. Routes
never see a session.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from accounts_service.config import settings
from accounts_service.store import LedgerStore


# echo=True in debug mode logs all SQL statements
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# expire_on_commit=False keeps attributes readable after the store's
# transaction commits and the session closes.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


ledger_store = LedgerStore(
    AsyncSessionLocal,
    max_update_attempts=settings.LEDGER_MAX_UPDATE_ATTEMPTS,
)


async def get_store() -> LedgerStore:
    """
    FastAPI dependency that provides the Ledger Store.

    Usage in a route:
        @router.get("/items")
        async def list_items(store: LedgerStore = Depends(get_store)):
            ...

    Tests override this dependency with a store bound to their own engine.
    """
    return ledger_store
