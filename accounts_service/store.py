"""
Ledger store: the persistence collaborator for every entity.

The services never hold a session. They call the store, and each store
method runs inside its own scoped transaction:

    async with store.transaction() as session:
        ...            # commit on success, rollback on ANY exception

Primitives:
  - get / find / find_one: reads
  - save: insert (or re-attach and update) a record
  - delete: remove a record, following ORM delete cascades
  - get_or_create: insert-if-absent-else-fetch, race-safe via unique constraints
  - update_if_match: atomic read-modify-write for a single row

Atomic updates:
  Mutable rows carry a SQLAlchemy version_id_col. update_if_match loads the
  row (SELECT ... FOR UPDATE where the backend supports it), lets the caller
  mutate it, and commits. The UPDATE is emitted as

      UPDATE ... SET ..., version = :new WHERE id = :id AND version = :old

  so a concurrent writer that committed first makes it match zero rows.
  SQLAlchemy raises StaleDataError, the transaction rolls back, and the whole
  read-check-write runs again against the fresh row. Domain errors raised by
  the mutator (e.g. InsufficientFundsError) abort the transaction without
  retry, leaving the row untouched.

SQLite note:
  with_for_update() renders nothing on SQLite. The version check alone keeps
  concurrent updates correct there; on PostgreSQL the row lock additionally
  serializes writers so retries become rare.

Error policy:
  Database failures surface as StorageError and are never retried here.
  Only version conflicts are retried, up to max_update_attempts, after which
  ConflictError is raised.
"""

import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from accounts_service.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerStore:
    """Transactional access to the ledger tables through one session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_update_attempts: int = 5,
    ):
        if max_update_attempts < 1:
            raise ValueError("max_update_attempts must be at least 1")
        self._session_factory = session_factory
        self.max_update_attempts = max_update_attempts

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session, commit when the block exits cleanly, roll back otherwise.

        StaleDataError and IntegrityError propagate unchanged because callers
        resolve them (retry, or fetch the row a concurrent insert created).
        Any other SQLAlchemy failure is wrapped in StorageError.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except (StaleDataError, IntegrityError):
                await session.rollback()
                raise
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Storage failure, transaction rolled back: %s", exc)
                raise StorageError(f"Storage failure: {exc}") from exc
            except Exception:
                await session.rollback()
                raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, model: type[T], record_id: Any) -> T | None:
        async with self.transaction() as session:
            return await session.get(model, record_id)

    async def find(
        self,
        model: type[T],
        *criteria,
        order_by: Sequence = (),
    ) -> list[T]:
        """Return every `model` row matching all `criteria`, in `order_by` order."""
        query = select(model).where(*criteria).order_by(*order_by)
        async with self.transaction() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def find_one(self, model: type[T], *criteria) -> T | None:
        async with self.transaction() as session:
            result = await session.execute(select(model).where(*criteria))
            return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, record: T) -> T:
        """
        Insert a new record, or write back changes to a detached one.

        Constraint violations are reported as StorageError; callers that can
        recover from a unique-key clash use get_or_create or transaction().
        """
        try:
            async with self.transaction() as session:
                session.add(record)
                await session.flush()
                await session.refresh(record)
        except IntegrityError as exc:
            raise StorageError(f"Constraint violation: {exc.orig}") from exc
        except StaleDataError as exc:
            raise ConflictError(type(record).__name__, getattr(record, "id", None), 1) from exc
        return record

    async def delete(self, model: type, record_id: Any) -> bool:
        """
        Delete a record by primary key, cascading per the model's relationships.

        Returns False when no such record exists.
        """
        try:
            async with self.transaction() as session:
                record = await session.get(model, record_id)
                if record is None:
                    return False
                await session.delete(record)
        except StaleDataError as exc:
            # Versioned rows are deleted with "WHERE version = :read_version"
            raise ConflictError(model.__name__, record_id, 1) from exc
        return True

    async def get_or_create(
        self,
        model: type[T],
        **lookup: Any,
    ) -> tuple[T, bool]:
        """
        Fetch the row matching `lookup`, inserting it first if absent.

        `lookup` must cover a unique constraint: when two callers race to
        insert, the loser's IntegrityError is resolved by fetching the row
        the winner committed. Returns (record, created).
        """
        criteria = [getattr(model, column) == value for column, value in lookup.items()]

        existing = await self.find_one(model, *criteria)
        if existing is not None:
            return existing, False

        record = model(**lookup)
        try:
            async with self.transaction() as session:
                session.add(record)
        except IntegrityError:
            existing = await self.find_one(model, *criteria)
            if existing is None:
                raise StorageError(
                    f"Could not insert or fetch {model.__name__} {lookup}"
                )
            logger.debug("Concurrent insert of %s %s, using existing row", model.__name__, lookup)
            return existing, False
        return record, True

    async def update_if_match(
        self,
        model: type[T],
        record_id: Any,
        mutator: Callable[[T], None],
    ) -> T | None:
        """
        Atomically apply `mutator` to one row.

        The mutator receives the freshly loaded row and either changes it in
        place or raises to abort. Returns the updated row, or None when the
        row does not exist.

        Raises:
            ConflictError: The row kept changing concurrently for
                max_update_attempts attempts.
            Whatever the mutator raises, with no change persisted.
        """
        for attempt in range(1, self.max_update_attempts + 1):
            try:
                async with self.transaction() as session:
                    record = await session.get(
                        model,
                        record_id,
                        with_for_update=True,
                        populate_existing=True,
                    )
                    if record is None:
                        return None
                    mutator(record)
                return record
            except StaleDataError:
                logger.info(
                    "Version conflict updating %s %s (attempt %d/%d)",
                    model.__name__, record_id, attempt, self.max_update_attempts,
                )

        logger.warning(
            "Giving up on %s %s after %d conflicting attempts",
            model.__name__, record_id, self.max_update_attempts,
        )
        raise ConflictError(model.__name__, record_id, self.max_update_attempts)
