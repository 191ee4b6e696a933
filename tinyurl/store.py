"""Persistent store for short id ↔ URL records.

The allocation service talks to the store through the ``UrlStore`` contract.
Every decision point is a single atomic statement, so concurrent allocators
need no in-process coordination.

Insert Decision Flow
====================
::
    ┌──────────────────────────┐
    │ INSERT (id, url)         │
    │ ON CONFLICT (url)        │
    │   DO UPDATE SET url=url  │
    │ RETURNING id             │
    └────────────┬─────────────┘
                 ▼
       ┌─────────────────────┐
       │ primary key (id)     │── violated ──▶ ID_CONFLICT
       │ already taken?       │
       └─────────┬───────────┘
                 │ no
                 ▼
       ┌─────────────────────┐
       │ returned id ==       │── yes ──▶ INSERTED(id)
       │ candidate id?        │
       └─────────┬───────────┘
                 │ no
                 ▼
         EXISTING_FOR_URL(returned id)

How to Use
===========
**Step 1 — Build a store**::
    store = SqlUrlStore(create_engine(settings))
    await store.ensure_schema()

**Step 2 — Insert or fetch**::
    result = await store.insert_or_get("abc123", "https://example.com/a")
    if result.status is InsertStatus.ID_CONFLICT:
        ...  # pick another id

**Step 3 — Read**::
    url = await store.get_by_id("abc123")  # None when absent

Key Behaviours
===============
- A url conflict is resolved inside the statement by a no-op update that
  returns the original id; nothing new is persisted.
- An id conflict is attributed from the violated constraint reported by the
  driver, never inferred from a follow-up read.
- Connectivity failures raise StoreUnavailable; any other driver failure
  raises StoreError. Both are logged with full detail here.

Classes:
    InsertResult:  Outcome of insert_or_get().
    UrlStore:  Abstract store contract.
    SqlUrlStore:  SQLAlchemy implementation (PostgreSQL, SQLite).
    InMemoryUrlStore:  Dict-backed implementation for tests and local runs.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from tinyurl.database import Base, create_session_factory
from tinyurl.enums import InsertStatus
from tinyurl.exceptions import StoreError, StoreUnavailable
from tinyurl.models import ID_CONSTRAINT, URL_CONSTRAINT, UrlRecord

__all__ = ["InMemoryUrlStore", "InsertResult", "SqlUrlStore", "UrlStore"]

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class InsertResult:
    status: InsertStatus
    short_id: str | None = None


class UrlStore(ABC):
    """Abstract base class for URL stores."""

    @abstractmethod
    async def insert_or_get(self, short_id: str, url: str) -> InsertResult:
        """
        Atomically insert (short_id, url), honouring uniqueness on both columns.

        Returns:
            INSERTED with short_id, EXISTING_FOR_URL with the id already
            mapped to url, or ID_CONFLICT when short_id belongs to another url
        """

    @abstractmethod
    async def get_by_id(self, short_id: str) -> str | None:
        """Return the url for short_id, or None if no record exists."""

    @abstractmethod
    async def ensure_schema(self) -> None:
        """Create the persistent structure if missing (idempotent)."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise StoreUnavailable if the store cannot be reached."""

    async def close(self) -> None:
        """Release held resources."""


class SqlUrlStore(UrlStore):
    """SQLAlchemy-backed store using ``INSERT ... ON CONFLICT ... RETURNING``."""

    def __init__(self, engine: AsyncEngine, logger: logging.Logger | None = None) -> None:
        dialect = engine.dialect.name
        if dialect not in _UPSERT_DIALECTS:
            raise ValueError(f"Unsupported database dialect '{dialect}'")
        self._engine = engine
        self._insert = _UPSERT_DIALECTS[dialect]
        self._sessions = create_session_factory(engine)
        self._logger = logger or logging.getLogger("tinyurl")

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def upsert_statement(self, short_id: str, url: str):
        """``INSERT ... ON CONFLICT (url) DO UPDATE SET url = excluded.url RETURNING id``."""
        stmt = self._insert(UrlRecord).values(id=short_id, url=url)
        return stmt.on_conflict_do_update(
            index_elements=[UrlRecord.url],
            set_={"url": stmt.excluded.url},
        ).returning(UrlRecord.id)

    async def insert_or_get(self, short_id: str, url: str) -> InsertResult:
        stmt = self.upsert_statement(short_id, url)

        with self._store_errors("insert"):
            try:
                async with self._sessions() as session:
                    async with session.begin():
                        result = await session.execute(stmt)
                        effective_id = result.scalar_one()
            except IntegrityError as exc:
                if self._violated_constraint(exc) != ID_CONSTRAINT:
                    raise
                self._logger.debug(f"Short id collision on '{short_id}'")
                return InsertResult(InsertStatus.ID_CONFLICT)

        if effective_id == short_id:
            return InsertResult(InsertStatus.INSERTED, short_id)
        return InsertResult(InsertStatus.EXISTING_FOR_URL, effective_id)

    async def get_by_id(self, short_id: str) -> str | None:
        with self._store_errors("lookup"):
            async with self._sessions() as session:
                result = await session.execute(select(UrlRecord.url).where(UrlRecord.id == short_id))
                return result.scalar_one_or_none()

    async def ensure_schema(self) -> None:
        with self._store_errors("schema creation"):
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        self._logger.info(f"Schema ready for table '{UrlRecord.__tablename__}'")

    async def ping(self) -> None:
        with self._store_errors("ping"):
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self._engine.dispose()

    @contextmanager
    def _store_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (OperationalError, InterfaceError, OSError, TimeoutError) as exc:
            self._logger.exception(f"Store unavailable during {operation}: {exc}")
            raise StoreUnavailable(f"Store unavailable during {operation}") from exc
        except SQLAlchemyError as exc:
            self._logger.exception(f"Store error during {operation}: {exc}")
            raise StoreError(f"Store error during {operation}") from exc

    @staticmethod
    def _violated_constraint(exc: IntegrityError) -> str | None:
        # asyncpg exposes the constraint name on the chained driver error
        driver_error = getattr(exc.orig, "__cause__", None)
        name = getattr(driver_error, "constraint_name", None)
        if name:
            return name

        # sqlite: "UNIQUE constraint failed: urls.id"
        message = str(exc.orig)
        table = UrlRecord.__tablename__
        if ID_CONSTRAINT in message or f"{table}.id" in message:
            return ID_CONSTRAINT
        if URL_CONSTRAINT in message or f"{table}.url" in message:
            return URL_CONSTRAINT
        return None


class InMemoryUrlStore(UrlStore):
    """Dict-backed store.

    Check and write happen without an intervening ``await``, so each call is
    atomic with respect to other tasks on the same event loop. The url index
    is consulted first, matching the SQL store where the url conflict is
    resolved inside the statement.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, str] = {}
        self._by_url: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    async def insert_or_get(self, short_id: str, url: str) -> InsertResult:
        existing = self._by_url.get(url)
        if existing is not None:
            return InsertResult(InsertStatus.EXISTING_FOR_URL, existing)
        if short_id in self._by_id:
            return InsertResult(InsertStatus.ID_CONFLICT)
        self._by_id[short_id] = url
        self._by_url[url] = short_id
        return InsertResult(InsertStatus.INSERTED, short_id)

    async def get_by_id(self, short_id: str) -> str | None:
        return self._by_id.get(short_id)

    async def ensure_schema(self) -> None:
        return None

    async def ping(self) -> None:
        return None
