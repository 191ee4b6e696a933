"""Database engine and session factory construction for tinyurl.

This module builds the SQLAlchemy async engine and session factory. Nothing is
created at import time: the application lifespan builds one engine, hands it to
the store, and disposes of it on shutdown.

Flow Diagram — Database Lifecycle
=================================
::
    ┌─────────────┐
    │  lifespan   │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ engine()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ session_    │
    │ factory()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ SqlUrlStore │
    │ (per-call   │
    │  sessions)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ engine.     │
    │ dispose()   │
    └─────────────┘

How to Use
===========
**Step 1 — Build on startup**::
    engine = create_engine(settings)
    store = SqlUrlStore(engine)
    await store.ensure_schema()

**Step 2 — Dispose on shutdown**::
    await store.close()

Key Behaviours
===============
- Connection pooling is sized from settings for PostgreSQL.
- SQLite URLs (local runs, tests) use SQLAlchemy's default pool.
- Sessions do not expire objects on commit.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    create_engine():  Build an AsyncEngine from settings.
    create_session_factory():  Build an async_sessionmaker bound to an engine.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from tinyurl.config import Settings

__all__ = ["Base", "create_engine", "create_session_factory"]


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    options: dict[str, Any] = {
        "echo": settings.APP_ENV == "development",
        "pool_pre_ping": True,
    }
    if not settings.DATABASE_URL.startswith("sqlite"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return create_async_engine(settings.DATABASE_URL, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
