"""Shared pytest fixtures for store, service and API tests."""

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from tinyurl.config import Settings
from tinyurl.dependencies import ServiceManager, get_service_manager
from tinyurl.id_generator import IdGenerator
from tinyurl.main import app
from tinyurl.store import InMemoryUrlStore, SqlUrlStore, UrlStore


class SequenceIdGenerator:
    """Returns the given ids in order, then keeps repeating the last one."""

    def __init__(self, *ids: str) -> None:
        self._ids = list(ids)
        self.calls = 0

    def generate(self) -> str:
        short_id = self._ids[min(self.calls, len(self._ids) - 1)]
        self.calls += 1
        return short_id


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        BASE_URL="http://short.test",
        DATABASE_URL="sqlite+aiosqlite://",
    )


@pytest.fixture
def id_sequence() -> type[SequenceIdGenerator]:
    return SequenceIdGenerator


@pytest.fixture
def memory_store() -> InMemoryUrlStore:
    return InMemoryUrlStore()


@pytest_asyncio.fixture(scope="function")
async def sql_store(tmp_path: Path) -> AsyncGenerator[SqlUrlStore, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tinyurl.db'}")
    store = SqlUrlStore(engine)
    await store.ensure_schema()
    yield store
    await store.close()


@pytest.fixture
def api_client(settings: Settings) -> Callable[..., AsyncIterator[AsyncClient]]:
    @asynccontextmanager
    async def _client(
        store: UrlStore | None = None,
        generator: IdGenerator | None = None,
    ) -> AsyncIterator[AsyncClient]:
        if store is None:
            store = InMemoryUrlStore()
        manager = ServiceManager(settings=settings, store=store, generator=generator)
        await manager.initialize()
        app.dependency_overrides[get_service_manager] = lambda: manager

        transport = ASGITransport(app=app)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
        finally:
            app.dependency_overrides.clear()

    return _client


@pytest_asyncio.fixture(scope="function")
async def client(api_client) -> AsyncGenerator[AsyncClient, None]:
    async with api_client() as ac:
        yield ac
