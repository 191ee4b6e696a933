"""Service manager wiring and request context tests."""

import logging

import pytest

from tinyurl.dependencies import ServiceManager
from tinyurl.store import InMemoryUrlStore, SqlUrlStore


def test_injected_empty_store_is_kept(settings) -> None:
    store = InMemoryUrlStore()
    assert len(store) == 0

    manager = ServiceManager(settings=settings, store=store)

    assert manager.store is store


def test_injected_generator_is_kept(settings, id_sequence) -> None:
    generator = id_sequence("abc123")

    manager = ServiceManager(settings=settings, store=InMemoryUrlStore(), generator=generator)

    assert manager.generator is generator


@pytest.mark.asyncio
async def test_sql_store_built_when_none_injected(settings) -> None:
    manager = ServiceManager(settings=settings)
    try:
        assert isinstance(manager.store, SqlUrlStore)
    finally:
        await manager.cleanup()


@pytest.mark.asyncio
async def test_request_log_carries_id_and_client(api_client, caplog) -> None:
    caplog.set_level(logging.INFO, logger="tinyurl")

    async with api_client() as client:
        response = await client.post(
            "/",
            json={"url": "https://logged.test"},
            headers={"X-Request-ID": "req-42"},
        )

    assert response.status_code == 201
    messages = [record.getMessage() for record in caplog.records if record.name == "tinyurl"]
    shortened = [message for message in messages if "Shortened for" in message]
    assert len(shortened) == 1
    assert shortened[0].startswith("[req-42] ")
    assert "127.0.0.1" in shortened[0]
