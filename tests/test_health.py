"""Health and metrics endpoint tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from tinyurl.enums import HealthStatus
from tinyurl.exceptions import StoreUnavailable
from tinyurl.store import UrlStore


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["database"] == HealthStatus.HEALTHY.value


@pytest.mark.asyncio
async def test_health_check_database_down(api_client) -> None:
    store = AsyncMock(spec=UrlStore)
    store.ping.side_effect = StoreUnavailable("Store unavailable during ping")

    async with api_client(store=store) as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": HealthStatus.UNHEALTHY.value,
        "database": HealthStatus.UNHEALTHY.value,
    }


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient) -> None:
    await client.post("/", json={"url": "https://metrics.test"})

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "tinyurl_allocations_total" in response.text
