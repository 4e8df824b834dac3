from datetime import timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.main import app as ec2bot_app
from app.main import lifespan
from app.modules.inventory.domain import InventoryCache, ResourceClass
from app.shared.core.dependencies import get_instance_cache, get_load_balancer_cache
from app.shared.core.exceptions import ConfigurationError


@pytest_asyncio.fixture
async def lite_client(clock, instance_record) -> AsyncGenerator[AsyncClient, None]:
    ttl = timedelta(minutes=5)
    instances = InventoryCache(
        ResourceClass.INSTANCE, AsyncMock(return_value=[instance_record]), ttl, clock
    )
    load_balancers = InventoryCache(
        ResourceClass.LOAD_BALANCER, AsyncMock(return_value=[]), ttl, clock
    )
    await instances.get_snapshot()

    ec2bot_app.dependency_overrides[get_instance_cache] = lambda: instances
    ec2bot_app.dependency_overrides[get_load_balancer_cache] = lambda: load_balancers
    transport = ASGITransport(app=ec2bot_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    ec2bot_app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_ping(lite_client: AsyncClient):
    response = await lite_client.get("/ping")
    assert response.status_code == 200
    assert response.text == "pong"


@pytest.mark.asyncio
async def test_health_reports_cache_state(lite_client: AsyncClient):
    response = await lite_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["app"] == "ec2bot"
    assert body["caches"]["instances"]["populated"] is True
    assert body["caches"]["instances"]["items"] == 1
    assert body["caches"]["load_balancers"]["populated"] is False


@pytest.mark.asyncio
async def test_request_id_is_echoed(lite_client: AsyncClient):
    response = await lite_client.get("/ping", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = await lite_client.get("/ping")
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_metrics_endpoint_is_exposed(lite_client: AsyncClient):
    response = await lite_client.get("/metrics")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_get_on_events_path_is_not_allowed(lite_client: AsyncClient):
    response = await lite_client.get("/")
    assert response.status_code == 405


@pytest.mark.asyncio
async def test_lifespan_learns_bot_username():
    app = FastAPI()
    slack = MagicMock()
    slack.get_bot_username = AsyncMock(return_value="ec2bot")
    with patch("app.main._is_test_mode", return_value=False), patch(
        "app.main.get_slack_service", return_value=slack
    ):
        async with lifespan(app):
            assert app.state.bot_username == "ec2bot"


@pytest.mark.asyncio
async def test_lifespan_fails_fast_when_auth_test_fails():
    app = FastAPI()
    slack = MagicMock()
    slack.get_bot_username = AsyncMock(side_effect=RuntimeError("invalid_auth"))
    with patch("app.main._is_test_mode", return_value=False), patch(
        "app.main.get_slack_service", return_value=slack
    ):
        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass


@pytest.mark.asyncio
async def test_lifespan_skips_auth_test_in_tests():
    app = FastAPI()
    async with lifespan(app):
        assert app.state.bot_username is None
