from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.shared.core.app_routes import _validate_router_registry, register_api_routers


def _fake_router() -> SimpleNamespace:
    return SimpleNamespace(routes=[object()])


def test_validate_router_registry_accepts_root_router() -> None:
    _validate_router_registry([(_fake_router(), None), (_fake_router(), "/admin")])


def test_validate_router_registry_rejects_duplicate_prefix() -> None:
    routes = [(_fake_router(), "/events"), (_fake_router(), "/events")]
    with pytest.raises(RuntimeError, match="Duplicate router prefix"):
        _validate_router_registry(routes)


def test_validate_router_registry_rejects_prefix_without_leading_slash() -> None:
    with pytest.raises(RuntimeError, match="must start with '/'"):
        _validate_router_registry([(_fake_router(), "events")])


def test_validate_router_registry_rejects_empty_router() -> None:
    with pytest.raises(RuntimeError, match="empty router"):
        _validate_router_registry([(SimpleNamespace(routes=[]), None)])


@pytest.mark.asyncio
async def test_register_api_routers_mounts_events_callback_at_root() -> None:
    bare = FastAPI()
    app = FastAPI()
    register_api_routers(app)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        mounted = await ac.get("/")
    async with AsyncClient(transport=ASGITransport(app=bare), base_url="http://test") as ac:
        missing = await ac.get("/")

    # POST-only route: a GET is refused with 405 rather than 404.
    assert mounted.status_code == 405
    assert "POST" in mounted.headers["allow"]
    assert missing.status_code == 404
