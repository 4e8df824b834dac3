from typing import Any

from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse

from app.modules.chatops.api.v1.events import router as events_router
from app.modules.inventory.domain import InventoryCache
from app.shared.core.dependencies import get_instance_cache, get_load_balancer_cache


def _validate_router_registry(routes: list[tuple[Any, str | None]]) -> None:
    seen_prefixes: set[str] = set()
    for router, prefix in routes:
        route_list = getattr(router, "routes", None)
        if not isinstance(route_list, list) or not route_list:
            raise RuntimeError("Router registry includes an empty router definition")
        normalized_prefix = (prefix or "").strip()
        if normalized_prefix and not normalized_prefix.startswith("/"):
            raise RuntimeError(f"Router prefix must start with '/': {prefix!r}")
        if normalized_prefix in seen_prefixes:
            raise RuntimeError(
                f"Duplicate router prefix registered: {normalized_prefix or '/'}"
            )
        seen_prefixes.add(normalized_prefix)


def register_lifecycle_routes(
    app: FastAPI,
    *,
    app_name: str,
    version: str,
) -> None:
    """Register liveness and health endpoints."""

    @app.get("/ping", tags=["Lifecycle"], response_class=PlainTextResponse)
    async def ping() -> str:
        """Static liveness probe."""
        return "pong"

    @app.get("/health", tags=["Lifecycle"])
    async def health(
        instances: InventoryCache = Depends(get_instance_cache),
        load_balancers: InventoryCache = Depends(get_load_balancer_cache),
    ) -> dict[str, Any]:
        """Liveness plus inventory cache state. Never calls AWS."""
        return {
            "status": "healthy",
            "app": app_name,
            "version": version,
            "caches": {
                "instances": instances.status(),
                "load_balancers": load_balancers.status(),
            },
        }


def register_api_routers(app: FastAPI) -> None:
    # The Events API callback is mounted at the root path.
    routes: list[tuple[Any, str | None]] = [
        (events_router, None),
    ]
    _validate_router_registry(routes)
    for router, prefix in routes:
        if prefix:
            app.include_router(router, prefix=prefix)
        else:
            app.include_router(router)
