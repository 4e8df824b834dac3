"""
Process-wide wiring of the resolution pipeline.

Caches live for the life of the process, so every factory here is a cached
singleton. Tests swap them through `app.dependency_overrides`.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Request

from app.modules.chatops.domain.publisher import ResolutionPublisher
from app.modules.inventory.adapters.aws import AWSInventoryAdapter
from app.modules.inventory.domain import (
    EventResolutionOrchestrator,
    InstanceResolver,
    InventoryCache,
    LoadBalancerResolver,
    ResourceClass,
    TagResolver,
)
from app.modules.notifications.domain.slack import SlackService
from app.shared.core.config import get_settings


@lru_cache
def get_inventory_adapter() -> AWSInventoryAdapter:
    settings = get_settings()
    return AWSInventoryAdapter(
        region=settings.AWS_DEFAULT_REGION,
        max_pages=settings.INVENTORY_MAX_PAGES,
    )


@lru_cache
def get_instance_cache() -> InventoryCache:
    return InventoryCache(
        ResourceClass.INSTANCE,
        get_inventory_adapter().list_instances,
        ttl=get_settings().cache_ttl,
    )


@lru_cache
def get_load_balancer_cache() -> InventoryCache:
    return InventoryCache(
        ResourceClass.LOAD_BALANCER,
        get_inventory_adapter().list_load_balancers,
        ttl=get_settings().cache_ttl,
    )


@lru_cache
def get_tag_resolver() -> TagResolver:
    return TagResolver(get_inventory_adapter().describe_load_balancer_tags)


@lru_cache
def get_orchestrator() -> EventResolutionOrchestrator:
    return EventResolutionOrchestrator(
        instances=InstanceResolver(get_instance_cache()),
        load_balancers=LoadBalancerResolver(get_load_balancer_cache()),
    )


@lru_cache
def get_slack_service() -> SlackService:
    settings = get_settings()
    return SlackService(
        settings.SLACK_ACCESS_TOKEN or "",
        max_retries=settings.SLACK_MAX_RETRIES,
    )


@lru_cache
def get_publisher() -> ResolutionPublisher:
    return ResolutionPublisher(get_slack_service(), get_tag_resolver())


def get_bot_username(request: Request) -> Optional[str]:
    """Bot user name learned at startup; None until the lifespan ran."""
    return getattr(request.app.state, "bot_username", None)
