from abc import ABC, abstractmethod
from typing import Optional

import structlog

from app.modules.inventory.domain.cache import InventoryCache
from app.modules.inventory.domain.models import ResourceClass, ResourceRecord
from app.shared.core.ops_metrics import INVENTORY_LOOKUPS_TOTAL

logger = structlog.get_logger()


class ResourceResolver(ABC):
    """Look a query up in one resource class' cached inventory."""

    resource_class: ResourceClass

    def __init__(self, cache: InventoryCache) -> None:
        if cache.resource_class is not self.resource_class:
            raise ValueError(
                f"{type(self).__name__} needs a {self.resource_class.value} cache, "
                f"got {cache.resource_class.value}"
            )
        self.cache = cache

    @abstractmethod
    def matches(self, query: str, record: ResourceRecord) -> bool:
        """True when `record` is the resource `query` refers to."""

    @abstractmethod
    def canonical_key(self, record: ResourceRecord) -> str:
        """Stable identifier used to deduplicate resolved resources."""

    async def resolve(self, query: str) -> Optional[ResourceRecord]:
        """
        First cached record matching `query`, or None.

        Refreshes a Stale cache first; a failed refresh propagates.
        """
        snapshot = await self.cache.get_snapshot()
        for record in snapshot.items:
            if self.matches(query, record):
                INVENTORY_LOOKUPS_TOTAL.labels(
                    resource_class=self.resource_class.value, outcome="found"
                ).inc()
                return record

        INVENTORY_LOOKUPS_TOTAL.labels(
            resource_class=self.resource_class.value, outcome="not_found"
        ).inc()
        logger.debug(
            "inventory_query_not_found",
            resource_class=self.resource_class.value,
            query=query,
        )
        return None


class InstanceResolver(ResourceResolver):
    resource_class = ResourceClass.INSTANCE

    def matches(self, query: str, record: ResourceRecord) -> bool:
        return query in (record.get("PrivateDnsName"), record.get("InstanceId"))

    def canonical_key(self, record: ResourceRecord) -> str:
        return str(record["InstanceId"])


class LoadBalancerResolver(ResourceResolver):
    resource_class = ResourceClass.LOAD_BALANCER

    def matches(self, query: str, record: ResourceRecord) -> bool:
        # Chat text may carry a shortened DNS name, so any suffix matches.
        dns_name = record.get("DNSName")
        return bool(dns_name) and dns_name.endswith(query)

    def canonical_key(self, record: ResourceRecord) -> str:
        return str(record["DNSName"])
