"""
Event Resolution Orchestrator

Runs the two resolution pipelines for one inbound Slack event:

1. extract queries for a resource class (no queries -> empty result, no AWS call)
2. resolve each query through the cached inventory; a fetch failure aborts
   the whole pipeline and discards anything resolved so far
3. partition into resolved (deduplicated by canonical key) and not found

Instances are resolved first. Load balancers are only looked at when no
instance was resolved, since a message is assumed to be about one kind of
resource.
"""

from collections.abc import Iterable

import structlog

from app.modules.inventory.domain.extractor import (
    find_instance_queries,
    find_load_balancer_queries,
)
from app.modules.inventory.domain.models import (
    EventResolution,
    InboundEvent,
    ResolutionResult,
)
from app.modules.inventory.domain.resolver import (
    InstanceResolver,
    LoadBalancerResolver,
    ResourceResolver,
)

logger = structlog.get_logger()


class EventResolutionOrchestrator:
    def __init__(
        self,
        instances: InstanceResolver,
        load_balancers: LoadBalancerResolver,
    ) -> None:
        self.instances = instances
        self.load_balancers = load_balancers

    async def resolve_instances(self, event: InboundEvent) -> ResolutionResult:
        return await self._resolve(self.instances, find_instance_queries(event))

    async def resolve_load_balancers(self, event: InboundEvent) -> ResolutionResult:
        return await self._resolve(
            self.load_balancers, find_load_balancer_queries(event)
        )

    async def resolve_event(self, event: InboundEvent) -> EventResolution:
        instances = await self.resolve_instances(event)
        if instances.resolved:
            return EventResolution(instances=instances)
        load_balancers = await self.resolve_load_balancers(event)
        return EventResolution(instances=instances, load_balancers=load_balancers)

    async def _resolve(
        self, resolver: ResourceResolver, queries: Iterable[str]
    ) -> ResolutionResult:
        result = ResolutionResult(resource_class=resolver.resource_class)
        ordered = sorted(queries)
        if not ordered:
            return result

        for query in ordered:
            record = await resolver.resolve(query)
            if record is None:
                result.not_found.append(query)
                continue
            result.resolved[resolver.canonical_key(record)] = record

        logger.info(
            "event_queries_resolved",
            resource_class=resolver.resource_class.value,
            queries=len(ordered),
            resolved=len(result.resolved),
            not_found=len(result.not_found),
        )
        return result
