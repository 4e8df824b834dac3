from .models import (
    Attachment,
    AttachmentField,
    EventEnvelope,
    EventResolution,
    InboundEvent,
    ResolutionResult,
    ResourceClass,
)
from .cache import InventoryCache, InventorySnapshot
from .resolver import InstanceResolver, LoadBalancerResolver, ResourceResolver
from .tags import TagResolver
from .orchestrator import EventResolutionOrchestrator

__all__ = [
    "Attachment",
    "AttachmentField",
    "EventEnvelope",
    "EventResolution",
    "InboundEvent",
    "ResolutionResult",
    "ResourceClass",
    "InventoryCache",
    "InventorySnapshot",
    "InstanceResolver",
    "LoadBalancerResolver",
    "ResourceResolver",
    "TagResolver",
    "EventResolutionOrchestrator",
]
