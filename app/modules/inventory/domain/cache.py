"""
In-memory inventory cache with a time-to-live.

One InventoryCache holds the last full listing of one resource class. A
snapshot is either Fresh (younger than the TTL) or Stale (at least TTL old, or
never fetched). Reading a Fresh snapshot takes no lock. Refreshes are
single-flight: the first caller that sees a Stale snapshot starts the fetch
and every concurrent caller awaits that same fetch, sharing its result or its
error. A failed fetch leaves the previous snapshot in place.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

import structlog

from app.modules.inventory.domain.models import ResourceClass, ResourceRecord
from app.shared.core.ops_metrics import INVENTORY_REFRESHES_TOTAL

logger = structlog.get_logger()

InventoryFetcher = Callable[[], Awaitable[Sequence[ResourceRecord]]]
Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class InventorySnapshot:
    fetched_at: float
    items: tuple[ResourceRecord, ...]


class InventoryCache:
    def __init__(
        self,
        resource_class: ResourceClass,
        fetcher: InventoryFetcher,
        ttl: timedelta,
        clock: Clock = time.monotonic,
    ) -> None:
        self.resource_class = resource_class
        self._fetcher = fetcher
        self._ttl_seconds = ttl.total_seconds()
        self._clock = clock
        self._snapshot: Optional[InventorySnapshot] = None
        self._inflight: Optional[asyncio.Task[InventorySnapshot]] = None

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self._ttl_seconds)

    @property
    def snapshot(self) -> Optional[InventorySnapshot]:
        return self._snapshot

    def age(self) -> Optional[float]:
        """Seconds since the last successful fetch, None if never fetched."""
        if self._snapshot is None:
            return None
        return self._clock() - self._snapshot.fetched_at

    def is_stale(self) -> bool:
        age = self.age()
        return age is None or age >= self._ttl_seconds

    async def get_snapshot(self) -> InventorySnapshot:
        """Return the current snapshot, refreshing first when it is Stale."""
        snapshot = self._snapshot
        if snapshot is not None and not self.is_stale():
            return snapshot
        return await self.refresh()

    async def refresh(self) -> InventorySnapshot:
        task = self._inflight
        if task is None:
            task = asyncio.create_task(self._fetch_and_replace())
            self._inflight = task
            task.add_done_callback(self._clear_inflight)
        else:
            logger.debug(
                "inventory_refresh_coalesced",
                resource_class=self.resource_class.value,
            )
        # Shielded so one cancelled webhook request does not abort the shared fetch.
        return await asyncio.shield(task)

    def _clear_inflight(self, task: asyncio.Task[Any]) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark the exception retrieved; awaiting callers already received it.
            task.exception()

    async def _fetch_and_replace(self) -> InventorySnapshot:
        try:
            return await self._fetch()
        finally:
            # Cleared before any waiter resumes, so the next caller starts a new fetch.
            if self._inflight is asyncio.current_task():
                self._inflight = None

    async def _fetch(self) -> InventorySnapshot:
        started = self._clock()
        try:
            items = await self._fetcher()
        except Exception as exc:
            INVENTORY_REFRESHES_TOTAL.labels(
                resource_class=self.resource_class.value, outcome="failure"
            ).inc()
            logger.warning(
                "inventory_cache_refresh_failed",
                resource_class=self.resource_class.value,
                kept_previous=self._snapshot is not None,
                error=str(exc),
            )
            raise

        snapshot = InventorySnapshot(fetched_at=self._clock(), items=tuple(items))
        self._snapshot = snapshot
        INVENTORY_REFRESHES_TOTAL.labels(
            resource_class=self.resource_class.value, outcome="success"
        ).inc()
        logger.info(
            "inventory_cache_refreshed",
            resource_class=self.resource_class.value,
            count=len(snapshot.items),
            duration_seconds=round(snapshot.fetched_at - started, 3),
        )
        return snapshot

    def status(self) -> dict[str, Any]:
        """Summary used by the health endpoint."""
        age = self.age()
        return {
            "populated": self._snapshot is not None,
            "items": len(self._snapshot.items) if self._snapshot else 0,
            "age_seconds": round(age, 1) if age is not None else None,
            "stale": self.is_stale(),
            "ttl_seconds": self._ttl_seconds,
        }
