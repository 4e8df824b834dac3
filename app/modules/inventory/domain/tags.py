from collections.abc import Awaitable, Callable, Mapping, Sequence

import structlog

from app.shared.core.ops_metrics import TAG_LOOKUPS_TOTAL

logger = structlog.get_logger()

Tag = dict[str, str]
TagFetcher = Callable[[Sequence[str]], Awaitable[Mapping[str, list[Tag]]]]


class TagResolver:
    """
    Process-lifetime cache of load balancer tags, keyed by load balancer name.

    Entries are never evicted. One describe call may return tags for several
    names; all of them are kept so sibling lookups cost nothing later.
    """

    def __init__(self, fetcher: TagFetcher) -> None:
        self._fetcher = fetcher
        self._tags: dict[str, list[Tag]] = {}

    def __len__(self) -> int:
        return len(self._tags)

    def cached(self, name: str) -> bool:
        return name in self._tags

    async def resolve_tags(self, name: str) -> list[Tag]:
        if name in self._tags:
            TAG_LOOKUPS_TOTAL.labels(outcome="hit").inc()
            return self._tags[name]

        TAG_LOOKUPS_TOTAL.labels(outcome="miss").inc()
        descriptions = await self._fetcher([name])
        for lb_name, tags in descriptions.items():
            self._tags[lb_name] = list(tags)
        logger.debug(
            "load_balancer_tags_fetched",
            requested=name,
            returned=sorted(descriptions),
        )
        return self._tags.get(name, [])
