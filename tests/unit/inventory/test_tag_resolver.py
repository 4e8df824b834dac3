from unittest.mock import AsyncMock

import pytest

from app.modules.inventory.domain import TagResolver
from app.shared.core.exceptions import AdapterError

WEB_TAGS = [{"Key": "Name", "Value": "web"}, {"Key": "env", "Value": "prod"}]


@pytest.mark.asyncio
async def test_miss_fetches_and_caches():
    fetcher = AsyncMock(return_value={"web-lb": WEB_TAGS})
    tags = TagResolver(fetcher)

    assert await tags.resolve_tags("web-lb") == WEB_TAGS
    fetcher.assert_awaited_once_with(["web-lb"])
    assert tags.cached("web-lb")


@pytest.mark.asyncio
async def test_hit_does_not_fetch_again():
    fetcher = AsyncMock(return_value={"web-lb": WEB_TAGS})
    tags = TagResolver(fetcher)

    await tags.resolve_tags("web-lb")
    again = await tags.resolve_tags("web-lb")

    assert again == WEB_TAGS
    fetcher.assert_awaited_once()


@pytest.mark.asyncio
async def test_every_returned_name_is_cached():
    fetcher = AsyncMock(
        return_value={"web-lb": WEB_TAGS, "api-lb": [{"Key": "team", "Value": "core"}]}
    )
    tags = TagResolver(fetcher)

    await tags.resolve_tags("web-lb")

    assert len(tags) == 2
    assert await tags.resolve_tags("api-lb") == [{"Key": "team", "Value": "core"}]
    fetcher.assert_awaited_once()


@pytest.mark.asyncio
async def test_name_missing_from_response_yields_no_tags():
    tags = TagResolver(AsyncMock(return_value={}))

    assert await tags.resolve_tags("ghost-lb") == []
    assert not tags.cached("ghost-lb")


@pytest.mark.asyncio
async def test_fetch_failure_propagates_and_caches_nothing():
    fetcher = AsyncMock(side_effect=AdapterError("AWS elb:DescribeTags failed"))
    tags = TagResolver(fetcher)

    with pytest.raises(AdapterError):
        await tags.resolve_tags("web-lb")

    assert len(tags) == 0
