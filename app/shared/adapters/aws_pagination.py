from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import structlog

logger = structlog.get_logger()


async def iter_aws_paginator_pages(
    paginator: Any,
    *,
    operation_name: str,
    paginate_kwargs: dict[str, Any] | None = None,
    max_pages: int | None = None,
) -> AsyncGenerator[dict[str, Any], None]:
    """
    Stream AWS paginator pages with an optional hard page bound.

    `max_pages` stops unbounded scans in very large accounts while keeping
    native paginator semantics.
    """
    if max_pages is not None and max_pages <= 0:
        raise ValueError("max_pages must be > 0 when provided")

    pages_seen = 0
    async for page in paginator.paginate(**(paginate_kwargs or {})):
        pages_seen += 1
        yield page
        if max_pages is not None and pages_seen >= max_pages:
            logger.warning(
                "aws_paginator_page_cap_reached",
                operation=operation_name,
                max_pages=max_pages,
            )
            break


async def collect_aws_paginator_items(
    paginator: Any,
    *,
    operation_name: str,
    result_key: str,
    paginate_kwargs: dict[str, Any] | None = None,
    max_pages: int | None = None,
) -> list[dict[str, Any]]:
    """Concatenate `result_key` across every page into one listing."""
    items: list[dict[str, Any]] = []
    async for page in iter_aws_paginator_pages(
        paginator,
        operation_name=operation_name,
        paginate_kwargs=paginate_kwargs,
        max_pages=max_pages,
    ):
        items.extend(page.get(result_key, []))
    return items
