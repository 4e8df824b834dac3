"""
Slack Web API client for threaded replies.

Wraps slack_sdk's AsyncWebClient. Slack client and transport failures never
escape a post: they are logged and reported as False so one broken reply
cannot fail a webhook delivery.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import aiohttp
import structlog
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

logger = structlog.get_logger()

DEFAULT_RETRY_AFTER_SECONDS = 1


class SlackService:
    def __init__(
        self,
        bot_token: str,
        *,
        max_retries: int = 3,
        client: Optional[AsyncWebClient] = None,
    ):
        self.client = client or AsyncWebClient(token=bot_token)
        self.max_retries = max_retries

    async def get_bot_username(self) -> str:
        """User name of the bot token, used to ignore the bot's own posts."""
        response = await self.client.auth_test()
        return str(response["user"])

    async def post_message(
        self,
        *,
        channel: str,
        text: str,
        attachments: list[dict[str, Any]],
        thread_ts: Optional[str] = None,
    ) -> bool:
        """Post a message, threaded under `thread_ts` when given."""
        kwargs: dict[str, Any] = {
            "channel": channel,
            "text": text,
            "attachments": attachments,
        }
        if thread_ts:
            kwargs["thread_ts"] = thread_ts
        return await self._send_with_retry("chat_postMessage", **kwargs)

    async def _send_with_retry(self, method: str, **kwargs: Any) -> bool:
        """Call a Web API method, honouring Retry-After on rate limiting."""
        for attempt in range(self.max_retries):
            try:
                await getattr(self.client, method)(**kwargs)
                return True
            except SlackApiError as e:
                error = e.response.get("error") if e.response is not None else None
                if error == "ratelimited" and attempt < self.max_retries - 1:
                    retry_after = _retry_after_seconds(e)
                    logger.warning(
                        "slack_rate_limited",
                        method=method,
                        retry_after=retry_after,
                        attempt=attempt + 1,
                    )
                    await asyncio.sleep(retry_after)
                    continue
                logger.error(
                    "slack_api_error",
                    method=method,
                    error=error or str(e),
                    channel=kwargs.get("channel"),
                )
                return False
            except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(
                    "slack_transport_error",
                    method=method,
                    error=str(e) or type(e).__name__,
                    channel=kwargs.get("channel"),
                )
                return False
        return False


def _retry_after_seconds(error: SlackApiError) -> int:
    headers = getattr(error.response, "headers", None) or {}
    try:
        return int(headers.get("Retry-After", DEFAULT_RETRY_AFTER_SECONDS))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS
