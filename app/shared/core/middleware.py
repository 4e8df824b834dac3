import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = structlog.get_logger()

# Probe and scrape traffic is too frequent to log per request.
QUIET_PATHS = frozenset({"/ping", "/health", "/metrics"})

SLACK_RETRY_HEADERS = {
    "X-Slack-Retry-Num": "slack_retry_num",
    "X-Slack-Retry-Reason": "slack_retry_reason",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds per-delivery context into structlog and times each request.

    X-Request-ID is trusted when the caller sends one; it is for correlation
    only. Slack marks redelivered events with X-Slack-Retry-* headers, which
    are bound so duplicate deliveries can be told apart in the logs.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        for header, key in SLACK_RETRY_HEADERS.items():
            value = request.headers.get(header)
            if value:
                structlog.contextvars.bind_contextvars(**{key: value})

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        if request.url.path not in QUIET_PATHS:
            logger.info(
                "http_request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        return response
