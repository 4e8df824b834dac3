"""
Unified Error Governance

Centrally handles exception classification, structured logging and error
metrics so every failed webhook delivery answers with the same JSON shape.
"""

from typing import Any, Dict, Optional
from uuid import uuid4

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from app.shared.core.config import ENV_PRODUCTION, ENV_STAGING, get_settings
from app.shared.core.exceptions import Ec2BotException
from app.shared.core.ops_metrics import API_ERRORS_TOTAL

logger = structlog.get_logger()

# Messages of these codes are safe to show even in production.
SAFE_CODES = {"auth_error", "event_parse_error"}


def handle_exception(
    request: Request, exc: Exception, error_id: Optional[str] = None
) -> JSONResponse:
    """
    Classifies and records exceptions, returning a standardized JSON response.
    """
    error_id = error_id or str(uuid4())

    # 1. Classification & Sanitization
    settings = get_settings()
    is_prod = settings.ENVIRONMENT.lower() in (ENV_PRODUCTION, ENV_STAGING)

    if isinstance(exc, Ec2BotException):
        bot_exc = exc
        if is_prod and bot_exc.code not in SAFE_CODES:
            bot_exc.message = "An error occurred while processing your request"
    elif isinstance(exc, ValueError):
        msg = "Invalid request parameters" if is_prod else str(exc)
        bot_exc = Ec2BotException(
            message=msg,
            code="value_error",
            status_code=400,
        )
        logger.warning(
            "business_validation_error",
            error=str(exc),
            error_id=error_id,
            path=request.url.path,
        )
    else:
        # Always sanitize unhandled exceptions to avoid leaking secrets via message bodies.
        bot_exc = Ec2BotException(
            message="An unexpected internal error occurred",
            code="internal_error",
            status_code=500,
        )
        logger.exception(
            "unhandled_raw_exception",
            error=str(exc),
            error_id=error_id,
            path=request.url.path,
        )

    # 2. Metrics
    API_ERRORS_TOTAL.labels(
        path=request.url.path,
        method=request.method,
        status_code=bot_exc.status_code,
    ).inc()

    # 3. Structured Logging
    logger.error(
        "api_error",
        error_id=error_id,
        code=bot_exc.code,
        message=bot_exc.message,
        status_code=bot_exc.status_code,
        path=request.url.path,
        details=bot_exc.details,
    )

    response_details: Optional[Dict[str, Any]] = bot_exc.details
    if is_prod and bot_exc.code not in SAFE_CODES:
        response_details = None

    return JSONResponse(
        status_code=bot_exc.status_code,
        content={
            "error": {
                "message": bot_exc.message,
                "code": bot_exc.code,
                "id": error_id,
                "details": response_details if response_details else None,
            }
        },
    )
