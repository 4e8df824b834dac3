import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from app.shared.core.app_routes import register_api_routers, register_lifecycle_routes
from app.shared.core.config import get_settings, reload_settings_from_environment
from app.shared.core.dependencies import get_slack_service
from app.shared.core.error_governance import handle_exception
from app.shared.core.exceptions import ConfigurationError, Ec2BotException
from app.shared.core.logging import setup_logging
from app.shared.core.middleware import RequestContextMiddleware
from app.shared.core.ops_metrics import API_ERRORS_TOTAL

# Configure logging
setup_logging()
settings = get_settings()

logger = structlog.get_logger()


def _is_test_mode() -> bool:
    return settings.TESTING or os.getenv("PYTEST_CURRENT_TEST") is not None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global settings
    settings = reload_settings_from_environment()

    logger.info("app_starting", app_name=settings.APP_NAME, version=settings.VERSION)

    # The bot must recognise its own posts, or it would answer itself forever.
    if _is_test_mode():
        app.state.bot_username = None
        logger.info("slack_auth_test_skipped_in_testing")
    else:
        try:
            app.state.bot_username = await get_slack_service().get_bot_username()
        except Exception as exc:
            logger.error("slack_auth_test_failed", error=str(exc), exc_info=True)
            raise ConfigurationError(
                "Unable to identify the Slack bot user; check SLACK_ACCESS_TOKEN"
            ) from exc
        logger.info("slack_bot_identified", username=app.state.bot_username)

    yield

    logger.info("app_stopped")


# Application instance
ec2bot_app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)
# Uvicorn requires the 'app' name by default in start parameters.
app: FastAPI = ec2bot_app  # noqa: A001

__all__ = ["app", "ec2bot_app", "lifespan", "run"]


@ec2bot_app.exception_handler(Ec2BotException)
async def ec2bot_exception_handler(
    request: Request, exc: Ec2BotException
) -> JSONResponse:
    """Handle custom application exceptions."""
    return handle_exception(request, exc)


@ec2bot_app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with standardized format."""
    detail_text = str(exc.detail) if isinstance(exc.detail, str) else "Request failed"
    API_ERRORS_TOTAL.labels(
        path=request.url.path, method=request.method, status_code=exc.status_code
    ).inc()
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": detail_text,
            "code": "HTTP_ERROR",
            "message": detail_text,
        },
    )


@ec2bot_app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    API_ERRORS_TOTAL.labels(
        path=request.url.path, method=request.method, status_code=422
    ).inc()
    return JSONResponse(
        status_code=422,
        content={
            "error": "Unprocessable Entity",
            "code": "VALIDATION_ERROR",
            "message": "The request body or parameters are invalid.",
            "details": [str(err.get("msg", err)) for err in exc.errors()],
        },
    )


@ec2bot_app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Sanitized 500 for anything unhandled."""
    return handle_exception(request, exc)


register_lifecycle_routes(
    ec2bot_app,
    app_name=settings.APP_NAME,
    version=settings.VERSION,
)

# Initialize Prometheus Metrics
Instrumentator().instrument(ec2bot_app).expose(ec2bot_app)

ec2bot_app.add_middleware(RequestContextMiddleware)

register_api_routers(ec2bot_app)


def run(**overrides: Any) -> None:
    """Console entrypoint: serve the webhook with uvicorn."""
    options: dict[str, Any] = {
        "host": settings.HOST,
        "port": settings.PORT,
        "log_config": None,  # structlog already owns the root logger
    }
    options.update(overrides)
    uvicorn.run("app.main:app", **options)


if __name__ == "__main__":
    run()
