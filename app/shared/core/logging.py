import re
import sys
import structlog
import logging
from typing import Any, cast
from app.shared.core.config import get_settings

_SLACK_TOKEN_REGEX = re.compile(r"xox[abposr]-[0-9A-Za-z-]+")
_AWS_ACCESS_KEY_REGEX = re.compile(r"(?<![A-Z0-9])(?:AKIA|ASIA)[A-Z0-9]{16}(?![A-Z0-9])")

_SECRET_FIELDS = {
    "password",
    "token",
    "secret",
    "authorization",
    "auth",
    "api_key",
    "apikey",
    "access_token",
    "refresh_token",
    "client_secret",
    "private_key",
    "aws_secret_access_key",
    "aws_session_token",
}
_SECRET_SUFFIXES = ("_token", "_secret", "_password", "_key")
_SECRET_CONTAINS = ("authorization", "secret", "token", "apikey", "api_key")


def _is_sensitive_key(key: Any) -> bool:
    key_norm = str(key).lower().strip().replace("-", "_")
    if key_norm in _SECRET_FIELDS:
        return True
    if key_norm.endswith(_SECRET_SUFFIXES):
        return True
    tokens = [t for t in re.split(r"[^a-z0-9]+", key_norm) if t]
    if any(t in _SECRET_FIELDS for t in tokens):
        return True
    return any(fragment in key_norm for fragment in _SECRET_CONTAINS)


def _redact_text(text: str) -> str:
    text = _SLACK_TOKEN_REGEX.sub("[SLACK_TOKEN_REDACTED]", text)
    return _AWS_ACCESS_KEY_REGEX.sub("[AWS_KEY_REDACTED]", text)


def secret_redactor(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    Recursively redact credentials from log events.

    The webhook handles Slack bot tokens, the verification token and AWS
    credentials; none of them may reach stdout.
    """

    def redact_recursive(data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: ("[REDACTED]" if _is_sensitive_key(k) else redact_recursive(v))
                for k, v in data.items()
            }
        elif isinstance(data, list):
            return [redact_recursive(item) for item in data]
        elif isinstance(data, str):
            return _redact_text(data)
        return data

    redacted = redact_recursive(event_dict)
    if isinstance(redacted, dict):
        return cast(dict[str, Any], redacted)
    return {}


def setup_logging() -> None:
    settings = get_settings()

    # 1. Configure the common processors (Middleware Pipeline for Logs)
    base_processors = [
        structlog.contextvars.merge_contextvars,  # request_id bound by middleware
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        secret_redactor,  # Redact credentials before rendering
    ]

    # 2. Choose the renderer based on environment
    if settings.DEBUG:
        renderer: Any = structlog.dev.ConsoleRenderer()
        processors = base_processors + [renderer]
        min_level = logging.DEBUG
    else:
        renderer = structlog.processors.JSONRenderer()
        processors = base_processors + [structlog.processors.dict_tracebacks, renderer]
        min_level = logging.INFO

    # 3. Configure the logger or apply the configuration
    structlog.configure(
        processors=cast(Any, processors),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # 4. Intercept the standard logging (uvicorn, botocore, slack_sdk).
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=min_level,
    )
    if not settings.SLACK_DEBUG:
        logging.getLogger("slack_sdk").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
