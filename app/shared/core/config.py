from datetime import timedelta
from functools import lru_cache
from threading import Lock
from typing import Optional
import re

import structlog
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Environment Constants
ENV_PRODUCTION = "production"
ENV_STAGING = "staging"
ENV_DEVELOPMENT = "development"

DEFAULT_CACHE_TTL = timedelta(minutes=5)

# Duration units accepted in strings like "300ms", "1.5h" or "2h45m".
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


@lru_cache
def get_settings() -> "Settings":
    """Returns a singleton instance of the application settings."""
    return Settings()


_settings_reload_lock = Lock()


def reload_settings_from_environment() -> "Settings":
    """
    Atomically rebuild and replace cached settings from environment values.

    This avoids mutating the cached singleton instance in-place.
    """
    logger = structlog.get_logger()
    with _settings_reload_lock:
        logger.info("settings_reload_started")
        get_settings.cache_clear()
        refreshed = get_settings()
        logger.info("settings_reload_completed")
        return refreshed


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string such as ``5m``, ``90s`` or ``1h30m``.

    A bare ``0`` is accepted. Raises ValueError for anything else that is not
    a sequence of ``<number><unit>`` parts.
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return timedelta(0)

    seconds = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration {value!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=sign * seconds)


class Settings(BaseSettings):
    """
    Runtime configuration for the ec2bot webhook.
    Uses Pydantic-Settings for environment variable parsing from .env.
    """

    APP_NAME: str = "ec2bot"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    # ENVIRONMENT options: local, development, staging, production
    ENVIRONMENT: str = ENV_DEVELOPMENT
    TESTING: bool = False

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Slack
    SLACK_ACCESS_TOKEN: Optional[str] = None
    SLACK_VERIFY_TOKEN: Optional[str] = None
    SLACK_DEBUG: bool = False
    SLACK_MAX_RETRIES: int = 3

    # Inventory
    INSTANCE_CACHE_TTL: str = ""
    AWS_DEFAULT_REGION: Optional[str] = None
    # Hard stop for paginated listings; None walks every page.
    INVENTORY_MAX_PAGES: Optional[int] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @model_validator(mode="after")
    def validate_all_config(self) -> "Settings":
        """Fail fast on configuration that can never serve a webhook."""
        if self.TESTING and self.ENVIRONMENT in {ENV_PRODUCTION, ENV_STAGING}:
            raise ValueError(
                "TESTING must be false in staging/production runtime environments."
            )
        if self.TESTING:
            return self

        if not self.SLACK_ACCESS_TOKEN:
            raise ValueError("SLACK_ACCESS_TOKEN must be configured")
        if not self.SLACK_VERIFY_TOKEN:
            raise ValueError("SLACK_VERIFY_TOKEN must be configured")
        if self.INVENTORY_MAX_PAGES is not None and self.INVENTORY_MAX_PAGES <= 0:
            raise ValueError("INVENTORY_MAX_PAGES must be > 0 when provided")
        return self

    @property
    def cache_ttl(self) -> timedelta:
        """
        Inventory cache time-to-live.

        Falls back to 5 minutes, with a warning, when INSTANCE_CACHE_TTL is
        unset, unparsable or negative.
        """
        try:
            ttl = parse_duration(self.INSTANCE_CACHE_TTL)
        except ValueError as exc:
            structlog.get_logger().warning(
                "cache_ttl_invalid",
                value=self.INSTANCE_CACHE_TTL,
                default=str(DEFAULT_CACHE_TTL),
                error=str(exc),
            )
            return DEFAULT_CACHE_TTL
        if ttl < timedelta(0):
            structlog.get_logger().warning(
                "cache_ttl_negative",
                value=self.INSTANCE_CACHE_TTL,
                default=str(DEFAULT_CACHE_TTL),
            )
            return DEFAULT_CACHE_TTL
        return ttl
