import aioboto3
from typing import Any, Optional
from botocore.config import Config as BotoConfig
from app.shared.core.config import get_settings

# Standardized boto config with timeouts to prevent indefinite hangs
DEFAULT_BOTO_CONFIG = BotoConfig(
    read_timeout=30, connect_timeout=10, retries={"max_attempts": 3, "mode": "adaptive"}
)


def get_boto_session() -> aioboto3.Session:
    """Returns a centralized aioboto3 session."""
    return aioboto3.Session()


def resolve_aws_region_hint(region: Any) -> Optional[str]:
    """
    Resolve the region an inventory client should talk to.

    - Explicit region wins
    - Otherwise use configured AWS_DEFAULT_REGION
    - None leaves the choice to the default botocore chain (env, profile)
    """
    candidate = str(region or "").strip()
    if candidate and candidate != "global":
        return candidate

    configured_default = str(get_settings().AWS_DEFAULT_REGION or "").strip()
    return configured_default or None


def get_aws_client(
    service_name: str,
    session: Optional[aioboto3.Session] = None,
    region: Optional[str] = None,
) -> Any:
    """
    Returns an async AWS client context manager for the specified service.

    Credentials come from the default provider chain, same as the CLI.
    """
    session = session or get_boto_session()

    kwargs: dict[str, Any] = {"service_name": service_name, "config": DEFAULT_BOTO_CONFIG}
    resolved_region = resolve_aws_region_hint(region)
    if resolved_region:
        kwargs["region_name"] = resolved_region

    return session.client(**kwargs)
