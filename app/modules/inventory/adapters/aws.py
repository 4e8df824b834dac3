"""
AWS Inventory Adapter (Native Async)

Full listings of EC2 instances and classic load balancers, plus tag lookups,
for the in-memory inventory caches. No filtering is pushed to AWS: the caches
match queries locally.
"""

from collections.abc import Sequence
from typing import Any, Optional

import aioboto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from app.shared.adapters.aws_pagination import collect_aws_paginator_items
from app.shared.adapters.aws_utils import get_aws_client, get_boto_session
from app.shared.core.exceptions import AdapterError

logger = structlog.get_logger()


def _adapter_error(operation: str, exc: Exception) -> AdapterError:
    if isinstance(exc, ClientError):
        error_code = exc.response.get("Error", {}).get("Code", "Unknown")
    else:
        error_code = type(exc).__name__
    logger.error(
        "aws_inventory_call_failed",
        operation=operation,
        code=error_code,
        error=str(exc),
    )
    return AdapterError(
        f"AWS {operation} failed: {error_code}",
        details={"operation": operation, "aws_error_code": error_code},
    )


class AWSInventoryAdapter:
    """
    Remote-fetch capability behind the instance and load balancer caches.

    Every method raises AdapterError on AWS or transport failures.
    """

    def __init__(
        self,
        session: Optional[aioboto3.Session] = None,
        region: Optional[str] = None,
        max_pages: Optional[int] = None,
    ):
        self.session = session or get_boto_session()
        self.region = region
        self.max_pages = max_pages

    async def list_instances(self) -> list[dict[str, Any]]:
        """Every instance of every reservation, flattened."""
        try:
            async with get_aws_client("ec2", self.session, self.region) as ec2:
                reservations = await collect_aws_paginator_items(
                    ec2.get_paginator("describe_instances"),
                    operation_name="ec2:DescribeInstances",
                    result_key="Reservations",
                    max_pages=self.max_pages,
                )
        except (ClientError, BotoCoreError) as exc:
            raise _adapter_error("ec2:DescribeInstances", exc) from exc

        instances = [
            instance
            for reservation in reservations
            for instance in reservation.get("Instances", [])
        ]
        logger.debug("aws_instances_listed", count=len(instances))
        return instances

    async def list_load_balancers(self) -> list[dict[str, Any]]:
        try:
            async with get_aws_client("elb", self.session, self.region) as elb:
                load_balancers = await collect_aws_paginator_items(
                    elb.get_paginator("describe_load_balancers"),
                    operation_name="elb:DescribeLoadBalancers",
                    result_key="LoadBalancerDescriptions",
                    max_pages=self.max_pages,
                )
        except (ClientError, BotoCoreError) as exc:
            raise _adapter_error("elb:DescribeLoadBalancers", exc) from exc

        logger.debug("aws_load_balancers_listed", count=len(load_balancers))
        return load_balancers

    async def describe_load_balancer_tags(
        self, names: Sequence[str]
    ) -> dict[str, list[dict[str, str]]]:
        """Tags per load balancer name, for every name AWS returned."""
        try:
            async with get_aws_client("elb", self.session, self.region) as elb:
                response = await elb.describe_tags(LoadBalancerNames=list(names))
        except (ClientError, BotoCoreError) as exc:
            raise _adapter_error("elb:DescribeTags", exc) from exc

        return {
            description["LoadBalancerName"]: [
                {"Key": tag.get("Key", ""), "Value": tag.get("Value", "")}
                for tag in description.get("Tags", [])
            ]
            for description in response.get("TagDescriptions", [])
            if description.get("LoadBalancerName")
        }
