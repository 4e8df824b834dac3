"""
Posts resolution results back into the originating Slack thread.

Each resolved resource is rendered and posted on its own; a rendering, tag
lookup or post failure only loses that one message. The aggregated not-found
notice is best effort and never raises.
"""

import structlog
import yaml

from app.modules.inventory.domain.models import (
    InboundEvent,
    ResolutionResult,
    ResourceRecord,
)
from app.modules.inventory.domain.tags import TagResolver
from app.modules.notifications.domain.formatting import (
    SlackMessage,
    format_instance,
    format_load_balancer,
    format_not_found,
)
from app.modules.notifications.domain.slack import SlackService
from app.shared.core.exceptions import Ec2BotException
from app.shared.core.ops_metrics import SLACK_POSTS_TOTAL

logger = structlog.get_logger()


class ResolutionPublisher:
    def __init__(self, slack: SlackService, tags: TagResolver) -> None:
        self.slack = slack
        self.tags = tags

    async def publish_instances(
        self, event: InboundEvent, instances: dict[str, ResourceRecord]
    ) -> int:
        """Post one message per instance; returns how many were delivered."""
        posted = 0
        for instance_id, instance in instances.items():
            try:
                message = format_instance(instance)
            except (KeyError, TypeError, yaml.YAMLError) as exc:
                self._record_failure("instance", instance_id, exc)
                continue
            if await self._post(event, message, kind="instance"):
                posted += 1
        return posted

    async def publish_load_balancers(
        self, event: InboundEvent, load_balancers: dict[str, ResourceRecord]
    ) -> int:
        posted = 0
        for dns_name, load_balancer in load_balancers.items():
            try:
                tags = await self.tags.resolve_tags(load_balancer["LoadBalancerName"])
                message = format_load_balancer(load_balancer, tags)
            except (Ec2BotException, KeyError, TypeError, yaml.YAMLError) as exc:
                self._record_failure("load_balancer", dns_name, exc)
                continue
            if await self._post(event, message, kind="load_balancer"):
                posted += 1
        return posted

    async def publish_not_found(
        self, event: InboundEvent, result: ResolutionResult
    ) -> None:
        """Aggregated notice for unresolved queries; failures are only logged."""
        if not result.not_found:
            return
        message = format_not_found(result.resource_class, result.not_found)
        try:
            await self._post(event, message, kind="not_found")
        except Exception as exc:  # noqa: BLE001 - best-effort notice after the response
            logger.warning(
                "slack_not_found_post_failed",
                resource_class=result.resource_class.value,
                error=str(exc),
            )

    async def _post(self, event: InboundEvent, message: SlackMessage, *, kind: str) -> bool:
        delivered = await self.slack.post_message(
            channel=event.channel,
            text=message.text,
            attachments=message.attachments,
            thread_ts=event.ts,
        )
        SLACK_POSTS_TOTAL.labels(
            kind=kind, outcome="success" if delivered else "failure"
        ).inc()
        if not delivered:
            logger.warning("slack_post_failed", kind=kind, channel=event.channel)
        return delivered

    def _record_failure(self, kind: str, key: str, exc: Exception) -> None:
        SLACK_POSTS_TOTAL.labels(kind=kind, outcome="failure").inc()
        logger.error(
            "slack_resource_render_failed",
            kind=kind,
            resource=key,
            error=str(exc),
        )
