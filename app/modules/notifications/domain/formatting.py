"""
Slack rendering of resolved resources.

Each resolved resource becomes one message: a summary attachment of key
fields, a tags attachment and a details attachment holding the raw AWS record
as YAML. Unresolved queries are reported in one aggregated message.
"""

from dataclasses import dataclass, field
from typing import Any

import yaml

from app.modules.inventory.domain.models import ResourceClass, ResourceRecord

NOT_FOUND_COLOR = "#daa038"
MISSING_VALUE = "-"

NOT_FOUND_TITLES = {
    ResourceClass.INSTANCE: "failed to get instance",
    ResourceClass.LOAD_BALANCER: "failed to get load balancer",
}


@dataclass(slots=True)
class SlackMessage:
    text: str
    attachments: list[dict[str, Any]] = field(default_factory=list)


def _field(title: str, value: Any) -> dict[str, Any]:
    return {"title": title, "value": str(value) if value else MISSING_VALUE}


def _tag_fields(tags: list[dict[str, str]]) -> list[dict[str, Any]]:
    return [
        {"title": tag.get("Key", ""), "value": tag.get("Value", ""), "short": True}
        for tag in tags
    ]


def render_details(record: ResourceRecord) -> str:
    """YAML dump of the raw record; raises yaml.YAMLError on unrepresentable values."""
    return yaml.safe_dump(record, default_flow_style=False, allow_unicode=True)


def format_instance(instance: ResourceRecord) -> SlackMessage:
    instance_id = instance["InstanceId"]
    return SlackMessage(
        text=instance_id,
        attachments=[
            {
                "fields": [
                    _field("Instance ID", instance_id),
                    _field("Instance Type", instance.get("InstanceType")),
                    _field("Private DNS Name", instance.get("PrivateDnsName")),
                    _field("Private IP Address", instance.get("PrivateIpAddress")),
                    _field("Public DNS Name", instance.get("PublicDnsName")),
                    _field("Public IP Address", instance.get("PublicIpAddress")),
                    _field("State", (instance.get("State") or {}).get("Name")),
                ]
            },
            {"title": "Tags", "fields": _tag_fields(instance.get("Tags") or [])},
            {"title": "Details", "text": render_details(instance)},
        ],
    )


def format_load_balancer(
    load_balancer: ResourceRecord, tags: list[dict[str, str]]
) -> SlackMessage:
    name = load_balancer["LoadBalancerName"]
    return SlackMessage(
        text=name,
        attachments=[
            {
                "fields": [
                    _field("Name", name),
                    _field("DNS Name", load_balancer.get("DNSName")),
                    _field("Scheme", load_balancer.get("Scheme")),
                ]
            },
            {"title": "Tags", "fields": _tag_fields(tags)},
            {"title": "Details", "text": render_details(load_balancer)},
        ],
    )


def format_not_found(resource_class: ResourceClass, queries: list[str]) -> SlackMessage:
    return SlackMessage(
        text=NOT_FOUND_TITLES[resource_class],
        attachments=[{"text": q, "color": NOT_FOUND_COLOR} for q in queries],
    )
