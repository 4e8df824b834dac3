"""
Inventory domain models.

InboundEvent binds only the parts of a Slack Events API callback that the
resolution pipeline reads. Everything else in the payload is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.shared.core.exceptions import EventParseError

ResourceRecord = dict[str, Any]


class ResourceClass(str, Enum):
    INSTANCE = "instance"
    LOAD_BALANCER = "load_balancer"


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class AttachmentField(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = ""
    value: str = ""

    @field_validator("title", "value", mode="before")
    @classmethod
    def blank_none(cls, value: Any) -> Any:
        return _none_to_empty(value)


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    text: str = ""
    title: str = ""
    fields: tuple[AttachmentField, ...] = ()

    @field_validator("text", "title", mode="before")
    @classmethod
    def blank_none(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("fields", mode="before")
    @classmethod
    def fields_default(cls, value: Any) -> Any:
        return () if value is None else value


class InboundEvent(BaseModel):
    """A Slack message event. Immutable once parsed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = "message"
    channel: str = Field(min_length=1)
    ts: str = Field(min_length=1)
    text: str = ""
    attachments: tuple[Attachment, ...] = ()
    username: str = ""
    user: str = ""
    thread_ts: Optional[str] = None

    @field_validator("text", "username", "user", mode="before")
    @classmethod
    def blank_none(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("attachments", mode="before")
    @classmethod
    def attachments_default(cls, value: Any) -> Any:
        return () if value is None else value

    def corpus(self) -> list[str]:
        """Flatten the body, attachment texts, titles and field values."""
        texts = [self.text]
        for attachment in self.attachments:
            texts.append(attachment.text)
            texts.append(attachment.title)
            texts.extend(f.value for f in attachment.fields)
        return texts


class EventEnvelope(BaseModel):
    """Outer Events API callback. `event` is bound lazily, after verification."""

    model_config = ConfigDict(extra="ignore")

    token: str = ""
    type: str = ""
    challenge: str = ""
    team_id: str = ""
    api_app_id: str = ""
    event_id: str = ""
    event_time: int = 0
    authed_users: list[str] = []
    event: Optional[dict[str, Any]] = None

    @field_validator(
        "token", "type", "challenge", "team_id", "api_app_id", "event_id", mode="before"
    )
    @classmethod
    def blank_none(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @property
    def is_url_verification(self) -> bool:
        return self.type == "url_verification"

    def inbound_event(self) -> InboundEvent:
        """Bind the nested message, failing closed when it is absent or malformed."""
        if self.event is None:
            raise EventParseError("event payload is missing")
        try:
            return InboundEvent.model_validate(self.event)
        except ValidationError as exc:
            raise EventParseError(
                "event payload is malformed",
                details={"errors": [e["msg"] for e in exc.errors()]},
            ) from exc


@dataclass(slots=True)
class ResolutionResult:
    """
    Outcome of resolving every query of one resource class.

    `resolved` is keyed by canonical resource key (InstanceId for instances,
    DNSName for load balancers) so one resource never appears twice.
    """

    resource_class: ResourceClass
    resolved: dict[str, ResourceRecord] = field(default_factory=dict)
    not_found: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.resolved and not self.not_found


@dataclass(slots=True)
class EventResolution:
    """Per-event outcome; `load_balancers` is None when it was skipped."""

    instances: ResolutionResult
    load_balancers: Optional[ResolutionResult] = None

    def results(self) -> list[ResolutionResult]:
        return [r for r in (self.instances, self.load_balancers) if r is not None]
