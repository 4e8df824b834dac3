import hmac
import json
from typing import Annotated, Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from app.modules.chatops.domain.publisher import ResolutionPublisher
from app.modules.inventory.domain import EventEnvelope, EventResolutionOrchestrator
from app.shared.core.config import Settings, get_settings
from app.shared.core.dependencies import (
    get_bot_username,
    get_orchestrator,
    get_publisher,
)
from app.shared.core.exceptions import AuthError, Ec2BotException, EventParseError

router = APIRouter(tags=["Slack Events"])
logger = structlog.get_logger()

POSTED_INSTANCES = "post instance details"
POSTED_LOAD_BALANCERS = "post load balancer details"
QUERY_NOT_FOUND = "query not found"
IGNORED_OWN_POST = "ignore own post"


async def _read_envelope(request: Request) -> EventEnvelope:
    body = await request.body()
    try:
        payload: Any = json.loads(body) if body else {}
    except json.JSONDecodeError as exc:
        raise EventParseError(f"Invalid JSON payload: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise EventParseError("Webhook payload must be a JSON object")
    try:
        return EventEnvelope.model_validate(payload)
    except ValidationError as exc:
        raise EventParseError(
            "Webhook payload is malformed",
            details={"errors": [e["msg"] for e in exc.errors()]},
        ) from exc


def _verify_token(envelope: EventEnvelope, settings: Settings) -> None:
    expected = settings.SLACK_VERIFY_TOKEN or ""
    if not expected or not hmac.compare_digest(
        envelope.token.encode(), expected.encode()
    ):
        logger.warning("slack_token_verification_failed", team_id=envelope.team_id)
        raise AuthError("failed to verify token")


@router.post("/", response_class=PlainTextResponse)
async def receive_event(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Annotated[Settings, Depends(get_settings)],
    orchestrator: Annotated[EventResolutionOrchestrator, Depends(get_orchestrator)],
    publisher: Annotated[ResolutionPublisher, Depends(get_publisher)],
    bot_username: Annotated[Optional[str], Depends(get_bot_username)],
) -> PlainTextResponse:
    """
    Slack Events API callback.

    Looks up instances first and load balancers only when no instance
    matched. Unresolved queries are reported after the response is sent,
    except when the load balancer lookup fails: the error response carries
    no background tasks, so the instance notice is posted before re-raising.
    """
    envelope = await _read_envelope(request)
    _verify_token(envelope, settings)

    if envelope.is_url_verification:
        return PlainTextResponse(envelope.challenge)

    event = envelope.inbound_event()
    structlog.contextvars.bind_contextvars(
        event_id=envelope.event_id, channel=event.channel
    )

    if bot_username and event.username == bot_username:
        return PlainTextResponse(IGNORED_OWN_POST)

    instances = await orchestrator.resolve_instances(event)
    if instances.resolved:
        if instances.not_found:
            background_tasks.add_task(publisher.publish_not_found, event, instances)
        await publisher.publish_instances(event, instances.resolved)
        return PlainTextResponse(POSTED_INSTANCES)

    try:
        load_balancers = await orchestrator.resolve_load_balancers(event)
    except Ec2BotException:
        await publisher.publish_not_found(event, instances)
        raise

    for result in (instances, load_balancers):
        if result.not_found:
            background_tasks.add_task(publisher.publish_not_found, event, result)

    if load_balancers.resolved:
        await publisher.publish_load_balancers(event, load_balancers.resolved)
        return PlainTextResponse(POSTED_LOAD_BALANCERS)

    return PlainTextResponse(QUERY_NOT_FOUND)
