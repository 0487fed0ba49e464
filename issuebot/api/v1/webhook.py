"""
GitHub webhook endpoint.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from pydantic import BaseModel

from issuebot.api.deps import ServiceContainer, get_container
from issuebot.core.constants import DELIVERY_HEADER, EVENT_HEADER, SIGNATURE_HEADER
from issuebot.core.exceptions import InvalidEventError
from issuebot.core.logging import bind_context, get_logger
from issuebot.core.security import verify_signature

logger = get_logger(__name__)

router = APIRouter()


class WebhookResponse(BaseModel):
    """Response model for webhook deliveries."""

    status: str
    command: Optional[str] = None
    delivery: Optional[str] = None


@router.post("/webhook", response_model=WebhookResponse)
async def receive_webhook(
    request: Request,
    response: Response,
    container: ServiceContainer = Depends(get_container),
    event: Optional[str] = Header(default=None, alias=EVENT_HEADER),
    signature: Optional[str] = Header(default=None, alias=SIGNATURE_HEADER),
    delivery: Optional[str] = Header(default=None, alias=DELIVERY_HEADER),
) -> WebhookResponse:
    """
    Accept a GitHub delivery and schedule the command it carries.

    Work runs in the background; the response only says whether the
    delivery was accepted.
    """
    bind_context(delivery=delivery)
    body = await request.body()
    verify_signature(body, signature, container.settings.github.webhook_secret)

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidEventError(f"Request body is not valid JSON: {e}", event=event) from e
    if not isinstance(payload, dict):
        raise InvalidEventError("Request body must be a JSON object", event=event)

    trigger = container.router.parse_event(event or "", payload)
    if trigger is None:
        logger.debug("Event ignored", event=event, action=payload.get("action"))
        return WebhookResponse(status="ignored", delivery=delivery)

    command = container.router.parse(trigger)
    task = container.dispatcher.dispatch(trigger) if command is not None else None
    if task is None:
        return WebhookResponse(status="ignored", delivery=delivery)

    response.status_code = status.HTTP_202_ACCEPTED
    logger.info("Delivery accepted", event=event, issue=trigger.issue_key, command=command.value)
    return WebhookResponse(status="accepted", command=command.value, delivery=delivery)
