"""Content publish events from the CMS.

The CMS posts here when a post changes status or a scheduled post goes live.
Matching events fire a deploy hook build.
"""

import hashlib
import hmac
from typing import Literal

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel, ValidationError

from deployhooks.config import settings
from deployhooks.services.triggers import on_future_post_published, on_post_transition

router = APIRouter()


class ContentEvent(BaseModel):
    event: Literal["transition", "future_publish"]
    post_id: int | str | None = None
    new_status: str | None = None
    old_status: str | None = None
    rest_request: bool = False


def _verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify the content webhook signature."""
    if not secret:
        return True

    expected = hmac.new(
        secret.encode(),
        payload,
        hashlib.sha1,
    ).hexdigest()

    return hmac.compare_digest(expected, signature or "")


@router.post("/content/events")
async def content_event(
    request: Request,
    x_content_signature: str = Header(None),
):
    payload = await request.body()

    if not _verify_signature(payload, x_content_signature, settings.content_webhook_secret):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        event = ContentEvent.model_validate_json(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid content event: {e.errors()[0]['msg']}")

    if event.event == "future_publish":
        fired = await on_future_post_published(event.post_id)
    else:
        fired = await on_post_transition(
            event.new_status or "",
            event.old_status or "",
            rest_request=event.rest_request,
        )

    return {"status": "triggered" if fired else "ignored", "event": event.event}
