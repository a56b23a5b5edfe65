import json

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlmodel import Session

from meridian.config import settings
from meridian.config.db import get_session
from meridian.core.responses import success_response
from meridian.integrations.github.github_webhook_parser import verify_signature
from meridian.services.webhook_service import on_pull_request_event, on_review_event
from meridian.utils.logger import logger

router = APIRouter()

HANDLERS = {
    "pull_request": on_pull_request_event,
    "pull_request_review": on_review_event,
}


@router.post("/github")
async def github_webhook(
    request: Request,
    signature: str = Header(None, alias="X-Hub-Signature-256"),
    event: str = Header(None, alias="X-GitHub-Event"),
    session: Session = Depends(get_session),
):
    secret = settings.GITHUB_WEBHOOK_SECRET
    if not secret:
        logger.error("GITHUB_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not signature:
        raise HTTPException(
            status_code=400, detail="X-Hub-Signature-256 header is required"
        )

    body = await request.body()
    if not verify_signature(body, signature, secret):
        raise HTTPException(status_code=400, detail="Invalid GitHub signature")

    if event == "ping":
        return success_response({"event": "ping"}, message="pong")

    handler = HANDLERS.get(event)
    if handler is None:
        logger.info(f"Ignoring unsupported GitHub event: {event}")
        return success_response(
            {"event": event, "updated": 0}, message="Event ignored", status_code=202
        )

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Payload is not valid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Payload must be a JSON object")

    updated = handler(session, payload)
    return success_response({"event": event, "updated": updated}, message="Event processed")
