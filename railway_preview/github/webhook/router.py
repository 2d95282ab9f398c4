"""
GitHub Webhook Router

Receives the repository events that drive preview environments:
- pull_request / pull_request_target: opened, synchronize, reopened, closed
- push: a new commit on a branch with an open pull request
- ping: sent once when the webhook is configured

Endpoint: POST /api/v1/github/webhook

Security: All requests are verified using HMAC-SHA256 signature
"""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from railway_preview.github.webhook.service import github_webhook_service
from railway_preview.orchestrator.events import parse_event
from railway_preview.orchestrator.schemas import EventKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["github-webhooks"])

# Rate limiter for webhook endpoint (protection against abuse)
limiter = Limiter(key_func=get_remote_address)


@router.post("/webhook")
@limiter.limit("100/minute")
async def handle_github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: str = Header(None, alias="X-Hub-Signature-256"),
    x_github_event: str = Header(None, alias="X-GitHub-Event"),
):
    """
    GitHub Webhook Endpoint

    Flow:
    1. Verify signature
    2. Parse the event into a RepositoryEvent
    3. Schedule the preview run as a background task
    4. Return 202 so GitHub does not time out waiting for the deploy
    """
    request_body = await request.body()
    request_body_str = request_body.decode("utf-8")

    if not x_hub_signature_256:
        logger.warning("❌ Webhook rejected: Missing X-Hub-Signature-256 header")
        raise HTTPException(
            status_code=401, detail="Missing X-Hub-Signature-256 header"
        )

    try:
        github_webhook_service.verify_signature(
            signature=x_hub_signature_256, request_body=request_body_str
        )
    except ValueError as e:
        logger.warning(f"❌ Webhook signature validation failed: {str(e)}")
        raise HTTPException(status_code=403, detail="Invalid webhook signature")

    logger.info(f"✅ Webhook signature verified for event: {x_github_event}")

    if x_github_event == "ping":
        logger.info("🏓 Ping event received from GitHub")
        return JSONResponse(
            content={"status": "success", "message": "Pong! Webhook is working."},
            status_code=200,
        )

    try:
        payload_dict = json.loads(request_body_str)
    except json.JSONDecodeError as e:
        logger.error(f"❌ Failed to parse webhook JSON: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid JSON payload: {str(e)}")

    try:
        event = parse_event(x_github_event or "", payload_dict)
    except ValidationError as ve:
        logger.error(f"❌ Invalid {x_github_event} webhook payload: {ve}")
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {x_github_event} webhook payload: {ve.errors()}",
        )

    if event.kind == EventKind.UNSUPPORTED:
        logger.info(f"ℹ️ Unhandled GitHub event: {x_github_event}")
        return JSONResponse(
            content={
                "status": "ignored",
                "message": f"Event '{x_github_event}' not handled",
            },
            status_code=200,
        )

    background_tasks.add_task(github_webhook_service.handle_event, event)
    return JSONResponse(
        content={
            "status": "accepted",
            "event": event.name,
            "action": event.action,
        },
        status_code=202,
    )
