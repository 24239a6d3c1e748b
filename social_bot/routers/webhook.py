import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from starlette.requests import ClientDisconnect

from social_bot.config import settings
from social_bot.database import get_db
from social_bot.logging_config import get_logger
from social_bot.services.normalizer import VerificationFailed, verify_subscription
from social_bot.services.pipeline import WEBHOOK_ACK, ReplyPipeline, get_pipeline

logger = get_logger("webhook")

router = APIRouter()


@router.get("/facebook/webhook", response_class=PlainTextResponse)
async def verify_webhook(request: Request):
    """Meta subscription handshake."""
    params = request.query_params
    try:
        challenge = verify_subscription(
            params.get("hub.mode"),
            params.get("hub.verify_token"),
            params.get("hub.challenge"),
            settings.webhook_verify_token,
        )
    except VerificationFailed:
        logger.warning("Webhook verification rejected", extra={"context": {"mode": params.get("hub.mode")}})
        return PlainTextResponse("Forbidden", status_code=403)
    return PlainTextResponse(challenge)


@router.post("/facebook/webhook", response_class=PlainTextResponse)
async def receive_webhook(
    request: Request,
    db: Session = Depends(get_db),
    pipeline: ReplyPipeline = Depends(get_pipeline),
):
    """Inbound Messenger/Instagram events. Meta only needs a fast 200, whatever happens inside."""
    try:
        payload = await request.json()
    except ClientDisconnect:
        logger.info("Webhook client disconnected during read")
        return PlainTextResponse(WEBHOOK_ACK)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Webhook payload is not valid JSON", extra={"context": {"error": str(exc)}})
        return PlainTextResponse(WEBHOOK_ACK)

    return PlainTextResponse(await pipeline.handle_webhook(db, payload))
