"""
Webhook endpoints - WhatsApp Business API callbacks.

Incoming messages are acknowledged and logged only; they do not create
reports.
"""

from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from civicsense.core.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.get("/whatsapp", response_class=PlainTextResponse)
async def verify_whatsapp_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """
    Subscription handshake: echo hub.challenge when the verify token matches.
    """
    if (
        mode == "subscribe"
        and settings.WHATSAPP_VERIFY_TOKEN
        and token == settings.WHATSAPP_VERIFY_TOKEN
    ):
        logger.info("💬 WhatsApp webhook verified")
        return challenge or ""

    logger.warning("💬 WhatsApp webhook verification failed")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.post("/whatsapp")
async def receive_whatsapp_webhook(request: Request):
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    logger.info(f"💬 WhatsApp webhook received: {payload}")
    return {
        "status": "received",
        "message": "WhatsApp webhook processed",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
