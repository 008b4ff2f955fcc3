"""
Webhook routes for inbound WhatsApp deliveries.

The provider (or the assistant integration relaying it) POSTs the patient
message and optional assistant reply here.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.commands.webhooks.whatsapp_command import WhatsAppWebhookCommand
from app.core.errors import ValidationError
from app.db import get_db
from app.schemas.conversation import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.get("/whatsapp")
def whatsapp_webhook_check() -> dict[str, str]:
    """Provider verification check."""
    return {"status": "ok"}


@router.post("/whatsapp", response_model=WebhookAck)
async def whatsapp_webhook(
    request: Request,
    db: Session = Depends(get_db),
) -> WebhookAck:
    """
    Receive a patient message and optional assistant reply.
    Returns suppressed=true when the reply was discarded because a human owns the conversation.
    """
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning("WhatsApp webhook invalid JSON: %s", e)
        raise ValidationError("Invalid JSON body") from e
    headers = dict(request.headers) if request.headers else {}
    return WhatsAppWebhookCommand(db).execute(body, headers)
