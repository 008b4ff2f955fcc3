"""
Command to handle WhatsApp webhook deliveries.

Each delivery carries one patient message and, optionally, the assistant's
reply to it. The patient event is resolved and committed first; the reply
is then checked against the freshly committed state, so a conversation that
is queued for or owned by a human never gets an assistant message.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import pydantic
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.commands.base_whatsapp import BaseWhatsAppCommand
from app.config import get_settings
from app.constants.conversation import ConversationState, Sender
from app.core.conversation_key import normalize_conversation_key
from app.core.errors import ValidationError
from app.core.state_resolver import (
    apply_transfer_trigger,
    assistant_reply_allowed,
    next_state_on_patient_message,
)
from app.schemas.conversation import MessageEventCreate, WebhookAck
from app.schemas.whatsapp import WebhookPayload
from app.services.conversation_ledger_service import ConversationLedgerService


class WhatsAppWebhookCommand(BaseWhatsAppCommand):
    """
    Ingest a webhook delivery into the ledger.
    Validates the shared secret, parses the payload, resolves state, appends events.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.settings = get_settings()
        self._adapter = self.get_whatsapp_adapter()
        self.ledger = ConversationLedgerService(db)
        self.logger = logging.getLogger(__name__)

    def execute(
        self, raw_payload: Any, headers: Optional[dict[str, str]] = None
    ) -> WebhookAck:
        """
        Execute the webhook: validate secret, parse body, record patient and assistant events.

        Raises:
            HTTPException: 403 on invalid webhook secret.
            ValidationError: non-object body, missing conversation key or patient text.
            PersistenceError: the store failed or stayed contended after retries.
        """
        if not self._adapter.verify_webhook(
            self.settings.whatsapp_webhook_secret, headers
        ):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")

        payload = self._parse(raw_payload)
        key = normalize_conversation_key(payload.conversation_key)
        if not key:
            raise ValidationError("conversationKey is required")
        if payload.patient_message_text is None:
            raise ValidationError("patientMessageText is required")
        instance_id = (
            payload.channel_instance_id or self.settings.default_channel_instance_id
        )

        state = self.run_with_retries(
            key, lambda: self._record_patient_message(key, instance_id, payload)
        )

        if payload.assistant_reply_text is None:
            return WebhookAck(conversation_key=key, state=state)

        return self.run_with_retries(
            key, lambda: self._record_assistant_reply(key, instance_id, payload)
        )

    def _parse(self, raw_payload: Any) -> WebhookPayload:
        if not isinstance(raw_payload, dict):
            raise ValidationError("Body must be a JSON object")
        try:
            return self._adapter.parse_webhook(raw_payload)
        except pydantic.ValidationError as e:
            self.logger.warning("WhatsApp webhook parse error: %s", e)
            raise ValidationError("Invalid webhook payload") from e

    def _record_patient_message(
        self, key: str, instance_id: str, payload: WebhookPayload
    ) -> ConversationState:
        latest = self.ledger.get_conversation(key, for_update=True)
        previous = ConversationState(latest.state) if latest else None
        new_state = next_state_on_patient_message(previous)
        self.ledger.append_event(
            MessageEventCreate(
                conversation_key=key,
                channel_instance_id=instance_id,
                patient_display_name=payload.patient_display_name,
                patient_text=payload.patient_message_text,
                sender=Sender.PATIENT,
                state_at_event=new_state,
            )
        )
        self.logger.info(
            "Patient message recorded for %s: %s -> %s",
            key,
            previous.value if previous else None,
            new_state.value,
        )
        return new_state

    def _record_assistant_reply(
        self, key: str, instance_id: str, payload: WebhookPayload
    ) -> WebhookAck:
        conversation = self.ledger.get_conversation(key, for_update=True)
        state = ConversationState(conversation.state)

        if not assistant_reply_allowed(state):
            # Release the row lock; nothing is written for a suppressed reply.
            self.db.rollback()
            self.logger.info(
                "Assistant reply suppressed for %s in state %s", key, state.value
            )
            return WebhookAck(conversation_key=key, state=state, suppressed=True)

        reply_state = apply_transfer_trigger(
            state, payload.assistant_reply_text, self.settings.transfer_trigger_phrases
        )
        transfer = reply_state != state
        self.ledger.append_event(
            MessageEventCreate(
                conversation_key=key,
                channel_instance_id=instance_id,
                patient_display_name=payload.patient_display_name,
                assistant_text=payload.assistant_reply_text,
                sender=Sender.ASSISTANT,
                state_at_event=reply_state,
            ),
            commit=not transfer,
        )
        if transfer:
            self.ledger.override_state(key, ConversationState.AWAITING_HUMAN)
            self.logger.info("Transfer trigger fired for %s", key)

        return WebhookAck(
            conversation_key=key, state=reply_state, transfer_triggered=transfer
        )
