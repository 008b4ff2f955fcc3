"""
Command to send a human agent's message to a patient.

Resolves the channel credential, delivers through the provider, and only
after confirmed delivery moves the conversation to HUMAN_ACTIVE and records
the AGENT event. A failed delivery leaves state and ledger untouched.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.commands.base_whatsapp import BaseWhatsAppCommand
from app.config import get_settings
from app.constants.conversation import ConversationState, Sender
from app.core.conversation_key import normalize_conversation_key
from app.core.errors import DeliveryError, ValidationError
from app.models.message_event import MessageEvent
from app.schemas.conversation import MessageEventCreate, MessageEventRead, SendAck
from app.schemas.whatsapp import OutboundMessage, OutboundSendResult
from app.services.channel_instance_service import ChannelInstanceService
from app.services.conversation_ledger_service import ConversationLedgerService

logger = logging.getLogger(__name__)


class SendHumanMessageCommand(BaseWhatsAppCommand):
    """
    Command to deliver an agent reply and take the conversation over.
    The credential store is injected so callers and tests can swap it.
    """

    def __init__(
        self,
        db: Session,
        credential_store: Optional[ChannelInstanceService] = None,
    ) -> None:
        self.db = db
        self.settings = get_settings()
        self.credential_store = credential_store or ChannelInstanceService(
            db, settings=self.settings
        )
        self.ledger = ConversationLedgerService(db)

    def execute(
        self,
        conversation_key: str,
        text: str,
        channel_instance_id: str,
        patient_display_name: Optional[str] = None,
    ) -> SendAck:
        """
        Send the message and record it.

        Raises:
            ValidationError: empty conversation key or text.
            ChannelInstanceNotFoundError: no token stored for the instance.
            DeliveryError: provider rejected the message or timed out.
            PersistenceError: the store failed after delivery.
        """
        key = normalize_conversation_key(conversation_key)
        if not key:
            raise ValidationError("conversation_key is required")
        if not text or not text.strip():
            raise ValidationError("text is required")

        credential = self.credential_store.get_credential(channel_instance_id)
        adapter = self.get_whatsapp_adapter(api_token=credential.api_token)
        result: OutboundSendResult = adapter.send(
            OutboundMessage(
                destination=key,
                text=text,
                source_number=credential.source_number,
                app_name=credential.app_name,
            )
        )
        if not result.success:
            logger.warning(
                "Delivery failed for %s via instance %s: status=%s",
                key,
                channel_instance_id,
                result.status_code,
            )
            raise DeliveryError(
                "Platform API failed to send message",
                provider_status=result.status_code,
            )

        event = self.run_with_retries(
            key,
            lambda: self._record_agent_message(
                key, text, channel_instance_id, patient_display_name, result
            ),
        )
        return SendAck(
            conversation_key=key,
            state=ConversationState.HUMAN_ACTIVE,
            platform_message_id=result.platform_message_id,
            event=MessageEventRead.model_validate(event),
        )

    def _record_agent_message(
        self,
        key: str,
        text: str,
        channel_instance_id: str,
        patient_display_name: Optional[str],
        result: OutboundSendResult,
    ) -> MessageEvent:
        event = self.ledger.append_event(
            MessageEventCreate(
                conversation_key=key,
                channel_instance_id=channel_instance_id,
                patient_display_name=patient_display_name,
                agent_text=text,
                sender=Sender.AGENT,
                state_at_event=ConversationState.HUMAN_ACTIVE,
                platform_message_id=result.platform_message_id,
            ),
            commit=False,
        )
        self.ledger.override_state(key, ConversationState.HUMAN_ACTIVE)
        return event
