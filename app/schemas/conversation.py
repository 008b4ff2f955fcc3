"""Pydantic schemas for conversations, ledger events and webhook/send acknowledgements."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.constants.conversation import ConversationState, Sender

# -----------------------------------------------------------------------------
# Ledger events
# -----------------------------------------------------------------------------


class MessageEventCreate(BaseModel):
    """One event to append. Exactly one payload slot must be set."""

    conversation_key: str
    channel_instance_id: Optional[str] = None
    patient_display_name: Optional[str] = None
    patient_text: Optional[str] = None
    assistant_text: Optional[str] = None
    agent_text: Optional[str] = None
    sender: Sender
    state_at_event: ConversationState
    platform_message_id: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> "MessageEventCreate":
        populated = [
            v
            for v in (self.patient_text, self.assistant_text, self.agent_text)
            if v is not None
        ]
        if len(populated) != 1:
            raise ValueError(
                "Exactly one of patient_text, assistant_text, agent_text must be set"
            )
        return self


class MessageEventRead(BaseModel):
    id: int
    conversation_key: str
    channel_instance_id: Optional[str] = None
    patient_display_name: Optional[str] = None
    patient_text: Optional[str] = None
    assistant_text: Optional[str] = None
    agent_text: Optional[str] = None
    sender: Sender
    state_at_event: ConversationState
    platform_message_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------
# Conversation summaries
# -----------------------------------------------------------------------------


class ConversationSummary(BaseModel):
    """Dashboard list entry for one conversation key."""

    conversation_key: str
    state: ConversationState
    label: str
    label_key: str
    patient_display_name: Optional[str] = None
    channel_instance_id: Optional[str] = None
    last_message_text: Optional[str] = None
    last_sender: Optional[Sender] = None
    last_activity_at: datetime


class StatusOverride(BaseModel):
    state: ConversationState


class DisplayNameUpdate(BaseModel):
    patient_display_name: Optional[str] = Field(default=None, max_length=255)


class HumanMessageCreate(BaseModel):
    """Agent reply sent from the dashboard."""

    text: str = Field(min_length=1)
    channel_instance_id: str
    patient_display_name: Optional[str] = None


class ConversationCreate(HumanMessageCreate):
    """Agent-initiated conversation: first message goes out before any patient event."""

    conversation_key: str


# -----------------------------------------------------------------------------
# Acknowledgements
# -----------------------------------------------------------------------------


class WebhookAck(BaseModel):
    status: str = "ok"
    conversation_key: str
    state: ConversationState
    suppressed: bool = False
    transfer_triggered: bool = False


class SendAck(BaseModel):
    status: str = "sent"
    conversation_key: str
    state: ConversationState
    platform_message_id: Optional[str] = None
    event: MessageEventRead
