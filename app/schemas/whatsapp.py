"""
WhatsApp webhook and outbound delivery schemas.

The webhook accepts the canonical field names and the names the provider and
the assistant integration send (numeroPaciente, mensagemPaciente, respostaRobo...).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class WebhookPayload(BaseModel):
    """Inbound webhook body (patient message plus optional assistant reply)."""

    conversation_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "conversationKey",
            "conversation_key",
            "numeroPaciente",
            "sender",
            "source",
        ),
    )
    patient_message_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "patientMessageText",
            "patient_message_text",
            "mensagemPaciente",
            "message",
            "text",
        ),
    )
    assistant_reply_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "assistantReplyText", "assistant_reply_text", "respostaRobo"
        ),
    )
    patient_display_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "patientDisplayName", "patient_display_name", "nomePaciente"
        ),
    )
    channel_instance_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "channelInstanceId", "channel_instance_id", "instanceId"
        ),
    )

    model_config = {"extra": "ignore"}

    @field_validator("conversation_key", "channel_instance_id", mode="before")
    @classmethod
    def _coerce_to_str(cls, value: Any) -> Any:
        # Provider sender objects: {"phone": "...", "name": "..."}
        if isinstance(value, dict):
            value = value.get("phone") or value.get("id")
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @field_validator(
        "patient_message_text",
        "assistant_reply_text",
        "patient_display_name",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # Provider payloads may nest the text: {"message": {"type": "text", "text": ...}}
        if isinstance(value, dict):
            value = value.get("text")
        if isinstance(value, str) and not value.strip():
            return None
        return value


class OutboundMessage(BaseModel):
    """Normalized outbound message (core → adapter)."""

    destination: str
    text: str
    source_number: Optional[str] = None
    app_name: Optional[str] = None


class OutboundSendResult(BaseModel):
    """Result of a delivery attempt. status_code is the provider HTTP status when one came back."""

    success: bool
    platform_message_id: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
