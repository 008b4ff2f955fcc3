"""Error taxonomy surfaced by commands and services."""

from __future__ import annotations

from typing import Optional


class AtendimentoError(Exception):
    """Base class for request-terminal failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AtendimentoError):
    """Required input missing or malformed. Nothing was written."""

    status_code = 400


class ConversationNotFoundError(AtendimentoError):
    status_code = 404

    def __init__(self, conversation_key: str) -> None:
        super().__init__(f"Conversation {conversation_key} not found")
        self.conversation_key = conversation_key


class ChannelInstanceNotFoundError(AtendimentoError):
    """The credential store has no usable token for the channel instance."""

    status_code = 400

    def __init__(self, instance_id: str) -> None:
        super().__init__("No API token set for this instance")
        self.instance_id = instance_id


class DeliveryError(AtendimentoError):
    """Outbound provider rejected the message or timed out."""

    status_code = 502

    def __init__(self, message: str, provider_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.provider_status = provider_status


class PersistenceError(AtendimentoError):
    """Store read/write failed. No retry is attempted for the caller."""

    status_code = 500


class ConversationConflictError(PersistenceError):
    """A concurrent write for the same conversation key won the race."""
