"""Read-side projection of conversations for the dashboard."""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.constants.conversation import (
    STATE_LABEL_KEYS,
    STATE_LABELS,
    ConversationState,
    Sender,
)
from app.core.errors import ConversationNotFoundError
from app.models.conversation import Conversation
from app.schemas.conversation import ConversationSummary
from app.services.conversation_ledger_service import ConversationLedgerService


class ConversationService:
    """Builds conversation summaries from the state row and the last ledger event."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.ledger = ConversationLedgerService(db)

    def get_conversations_statement(
        self, state: Optional[ConversationState] = None
    ) -> Select:
        """Conversations, most recently active first."""
        stmt = select(Conversation).order_by(
            Conversation.last_activity_at.desc(), Conversation.id.desc()
        )
        if state is not None:
            stmt = stmt.where(Conversation.state == ConversationState(state).value)
        return stmt

    def build_summary(self, conversation: Conversation) -> ConversationSummary:
        state = ConversationState(conversation.state)
        last_event = self.ledger.get_last_event(conversation.conversation_key)
        return ConversationSummary(
            conversation_key=conversation.conversation_key,
            state=state,
            label=STATE_LABELS[state],
            label_key=STATE_LABEL_KEYS[state],
            patient_display_name=conversation.patient_display_name,
            channel_instance_id=conversation.channel_instance_id,
            last_message_text=last_event.text if last_event else None,
            last_sender=Sender(last_event.sender) if last_event else None,
            last_activity_at=conversation.last_activity_at,
        )

    def build_summaries(
        self, conversations: Sequence[Conversation]
    ) -> List[ConversationSummary]:
        """Page transformer: one summary per conversation row, order preserved."""
        return [self.build_summary(c) for c in conversations]

    def get_summary(self, conversation_key: str) -> ConversationSummary:
        conversation = self.ledger.get_conversation(conversation_key)
        if conversation is None:
            raise ConversationNotFoundError(conversation_key)
        return self.build_summary(conversation)
