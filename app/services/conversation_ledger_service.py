"""
Service for the conversation ledger: append-only message events plus the
per-conversation state row they keep current.

Writes run in the caller's session. `commit=False` lets a command group
several writes into one transaction; conflicts and store failures roll the
session back and surface as PersistenceError subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import Select, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.constants.conversation import ConversationState, Sender
from app.core.errors import (
    ConversationConflictError,
    ConversationNotFoundError,
    PersistenceError,
)
from app.infra.logging_config import get_logger
from app.models.conversation import Conversation
from app.models.message_event import MessageEvent
from app.models.mixins import utcnow
from app.schemas.conversation import MessageEventCreate

logger = get_logger("ledger")


@dataclass(frozen=True)
class LatestState:
    """What the resolver needs about a conversation: current state and last speaker."""

    state: ConversationState
    sender: Optional[Sender]


class ConversationLedgerService:
    """Append, read and override ledger state for a conversation key."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_conversation(
        self, conversation_key: str, for_update: bool = False
    ) -> Optional[Conversation]:
        """
        Fetch the conversation row. With for_update the row is locked for the
        rest of the transaction and reloaded, so decisions use the committed state.
        """
        stmt = select(Conversation).where(
            Conversation.conversation_key == conversation_key
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        try:
            return self.db.execute(stmt).scalars().first()
        except SQLAlchemyError as e:
            self._fail(e, "read conversation", conversation_key)

    def get_latest(self, conversation_key: str) -> Optional[LatestState]:
        """Current state and last sender, or None if the key was never seen."""
        conversation = self.get_conversation(conversation_key)
        if conversation is None:
            return None
        last_event = self.get_last_event(conversation_key)
        return LatestState(
            state=ConversationState(conversation.state),
            sender=Sender(last_event.sender) if last_event else None,
        )

    def get_last_event(self, conversation_key: str) -> Optional[MessageEvent]:
        try:
            return (
                self.db.query(MessageEvent)
                .filter(MessageEvent.conversation_key == conversation_key)
                .order_by(MessageEvent.created_at.desc(), MessageEvent.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            self._fail(e, "read latest event", conversation_key)

    def get_history_statement(self, conversation_key: str) -> Select:
        """Ascending transcript for a key (for pagination)."""
        return (
            select(MessageEvent)
            .where(MessageEvent.conversation_key == conversation_key)
            .order_by(MessageEvent.created_at.asc(), MessageEvent.id.asc())
        )

    def get_history(self, conversation_key: str) -> List[MessageEvent]:
        """Full transcript, oldest first. A fresh query on every call."""
        try:
            return list(
                self.db.execute(self.get_history_statement(conversation_key))
                .scalars()
                .all()
            )
        except SQLAlchemyError as e:
            self._fail(e, "read history", conversation_key)

    def events_for_instance_statement(self, channel_instance_id: str) -> Select:
        """Events handled by one channel instance, newest first."""
        return (
            select(MessageEvent)
            .where(MessageEvent.channel_instance_id == channel_instance_id)
            .order_by(MessageEvent.created_at.desc(), MessageEvent.id.desc())
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append_event(
        self, data: MessageEventCreate, commit: bool = True
    ) -> MessageEvent:
        """
        Insert one event and move the conversation row to the event's state.

        The conversation row is created on the first event for a key.
        """
        key = data.conversation_key
        try:
            conversation = self.get_conversation(key, for_update=True)
            created_at = utcnow()
            if conversation is None:
                conversation = Conversation(conversation_key=key)
                self.db.add(conversation)

            conversation.state = data.state_at_event.value
            conversation.last_activity_at = created_at
            if data.channel_instance_id:
                conversation.channel_instance_id = data.channel_instance_id
            if data.patient_display_name:
                conversation.patient_display_name = data.patient_display_name

            event = MessageEvent(
                conversation_key=key,
                channel_instance_id=data.channel_instance_id,
                patient_display_name=data.patient_display_name,
                patient_text=data.patient_text,
                assistant_text=data.assistant_text,
                agent_text=data.agent_text,
                sender=data.sender.value,
                state_at_event=data.state_at_event.value,
                platform_message_id=data.platform_message_id,
                created_at=created_at,
                updated_at=created_at,
            )
            self.db.add(event)
            self.db.flush()
            if commit:
                self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            self._conflict(e, key)
        except SQLAlchemyError as e:
            self._fail(e, "append event", key)
        return event

    def override_state(
        self,
        conversation_key: str,
        new_state: ConversationState,
        commit: bool = True,
    ) -> Conversation:
        """
        Force the conversation into new_state and stamp it on every event.

        The recency watermark only moves when the state actually changes, so
        repeating the same override leaves the list entry unchanged.
        """
        new_state = ConversationState(new_state)
        try:
            conversation = self.get_conversation(conversation_key, for_update=True)
            if conversation is None:
                raise ConversationNotFoundError(conversation_key)

            if conversation.state != new_state.value:
                conversation.state = new_state.value
                conversation.last_activity_at = utcnow()

            self.db.execute(
                update(MessageEvent)
                .where(MessageEvent.conversation_key == conversation_key)
                .where(MessageEvent.state_at_event != new_state.value)
                .values(state_at_event=new_state.value, updated_at=utcnow())
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            if commit:
                self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            self._conflict(e, conversation_key)
        except SQLAlchemyError as e:
            self._fail(e, "override state", conversation_key)

        logger.info(
            "Conversation state overridden",
            extra={"context": {"conversation_key": conversation_key, "state": new_state}},
        )
        return conversation

    def update_display_name(
        self, conversation_key: str, display_name: Optional[str]
    ) -> Conversation:
        """Metadata-only edit; does not touch state or the watermark."""
        try:
            conversation = self.get_conversation(conversation_key, for_update=True)
            if conversation is None:
                raise ConversationNotFoundError(conversation_key)
            conversation.patient_display_name = display_name or None
            self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            self._conflict(e, conversation_key)
        except SQLAlchemyError as e:
            self._fail(e, "update display name", conversation_key)
        return conversation

    # ------------------------------------------------------------------

    def _conflict(self, error: Exception, conversation_key: str) -> None:
        self.db.rollback()
        logger.warning(
            "Concurrent write on conversation",
            extra={"context": {"conversation_key": conversation_key, "error": str(error)}},
        )
        raise ConversationConflictError(
            f"Concurrent update on conversation {conversation_key}"
        ) from error

    def _fail(self, error: Exception, action: str, conversation_key: str) -> None:
        self.db.rollback()
        logger.exception(
            "Ledger %s failed",
            action,
            extra={"context": {"conversation_key": conversation_key}},
        )
        raise PersistenceError(f"Failed to {action}") from error