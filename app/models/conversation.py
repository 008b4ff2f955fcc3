"""Conversation model: the authoritative ownership state, one row per conversation key."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String

from app.constants.conversation import ConversationState
from app.db import Base
from app.models.mixins import TimestampMixin, utcnow


class Conversation(Base, TimestampMixin):
    """
    Current state of a patient conversation.

    The transcript lives in MessageEvent; this row is what the state resolver
    reads and what the dashboard list is ordered by. `version` is a mapper
    version counter, so two writers updating the same row from a stale read
    fail with StaleDataError instead of silently overwriting each other.
    """

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_key = Column(String(64), unique=True, nullable=False, index=True)
    state = Column(
        String(32), nullable=False, default=ConversationState.BOT_ACTIVE.value
    )
    patient_display_name = Column(String(255), nullable=True)
    channel_instance_id = Column(String(64), nullable=True)
    last_activity_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
