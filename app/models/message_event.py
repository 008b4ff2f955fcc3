"""
MessageEvent model: the append-only conversation ledger.

One row per exchange. Exactly one of patient_text, assistant_text and
agent_text is set. Order is (created_at, id); id breaks ties in insertion order.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, Column, Index, Integer, String, Text

from app.db import Base
from app.models.mixins import TimestampMixin

PAYLOAD_COLUMNS = ("patient_text", "assistant_text", "agent_text")

_ONE_PAYLOAD_SQL = " + ".join(
    f"(CASE WHEN {col} IS NOT NULL THEN 1 ELSE 0 END)" for col in PAYLOAD_COLUMNS
) + " = 1"


class MessageEvent(Base, TimestampMixin):
    """Single immutable message in a conversation, tagged with the state in effect."""

    __tablename__ = "message_events"

    __table_args__ = (
        CheckConstraint(_ONE_PAYLOAD_SQL, name="ck_message_events_one_payload"),
        Index(
            "ix_message_events_conversation_key_created",
            "conversation_key",
            "created_at",
            "id",
        ),
        Index("ix_message_events_channel_instance_id", "channel_instance_id"),
    )

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    conversation_key = Column(String(64), nullable=False)
    channel_instance_id = Column(String(64), nullable=True)
    patient_display_name = Column(String(255), nullable=True)
    patient_text = Column(Text, nullable=True)
    assistant_text = Column(Text, nullable=True)
    agent_text = Column(Text, nullable=True)
    sender = Column(String(16), nullable=False)
    state_at_event = Column(String(32), nullable=False)
    platform_message_id = Column(String(255), nullable=True)

    @property
    def text(self) -> str | None:
        """Whichever payload slot is populated."""
        for col in PAYLOAD_COLUMNS:
            value = getattr(self, col)
            if value is not None:
                return value
        return None
