"""Conversation ownership states, message senders and dashboard labels."""

from enum import StrEnum


class ConversationState(StrEnum):
    """Who owns the conversation right now."""

    BOT_ACTIVE = "bot_active"
    AWAITING_HUMAN = "awaiting_human"
    HUMAN_ACTIVE = "human_active"
    CLOSED = "closed"


class Sender(StrEnum):
    """Who produced a message event."""

    PATIENT = "patient"
    ASSISTANT = "assistant"
    AGENT = "agent"
    SYSTEM = "system"


# Dashboard badge text (pt-BR) and a stable key for the frontend
STATE_LABELS: dict[ConversationState, str] = {
    ConversationState.BOT_ACTIVE: "ROBÔ",
    ConversationState.AWAITING_HUMAN: "PENDENTE",
    ConversationState.HUMAN_ACTIVE: "HUMANO",
    ConversationState.CLOSED: "FINALIZADO",
}

STATE_LABEL_KEYS: dict[ConversationState, str] = {
    ConversationState.BOT_ACTIVE: "bot",
    ConversationState.AWAITING_HUMAN: "pending",
    ConversationState.HUMAN_ACTIVE: "human",
    ConversationState.CLOSED: "closed",
}
