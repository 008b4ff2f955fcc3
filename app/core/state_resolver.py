"""Conversation ownership rules. Pure functions, no I/O."""

from __future__ import annotations

from typing import Iterable, Optional

from app.constants.conversation import ConversationState
from app.core.transfer_trigger import contains_transfer_trigger

# A patient message never hands a human conversation back to the bot; a closed
# conversation always reopens with the assistant.
PATIENT_MESSAGE_TRANSITIONS: dict[ConversationState, ConversationState] = {
    ConversationState.CLOSED: ConversationState.BOT_ACTIVE,
    ConversationState.AWAITING_HUMAN: ConversationState.AWAITING_HUMAN,
    ConversationState.HUMAN_ACTIVE: ConversationState.AWAITING_HUMAN,
    ConversationState.BOT_ACTIVE: ConversationState.BOT_ACTIVE,
}

ASSISTANT_SUPPRESSED_STATES = frozenset(
    {ConversationState.AWAITING_HUMAN, ConversationState.CLOSED}
)


def next_state_on_patient_message(
    current_state: Optional[ConversationState],
) -> ConversationState:
    """State after a patient message. Unknown (never seen) starts with the bot."""
    if current_state is None:
        return ConversationState.BOT_ACTIVE
    return PATIENT_MESSAGE_TRANSITIONS[ConversationState(current_state)]


def assistant_reply_allowed(state: ConversationState) -> bool:
    return ConversationState(state) not in ASSISTANT_SUPPRESSED_STATES


def apply_transfer_trigger(
    state: ConversationState,
    reply_text: Optional[str],
    phrases: Iterable[str],
) -> ConversationState:
    """
    Force AWAITING_HUMAN when the assistant's own reply announces a transfer.

    Only assistant-authored text is checked; the incoming state is returned
    unchanged when no trigger phrase is present.
    """
    if contains_transfer_trigger(reply_text, phrases):
        return ConversationState.AWAITING_HUMAN
    return ConversationState(state)
