"""Conversations API: dashboard list, transcript, human send, status override, rename."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.commands.outbound.send_human_message_command import SendHumanMessageCommand
from app.constants.conversation import ConversationState
from app.core.conversation_key import normalize_conversation_key
from app.core.errors import ConversationNotFoundError
from app.db import get_db
from app.schemas.conversation import (
    ConversationCreate,
    ConversationSummary,
    DisplayNameUpdate,
    HumanMessageCreate,
    MessageEventRead,
    SendAck,
    StatusOverride,
)
from app.services.conversation_ledger_service import ConversationLedgerService
from app.services.conversation_service import ConversationService

conversations_router = APIRouter(prefix="/conversations", tags=["Conversation"])


def get_conversation_key(conversation_key: str) -> str:
    """Path dependency: canonical key, 404 when nothing usable is left."""
    key = normalize_conversation_key(conversation_key)
    if not key:
        raise ConversationNotFoundError(conversation_key)
    return key


@conversations_router.get("", response_model=Page[ConversationSummary])
def list_conversations(
    params: Params = Depends(),
    state: Optional[ConversationState] = Query(None),
    db: Session = Depends(get_db),
) -> Page[ConversationSummary]:
    """List conversation summaries, most recently active first."""
    svc = ConversationService(db)
    return paginate(
        db,
        svc.get_conversations_statement(state),
        params=params,
        transformer=svc.build_summaries,
    )


@conversations_router.post("", response_model=SendAck, status_code=201)
def create_conversation(
    data: ConversationCreate,
    db: Session = Depends(get_db),
) -> SendAck:
    """Start a conversation from the dashboard by sending the first agent message."""
    return SendHumanMessageCommand(db).execute(
        conversation_key=data.conversation_key,
        text=data.text,
        channel_instance_id=data.channel_instance_id,
        patient_display_name=data.patient_display_name,
    )


@conversations_router.get("/{conversation_key}", response_model=ConversationSummary)
def get_conversation(
    key: str = Depends(get_conversation_key),
    db: Session = Depends(get_db),
) -> ConversationSummary:
    return ConversationService(db).get_summary(key)


@conversations_router.patch("/{conversation_key}", response_model=ConversationSummary)
def update_conversation(
    data: DisplayNameUpdate,
    key: str = Depends(get_conversation_key),
    db: Session = Depends(get_db),
) -> ConversationSummary:
    """Edit the patient's display name. Does not affect state."""
    ConversationLedgerService(db).update_display_name(key, data.patient_display_name)
    return ConversationService(db).get_summary(key)


@conversations_router.get(
    "/{conversation_key}/messages", response_model=Page[MessageEventRead]
)
def list_conversation_messages(
    params: Params = Depends(),
    key: str = Depends(get_conversation_key),
    db: Session = Depends(get_db),
) -> Page[MessageEventRead]:
    """Transcript for a conversation, oldest first."""
    ledger = ConversationLedgerService(db)
    if ledger.get_conversation(key) is None:
        raise ConversationNotFoundError(key)
    return paginate(db, ledger.get_history_statement(key), params=params)


@conversations_router.post(
    "/{conversation_key}/messages", response_model=SendAck
)
def send_conversation_message(
    data: HumanMessageCreate,
    key: str = Depends(get_conversation_key),
    db: Session = Depends(get_db),
) -> SendAck:
    """Send an agent reply; the conversation becomes HUMAN_ACTIVE on confirmed delivery."""
    return SendHumanMessageCommand(db).execute(
        conversation_key=key,
        text=data.text,
        channel_instance_id=data.channel_instance_id,
        patient_display_name=data.patient_display_name,
    )


@conversations_router.put(
    "/{conversation_key}/status", response_model=ConversationSummary
)
def override_conversation_status(
    data: StatusOverride,
    key: str = Depends(get_conversation_key),
    db: Session = Depends(get_db),
) -> ConversationSummary:
    """Force a state (close, reopen, requeue) across the conversation."""
    ConversationLedgerService(db).override_state(key, data.state)
    return ConversationService(db).get_summary(key)
