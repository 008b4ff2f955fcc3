"""Channel instances API: slot listing, token upsert, per-instance messages."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.channel_instance import (
    ChannelInstanceRead,
    ChannelInstanceTokenUpdate,
)
from app.schemas.conversation import MessageEventRead
from app.services.channel_instance_service import ChannelInstanceService
from app.services.conversation_ledger_service import ConversationLedgerService

channel_instances_router = APIRouter(
    prefix="/channel-instances", tags=["ChannelInstance"]
)


def get_known_instance_id(
    instance_id: str,
    db: Session = Depends(get_db),
) -> str:
    """FastAPI dependency: 404 unless the id is one of the configured slots."""
    if not ChannelInstanceService(db).is_known_instance(instance_id):
        raise HTTPException(status_code=404, detail="Channel instance not found")
    return instance_id


@channel_instances_router.get("", response_model=List[ChannelInstanceRead])
def list_channel_instances(
    db: Session = Depends(get_db),
) -> List[ChannelInstanceRead]:
    """Every configured slot with its connection status."""
    return ChannelInstanceService(db).list_instances()


@channel_instances_router.post(
    "/{instance_id}/token", response_model=ChannelInstanceRead
)
def set_channel_instance_token(
    data: ChannelInstanceTokenUpdate,
    instance_id: str = Depends(get_known_instance_id),
    db: Session = Depends(get_db),
) -> ChannelInstanceRead:
    """Store (or clear) the provider token for a slot."""
    svc = ChannelInstanceService(db)
    instance = svc.upsert_token(instance_id, data)
    return svc.to_read(instance_id, instance)


@channel_instances_router.get(
    "/{instance_id}/messages", response_model=Page[MessageEventRead]
)
def list_channel_instance_messages(
    params: Params = Depends(),
    instance_id: str = Depends(get_known_instance_id),
    db: Session = Depends(get_db),
) -> Page[MessageEventRead]:
    """Ledger events handled by this instance, newest first."""
    ledger = ConversationLedgerService(db)
    return paginate(db, ledger.events_for_instance_statement(instance_id), params=params)
