"""Pydantic schemas for channel instances (outbound credential slots)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ChannelInstanceRead(BaseModel):
    """Slot listing; the token itself is never returned."""

    id: str
    connected: bool
    token_hint: Optional[str] = None
    source_number: Optional[str] = None
    app_name: Optional[str] = None


class ChannelInstanceTokenUpdate(BaseModel):
    """Upsert a slot's token. A blank or missing token disconnects the slot."""

    token: Optional[str] = None
    source_number: Optional[str] = None
    app_name: Optional[str] = None


class ChannelCredential(BaseModel):
    """Resolved credential handed to the outbound adapter."""

    instance_id: str
    api_token: str
    source_number: Optional[str] = None
    app_name: Optional[str] = None
