"""Schemas for the grouped system settings view."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class AppGroup(BaseModel):
    name: str
    environment: str
    log_level: str
    port: int


class DatabaseGroup(BaseModel):
    database_host: Optional[str] = None
    database_driver: Optional[str] = None
    pool_size: int
    max_overflow: int


class GeneralGroup(BaseModel):
    is_production: bool


class ChannelGroup(BaseModel):
    """Outbound provider defaults. Tokens are never included."""

    gupshup_api_url: str
    default_source_number: Optional[str] = None
    default_app_name: Optional[str] = None
    outbound_timeout_seconds: float
    instance_ids: List[str]
    default_channel_instance_id: str
    webhook_secret_configured: bool


class ConversationGroup(BaseModel):
    transfer_trigger_phrases: List[str]
    write_retries: int


class SystemSettingsGrouped(BaseModel):
    app: AppGroup
    database: DatabaseGroup
    general: GeneralGroup
    channels: ChannelGroup
    conversations: ConversationGroup
