"""ChannelInstance model: outbound WhatsApp credentials per dashboard slot."""

from __future__ import annotations

from sqlalchemy import Column, LargeBinary, String

from app.db import Base
from app.models.mixins import TimestampMixin


class ChannelInstance(Base, TimestampMixin):
    """
    One configured sender identity.

    The provider API token is Fernet-encrypted before storage
    (see app.core.credentials). A row without a token is disconnected.
    """

    __tablename__ = "channel_instances"

    id = Column(String(64), primary_key=True)
    encrypted_token = Column(LargeBinary, nullable=True)
    source_number = Column(String(32), nullable=True)
    app_name = Column(String(128), nullable=True)

    @property
    def connected(self) -> bool:
        return bool(self.encrypted_token)
