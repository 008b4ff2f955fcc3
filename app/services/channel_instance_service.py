"""
Credential store for outbound channel instances.

Tokens are encrypted at rest; settings provide the fallback originating
address and app name when an instance does not set its own.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core.credentials import decrypt_token, encrypt_token, mask_token
from app.core.errors import ChannelInstanceNotFoundError, PersistenceError
from app.infra.logging_config import get_logger
from app.models.channel_instance import ChannelInstance
from app.schemas.channel_instance import (
    ChannelCredential,
    ChannelInstanceRead,
    ChannelInstanceTokenUpdate,
)

logger = get_logger("channel_instances")


class ChannelInstanceService:
    """get / upsert / list over the configured channel slots."""

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    def is_known_instance(self, instance_id: str) -> bool:
        """Configured slots plus the sentinel that unnamed webhook deliveries use."""
        return (
            instance_id in self.settings.channel_instance_ids
            or instance_id == self.settings.default_channel_instance_id
        )

    def get_instance(self, instance_id: str) -> Optional[ChannelInstance]:
        try:
            return (
                self.db.query(ChannelInstance)
                .filter(ChannelInstance.id == instance_id)
                .first()
            )
        except SQLAlchemyError as e:
            self._fail(e, "read channel instance")

    def get_credential(self, instance_id: str) -> ChannelCredential:
        """Resolve the token and sender identity. Raises if no token is stored."""
        instance = self.get_instance(instance_id)
        token = decrypt_token(instance.encrypted_token) if instance else None
        if not token:
            raise ChannelInstanceNotFoundError(instance_id)
        return ChannelCredential(
            instance_id=instance_id,
            api_token=token,
            source_number=instance.source_number
            or self.settings.gupshup_source_number,
            app_name=instance.app_name or self.settings.gupshup_app_name,
        )

    def upsert_token(
        self, instance_id: str, data: ChannelInstanceTokenUpdate
    ) -> ChannelInstance:
        """Set or clear a slot's token. Blank token disconnects the slot."""
        instance = self.get_instance(instance_id)
        if instance is None:
            instance = ChannelInstance(id=instance_id)
            self.db.add(instance)

        token = (data.token or "").strip()
        instance.encrypted_token = encrypt_token(token) if token else None
        if data.source_number is not None:
            instance.source_number = data.source_number.strip() or None
        if data.app_name is not None:
            instance.app_name = data.app_name.strip() or None

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail(e, "store channel token")
        self.db.refresh(instance)
        logger.info(
            "Channel instance token updated",
            extra={"context": {"instance_id": instance_id, "connected": bool(token)}},
        )
        return instance

    def to_read(
        self, instance_id: str, instance: Optional[ChannelInstance]
    ) -> ChannelInstanceRead:
        token = decrypt_token(instance.encrypted_token) if instance else None
        return ChannelInstanceRead(
            id=instance_id,
            connected=bool(token),
            token_hint=mask_token(token),
            source_number=(instance.source_number if instance else None)
            or self.settings.gupshup_source_number,
            app_name=(instance.app_name if instance else None)
            or self.settings.gupshup_app_name,
        )

    def list_instances(self) -> List[ChannelInstanceRead]:
        """Every configured slot, connected or not."""
        ids = self.settings.channel_instance_ids
        try:
            found = (
                self.db.query(ChannelInstance)
                .filter(ChannelInstance.id.in_(ids))
                .all()
            )
        except SQLAlchemyError as e:
            self._fail(e, "list channel instances")
        rows = {row.id: row for row in found}
        return [self.to_read(i, rows.get(i)) for i in ids]

    def _fail(self, error: Exception, action: str) -> None:
        self.db.rollback()
        logger.exception("Failed to %s", action)
        raise PersistenceError(f"Failed to {action}") from error
