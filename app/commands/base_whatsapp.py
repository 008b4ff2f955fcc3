"""
Base command for WhatsApp-related operations.

Provides a shared way to obtain a configured GupshupAdapter and to run a
per-conversation write with bounded retries on concurrent-update conflicts.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from app.adapters.gupshup import GupshupAdapter
from app.config import Settings, get_settings
from app.core.errors import ConversationConflictError, PersistenceError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseWhatsAppCommand:
    """Base for WhatsApp commands: adapter factory and conflict retry."""

    settings: Settings

    @staticmethod
    def get_whatsapp_adapter(api_token: Optional[str] = None) -> GupshupAdapter:
        settings = get_settings()
        return GupshupAdapter(
            api_token=api_token,
            api_url=settings.gupshup_api_url,
            timeout=settings.outbound_timeout_seconds,
        )

    def run_with_retries(self, conversation_key: str, operation: Callable[[], T]) -> T:
        """Re-run operation on ConversationConflictError; give up as PersistenceError."""
        attempts = self.settings.conversation_write_retries
        for attempt in range(1, attempts + 1):
            try:
                return operation()
            except ConversationConflictError as e:
                if attempt == attempts:
                    raise PersistenceError(
                        f"Conversation {conversation_key} is busy, retry later"
                    ) from e
                logger.info(
                    "Retrying conversation write (%s/%s) for %s",
                    attempt,
                    attempts,
                    conversation_key,
                )
        raise PersistenceError(f"Conversation {conversation_key} was not written")
