"""
Platform adapter interface.

Adapters encapsulate provider-specific wire formats: they parse inbound
webhook bodies into WebhookPayload and deliver OutboundMessage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from app.schemas.whatsapp import OutboundMessage, OutboundSendResult, WebhookPayload


class BasePlatformAdapter(ABC):
    """Contract for messaging providers. New providers implement this interface."""

    SECRET_HEADER = "X-Webhook-Secret"

    @abstractmethod
    def parse_webhook(self, raw_payload: dict[str, Any]) -> WebhookPayload:
        """Parse raw webhook payload. Raise pydantic.ValidationError if invalid."""
        ...

    @abstractmethod
    def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Deliver a message. Never raises for provider failures; success=False instead."""
        ...

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """
        Compare the shared-secret header with the configured secret.
        Return True if valid or verification not required; False to reject.
        """
        if not secret:
            return True
        request_headers = request_headers or {}
        header_lower = self.SECRET_HEADER.lower()
        for key, value in request_headers.items():
            if key.lower() == header_lower:
                return value == secret
        return False
