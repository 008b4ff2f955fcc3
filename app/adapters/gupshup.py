"""
Gupshup WhatsApp adapter.

Outbound messages are a form-encoded POST to the Gupshup message API with the
instance's API key in the `apikey` header.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests

from app.adapters.base import BasePlatformAdapter
from app.schemas.whatsapp import OutboundMessage, OutboundSendResult, WebhookPayload

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.gupshup.io/wa/api/v1/msg"


class GupshupAdapter(BasePlatformAdapter):
    """Gupshup adapter: parse webhook bodies, send text messages via the REST API."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 15.0,
    ) -> None:
        self._api_token = api_token
        self._api_url = api_url
        self._timeout = timeout

    def parse_webhook(self, raw_payload: dict[str, Any]) -> WebhookPayload:
        return WebhookPayload.model_validate(raw_payload)

    def build_form(self, outbound: OutboundMessage) -> dict[str, str]:
        form = {
            "channel": "whatsapp",
            "source": outbound.source_number or "",
            "destination": outbound.destination,
            "message": json.dumps({"type": "text", "text": outbound.text}),
        }
        if outbound.app_name:
            form["src.name"] = outbound.app_name
        return form

    def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """POST the message. Any non-2xx status or transport error is a failed delivery."""
        if not self._api_token:
            return OutboundSendResult(success=False, error="missing api token")

        try:
            response = requests.post(
                self._api_url,
                data=self.build_form(outbound),
                headers={
                    "apikey": self._api_token,
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("Gupshup request failed: %s", e)
            return OutboundSendResult(success=False, error=str(e))

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Gupshup rejected message: status=%s body=%s",
                response.status_code,
                response.text[:500],
            )
            return OutboundSendResult(
                success=False,
                status_code=response.status_code,
                error=response.text[:500] or None,
            )

        message_id = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("messageId"):
            message_id = str(body["messageId"])
        return OutboundSendResult(
            success=True,
            platform_message_id=message_id,
            status_code=response.status_code,
        )
