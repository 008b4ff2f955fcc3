"""Webhook command handlers."""

from app.commands.base_whatsapp import BaseWhatsAppCommand
from app.commands.webhooks.whatsapp_command import WhatsAppWebhookCommand

__all__ = ["BaseWhatsAppCommand", "WhatsAppWebhookCommand"]
