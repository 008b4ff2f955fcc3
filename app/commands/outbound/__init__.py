"""Outbound command handlers."""

from app.commands.outbound.send_human_message_command import SendHumanMessageCommand

__all__ = ["SendHumanMessageCommand"]
