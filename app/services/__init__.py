from app.services.channel_instance_service import ChannelInstanceService
from app.services.conversation_ledger_service import (
    ConversationLedgerService,
    LatestState,
)
from app.services.conversation_service import ConversationService

__all__ = [
    "ChannelInstanceService",
    "ConversationLedgerService",
    "ConversationService",
    "LatestState",
]
