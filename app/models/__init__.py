from app.models.channel_instance import ChannelInstance
from app.models.conversation import Conversation
from app.models.message_event import MessageEvent

__all__ = [
    "ChannelInstance",
    "Conversation",
    "MessageEvent",
]
