"""Chat client - stream consumer and local chat state."""

from .consumer import ChatClient, FALLBACK_REPLY
from .state import ChatSession, ChatSummary, LocalMessage, move_chat_to_front, sort_chats

__all__ = [
    'ChatClient', 'FALLBACK_REPLY',
    'ChatSession', 'ChatSummary', 'LocalMessage',
    'move_chat_to_front', 'sort_chats',
]
