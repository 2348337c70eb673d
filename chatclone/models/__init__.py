"""Models module."""

from .chat import (
    Chat, ChatCreate, ChatMessage, TurnRequest, Role,
    DEFAULT_CHAT_ID, DEFAULT_CHAT_TITLE,
)
from .user import User, TokenData
from .evaluation import EvalCompareRequest, EvalRateRequest, EvalResult

__all__ = [
    'Chat', 'ChatCreate', 'ChatMessage', 'TurnRequest', 'Role',
    'DEFAULT_CHAT_ID', 'DEFAULT_CHAT_TITLE',
    'User', 'TokenData',
    'EvalCompareRequest', 'EvalRateRequest', 'EvalResult',
]
