"""API routes module."""

from .auth import router as auth_router
from .chat import router as chat_router
from .evaluation import router as eval_router

__all__ = ['auth_router', 'chat_router', 'eval_router']
