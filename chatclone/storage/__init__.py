"""Storage module - chat persistence backends and the degrading repository."""

from .interface import StorageInterface, StorageError
from .local_storage import LocalStorage
from .chat_store import ChatStore, MemoryChatStore, FileChatStore
from .repository import ChatRepository, create_chat_repository

__all__ = [
    'StorageInterface', 'StorageError', 'LocalStorage',
    'ChatStore', 'MemoryChatStore', 'FileChatStore',
    'ChatRepository', 'create_chat_repository',
]
