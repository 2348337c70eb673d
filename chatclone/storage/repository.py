"""
Chat repository - the persistence boundary used by routes and the stream relay.

Any error raised by the underlying store is logged here and replaced by a
placeholder so the chat UI always has something to render.
"""

import logging
from typing import List, Optional

from ..models.chat import Chat, ChatMessage, Role, DEFAULT_CHAT_TITLE, utc_now
from .chat_store import ChatStore, MemoryChatStore, FileChatStore, generate_id
from .local_storage import LocalStorage

logger = logging.getLogger(__name__)

MOCK_CHAT_ID = "mock_chat_1"
MOCK_CHAT_TITLE = "Sample conversation"
MOCK_MESSAGE_ID = "mock_msg_1"
MOCK_GREETING = "Hello! How can I help you today?"


def mock_chat(owner_id: str) -> Chat:
    return Chat(id=MOCK_CHAT_ID, owner_id=owner_id, title=MOCK_CHAT_TITLE)


def mock_greeting(chat_id: str) -> ChatMessage:
    return ChatMessage(id=MOCK_MESSAGE_ID, chat_id=chat_id, role="assistant", content=MOCK_GREETING)


class ChatRepository:
    """Wraps a ``ChatStore`` and never lets a store error escape."""

    def __init__(self, store: ChatStore):
        self.store = store

    async def list_chats(self, owner_id: str) -> List[Chat]:
        try:
            return await self.store.list_chats(owner_id)
        except Exception as e:
            logger.error(f"Error listing chats for {owner_id}, using mock: {e}")
            return [mock_chat(owner_id)]

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        try:
            return await self.store.get_chat(chat_id)
        except Exception as e:
            logger.error(f"Error loading chat {chat_id}: {e}")
            return None

    async def create_chat(self, owner_id: str, title: Optional[str] = None) -> Chat:
        try:
            return await self.store.create_chat(owner_id, title)
        except Exception as e:
            logger.error(f"Error creating chat for {owner_id}, returning unsaved chat: {e}")
            return Chat(id=generate_id("chat"), owner_id=owner_id, title=title or DEFAULT_CHAT_TITLE)

    async def update_chat_title(self, chat_id: str, title: str) -> None:
        try:
            await self.store.update_chat_title(chat_id, title)
        except Exception as e:
            logger.error(f"Error updating title of chat {chat_id}: {e}")

    async def delete_chat(self, chat_id: str) -> None:
        try:
            await self.store.delete_chat(chat_id)
        except Exception as e:
            logger.error(f"Error deleting chat {chat_id}: {e}")

    async def append_message(self, chat_id: str, role: Role, content: str) -> ChatMessage:
        try:
            return await self.store.append_message(chat_id, role, content)
        except Exception as e:
            logger.error(f"Error creating message in chat {chat_id}, returning unsaved message: {e}")
            return ChatMessage(
                id=generate_id("msg"),
                chat_id=chat_id,
                role=role,
                content=content,
                timestamp=utc_now(),
            )

    async def list_messages(self, chat_id: str) -> List[ChatMessage]:
        try:
            return await self.store.list_messages(chat_id)
        except Exception as e:
            logger.error(f"Error listing messages of chat {chat_id}, using mock: {e}")
            return [mock_greeting(chat_id)]


def create_chat_repository(storage_path: Optional[str]) -> ChatRepository:
    """
    Build the repository for the configured backend.

    Args:
        storage_path: Directory for the file store; None selects the in-memory store
    """
    if storage_path:
        logger.info(f"Chat storage: local files at {storage_path}")
        return ChatRepository(FileChatStore(LocalStorage(storage_path)))
    logger.info("Chat storage not configured, using in-memory store")
    return ChatRepository(MemoryChatStore())
