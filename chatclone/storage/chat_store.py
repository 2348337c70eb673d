"""
Chat stores - backends that hold chats and their messages.

``MemoryChatStore`` lives in the process and is used when no storage
directory is configured. ``FileChatStore`` keeps one JSON document per chat
and one JSON-lines log of messages per chat on a ``StorageInterface``.
Both raise on failure; ``ChatRepository`` decides how to degrade.
"""

import json
import secrets
import string
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from ..models.chat import Chat, ChatMessage, Role, DEFAULT_CHAT_TITLE, utc_now
from .interface import StorageInterface

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch ms>_<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def next_timestamp(latest: Optional[datetime]) -> datetime:
    """Current time, nudged forward so it is strictly after ``latest``."""
    now = utc_now()
    if latest is not None and now <= latest:
        return latest + timedelta(microseconds=1)
    return now


class ChatStore(ABC):
    """Operations every chat backend provides."""

    @abstractmethod
    async def list_chats(self, owner_id: str) -> List[Chat]:
        """Chats owned by ``owner_id`` in no particular order."""

    @abstractmethod
    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        ...

    @abstractmethod
    async def create_chat(self, owner_id: str, title: Optional[str] = None) -> Chat:
        ...

    @abstractmethod
    async def update_chat_title(self, chat_id: str, title: str) -> None:
        ...

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> None:
        """Remove a chat and all of its messages. Unknown ids are ignored."""

    @abstractmethod
    async def append_message(self, chat_id: str, role: Role, content: str) -> ChatMessage:
        """Store a message and bump the parent chat's ``updated_at``."""

    @abstractmethod
    async def list_messages(self, chat_id: str) -> List[ChatMessage]:
        """Messages of a chat, oldest first."""


class MemoryChatStore(ChatStore):
    """In-process store. Created once at start-up; contents die with the process."""

    def __init__(self):
        self._chats: Dict[str, Chat] = {}
        self._messages: Dict[str, List[ChatMessage]] = {}

    async def list_chats(self, owner_id: str) -> List[Chat]:
        return [chat.model_copy() for chat in self._chats.values() if chat.owner_id == owner_id]

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        chat = self._chats.get(chat_id)
        return chat.model_copy() if chat else None

    async def create_chat(self, owner_id: str, title: Optional[str] = None) -> Chat:
        chat = Chat(id=generate_id("chat"), owner_id=owner_id, title=title or DEFAULT_CHAT_TITLE)
        self._chats[chat.id] = chat
        return chat.model_copy()

    async def update_chat_title(self, chat_id: str, title: str) -> None:
        chat = self._chats.get(chat_id)
        if chat:
            chat.title = title
            chat.updated_at = utc_now()

    async def delete_chat(self, chat_id: str) -> None:
        self._chats.pop(chat_id, None)
        self._messages.pop(chat_id, None)

    async def append_message(self, chat_id: str, role: Role, content: str) -> ChatMessage:
        messages = self._messages.setdefault(chat_id, [])
        latest = messages[-1].timestamp if messages else None
        message = ChatMessage(
            id=generate_id("msg"),
            chat_id=chat_id,
            role=role,
            content=content,
            timestamp=next_timestamp(latest),
        )
        messages.append(message)

        chat = self._chats.get(chat_id)
        if chat:
            chat.updated_at = message.timestamp
        return message.model_copy()

    async def list_messages(self, chat_id: str) -> List[ChatMessage]:
        return [m.model_copy() for m in self._messages.get(chat_id, [])]


class FileChatStore(ChatStore):
    """
    Chats persisted as documents:
        chats/<chat_id>.json       chat record
        messages/<chat_id>.jsonl   one message per line, append-only
    """

    chats_dir = "chats"
    messages_dir = "messages"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def _chat_path(self, chat_id: str) -> str:
        return f"{self.chats_dir}/{chat_id}.json"

    def _messages_path(self, chat_id: str) -> str:
        return f"{self.messages_dir}/{chat_id}.jsonl"

    async def _save_chat(self, chat: Chat) -> None:
        content = json.dumps(chat.model_dump(mode="json"), indent=2, ensure_ascii=False)
        await self.storage.save(self._chat_path(chat.id), content)

    async def list_chats(self, owner_id: str) -> List[Chat]:
        chats = []
        for path in await self.storage.list(self.chats_dir, pattern="*.json"):
            content = await self.storage.load(path)
            if content is None:
                continue
            chat = Chat.model_validate_json(content)
            if chat.owner_id == owner_id:
                chats.append(chat)
        return chats

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        content = await self.storage.load(self._chat_path(chat_id))
        if content is None:
            return None
        return Chat.model_validate_json(content)

    async def create_chat(self, owner_id: str, title: Optional[str] = None) -> Chat:
        chat = Chat(id=generate_id("chat"), owner_id=owner_id, title=title or DEFAULT_CHAT_TITLE)
        await self._save_chat(chat)
        return chat

    async def update_chat_title(self, chat_id: str, title: str) -> None:
        chat = await self.get_chat(chat_id)
        if chat is None:
            return
        chat.title = title
        chat.updated_at = utc_now()
        await self._save_chat(chat)

    async def delete_chat(self, chat_id: str) -> None:
        await self.storage.delete(self._chat_path(chat_id))
        await self.storage.delete(self._messages_path(chat_id))

    async def append_message(self, chat_id: str, role: Role, content: str) -> ChatMessage:
        existing = await self.list_messages(chat_id)
        latest = existing[-1].timestamp if existing else None
        message = ChatMessage(
            id=generate_id("msg"),
            chat_id=chat_id,
            role=role,
            content=content,
            timestamp=next_timestamp(latest),
        )
        line = json.dumps(message.model_dump(mode="json"), ensure_ascii=False)
        await self.storage.append(self._messages_path(chat_id), line + "\n")

        chat = await self.get_chat(chat_id)
        if chat is not None:
            chat.updated_at = message.timestamp
            await self._save_chat(chat)
        return message

    async def list_messages(self, chat_id: str) -> List[ChatMessage]:
        content = await self.storage.load(self._messages_path(chat_id))
        if content is None:
            return []
        messages = [
            ChatMessage.model_validate_json(line)
            for line in content.decode("utf-8").splitlines()
            if line.strip()
        ]
        messages.sort(key=lambda m: m.timestamp)
        return messages
