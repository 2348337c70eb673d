"""
Unit tests for the storage layer.
Covers LocalStorage, both chat stores and the repository's degrade policy.
"""

import pytest
from unittest.mock import AsyncMock

from chatclone.storage.interface import StorageError
from chatclone.storage.local_storage import LocalStorage
from chatclone.storage.chat_store import MemoryChatStore, FileChatStore, generate_id
from chatclone.storage.repository import (
    ChatRepository, create_chat_repository,
    MOCK_CHAT_ID, MOCK_CHAT_TITLE, MOCK_MESSAGE_ID, MOCK_GREETING,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryChatStore()
    return FileChatStore(LocalStorage(str(tmp_path)))


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_save_load_text_and_bytes(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        await storage.save("a/b.txt", "hello")
        await storage.save("c.bin", b"\x00\x01")

        assert await storage.load("a/b.txt") == b"hello"
        assert await storage.load("c.bin") == b"\x00\x01"
        assert await storage.load("missing.txt") is None

    @pytest.mark.asyncio
    async def test_append_and_list(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        await storage.append("logs/x.jsonl", "1\n")
        await storage.append("logs/x.jsonl", "2\n")
        await storage.save("logs/y.json", "{}")

        assert await storage.load("logs/x.jsonl") == b"1\n2\n"
        assert await storage.list("logs", pattern="*.jsonl") == ["logs/x.jsonl"]
        assert await storage.list("nowhere") == []

    @pytest.mark.asyncio
    async def test_delete(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        await storage.save("f.txt", "x")
        assert await storage.delete("f.txt") is True
        assert await storage.delete("f.txt") is False
        assert not await storage.exists("f.txt")

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, tmp_path):
        storage = LocalStorage(str(tmp_path / "data"))
        with pytest.raises(StorageError):
            await storage.save("../escape.txt", "x")


class TestChatStores:

    def test_generate_id_format(self):
        prefix, millis, suffix = generate_id("chat").split("_")
        assert prefix == "chat"
        assert millis.isdigit()
        assert len(suffix) == 9
        assert generate_id("chat") != generate_id("chat")

    @pytest.mark.asyncio
    async def test_create_and_list_by_owner(self, store):
        mine = await store.create_chat("u1", "First")
        await store.create_chat("u2")

        chats = await store.list_chats("u1")
        assert [c.id for c in chats] == [mine.id]
        assert chats[0].title == "First"
        assert (await store.get_chat(mine.id)).owner_id == "u1"

    @pytest.mark.asyncio
    async def test_default_title(self, store):
        chat = await store.create_chat("u1")
        assert chat.title == "New conversation"

    @pytest.mark.asyncio
    async def test_messages_ascending_and_bump_chat(self, store):
        chat = await store.create_chat("u1")
        first = await store.append_message(chat.id, "user", "hello")
        second = await store.append_message(chat.id, "assistant", "Hi there")

        messages = await store.list_messages(chat.id)
        assert [m.content for m in messages] == ["hello", "Hi there"]
        assert first.timestamp < second.timestamp

        updated = await store.get_chat(chat.id)
        assert updated.updated_at == second.timestamp
        assert updated.updated_at >= chat.created_at

    @pytest.mark.asyncio
    async def test_message_without_chat_record(self, store):
        message = await store.append_message("default-chat", "user", "orphan")
        assert message.chat_id == "default-chat"
        assert [m.id for m in await store.list_messages("default-chat")] == [message.id]

    @pytest.mark.asyncio
    async def test_update_title(self, store):
        chat = await store.create_chat("u1")
        await store.update_chat_title(chat.id, "Renamed")
        assert (await store.get_chat(chat.id)).title == "Renamed"
        await store.update_chat_title("unknown", "x")

    @pytest.mark.asyncio
    async def test_delete_cascades_and_is_idempotent(self, store):
        chat = await store.create_chat("u1")
        await store.append_message(chat.id, "user", "hello")

        await store.delete_chat(chat.id)
        await store.delete_chat(chat.id)

        assert await store.get_chat(chat.id) is None
        assert await store.list_messages(chat.id) == []
        assert await store.list_chats("u1") == []


class TestChatRepository:

    @pytest.fixture
    def broken_repo(self):
        store = AsyncMock()
        for name in ("list_chats", "get_chat", "create_chat", "update_chat_title",
                     "delete_chat", "append_message", "list_messages"):
            getattr(store, name).side_effect = StorageError("store down")
        return ChatRepository(store)

    @pytest.mark.asyncio
    async def test_list_chats_degrades_to_mock(self, broken_repo):
        chats = await broken_repo.list_chats("u1")
        assert len(chats) == 1
        assert chats[0].id == MOCK_CHAT_ID
        assert chats[0].title == MOCK_CHAT_TITLE
        assert chats[0].owner_id == "u1"

    @pytest.mark.asyncio
    async def test_list_messages_degrades_to_greeting(self, broken_repo):
        messages = await broken_repo.list_messages("c1")
        assert len(messages) == 1
        assert messages[0].id == MOCK_MESSAGE_ID
        assert messages[0].role == "assistant"
        assert messages[0].content == MOCK_GREETING

    @pytest.mark.asyncio
    async def test_writes_return_unsaved_records(self, broken_repo):
        chat = await broken_repo.create_chat("u1", "Title")
        assert chat.id.startswith("chat_")
        assert chat.title == "Title"

        message = await broken_repo.append_message("c1", "user", "hello")
        assert message.id.startswith("msg_")
        assert message.content == "hello"

    @pytest.mark.asyncio
    async def test_delete_and_get_swallow_errors(self, broken_repo):
        await broken_repo.delete_chat("c1")
        await broken_repo.update_chat_title("c1", "x")
        assert await broken_repo.get_chat("c1") is None

    @pytest.mark.asyncio
    async def test_empty_store_is_not_mocked(self):
        repo = ChatRepository(MemoryChatStore())
        assert await repo.list_chats("u1") == []
        assert await repo.list_messages("c1") == []

    def test_factory_selects_backend(self, tmp_path):
        assert isinstance(create_chat_repository(None).store, MemoryChatStore)
        assert isinstance(create_chat_repository(str(tmp_path)).store, FileChatStore)
