"""
Tests for the chat client - optimistic updates, streamed replies and offline fallbacks.
"""

import re
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from chatclone.client import ChatClient, ChatSummary, LocalMessage, move_chat_to_front
from chatclone.client.consumer import FALLBACK_REPLY, MOCK_CHAT_ID, MOCK_GREETING
from chatclone.core import CompletionService, EvalStore
from chatclone.core.framing import content_frame, done_frame
from chatclone.main import app
from chatclone.storage import ChatRepository, MemoryChatStore
from chatclone.utils.auth import MOCK_USER

SERVER = "http://testserver"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=SERVER)


def _offline(request):
    raise httpx.ConnectError("connection refused", request=request)


def _client_with_chat(http_client, chat_id="c1"):
    client = ChatClient(server_url=SERVER, http_client=http_client, typing_delay=0)
    client.session.chats = [ChatSummary(id=chat_id, title="Chat", updated_at=T0)]
    client.session.active_chat = chat_id
    return client


class TestMoveChatToFront:

    def test_reorders_and_refreshes(self):
        a, b, c = (ChatSummary(id=i, title=i, updated_at=T0) for i in "ABC")
        now = T0 + timedelta(hours=1)

        result = move_chat_to_front([c, b, a], "A", now=now)

        assert [chat.id for chat in result] == ["A", "C", "B"]
        assert result[0].updated_at == now
        assert a.updated_at == T0

    def test_front_chat_gets_new_timestamp(self):
        chats = [ChatSummary(id="A", title="A", updated_at=T0)]
        now = T0 + timedelta(seconds=5)
        assert move_chat_to_front(chats, "A", now=now)[0].updated_at == now

    def test_unknown_id_is_noop(self):
        chats = [ChatSummary(id="A", title="A", updated_at=T0)]
        assert move_chat_to_front(chats, "Z") == chats


class TestSendMessageEndToEnd:

    @pytest.mark.asyncio
    async def test_turn_against_server(self, fake_provider_cls):
        repository = ChatRepository(MemoryChatStore())
        app.state.chat_repository = repository
        app.state.completion_service = CompletionService(fake_provider_cls(["Hi", " there"]), mock_delay=0)
        app.state.eval_store = EvalStore()

        c0 = await repository.create_chat(MOCK_USER.id, "older")
        c1 = await repository.create_chat(MOCK_USER.id, "current")

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url=SERVER) as http_client:
            client = ChatClient(server_url=SERVER, http_client=http_client, typing_delay=0)
            client.session.chats = [
                ChatSummary(id=c0.id, title="older", updated_at=T0 + timedelta(minutes=1)),
                ChatSummary(id=c1.id, title="current", updated_at=T0),
            ]
            client.session.active_chat = c1.id

            snapshots = []
            client.subscribe(lambda session: snapshots.append([m.content for m in session.messages]))

            reply = await client.send_message("hello")

        assert reply.content == "Hi there"
        assert [(m.role, m.content) for m in client.session.messages] == [
            ("user", "hello"),
            ("assistant", "Hi there"),
        ]
        assert [chat.id for chat in client.session.chats] == [c1.id, c0.id]
        assert not client.session.is_loading
        assert ["hello"] in snapshots

        stored = await repository.list_messages(c1.id)
        assert [(m.role, m.content) for m in stored] == [("user", "hello"), ("assistant", "Hi there")]

    @pytest.mark.asyncio
    async def test_split_chunks_are_reassembled(self):
        body = content_frame("Hel") + content_frame("lo") + done_frame()

        async def chunks():
            for i in range(0, len(body), 3):
                yield body[i:i + 3].encode()

        def handler(request):
            return httpx.Response(200, content=chunks(), headers={"content-type": "text/plain"})

        async with _mock_client(handler) as http_client:
            client = _client_with_chat(http_client)
            reply = await client.send_message("hi")

        assert reply.content == "Hello"

    @pytest.mark.asyncio
    async def test_frames_after_done_are_ignored(self):
        body = content_frame("ok") + done_frame() + content_frame("late")
        async with _mock_client(lambda r: httpx.Response(200, text=body)) as http_client:
            reply = await _client_with_chat(http_client).send_message("hi")
        assert reply.content == "ok"


class TestSendMessageFallback:

    @pytest.mark.asyncio
    async def test_server_unreachable_types_fallback(self):
        async with _mock_client(_offline) as http_client:
            client = _client_with_chat(http_client)
            reply = await client.send_message("hello")

        assert reply.content == FALLBACK_REPLY
        assert [m.role for m in client.session.messages] == ["user", "assistant"]
        assert client.session.chats[0].updated_at > T0

    @pytest.mark.asyncio
    async def test_error_status_types_fallback(self):
        async with _mock_client(lambda r: httpx.Response(500, json={"detail": "boom"})) as http_client:
            reply = await _client_with_chat(http_client).send_message("hello")
        assert reply.content == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_broken_stream_keeps_partial_reply(self):
        async def chunks():
            yield content_frame("partial").encode()
            raise httpx.ReadError("connection reset")

        def handler(request):
            return httpx.Response(200, content=chunks())

        async with _mock_client(handler) as http_client:
            client = _client_with_chat(http_client)
            reply = await client.send_message("hello")

        assert reply.content == "partial"
        assert len(client.session.messages) == 2

    @pytest.mark.asyncio
    async def test_no_active_chat(self):
        async with _mock_client(_offline) as http_client:
            client = ChatClient(server_url=SERVER, http_client=http_client)
            assert await client.send_message("hello") is None
        assert client.session.messages == []


class TestChatListFallbacks:

    @pytest.mark.asyncio
    async def test_load_chats_offline(self):
        async with _mock_client(_offline) as http_client:
            client = ChatClient(server_url=SERVER, http_client=http_client)
            chats = await client.load_chats()
        assert [c.id for c in chats] == [MOCK_CHAT_ID]
        assert client.session.active_chat == MOCK_CHAT_ID

    @pytest.mark.asyncio
    async def test_load_chats_sorted(self):
        payload = {"chats": [
            {"id": "old", "title": "Old", "updatedAt": T0.isoformat()},
            {"id": "new", "title": "New", "updatedAt": (T0 + timedelta(days=1)).isoformat()},
        ]}
        async with _mock_client(lambda r: httpx.Response(200, json=payload)) as http_client:
            client = ChatClient(server_url=SERVER, http_client=http_client)
            chats = await client.load_chats()
        assert [c.id for c in chats] == ["new", "old"]
        assert client.session.active_chat == "new"

    @pytest.mark.asyncio
    async def test_load_messages_offline(self):
        async with _mock_client(_offline) as http_client:
            client = _client_with_chat(http_client)
            messages = await client.load_messages()
        assert [(m.id, m.content) for m in messages] == [("1", MOCK_GREETING)]

    @pytest.mark.asyncio
    async def test_new_chat_offline(self):
        async with _mock_client(_offline) as http_client:
            client = _client_with_chat(http_client)
            chat = await client.new_chat()
            second = await client.new_chat()
        assert re.fullmatch(r"local_\d+-\d+", chat.id)
        assert second.id != chat.id
        assert second.title == "New conversation"
        assert [c.id for c in client.session.chats[:2]] == [second.id, chat.id]
        assert client.session.active_chat == second.id
        assert client.session.messages == []

    @pytest.mark.asyncio
    async def test_delete_chat_failure_keeps_state(self):
        async with _mock_client(_offline) as http_client:
            client = _client_with_chat(http_client)
            assert await client.delete_chat("c1") is False
        assert [c.id for c in client.session.chats] == ["c1"]

    @pytest.mark.asyncio
    async def test_delete_active_chat_selects_next(self):
        def handler(request):
            if request.method == "DELETE":
                return httpx.Response(200, json={"success": True})
            return httpx.Response(200, json={"messages": [
                {"id": "m1", "role": "user", "content": "earlier", "timestamp": T0.isoformat()},
            ]})

        async with _mock_client(handler) as http_client:
            client = _client_with_chat(http_client)
            client.session.chats.append(ChatSummary(id="c2", title="Other", updated_at=T0))
            assert await client.delete_chat("c1") is True

        assert [c.id for c in client.session.chats] == ["c2"]
        assert client.session.active_chat == "c2"
        assert [m.content for m in client.session.messages] == ["earlier"]


def test_local_message_defaults():
    message = LocalMessage(id="x", role="assistant")
    assert message.content == ""
