"""
Chat client - talks to the chat server and keeps a ``ChatSession`` current.

``send_message`` is the stream consumer: it appends the user's message
right away, reads the framed reply as it arrives and appends each fragment
to an assistant placeholder in arrival order. When the server can't be
reached (or answers with an error status) it types a fixed reply locally,
so the conversation looks the same either way.
"""

import asyncio
import itertools
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Optional

import httpx

from ..config import settings
from ..core.framing import FrameDecoder
from .state import ChatSession, ChatSummary, LocalMessage, move_chat_to_front, sort_chats

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "This is a mock streaming response. The server will provide real OpenAI "
    "responses when configured properly."
)
MOCK_CHAT_ID = "mock_chat_1"
MOCK_CHAT_TITLE = "Sample conversation"
MOCK_GREETING = "Hello! How can I help you today?"
NEW_CHAT_TITLE = "New conversation"

Listener = Callable[[ChatSession], None]

_sequence = itertools.count(1)


def _local_id() -> str:
    """``<epoch ms>-<seq>``; the counter keeps ids apart within one millisecond."""
    return f"{int(time.time() * 1000)}-{next(_sequence)}"


class ChatClient:
    """
    Async client for one signed-in user.

    Args:
        server_url: Base URL of the chat server
        token: Bearer token; the development mock token is used when omitted
        http_client: Optional shared ``httpx.AsyncClient`` (e.g. for tests)
        typing_delay: Seconds between characters of the local fallback reply
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        typing_delay: Optional[float] = None,
        timeout: float = 120.0,
    ):
        self.server_url = (server_url or settings.server_url).rstrip("/")
        self.token = token or settings.mock_token
        self.typing_delay = settings.client_typing_delay if typing_delay is None else typing_delay
        self.timeout = timeout
        self.session = ChatSession()
        self._http_client = http_client
        self._listeners: List[Listener] = []

    # -- plumbing ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener(session)`` after every state change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.session)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    # -- chat list --------------------------------------------------------

    async def load_chats(self) -> List[ChatSummary]:
        """Load the chat list and open the most recent chat."""
        try:
            async with self._http() as client:
                resp = await client.get(f"{self.server_url}/api/chat", headers=self._headers())
                resp.raise_for_status()
                chats = [ChatSummary.model_validate(c) for c in resp.json().get("chats", [])]
            self.session.chats = sort_chats(chats)
        except httpx.HTTPError as e:
            logger.info(f"Server not available, using mock data: {e}")
            self.session.chats = [ChatSummary(id=MOCK_CHAT_ID, title=MOCK_CHAT_TITLE)]

        self.session.active_chat = self.session.chats[0].id if self.session.chats else None
        self._notify()
        return self.session.chats

    async def load_messages(self) -> List[LocalMessage]:
        """Replace the message list with the active chat's history."""
        self.session.messages = []
        self._notify()
        chat_id = self.session.active_chat
        if not chat_id:
            return self.session.messages

        try:
            async with self._http() as client:
                resp = await client.get(
                    f"{self.server_url}/api/chat/{chat_id}/messages", headers=self._headers()
                )
                resp.raise_for_status()
                messages = [LocalMessage.model_validate(m) for m in resp.json().get("messages", [])]
        except httpx.HTTPError as e:
            logger.info(f"Error loading messages, using fallback: {e}")
            messages = [LocalMessage(id="1", role="assistant", content=MOCK_GREETING)]

        # Ignore a late answer for a chat the user already left
        if self.session.active_chat == chat_id:
            self.session.messages = messages
            self._notify()
        return self.session.messages

    async def select_chat(self, chat_id: str) -> None:
        self.session.active_chat = chat_id
        await self.load_messages()

    async def new_chat(self, title: str = NEW_CHAT_TITLE) -> ChatSummary:
        """Create a chat on the server, or locally if that fails, and open it."""
        try:
            async with self._http() as client:
                resp = await client.post(
                    f"{self.server_url}/api/chat", json={"title": title}, headers=self._headers()
                )
                resp.raise_for_status()
                chat = ChatSummary.model_validate(resp.json()["chat"])
        except httpx.HTTPError as e:
            logger.info(f"Creating local chat, server unavailable: {e}")
            chat = ChatSummary(id=f"local_{_local_id()}", title=title)

        self.session.chats = [chat] + self.session.chats
        self.session.active_chat = chat.id
        self.session.messages = []
        self._notify()
        return chat

    async def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat; local state only changes after the server confirms."""
        try:
            async with self._http() as client:
                resp = await client.delete(f"{self.server_url}/api/chat/{chat_id}", headers=self._headers())
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to delete chat {chat_id}: {e}")
            return False

        self.session.chats = [chat for chat in self.session.chats if chat.id != chat_id]
        if self.session.active_chat == chat_id:
            if self.session.chats:
                await self.select_chat(self.session.chats[0].id)
            else:
                self.session.active_chat = None
                self.session.messages = []
        self._notify()
        return True

    # -- turns ------------------------------------------------------------

    def _append_message(self, role: str, content: str = "") -> LocalMessage:
        message = LocalMessage(id=_local_id(), role=role, content=content)
        self.session.messages.append(message)
        self._notify()
        return message

    async def _apply_stream(self, response: httpx.Response, placeholder: LocalMessage) -> None:
        decoder = FrameDecoder()
        async for chunk in response.aiter_text():
            for payload in decoder.feed(chunk):
                if self._apply_frame(payload, placeholder):
                    return
        for payload in decoder.flush():
            if self._apply_frame(payload, placeholder):
                return

    def _apply_frame(self, payload: dict, placeholder: LocalMessage) -> bool:
        """Apply one frame; True when it was the terminal frame."""
        content = payload.get("content")
        if isinstance(content, str) and content:
            placeholder.content += content
            self._notify()
        return bool(payload.get("done"))

    async def _type_fallback(self, placeholder: LocalMessage) -> None:
        for char in FALLBACK_REPLY:
            placeholder.content += char
            self._notify()
            if self.typing_delay:
                await asyncio.sleep(self.typing_delay)

    async def send_message(self, content: str) -> Optional[LocalMessage]:
        """
        Send ``content`` to the active chat and stream the reply into the session.

        Returns:
            The assistant message, or None when no chat is open
        """
        chat_id = self.session.active_chat
        if not chat_id:
            return None

        self._append_message("user", content)
        self.session.is_loading = True
        placeholder: Optional[LocalMessage] = None

        try:
            async with self._http() as client:
                async with client.stream(
                    "POST",
                    f"{self.server_url}/api/chat/stream",
                    json={"message": content, "chatId": chat_id},
                    headers=self._headers(),
                ) as response:
                    response.raise_for_status()
                    self.session.is_loading = False
                    placeholder = self._append_message("assistant")
                    await self._apply_stream(response, placeholder)
        except httpx.HTTPError as e:
            self.session.is_loading = False
            if placeholder is None:
                logger.info(f"Using mock response - server not available: {e}")
                placeholder = self._append_message("assistant")
                await self._type_fallback(placeholder)
            else:
                logger.warning(f"Stream interrupted, keeping partial reply: {e}")

        self.session.chats = move_chat_to_front(self.session.chats, chat_id)
        self._notify()
        return placeholder
