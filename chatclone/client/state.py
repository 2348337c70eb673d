"""
Client-side chat state: the chat list, the active chat and its messages.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from ..models.chat import CamelModel, Role, utc_now


class ChatSummary(CamelModel):
    """A chat as shown in the sidebar."""
    id: str
    title: str
    updated_at: datetime = Field(default_factory=utc_now)


class LocalMessage(CamelModel):
    """A message in the open conversation. Assistant content grows while streaming."""
    id: str
    role: Role
    content: str = ""
    timestamp: datetime = Field(default_factory=utc_now)


class ChatSession(CamelModel):
    chats: List[ChatSummary] = Field(default_factory=list)
    active_chat: Optional[str] = None
    messages: List[LocalMessage] = Field(default_factory=list)
    is_loading: bool = False


def sort_chats(chats: List[ChatSummary]) -> List[ChatSummary]:
    """Most recently active first."""
    return sorted(chats, key=lambda chat: chat.updated_at, reverse=True)


def move_chat_to_front(
    chats: List[ChatSummary],
    chat_id: str,
    now: Optional[datetime] = None,
) -> List[ChatSummary]:
    """
    Return a new list with ``chat_id`` first and its ``updated_at`` refreshed.
    Other chats keep their relative order; an unknown id leaves the list as is.
    """
    index = next((i for i, chat in enumerate(chats) if chat.id == chat_id), None)
    if index is None:
        return list(chats)

    moved = chats[index].model_copy(update={"updated_at": now or utc_now()})
    return [moved] + chats[:index] + chats[index + 1:]
