"""
Chat Models - chats, messages and the turn request body.

Field names are snake_case in Python and camelCase on the wire
(``chatId``, ``ownerId``, ``updatedAt``).
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_CHAT_ID = "default-chat"
DEFAULT_CHAT_TITLE = "New conversation"

Role = Literal["user", "assistant"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Chat(CamelModel):
    """A conversation owned by one user."""
    id: str
    owner_id: str
    title: str = DEFAULT_CHAT_TITLE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ChatMessage(CamelModel):
    """One message of a chat. Immutable once stored."""
    id: str
    chat_id: str
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utc_now)


class ChatCreate(CamelModel):
    """Body of ``POST /api/chat``."""
    title: Optional[str] = None


def _as_text(value, default: str) -> str:
    """Scalars become their string form; anything else becomes ``default``."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    return default


class TurnRequest(CamelModel):
    """Body of ``POST /api/chat/stream``; malformed fields are defaulted, never rejected."""
    message: str = ""
    chat_id: str = DEFAULT_CHAT_ID

    @field_validator("message", mode="before")
    @classmethod
    def _default_message(cls, value):
        return _as_text(value, "")

    @field_validator("chat_id", mode="before")
    @classmethod
    def _default_chat_id(cls, value):
        return _as_text(value, "") or DEFAULT_CHAT_ID

    @classmethod
    def from_payload(cls, payload: Any) -> "TurnRequest":
        """Build a turn from a decoded JSON body of any shape."""
        if not isinstance(payload, dict):
            return cls()
        return cls.model_validate(payload)
