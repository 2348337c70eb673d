"""
Chat API endpoints - chat CRUD and the streamed turn.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..core import CompletionService, StreamRelay
from ..models import ChatCreate, TurnRequest, User
from ..storage import ChatRepository
from ..utils.auth import get_current_user
from .deps import get_chat_repository, get_completion_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


async def _ensure_not_foreign(repository: ChatRepository, chat_id: str, user: User) -> None:
    """404 when the chat exists but belongs to someone else."""
    chat = await repository.get_chat(chat_id)
    if chat is not None and chat.owner_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")


async def _read_turn(request: Request) -> TurnRequest:
    """Parse the turn body; an absent or unparseable body yields the defaults."""
    try:
        payload = await request.json()
    except ValueError:
        logger.debug("Turn body is not JSON, using defaults")
        payload = None
    return TurnRequest.from_payload(payload)


@router.post("/stream")
async def stream_turn(
    turn: TurnRequest = Depends(_read_turn),
    user: User = Depends(get_current_user),
    repository: ChatRepository = Depends(get_chat_repository),
    completion: CompletionService = Depends(get_completion_service),
):
    """
    Run one turn and stream the reply.

    The body is ``data: {"content": ...}`` frames followed by
    ``data: {"done": true}``; the reply is saved after the body is sent.
    A chat owned by someone else is answered with 404.
    """
    await _ensure_not_foreign(repository, turn.chat_id, user)
    logger.debug(f"Streaming turn for chat {turn.chat_id}, provider configured: {completion.configured}")

    relay = StreamRelay(turn, user.id, repository, completion)
    return StreamingResponse(
        relay.stream(),
        media_type="text/plain",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
        background=BackgroundTask(relay.persist_output),
    )


@router.get("")
async def list_chats(
    user: User = Depends(get_current_user),
    repository: ChatRepository = Depends(get_chat_repository),
):
    """List the caller's chats, most recently active first."""
    chats = await repository.list_chats(user.id)
    chats.sort(key=lambda chat: chat.updated_at, reverse=True)
    return {"chats": [chat.to_wire() for chat in chats]}


@router.post("")
async def create_chat(
    body: Optional[ChatCreate] = None,
    user: User = Depends(get_current_user),
    repository: ChatRepository = Depends(get_chat_repository),
):
    """Create a chat; the title defaults to "New conversation"."""
    title = body.title if body else None
    chat = await repository.create_chat(user.id, title)
    logger.info(f"Chat created: {chat.id} for user {user.id}")
    return {"chat": chat.to_wire()}


@router.delete("/{chat_id}")
async def delete_chat(
    chat_id: str,
    user: User = Depends(get_current_user),
    repository: ChatRepository = Depends(get_chat_repository),
):
    """Delete a chat and its messages. Deleting an unknown chat succeeds."""
    await _ensure_not_foreign(repository, chat_id, user)
    await repository.delete_chat(chat_id)
    logger.info(f"Chat deleted: {chat_id} by user {user.id}")
    return {"success": True}


@router.get("/{chat_id}/messages")
async def list_messages(
    chat_id: str,
    user: User = Depends(get_current_user),
    repository: ChatRepository = Depends(get_chat_repository),
):
    """Messages of a chat, oldest first."""
    await _ensure_not_foreign(repository, chat_id, user)
    messages = await repository.list_messages(chat_id)
    return {"messages": [message.to_wire() for message in messages]}
