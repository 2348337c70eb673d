"""
Stream relay - runs one chat turn on the server.

    RECEIVED -> PERSISTING_INPUT -> STREAMING -> PERSISTING_OUTPUT -> CLOSED

``stream()`` stores the user's message, forwards every completion fragment
as its own frame the moment it arrives, and ends with the terminal frame.
``persist_output()`` runs after the response has been sent and stores the
assembled assistant reply. Persistence failures are logged and ignored.
"""

import logging
from enum import Enum
from typing import AsyncGenerator, List, Optional

from ..models.chat import TurnRequest
from ..storage.repository import ChatRepository
from .completion import CompletionService
from .framing import content_frame, done_frame
from .logging_config import LoggerAdapter

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    RECEIVED = "received"
    PERSISTING_INPUT = "persisting_input"
    STREAMING = "streaming"
    PERSISTING_OUTPUT = "persisting_output"
    CLOSED = "closed"


class StreamRelay:
    """Relay for a single turn. Not reusable."""

    def __init__(
        self,
        turn: TurnRequest,
        user_id: str,
        repository: ChatRepository,
        completion: CompletionService,
        system_prompt: Optional[str] = None,
    ):
        self.turn = turn
        self.user_id = user_id
        self.repository = repository
        self.completion = completion
        self.system_prompt = system_prompt
        self.state = TurnState.RECEIVED
        self.assistant_content = ""
        self.fragment_count = 0
        self.log = LoggerAdapter(logger, {"chat_id": turn.chat_id, "user_id": user_id})

    async def _persist_input(self) -> None:
        self.state = TurnState.PERSISTING_INPUT
        try:
            await self.repository.append_message(self.turn.chat_id, "user", self.turn.message)
        except Exception as e:
            self.log.error(f"Failed to save user message, continuing with response: {e}")

    async def stream(self) -> AsyncGenerator[str, None]:
        """Yield the framed response body for this turn."""
        self.log.info(f"Turn received: {len(self.turn.message)} chars")
        await self._persist_input()

        self.state = TurnState.STREAMING
        parts: List[str] = []
        fragments = self.completion.complete(self.turn.message, system_prompt=self.system_prompt)
        try:
            async for fragment in fragments:
                parts.append(fragment)
                self.fragment_count += 1
                yield content_frame(fragment)
        finally:
            # Runs on normal end and when the client goes away mid-stream
            await fragments.aclose()
            self.assistant_content = "".join(parts)

        self.state = TurnState.PERSISTING_OUTPUT
        yield done_frame()

    async def persist_output(self) -> None:
        """Store the assistant reply once the terminal frame has gone out."""
        if self.state is not TurnState.PERSISTING_OUTPUT:
            self.log.warning(
                f"Turn ended in state {self.state.value}, assistant reply not saved "
                f"({self.fragment_count} fragments sent)"
            )
            self.state = TurnState.CLOSED
            return

        try:
            await self.repository.append_message(self.turn.chat_id, "assistant", self.assistant_content)
        except Exception as e:
            self.log.error(f"Failed to save assistant message: {e}")
        finally:
            self.state = TurnState.CLOSED

        self.log.info(
            "Turn completed",
            extra={"extra_fields": {
                "fragments": self.fragment_count,
                "content_length": len(self.assistant_content),
            }}
        )
