"""
Completion service - the one place model output is requested.

``complete`` always yields a finite sequence of text fragments. Without a
provider, or when the provider fails at any point, the remaining output is a
synthetic sentence typed out one character at a time, so callers handle a
degraded answer exactly like a real one.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import AsyncGenerator, List, Optional

from ..llm.base import LLMProvider, LLMMessage

logger = logging.getLogger(__name__)


def unconfigured_reply(user_content: str) -> str:
    return f'Mock response to: "{user_content}"'


def failure_reply(user_content: str) -> str:
    return f'[Mock due to OpenAI quota exceeded] Response to: "{user_content}"'


def one_shot_reply(user_content: str, system_prompt: Optional[str]) -> str:
    prompt = (system_prompt or "")[:50]
    return f'Mock response for: "{user_content}" with prompt: "{prompt}..."'


@dataclass
class CompletionResult:
    """A one-shot completion with its timing."""
    text: str
    latency_ms: int
    tokens: int
    mocked: bool = False


class CompletionService:
    """Front for an optional ``LLMProvider`` that masks every provider failure."""

    def __init__(self, provider: Optional[LLMProvider] = None, mock_delay: float = 0.05):
        self.provider = provider
        self.mock_delay = mock_delay

    @property
    def configured(self) -> bool:
        return self.provider is not None

    @staticmethod
    def _build_messages(user_content: str, system_prompt: Optional[str]) -> List[LLMMessage]:
        messages = []
        if system_prompt:
            messages.append(LLMMessage.text("system", system_prompt))
        messages.append(LLMMessage.text("user", user_content))
        return messages

    async def _type_out(self, text: str) -> AsyncGenerator[str, None]:
        for char in text:
            yield char
            if self.mock_delay:
                await asyncio.sleep(self.mock_delay)

    async def complete(
        self,
        user_content: str,
        system_prompt: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        """
        Yield response fragments for ``user_content``.

        Args:
            user_content: The user's message
            system_prompt: Optional system instruction

        Yields:
            str: Fragments in production order; the sequence is finite and never raises
        """
        if self.provider is None:
            logger.info("No LLM provider configured, streaming mock response")
            async for fragment in self._type_out(unconfigured_reply(user_content)):
                yield fragment
            return

        stream = None
        try:
            stream = self.provider.chat_completion_stream(
                self._build_messages(user_content, system_prompt)
            )
            async for fragment in stream:
                if fragment:
                    yield fragment
            return
        except Exception as e:
            logger.warning(f"LLM stream error, falling back to mock: {e}")
        finally:
            if stream is not None:
                await stream.aclose()

        async for fragment in self._type_out(failure_reply(user_content)):
            yield fragment

    async def complete_text(
        self,
        user_content: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> CompletionResult:
        """One-shot completion with latency and token usage; mock text on failure."""
        start_time = time.time()

        if self.provider is not None:
            try:
                response = await self.provider.chat_completion(
                    self._build_messages(user_content, system_prompt),
                    max_tokens=max_tokens,
                )
                return CompletionResult(
                    text=response.content or "No response",
                    latency_ms=int((time.time() - start_time) * 1000),
                    tokens=response.usage.get("total_tokens", 0),
                )
            except Exception as e:
                logger.warning(f"LLM request failed, returning mock text: {e}")

        text = one_shot_reply(user_content, system_prompt)
        return CompletionResult(
            text=text,
            latency_ms=int((time.time() - start_time) * 1000),
            tokens=len(text.split()),
            mocked=True,
        )
