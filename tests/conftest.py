"""
Shared test fixtures and configuration.
"""

import os

# Set test environment variables before importing chatclone modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ["LLM_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ.pop("CHAT_STORAGE_PATH", None)
os.environ["MOCK_STREAM_DELAY"] = "0"
os.environ["CLIENT_TYPING_DELAY"] = "0"
os.environ["LOG_FILE_ENABLED"] = "false"

import pytest

from chatclone.llm.base import LLMProvider, LLMResponse


class FakeProvider(LLMProvider):
    """Provider returning canned fragments, optionally failing after ``fail_after`` of them."""

    def __init__(self, fragments=None, fail_after=None, reply="Canned reply", usage=None):
        super().__init__(api_key="test-key", model="fake-model")
        self.fragments = list(fragments or [])
        self.fail_after = fail_after
        self.reply = reply
        self.usage = usage or {"total_tokens": 12}
        self.stream_closed = False
        self.calls = []

    async def chat_completion(self, messages, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(messages)
        if self.fail_after is not None:
            raise RuntimeError("provider down")
        return LLMResponse(content=self.reply, model=self.model, usage=self.usage)

    async def chat_completion_stream(self, messages, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(messages)
        try:
            for index, fragment in enumerate(self.fragments):
                if self.fail_after is not None and index >= self.fail_after:
                    raise RuntimeError("stream broke")
                yield fragment
            if self.fail_after is not None and self.fail_after >= len(self.fragments):
                raise RuntimeError("stream broke")
        finally:
            self.stream_closed = True


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
