"""
Tests for CompletionService - fragment streaming and the mock fallbacks.
"""

import pytest

from chatclone.core.completion import (
    CompletionService, unconfigured_reply, failure_reply, one_shot_reply,
)


async def _collect(gen):
    return [fragment async for fragment in gen]


class TestStreamingCompletion:

    @pytest.mark.asyncio
    async def test_unconfigured_yields_mock_one_char_at_a_time(self):
        service = CompletionService(None, mock_delay=0)
        fragments = await _collect(service.complete("hi"))

        assert fragments
        assert all(len(f) == 1 for f in fragments)
        assert "".join(fragments) == 'Mock response to: "hi"'

    @pytest.mark.asyncio
    async def test_unconfigured_output_is_reproducible(self):
        service = CompletionService(None, mock_delay=0)
        first = "".join(await _collect(service.complete("same")))
        second = "".join(await _collect(service.complete("same")))
        assert first == second == unconfigured_reply("same")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fragments", [[], ["Hi"], ["Hi", " there"], ["a", "", "b", "c"]])
    async def test_provider_fragments_keep_order(self, fake_provider_cls, fragments):
        service = CompletionService(fake_provider_cls(fragments), mock_delay=0)
        result = await _collect(service.complete("hello"))
        assert "".join(result) == "".join(fragments)
        assert result == [f for f in fragments if f]

    @pytest.mark.asyncio
    async def test_system_prompt_is_sent_first(self, fake_provider_cls):
        provider = fake_provider_cls(["x"])
        service = CompletionService(provider, mock_delay=0)
        await _collect(service.complete("hello", system_prompt="Be brief"))

        messages = provider.calls[0]
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[0].content == "Be brief"

    @pytest.mark.asyncio
    async def test_mid_stream_failure_continues_with_mock(self, fake_provider_cls):
        provider = fake_provider_cls(["Hi", " there", "!"], fail_after=1)
        service = CompletionService(provider, mock_delay=0)

        text = "".join(await _collect(service.complete("hello")))

        assert text == "Hi" + failure_reply("hello")
        assert provider.stream_closed

    @pytest.mark.asyncio
    async def test_immediate_failure_yields_full_mock(self, fake_provider_cls):
        service = CompletionService(fake_provider_cls([], fail_after=0), mock_delay=0)
        text = "".join(await _collect(service.complete("hello")))
        assert text == failure_reply("hello")

    @pytest.mark.asyncio
    async def test_closing_early_closes_provider_stream(self, fake_provider_cls):
        provider = fake_provider_cls(["a", "b", "c"])
        service = CompletionService(provider, mock_delay=0)

        gen = service.complete("hello")
        assert await gen.__anext__() == "a"
        await gen.aclose()

        assert provider.stream_closed


class TestOneShotCompletion:

    @pytest.mark.asyncio
    async def test_success(self, fake_provider_cls):
        service = CompletionService(fake_provider_cls(reply="Answer"), mock_delay=0)
        result = await service.complete_text("q", system_prompt="p", max_tokens=200)

        assert result.text == "Answer"
        assert result.tokens == 12
        assert result.latency_ms >= 0
        assert not result.mocked

    @pytest.mark.asyncio
    async def test_failure_returns_mock_text(self, fake_provider_cls):
        service = CompletionService(fake_provider_cls(fail_after=0), mock_delay=0)
        result = await service.complete_text("q", system_prompt="You are helpful")

        assert result.mocked
        assert result.text == one_shot_reply("q", "You are helpful")
        assert result.text.startswith('Mock response for: "q" with prompt: "You are helpful')

    @pytest.mark.asyncio
    async def test_unconfigured_returns_mock_text(self):
        result = await CompletionService(None).complete_text("q")
        assert result.mocked
        assert result.tokens > 0
