"""Tests for the completion service and its JSON helpers.

These tests verify that:
1. JSON mode returns fence-free JSON object text and rejects anything else
2. Text mode returns the model output unchanged
3. Timeouts and rate limits are retried, other failures are not
4. Messages and token limits reach the chat model in the expected shape
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from workforce_lu.config import Settings
from workforce_lu.llm.completion import (
    CompletionError,
    CompletionFormatError,
    CompletionRateLimitError,
    CompletionService,
    CompletionTimeoutError,
    load_json_object,
    parse_completion,
    strip_code_fences,
    to_langchain_messages,
)
from workforce_lu.types.plan import PlanDraft, Turn

# =============================================================================
# Fixtures
# =============================================================================


class ProviderRateLimit(Exception):
    """Shape of provider SDK errors carrying an HTTP status code."""

    status_code = 429


@pytest.fixture
def fast_settings() -> Settings:
    """Two attempts and no delay between retries."""
    return Settings(llm_provider="openai", llm_max_attempts=2, llm_retry_delay_seconds=0)


def make_model(*outputs) -> MagicMock:
    """Chat model whose ainvoke returns (or raises) `outputs` in order."""
    model = MagicMock()
    model.ainvoke = AsyncMock(
        side_effect=[o if isinstance(o, Exception) else AIMessage(content=o) for o in outputs]
    )
    return model


# =============================================================================
# JSON Helpers
# =============================================================================


class TestJsonHelpers:
    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_load_json_object_rejects_invalid_json(self):
        with pytest.raises(CompletionFormatError):
            load_json_object("Sure! Here is your answer.")

    def test_load_json_object_rejects_non_object(self):
        with pytest.raises(CompletionFormatError, match="must be an object"):
            load_json_object('["guichet", "legal"]')

    def test_parse_completion_validates_schema(self):
        with pytest.raises(CompletionFormatError, match="PlanDraft"):
            parse_completion('{"intent": "astrology"}', PlanDraft)

    def test_parse_completion_returns_model(self):
        draft = parse_completion('{"intent": "Legal", "language": "fr"}', PlanDraft)
        assert draft.intent == "legal"
        assert draft.language == "fr"


def test_to_langchain_messages_orders_system_first():
    messages = to_langchain_messages(
        "system text",
        [
            Turn(role="user", content="first"),
            {"role": "assistant", "content": "reply"},
            Turn(role="user", content="second"),
        ],
    )

    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert messages[0].content == "system text"
    assert messages[-1].content == "second"


# =============================================================================
# CompletionService
# =============================================================================


@pytest.mark.asyncio
async def test_json_mode_returns_object_text(fast_settings):
    model = make_model('```json\n{"answer": "ok"}\n```')
    service = CompletionService(llm=model, config=fast_settings)

    text = await service.complete("system", [Turn(role="user", content="q")])

    assert text == '{"answer": "ok"}'


@pytest.mark.asyncio
async def test_json_mode_rejects_prose(fast_settings):
    model = make_model("I cannot answer that.")
    service = CompletionService(llm=model, config=fast_settings)

    with pytest.raises(CompletionFormatError):
        await service.complete("system", [Turn(role="user", content="q")])

    # Format errors are not retried
    assert model.ainvoke.await_count == 1


@pytest.mark.asyncio
async def test_text_mode_returns_raw_output(fast_settings):
    model = make_model("Plain answer, not JSON.")
    service = CompletionService(llm=model, config=fast_settings)

    text = await service.complete(
        "system", [Turn(role="user", content="q")], response_format="text"
    )

    assert text == "Plain answer, not JSON."


@pytest.mark.asyncio
async def test_text_mode_flattens_content_blocks(fast_settings):
    model = MagicMock()
    model.ainvoke = AsyncMock(
        return_value=AIMessage(content=[{"type": "text", "text": "Hello "}, "world"])
    )
    service = CompletionService(llm=model, config=fast_settings)

    text = await service.complete("system", [], response_format="text")

    assert text == "Hello world"


@pytest.mark.asyncio
async def test_max_tokens_passed_to_model(fast_settings):
    model = make_model('{"a": 1}')
    service = CompletionService(llm=model, config=fast_settings)

    await service.complete("system", [Turn(role="user", content="q")], max_tokens=500)

    messages = model.ainvoke.await_args.args[0]
    assert isinstance(messages[0], SystemMessage)
    assert model.ainvoke.await_args.kwargs == {"max_tokens": 500}


@pytest.mark.asyncio
async def test_google_uses_max_output_tokens():
    settings = Settings(llm_provider="google", llm_max_attempts=1)
    model = make_model('{"a": 1}')
    service = CompletionService(llm=model, config=settings)

    await service.complete("system", [], max_tokens=256)

    assert model.ainvoke.await_args.kwargs == {"max_output_tokens": 256}


@pytest.mark.asyncio
async def test_json_llm_used_for_json_calls(fast_settings):
    text_model = make_model("free text")
    json_model = make_model('{"a": 1}')
    service = CompletionService(llm=text_model, json_llm=json_model, config=fast_settings)

    await service.complete("system", [])
    await service.complete("system", [], response_format="text")

    assert json_model.ainvoke.await_count == 1
    assert text_model.ainvoke.await_count == 1


# =============================================================================
# Retries
# =============================================================================


@pytest.mark.asyncio
async def test_timeout_is_retried_then_succeeds(fast_settings):
    model = make_model(TimeoutError(), '{"ok": true}')
    service = CompletionService(llm=model, config=fast_settings)

    text = await service.complete("system", [])

    assert text == '{"ok": true}'
    assert model.ainvoke.await_count == 2


@pytest.mark.asyncio
async def test_timeout_raises_after_max_attempts(fast_settings):
    model = make_model(TimeoutError(), TimeoutError())
    service = CompletionService(llm=model, config=fast_settings)

    with pytest.raises(CompletionTimeoutError):
        await service.complete("system", [])

    assert model.ainvoke.await_count == fast_settings.llm_max_attempts


@pytest.mark.asyncio
async def test_rate_limit_is_retried(fast_settings):
    model = make_model(ProviderRateLimit("slow down"), ProviderRateLimit("slow down"))
    service = CompletionService(llm=model, config=fast_settings)

    with pytest.raises(CompletionRateLimitError):
        await service.complete("system", [])

    assert model.ainvoke.await_count == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried(fast_settings):
    model = make_model(ConnectionError("refused"), '{"never": "reached"}')
    service = CompletionService(llm=model, config=fast_settings)

    with pytest.raises(CompletionError, match="refused"):
        await service.complete("system", [])

    assert model.ainvoke.await_count == 1
