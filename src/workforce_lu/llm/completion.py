"""Completion service shared by the planner, the specialists and the synthesizer.

Every pipeline stage talks to the LLM through `CompletionService.complete`,
which returns raw text. In JSON mode the text is guaranteed to be a JSON
object; anything else raises `CompletionFormatError`. Schema validation of
that object is the caller's job (see `parse_completion`).
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Mapping, Sequence
from typing import Any, Literal, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, ValidationError

from workforce_lu.config import Settings, settings
from workforce_lu.graph.retry import RetryableError, with_retry_async
from workforce_lu.llm.providers import get_completion_llm
from workforce_lu.types.plan import Turn
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
ResponseFormat = Literal["json", "text"]

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class CompletionError(Exception):
    """Raised when the completion service could not produce an answer."""

    pass


class CompletionFormatError(CompletionError):
    """Raised when completion output is not the JSON the caller asked for."""

    pass


class CompletionTimeoutError(CompletionError, RetryableError):
    """Raised when a completion call exceeds its timeout."""

    pass


class CompletionRateLimitError(CompletionError, RetryableError):
    """Raised when the provider rejects a call with HTTP 429."""

    pass


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1) if match else stripped


def load_json_object(text: str) -> dict[str, Any]:
    """Decode completion text that must hold a single JSON object."""
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise CompletionFormatError(f"Completion is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CompletionFormatError(
            f"Completion JSON must be an object, got {type(data).__name__}"
        )
    return data


def parse_completion(raw: str, model: type[ModelT]) -> ModelT:
    """Validate raw completion text into `model`.

    Raises:
        CompletionFormatError: If the text is not a JSON object or fails validation.
    """
    data = load_json_object(raw)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise CompletionFormatError(
            f"Completion does not match {model.__name__}: {e.error_count()} error(s)"
        ) from e


def to_langchain_messages(
    system_prompt: str,
    messages: Sequence[Turn | Mapping[str, str]],
) -> list[BaseMessage]:
    """Build the LangChain message list: system prompt first, then turns in order."""
    out: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for msg in messages:
        turn = msg if isinstance(msg, Turn) else Turn.model_validate(msg)
        if turn.role == "user":
            out.append(HumanMessage(content=turn.content))
        elif turn.role == "assistant":
            out.append(AIMessage(content=turn.content))
        else:
            out.append(SystemMessage(content=turn.content))
    return out


def _content_text(content: Any) -> str:
    """Flatten message content (Anthropic returns a list of blocks)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, Mapping) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


class CompletionService:
    """Async chat completion over a LangChain chat model.

    Args:
        llm: Model used for free-text calls. Built from settings if None.
        json_llm: Model used in JSON mode. Defaults to `llm` when that is given,
            otherwise a provider model configured for JSON object output.
        config: Settings to build models and read timeout/retry values from.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        json_llm: BaseChatModel | None = None,
        config: Settings | None = None,
    ):
        self._config = config or settings
        self._llm = llm
        self._json_llm = json_llm or llm
        self._invoke = with_retry_async(
            max_attempts=self._config.llm_max_attempts,
            delay_seconds=self._config.llm_retry_delay_seconds,
        )(self._invoke_once)

    def _model(self, response_format: ResponseFormat) -> BaseChatModel:
        if response_format == "json":
            if self._json_llm is None:
                self._json_llm = get_completion_llm(self._config, json_mode=True)
            return self._json_llm
        if self._llm is None:
            self._llm = get_completion_llm(self._config)
        return self._llm

    def _max_tokens_kwargs(self, max_tokens: int | None) -> dict[str, int]:
        if max_tokens is None:
            return {}
        if self._config.llm_provider == "google":
            return {"max_output_tokens": max_tokens}
        return {"max_tokens": max_tokens}

    async def _invoke_once(
        self, model: BaseChatModel, messages: list[BaseMessage], kwargs: dict[str, Any]
    ) -> str:
        try:
            response = await asyncio.wait_for(
                model.ainvoke(messages, **kwargs), timeout=self._config.llm_timeout
            )
        except TimeoutError as e:
            raise CompletionTimeoutError(
                f"Completion timed out after {self._config.llm_timeout}s"
            ) from e
        except Exception as e:
            if getattr(e, "status_code", None) == 429:
                raise CompletionRateLimitError(f"Provider rate limit: {e}") from e
            raise CompletionError(f"Completion call failed: {e}") from e

        return _content_text(response.content)

    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[Turn | Mapping[str, str]],
        response_format: ResponseFormat = "json",
        max_tokens: int | None = None,
    ) -> str:
        """Run one completion and return its text.

        Args:
            system_prompt: Role and instructions for the model.
            messages: Conversation turns after the system prompt.
            response_format: "json" to require a JSON object, "text" for free text.
            max_tokens: Output token cap for this call.

        Returns:
            Completion text. In JSON mode, the code-fence-free JSON object text.

        Raises:
            CompletionError: On provider failure, timeout or rate limit.
            CompletionFormatError: In JSON mode, when the output is not a JSON object.
        """
        model = self._model(response_format)
        lc_messages = to_langchain_messages(system_prompt, messages)
        text = await self._invoke(model, lc_messages, self._max_tokens_kwargs(max_tokens))

        if response_format == "json":
            load_json_object(text)
            return strip_code_fences(text)
        return text


_default_service: CompletionService | None = None


def get_completion_service() -> CompletionService:
    """Get or create the process-wide completion service."""
    global _default_service
    if _default_service is None:
        _default_service = CompletionService()
    return _default_service
