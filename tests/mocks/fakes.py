"""Test doubles for the completion service, evidence sources and time."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from workforce_lu.llm.completion import CompletionError
from workforce_lu.llm.prompts import (
    GUICHET_SYSTEM_PROMPT,
    LEGAL_SYSTEM_PROMPT,
    PLANNER_SYSTEM_PROMPT,
    SYNTHESIZER_SYSTEM_PROMPT,
)
from workforce_lu.types.evidence import RetrievalResult, SourceTag
from workforce_lu.types.plan import Turn

# First line of each system prompt identifies the stage making the call
_ROLE_PREFIXES = {
    "planner": PLANNER_SYSTEM_PROMPT.splitlines()[0],
    "guichet": GUICHET_SYSTEM_PROMPT.splitlines()[0],
    "legal": LEGAL_SYSTEM_PROMPT.splitlines()[0],
    "synthesizer": SYNTHESIZER_SYSTEM_PROMPT.splitlines()[0],
}


def role_of(system_prompt: str) -> str:
    for role, prefix in _ROLE_PREFIXES.items():
        if system_prompt.startswith(prefix):
            return role
    return "unknown"


@dataclass
class CompletionCall:
    role: str
    system_prompt: str
    messages: list[Turn]
    response_format: str
    max_tokens: int | None


Reply = str | Mapping[str, Any] | Exception | Callable[["CompletionCall"], Any]


class FakeCompletionService:
    """Scripted stand-in for `CompletionService`.

    Replies are keyed by the stage that calls (planner, guichet, legal,
    synthesizer). A reply may be:
      - str: returned as the raw completion text
      - dict: returned as JSON text
      - Exception: raised
      - callable: called with the CompletionCall (awaited if it returns an
        awaitable), its result handled as above

    A stage with no scripted reply raises CompletionError.
    """

    def __init__(self, replies: Mapping[str, Reply] | None = None):
        self.replies: dict[str, Reply] = dict(replies or {})
        self.calls: list[CompletionCall] = []

    def calls_for(self, role: str) -> list[CompletionCall]:
        return [c for c in self.calls if c.role == role]

    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[Turn | Mapping[str, str]],
        response_format: str = "json",
        max_tokens: int | None = None,
    ) -> str:
        call = CompletionCall(
            role=role_of(system_prompt),
            system_prompt=system_prompt,
            messages=[m if isinstance(m, Turn) else Turn.model_validate(m) for m in messages],
            response_format=response_format,
            max_tokens=max_tokens,
        )
        self.calls.append(call)

        if call.role not in self.replies:
            raise CompletionError(f"No scripted reply for {call.role}")

        reply = self.replies[call.role]
        if callable(reply) and not isinstance(reply, Exception):
            reply = reply(call)
            if inspect.isawaitable(reply):
                reply = await reply
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, Mapping):
            return json.dumps(reply)
        return reply


class FakeSource:
    """Evidence source returning fixed results and recording every fetch.

    Args:
        tag: Domain the source serves.
        results: Results for any query not listed in `by_query`.
        by_query: Results per exact query string.
        fail_on: Queries whose fetch raises RuntimeError.
        delays: Seconds to sleep before answering, per query.
    """

    def __init__(
        self,
        tag: SourceTag,
        results: Sequence[RetrievalResult] = (),
        by_query: Mapping[str, Sequence[RetrievalResult]] | None = None,
        fail_on: Sequence[str] = (),
        delays: Mapping[str, float] | None = None,
    ):
        self.tag = tag
        self.results = list(results)
        self.by_query = dict(by_query or {})
        self.fail_on = set(fail_on)
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, query: str, language: str) -> list[RetrievalResult]:
        self.calls.append((query, language))
        if query in self.delays:
            await asyncio.sleep(self.delays[query])
        if query in self.fail_on:
            raise RuntimeError(f"backend unavailable for {query!r}")
        return list(self.by_query.get(query, self.results))


@dataclass
class FakeClock:
    """Callable clock that only moves when told to."""

    now: datetime = field(default_factory=lambda: datetime(2025, 1, 1, 12, 0, 0))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)
