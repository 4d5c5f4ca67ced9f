"""Collaborators the graph nodes read from the LangGraph run config.

Callers can inject a completion service or a retrieval adapter per run:

    config = {"configurable": {"completion": fake_service, "retrieval": adapter}}
    await graph.ainvoke(state, config)

Nodes fall back to the process-wide defaults for anything not injected.
"""

from __future__ import annotations

from typing import Any

from langchain_core.runnables import RunnableConfig

from workforce_lu.llm.completion import CompletionService, get_completion_service
from workforce_lu.retrieval.adapter import RetrievalAdapter, get_default_adapter

COMPLETION_KEY = "completion"
RETRIEVAL_KEY = "retrieval"


def _configurable(config: RunnableConfig | None) -> dict[str, Any]:
    if not config:
        return {}
    return config.get("configurable") or {}


def completion_from(config: RunnableConfig | None) -> CompletionService:
    return _configurable(config).get(COMPLETION_KEY) or get_completion_service()


def retrieval_from(config: RunnableConfig | None) -> RetrievalAdapter:
    return _configurable(config).get(RETRIEVAL_KEY) or get_default_adapter()


def build_run_config(
    completion: CompletionService | None = None,
    retrieval: RetrievalAdapter | None = None,
    thread_id: str | None = None,
) -> RunnableConfig:
    """Build a run config carrying whichever collaborators were given."""
    configurable: dict[str, Any] = {}
    if completion is not None:
        configurable[COMPLETION_KEY] = completion
    if retrieval is not None:
        configurable[RETRIEVAL_KEY] = retrieval
    if thread_id is not None:
        configurable["thread_id"] = thread_id
    return {"configurable": configurable} if configurable else {}
