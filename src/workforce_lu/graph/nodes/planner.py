"""Planner node: classifies the question and decides retrieval and routing.

The planner makes one cheap JSON completion and turns it into a `Plan`.
It never raises: any completion or parsing failure yields `Plan.fallback`,
so the rest of the pipeline always has something to work with.
"""

import time
from collections.abc import Sequence
from typing import Any

from langchain_core.runnables import RunnableConfig

from workforce_lu.config import settings
from workforce_lu.graph.context import completion_from
from workforce_lu.graph.state import PipelineState
from workforce_lu.llm.completion import CompletionService, get_completion_service, parse_completion
from workforce_lu.llm.prompts import PLANNER_SYSTEM_PROMPT, history_to_messages
from workforce_lu.types.plan import Plan, PlanDraft, Turn
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)


async def _plan_with_status(
    question: str,
    history: Sequence[Turn],
    completion: CompletionService,
) -> tuple[Plan, str | None]:
    """Return the plan and, if the fallback was used, the reason."""
    messages = history_to_messages(history, question, settings.planner_history_turns)

    try:
        raw = await completion.complete(
            PLANNER_SYSTEM_PROMPT,
            messages,
            response_format="json",
            max_tokens=settings.planner_max_tokens,
        )
        draft = parse_completion(raw, PlanDraft)
        return draft.to_plan(question), None
    except Exception as e:
        logger.warning(
            "Planning failed, using fallback plan",
            extra={"stage": "planner", "error": str(e)},
        )
        return Plan.fallback(question), str(e)


async def plan_request(
    question: str,
    history: Sequence[Turn] = (),
    completion: CompletionService | None = None,
) -> Plan:
    """Plan retrieval and routing for one question.

    Args:
        question: The user question.
        history: Prior conversation turns, oldest first. Only the most recent
            `settings.planner_history_turns` are sent, as context.
        completion: Completion service. Defaults to the process-wide one.

    Returns:
        The parsed Plan, or `Plan.fallback(question)` if planning failed.
    """
    plan, _ = await _plan_with_status(question, history, completion or get_completion_service())
    return plan


async def planner_node(state: PipelineState, config: RunnableConfig | None = None) -> dict[str, Any]:
    """Run the planner and return state updates.

    Returns:
        Dict with state updates: plan, run_metadata.
    """
    start = time.perf_counter()

    plan, error = await _plan_with_status(state.question, state.history, completion_from(config))

    planner_meta: dict[str, Any] = {
        "language": plan.language.value,
        "intent": plan.intent.value,
        "confidence": plan.confidence,
        "agents_to_call": [a.value for a in plan.agents_to_call],
        "num_queries": len(plan.retrieval_queries),
        "fallback_used": error is not None,
        "latency_seconds": time.perf_counter() - start,
    }
    if error is not None:
        planner_meta["error"] = error

    logger.info(
        "Plan ready",
        extra={
            "stage": "planner",
            "intent": plan.intent.value,
            "agents": ",".join(planner_meta["agents_to_call"]),
            "fallback_used": planner_meta["fallback_used"],
        },
    )

    return {
        "plan": plan,
        "run_metadata": {**state.run_metadata, "planner": planner_meta},
    }
