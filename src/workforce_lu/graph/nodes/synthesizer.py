"""Synthesizer node: merges specialist answers into one answer."""

import time
from collections.abc import Sequence
from typing import Any, Literal

from langchain_core.runnables import RunnableConfig

from workforce_lu.config import settings
from workforce_lu.consts import NO_INFORMATION_ANSWER, NO_INFORMATION_LIMITATIONS
from workforce_lu.graph.context import completion_from
from workforce_lu.graph.state import PipelineState
from workforce_lu.llm.completion import CompletionService, get_completion_service, parse_completion
from workforce_lu.llm.prompts import (
    SYNTHESIZER_SYSTEM_PROMPT,
    build_synthesis_user_prompt,
    language_name,
)
from workforce_lu.types.plan import Plan, Turn
from workforce_lu.types.specialist import (
    ConfidenceLevel,
    SpecialistAnswer,
    SynthesisDraft,
    SynthesizedAnswer,
)
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

SynthesisStrategy = Literal["no_answers", "passthrough", "merged", "concatenated"]


def no_information_answer() -> SynthesizedAnswer:
    return SynthesizedAnswer(
        answer=NO_INFORMATION_ANSWER,
        steps=[],
        confidence=ConfidenceLevel.LOW,
        limitations=list(NO_INFORMATION_LIMITATIONS),
        suggested_searches=[],
    )


def _passthrough(answer: SpecialistAnswer) -> SynthesizedAnswer:
    return SynthesizedAnswer(
        answer=answer.answer,
        steps=list(answer.steps),
        confidence=answer.confidence,
        limitations=list(answer.limitations),
        suggested_searches=list(answer.suggested_searches),
    )


def _flatten(answers: Sequence[SpecialistAnswer], field: str) -> list[str]:
    return [item for a in answers for item in getattr(a, field)]


def _concatenate(answers: Sequence[SpecialistAnswer]) -> SynthesizedAnswer:
    """Naive merge: answers joined by a blank line, lists flattened in order."""
    return SynthesizedAnswer(
        answer="\n\n".join(a.answer for a in answers),
        steps=_flatten(answers, "steps"),
        confidence=ConfidenceLevel.MEDIUM,
        limitations=_flatten(answers, "limitations"),
        suggested_searches=_flatten(answers, "suggested_searches"),
    )


def _from_draft(draft: SynthesisDraft, answers: Sequence[SpecialistAnswer]) -> SynthesizedAnswer:
    """Fill every field the merge omitted from the specialist answers."""
    return SynthesizedAnswer(
        answer=draft.answer or answers[0].answer,
        steps=draft.steps if draft.steps is not None else _flatten(answers, "steps"),
        confidence=draft.confidence or ConfidenceLevel.MEDIUM,
        limitations=(
            draft.limitations
            if draft.limitations is not None
            else _flatten(answers, "limitations")
        ),
        suggested_searches=(
            draft.suggested_searches
            if draft.suggested_searches is not None
            else _flatten(answers, "suggested_searches")
        ),
    )


async def _synthesize_with_strategy(
    question: str,
    language: str,
    answers: Sequence[SpecialistAnswer],
    completion: CompletionService,
) -> tuple[SynthesizedAnswer, SynthesisStrategy]:
    if not answers:
        return no_information_answer(), "no_answers"

    if len(answers) == 1:
        return _passthrough(answers[0]), "passthrough"

    system_prompt = SYNTHESIZER_SYSTEM_PROMPT.format(language_name=language_name(language))
    user_prompt = build_synthesis_user_prompt(question, answers)

    try:
        raw = await completion.complete(
            system_prompt,
            [Turn(role="user", content=user_prompt)],
            response_format="json",
            max_tokens=settings.synthesizer_max_tokens,
        )
        draft = parse_completion(raw, SynthesisDraft)
        return _from_draft(draft, answers), "merged"
    except Exception as e:
        logger.error(
            "Synthesis failed, concatenating specialist answers",
            extra={"stage": "synthesizer", "num_answers": len(answers), "error": str(e)},
        )
        return _concatenate(answers), "concatenated"


async def synthesize_responses(
    question: str,
    language: str,
    answers: Sequence[SpecialistAnswer],
    completion: CompletionService | None = None,
) -> SynthesizedAnswer:
    """Merge specialist answers into a single answer.

    - No answers: fixed "no information" answer with low confidence.
    - One answer: returned as is, without a completion call.
    - Several: merged by the completion service, procedural content first.
      If the merge fails, the answers are concatenated instead.
    """
    synthesized, _ = await _synthesize_with_strategy(
        question, language, answers, completion or get_completion_service()
    )
    return synthesized


async def synthesizer_node(state: PipelineState, config: RunnableConfig | None = None) -> dict[str, Any]:
    """Synthesize specialist answers and return state updates.

    Returns:
        Dict with state updates: synthesized, run_metadata.
    """
    start = time.perf_counter()
    plan = state.plan or Plan.fallback(state.question)

    synthesized, strategy = await _synthesize_with_strategy(
        state.question,
        plan.language.value,
        state.specialist_answers,
        completion_from(config),
    )

    synthesizer_meta = {
        "strategy": strategy,
        "num_answers": len(state.specialist_answers),
        "confidence": synthesized.confidence.value,
        "latency_seconds": time.perf_counter() - start,
    }

    return {
        "synthesized": synthesized,
        "run_metadata": {**state.run_metadata, "synthesizer": synthesizer_meta},
    }
