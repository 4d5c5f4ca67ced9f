"""Domain specialist nodes: guichet (HR procedures) and legal (employment law).

Both specialists follow the same contract: one JSON completion grounded on the
evidence they are given, parsed into a `SpecialistAnswer`. On any completion
or parsing failure they return a fixed low-confidence answer instead of
raising. The legal specialist always carries a "not legal advice" disclaimer.
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from langchain_core.runnables import RunnableConfig

from workforce_lu.config import settings
from workforce_lu.consts import GUICHET_DEFAULT_LIMITATIONS, LEGAL_DISCLAIMER
from workforce_lu.graph.context import completion_from
from workforce_lu.graph.state import PipelineState
from workforce_lu.llm.completion import CompletionService, get_completion_service, parse_completion
from workforce_lu.llm.prompts import (
    GUICHET_SYSTEM_PROMPT,
    LEGAL_SYSTEM_PROMPT,
    build_specialist_prompt,
)
from workforce_lu.types.evidence import Evidence
from workforce_lu.types.plan import ALL_AGENTS, AgentName, Plan, Turn
from workforce_lu.types.specialist import ConfidenceLevel, SpecialistAnswer, SpecialistDraft
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class SpecialistProfile:
    """Everything that differs between the two specialists."""

    agent: AgentName
    prompt_template: str
    default_limitations: tuple[str, ...]
    fallback_answer: str
    fallback_limitations: tuple[str, ...]
    requires_disclaimer: bool = False


GUICHET_PROFILE = SpecialistProfile(
    agent=AgentName.GUICHET,
    prompt_template=GUICHET_SYSTEM_PROMPT,
    default_limitations=GUICHET_DEFAULT_LIMITATIONS,
    fallback_answer="Unable to process your question with available procedural information.",
    fallback_limitations=("Error processing Guichet sources.",),
)

LEGAL_PROFILE = SpecialistProfile(
    agent=AgentName.LEGAL,
    prompt_template=LEGAL_SYSTEM_PROMPT,
    default_limitations=(),
    fallback_answer="Unable to process your question with available legal information.",
    fallback_limitations=(
        "This is not legal advice. Consult a qualified lawyer.",
        "Error processing legal sources.",
    ),
    requires_disclaimer=True,
)

PROFILES: dict[AgentName, SpecialistProfile] = {
    AgentName.GUICHET: GUICHET_PROFILE,
    AgentName.LEGAL: LEGAL_PROFILE,
}


def ensure_legal_disclaimer(limitations: list[str]) -> list[str]:
    """Prepend the legal disclaimer unless some limitation already mentions legal advice."""
    if any("legal advice" in lim.lower() for lim in limitations):
        return limitations
    return [LEGAL_DISCLAIMER, *limitations]


def _fallback_answer(profile: SpecialistProfile, evidence: Sequence[Evidence]) -> SpecialistAnswer:
    return SpecialistAnswer(
        agent=profile.agent,
        answer=profile.fallback_answer,
        steps=[],
        evidence=list(evidence),
        confidence=ConfidenceLevel.LOW,
        limitations=list(profile.fallback_limitations),
        suggested_searches=[],
    )


async def _respond_with_status(
    profile: SpecialistProfile,
    question: str,
    language: str,
    evidence: Sequence[Evidence],
    completion: CompletionService,
) -> tuple[SpecialistAnswer, str | None]:
    """Return the specialist answer and, if the fallback was used, the reason."""
    system_prompt = build_specialist_prompt(profile.prompt_template, language, evidence)
    error: str | None = None

    try:
        raw = await completion.complete(
            system_prompt,
            [Turn(role="user", content=question)],
            response_format="json",
            max_tokens=settings.specialist_max_tokens,
        )
        draft = parse_completion(raw, SpecialistDraft)
        limitations = (
            list(draft.limitations)
            if draft.limitations is not None
            else list(profile.default_limitations)
        )
        answer = SpecialistAnswer(
            agent=profile.agent,
            answer=draft.answer,
            steps=draft.steps,
            evidence=list(evidence),
            confidence=draft.confidence,
            limitations=limitations,
            suggested_searches=draft.suggested_searches,
        )
    except Exception as e:
        logger.error(
            "Specialist failed, using fallback answer",
            extra={"stage": "specialist", "agent": profile.agent.value, "error": str(e)},
        )
        answer = _fallback_answer(profile, evidence)
        error = str(e)

    if profile.requires_disclaimer:
        answer.limitations = ensure_legal_disclaimer(answer.limitations)

    return answer, error


async def respond_guichet(
    question: str,
    language: str,
    evidence: Sequence[Evidence],
    completion: CompletionService | None = None,
) -> SpecialistAnswer:
    """Answer a procedural question from guichet.public.lu evidence."""
    answer, _ = await _respond_with_status(
        GUICHET_PROFILE, question, language, evidence, completion or get_completion_service()
    )
    return answer


async def respond_legal(
    question: str,
    language: str,
    evidence: Sequence[Evidence],
    completion: CompletionService | None = None,
) -> SpecialistAnswer:
    """Answer an employment-law question from legilux / mt.gouvernement.lu evidence.

    The returned limitations always include a "not legal advice" disclaimer.
    """
    answer, _ = await _respond_with_status(
        LEGAL_PROFILE, question, language, evidence, completion or get_completion_service()
    )
    return answer


async def respond(
    agent: AgentName,
    question: str,
    language: str,
    evidence: Sequence[Evidence],
    completion: CompletionService | None = None,
) -> SpecialistAnswer:
    """Dispatch to the specialist named by `agent`."""
    answer, _ = await _respond_with_status(
        PROFILES[AgentName(agent)],
        question,
        language,
        evidence,
        completion or get_completion_service(),
    )
    return answer


async def specialists_node(state: PipelineState, config: RunnableConfig | None = None) -> dict[str, Any]:
    """Run every planned specialist that has evidence, concurrently.

    Specialists with no evidence are skipped. Answers are ordered guichet
    first, then legal, whatever order the calls complete in.

    Returns:
        Dict with state updates: specialist_answers, run_metadata.
    """
    start = time.perf_counter()
    plan = state.plan or Plan.fallback(state.question)
    completion = completion_from(config)

    agents = [a for a in ALL_AGENTS if plan.calls(a) and state.evidence_for(a)]
    outcomes = await asyncio.gather(
        *(
            _respond_with_status(
                PROFILES[a], state.question, plan.language.value, state.evidence_for(a), completion
            )
            for a in agents
        )
    )

    answers = [answer for answer, _ in outcomes]
    specialists_meta: dict[str, Any] = {
        "called": [a.value for a in agents],
        "skipped_no_evidence": [
            a.value for a in ALL_AGENTS if plan.calls(a) and not state.evidence_for(a)
        ],
        "confidence": {answer.agent.value: answer.confidence.value for answer in answers},
        "fallbacks": {
            answer.agent.value: error for answer, error in outcomes if error is not None
        },
        "latency_seconds": time.perf_counter() - start,
    }

    return {
        "specialist_answers": answers,
        "run_metadata": {**state.run_metadata, "specialists": specialists_meta},
    }
