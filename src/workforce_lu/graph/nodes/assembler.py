"""Response Assembler node: builds the final `ChatResponse`.

Steps:
1. Check every evidence URL against the domain allowlist (warning only)
2. Detect keyword conflicts in legal evidence
3. Group evidence into citations by (url, section)
4. Assemble the response and validate its shape (logged, never raised)
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from workforce_lu.config import settings
from workforce_lu.consts import CONFLICT_KEYWORD_PAIRS, ERROR_ANSWER, ERROR_LIMITATIONS
from workforce_lu.graph.nodes.synthesizer import no_information_answer
from workforce_lu.graph.state import PipelineState
from workforce_lu.retrieval.allowlist import find_disallowed_evidence
from workforce_lu.types.evidence import Citation, Evidence
from workforce_lu.types.output import REQUIRED_RESPONSE_FIELDS, ChatResponse
from workforce_lu.types.plan import AgentName, Language, Plan
from workforce_lu.types.specialist import ConfidenceLevel, SynthesizedAnswer
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)


# =============================================================================
# Citations
# =============================================================================


def build_citations(evidence: Sequence[Evidence]) -> list[Citation]:
    """Group evidence by (url, section) in first-seen order.

    Title and retrieval date come from the first item of each group; every
    item's evidence ID is collected.
    """
    groups: dict[tuple[str, str], Citation] = {}
    for ev in evidence:
        key = (ev.url, ev.section)
        if key in groups:
            groups[key].evidence_ids.append(ev.evidence_id)
        else:
            groups[key] = Citation(
                title=ev.title,
                url=ev.url,
                section=ev.section,
                retrieved_at=ev.retrieved_at,
                evidence_ids=[ev.evidence_id],
            )
    return list(groups.values())


# =============================================================================
# Conflict Detection
# =============================================================================


def detect_conflicts(evidence: Sequence[Evidence]) -> list[str]:
    """Flag opposite-meaning keyword pairs found across evidence snippets.

    Keyword heuristic over two or more items: a pair is reported when each
    keyword appears (case-insensitive substring) in at least one snippet.
    A single item is never compared with itself. Across items, "must" also
    matches inside "must not".
    """
    if len(evidence) < 2:
        return []

    snippets = [e.snippet.lower() for e in evidence]
    conflicts = []
    for first, second in CONFLICT_KEYWORD_PAIRS:
        has_first = any(first in s for s in snippets)
        has_second = any(second in s for s in snippets)
        if has_first and has_second:
            conflicts.append(f'Potential conflict: sources mention both "{first}" and "{second}"')
    return conflicts


# =============================================================================
# Validation
# =============================================================================


def validate_response(payload: Mapping[str, Any] | BaseModel) -> list[str]:
    """Return the required top-level fields missing from `payload` (empty if valid)."""
    data = payload.model_dump() if isinstance(payload, BaseModel) else payload
    return [name for name in REQUIRED_RESPONSE_FIELDS if name not in data]


# =============================================================================
# Assembly
# =============================================================================


def assemble_response(
    plan: Plan,
    evidence: Sequence[Evidence],
    synthesized: SynthesizedAnswer,
    conflicts: Sequence[str] = (),
) -> ChatResponse:
    """Build the final response from the synthesized answer and all evidence.

    Conflict warnings are appended to the limitations. Confidence is forced
    to low when no evidence was retrieved.
    """
    confidence = synthesized.confidence if evidence else ConfidenceLevel.LOW

    response = ChatResponse(
        language=plan.language,
        answer=synthesized.answer,
        steps=list(synthesized.steps),
        citations=build_citations(evidence),
        confidence=confidence,
        limitations=[*synthesized.limitations, *conflicts],
        suggested_searches=list(synthesized.suggested_searches),
        evidence=list(evidence),
    )

    missing = validate_response(response)
    if missing:
        logger.error(
            "Response validation failed - missing fields",
            extra={"stage": "assembler", "missing": ",".join(missing)},
        )

    dangling = response.dangling_citation_ids()
    if dangling:
        logger.error(
            "Response validation failed - citations reference unknown evidence",
            extra={"stage": "assembler", "evidence_ids": ",".join(sorted(dangling))},
        )

    return response


def build_error_response(language: Language | str | None = None) -> ChatResponse:
    """Well-formed low-confidence response for a pipeline that failed outright."""
    try:
        response_language = Language(language or settings.default_language)
    except ValueError:
        response_language = Language(settings.default_language)

    return ChatResponse(
        language=response_language,
        answer=ERROR_ANSWER,
        steps=[],
        citations=[],
        confidence=ConfidenceLevel.LOW,
        limitations=list(ERROR_LIMITATIONS),
        suggested_searches=[],
        evidence=[],
    )


# =============================================================================
# Node
# =============================================================================


def assembler_node(state: PipelineState) -> dict[str, Any]:
    """Assemble the final response and return state updates.

    Returns:
        Dict with state updates: response, run_metadata.
    """
    start = time.perf_counter()
    plan = state.plan or Plan.fallback(state.question)
    evidence = state.all_evidence

    disallowed = find_disallowed_evidence(evidence)
    if disallowed:
        logger.warning(
            "Evidence validation failed - domain mismatch",
            extra={
                "stage": "assembler",
                "urls": ",".join(e.url for e in disallowed),
            },
        )

    conflicts = detect_conflicts(state.evidence_for(AgentName.LEGAL))
    # Missing synthesis means no specialist answered
    synthesized = state.synthesized or no_information_answer()

    response = assemble_response(plan, evidence, synthesized, conflicts)

    assembler_meta = {
        "domain_check_passed": not disallowed,
        "num_conflicts": len(conflicts),
        "num_citations": len(response.citations),
        "num_evidence": len(response.evidence),
        "confidence": response.confidence.value,
        "latency_seconds": time.perf_counter() - start,
    }
    logger.info(
        "Response assembled",
        extra={
            "stage": "assembler",
            "citations": len(response.citations),
            "confidence": response.confidence.value,
        },
    )

    return {
        "response": response,
        "run_metadata": {**state.run_metadata, "assembler": assembler_meta},
    }
