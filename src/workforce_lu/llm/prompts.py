"""System prompts and prompt-building helpers for every pipeline stage.

Prompt text lives here so that the graph nodes only deal with routing,
parsing and fallbacks. Every prompt asks for a single JSON object.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from workforce_lu.types.plan import Turn

if TYPE_CHECKING:
    from workforce_lu.types.evidence import Evidence
    from workforce_lu.types.specialist import SpecialistAnswer


LANGUAGE_NAMES = {"en": "English", "fr": "French", "de": "German"}


# =============================================================================
# Planner
# =============================================================================

PLANNER_SYSTEM_PROMPT = """You are an orchestrator for Luxembourg HR and employment law questions.

Analyze the latest user question and return a JSON object with:
- language: "en", "fr", or "de" (detected from the question)
- intent: "procedural" (HR processes), "legal" (employment law), or "mixed"
- confidence: number between 0 and 1 scoring your classification
- reasoning: brief explanation
- retrieval_queries: array of 2-3 search queries for retrieval
- agents_to_call: array containing "guichet" and/or "legal"

Earlier conversation turns are context only. Be concise. This is a cheap planning step."""


# =============================================================================
# Domain Specialists
# =============================================================================

GUICHET_SYSTEM_PROMPT = """You are a specialist in Luxembourg HR procedures using guichet.public.lu only.

Your role:
1. Answer procedural questions about HR processes
2. Focus on administrative steps and guidance
3. Cite only guichet.public.lu sources
4. Provide step-by-step instructions
5. Be clear about limitations

Answer in {language_name}.

Evidence provided:
{evidence}

Return a JSON object with:
- answer: clear procedural answer
- steps: array of step-by-step instructions
- confidence: "high", "medium", or "low"
- limitations: array of limitations
- suggested_searches: array of follow-up searches"""

LEGAL_SYSTEM_PROMPT = """You are a specialist in Luxembourg employment law using legilux.public.lu and mt.gouvernement.lu.

Your role:
1. Extract legal provisions and conditions
2. Cite only official legal sources
3. Explain obligations and rights
4. Handle conflicts between sources
5. Be precise about legal implications

IMPORTANT: This is not legal advice. Users must consult lawyers for decisions.

Answer in {language_name}.

Evidence provided:
{evidence}

Return a JSON object with:
- answer: clear legal explanation
- steps: array of legal obligations/rights
- confidence: "high", "medium", or "low"
- limitations: array of limitations (MUST include a legal advice disclaimer)
- suggested_searches: array of follow-up searches"""


# =============================================================================
# Synthesizer
# =============================================================================

SYNTHESIZER_SYSTEM_PROMPT = """You are synthesizing responses from multiple specialists.

Combine their answers into a coherent response in {language_name} that:
1. Merges procedural and legal information logically
2. Avoids redundancy
3. Maintains accuracy from each source
4. Prioritizes procedural steps first, then legal context
5. Combines limitations and suggested searches

Return a JSON object with: {{answer, steps, confidence, limitations, suggested_searches}}
where confidence is "high", "medium", or "low"."""


# =============================================================================
# Formatting Helpers
# =============================================================================


def language_name(language: str) -> str:
    """Human-readable name of a language code, for prompt text."""
    return LANGUAGE_NAMES.get(str(language), "English")


def format_evidence_for_prompt(evidence: Sequence[Evidence]) -> str:
    """Render evidence as one `- {title} ({section}): {snippet}` line per item.

    Returns "No evidence available." for an empty list.
    """
    if not evidence:
        return "No evidence available."
    return "\n".join(f"- {e.title} ({e.section}): {e.snippet}" for e in evidence)


def build_specialist_prompt(template: str, language: str, evidence: Sequence[Evidence]) -> str:
    return template.format(
        language_name=language_name(language),
        evidence=format_evidence_for_prompt(evidence),
    )


def format_agent_summary(answers: Sequence[SpecialistAnswer]) -> str:
    """Summarize specialist answers for the merge prompt.

    Example output:
        GUICHET: You must register within 8 days.
        Steps: Fill the form; Submit it to the CCSS

        LEGAL: Article L.121-4 requires a written contract.
        Steps: Sign before the start date
    """
    return "\n\n".join(
        f"{a.agent.upper()}: {a.answer}\nSteps: {'; '.join(a.steps)}" for a in answers
    )


def build_synthesis_user_prompt(question: str, answers: Sequence[SpecialistAnswer]) -> str:
    return f"Question: {question}\n\nAgent responses:\n{format_agent_summary(answers)}"


def history_to_messages(
    history: Sequence[Turn], question: str, max_turns: int
) -> list[Turn]:
    """Keep the last `max_turns` history turns and append the question as a user turn."""
    recent = list(history)[-max_turns:] if max_turns > 0 else []
    return [*recent, Turn(role="user", content=question)]
