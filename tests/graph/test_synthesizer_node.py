"""Tests for the synthesizer node.

These tests verify that:
1. No answers yield the fixed "no information" answer without a completion call
2. A single answer is passed through unchanged without a completion call
3. Several answers are merged by the completion service, omitted fields filled in
4. A failed merge falls back to concatenating the specialist answers
"""

import pytest

from tests.mocks.fakes import FakeCompletionService
from workforce_lu.consts import NO_INFORMATION_ANSWER, NO_INFORMATION_LIMITATIONS
from workforce_lu.graph.context import build_run_config
from workforce_lu.graph.nodes.synthesizer import synthesize_responses, synthesizer_node
from workforce_lu.graph.state import PipelineState
from workforce_lu.types.plan import AgentName, Plan
from workforce_lu.types.specialist import ConfidenceLevel, SpecialistAnswer

QUESTION = "Can my employer refuse parental leave?"


@pytest.fixture
def guichet_answer() -> SpecialistAnswer:
    return SpecialistAnswer(
        agent=AgentName.GUICHET,
        answer="Apply through the CAE with your employer's form.",
        steps=["Download the form", "Have it signed"],
        confidence=ConfidenceLevel.HIGH,
        limitations=["Check eligibility first."],
        suggested_searches=["parental leave amount"],
    )


@pytest.fixture
def legal_answer() -> SpecialistAnswer:
    return SpecialistAnswer(
        agent=AgentName.LEGAL,
        answer="The employer may postpone but not refuse the first parental leave.",
        steps=["Respect the notice period"],
        confidence=ConfidenceLevel.MEDIUM,
        limitations=["This is not legal advice."],
        suggested_searches=["postponing parental leave"],
    )


# =============================================================================
# synthesize_responses
# =============================================================================


@pytest.mark.asyncio
async def test_no_answers(completion):
    result = await synthesize_responses(QUESTION, "en", [], completion)

    assert result.answer == NO_INFORMATION_ANSWER
    assert result.confidence == ConfidenceLevel.LOW
    assert result.limitations == list(NO_INFORMATION_LIMITATIONS)
    assert result.steps == []
    assert completion.calls == []


@pytest.mark.asyncio
async def test_single_answer_passthrough(completion, legal_answer):
    result = await synthesize_responses(QUESTION, "en", [legal_answer], completion)

    assert result.answer == legal_answer.answer
    assert result.steps == legal_answer.steps
    assert result.confidence == ConfidenceLevel.MEDIUM
    assert result.limitations == legal_answer.limitations
    assert result.suggested_searches == legal_answer.suggested_searches
    assert completion.calls == []


@pytest.mark.asyncio
async def test_merge_uses_completion(guichet_answer, legal_answer):
    completion = FakeCompletionService(
        {
            "synthesizer": {
                "answer": "Apply through the CAE; your employer can only postpone.",
                "steps": ["Download the form", "Have it signed", "Respect the notice period"],
                "confidence": "high",
                "limitations": ["This is not legal advice."],
                "suggested_searches": ["parental leave amount"],
            }
        }
    )

    result = await synthesize_responses(QUESTION, "fr", [guichet_answer, legal_answer], completion)

    assert result.answer == "Apply through the CAE; your employer can only postpone."
    assert result.confidence == ConfidenceLevel.HIGH
    assert len(result.steps) == 3

    (call,) = completion.calls_for("synthesizer")
    assert "in French" in call.system_prompt
    prompt = call.messages[0].content
    assert prompt.startswith(f"Question: {QUESTION}")
    assert prompt.index("GUICHET:") < prompt.index("LEGAL:")


@pytest.mark.asyncio
async def test_merge_fills_omitted_fields(guichet_answer, legal_answer):
    completion = FakeCompletionService({"synthesizer": {"answer": "Merged answer."}})

    result = await synthesize_responses(QUESTION, "en", [guichet_answer, legal_answer], completion)

    assert result.answer == "Merged answer."
    assert result.steps == ["Download the form", "Have it signed", "Respect the notice period"]
    assert result.confidence == ConfidenceLevel.MEDIUM
    assert result.limitations == ["Check eligibility first.", "This is not legal advice."]
    assert result.suggested_searches == ["parental leave amount", "postponing parental leave"]


@pytest.mark.asyncio
async def test_merge_without_answer_uses_first_specialist(guichet_answer, legal_answer):
    completion = FakeCompletionService({"synthesizer": {"steps": []}})

    result = await synthesize_responses(QUESTION, "en", [guichet_answer, legal_answer], completion)

    assert result.answer == guichet_answer.answer
    assert result.steps == []


@pytest.mark.asyncio
async def test_failed_merge_concatenates(guichet_answer, legal_answer):
    completion = FakeCompletionService({"synthesizer": "not json"})

    result = await synthesize_responses(QUESTION, "en", [guichet_answer, legal_answer], completion)

    assert result.answer == f"{guichet_answer.answer}\n\n{legal_answer.answer}"
    assert result.steps == ["Download the form", "Have it signed", "Respect the notice period"]
    assert result.confidence == ConfidenceLevel.MEDIUM
    assert result.limitations == ["Check eligibility first.", "This is not legal advice."]


# =============================================================================
# synthesizer_node
# =============================================================================


@pytest.mark.asyncio
async def test_node_reports_strategy(guichet_answer, legal_answer):
    completion = FakeCompletionService({"synthesizer": RuntimeError("provider down")})
    state = PipelineState(
        question=QUESTION,
        plan=Plan.fallback(QUESTION),
        specialist_answers=[guichet_answer, legal_answer],
    )

    result = await synthesizer_node(state, build_run_config(completion=completion))

    meta = result["run_metadata"]["synthesizer"]
    assert meta["strategy"] == "concatenated"
    assert meta["num_answers"] == 2
    assert meta["confidence"] == "medium"
    assert result["synthesized"].answer.startswith(guichet_answer.answer)


@pytest.mark.asyncio
async def test_node_passthrough_strategy(completion, legal_answer):
    state = PipelineState(question=QUESTION, specialist_answers=[legal_answer])

    result = await synthesizer_node(state, build_run_config(completion=completion))

    assert result["run_metadata"]["synthesizer"]["strategy"] == "passthrough"
    assert result["synthesized"].answer == legal_answer.answer
