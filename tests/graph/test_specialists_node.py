"""Tests for the guichet and legal specialist nodes.

These tests verify that:
1. A valid completion becomes a SpecialistAnswer carrying its evidence unchanged
2. Guichet defaults its limitations only when the field is omitted
3. Legal answers always carry a "not legal advice" disclaimer
4. Failures yield the fixed low-confidence fallback answers
5. The node skips specialists without evidence and orders answers guichet first
"""

import asyncio

import pytest

from tests.mocks.fakes import FakeCompletionService
from workforce_lu.consts import GUICHET_DEFAULT_LIMITATIONS, LEGAL_DISCLAIMER
from workforce_lu.graph.context import build_run_config
from workforce_lu.graph.nodes.specialists import (
    ensure_legal_disclaimer,
    respond,
    respond_guichet,
    respond_legal,
    specialists_node,
)
from workforce_lu.graph.state import PipelineState
from workforce_lu.types.evidence import Evidence, SourceTag
from workforce_lu.types.plan import AgentName, Plan
from workforce_lu.types.specialist import ConfidenceLevel

QUESTION = "How do I notify my employer that I am sick?"

GUICHET_REPLY = {
    "answer": "Inform your employer on the first day and send a certificate by day three.",
    "steps": ["Call your employer", "Send the medical certificate"],
    "confidence": "high",
    "suggested_searches": ["sick leave during probation"],
}

LEGAL_REPLY = {
    "answer": "Article L.121-6 protects employees on sick leave from dismissal.",
    "steps": ["Notify the employer", "Provide a certificate"],
    "confidence": "medium",
    "limitations": ["Collective agreements may add rules."],
    "suggested_searches": [],
}


@pytest.fixture
def guichet_evidence() -> list[Evidence]:
    return [
        Evidence(
            url="https://guichet.public.lu/en/citoyens/sante-social/maladie",
            title="Incapacity for work",
            section="Notifying the employer",
            snippet="The employee must inform the employer on the first day of absence.",
            source=SourceTag.GUICHET,
        )
    ]


@pytest.fixture
def legal_evidence() -> list[Evidence]:
    return [
        Evidence(
            url="https://legilux.public.lu/eli/etat/leg/code/travail/article/L121-6",
            title="Labour Code - Article L.121-6",
            section="Incapacity for work",
            snippet="The employer may not terminate the contract during the protection period.",
            source=SourceTag.LEGAL,
        )
    ]


# =============================================================================
# Disclaimer Helper
# =============================================================================


class TestEnsureLegalDisclaimer:
    def test_prepends_when_missing(self):
        assert ensure_legal_disclaimer(["Other caveat"]) == [LEGAL_DISCLAIMER, "Other caveat"]

    def test_keeps_existing_disclaimer(self):
        limitations = ["This is NOT LEGAL ADVICE."]
        assert ensure_legal_disclaimer(limitations) == limitations

    def test_empty_list(self):
        assert ensure_legal_disclaimer([]) == [LEGAL_DISCLAIMER]


# =============================================================================
# Guichet Specialist
# =============================================================================


@pytest.mark.asyncio
async def test_guichet_answer_from_completion(guichet_evidence):
    completion = FakeCompletionService({"guichet": GUICHET_REPLY})

    answer = await respond_guichet(QUESTION, "en", guichet_evidence, completion)

    assert answer.agent == AgentName.GUICHET
    assert answer.answer == GUICHET_REPLY["answer"]
    assert answer.steps == GUICHET_REPLY["steps"]
    assert answer.confidence == ConfidenceLevel.HIGH
    assert answer.evidence == guichet_evidence
    assert answer.limitations == list(GUICHET_DEFAULT_LIMITATIONS)


@pytest.mark.asyncio
async def test_guichet_keeps_explicit_empty_limitations(guichet_evidence):
    completion = FakeCompletionService({"guichet": {**GUICHET_REPLY, "limitations": []}})

    answer = await respond_guichet(QUESTION, "en", guichet_evidence, completion)

    assert answer.limitations == []


@pytest.mark.asyncio
async def test_guichet_prompt_includes_evidence_and_language(guichet_evidence):
    completion = FakeCompletionService({"guichet": GUICHET_REPLY})

    await respond_guichet(QUESTION, "fr", guichet_evidence, completion)

    (call,) = completion.calls_for("guichet")
    assert "Answer in French." in call.system_prompt
    assert "- Incapacity for work (Notifying the employer):" in call.system_prompt
    assert call.messages[0].content == QUESTION


@pytest.mark.asyncio
async def test_guichet_fallback_on_bad_json(guichet_evidence):
    completion = FakeCompletionService({"guichet": "Here are the steps: ..."})

    answer = await respond_guichet(QUESTION, "en", guichet_evidence, completion)

    assert answer.answer == "Unable to process your question with available procedural information."
    assert answer.confidence == ConfidenceLevel.LOW
    assert answer.steps == []
    assert answer.limitations == ["Error processing Guichet sources."]
    assert answer.evidence == guichet_evidence


# =============================================================================
# Legal Specialist
# =============================================================================


@pytest.mark.asyncio
async def test_legal_answer_gets_disclaimer(legal_evidence):
    completion = FakeCompletionService({"legal": LEGAL_REPLY})

    answer = await respond_legal(QUESTION, "en", legal_evidence, completion)

    assert answer.agent == AgentName.LEGAL
    assert answer.limitations == [LEGAL_DISCLAIMER, "Collective agreements may add rules."]


@pytest.mark.asyncio
async def test_legal_disclaimer_not_duplicated(legal_evidence):
    reply = {**LEGAL_REPLY, "limitations": ["This is not legal advice; see a lawyer."]}
    completion = FakeCompletionService({"legal": reply})

    answer = await respond_legal(QUESTION, "en", legal_evidence, completion)

    assert answer.limitations == ["This is not legal advice; see a lawyer."]


@pytest.mark.asyncio
async def test_legal_omitted_limitations_still_has_disclaimer(legal_evidence):
    reply = {k: v for k, v in LEGAL_REPLY.items() if k != "limitations"}
    completion = FakeCompletionService({"legal": reply})

    answer = await respond_legal(QUESTION, "en", legal_evidence, completion)

    assert answer.limitations == [LEGAL_DISCLAIMER]


@pytest.mark.asyncio
async def test_legal_fallback_on_error(legal_evidence):
    completion = FakeCompletionService({"legal": TimeoutError()})

    answer = await respond_legal(QUESTION, "en", legal_evidence, completion)

    assert answer.answer == "Unable to process your question with available legal information."
    assert answer.confidence == ConfidenceLevel.LOW
    assert answer.limitations == [
        "This is not legal advice. Consult a qualified lawyer.",
        "Error processing legal sources.",
    ]


@pytest.mark.asyncio
async def test_respond_dispatches_by_agent(legal_evidence):
    completion = FakeCompletionService({"legal": LEGAL_REPLY})

    answer = await respond("legal", QUESTION, "en", legal_evidence, completion)

    assert answer.agent == AgentName.LEGAL
    assert completion.calls_for("legal")


# =============================================================================
# specialists_node
# =============================================================================


def make_state(agents, evidence) -> PipelineState:
    return PipelineState(
        question=QUESTION,
        plan=Plan(
            language="en",
            intent="mixed",
            confidence=0.7,
            retrieval_queries=[QUESTION],
            agents_to_call=agents,
        ),
        evidence=evidence,
    )


@pytest.mark.asyncio
async def test_node_orders_answers_guichet_first(guichet_evidence, legal_evidence):
    async def slow_guichet(call):
        await asyncio.sleep(0.01)
        return GUICHET_REPLY

    # Legal completes first; output order must not change
    completion = FakeCompletionService({"legal": LEGAL_REPLY, "guichet": slow_guichet})
    state = make_state(
        ["legal", "guichet"],
        {AgentName.GUICHET: guichet_evidence, AgentName.LEGAL: legal_evidence},
    )

    result = await specialists_node(state, build_run_config(completion=completion))

    assert [a.agent for a in result["specialist_answers"]] == [AgentName.GUICHET, AgentName.LEGAL]
    meta = result["run_metadata"]["specialists"]
    assert meta["called"] == ["guichet", "legal"]
    assert meta["confidence"] == {"guichet": "high", "legal": "medium"}
    assert meta["fallbacks"] == {}


@pytest.mark.asyncio
async def test_node_skips_agent_without_evidence(guichet_evidence):
    completion = FakeCompletionService({"guichet": GUICHET_REPLY, "legal": LEGAL_REPLY})
    state = make_state(
        ["guichet", "legal"], {AgentName.GUICHET: guichet_evidence, AgentName.LEGAL: []}
    )

    result = await specialists_node(state, build_run_config(completion=completion))

    assert [a.agent for a in result["specialist_answers"]] == [AgentName.GUICHET]
    assert completion.calls_for("legal") == []
    assert result["run_metadata"]["specialists"]["skipped_no_evidence"] == ["legal"]


@pytest.mark.asyncio
async def test_node_skips_unplanned_agent(guichet_evidence, legal_evidence):
    completion = FakeCompletionService({"guichet": GUICHET_REPLY, "legal": LEGAL_REPLY})
    state = make_state(
        ["legal"], {AgentName.GUICHET: guichet_evidence, AgentName.LEGAL: legal_evidence}
    )

    result = await specialists_node(state, build_run_config(completion=completion))

    assert [a.agent for a in result["specialist_answers"]] == [AgentName.LEGAL]
    assert completion.calls_for("guichet") == []


@pytest.mark.asyncio
async def test_node_records_fallbacks(guichet_evidence, legal_evidence):
    completion = FakeCompletionService({"guichet": GUICHET_REPLY})
    state = make_state(
        ["guichet", "legal"],
        {AgentName.GUICHET: guichet_evidence, AgentName.LEGAL: legal_evidence},
    )

    result = await specialists_node(state, build_run_config(completion=completion))

    meta = result["run_metadata"]["specialists"]
    assert list(meta["fallbacks"]) == ["legal"]
    assert meta["confidence"]["legal"] == "low"


@pytest.mark.asyncio
async def test_node_with_no_evidence_produces_no_answers():
    completion = FakeCompletionService()
    state = make_state(["guichet", "legal"], {})

    result = await specialists_node(state, build_run_config(completion=completion))

    assert result["specialist_answers"] == []
    assert completion.calls == []
