"""Pydantic state definitions for the LangGraph answer pipeline."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from workforce_lu.types.evidence import Evidence
from workforce_lu.types.output import ChatResponse
from workforce_lu.types.plan import ALL_AGENTS, AgentName, Plan, Turn
from workforce_lu.types.specialist import SpecialistAnswer, SynthesizedAnswer


class PipelineState(BaseModel):
    """Shared state for the answer pipeline.

    Each node reads what earlier stages produced and returns a partial update;
    `run_metadata` accumulates one entry per stage.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # ------------------------
    # User input
    # ------------------------
    question: str = Field(default="", description="Incoming user question")
    history: list[Turn] = Field(default_factory=list, description="Prior conversation turns")

    # ------------------------
    # Planner
    # ------------------------
    plan: Plan | None = Field(default=None, description="Routing decision from the planner")

    # ------------------------
    # Retrieval
    # ------------------------
    evidence: dict[AgentName, list[Evidence]] = Field(
        default_factory=dict,
        description="Evidence retrieved per planned specialist",
    )

    # ------------------------
    # Specialists and synthesis
    # ------------------------
    specialist_answers: list[SpecialistAnswer] = Field(
        default_factory=list,
        description="Answers in fixed specialist order (guichet, then legal)",
    )
    synthesized: SynthesizedAnswer | None = Field(
        default=None, description="Single merged answer"
    )

    # ------------------------
    # Output
    # ------------------------
    response: ChatResponse | None = Field(default=None, description="Assembled final response")

    # ------------------------
    # Metadata
    # ------------------------
    run_metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Per-stage metadata (latency, fallbacks, strategy, domain check, etc.)",
    )

    def evidence_for(self, agent: AgentName) -> list[Evidence]:
        return self.evidence.get(agent, [])

    @property
    def all_evidence(self) -> list[Evidence]:
        """Every retrieved item, guichet evidence first."""
        return [e for agent in ALL_AGENTS for e in self.evidence_for(agent)]
