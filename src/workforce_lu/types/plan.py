"""Planner Pydantic schemas."""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from workforce_lu.consts import PLANNER_FALLBACK_REASONING


class Language(StrEnum):
    """Supported answer languages."""

    EN = "en"
    FR = "fr"
    DE = "de"


class Intent(StrEnum):
    """Question intent classification."""

    PROCEDURAL = "procedural"
    LEGAL = "legal"
    MIXED = "mixed"


class AgentName(StrEnum):
    """Domain specialists the planner can route to.

    Declaration order is the fixed output order of specialist answers.
    """

    GUICHET = "guichet"
    LEGAL = "legal"


ALL_AGENTS: tuple[AgentName, ...] = tuple(AgentName)


class Turn(BaseModel):
    """One prior conversation turn, used as planner context."""

    role: Literal["user", "assistant", "system"] = Field(..., description="Speaker role")
    content: str = Field(..., description="Message text")


def _dedupe(values: list) -> list:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class PlanDraft(BaseModel):
    """Strict parse target for the planner's JSON completion.

    Enum fields must hold known values; missing list fields are allowed and
    get their defaults when the draft is turned into a Plan.
    """

    language: Language = Language.EN
    intent: Intent = Intent.MIXED
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""
    retrieval_queries: list[str] | None = None
    agents_to_call: list[AgentName] | None = None

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data):
        # JSON null means "not provided"
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("language", "intent", mode="before")
    @classmethod
    def normalize_enum_text(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("agents_to_call", mode="before")
    @classmethod
    def normalize_agents(cls, v):
        if isinstance(v, list):
            return [a.strip().lower() if isinstance(a, str) else a for a in v]
        return v

    def to_plan(self, question: str) -> "Plan":
        """Apply defaults for omitted fields and build the final Plan."""
        queries = [q.strip() for q in (self.retrieval_queries or []) if q and q.strip()]
        agents = _dedupe(list(self.agents_to_call or []))
        return Plan(
            language=self.language,
            intent=self.intent,
            confidence=self.confidence,
            reasoning=self.reasoning,
            retrieval_queries=queries or [question],
            agents_to_call=agents or list(ALL_AGENTS),
        )


class Plan(BaseModel):
    """Routing decision produced once per incoming question."""

    language: Language = Field(..., description="Detected question language")
    intent: Intent = Field(..., description="Intent classification")
    confidence: float = Field(
        ..., ge=0.0, le=1.0, description="Confidence in the classification (0.0-1.0)"
    )
    reasoning: str = Field(default="", description="Human-readable rationale")
    retrieval_queries: list[str] = Field(
        ..., min_length=1, description="Ordered retrieval query strings"
    )
    agents_to_call: list[AgentName] = Field(
        ..., min_length=1, description="Specialists to invoke (non-empty)"
    )

    @classmethod
    def fallback(cls, question: str) -> "Plan":
        """Deterministic plan used when planning fails for any reason."""
        return cls(
            language=Language.EN,
            intent=Intent.MIXED,
            confidence=0.5,
            reasoning=PLANNER_FALLBACK_REASONING,
            retrieval_queries=[question],
            agents_to_call=list(ALL_AGENTS),
        )

    def calls(self, agent: AgentName) -> bool:
        return agent in self.agents_to_call
