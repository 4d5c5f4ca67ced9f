"""Specialist and synthesis Pydantic schemas."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from workforce_lu.types.evidence import Evidence
from workforce_lu.types.plan import AgentName


class ConfidenceLevel(StrEnum):
    """
    Ordinal answer confidence.

    Values:
        HIGH    – Evidence directly and consistently answers the question.
        MEDIUM  – Evidence answers the question with gaps or caveats.
        LOW     – Evidence is missing, off-topic, or processing failed.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_str(cls, value: str) -> "ConfidenceLevel":
        """
        Lenient string-to-enum converter. Accepts 'High', ' LOW ', 'med', etc.
        Raises ValueError on unknown values.
        """
        normalized = value.strip().lower()

        mapping = {
            "high": cls.HIGH,
            "medium": cls.MEDIUM,
            "med": cls.MEDIUM,
            "moderate": cls.MEDIUM,
            "low": cls.LOW,
        }

        try:
            return mapping[normalized]
        except KeyError:
            raise ValueError(f"Unknown ConfidenceLevel value: {value!r}") from None

    @property
    def rank(self) -> int:
        """Ordinal position: low=0, medium=1, high=2."""
        return {ConfidenceLevel.LOW: 0, ConfidenceLevel.MEDIUM: 1, ConfidenceLevel.HIGH: 2}[self]


class _CompletionDraft(BaseModel):
    """Shared parsing rules for JSON drafts returned by the completion service."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("confidence", mode="before", check_fields=False)
    @classmethod
    def parse_confidence(cls, v):
        if isinstance(v, str):
            return ConfidenceLevel.from_str(v)
        return v


class SpecialistDraft(_CompletionDraft):
    """Strict parse target for a specialist's JSON completion."""

    answer: str = ""
    steps: list[str] = Field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    limitations: list[str] | None = None
    suggested_searches: list[str] = Field(default_factory=list)


class SpecialistAnswer(BaseModel):
    """Structured answer produced by one domain specialist."""

    agent: AgentName = Field(..., description="Specialist that produced this answer")
    answer: str = Field(..., description="Answer text")
    steps: list[str] = Field(default_factory=list, description="Ordered step strings")
    evidence: list[Evidence] = Field(
        default_factory=list, description="Evidence the specialist was given, unchanged"
    )
    confidence: ConfidenceLevel = Field(..., description="Ordinal confidence")
    limitations: list[str] = Field(default_factory=list, description="Caveats and disclaimers")
    suggested_searches: list[str] = Field(
        default_factory=list, description="Suggested follow-up questions"
    )


class SynthesisDraft(_CompletionDraft):
    """Parse target for the merge completion. Omitted fields fall back per field."""

    answer: str | None = None
    steps: list[str] | None = None
    confidence: ConfidenceLevel | None = None
    limitations: list[str] | None = None
    suggested_searches: list[str] | None = None


class SynthesizedAnswer(BaseModel):
    """Single answer merged from one or more specialist answers."""

    answer: str
    steps: list[str] = Field(default_factory=list)
    confidence: ConfidenceLevel
    limitations: list[str] = Field(default_factory=list)
    suggested_searches: list[str] = Field(default_factory=list)
