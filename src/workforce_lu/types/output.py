"""Final response Pydantic schema."""

from pydantic import BaseModel, Field

from workforce_lu.types.evidence import Citation, Evidence
from workforce_lu.types.plan import Language
from workforce_lu.types.specialist import ConfidenceLevel

# Top-level fields every response handed to the caller must carry
REQUIRED_RESPONSE_FIELDS: tuple[str, ...] = (
    "answer",
    "steps",
    "citations",
    "confidence",
    "limitations",
    "suggested_searches",
    "evidence",
)


class ChatResponse(BaseModel):
    """Externally visible result of answering one question."""

    language: Language = Field(..., description="Answer language")
    answer: str = Field(..., description="The final answer to the user question")
    steps: list[str] = Field(default_factory=list, description="Ordered procedural steps")
    citations: list[Citation] = Field(
        default_factory=list, description="Citations grouped by source location"
    )
    confidence: ConfidenceLevel = Field(..., description="Overall ordinal confidence")
    limitations: list[str] = Field(
        default_factory=list, description="Caveats, disclaimers and conflict warnings"
    )
    suggested_searches: list[str] = Field(
        default_factory=list, description="Suggested follow-up searches"
    )
    evidence: list[Evidence] = Field(
        default_factory=list, description="Every evidence item used to build the answer"
    )

    def dangling_citation_ids(self) -> set[str]:
        """Citation evidence IDs that do not exist in `evidence` (should be empty)."""
        known = {e.evidence_id for e in self.evidence}
        cited = {eid for c in self.citations for eid in c.evidence_ids}
        return cited - known
