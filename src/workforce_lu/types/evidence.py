"""Evidence-related Pydantic schemas."""

import re
import uuid
from datetime import date
from enum import StrEnum
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

EVIDENCE_ID_PATTERN = re.compile(r"^ev_[0-9a-f]+$")


def new_evidence_id() -> str:
    """Generate a fresh, unique evidence ID ('ev_' + 12 hex chars)."""
    return f"ev_{uuid.uuid4().hex[:12]}"


class SourceTag(StrEnum):
    """Knowledge domain a piece of evidence was retrieved from."""

    GUICHET = "guichet"
    LEGAL = "legal"
    MIXED = "mixed"


class RetrievalResult(BaseModel):
    """Raw result returned by a source fetch and stored in the evidence cache.

    Carries no ID and no date: those are assigned each time the result is
    materialized into Evidence.
    """

    url: str = Field(..., min_length=1, description="Source URL")
    title: str = Field(..., description="Page or document title")
    section: str = Field(default="General", description="Section label within the source")
    snippet: str = Field(..., description="Relevant text snippet")


class Evidence(BaseModel):
    """Atomic retrieved fact with provenance metadata."""

    model_config = ConfigDict(frozen=True)

    evidence_id: str = Field(
        default_factory=new_evidence_id, description="Evidence ID in format 'ev_<hex>'"
    )
    url: str = Field(..., min_length=1, description="Source URL")
    title: str = Field(..., description="Source title")
    section: str = Field(default="General", description="Section label within the source")
    snippet: str = Field(..., description="Relevant snippet from the source")
    source: SourceTag = Field(..., description="Domain the evidence was retrieved for")
    retrieved_at: date = Field(
        default_factory=date.today, description="Retrieval date (date granularity)"
    )

    @field_validator("evidence_id")
    @classmethod
    def validate_evidence_id(cls, v: str) -> str:
        """Validate evidence ID format: must be 'ev_' followed by hex digits."""
        if not EVIDENCE_ID_PATTERN.match(v):
            raise ValueError(f"Evidence ID must match pattern 'ev_<hex>', got: {v}")
        return v

    @property
    def display_domain(self) -> str:
        """Hostname of the source URL (e.g. 'guichet.public.lu')."""
        return (urlparse(self.url).hostname or "").lower()

    @classmethod
    def from_result(
        cls,
        result: RetrievalResult,
        source: SourceTag,
        retrieved_at: date | None = None,
    ) -> "Evidence":
        """Materialize a cached or fetched result into a fresh Evidence item."""
        return cls(
            url=result.url,
            title=result.title,
            section=result.section,
            snippet=result.snippet,
            source=source,
            retrieved_at=retrieved_at or date.today(),
        )


class Citation(BaseModel):
    """Deduplicated view over evidence sharing the same (url, section) pair."""

    title: str = Field(default="", description="Title of the cited source (for UI display)")
    url: str = Field(..., description="URL of the cited source")
    section: str = Field(default="General", description="Section of the cited source")
    retrieved_at: date = Field(..., description="Retrieval date of the first evidence item")
    evidence_ids: list[str] = Field(
        ..., min_length=1, description="IDs of every evidence item grouped in this citation"
    )

    @field_validator("evidence_ids")
    @classmethod
    def validate_evidence_ids(cls, v: list[str]) -> list[str]:
        """Validate all evidence IDs in the list."""
        for evidence_id in v:
            if not EVIDENCE_ID_PATTERN.match(evidence_id):
                raise ValueError(f"Evidence ID must match pattern 'ev_<hex>', got: {evidence_id}")
        return v
