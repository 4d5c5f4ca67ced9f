"""Pipeline execution types for runner and streaming."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from workforce_lu.types.output import ChatResponse

# =============================================================================
# Pipeline Result
# =============================================================================


class PipelineResult(BaseModel):
    """Structured result from one pipeline run."""

    model_config = {"arbitrary_types_allowed": True}

    response: ChatResponse

    # Per-stage metadata (planner, retriever, specialists, synthesizer, assembler)
    metadata: dict[str, Any] = Field(default_factory=dict)

    # True when the error response was returned instead of a pipeline answer
    failed: bool = False

    # Full state (for debugging) - excluded from serialization
    internal_state: Any = Field(default=None, exclude=True, repr=False)

    @property
    def intent(self) -> str | None:
        """Intent the planner classified the question as, if planning ran."""
        return self.metadata.get("planner", {}).get("intent")


# =============================================================================
# Streaming Event Types
# =============================================================================


class StageStartEvent(BaseModel):
    """Event emitted when a pipeline stage starts."""

    model_config = {"frozen": True}

    stage: str
    timestamp: float


class StageEndEvent(BaseModel):
    """Event emitted when a pipeline stage completes."""

    model_config = {"frozen": True}

    stage: str
    timestamp: float
    duration_ms: float
    output_keys: list[str] = Field(default_factory=list)


class PipelineCompleteEvent(BaseModel):
    """Event emitted when the pipeline completes."""

    model_config = {"frozen": True}

    result: PipelineResult
    total_duration_ms: float


StreamEvent = StageStartEvent | StageEndEvent | PipelineCompleteEvent
