"""Type definitions for workforce-lu.

This module re-exports all types from submodules for convenient imports.
"""

from workforce_lu.types.api import (
    BatchChatRequest,
    CacheStatsResponse,
    ChatApiResponse,
    ChatRequest,
    HealthResponse,
)
from workforce_lu.types.evidence import Citation, Evidence, RetrievalResult, SourceTag
from workforce_lu.types.graph import (
    PipelineCompleteEvent,
    PipelineResult,
    StageEndEvent,
    StageStartEvent,
    StreamEvent,
)
from workforce_lu.types.output import REQUIRED_RESPONSE_FIELDS, ChatResponse
from workforce_lu.types.plan import ALL_AGENTS, AgentName, Intent, Language, Plan, PlanDraft, Turn
from workforce_lu.types.specialist import (
    ConfidenceLevel,
    SpecialistAnswer,
    SpecialistDraft,
    SynthesisDraft,
    SynthesizedAnswer,
)

__all__ = [
    # Evidence
    "SourceTag",
    "RetrievalResult",
    "Evidence",
    "Citation",
    # Plan
    "Language",
    "Intent",
    "AgentName",
    "ALL_AGENTS",
    "Turn",
    "Plan",
    "PlanDraft",
    # Specialists
    "ConfidenceLevel",
    "SpecialistDraft",
    "SpecialistAnswer",
    "SynthesisDraft",
    "SynthesizedAnswer",
    # Output
    "ChatResponse",
    "REQUIRED_RESPONSE_FIELDS",
    # Pipeline
    "PipelineResult",
    "StageStartEvent",
    "StageEndEvent",
    "PipelineCompleteEvent",
    "StreamEvent",
    # API
    "ChatRequest",
    "ChatApiResponse",
    "BatchChatRequest",
    "HealthResponse",
    "CacheStatsResponse",
]
