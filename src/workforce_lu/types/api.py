"""API request/response schemas for FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from workforce_lu.types.output import ChatResponse
from workforce_lu.types.plan import Language, Turn


class ChatRequest(BaseModel):
    """Request schema for POST /api/chat endpoint."""

    question: str = Field(..., min_length=1, max_length=5000, description="The user's question")
    language: Language | None = Field(
        default=None, description="Conversation language, if the caller knows it"
    )
    history: list[Turn] = Field(
        default_factory=list, description="Prior conversation turns, oldest first"
    )


class ChatApiResponse(BaseModel):
    """Response schema for POST /api/chat endpoint."""

    response: ChatResponse = Field(..., description="Answer in the strict response format")
    disclaimer: str = Field(default="", description="Disclaimer matching the question intent")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata (latency, per-stage details)",
    )


class BatchChatRequest(BaseModel):
    """Request schema for POST /api/chat/batch endpoint."""

    questions: list[str] = Field(..., min_length=1, max_length=20)
    language: Language | None = None


class HealthResponse(BaseModel):
    """Response schema for GET /health endpoint."""

    status: str = Field(default="ok")
    llm: dict[str, Any] = Field(default_factory=dict, description="Provider health details")
    version: str = Field(default="1.0.0")


class CacheStatsResponse(BaseModel):
    """Response schema for GET /api/cache/stats endpoint."""

    backend: str
    size: int
    entries: list[str] = Field(default_factory=list)
