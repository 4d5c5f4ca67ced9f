"""FastAPI server for Workforce LU.

Provides REST API endpoints for the chat frontend to interact with the
LangGraph answer pipeline.

Endpoints:
    POST /api/chat - Answer one question
    POST /api/chat/batch - Answer several independent questions
    GET /health - Health check (includes LLM provider status)
    GET /api/cache/stats - Evidence cache contents
    DELETE /api/cache - Clear the evidence cache
"""

import time

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workforce_lu.config import settings
from workforce_lu.consts import DISCLAIMERS
from workforce_lu.graph.runner import process_questions, run_pipeline
from workforce_lu.llm.completion import CompletionService
from workforce_lu.llm.providers import check_provider_health
from workforce_lu.retrieval.adapter import RetrievalAdapter, get_default_adapter
from workforce_lu.types.api import (
    BatchChatRequest,
    CacheStatsResponse,
    ChatApiResponse,
    ChatRequest,
    HealthResponse,
)
from workforce_lu.types.output import ChatResponse
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# Dependencies (overridden in tests)
# =============================================================================


def get_completion() -> CompletionService | None:
    """Completion service for a request. None means the process-wide default."""
    return None


def get_retrieval() -> RetrievalAdapter:
    return get_default_adapter()


# =============================================================================
# FastAPI App
# =============================================================================
app = FastAPI(
    title="Workforce LU API",
    description="Answers Luxembourg HR procedure and employment-law questions.",
    version=API_VERSION,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Endpoints
# =============================================================================


@app.post("/api/chat", response_model=ChatApiResponse)
async def chat(
    request: ChatRequest,
    completion: CompletionService | None = Depends(get_completion),
    retrieval: RetrievalAdapter = Depends(get_retrieval),
) -> ChatApiResponse:
    """Main chat endpoint.

    Always answers with HTTP 200: pipeline failures come back as the
    low-confidence error response, flagged with metadata["failed"].
    """
    start_time = time.time()

    result = await run_pipeline(
        request.question,
        request.language,
        request.history,
        completion=completion,
        retrieval=retrieval,
    )

    latency = time.time() - start_time
    intent = result.intent or "mixed"

    return ChatApiResponse(
        response=result.response,
        disclaimer=DISCLAIMERS.get(intent, DISCLAIMERS["mixed"]),
        metadata={
            "latency_ms": round(latency * 1000, 2),
            "intent": intent,
            "failed": result.failed,
            **result.metadata,
        },
    )


@app.post("/api/chat/batch", response_model=list[ChatResponse])
async def chat_batch(
    request: BatchChatRequest,
    completion: CompletionService | None = Depends(get_completion),
    retrieval: RetrievalAdapter = Depends(get_retrieval),
) -> list[ChatResponse]:
    """Answer independent questions concurrently; responses keep input order."""
    logger.info("Batch request", extra={"num_questions": len(request.questions)})
    return await process_questions(
        request.questions,
        request.language,
        completion=completion,
        retrieval=retrieval,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    llm_status = check_provider_health(settings)
    return HealthResponse(
        status="ok" if llm_status["healthy"] else "degraded",
        llm=llm_status,
        version=API_VERSION,
    )


@app.get("/api/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(
    retrieval: RetrievalAdapter = Depends(get_retrieval),
) -> CacheStatsResponse:
    return CacheStatsResponse.model_validate(retrieval.cache_stats())


@app.delete("/api/cache")
async def clear_cache(retrieval: RetrievalAdapter = Depends(get_retrieval)) -> dict[str, int]:
    cleared = retrieval.clear_cache()
    logger.info("Evidence cache cleared via API", extra={"entries_deleted": cleared})
    return {"cleared": cleared}


def run_server() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    logger.info(
        "Starting API server", extra={"host": settings.api_host, "port": settings.api_port}
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, reload=False)


if __name__ == "__main__":
    run_server()
