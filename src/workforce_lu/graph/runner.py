"""Pipeline entry points: single, batch, sync and streaming execution.

`process_question` is what the application calls. It never raises: anything
escaping the graph is logged and turned into the standard error response.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any

from workforce_lu.graph.context import build_run_config
from workforce_lu.graph.graph import compile_graph, get_default_graph
from workforce_lu.graph.nodes.assembler import build_error_response
from workforce_lu.graph.state import PipelineState
from workforce_lu.llm.completion import CompletionService
from workforce_lu.retrieval.adapter import RetrievalAdapter
from workforce_lu.types.graph import (
    PipelineCompleteEvent,
    PipelineResult,
    StageEndEvent,
    StageStartEvent,
    StreamEvent,
)
from workforce_lu.types.output import ChatResponse
from workforce_lu.types.plan import Language, Turn
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

HistoryInput = Sequence[Turn | Mapping[str, str]] | None


# =============================================================================
# Helper Functions
# =============================================================================


def _initial_state(question: str, history: HistoryInput) -> PipelineState:
    return PipelineState(
        question=question,
        history=[h if isinstance(h, Turn) else Turn.model_validate(h) for h in history or []],
    )


def _build_result(
    state: PipelineState | Mapping[str, Any],
    total_time: float,
    include_state: bool,
) -> PipelineResult:
    """Build PipelineResult from the final state (graph.ainvoke returns a dict)."""
    if not isinstance(state, PipelineState):
        state = PipelineState.model_validate(dict(state))

    if state.response is None:
        raise RuntimeError("Pipeline finished without a response")

    return PipelineResult(
        response=state.response,
        metadata={**state.run_metadata, "total_time_seconds": total_time},
        internal_state=state if include_state else None,
    )


def _error_result(
    question: str,
    language: Language | str | None,
    error: Exception,
    total_time: float,
) -> PipelineResult:
    logger.error(
        "Pipeline failed, returning error response",
        extra={"stage": "pipeline", "question": question[:80], "error": repr(error)},
    )
    return PipelineResult(
        response=build_error_response(language),
        metadata={"error": str(error), "total_time_seconds": total_time},
        failed=True,
    )


# =============================================================================
# Async Execution
# =============================================================================


async def run_pipeline(
    question: str,
    language: Language | str | None = None,
    history: HistoryInput = None,
    *,
    completion: CompletionService | None = None,
    retrieval: RetrievalAdapter | None = None,
    checkpointer: bool = False,
    thread_id: str | None = None,
    include_state: bool = False,
) -> PipelineResult:
    """Run the answer pipeline and return the response with run metadata.

    Args:
        question: User question.
        language: Caller-supplied language. Only used for the error response;
            the answer language comes from the planner.
        history: Prior conversation turns, oldest first.
        completion: Completion service for this run (default: process-wide).
        retrieval: Retrieval adapter for this run (default: process-wide).
        checkpointer: Enable state persistence.
        thread_id: Session ID for checkpointing.
        include_state: Include full PipelineState in result (for debugging).

    Returns:
        PipelineResult. On failure, `failed` is True and `response` is the
        error response.

    Example:
        result = await run_pipeline("How do I register as a job-seeker?")
        print(result.response.answer)
        print(result.metadata["synthesizer"]["strategy"])
    """
    start_time = time.perf_counter()

    try:
        graph = compile_graph(checkpointer=True) if checkpointer else get_default_graph()
        config = build_run_config(completion, retrieval, thread_id if checkpointer else None)
        final_state = await graph.ainvoke(_initial_state(question, history), config)
        result = _build_result(final_state, time.perf_counter() - start_time, include_state)
    except Exception as e:
        return _error_result(question, language, e, time.perf_counter() - start_time)

    logger.info(
        "Question answered",
        extra={
            "stage": "pipeline",
            "citations": len(result.response.citations),
            "confidence": result.response.confidence.value,
            "total_time_seconds": round(result.metadata["total_time_seconds"], 3),
        },
    )
    return result


async def process_question(
    question: str,
    language: Language | str | None = None,
    history: HistoryInput = None,
    *,
    completion: CompletionService | None = None,
    retrieval: RetrievalAdapter | None = None,
) -> ChatResponse:
    """Answer one question. Never raises.

    Returns:
        The final ChatResponse, or the error response if the pipeline failed.
    """
    result = await run_pipeline(
        question, language, history, completion=completion, retrieval=retrieval
    )
    return result.response


async def process_questions(
    questions: Sequence[str],
    language: Language | str | None = None,
    *,
    completion: CompletionService | None = None,
    retrieval: RetrievalAdapter | None = None,
) -> list[ChatResponse]:
    """Answer several independent questions concurrently, in input order."""
    return list(
        await asyncio.gather(
            *(
                process_question(q, language, completion=completion, retrieval=retrieval)
                for q in questions
            )
        )
    )


# =============================================================================
# Sync Execution
# =============================================================================


def process_question_sync(
    question: str,
    language: Language | str | None = None,
    history: HistoryInput = None,
) -> ChatResponse:
    """Blocking wrapper around `process_question` for scripts and the CLI."""
    return asyncio.run(process_question(question, language, history))


# =============================================================================
# Streaming Execution
# =============================================================================


async def astream_question(
    question: str,
    language: Language | str | None = None,
    history: HistoryInput = None,
    *,
    completion: CompletionService | None = None,
    retrieval: RetrievalAdapter | None = None,
) -> AsyncIterator[StreamEvent]:
    """Run the pipeline with per-stage progress events.

    Yields a StageStartEvent/StageEndEvent pair per stage as it completes, then
    one PipelineCompleteEvent. A failure mid-stream still ends with a
    PipelineCompleteEvent carrying the error response.

    Example:
        async for event in astream_question("What notice period applies?"):
            if isinstance(event, StageEndEvent):
                print(f"Completed {event.stage} ({event.duration_ms:.0f}ms)")
    """
    start_time = time.perf_counter()
    graph = get_default_graph()
    config = build_run_config(completion, retrieval)

    last_time = start_time

    try:
        initial_state = _initial_state(question, history)
        accumulated_state: dict[str, Any] = initial_state.model_dump()

        async for event in graph.astream(initial_state, config, stream_mode="updates"):
            for stage, stage_output in event.items():
                current_time = time.perf_counter()

                yield StageStartEvent(stage=stage, timestamp=last_time)

                output_keys = list(stage_output.keys()) if isinstance(stage_output, dict) else []
                yield StageEndEvent(
                    stage=stage,
                    timestamp=current_time,
                    duration_ms=(current_time - last_time) * 1000,
                    output_keys=output_keys,
                )
                last_time = current_time

                if isinstance(stage_output, dict):
                    accumulated_state.update(stage_output)

        result = _build_result(accumulated_state, time.perf_counter() - start_time, False)
    except Exception as e:
        result = _error_result(question, language, e, time.perf_counter() - start_time)

    yield PipelineCompleteEvent(
        result=result,
        total_duration_ms=(time.perf_counter() - start_time) * 1000,
    )
