"""Retriever node: fetches evidence for every specialist the plan calls."""

import asyncio
import time
from typing import Any

from langchain_core.runnables import RunnableConfig

from workforce_lu.graph.context import retrieval_from
from workforce_lu.graph.state import PipelineState
from workforce_lu.types.evidence import SourceTag
from workforce_lu.types.plan import ALL_AGENTS, AgentName, Plan
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

# Domain each specialist retrieves from
AGENT_SOURCE: dict[AgentName, SourceTag] = {
    AgentName.GUICHET: SourceTag.GUICHET,
    AgentName.LEGAL: SourceTag.LEGAL,
}


async def retriever_node(state: PipelineState, config: RunnableConfig | None = None) -> dict[str, Any]:
    """Retrieve evidence per planned specialist, all domains concurrently.

    Returns:
        Dict with state updates: evidence, run_metadata.
    """
    start = time.perf_counter()
    plan = state.plan or Plan.fallback(state.question)
    adapter = retrieval_from(config)

    agents = [a for a in ALL_AGENTS if plan.calls(a)]
    results = await asyncio.gather(
        *(
            adapter.retrieve(AGENT_SOURCE[a], plan.retrieval_queries, plan.language.value)
            for a in agents
        )
    )
    evidence = dict(zip(agents, results, strict=True))

    retriever_meta = {
        "num_queries": len(plan.retrieval_queries),
        "evidence_counts": {a.value: len(items) for a, items in evidence.items()},
        "latency_seconds": time.perf_counter() - start,
    }
    logger.info(
        "Evidence retrieved",
        extra={"stage": "retriever", "total_evidence": sum(len(v) for v in evidence.values())},
    )

    return {
        "evidence": evidence,
        "run_metadata": {**state.run_metadata, "retriever": retriever_meta},
    }
