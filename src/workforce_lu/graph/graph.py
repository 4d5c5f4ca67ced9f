"""LangGraph workflow assembly for the answer pipeline."""

from __future__ import annotations

from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from workforce_lu.graph.state import PipelineState

# Stage names, in execution order
STAGES: tuple[str, ...] = ("planner", "retriever", "specialists", "synthesizer", "assembler")

# =============================================================================
# Node Imports (lazy to avoid circular imports)
# =============================================================================


def _get_planner_node():
    from workforce_lu.graph.nodes.planner import planner_node

    return planner_node


def _get_retriever_node():
    from workforce_lu.graph.nodes.retriever import retriever_node

    return retriever_node


def _get_specialists_node():
    from workforce_lu.graph.nodes.specialists import specialists_node

    return specialists_node


def _get_synthesizer_node():
    from workforce_lu.graph.nodes.synthesizer import synthesizer_node

    return synthesizer_node


def _get_assembler_node():
    from workforce_lu.graph.nodes.assembler import assembler_node

    return assembler_node


# =============================================================================
# Graph Builder
# =============================================================================


def build_graph() -> StateGraph:
    """Build the LangGraph state machine (not compiled).

    Returns:
        StateGraph ready for compilation with optional checkpointer.

    Graph Structure:
        START -> planner -> retriever -> specialists -> synthesizer -> assembler -> END
    """
    graph = StateGraph(PipelineState)

    # -----------------------------------------------------------------
    # Add Nodes
    # -----------------------------------------------------------------
    graph.add_node("planner", _get_planner_node())
    graph.add_node("retriever", _get_retriever_node())
    graph.add_node("specialists", _get_specialists_node())
    graph.add_node("synthesizer", _get_synthesizer_node())
    graph.add_node("assembler", _get_assembler_node())

    # -----------------------------------------------------------------
    # Set Entry Point and Edges
    # -----------------------------------------------------------------
    graph.set_entry_point("planner")
    for source, target in zip(STAGES, STAGES[1:]):
        graph.add_edge(source, target)
    graph.add_edge("assembler", END)

    return graph


# =============================================================================
# Compiled Graph Factory
# =============================================================================


def compile_graph(
    checkpointer: bool = False,
) -> CompiledStateGraph:
    """Build and compile the graph with optional features.

    Args:
        checkpointer: If True, enable memory-based checkpointing for
                     state persistence and session management.

    Returns:
        Compiled graph ready for ainvoke/astream.

    Example:
        graph = compile_graph()
        state = await graph.ainvoke(
            {"question": "How do I register as a job-seeker?"},
            {"configurable": {"completion": service}},
        )
    """
    graph = build_graph()

    if checkpointer:
        return graph.compile(checkpointer=MemorySaver())

    return graph.compile()


# =============================================================================
# Default Compiled Instance
# =============================================================================

# Lazy singleton for simple use cases
_default_graph: CompiledStateGraph | None = None


def get_default_graph() -> CompiledStateGraph:
    """Get or create the default compiled graph (without checkpointing).

    Returns:
        Cached compiled graph instance.
    """
    global _default_graph
    if _default_graph is None:
        _default_graph = compile_graph(checkpointer=False)
    return _default_graph
