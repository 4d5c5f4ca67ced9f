#!/usr/bin/env python3
"""Command-line interface for the Workforce LU assistant.

Usage:
    # Single question
    workforce-lu "How do I register as a job-seeker?"

    # With streaming progress
    workforce-lu --stream "What notice period applies when I resign?"

    # Interactive mode (keeps conversation history)
    workforce-lu --interactive

    # JSON output
    workforce-lu --format json "Do I need a written employment contract?"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import TextIO

from workforce_lu.graph.runner import astream_question, run_pipeline
from workforce_lu.types.graph import (
    PipelineCompleteEvent,
    PipelineResult,
    StageEndEvent,
    StageStartEvent,
)
from workforce_lu.types.plan import Turn
from workforce_lu.types.specialist import ConfidenceLevel

# =============================================================================
# Output Formatting
# =============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    HEADER = "\033[95m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RESET = "\033[0m"


def supports_color() -> bool:
    """Check if terminal supports colors."""
    return (
        hasattr(sys.stdout, "isatty")
        and sys.stdout.isatty()
        and os.environ.get("TERM") != "dumb"
        and os.environ.get("NO_COLOR") is None
    )


def colorize(text: str, color: str) -> str:
    """Apply color if supported."""
    if supports_color():
        return f"{color}{text}{Colors.RESET}"
    return text


# Stage display names and progress text
STAGE_DISPLAY = {
    "planner": ("Planner", "Classifying question..."),
    "retriever": ("Retriever", "Collecting evidence..."),
    "specialists": ("Specialists", "Consulting guichet and legal specialists..."),
    "synthesizer": ("Synthesizer", "Merging answers..."),
    "assembler": ("Assembler", "Building cited response..."),
}

CONFIDENCE_COLORS = {
    ConfidenceLevel.HIGH: Colors.GREEN,
    ConfidenceLevel.MEDIUM: Colors.YELLOW,
    ConfidenceLevel.LOW: Colors.RED,
}


def format_result_pretty(result: PipelineResult, file: TextIO | None = None) -> None:
    """Format result for human-readable terminal output."""
    file = file or sys.stdout
    response = result.response

    print(colorize("=" * 60, Colors.DIM), file=file)
    intent = result.intent or "unknown"
    print(
        colorize(f"Intent: {intent.upper()}  Language: {response.language.upper()}", Colors.BOLD),
        file=file,
    )
    print(colorize("=" * 60, Colors.DIM), file=file)
    print(file=file)

    print(colorize("ANSWER:", Colors.BOLD), file=file)
    print(colorize("-" * 40, Colors.DIM), file=file)
    print(response.answer, file=file)
    print(file=file)

    if response.steps:
        print(colorize("STEPS:", Colors.BOLD), file=file)
        for i, step in enumerate(response.steps, start=1):
            print(f"  {i}. {step}", file=file)
        print(file=file)

    conf_color = CONFIDENCE_COLORS.get(response.confidence, Colors.RESET)
    print(colorize(f"Confidence: {response.confidence.value}", conf_color), file=file)
    print(file=file)

    if response.citations:
        print(colorize("CITATIONS:", Colors.BOLD), file=file)
        print(colorize("-" * 40, Colors.DIM), file=file)
        for cite in response.citations:
            ids = ", ".join(cite.evidence_ids)
            print(f"  {cite.title} ({cite.section}) [{ids}]", file=file)
            print(colorize(f"       {cite.url}  retrieved {cite.retrieved_at}", Colors.DIM), file=file)
        print(file=file)

    if response.limitations:
        print(colorize("LIMITATIONS:", Colors.BOLD), file=file)
        for lim in response.limitations:
            print(colorize(f"  - {lim}", Colors.YELLOW), file=file)
        print(file=file)

    if response.suggested_searches:
        print(colorize("YOU MIGHT ALSO ASK:", Colors.DIM), file=file)
        for s in response.suggested_searches:
            print(colorize(f"  - {s}", Colors.DIM), file=file)
        print(file=file)

    meta = result.metadata
    if "total_time_seconds" in meta:
        print(colorize(f"Total time: {meta['total_time_seconds']:.2f}s", Colors.DIM), file=file)

    print(colorize("=" * 60, Colors.DIM), file=file)


def format_result_json(result: PipelineResult, file: TextIO | None = None) -> None:
    """Format result as JSON (the response plus run metadata)."""
    file = file or sys.stdout
    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False), file=file)


def _output_result(result: PipelineResult, output_format: str) -> None:
    """Output result in specified format."""
    if output_format == "json":
        format_result_json(result)
    else:
        format_result_pretty(result)


# =============================================================================
# Execution Modes
# =============================================================================


async def _run_with_streaming(
    question: str,
    language: str | None = None,
    history: list[Turn] | None = None,
) -> PipelineResult | None:
    """Run the pipeline with streaming progress display."""
    print(colorize("\nStarting answer pipeline...\n", Colors.BOLD))

    result: PipelineResult | None = None

    async for event in astream_question(question, language, history):
        if isinstance(event, StageStartEvent):
            name, desc = STAGE_DISPLAY.get(event.stage, (event.stage.title(), "Processing..."))
            print(f"  {colorize(name, Colors.CYAN)}: {colorize(desc, Colors.DIM)}")

        elif isinstance(event, StageEndEvent):
            name, _ = STAGE_DISPLAY.get(event.stage, (event.stage.title(), ""))
            duration = f"{event.duration_ms:.0f}ms"
            print(f"  {colorize('done', Colors.GREEN)} {name} ({colorize(duration, Colors.DIM)})")

        elif isinstance(event, PipelineCompleteEvent):
            result = event.result
            print(
                f"\n{colorize('Pipeline complete', Colors.GREEN + Colors.BOLD)} "
                f"({event.total_duration_ms:.0f}ms total)\n"
            )

    return result


def run_single_query(
    question: str,
    output_format: str = "pretty",
    use_streaming: bool = False,
    debug: bool = False,
    language: str | None = None,
) -> int:
    """Answer a single question and display the result.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    try:
        if use_streaming:
            result = asyncio.run(_run_with_streaming(question, language))
        else:
            result = asyncio.run(run_pipeline(question, language, include_state=debug))

    except KeyboardInterrupt:
        print("\n\nInterrupted.", file=sys.stderr)
        return 130

    if result is None:
        print("Error: No result produced", file=sys.stderr)
        return 1

    _output_result(result, output_format)
    if result.failed and debug:
        print(f"Pipeline error: {result.metadata.get('error')}", file=sys.stderr)
    return 1 if result.failed else 0


def run_interactive() -> int:
    """Run in interactive REPL mode. Earlier turns are sent as history.

    Returns:
        Exit code (0 for normal exit).
    """
    print(colorize("\n+------------------------------------------+", Colors.CYAN))
    print(colorize("|     Workforce LU Interactive Mode        |", Colors.CYAN + Colors.BOLD))
    print(colorize("+------------------------------------------+", Colors.CYAN))
    print()
    print("Ask a Luxembourg HR or employment-law question.")
    print("Commands: 'quit' to exit, 'reset' to forget the conversation, 'help' for options")
    print(colorize("-" * 44, Colors.DIM))

    history: list[Turn] = []
    # One event loop for the whole session; model clients are bound to it
    runner = asyncio.Runner()

    while True:
        try:
            question = input(colorize("\n> ", Colors.GREEN)).strip()

            if not question:
                continue

            if question.lower() in ("quit", "exit", "q"):
                print(colorize("\nGoodbye!", Colors.CYAN))
                break

            if question.lower() == "reset":
                history.clear()
                print(colorize("Conversation cleared.", Colors.DIM))
                continue

            if question.lower() == "help":
                print("\nCommands:")
                print("  quit, exit, q  - Exit interactive mode")
                print("  reset          - Forget earlier questions and answers")
                print("  help           - Show this help")
                continue

            result = runner.run(_run_with_streaming(question, history=history))
            if result is not None:
                format_result_pretty(result)
                history.append(Turn(role="user", content=question))
                history.append(Turn(role="assistant", content=result.response.answer))

        except KeyboardInterrupt:
            print(colorize("\n\nInterrupted. Type 'quit' to exit.", Colors.YELLOW))
        except EOFError:
            print(colorize("\nGoodbye!", Colors.CYAN))
            break

    runner.close()
    return 0


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="workforce-lu",
        description="Workforce LU: Luxembourg HR and employment-law assistant",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "How do I register as a job-seeker?"
  %(prog)s --stream "What notice period applies when I resign?"
  %(prog)s --format json "Do I need a written employment contract?" > result.json
  %(prog)s --interactive
        """,
    )

    parser.add_argument(
        "question",
        nargs="?",
        help="HR or employment-law question",
    )

    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Run in interactive mode (REPL)",
    )

    parser.add_argument(
        "-s",
        "--stream",
        action="store_true",
        help="Show streaming progress as pipeline executes",
    )

    parser.add_argument(
        "-f",
        "--format",
        choices=["pretty", "json"],
        default="pretty",
        help="Output format (default: pretty)",
    )

    parser.add_argument(
        "-l",
        "--language",
        choices=["en", "fr", "de"],
        default=None,
        help="Language for the error message if the pipeline fails (answers follow the question)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="workforce-lu 0.1.0",
    )

    args = parser.parse_args(argv)

    if args.interactive:
        return run_interactive()
    elif args.question:
        return run_single_query(
            args.question,
            output_format=args.format,
            use_streaming=args.stream,
            debug=args.debug,
            language=args.language,
        )
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
