"""LLM module for the answer pipeline.

This module provides the provider factory, the completion service every
stage calls, and the prompt templates.
"""

from workforce_lu.llm.completion import (
    CompletionError,
    CompletionFormatError,
    CompletionService,
    get_completion_service,
    parse_completion,
)
from workforce_lu.llm.prompts import (
    GUICHET_SYSTEM_PROMPT,
    LEGAL_SYSTEM_PROMPT,
    PLANNER_SYSTEM_PROMPT,
    SYNTHESIZER_SYSTEM_PROMPT,
    format_agent_summary,
    format_evidence_for_prompt,
    history_to_messages,
)
from workforce_lu.llm.providers import (
    LLMProviderError,
    check_provider_health,
    get_completion_llm,
)

__all__ = [
    # Providers
    "get_completion_llm",
    "LLMProviderError",
    "check_provider_health",
    # Completion
    "CompletionService",
    "CompletionError",
    "CompletionFormatError",
    "get_completion_service",
    "parse_completion",
    # Prompts
    "PLANNER_SYSTEM_PROMPT",
    "GUICHET_SYSTEM_PROMPT",
    "LEGAL_SYSTEM_PROMPT",
    "SYNTHESIZER_SYSTEM_PROMPT",
    "format_evidence_for_prompt",
    "format_agent_summary",
    "history_to_messages",
]
