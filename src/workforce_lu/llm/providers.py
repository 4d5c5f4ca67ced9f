"""LLM Provider Factory for the completion service.

This module provides a factory function to instantiate the configured chat
model. Supports DeepSeek, OpenAI, Anthropic, Google, and local
(LM Studio/Ollama/vLLM) providers.

Usage:
    from workforce_lu.llm.providers import get_completion_llm
    from workforce_lu.config import settings

    llm = get_completion_llm(settings, json_mode=True)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langchain_core.language_models import BaseChatModel

if TYPE_CHECKING:
    from workforce_lu.config import Settings

# Providers that speak the OpenAI chat-completions protocol and accept
# response_format={"type": "json_object"}
OPENAI_COMPATIBLE = frozenset({"openai", "local", "deepseek"})


class LLMProviderError(Exception):
    """Raised when LLM provider configuration is invalid or unavailable."""

    pass


def get_completion_llm(settings: Settings, json_mode: bool = False) -> BaseChatModel:
    """Create and return the chat model behind the completion service.

    Args:
        settings: Application settings containing LLM configuration.
        json_mode: Ask the provider to constrain output to a JSON object, where
            the provider supports it natively.

    Returns:
        A LangChain BaseChatModel instance.

    Raises:
        LLMProviderError: If the provider is unknown or required API key is missing.
        ImportError: If required provider package is not installed.
    """
    provider = settings.llm_provider
    model_kwargs: dict[str, Any] = {}
    if json_mode and provider in OPENAI_COMPATIBLE:
        model_kwargs["response_format"] = {"type": "json_object"}

    match provider:
        case "deepseek":
            return _create_deepseek_llm(settings, model_kwargs)
        case "openai":
            return _create_openai_llm(settings, model_kwargs)
        case "anthropic":
            return _create_anthropic_llm(settings)
        case "google":
            return _create_google_llm(settings)
        case "local":
            return _create_local_llm(settings, model_kwargs)
        case _:
            raise LLMProviderError(
                f"Unknown LLM provider: '{provider}'. "
                f"Supported providers: deepseek, openai, anthropic, google, local"
            )


def _import_chat_openai():
    try:
        from langchain_openai import ChatOpenAI
    except ImportError as e:
        raise ImportError(
            "langchain-openai package is required for OpenAI-compatible providers. "
            "Install it with: pip install langchain-openai"
        ) from e
    return ChatOpenAI


def _create_deepseek_llm(settings: Settings, model_kwargs: dict[str, Any]) -> BaseChatModel:
    """Create DeepSeek chat instance through its OpenAI-compatible API."""
    if not settings.deepseek_api_key:
        raise LLMProviderError(
            "DeepSeek API key is required when llm_provider='deepseek'. "
            "Set DEEPSEEK_API_KEY in your .env file."
        )

    ChatOpenAI = _import_chat_openai()
    return ChatOpenAI(
        base_url=settings.deepseek_base_url,
        api_key=settings.deepseek_api_key,
        model=settings.deepseek_model,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout,
        max_retries=0,
        model_kwargs=model_kwargs,
    )


def _create_openai_llm(settings: Settings, model_kwargs: dict[str, Any]) -> BaseChatModel:
    """Create OpenAI ChatGPT instance."""
    if not settings.openai_api_key:
        raise LLMProviderError(
            "OpenAI API key is required when llm_provider='openai'. "
            "Set OPENAI_API_KEY in your .env file."
        )

    ChatOpenAI = _import_chat_openai()
    return ChatOpenAI(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout,
        max_retries=0,
        model_kwargs=model_kwargs,
    )


def _create_anthropic_llm(settings: Settings) -> BaseChatModel:
    """Create Anthropic Claude instance. JSON output is requested in the prompt."""
    if not settings.anthropic_api_key:
        raise LLMProviderError(
            "Anthropic API key is required when llm_provider='anthropic'. "
            "Set ANTHROPIC_API_KEY in your .env file."
        )

    try:
        from langchain_anthropic import ChatAnthropic
    except ImportError as e:
        raise ImportError(
            "langchain-anthropic package is required for Anthropic provider. "
            "Install it with: pip install langchain-anthropic"
        ) from e

    return ChatAnthropic(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout,
        max_retries=0,
    )


def _create_google_llm(settings: Settings) -> BaseChatModel:
    """Create Google Generative AI (Gemini) instance."""
    if not settings.google_genai_api_key:
        raise LLMProviderError(
            "Google Generative AI API key is required when llm_provider='google'. "
            "Set GOOGLE_GENAI_API_KEY in your .env file."
        )

    try:
        from langchain_google_genai import ChatGoogleGenerativeAI
    except ImportError as e:
        raise ImportError(
            "langchain-google-genai package is required for Google provider. "
            "Install it with: pip install langchain-google-genai"
        ) from e

    return ChatGoogleGenerativeAI(
        google_api_key=settings.google_genai_api_key,
        model=settings.google_genai_model,
        temperature=settings.llm_temperature,
    )


def _create_local_llm(settings: Settings, model_kwargs: dict[str, Any]) -> BaseChatModel:
    """Create local LLM instance (LM Studio / Ollama / vLLM).

    Uses OpenAI-compatible API endpoint, which is supported by:
    - LM Studio (default: http://127.0.0.1:1234/v1)
    - Ollama (with OpenAI compatibility layer)
    - vLLM (with OpenAI compatibility layer)
    """
    ChatOpenAI = _import_chat_openai()
    return ChatOpenAI(
        base_url=settings.local_llm_base_url,
        api_key=settings.local_llm_api_key,
        model=settings.local_llm_model,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout,
        max_retries=0,
        model_kwargs=model_kwargs,
    )


def check_provider_health(settings: Settings) -> dict[str, bool | str]:
    """Check if the configured LLM provider can be instantiated.

    Args:
        settings: Application settings containing LLM configuration.

    Returns:
        Dict with 'healthy' (bool), 'provider' (str), and 'model' or 'error' (str).
    """
    provider = settings.llm_provider.lower()

    try:
        get_completion_llm(settings)
        return {
            "healthy": True,
            "provider": provider,
            "model": _get_model_name(settings, provider),
        }
    except (LLMProviderError, ImportError) as e:
        return {
            "healthy": False,
            "provider": provider,
            "error": str(e),
        }


def _get_model_name(settings: Settings, provider: str) -> str:
    """Get the model name for the given provider."""
    model_map = {
        "deepseek": settings.deepseek_model,
        "openai": settings.openai_model,
        "anthropic": settings.anthropic_model,
        "google": settings.google_genai_model,
        "local": settings.local_llm_model,
    }
    return model_map.get(provider, "unknown")
