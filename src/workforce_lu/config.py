"""Configuration module using pydantic-settings for type-safe env variable loading."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LLMProvider = Literal["openai", "anthropic", "google", "local", "deepseek"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Uses pydantic-settings for type-safe configuration with validation.
    Automatically loads from .env file if present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    default_language: Literal["en", "fr", "de"] = Field(
        default="en",
        description="Language used for error responses when the caller gives none",
    )

    # Evidence Cache Configuration
    cache_backend: Literal["memory", "file"] = Field(
        default="memory",
        description="Evidence cache backend: in-process dict or JSON files on disk",
    )
    cache_dir: Path = Field(
        default=Path("./cache"),
        description="Directory for the file cache backend",
    )
    cache_ttl_hours: int = Field(
        default=24,
        ge=1,
        description="Time-to-live for cached retrieval results in hours",
    )

    # Retrieval Configuration
    max_results_per_query: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum number of results a source returns per query",
    )
    use_stub_sources: bool = Field(
        default=True,
        description="Serve fixed stub results instead of a real retrieval backend",
    )

    # Planner Configuration
    planner_history_turns: int = Field(
        default=6,
        ge=0,
        le=50,
        description="How many prior conversation turns the planner sees as context",
    )

    # =========================================================================
    # Completion LLM Configuration
    # =========================================================================
    llm_provider: LLMProvider = Field(
        default="deepseek",
        description="LLM provider: openai, anthropic, google, local, or deepseek",
    )

    # DeepSeek Configuration (OpenAI-compatible API)
    deepseek_api_key: str = Field(
        default="",
        description="DeepSeek API key (required if llm_provider='deepseek')",
    )
    deepseek_base_url: str = Field(
        default="https://api.deepseek.com",
        description="DeepSeek API base URL",
    )
    deepseek_model: str = Field(
        default="deepseek-chat",
        description="DeepSeek model name",
    )

    # OpenAI Configuration
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key (required if llm_provider='openai')",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model name (e.g., 'gpt-4o', 'gpt-4o-mini')",
    )

    # Anthropic Configuration
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key (required if llm_provider='anthropic')",
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Anthropic model name",
    )

    # Google Generative AI Configuration
    google_genai_api_key: str = Field(
        default="",
        description="Google Generative AI API key (required if llm_provider='google')",
    )
    google_genai_model: str = Field(
        default="gemini-1.5-flash",
        description="Google Generative AI model name",
    )

    # Local LLM Configuration (LM Studio / Ollama / vLLM)
    local_llm_base_url: str = Field(
        default="http://127.0.0.1:1234/v1",
        description="Base URL for local OpenAI-compatible API (LM Studio, Ollama, vLLM)",
    )
    local_llm_model: str = Field(
        default="local-model",
        description="Model name for local LLM (depends on your local server setup)",
    )
    local_llm_api_key: str = Field(
        default="not-needed",
        description="API key for local LLM (usually 'not-needed' for local servers)",
    )

    # Common LLM Settings
    llm_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature shared by every pipeline stage",
    )
    llm_timeout: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Timeout in seconds for a single completion call",
    )
    llm_max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts per completion call when the provider times out or rate-limits",
    )
    llm_retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Delay between completion retries",
    )
    planner_max_tokens: int = Field(
        default=500,
        ge=100,
        le=4096,
        description="Maximum tokens for the planning step (cheap classification)",
    )
    specialist_max_tokens: int = Field(
        default=1500,
        ge=100,
        le=8192,
        description="Maximum tokens for a domain specialist answer",
    )
    synthesizer_max_tokens: int = Field(
        default=1000,
        ge=100,
        le=8192,
        description="Maximum tokens for merging specialist answers",
    )

    # API Server Configuration
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Origins allowed to call the HTTP API",
    )
    api_host: str = Field(
        default="127.0.0.1",
        description="Interface the HTTP API binds to",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port the HTTP API listens on",
    )


# Global settings instance
settings = Settings()
