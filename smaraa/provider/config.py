"""Configuration for the external embedding/generation provider.

Provides Pydantic settings for API keys, generation model selection, call
timeouts, retry budget and circuit breaker tuning. All settings can be
overridden via PROVIDER_* environment variables.
"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderConfig(BaseSettings):
    """Configuration for provider calls made by the embedding gateway.

    Example:
        PROVIDER_OPENAI_API_KEY=sk-...
        PROVIDER_GENERATION_BACKEND=anthropic
        PROVIDER_ANTHROPIC_API_KEY=sk-ant-...
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVIDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API keys
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key (embeddings, and generation when backend=openai)",
    )
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key (generation when backend=anthropic)",
    )

    # Generation
    generation_backend: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="Which SDK serves summarization calls",
    )
    openai_generation_model: str = Field(default="gpt-4o-mini")
    anthropic_generation_model: str = Field(default="claude-sonnet-4-5-20250929")
    generation_max_tokens: int = Field(default=800, ge=64, le=8192)
    generation_temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    # Per-attempt timeouts (seconds)
    embedding_timeout: float = Field(default=15.0, gt=0.0, le=300.0)
    generation_timeout: float = Field(default=45.0, gt=0.0, le=600.0)

    # Retry policy
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per provider call before surfacing a failure",
    )
    backoff_base_seconds: float = Field(default=0.5, ge=0.0, le=30.0)
    backoff_max_seconds: float = Field(default=8.0, ge=0.0, le=120.0)
    backoff_jitter: float = Field(default=0.5, ge=0.0, le=1.0)

    # Circuit breaker (one per guard)
    circuit_failure_threshold: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Consecutive exhausted calls before the breaker opens",
    )
    circuit_recovery_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=3600.0,
        description="Seconds the breaker stays open before a trial call",
    )
