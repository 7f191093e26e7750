"""Configuration for the search engine."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchConfig(BaseSettings):
    """
    Search configuration.

    Settings can be overridden via environment variables with SEARCH_ prefix.
    Example: SEARCH_MAX_LIMIT=100
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_limit: int = Field(
        default=10,
        ge=1,
        description="Page size when the caller omits a limit",
    )
    max_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Largest page size a caller may request",
    )
    result_cache_ttl_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Lifetime of cached result pages (0 disables the cache)",
    )
    result_cache_max_entries: int = Field(
        default=1000,
        ge=1,
        description="Maximum cached result pages across all tenants",
    )
