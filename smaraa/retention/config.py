"""Configuration for the retention sweep."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetentionConfig(BaseSettings):
    """
    Retention configuration.

    Settings can be overridden via environment variables with RETENTION_ prefix.
    Example: RETENTION_INTERVAL_SECONDS=900
    """

    model_config = SettingsConfigDict(
        env_prefix="RETENTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    interval_seconds: float = Field(
        default=3600.0,
        gt=0.0,
        description="Delay between sweeps when running continuously",
    )
    reindex_threshold: int = Field(
        default=10_000,
        ge=1,
        description="Rows deleted in one sweep that trigger index maintenance",
    )
    reindex_enabled: bool = Field(
        default=False,
        description="Rebuild the ANN index (REINDEX CONCURRENTLY) after large sweeps, not just ANALYZE",
    )
    failure_backoff_base_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Initial delay after a failed sweep",
    )
    failure_backoff_max_seconds: float = Field(
        default=1800.0,
        gt=0.0,
        description="Longest delay between failed sweeps",
    )
