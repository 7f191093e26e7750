"""
Embedding gateway configuration.

Provides Pydantic settings for the embedding model, its output dimension,
batching and the content-hash cache.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingConfig(BaseSettings):
    """
    Configuration for the embedding gateway.

    Settings can be overridden via environment variables prefixed with EMBEDDING_.
    Changing ``model_name`` or ``dimensions`` for a tenant with archived rows
    requires re-embedding every row; vectors of mixed dimension are never stored.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    model_name: str = Field(
        default="text-embedding-3-small",
        description="Provider embedding model",
    )
    dimensions: int = Field(
        default=1536,
        ge=1,
        le=16000,
        description="Embedding vector dimension (1536 for text-embedding-3-small)",
    )
    batch_size: int = Field(
        default=64,
        ge=1,
        le=2048,
        description="Maximum texts per provider request in embed_batch",
    )

    # Caching configuration
    cache_enabled: bool = Field(default=True)
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="In-process LRU or shared Redis cache",
    )
    cache_max_entries: int = Field(
        default=10_000,
        ge=1,
        description="LRU capacity for the in-memory backend",
    )
    cache_ttl_hours: int = Field(
        default=168,
        ge=1,
        description="Maximum entry age in hours (default: 1 week)",
    )
    cache_key_prefix: str = Field(
        default="smaraa:emb:",
        description="Redis key prefix for cached embeddings",
    )

    @property
    def cache_ttl_seconds(self) -> int:
        """Get cache TTL in seconds."""
        return self.cache_ttl_hours * 3600
