"""
Configuration for the pgvector message store.

Uses Pydantic BaseSettings for environment variable support.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreConfig(BaseSettings):
    """
    HNSW scan settings applied to every nearest-neighbor query.

    Tenant, filter and cursor predicates are evaluated on rows the index
    scan yields, so the scan must keep producing candidates until a page is
    filled. All settings can be overridden via environment variables with
    VECTORSTORE_ prefix (e.g., VECTORSTORE_HNSW_EF_SEARCH=200).
    """

    model_config = SettingsConfigDict(
        env_prefix="VECTORSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    hnsw_iterative_scan: Literal["off", "strict_order", "relaxed_order"] = Field(
        default="strict_order",
        description="pgvector >= 0.8 iterative index scan mode",
    )
    hnsw_ef_search: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Candidate list size per scan step (raised to cover the page size)",
    )
    hnsw_max_scan_tuples: int = Field(
        default=20000,
        ge=1,
        description="Upper bound on tuples visited by one iterative scan",
    )
