"""Configuration for retrieval-augmented summarization."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SummarizeConfig(BaseSettings):
    """
    Summarization configuration.

    Settings can be overridden via environment variables with SUMMARIZE_ prefix.
    Example: SUMMARIZE_MAX_DOCUMENTS=15
    """

    model_config = SettingsConfigDict(
        env_prefix="SUMMARIZE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_documents: int = Field(
        default=10,
        ge=1,
        description="Documents retrieved when the caller omits maxDocuments",
    )
    max_documents: int = Field(
        default=25,
        ge=1,
        le=100,
        description="Upper bound on maxDocuments",
    )
    max_chars_per_document: int = Field(
        default=1000,
        ge=50,
        description="Content characters per document placed in the prompt",
    )
    snippet_chars: int = Field(
        default=200,
        ge=20,
        description="Characters per snippet in the degraded listing",
    )
