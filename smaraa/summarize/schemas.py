"""Summarization result value object."""

from pydantic import BaseModel, Field


class SummarizationResult(BaseModel):
    """
    Summary with citations.

    ``confidence`` is a retrieval-quality signal (mean relevance of the
    retrieved documents), not a model-reported value. ``degraded`` is True
    when generation failed and the summary is a plain snippet listing.
    """

    summary: str
    references: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    degraded: bool = False
