"""Retrieval-augmented summarization."""

from smaraa.summarize.config import SummarizeConfig
from smaraa.summarize.prompts import NO_RELEVANT_CONTENT
from smaraa.summarize.schemas import SummarizationResult
from smaraa.summarize.service import (
    SummarizationEngine,
    parse_generation,
    retrieval_confidence,
)

__all__ = [
    "NO_RELEVANT_CONTENT",
    "SummarizationEngine",
    "SummarizationResult",
    "SummarizeConfig",
    "parse_generation",
    "retrieval_confidence",
]
