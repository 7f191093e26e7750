"""
Summarization engine: top-k retrieval, grounded generation, citations.

Generation goes through the gateway's generation guard, whose breaker is
independent of the embedding breaker. When generation is unavailable the
request still succeeds with a plain snippet listing flagged as degraded.
"""

import json
import re
import time
from typing import Any

import structlog

from smaraa.audit.log import AuditLog
from smaraa.audit.schemas import AuditAction
from smaraa.embedding.gateway import EmbeddingGateway
from smaraa.errors import ProviderUnavailable, ValidationError
from smaraa.guilds.permissions import ANONYMOUS_ACTOR, Actor, PermissionGate
from smaraa.observability.metrics import get_metrics
from smaraa.search.service import SearchEngine
from smaraa.summarize.config import SummarizeConfig
from smaraa.summarize.prompts import (
    NO_RELEVANT_CONTENT,
    SUMMARY_PROMPT,
    SYSTEM_PROMPT,
    render_document,
    render_snippet,
)
from smaraa.summarize.schemas import SummarizationResult
from smaraa.vectorstore.base import Neighbor

logger = structlog.get_logger(__name__)

_CITATION_RE = re.compile(r"\[([^\[\]\s]+)\]")
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def retrieval_confidence(neighbors: list[Neighbor]) -> float:
    """Mean relevance (1 - distance) of the retrieved documents, clamped to [0, 1]."""
    if not neighbors:
        return 0.0
    mean = sum(1.0 - n.distance for n in neighbors) / len(neighbors)
    return round(min(1.0, max(0.0, mean)), 4)


def parse_generation(raw: str, retrieved_ids: list[str]) -> tuple[str, list[str]]:
    """
    Split a model response into (summary, cited ids).

    Expects ``{"summary": ..., "references": [...]}``. Anything else is
    taken verbatim as the summary and scanned for ``[message_id]`` markers.
    Citations are restricted to retrieved ids, in order of first mention.
    """
    text = _FENCE_RE.sub("", raw.strip())
    summary = text
    cited: list[Any] = []
    try:
        data = json.loads(text)
        if isinstance(data, dict) and isinstance(data.get("summary"), str):
            summary = data["summary"].strip()
            refs = data.get("references") or []
            cited = refs if isinstance(refs, list) else []
        else:
            cited = _CITATION_RE.findall(text)
    except json.JSONDecodeError:
        logger.warning("Generation response is not JSON, scanning for citations")
        cited = _CITATION_RE.findall(text)

    if not cited:
        cited = _CITATION_RE.findall(summary)

    allowed = set(retrieved_ids)
    references: list[str] = []
    for ref in cited:
        ref = str(ref).strip().strip("[]")
        if ref in allowed and ref not in references:
            references.append(ref)
    return summary, references


class SummarizationEngine:
    """
    Retrieval-augmented summaries with citations.

    Usage:
        engine = SummarizationEngine(search_engine, gateway, audit_log, gate)
        result = await engine.summarize("g1", "release notes", max_documents=5)
        print(result.summary, result.references)
    """

    def __init__(
        self,
        search: SearchEngine,
        gateway: EmbeddingGateway,
        audit: AuditLog,
        permissions: PermissionGate,
        config: SummarizeConfig | None = None,
    ):
        self._search = search
        self._gateway = gateway
        self._audit = audit
        self._permissions = permissions
        self._config = config or SummarizeConfig()

    def resolve_max_documents(self, max_documents: int | None) -> int:
        if max_documents is None:
            return self._config.default_documents
        if max_documents < 1 or max_documents > self._config.max_documents:
            raise ValidationError(
                f"maxDocuments must be between 1 and {self._config.max_documents}, "
                f"got {max_documents}"
            )
        return max_documents

    def build_prompt(self, query: str, neighbors: list[Neighbor]) -> str:
        documents = "\n".join(
            render_document(
                n.message.id,
                n.message.author_username,
                n.message.content,
                self._config.max_chars_per_document,
            )
            for n in neighbors
        )
        return SUMMARY_PROMPT.format(query=query.strip(), documents=documents)

    def degraded_listing(self, neighbors: list[Neighbor]) -> SummarizationResult:
        """Top-k snippets in rank order, used when generation is unavailable."""
        lines = [
            render_snippet(n.message.id, n.message.content, self._config.snippet_chars)
            for n in neighbors
        ]
        return SummarizationResult(
            summary="\n".join(lines),
            references=[n.message.id for n in neighbors],
            confidence=retrieval_confidence(neighbors),
            degraded=True,
        )

    async def summarize(
        self,
        tenant_id: str,
        query: str,
        max_documents: int | None = None,
        actor: Actor | None = None,
    ) -> SummarizationResult:
        """
        Summarize the archive's answer to a query.

        An empty tenant short-circuits to a fixed "no relevant content"
        answer before the query is embedded. With zero retrieved documents
        the generation provider is never called.

        Raises:
            ValidationError: Empty tenant or query, bad max_documents
            PermissionDenied: Actor may not search in this tenant
            ProviderUnavailable: The query could not be embedded
        """
        start = time.perf_counter()
        if not tenant_id.strip():
            raise ValidationError("tenantId is required")
        if not query.strip():
            raise ValidationError("query must not be empty")
        k = self.resolve_max_documents(max_documents)

        actor = actor or ANONYMOUS_ACTOR
        await self._permissions.require_search(tenant_id, actor)

        neighbors: list[Neighbor] = []
        if await self._search.has_content(tenant_id):
            neighbors = await self._search.retrieve(tenant_id, query, limit=k)

        if not neighbors:
            result = SummarizationResult(summary=NO_RELEVANT_CONTENT)
            outcome = "empty"
        else:
            result = await self._generate(query, neighbors)
            outcome = "degraded" if result.degraded else "ok"

        await self._audit.record(
            tenant_id,
            actor.actor_id,
            AuditAction.SUMMARIZE,
            {
                "maxDocuments": k,
                "retrieved": len(neighbors),
                "references": len(result.references),
                "confidence": result.confidence,
                "degraded": result.degraded,
            },
        )

        latency = time.perf_counter() - start
        get_metrics().record_summarize(outcome, latency)
        logger.info(
            "Summarization completed",
            tenant_id=tenant_id,
            outcome=outcome,
            retrieved=len(neighbors),
            references=len(result.references),
            latency_ms=round(latency * 1000, 1),
        )
        return result

    async def _generate(self, query: str, neighbors: list[Neighbor]) -> SummarizationResult:
        prompt = self.build_prompt(query, neighbors)
        try:
            raw = await self._gateway.generate(SYSTEM_PROMPT, prompt)
        except ProviderUnavailable as e:
            logger.warning("Generation unavailable, degrading to listing", error=str(e))
            return self.degraded_listing(neighbors)

        if not raw or not raw.strip():
            logger.warning("Empty generation response, degrading to listing")
            return self.degraded_listing(neighbors)

        summary, references = parse_generation(raw, [n.message.id for n in neighbors])
        return SummarizationResult(
            summary=summary,
            references=references,
            confidence=retrieval_confidence(neighbors),
            degraded=False,
        )
