"""
Archive store: idempotent message ingestion.

Each request is validated, permission-checked, embedded and then written
with a single insert-or-ignore statement. The store write is attempted only
after the embedding has been obtained, so a failed or cancelled request
never leaves a row behind.
"""

import time
from typing import TYPE_CHECKING

import structlog

from smaraa.archive.schemas import ArchivedMessage, ArchiveRecord, ArchiveResult
from smaraa.audit.log import AuditLog
from smaraa.audit.schemas import AuditAction
from smaraa.embedding.gateway import EmbeddingGateway
from smaraa.errors import SmaraaError, ValidationError
from smaraa.guilds.permissions import Actor, PermissionGate
from smaraa.observability.metrics import get_metrics

if TYPE_CHECKING:
    from smaraa.search.cache import SearchResultCache
    from smaraa.vectorstore.base import MessageVectorStore

logger = structlog.get_logger(__name__)


def validate_record(record: ArchiveRecord) -> None:
    """Reject records with a blank identifier or blank content."""
    if not record.tenant_id.strip():
        raise ValidationError("tenantId is required")
    if not record.message_id.strip():
        raise ValidationError("messageId is required")
    if not record.channel_id.strip():
        raise ValidationError("channelId is required")
    if not record.author_id.strip():
        raise ValidationError("authorId is required")
    if not record.content.strip():
        raise ValidationError("content must not be empty")


class ArchiveStore:
    """
    Ingests chat messages into the vector store.

    Usage:
        store = ArchiveStore(vector_store, gateway, audit_log, gate)
        result = await store.archive(record)
        assert result.created
    """

    def __init__(
        self,
        store: "MessageVectorStore",
        gateway: EmbeddingGateway,
        audit: AuditLog,
        permissions: PermissionGate,
        result_cache: "SearchResultCache | None" = None,
    ):
        self._store = store
        self._gateway = gateway
        self._audit = audit
        self._permissions = permissions
        self._result_cache = result_cache

    async def archive(self, record: ArchiveRecord, actor: Actor | None = None) -> ArchiveResult:
        """
        Archive one message.

        Re-delivering the same (tenant, message id) is a successful no-op
        reported as ``created=False``. Both outcomes are audited.

        Args:
            record: Message to archive
            actor: Requesting user (defaults to the message author, no roles)

        Raises:
            ValidationError: Blank identifier or content
            PermissionDenied: Actor may not archive in this tenant
            ProviderUnavailable: Embedding failed after retries
            StoreError: Store write failed after retries
        """
        start = time.perf_counter()
        validate_record(record)
        actor = actor or Actor.of(record.author_id)
        await self._permissions.require_archive(record.tenant_id, actor)

        try:
            vector = await self._gateway.embed(record.content)
            created = await self._store.upsert_message(ArchivedMessage.from_record(record, vector))
        except SmaraaError:
            get_metrics().record_archive_error()
            raise

        await self._after_write(record, actor, created)
        get_metrics().record_archive(created, time.perf_counter() - start)
        return ArchiveResult(message_id=record.message_id, created=created)

    async def archive_many(
        self,
        records: list[ArchiveRecord],
        actor: Actor | None = None,
    ) -> list[ArchiveResult]:
        """
        Archive a batch (thread or backfill) with one batched embedding pass.

        Every record is validated and permission-checked before any provider
        call. Results are returned in input order.
        """
        if not records:
            return []

        for record in records:
            validate_record(record)

        actors = [actor or Actor.of(r.author_id) for r in records]
        for record, record_actor in zip(records, actors):
            await self._permissions.require_archive(record.tenant_id, record_actor)

        try:
            vectors = await self._gateway.embed_batch([r.content for r in records])
        except SmaraaError:
            get_metrics().record_archive_error()
            raise

        results: list[ArchiveResult] = []
        for record, record_actor, vector in zip(records, actors, vectors):
            created = await self._store.upsert_message(ArchivedMessage.from_record(record, vector))
            await self._after_write(record, record_actor, created)
            get_metrics().record_archive(created)
            results.append(ArchiveResult(message_id=record.message_id, created=created))

        logger.info(
            "Archived batch",
            records=len(records),
            created=sum(1 for r in results if r.created),
        )
        return results

    async def _after_write(self, record: ArchiveRecord, actor: Actor, created: bool) -> None:
        if created and self._result_cache is not None:
            self._result_cache.invalidate_tenant(record.tenant_id)

        await self._audit.record(
            record.tenant_id,
            actor.actor_id,
            AuditAction.ARCHIVE,
            {
                "messageId": record.message_id,
                "channelId": record.channel_id,
                "created": created,
                "attachments": len(record.attachments),
            },
        )
        logger.info(
            "Archived message",
            tenant_id=record.tenant_id,
            message_id=record.message_id,
            created=created,
        )
