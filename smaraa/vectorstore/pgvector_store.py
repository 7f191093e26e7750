"""
pgvector implementation of the MessageVectorStore interface.

Builds dynamic SQL over the ``archived_messages`` table using the pgvector
``<=>`` operator (cosine distance). The tenant predicate is always the
first condition of every query.
"""

import json
from datetime import datetime
from typing import Any

import structlog

from smaraa.archive.schemas import ArchivedMessage, AttachmentInfo, ensure_utc
from smaraa.storage.database import Database
from smaraa.vectorstore.base import MessageVectorStore, Neighbor, SearchFilter
from smaraa.vectorstore.config import VectorStoreConfig

logger = structlog.get_logger(__name__)

_MESSAGE_COLUMNS = """
    id,
    guild_id,
    channel_id,
    author_id,
    author_username,
    content,
    attachments,
    created_at,
    archived_at
"""

ANN_INDEX_NAME = "archived_messages_embedding_idx"


def to_pgvector(vector: list[float]) -> str:
    """Convert an embedding to pgvector's text input format."""
    return f"[{','.join(str(float(x)) for x in vector)}]"


class PgVectorStore(MessageVectorStore):
    """
    pgvector-backed message store.

    Features:
    - Idempotent insert-or-ignore keyed by (guild_id, id)
    - Cosine nearest-neighbor search with author/channel/time predicates
    - Keyset resumption on (distance, id) for stable pagination
    - Atomic per-row retention deletes
    """

    def __init__(
        self,
        database: Database,
        dimensions: int | None = None,
        config: VectorStoreConfig | None = None,
    ):
        """
        Initialize pgvector store.

        Args:
            database: Connected Database instance
            dimensions: Expected embedding dimension (checked on upsert if set)
            config: HNSW scan settings (defaults from VECTORSTORE_* env)
        """
        self._db = database
        self._dimensions = dimensions
        self._config = config or VectorStoreConfig()

    def scan_settings(self, limit: int) -> dict[str, str]:
        """
        Transaction-local HNSW settings for a query returning ``limit`` rows.

        Iterative scans need pgvector 0.8+; with ``off`` only ``ef_search``
        is set, which older versions also understand.
        """
        settings = {"hnsw.ef_search": str(min(1000, max(self._config.hnsw_ef_search, limit)))}
        if self._config.hnsw_iterative_scan != "off":
            settings["hnsw.iterative_scan"] = self._config.hnsw_iterative_scan
            settings["hnsw.max_scan_tuples"] = str(self._config.hnsw_max_scan_tuples)
        return settings

    async def upsert_message(self, message: ArchivedMessage) -> bool:
        if message.embedding is None:
            raise ValueError(f"Message {message.id} has no embedding")
        if self._dimensions is not None and len(message.embedding) != self._dimensions:
            raise ValueError(
                f"Embedding dimension {len(message.embedding)} does not match "
                f"store dimension {self._dimensions}"
            )

        # Returns the stored row's archived_at whether or not this statement
        # inserted it. A match with our own archived_at means the row is ours,
        # which stays true when a retry follows an INSERT that already committed.
        sql = """
            WITH inserted AS (
                INSERT INTO archived_messages (
                    guild_id, id, channel_id, author_id, author_username,
                    content, attachments, created_at, archived_at, embedding
                ) VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8, $9, $10::vector)
                ON CONFLICT (guild_id, id) DO NOTHING
                RETURNING archived_at
            )
            SELECT archived_at FROM inserted
            UNION ALL
            SELECT archived_at FROM archived_messages
            WHERE guild_id = $1 AND id = $2 AND NOT EXISTS (SELECT 1 FROM inserted)
        """
        args = (
            message.guild_id,
            message.id,
            message.channel_id,
            message.author_id,
            message.author_username,
            message.content,
            json.dumps([a.to_json() for a in message.attachments]),
            message.created_at,
            message.archived_at,
            to_pgvector(message.embedding),
        )
        stored_archived_at = await self._db.run(
            "upsert_message", lambda: self._db.fetchval(sql, *args)
        )
        return stored_archived_at is not None and stored_archived_at == message.archived_at

    async def nearest_neighbors(
        self,
        tenant_id: str,
        query_vector: list[float],
        filters: SearchFilter | None = None,
        limit: int = 10,
        after: tuple[float, str] | None = None,
    ) -> list[Neighbor]:
        if not tenant_id:
            raise ValueError("tenant_id is required for nearest-neighbor search")

        conditions = ["guild_id = $2"]
        params: list[Any] = [to_pgvector(query_vector), tenant_id]
        param_idx = 3

        if filters:
            if filters.from_user_id is not None:
                conditions.append(f"author_id = ${param_idx}")
                params.append(filters.from_user_id)
                param_idx += 1

            if filters.channel_id is not None:
                conditions.append(f"channel_id = ${param_idx}")
                params.append(filters.channel_id)
                param_idx += 1

            if filters.after is not None:
                conditions.append(f"created_at >= ${param_idx}")
                params.append(filters.after)
                param_idx += 1

            if filters.before is not None:
                conditions.append(f"created_at <= ${param_idx}")
                params.append(filters.before)
                param_idx += 1

        if after is not None:
            # Keyset resume on (distance, id)
            conditions.append(
                f"((embedding <=> $1) > ${param_idx}"
                f" OR ((embedding <=> $1) = ${param_idx} AND id > ${param_idx + 1}))"
            )
            params.extend([float(after[0]), after[1]])
            param_idx += 2

        where_clause = " AND ".join(conditions)
        sql = f"""
            SELECT
                {_MESSAGE_COLUMNS},
                embedding <=> $1 AS distance
            FROM archived_messages
            WHERE {where_clause}
            ORDER BY distance ASC, id ASC
            LIMIT ${param_idx}
        """
        params.append(limit)

        settings = self.scan_settings(limit)
        rows = await self._db.run(
            "nearest_neighbors",
            lambda: self._db.fetch_with_settings(sql, *params, settings=settings),
        )
        return [
            Neighbor(message=_row_to_message(row), distance=float(row["distance"]))
            for row in rows
        ]

    async def delete_older_than(self, tenant_id: str, cutoff: datetime) -> int:
        sql = """
            DELETE FROM archived_messages
            WHERE guild_id = $1 AND archived_at < $2
        """
        cutoff = ensure_utc(cutoff)
        status = await self._db.run(
            "delete_older_than", lambda: self._db.execute(sql, tenant_id, cutoff)
        )
        deleted = _affected_rows(status)
        logger.info(
            "Deleted archived messages",
            tenant_id=tenant_id,
            deleted=deleted,
            cutoff=cutoff.isoformat(),
        )
        return deleted

    async def get_by_ids(self, tenant_id: str, ids: list[str]) -> list[ArchivedMessage]:
        if not ids:
            return []
        sql = f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM archived_messages
            WHERE guild_id = $1 AND id = ANY($2)
            ORDER BY id
        """
        rows = await self._db.run("get_by_ids", lambda: self._db.fetch(sql, tenant_id, ids))
        return [_row_to_message(row) for row in rows]

    async def count(self, tenant_id: str) -> int:
        sql = "SELECT COUNT(*) FROM archived_messages WHERE guild_id = $1"
        value = await self._db.run("count", lambda: self._db.fetchval(sql, tenant_id))
        return int(value or 0)

    async def maintain_index(self, reindex: bool = False) -> None:
        """ANALYZE after bulk deletes; optionally rebuild the ANN index online."""
        await self._db.run("analyze", lambda: self._db.execute("ANALYZE archived_messages"))
        if reindex:
            await self._db.run(
                "reindex",
                lambda: self._db.execute(f"REINDEX INDEX CONCURRENTLY {ANN_INDEX_NAME}"),
            )
        logger.info("Index maintenance complete", reindex=reindex)


def _affected_rows(status: str | None) -> int:
    """Row count from a command status tag such as ``DELETE 42``."""
    try:
        return int((status or "").rsplit(" ", 1)[-1])
    except ValueError:
        return 0


def _row_to_message(row: Any) -> ArchivedMessage:
    """Convert an asyncpg Record to an ArchivedMessage (without embedding)."""
    attachments = row.get("attachments") or []
    if isinstance(attachments, str):
        attachments = json.loads(attachments)

    return ArchivedMessage(
        id=row["id"],
        guild_id=row["guild_id"],
        channel_id=row["channel_id"],
        author_id=row["author_id"],
        author_username=row["author_username"],
        content=row["content"],
        attachments=[AttachmentInfo.model_validate(a) for a in attachments],
        created_at=row["created_at"],
        archived_at=row["archived_at"],
    )
