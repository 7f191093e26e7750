"""
Schema bootstrap for the archive tables.

Creates the three logical tables (archived messages with a vector column,
per-tenant settings, append-only audit log), the ANN index over the
embedding column and the composite range indexes used by filtered search.
The vector column is sized from the configured embedding model.
"""

import logging

from smaraa.storage.database import Database

logger = logging.getLogger(__name__)

SCHEMA_TEMPLATE = """
CREATE EXTENSION IF NOT EXISTS vector;

CREATE TABLE IF NOT EXISTS archived_messages (
    guild_id TEXT NOT NULL,
    id TEXT NOT NULL,
    channel_id TEXT NOT NULL,
    author_id TEXT NOT NULL,
    author_username TEXT NOT NULL,
    content TEXT NOT NULL,
    attachments JSONB NOT NULL DEFAULT '[]',
    created_at TIMESTAMPTZ NOT NULL,
    archived_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    embedding vector({dimensions}) NOT NULL,
    PRIMARY KEY (guild_id, id)
);

CREATE TABLE IF NOT EXISTS settings (
    guild_id TEXT PRIMARY KEY,
    can_archive_role_ids TEXT[] NOT NULL DEFAULT '{{}}',
    can_search_role_ids TEXT[] NOT NULL DEFAULT '{{}}',
    visibility TEXT NOT NULL DEFAULT 'public',
    retention_days INT CHECK (retention_days IS NULL OR retention_days > 0)
);

CREATE TABLE IF NOT EXISTS audit_log (
    id BIGSERIAL PRIMARY KEY,
    guild_id TEXT NOT NULL,
    actor_id TEXT NOT NULL,
    action TEXT NOT NULL,
    payload JSONB NOT NULL DEFAULT '{{}}',
    ts TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- ANN index (cosine distance)
CREATE INDEX IF NOT EXISTS archived_messages_embedding_idx
    ON archived_messages
    USING hnsw (embedding vector_cosine_ops)
    WITH (m = 16, ef_construction = 64);

-- Composite range indexes for filtered search
CREATE INDEX IF NOT EXISTS archived_messages_guild_channel_created_idx
    ON archived_messages (guild_id, channel_id, created_at DESC);
CREATE INDEX IF NOT EXISTS archived_messages_guild_author_created_idx
    ON archived_messages (guild_id, author_id, created_at DESC);
CREATE INDEX IF NOT EXISTS archived_messages_guild_created_idx
    ON archived_messages (guild_id, created_at DESC);
CREATE INDEX IF NOT EXISTS archived_messages_guild_archived_idx
    ON archived_messages (guild_id, archived_at);

CREATE INDEX IF NOT EXISTS audit_log_guild_ts_idx ON audit_log (guild_id, ts DESC);
CREATE INDEX IF NOT EXISTS audit_log_actor_ts_idx ON audit_log (actor_id, ts DESC);
"""


def render_schema(dimensions: int) -> str:
    """Render the DDL for a given embedding dimension."""
    if dimensions < 1:
        raise ValueError(f"Embedding dimension must be positive, got {dimensions}")
    return SCHEMA_TEMPLATE.format(dimensions=int(dimensions))


async def create_tables(database: Database, dimensions: int) -> None:
    """
    Create tables and indexes if they don't exist.

    Args:
        database: Connected Database instance
        dimensions: Embedding vector dimension for the archived_messages column
    """
    await database.execute(render_schema(dimensions))
    logger.info(f"Schema ensured (embedding dimension {dimensions})")
