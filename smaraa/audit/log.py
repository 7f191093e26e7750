"""Append-only audit ledger.

Each component calls ``record`` explicitly at its operation boundary. The
repository exposes no update or delete operation.
"""

import json
import logging
from typing import Any

from smaraa.audit.schemas import AuditAction, AuditLogEntry
from smaraa.storage.database import Database

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


class AuditLog:
    """Repository for the ``audit_log`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def record(
        self,
        tenant_id: str,
        actor_id: str,
        action: AuditAction,
        payload: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        """Append one entry.

        Args:
            tenant_id: Tenant the action happened in.
            actor_id: Acting user, or ``system``.
            action: Action kind.
            payload: JSON-serializable metadata.

        Returns:
            The stored entry with its id and timestamp.
        """
        entry = AuditLogEntry(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action=action,
            payload=payload or {},
        )
        sql = """
            INSERT INTO audit_log (guild_id, actor_id, action, payload, ts)
            VALUES ($1, $2, $3, $4::jsonb, $5)
            RETURNING id, ts
        """
        row = await self._db.run(
            "audit_record",
            lambda: self._db.fetchrow(
                sql,
                entry.tenant_id,
                entry.actor_id,
                entry.action.value,
                json.dumps(entry.payload, default=str),
                entry.ts,
            ),
            idempotent=False,
        )
        logger.debug(f"Audit {action.value} tenant={tenant_id} actor={actor_id}")
        return AuditLogEntry(
            tenant_id=entry.tenant_id,
            actor_id=entry.actor_id,
            action=entry.action,
            payload=entry.payload,
            ts=row["ts"],
            id=row["id"],
        )

    async def list_recent(
        self,
        tenant_id: str,
        *,
        limit: int = 50,
        action: AuditAction | None = None,
    ) -> list[AuditLogEntry]:
        """Most recent entries for a tenant, newest first."""
        conditions = ["guild_id = $1"]
        params: list[Any] = [tenant_id]
        if action is not None:
            conditions.append("action = $2")
            params.append(action.value)
        params.append(limit)

        sql = f"""
            SELECT id, guild_id, actor_id, action, payload, ts
            FROM audit_log
            WHERE {" AND ".join(conditions)}
            ORDER BY ts DESC, id DESC
            LIMIT ${len(params)}
        """
        rows = await self._db.run("audit_list", lambda: self._db.fetch(sql, *params))
        return [_row_to_entry(row) for row in rows]


def _row_to_entry(row: Any) -> AuditLogEntry:
    """Convert an asyncpg Record to an AuditLogEntry."""
    payload = row["payload"]
    if isinstance(payload, str):
        payload = json.loads(payload)
    return AuditLogEntry(
        id=row["id"],
        tenant_id=row["guild_id"],
        actor_id=row["actor_id"],
        action=AuditAction(row["action"]),
        payload=payload or {},
        ts=row["ts"],
    )
