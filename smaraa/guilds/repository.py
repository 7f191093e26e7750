"""Guild settings repository.

Settings rows are created lazily with defaults (``INSERT ... ON CONFLICT DO
NOTHING``) the first time a tenant is referenced, and mutated only through
``update``. Rows are never deleted while a tenant is active.
"""

import logging
from typing import Any

from smaraa.guilds.schemas import GuildSettings
from smaraa.storage.database import Database

logger = logging.getLogger(__name__)

# Sentinel distinguishing "not provided" from an explicit None (clear retention)
UNSET: Any = object()

_SELECT_COLUMNS = """
    guild_id, can_archive_role_ids, can_search_role_ids, visibility, retention_days
"""


class GuildSettingsRepository:
    """Repository for the ``settings`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, tenant_id: str) -> GuildSettings:
        """Return a tenant's settings, creating the default row if absent."""
        sql = f"""
            WITH inserted AS (
                INSERT INTO settings (guild_id)
                VALUES ($1)
                ON CONFLICT (guild_id) DO NOTHING
                RETURNING {_SELECT_COLUMNS}
            )
            SELECT {_SELECT_COLUMNS} FROM inserted
            UNION ALL
            SELECT {_SELECT_COLUMNS} FROM settings WHERE guild_id = $1
            LIMIT 1
        """
        row = await self._db.run("settings_get", lambda: self._db.fetchrow(sql, tenant_id))
        return _row_to_settings(row)

    async def update(
        self,
        tenant_id: str,
        *,
        can_archive_role_ids: list[str] | None = UNSET,
        can_search_role_ids: list[str] | None = UNSET,
        visibility: str = UNSET,
        retention_days: int | None = UNSET,
    ) -> GuildSettings:
        """Apply only the provided fields and return the updated snapshot.

        Passing ``retention_days=None`` clears the horizon (keep forever);
        omitting it leaves the current value untouched.
        """
        current = await self.get(tenant_id)
        updated = GuildSettings(
            tenant_id=tenant_id,
            can_archive_role_ids=(
                current.can_archive_role_ids
                if can_archive_role_ids is UNSET
                else list(can_archive_role_ids or [])
            ),
            can_search_role_ids=(
                current.can_search_role_ids
                if can_search_role_ids is UNSET
                else list(can_search_role_ids or [])
            ),
            visibility=current.visibility if visibility is UNSET else visibility,
            retention_days=current.retention_days if retention_days is UNSET else retention_days,
        )

        sql = f"""
            UPDATE settings
            SET can_archive_role_ids = $2,
                can_search_role_ids = $3,
                visibility = $4,
                retention_days = $5
            WHERE guild_id = $1
            RETURNING {_SELECT_COLUMNS}
        """
        row = await self._db.run(
            "settings_update",
            lambda: self._db.fetchrow(
                sql,
                tenant_id,
                updated.can_archive_role_ids,
                updated.can_search_role_ids,
                updated.visibility,
                updated.retention_days,
            ),
        )
        logger.info(f"Updated settings for tenant {tenant_id}")
        return _row_to_settings(row)

    async def list_with_retention(self) -> list[GuildSettings]:
        """All tenants that have a retention horizon configured."""
        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM settings
            WHERE retention_days IS NOT NULL
            ORDER BY guild_id
        """
        rows = await self._db.run("settings_list_retention", lambda: self._db.fetch(sql))
        return [_row_to_settings(row) for row in rows]


def _row_to_settings(row: Any) -> GuildSettings:
    """Convert an asyncpg Record to GuildSettings."""
    return GuildSettings(
        tenant_id=row["guild_id"],
        can_archive_role_ids=list(row["can_archive_role_ids"] or []),
        can_search_role_ids=list(row["can_search_role_ids"] or []),
        visibility=row["visibility"],
        retention_days=row["retention_days"],
    )
