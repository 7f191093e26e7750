"""Admin settings operation with auditing."""

from typing import Any

import structlog

from smaraa.audit.log import AuditLog
from smaraa.audit.schemas import AuditAction
from smaraa.errors import ValidationError
from smaraa.guilds.permissions import ANONYMOUS_ACTOR, Actor
from smaraa.guilds.repository import UNSET, GuildSettingsRepository
from smaraa.guilds.schemas import VALID_VISIBILITY, GuildSettings

logger = structlog.get_logger(__name__)


class GuildSettingsService:
    """Reads and updates tenant settings; every update is audited."""

    def __init__(self, repository: GuildSettingsRepository, audit: AuditLog):
        self._repo = repository
        self._audit = audit

    async def get(self, tenant_id: str) -> GuildSettings:
        if not tenant_id.strip():
            raise ValidationError("tenantId is required")
        return await self._repo.get(tenant_id)

    async def update(
        self,
        tenant_id: str,
        actor: Actor | None = None,
        *,
        can_archive_role_ids: list[str] | None = UNSET,
        can_search_role_ids: list[str] | None = UNSET,
        visibility: str = UNSET,
        retention_days: int | None = UNSET,
    ) -> GuildSettings:
        """
        Apply the provided fields and return the new snapshot.

        Raises:
            ValidationError: Empty tenant, unknown visibility, retention below one day
        """
        if not tenant_id.strip():
            raise ValidationError("tenantId is required")
        if visibility is not UNSET and visibility not in VALID_VISIBILITY:
            raise ValidationError(
                f"visibility must be one of {sorted(VALID_VISIBILITY)}, got {visibility!r}"
            )
        if retention_days is not UNSET and retention_days is not None and retention_days < 1:
            raise ValidationError(f"retentionDays must be >= 1, got {retention_days}")

        changes: dict[str, Any] = {
            name: value
            for name, value in (
                ("can_archive_role_ids", can_archive_role_ids),
                ("can_search_role_ids", can_search_role_ids),
                ("visibility", visibility),
                ("retention_days", retention_days),
            )
            if value is not UNSET
        }

        settings = await self._repo.update(tenant_id, **changes)

        actor = actor or ANONYMOUS_ACTOR
        await self._audit.record(
            tenant_id,
            actor.actor_id,
            AuditAction.SETTINGS_UPDATE,
            {"changed": sorted(changes), "settings": settings.to_dict()},
        )
        logger.info("Settings updated", tenant_id=tenant_id, changed=sorted(changes))
        return settings
