"""Per-tenant settings and the permission gate."""

from smaraa.guilds.permissions import (
    ANONYMOUS_ACTOR,
    Actor,
    PermissionGate,
    can_archive,
    can_search,
    require_archive,
    require_search,
)
from smaraa.guilds.repository import UNSET, GuildSettingsRepository
from smaraa.guilds.schemas import VALID_VISIBILITY, GuildSettings
from smaraa.guilds.service import GuildSettingsService

__all__ = [
    "ANONYMOUS_ACTOR",
    "Actor",
    "GuildSettings",
    "GuildSettingsRepository",
    "GuildSettingsService",
    "PermissionGate",
    "UNSET",
    "VALID_VISIBILITY",
    "can_archive",
    "can_search",
    "require_archive",
    "require_search",
]
