"""
Permission gate.

Decisions are a pure function of a tenant's GuildSettings and the role set
supplied by the caller. Role membership is resolved by the chat platform,
never here.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from smaraa.errors import PermissionDenied
from smaraa.guilds.schemas import GuildSettings

if TYPE_CHECKING:
    from smaraa.guilds.repository import GuildSettingsRepository


@dataclass(frozen=True)
class Actor:
    """The user on whose behalf an operation runs."""

    actor_id: str
    role_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, actor_id: str, role_ids: Iterable[str] | None = None) -> "Actor":
        return cls(actor_id=actor_id, role_ids=frozenset(role_ids or ()))


ANONYMOUS_ACTOR = Actor(actor_id="anonymous")


def _permitted(allowed: list[str], actor_roles: Iterable[str]) -> bool:
    if not allowed:
        return True
    return not set(allowed).isdisjoint(actor_roles)


def can_archive(settings: GuildSettings, actor_roles: Iterable[str]) -> bool:
    """Empty role list means everyone may archive."""
    return _permitted(settings.can_archive_role_ids, actor_roles)


def can_search(settings: GuildSettings, actor_roles: Iterable[str]) -> bool:
    """Empty role list means everyone may search and summarize."""
    return _permitted(settings.can_search_role_ids, actor_roles)


def require_archive(settings: GuildSettings, actor: Actor) -> None:
    if not can_archive(settings, actor.role_ids):
        raise PermissionDenied(settings.tenant_id, "archive")


def require_search(settings: GuildSettings, actor: Actor) -> None:
    if not can_search(settings, actor.role_ids):
        raise PermissionDenied(settings.tenant_id, "search")


class PermissionGate:
    """
    Tenant-scoped permission checks.

    Loads the tenant's settings (creating defaults on first reference) and
    applies the pure role rules above.
    """

    def __init__(self, settings_repo: "GuildSettingsRepository") -> None:
        self._settings = settings_repo

    async def can_archive(self, tenant_id: str, actor_roles: Iterable[str]) -> bool:
        return can_archive(await self._settings.get(tenant_id), actor_roles)

    async def can_search(self, tenant_id: str, actor_roles: Iterable[str]) -> bool:
        return can_search(await self._settings.get(tenant_id), actor_roles)

    async def require_archive(self, tenant_id: str, actor: Actor) -> GuildSettings:
        settings = await self._settings.get(tenant_id)
        require_archive(settings, actor)
        return settings

    async def require_search(self, tenant_id: str, actor: Actor) -> GuildSettings:
        settings = await self._settings.get(tenant_id)
        require_search(settings, actor)
        return settings
