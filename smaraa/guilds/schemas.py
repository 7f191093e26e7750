"""Schema definitions for per-tenant (guild) settings.

Maps 1:1 to the ``settings`` table. One row per tenant, created lazily
with defaults on first reference.
"""

from dataclasses import dataclass, field
from typing import Any

VALID_VISIBILITY: frozenset[str] = frozenset({"public", "restricted"})


def _dedupe(role_ids: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for role_id in role_ids:
        role_id = str(role_id).strip()
        if role_id and role_id not in seen:
            seen.add(role_id)
            result.append(role_id)
    return result


@dataclass
class GuildSettings:
    """Permission and retention policy for one tenant.

    Attributes:
        tenant_id: Guild identifier.
        can_archive_role_ids: Roles allowed to archive (empty = everyone).
        can_search_role_ids: Roles allowed to search/summarize (empty = everyone).
        visibility: ``public`` or ``restricted``. A rendering hint for the
            chat-platform client (channel vs. ephemeral replies).
        retention_days: Days to keep archived messages (None = forever).
    """

    tenant_id: str
    can_archive_role_ids: list[str] = field(default_factory=list)
    can_search_role_ids: list[str] = field(default_factory=list)
    visibility: str = "public"
    retention_days: int | None = None

    def __post_init__(self) -> None:
        self.can_archive_role_ids = _dedupe(self.can_archive_role_ids)
        self.can_search_role_ids = _dedupe(self.can_search_role_ids)
        if self.visibility not in VALID_VISIBILITY:
            raise ValueError(
                f"Invalid visibility {self.visibility!r}. "
                f"Must be one of: {sorted(VALID_VISIBILITY)}"
            )
        if self.retention_days is not None and self.retention_days < 1:
            raise ValueError(
                f"Invalid retention_days {self.retention_days}. Must be >= 1 or unset."
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "canArchiveRoleIds": list(self.can_archive_role_ids),
            "canSearchRoleIds": list(self.can_search_role_ids),
            "visibility": self.visibility,
            "retentionDays": self.retention_days,
        }
