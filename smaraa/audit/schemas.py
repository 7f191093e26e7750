"""Schema definitions for audit log entries.

Maps 1:1 to the ``audit_log`` table. Entries are immutable facts: once
written they are never updated or deleted, retention sweeps included.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditAction(str, Enum):
    """Kinds of audited actions."""

    ARCHIVE = "archive"
    SEARCH = "search"
    SUMMARIZE = "summarize"
    SETTINGS_UPDATE = "settings-update"
    RETENTION_SWEEP = "retention-sweep"


@dataclass(frozen=True)
class AuditLogEntry:
    """A persisted audit record.

    Attributes:
        tenant_id: Tenant (guild) the action happened in.
        actor_id: Who performed it (user id, or ``system`` for sweeps).
        action: What kind of action.
        payload: Action-specific metadata, kept small (no result bodies).
        ts: When the entry was written.
        id: Database-assigned sequence number (None before insert).
    """

    tenant_id: str
    actor_id: str
    action: AuditAction
    payload: dict[str, Any] = field(default_factory=dict)
    ts: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None
