"""Append-only audit log."""

from smaraa.audit.log import SYSTEM_ACTOR, AuditLog
from smaraa.audit.schemas import AuditAction, AuditLogEntry

__all__ = ["SYSTEM_ACTOR", "AuditAction", "AuditLog", "AuditLogEntry"]
