"""Message archiving."""

from smaraa.archive.schemas import (
    ArchivedMessage,
    ArchiveRecord,
    ArchiveResult,
    AttachmentInfo,
    ensure_utc,
)
from smaraa.archive.service import ArchiveStore, validate_record

__all__ = [
    "ArchiveRecord",
    "ArchiveResult",
    "ArchiveStore",
    "ArchivedMessage",
    "AttachmentInfo",
    "ensure_utc",
    "validate_record",
]
