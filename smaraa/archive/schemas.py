"""
Archived message schema.

An ArchivedMessage is created once, on the first successful archive
request for its (guild_id, id) pair, and is never mutated afterwards;
only retention or an explicit admin action removes it.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AttachmentInfo(BaseModel):
    """
    Attachment metadata (the file itself is never stored).

    Accepts both the chat platform's camelCase keys and snake_case keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    filename: str = ""
    content_type: str = Field(default=DEFAULT_CONTENT_TYPE, alias="contentType")
    size: int = Field(default=0, ge=0)
    url: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return str(value).strip()

    @field_validator("filename", "url")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("content_type", mode="before")
    @classmethod
    def _default_content_type(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_CONTENT_TYPE
        return str(value).strip().lower()

    def to_json(self) -> dict[str, Any]:
        """Storage form, using the platform's key names."""
        return {
            "id": self.id,
            "filename": self.filename,
            "contentType": self.content_type,
            "size": self.size,
            "url": self.url,
        }


class ArchiveRecord(BaseModel):
    """An archive request as received from the chat-platform collaborator."""

    tenant_id: str
    message_id: str
    channel_id: str
    author_id: str
    author_username: str = ""
    content: str
    attachments: list[AttachmentInfo] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utc_now)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ArchivedMessage(BaseModel):
    """A stored archive row."""

    id: str
    guild_id: str
    channel_id: str
    author_id: str
    author_username: str
    content: str
    attachments: list[AttachmentInfo] = Field(default_factory=list)
    created_at: datetime
    archived_at: datetime = Field(default_factory=_utc_now)
    embedding: list[float] | None = None

    @field_validator("created_at", "archived_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def from_record(
        cls,
        record: ArchiveRecord,
        embedding: list[float],
        archived_at: datetime | None = None,
    ) -> "ArchivedMessage":
        return cls(
            id=record.message_id,
            guild_id=record.tenant_id,
            channel_id=record.channel_id,
            author_id=record.author_id,
            author_username=record.author_username,
            content=record.content,
            attachments=record.attachments,
            created_at=record.timestamp,
            archived_at=archived_at or _utc_now(),
            embedding=embedding,
        )


class ArchiveResult(BaseModel):
    """Outcome of one archive request. ``created=False`` is a duplicate no-op."""

    message_id: str
    created: bool
