"""
Request and response models for the archive API.

Bodies use the chat platform's camelCase field names; snake_case names are
accepted too.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from smaraa.archive.schemas import ArchiveRecord, AttachmentInfo
from smaraa.audit.schemas import AuditLogEntry
from smaraa.errors import ValidationError
from smaraa.guilds.permissions import Actor
from smaraa.guilds.schemas import GuildSettings
from smaraa.search.schemas import SearchResult
from smaraa.vectorstore.base import SearchFilter


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActorFields(CamelModel):
    """Caller identity resolved by the chat platform."""

    actor_id: str | None = Field(
        default=None,
        description="User performing the action",
    )
    actor_role_ids: list[str] = Field(
        default_factory=list,
        description="Role ids the user holds in the tenant",
    )

    def actor(self) -> Actor | None:
        if self.actor_id is None and not self.actor_role_ids:
            return None
        return Actor.of(self.actor_id or "anonymous", self.actor_role_ids)


# ── Archive ────────────────────────────────────────────────


class ArchiveRequest(ActorFields):
    """One message to archive."""

    tenant_id: str = Field(..., description="Guild id")
    message_id: str = Field(..., description="Platform message id (dedup key)")
    channel_id: str = Field(..., description="Channel the message was posted in")
    author_id: str = Field(..., description="Message author id")
    author_username: str = Field(default="", description="Author display name")
    content: str = Field(..., description="Message text")
    attachments: list[AttachmentInfo] = Field(
        default_factory=list,
        description="Attachment metadata (files are not stored)",
    )
    timestamp: dt.datetime | None = Field(
        default=None,
        description="Original message time (defaults to now)",
    )

    def to_record(self) -> ArchiveRecord:
        fields: dict[str, Any] = {
            "tenant_id": self.tenant_id,
            "message_id": self.message_id,
            "channel_id": self.channel_id,
            "author_id": self.author_id,
            "author_username": self.author_username,
            "content": self.content,
            "attachments": self.attachments,
        }
        if self.timestamp is not None:
            fields["timestamp"] = self.timestamp
        return ArchiveRecord(**fields)


class ArchiveResponse(CamelModel):
    created: bool = Field(..., description="False when the message was already archived")
    message_id: str


class ArchiveBatchRequest(ActorFields):
    """Messages archived together (a thread or a backfill)."""

    records: list[ArchiveRequest] = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Messages to archive (1-100)",
    )


class ArchiveBatchResponse(CamelModel):
    results: list[ArchiveResponse]
    created: int = Field(..., description="Number of newly archived messages")


# ── Search ─────────────────────────────────────────────────


class SearchFilterModel(CamelModel):
    from_user_id: str | None = None
    channel_id: str | None = None
    before: dt.datetime | None = None
    after: dt.datetime | None = None

    def to_filter(self) -> SearchFilter | None:
        try:
            search_filter = SearchFilter(
                from_user_id=self.from_user_id,
                channel_id=self.channel_id,
                before=self.before,
                after=self.after,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return None if search_filter.is_empty else search_filter


class SearchRequest(ActorFields):
    tenant_id: str = Field(..., description="Guild id")
    query: str = Field(..., description="Search text")
    limit: int | None = Field(default=None, description="Page size")
    filter: SearchFilterModel | None = Field(default=None, description="Optional predicates")
    cursor: str | None = Field(default=None, description="nextCursor from the previous page")


class SearchResultItem(CamelModel):
    id: str
    content: str
    author_id: str
    author_username: str
    channel_id: str
    created_at: dt.datetime
    score: float

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultItem":
        return cls(
            id=result.id,
            content=result.content,
            author_id=result.author_id,
            author_username=result.author_username,
            channel_id=result.channel_id,
            created_at=result.created_at,
            score=round(result.score, 4),
        )


class SearchResponse(CamelModel):
    results: list[SearchResultItem]
    next_cursor: str | None = None


# ── Summarize ──────────────────────────────────────────────


class SummarizeRequest(ActorFields):
    tenant_id: str = Field(..., description="Guild id")
    query: str = Field(..., description="Question to summarize the archive for")
    max_documents: int | None = Field(default=None, description="Documents to retrieve")


class SummarizeResponse(CamelModel):
    summary: str
    references: list[str]
    confidence: float
    degraded: bool


# ── Admin ──────────────────────────────────────────────────


class SettingsUpdateRequest(ActorFields):
    """Only fields present in the body are changed. ``retentionDays: null`` clears it."""

    tenant_id: str = Field(..., description="Guild id")
    can_archive_role_ids: list[str] | None = None
    can_search_role_ids: list[str] | None = None
    visibility: str | None = None
    retention_days: int | None = None

    def changes(self) -> dict[str, Any]:
        provided = self.model_fields_set
        changes: dict[str, Any] = {}
        for name in ("can_archive_role_ids", "can_search_role_ids", "visibility"):
            if name in provided and getattr(self, name) is not None:
                changes[name] = getattr(self, name)
        if "retention_days" in provided:
            changes["retention_days"] = self.retention_days
        return changes


class SettingsResponse(CamelModel):
    tenant_id: str
    can_archive_role_ids: list[str]
    can_search_role_ids: list[str]
    visibility: str
    retention_days: int | None = None

    @classmethod
    def from_settings(cls, settings: GuildSettings) -> "SettingsResponse":
        return cls(
            tenant_id=settings.tenant_id,
            can_archive_role_ids=settings.can_archive_role_ids,
            can_search_role_ids=settings.can_search_role_ids,
            visibility=settings.visibility,
            retention_days=settings.retention_days,
        )


class AuditEntryItem(CamelModel):
    id: int | None
    tenant_id: str
    actor_id: str
    action: str
    payload: dict[str, Any]
    ts: dt.datetime

    @classmethod
    def from_entry(cls, entry: AuditLogEntry) -> "AuditEntryItem":
        return cls(
            id=entry.id,
            tenant_id=entry.tenant_id,
            actor_id=entry.actor_id,
            action=entry.action.value,
            payload=entry.payload,
            ts=entry.ts,
        )


class AuditListResponse(CamelModel):
    entries: list[AuditEntryItem]


# ── Health / errors ────────────────────────────────────────


class ComponentHealth(BaseModel):
    """Health status for a single infrastructure component."""

    status: str = Field(..., description="healthy, degraded, or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency in milliseconds")
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    breakers: dict[str, str] = Field(
        default_factory=dict,
        description="Circuit breaker state per provider path",
    )
    cache_available: bool = False
    version: str = "0.1.0"


class ErrorResponse(BaseModel):
    detail: str
    error_type: str
    retryable: bool = False
