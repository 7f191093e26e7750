"""
Abstract base class and data models for the message vector store.

Defines the adapter contract that the archive, search and retention
components depend on, plus shared filter and candidate structures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from smaraa.archive.schemas import ArchivedMessage, ensure_utc


@dataclass(frozen=True)
class SearchFilter:
    """
    Structured predicates for nearest-neighbor search.

    All filters are optional and combined with AND logic. Time bounds apply
    to the original message timestamp and are inclusive.

    Attributes:
        from_user_id: Only messages by this author
        channel_id: Only messages from this channel
        before: Only messages created at or before this time
        after: Only messages created at or after this time
    """

    from_user_id: str | None = None
    channel_id: str | None = None
    before: datetime | None = None
    after: datetime | None = None

    def __post_init__(self) -> None:
        """Normalize timestamps and validate the range."""
        if self.before is not None:
            object.__setattr__(self, "before", ensure_utc(self.before))
        if self.after is not None:
            object.__setattr__(self, "after", ensure_utc(self.after))
        if self.before is not None and self.after is not None and self.after > self.before:
            raise ValueError(
                f"after ({self.after.isoformat()}) must not be later than "
                f"before ({self.before.isoformat()})"
            )

    @property
    def is_empty(self) -> bool:
        """Check if no filters are set."""
        return (
            self.from_user_id is None
            and self.channel_id is None
            and self.before is None
            and self.after is None
        )

    def to_payload(self) -> dict[str, str]:
        """Compact, JSON-safe form for audit payloads and cache keys."""
        payload: dict[str, str] = {}
        if self.from_user_id is not None:
            payload["fromUserId"] = self.from_user_id
        if self.channel_id is not None:
            payload["channelId"] = self.channel_id
        if self.before is not None:
            payload["before"] = self.before.isoformat()
        if self.after is not None:
            payload["after"] = self.after.isoformat()
        return payload


@dataclass(frozen=True)
class Neighbor:
    """
    A nearest-neighbor candidate.

    Attributes:
        message: The stored message (embedding omitted)
        distance: Cosine distance to the query vector (lower is closer)
    """

    message: ArchivedMessage
    distance: float

    @property
    def position(self) -> tuple[float, str]:
        """Ranking key: distance ascending, then message id ascending."""
        return (self.distance, self.message.id)


class MessageVectorStore(ABC):
    """
    Typed query interface over a store with vector similarity operators.

    Every read and delete is scoped to one tenant; implementations must
    never drop the tenant predicate.
    """

    @abstractmethod
    async def upsert_message(self, message: ArchivedMessage) -> bool:
        """
        Insert a message unless (guild_id, id) already exists.

        Returns:
            True if a row was created, False if it already existed
        """
        ...

    @abstractmethod
    async def nearest_neighbors(
        self,
        tenant_id: str,
        query_vector: list[float],
        filters: SearchFilter | None = None,
        limit: int = 10,
        after: tuple[float, str] | None = None,
    ) -> list[Neighbor]:
        """
        Return candidates ordered by (cosine distance, id) ascending.

        Args:
            tenant_id: Tenant whose rows are searched (mandatory predicate)
            query_vector: Query embedding
            filters: Optional author/channel/time predicates
            limit: Maximum candidates to return
            after: Resume strictly after this (distance, id) position
        """
        ...

    @abstractmethod
    async def delete_older_than(self, tenant_id: str, cutoff: datetime) -> int:
        """Delete rows archived before ``cutoff``; return the count removed."""
        ...

    @abstractmethod
    async def get_by_ids(self, tenant_id: str, ids: list[str]) -> list[ArchivedMessage]:
        """Fetch messages by id within one tenant (embeddings omitted)."""
        ...

    @abstractmethod
    async def count(self, tenant_id: str) -> int:
        """Number of archived rows for a tenant."""
        ...

    async def maintain_index(self, reindex: bool = False) -> None:
        """Refresh planner statistics / rebuild the ANN index after bulk deletes."""
        return None
