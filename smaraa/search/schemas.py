"""Search result value objects (transient, never persisted)."""

from datetime import datetime

from pydantic import BaseModel, Field

from smaraa.vectorstore.base import Neighbor


class SearchResult(BaseModel):
    """One ranked hit. ``score`` is ``1 - cosine distance``."""

    id: str
    content: str
    author_id: str
    author_username: str
    channel_id: str
    created_at: datetime
    score: float

    @classmethod
    def from_neighbor(cls, neighbor: Neighbor) -> "SearchResult":
        message = neighbor.message
        return cls(
            id=message.id,
            content=message.content,
            author_id=message.author_id,
            author_username=message.author_username,
            channel_id=message.channel_id,
            created_at=message.created_at,
            score=1.0 - neighbor.distance,
        )


class SearchPage(BaseModel):
    """A page of results plus the cursor for the next page (None on the last)."""

    results: list[SearchResult] = Field(default_factory=list)
    next_cursor: str | None = None
