"""
Opaque pagination cursors.

A cursor records the (distance, id) position of the last result on a page
plus a fingerprint of the query it belongs to, as url-safe base64 of compact
JSON. Resuming strictly after that position, with ties broken by id, gives
gapless, non-overlapping pages.
"""

import base64
import binascii
import hashlib
import json
from dataclasses import dataclass

from smaraa.errors import ValidationError
from smaraa.vectorstore.base import SearchFilter


def query_fingerprint(tenant_id: str, query: str, filters: SearchFilter | None) -> str:
    """Short stable hash of everything that defines a ranked result list."""
    payload = json.dumps(
        {
            "t": tenant_id,
            "q": query.strip(),
            "f": filters.to_payload() if filters else {},
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class Cursor:
    distance: float
    message_id: str
    fingerprint: str

    @property
    def position(self) -> tuple[float, str]:
        return (self.distance, self.message_id)


def encode_cursor(cursor: Cursor) -> str:
    raw = json.dumps(
        {"d": cursor.distance, "i": cursor.message_id, "q": cursor.fingerprint},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str, expected_fingerprint: str) -> Cursor:
    """
    Parse a cursor token and check it belongs to the current query.

    Raises:
        ValidationError: Token is malformed or was issued for another query
    """
    padded = token + "=" * (-len(token) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        cursor = Cursor(
            distance=float(data["d"]),
            message_id=str(data["i"]),
            fingerprint=str(data["q"]),
        )
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise ValidationError(f"Malformed cursor: {e}") from e

    if cursor.fingerprint != expected_fingerprint:
        raise ValidationError("Cursor does not belong to this query")
    return cursor
