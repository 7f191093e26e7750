"""Tests for pagination cursors and query fingerprints."""

import base64
import json
from datetime import datetime, timezone

import pytest

from smaraa.errors import ValidationError
from smaraa.search.cursor import Cursor, decode_cursor, encode_cursor, query_fingerprint
from smaraa.vectorstore.base import SearchFilter


class TestQueryFingerprint:
    def test_stable(self):
        assert query_fingerprint("g1", "release notes", None) == query_fingerprint(
            "g1", "  release notes ", None
        )

    def test_depends_on_tenant_query_and_filter(self):
        base = query_fingerprint("g1", "release notes", None)
        assert query_fingerprint("g2", "release notes", None) != base
        assert query_fingerprint("g1", "release", None) != base
        assert query_fingerprint("g1", "release notes", SearchFilter(channel_id="c1")) != base

    def test_naive_and_utc_bounds_match(self):
        naive = SearchFilter(after=datetime(2026, 1, 1))
        aware = SearchFilter(after=datetime(2026, 1, 1, tzinfo=timezone.utc))
        assert query_fingerprint("g1", "q", naive) == query_fingerprint("g1", "q", aware)


class TestCursorCodec:
    def test_decode_returns_position(self):
        token = encode_cursor(Cursor(distance=0.125, message_id="m42", fingerprint="abc"))
        cursor = decode_cursor(token, "abc")
        assert cursor.position == (0.125, "m42")

    def test_token_is_url_safe_without_padding(self):
        token = encode_cursor(Cursor(distance=0.3333333333333333, message_id="m?/+", fingerprint="f"))
        assert "=" not in token
        assert "+" not in token and "/" not in token

    def test_wrong_fingerprint(self):
        token = encode_cursor(Cursor(distance=0.1, message_id="m1", fingerprint="abc"))
        with pytest.raises(ValidationError, match="does not belong"):
            decode_cursor(token, "xyz")

    def test_missing_field(self):
        token = base64.urlsafe_b64encode(json.dumps({"d": 0.1}).encode()).decode()
        with pytest.raises(ValidationError, match="Malformed"):
            decode_cursor(token, "abc")

    def test_garbage(self):
        with pytest.raises(ValidationError, match="Malformed"):
            decode_cursor("%%%", "abc")
