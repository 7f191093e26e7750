"""Tests for generation parsing, confidence and prompt rendering."""

from datetime import datetime, timezone

import pytest

from smaraa.archive.schemas import ArchivedMessage
from smaraa.summarize.prompts import SUMMARY_PROMPT, render_document, render_snippet
from smaraa.summarize.service import parse_generation, retrieval_confidence
from smaraa.vectorstore.base import Neighbor


def _neighbor(message_id: str, distance: float) -> Neighbor:
    message = ArchivedMessage(
        id=message_id,
        guild_id="g1",
        channel_id="c1",
        author_id="u1",
        author_username="alice",
        content="text",
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    return Neighbor(message=message, distance=distance)


class TestParseGeneration:
    def test_json_response(self):
        summary, refs = parse_generation(
            '{"summary": "Ships Friday.", "references": ["m2", "m1", "m2"]}',
            ["m1", "m2"],
        )
        assert summary == "Ships Friday."
        assert refs == ["m2", "m1"]

    def test_fenced_json(self):
        raw = '```json\n{"summary": "Done.", "references": ["m1"]}\n```'
        assert parse_generation(raw, ["m1"]) == ("Done.", ["m1"])

    def test_plain_text_scanned_for_markers(self):
        summary, refs = parse_generation(
            "Deploy is blocked [m3], see also [m1] and [nope].",
            ["m1", "m3"],
        )
        assert summary == "Deploy is blocked [m3], see also [m1] and [nope]."
        assert refs == ["m3", "m1"]

    def test_json_without_references_uses_inline_markers(self):
        summary, refs = parse_generation('{"summary": "See [m1]."}', ["m1"])
        assert summary == "See [m1]."
        assert refs == ["m1"]

    def test_unknown_ids_dropped(self):
        _, refs = parse_generation('{"summary": "x", "references": ["zzz"]}', ["m1"])
        assert refs == []


class TestRetrievalConfidence:
    def test_mean_relevance(self):
        assert retrieval_confidence([_neighbor("a", 0.2), _neighbor("b", 0.4)]) == pytest.approx(0.7)

    def test_clamped(self):
        assert retrieval_confidence([_neighbor("a", 1.6)]) == 0.0

    def test_empty(self):
        assert retrieval_confidence([]) == 0.0


class TestPrompts:
    def test_document_line_flattens_whitespace(self):
        assert render_document("m1", "alice", "line one\n\nline two", 100) == "[m1] alice: line one line two"

    def test_document_line_unknown_author(self):
        assert render_document("m1", "", "hi", 100) == "[m1] unknown: hi"

    def test_snippet_truncation(self):
        line = render_snippet("m1", "abcdefghij", 5)
        assert line == "- [m1] abcd…"

    def test_summary_prompt_formats(self):
        prompt = SUMMARY_PROMPT.format(query="q?", documents="[m1] a: b")
        assert '"summary"' in prompt
        assert "[m1] a: b" in prompt
