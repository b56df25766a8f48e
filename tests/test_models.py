"""Tests for core data models."""

from __future__ import annotations

from lexfinder.models import IndexedDocument, Match


class TestIndexedDocument:
    """Test IndexedDocument dataclass."""

    def test_create(self) -> None:
        """Should create a document with all fields."""
        doc = IndexedDocument(
            path="/notes/a.md",
            content="cats and dogs",
            tokens=["cats", "and", "dogs"],
            content_hash="abc123",
            updated_at="2024-01-01T00:00:00+00:00",
        )

        assert doc.path == "/notes/a.md"
        assert doc.tokens == ["cats", "and", "dogs"]
        assert doc.content_hash == "abc123"

    def test_defaults(self) -> None:
        """Should default tokens to a fresh empty list."""
        first = IndexedDocument(path="/a.md", content="")
        second = IndexedDocument(path="/b.md", content="")

        assert first.tokens == []
        assert first.tokens is not second.tokens


class TestMatch:
    """Test Match dataclass."""

    def test_to_dict(self) -> None:
        """Should serialise to the wire shape."""
        match = Match(path="/notes/a.md", score=0.5, snippet="cats")

        assert match.to_dict() == {"path": "/notes/a.md", "score": 0.5, "snippet": "cats"}
