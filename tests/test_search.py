"""Tests for lexical search interface."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from lexfinder.index.indexer import Indexer
from lexfinder.index.search import Searcher, jaccard_similarity, rank_matches, resolve_limit
from lexfinder.index.storage import SQLiteIndexStore
from lexfinder.models import IndexedDocument, Match


def _doc(path: str, content: str, tokens: list[str]) -> IndexedDocument:
    return IndexedDocument(path=path, content=content, tokens=tokens, content_hash="h")


class TestJaccardSimilarity:
    """Test jaccard_similarity function."""

    def test_identity(self) -> None:
        """Should score identical non-empty sets as 1.0."""
        assert jaccard_similarity(["a", "b", "c"], ["c", "b", "a"]) == 1.0

    def test_disjoint(self) -> None:
        """Should score disjoint sets as 0."""
        assert jaccard_similarity(["a", "b"], ["c", "d"]) == 0.0

    def test_partial_overlap(self) -> None:
        """Should divide intersection by union."""
        assert jaccard_similarity(["alpha", "beta"], ["beta", "gamma"]) == pytest.approx(1 / 3)

    def test_empty_inputs(self) -> None:
        """Should score empty sets as 0."""
        assert jaccard_similarity([], ["a"]) == 0.0
        assert jaccard_similarity(["a"], []) == 0.0
        assert jaccard_similarity([], []) == 0.0

    def test_duplicates_ignored(self) -> None:
        """Should treat inputs as sets."""
        assert jaccard_similarity(["a", "a"], ["a"]) == 1.0


class TestRankMatches:
    """Test rank_matches ordering and truncation."""

    def test_sorted_by_score_descending(self) -> None:
        matches = [Match("/a", 0.2, ""), Match("/b", 0.9, ""), Match("/c", 0.5, "")]

        assert [m.path for m in rank_matches(matches, 5)] == ["/b", "/c", "/a"]

    def test_ties_broken_by_path(self) -> None:
        matches = [Match("/z", 0.5, ""), Match("/a", 0.5, ""), Match("/m", 0.5, "")]

        assert [m.path for m in rank_matches(matches, 5)] == ["/a", "/m", "/z"]

    def test_zero_scores_dropped(self) -> None:
        matches = [Match("/a", 0.0, ""), Match("/b", 0.1, "")]

        assert [m.path for m in rank_matches(matches, 5)] == ["/b"]

    def test_truncates_to_limit(self) -> None:
        matches = [Match(f"/{i}", 0.1 * (i + 1), "") for i in range(8)]

        assert len(rank_matches(matches, 3)) == 3

    def test_non_positive_limit_defaults_to_five(self) -> None:
        matches = [Match(f"/{i}", 0.5, "") for i in range(8)]

        assert len(rank_matches(matches, 0)) == 5
        assert len(rank_matches(matches, -1)) == 5
        assert len(rank_matches(matches, None)) == 5

    def test_resolve_limit(self) -> None:
        assert resolve_limit(7) == 7
        assert resolve_limit(0) == 5
        assert resolve_limit(None, default=2) == 2


class TestSearcher:
    """Test Searcher against a mocked store."""

    def test_empty_query_returns_nothing(self) -> None:
        store = MagicMock()

        assert Searcher(store).search("") == []
        assert Searcher(store).search("?!  ...") == []
        store.list_documents.assert_not_called()

    def test_scores_and_snippets(self) -> None:
        store = MagicMock()
        store.list_documents.return_value = [
            _doc("/a.md", "  cats and dogs\n", ["cats", "and", "dogs"]),
            _doc("/b.md", "fish", ["fish"]),
        ]

        results = Searcher(store).search("Dogs!")

        assert len(results) == 1
        assert results[0].path == "/a.md"
        assert results[0].score == pytest.approx(1 / 3)
        assert results[0].snippet == "cats and dogs"
        store.list_documents.assert_called_once_with(0)

    def test_long_snippet_truncated(self) -> None:
        store = MagicMock()
        content = "dogs " * 100
        store.list_documents.return_value = [_doc("/a.md", content, ["dogs"])]

        result = Searcher(store).search("dogs")[0]

        assert result.snippet == content.strip()[:220] + "..."

    def test_custom_snippet_length(self) -> None:
        store = MagicMock()
        store.list_documents.return_value = [_doc("/a.md", "dogs everywhere", ["dogs", "everywhere"])]

        result = Searcher(store, snippet_chars=4).search("dogs")[0]

        assert result.snippet == "dogs..."

    def test_limit_applied(self) -> None:
        store = MagicMock()
        store.list_documents.return_value = [
            _doc(f"/{i}.md", "dogs", ["dogs"]) for i in range(10)
        ]

        assert len(Searcher(store).search("dogs", limit=3)) == 3
        assert len(Searcher(store).search("dogs", limit=0)) == 5

    def test_default_limit(self) -> None:
        store = MagicMock()
        store.list_documents.return_value = [
            _doc(f"/{i}.md", "dogs", ["dogs"]) for i in range(10)
        ]
        searcher = Searcher(store, default_limit=2)

        assert [m.path for m in searcher.search("dogs")] == ["/0.md", "/1.md"]
        assert len(searcher.search("dogs", limit=-1)) == 2
        assert len(searcher.search("dogs", limit=4)) == 4

    def test_non_positive_default_limit_falls_back(self) -> None:
        assert Searcher(MagicMock(), default_limit=0).default_limit == 5

    def test_store_errors_propagate(self) -> None:
        store = MagicMock()
        store.list_documents.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            Searcher(store).search("dogs")


class TestEndToEnd:
    """Scan real files and search them."""

    def test_scan_search_edit_rescan(self, tmp_path: Path) -> None:
        root = tmp_path / "notes"
        root.mkdir()
        (root / "a.md").write_text("cats and dogs")
        (root / "b.md").write_text("dogs and birds")
        store = SQLiteIndexStore(tmp_path / "index.db")
        try:
            indexer = Indexer(store, [root])
            searcher = Searcher(store)
            indexer.scan_once()

            results = searcher.search("dogs", limit=5)

            assert [m.path for m in results] == [str(root / "a.md"), str(root / "b.md")]
            assert results[0].score == results[1].score
            assert results[0].score > 0
            assert [m.snippet for m in results] == ["cats and dogs", "dogs and birds"]

            (root / "a.md").write_text("cats only")
            indexer.scan_once()

            assert [m.path for m in searcher.search("dogs", limit=5)] == [str(root / "b.md")]
        finally:
            store.close()

    def test_query_uses_same_tokenizer(self, tmp_path: Path) -> None:
        root = tmp_path / "notes"
        root.mkdir()
        (root / "a.md").write_text("Hello, World!")
        store = SQLiteIndexStore(tmp_path / "index.db")
        try:
            Indexer(store, [root]).scan_once()

            results = Searcher(store).search("hello world")

            assert len(results) == 1
            assert results[0].score == 1.0
        finally:
            store.close()
