"""Lexical search interface."""

from __future__ import annotations

import logging
from typing import Collection, Iterable, List

from lexfinder.config import DEFAULT_SEARCH_LIMIT
from lexfinder.index.storage import SQLiteIndexStore
from lexfinder.models import Match
from lexfinder.utils.text import SNIPPET_CHARS, make_snippet, tokenize

LOGGER = logging.getLogger(__name__)


def jaccard_similarity(query_tokens: Collection[str], doc_tokens: Collection[str]) -> float:
    """Return ``|Q & D| / |Q | D|`` for two token collections."""
    query_set = set(query_tokens)
    doc_set = set(doc_tokens)
    if not query_set or not doc_set:
        return 0.0
    return len(query_set & doc_set) / len(query_set | doc_set)


def resolve_limit(limit: int | None, default: int = DEFAULT_SEARCH_LIMIT) -> int:
    if limit is None or limit <= 0:
        return default
    return limit


def rank_matches(matches: Iterable[Match], limit: int | None = None) -> List[Match]:
    """Drop zero scores, sort by score descending then path ascending, and truncate."""
    ranked = sorted(
        (match for match in matches if match.score > 0),
        key=lambda match: (-match.score, match.path),
    )
    return ranked[: resolve_limit(limit)]


class Searcher:
    """High-level API to query the index store."""

    def __init__(
        self,
        store: SQLiteIndexStore,
        *,
        snippet_chars: int = SNIPPET_CHARS,
        default_limit: int = DEFAULT_SEARCH_LIMIT,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.snippet_chars = snippet_chars
        self.default_limit = resolve_limit(default_limit)
        self.logger = logger or LOGGER

    def search(self, query: str, *, limit: int | None = None) -> List[Match]:
        """Rank stored documents against ``query``.

        A missing or non-positive ``limit`` falls back to ``default_limit``.
        """
        query_tokens = set(tokenize(query))
        if not query_tokens:
            return []

        documents = self.store.list_documents(0)
        candidates = []
        for document in documents:
            score = jaccard_similarity(query_tokens, document.tokens)
            if score <= 0:
                continue
            candidates.append(Match(path=document.path, score=score, snippet=document.content))

        results = rank_matches(candidates, resolve_limit(limit, self.default_limit))
        # Snippets only for the survivors
        for match in results:
            match.snippet = make_snippet(match.snippet, self.snippet_chars)
        self.logger.debug(
            "Query %r matched %d of %d documents", query, len(candidates), len(documents)
        )
        return results
