"""Text helpers for lexical indexing."""

from __future__ import annotations

import re
from typing import Iterable, List

_TOKEN_RE = re.compile(r"[A-Za-z0-9]+")

SNIPPET_CHARS = 220
ELLIPSIS = "..."


def unique(tokens: Iterable[str]) -> List[str]:
    """Drop empty and repeated tokens, keeping first occurrences in order."""
    seen: set[str] = set()
    out: List[str] = []
    for token in tokens:
        if not token or token in seen:
            continue
        seen.add(token)
        out.append(token)
    return out


def tokenize(text: str) -> List[str]:
    """Split text into lowercase ASCII alphanumeric tokens.

    Any character outside ``[A-Za-z0-9]`` is a separator. Tokens are matched
    before lowercasing, so non-ASCII letters never fold into ASCII ones.
    Documents and queries go through this same function so their token
    sets are comparable.
    """
    if not text:
        return []
    return unique(token.lower() for token in _TOKEN_RE.findall(text))


def make_snippet(content: str, max_chars: int = SNIPPET_CHARS) -> str:
    """Trim content and cut it to ``max_chars``, marking the cut with an ellipsis."""
    content = content.strip()
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + ELLIPSIS
