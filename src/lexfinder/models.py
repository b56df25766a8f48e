"""Core LexFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class IndexedDocument:
    """A persisted document keyed by its absolute path."""

    path: str
    content: str
    tokens: List[str] = field(default_factory=list)
    content_hash: str = ""
    updated_at: str = ""


@dataclass(slots=True)
class Match:
    """A ranked search hit."""

    path: str
    score: float
    snippet: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "score": self.score, "snippet": self.snippet}
