"""Exceptions raised by the indexing pipeline."""

from __future__ import annotations

from pathlib import Path


class LexFinderError(Exception):
    """Base class for LexFinder failures."""


class WalkError(LexFinderError):
    """A watch root could not be walked completely."""

    def __init__(self, message: str, *, root: Path | None = None, path: Path | None = None) -> None:
        super().__init__(message)
        self.root = root
        self.path = path


class StoreError(LexFinderError):
    """The persistent index store rejected an operation."""


class ScanCancelledError(LexFinderError):
    """A scan stopped early because it was asked to."""


class IndexNotConfiguredError(LexFinderError):
    """No indexer is attached to the service."""
