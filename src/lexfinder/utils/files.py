"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Iterator, Sequence

from lexfinder.errors import WalkError


def hash_content(data: bytes) -> str:
    """Compute the SHA256 hex digest of raw file content."""
    return hashlib.sha256(data).hexdigest()


def matches_extension(name: str, extensions: Sequence[str]) -> bool:
    """Case-insensitive suffix match against the indexable extensions."""
    lowered = name.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def iter_indexable_paths(root: Path, extensions: Sequence[str]) -> Iterator[Path]:
    """Yield indexable files under ``root``, descending into directories.

    Unlike ``Path.rglob`` this never skips a directory it cannot list:
    any error while walking is raised as :class:`WalkError`.
    """
    root = Path(root)
    if not root.exists():
        raise WalkError(f"watch root not found: {root}", root=root)
    if not root.is_dir():
        raise WalkError(f"watch root is not a directory: {root}", root=root)

    def _raise(exc: OSError) -> None:
        failed = Path(exc.filename) if exc.filename else root
        raise WalkError(f"walk {root}: {exc}", root=root, path=failed) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            if matches_extension(filename, extensions):
                yield Path(dirpath) / filename


def read_document(path: Path) -> tuple[bytes, str]:
    """Read raw bytes and their text decoding for a file."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise WalkError(f"read {path}: {exc}", path=path) from exc
    return data, data.decode("utf-8", errors="replace")
