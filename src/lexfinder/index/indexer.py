"""Incremental indexing pipeline."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from lexfinder.config import DEFAULT_EXTENSIONS
from lexfinder.errors import ScanCancelledError
from lexfinder.index.storage import SQLiteIndexStore
from lexfinder.utils.files import hash_content, iter_indexable_paths, read_document
from lexfinder.utils.text import tokenize

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    removed: int = 0

    def increment(self, status: str) -> None:
        if status == "inserted":
            self.inserted += 1
        elif status == "updated":
            self.updated += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            raise ValueError(f"Unknown index status: {status}")

    def as_dict(self) -> dict[str, int]:
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "removed": self.removed,
        }


class Indexer:
    """Keeps the store in line with the files under a fixed set of watch roots.

    A scan upserts changed files and, only after every root has been walked
    without error, deletes entries whose files were not seen. Scans are
    serialized: a second caller blocks until the running pass finishes.
    """

    def __init__(
        self,
        store: SQLiteIndexStore,
        watch_paths: Sequence[Path | str],
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.watch_paths = tuple(
            Path(os.path.abspath(os.path.expanduser(str(p))))
            for p in watch_paths
            if str(p).strip()
        )
        self.extensions = tuple(extensions)
        self.logger = logger or LOGGER
        self._scan_lock = threading.Lock()

    def scan_once(self, cancel_event: threading.Event | None = None) -> ScanStats:
        """Run one full pass over every watch root and reconcile deletions.

        Raises:
            WalkError: a root is missing or a file could not be listed or read.
            StoreError: the store rejected a read or write.
            ScanCancelledError: ``cancel_event`` was set before the pass finished.
        """
        with self._scan_lock:
            return self._scan(cancel_event)

    def _scan(self, cancel_event: threading.Event | None) -> ScanStats:
        stats = ScanStats()
        if not self.watch_paths:
            return stats

        seen: set[str] = set()
        for root in self.watch_paths:
            for path in iter_indexable_paths(root, self.extensions):
                self._check_cancelled(cancel_event)
                seen.add(str(path))
                stats.increment(self._index_file(path))

        self._check_cancelled(cancel_event)
        stats.removed = self._remove_missing(seen)
        for root in self.watch_paths:
            self.store.record_root_scan(str(root))

        self.logger.info("Scan complete: %s", stats.as_dict())
        return stats

    def _check_cancelled(self, cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelledError("scan cancelled")

    def _index_file(self, path: Path) -> str:
        """Index a single file, skipping it when its content hash is unchanged."""
        data, content = read_document(path)
        content_hash = hash_content(data)
        previous = self.store.get_hash(str(path))
        if previous == content_hash:
            self.logger.debug("Unchanged: %s", path)
            return "skipped"

        tokens = tokenize(content)
        self.store.upsert_document(str(path), content, tokens, content_hash)
        self.logger.info("Indexed file: %s", path)
        return "inserted" if previous is None else "updated"

    def _remove_missing(self, seen: set[str]) -> int:
        removed = 0
        for path in sorted(self.store.list_paths() - seen):
            if self.store.delete_document(path):
                removed += 1
                self.logger.info("Removed index entry: %s", path)
        return removed
