"""SQLite-backed index store."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

from lexfinder.errors import StoreError
from lexfinder.models import IndexedDocument


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_path(path: str) -> str:
    path = str(path)
    if not path.strip():
        raise StoreError("index path is required")
    return path


class SQLiteIndexStore:
    """Persistence layer for indexed documents.

    Writes go through a single connection guarded by a lock. Reads use one
    connection per thread so searches can run while a scan is writing; in
    WAL mode they observe the last committed state.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._write_lock = threading.RLock()
        self._local = threading.local()
        self._readers: list[sqlite3.Connection] = []
        self._readers_lock = threading.Lock()
        self._closed = False
        self._in_memory = str(db_path) == ":memory:"
        try:
            self._conn = self._connect()
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"open {self.db_path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        if not self._in_memory:
            conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def close(self) -> None:
        with self._write_lock:
            if self._closed:
                return
            self._closed = True
            with self._readers_lock:
                for reader in self._readers:
                    reader.close()
                self._readers.clear()
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._write_lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        # An in-memory database only exists on the writer connection
        if self._in_memory:
            with self._write_lock:
                yield self._conn
            return
        conn = getattr(self._local, "conn", None)
        if conn is None:
            if self._closed:
                raise StoreError("store is closed")
            conn = self._connect()
            self._local.conn = conn
            with self._readers_lock:
                self._readers.append(conn)
        yield conn

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS index_entries (
                    path TEXT PRIMARY KEY,
                    content TEXT NOT NULL,
                    tokens TEXT NOT NULL,
                    content_hash TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS index_metadata (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT NOT NULL UNIQUE,
                    last_indexed TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_index_entries_updated_at
                    ON index_entries(updated_at)
                """
            )

    def upsert_document(
        self,
        path: str,
        content: str,
        tokens: Sequence[str],
        content_hash: str,
    ) -> None:
        path = _require_path(path)
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO index_entries(path, content, tokens, content_hash, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(path) DO UPDATE SET
                        content = excluded.content,
                        tokens = excluded.tokens,
                        content_hash = excluded.content_hash,
                        updated_at = excluded.updated_at
                    """,
                    (path, content, " ".join(tokens), content_hash, _utcnow()),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"upsert index entry {path}: {exc}") from exc

    def get_hash(self, path: str) -> str | None:
        """Return the stored content hash for ``path``, or None if it is not indexed."""
        path = _require_path(path)
        try:
            with self._reading() as conn:
                row = conn.execute(
                    "SELECT content_hash FROM index_entries WHERE path = ?", (path,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"get index hash {path}: {exc}") from exc
        return row["content_hash"] if row else None

    def list_paths(self) -> set[str]:
        try:
            with self._reading() as conn:
                rows = conn.execute("SELECT path FROM index_entries").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"list index paths: {exc}") from exc
        return {row["path"] for row in rows}

    def list_documents(self, limit: int = 0) -> List[IndexedDocument]:
        """List stored documents, newest first. ``limit <= 0`` returns all of them."""
        sql = (
            "SELECT path, content, tokens, content_hash, updated_at FROM index_entries "
            "ORDER BY updated_at DESC, path ASC"
        )
        params: tuple[Any, ...] = ()
        if limit > 0:
            sql += " LIMIT ?"
            params = (limit,)
        try:
            with self._reading() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"list index entries: {exc}") from exc
        return [
            IndexedDocument(
                path=row["path"],
                content=row["content"],
                tokens=row["tokens"].split(),
                content_hash=row["content_hash"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def delete_document(self, path: str) -> bool:
        """Delete a document by path. Returns True if a row was removed."""
        path = _require_path(path)
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM index_entries WHERE path = ?", (path,))
        except sqlite3.Error as exc:
            raise StoreError(f"delete index entry {path}: {exc}") from exc
        return cursor.rowcount > 0

    def record_root_scan(self, root: str) -> None:
        """Remember when a watch root last completed a successful scan."""
        root = _require_path(root)
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO index_metadata(path, last_indexed) VALUES (?, ?)
                    ON CONFLICT(path) DO UPDATE SET last_indexed = excluded.last_indexed
                    """,
                    (root, _utcnow()),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"record root scan {root}: {exc}") from exc

    def list_root_scans(self) -> Dict[str, str]:
        try:
            with self._reading() as conn:
                rows = conn.execute(
                    "SELECT path, last_indexed FROM index_metadata ORDER BY path"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"list root scans: {exc}") from exc
        return {row["path"]: row["last_indexed"] for row in rows}

    def get_stats(self) -> Dict[str, Any]:
        try:
            with self._reading() as conn:
                doc_count = conn.execute("SELECT COUNT(*) FROM index_entries").fetchone()[0]
                meta = conn.execute(
                    "SELECT COUNT(*), MAX(last_indexed) FROM index_metadata"
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"index stats: {exc}") from exc
        return {
            "document_count": doc_count,
            "root_count": meta[0],
            "last_indexed": meta[1],
        }
