"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md",)
DEFAULT_SCAN_INTERVAL = 10.0
DEFAULT_SEARCH_LIMIT = 5


def _get_default_db_path() -> Path:
    """Get the default database path for the current execution context."""
    # When running from a checkout, prefer local data/ if it exists
    local_db = Path("data/lexfinder.db")
    if local_db.exists():
        return local_db
    return Path.home() / ".lexfinder" / "lexfinder.db"


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    watch_paths: list[Path] = field(default_factory=list)
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    scan_interval: float = DEFAULT_SCAN_INTERVAL
    search_limit: int = DEFAULT_SEARCH_LIMIT
    snippet_chars: int = 220

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        self.watch_paths = [Path(p).expanduser() for p in self.watch_paths if str(p).strip()]
        self.extensions = tuple(ext if ext.startswith(".") else f".{ext}" for ext in self.extensions)
        if self.scan_interval <= 0:
            raise ValueError("scan_interval must be positive")
        if self.search_limit <= 0:
            self.search_limit = DEFAULT_SEARCH_LIMIT

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
