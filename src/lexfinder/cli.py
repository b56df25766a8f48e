"""Command line interface for LexFinder."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from lexfinder.config import DEFAULT_EXTENSIONS, AppConfig
from lexfinder.errors import LexFinderError
from lexfinder.index.indexer import Indexer
from lexfinder.index.scheduler import IndexScheduler
from lexfinder.index.search import Searcher
from lexfinder.index.storage import SQLiteIndexStore
from lexfinder.utils.text import make_snippet

console = Console()
app = typer.Typer(help="LexFinder - incremental lexical search over watched folders")

LOGGER = logging.getLogger("lexfinder")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_config(
    db: Path | None,
    watch: List[str] | None = None,
    ext: List[str] | None = None,
    interval: float | None = None,
    limit: int | None = None,
) -> AppConfig:
    defaults = AppConfig()
    return AppConfig(
        db_path=db if db is not None else defaults.db_path,
        watch_paths=list(watch or []),
        extensions=tuple(ext) if ext else defaults.extensions,
        scan_interval=interval if interval is not None else defaults.scan_interval,
        search_limit=limit if limit is not None else defaults.search_limit,
    )


def _watch_option() -> Any:
    return typer.Option(None, "--watch", "-w", help="Directory to watch (repeatable)")


def _ext_option() -> Any:
    return typer.Option(
        None, "--ext", help=f"Indexable extension (repeatable, default {DEFAULT_EXTENSIONS[0]})"
    )


def _db_option() -> Any:
    return typer.Option(None, "--db", help="SQLite database path")


def _verbose_option() -> Any:
    return typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _limit_option() -> Any:
    return typer.Option(None, "--limit", help="Number of results to return (default 5)")


@app.command()
def scan(
    watch: List[str] = _watch_option(),
    ext: List[str] = _ext_option(),
    db: Path = _db_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Scan the watched folders once and reconcile the index."""
    _setup_logging(verbose)
    config = _build_config(db, watch, ext)
    if not config.watch_paths:
        console.print("[yellow]No watch paths given.[/yellow]")
        return

    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)
    store = SQLiteIndexStore(resolved_db)
    indexer = Indexer(store, config.watch_paths, extensions=config.extensions, logger=LOGGER)

    console.print(f"Indexing into [bold]{resolved_db}[/bold]...")
    try:
        stats = indexer.scan_once()
    except LexFinderError as exc:
        console.print(f"[red]Scan failed:[/red] {exc}")
        raise typer.Exit(code=1)
    finally:
        store.close()

    console.print(
        f"Inserted: {stats.inserted}, updated: {stats.updated}, "
        f"skipped: {stats.skipped}, removed: {stats.removed}"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    db: Path = _db_option(),
    limit: Optional[int] = _limit_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Execute a lexical search against the index."""
    _setup_logging(verbose)
    config = _build_config(db, limit=limit)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")

    store = SQLiteIndexStore(resolved_db)
    try:
        searcher = Searcher(store, default_limit=config.search_limit, logger=LOGGER)
        results = searcher.search(query)
    finally:
        store.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Snippet")

    for result in results:
        snippet = result.snippet.replace("\n", " ")
        table.add_row(f"{result.score:.4f}", result.path, make_snippet(snippet, 180))

    console.print(table)


@app.command()
def documents(db: Path = _db_option()) -> None:
    """List indexed documents and the last scan of each watch root."""
    config = _build_config(db)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        console.print("[yellow]Database not found, nothing indexed yet.[/yellow]")
        return

    store = SQLiteIndexStore(resolved_db)
    try:
        docs = store.list_documents()
        roots = store.list_root_scans()
        stats = store.get_stats()
    finally:
        store.close()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Updated")
    table.add_column("Tokens")
    for doc in docs:
        table.add_row(doc.path, doc.updated_at, str(len(doc.tokens)))
    console.print(table)

    if roots:
        root_table = Table(show_header=True, header_style="bold magenta")
        root_table.add_column("Watch root")
        root_table.add_column("Last scan")
        for root, last_indexed in roots.items():
            root_table.add_row(root, last_indexed)
        console.print(root_table)
    console.print(
        f"{stats['document_count']} documents, last indexed: {stats['last_indexed'] or 'never'}"
    )


@app.command("watch")
def watch_command(
    watch: List[str] = _watch_option(),
    ext: List[str] = _ext_option(),
    db: Path = _db_option(),
    interval: float = typer.Option(10.0, help="Seconds between scans"),
    verbose: bool = _verbose_option(),
) -> None:
    """Keep the index current by rescanning on an interval until interrupted."""
    _setup_logging(verbose)
    config = _build_config(db, watch, ext, interval)
    if not config.watch_paths:
        raise typer.BadParameter("At least one --watch path is required")

    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)
    store = SQLiteIndexStore(resolved_db)
    indexer = Indexer(store, config.watch_paths, extensions=config.extensions, logger=LOGGER)
    scheduler = IndexScheduler(indexer, interval=config.scan_interval, logger=LOGGER)

    console.print(f"Watching {len(config.watch_paths)} folder(s), Ctrl-C to stop")
    scheduler.start()
    try:
        while not scheduler.stop_event.is_set():
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
        store.close()


@app.command()
def serve(
    watch: List[str] = _watch_option(),
    ext: List[str] = _ext_option(),
    db: Path = _db_option(),
    interval: float = typer.Option(10.0, help="Seconds between scans"),
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    limit: Optional[int] = _limit_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Start the HTTP search service with background indexing."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from lexfinder.web.app import create_app

    _setup_logging(verbose)
    config = _build_config(db, watch, ext, interval, limit)
    if not config.watch_paths:
        console.print("[yellow]Warning: no watch paths, the index will stay empty.[/yellow]")

    console.print(f"Starting LexFinder on http://{host}:{port}")
    uvicorn.run(
        create_app(config, logger=LOGGER),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
