"""FastAPI application exposing the LexFinder index."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from lexfinder import __version__
from lexfinder.config import DEFAULT_SEARCH_LIMIT, AppConfig
from lexfinder.errors import IndexNotConfiguredError
from lexfinder.index.indexer import Indexer
from lexfinder.index.scheduler import IndexScheduler
from lexfinder.index.search import Searcher
from lexfinder.index.storage import SQLiteIndexStore

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/index")


class MatchPayload(BaseModel):
    path: str
    score: float
    snippet: str


class SearchResponse(BaseModel):
    matches: list[MatchPayload]


def _parse_limit(raw: str | None, default: int = DEFAULT_SEARCH_LIMIT) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _logger(request: Request) -> logging.Logger:
    return getattr(request.app.state, "logger", None) or LOGGER


def _require(request: Request, name: str) -> Any:
    component = getattr(request.app.state, name, None)
    if component is None:
        raise IndexNotConfiguredError("indexer not configured")
    return component


@router.get("/search", response_model=SearchResponse)
async def search_index(
    request: Request, q: str | None = None, limit: str | None = None
) -> dict[str, Any]:
    searcher: Searcher = _require(request, "searcher")
    if not q:
        raise HTTPException(status_code=400, detail="q is required")

    resolved_limit = _parse_limit(limit, searcher.default_limit)
    try:
        matches = await asyncio.to_thread(searcher.search, q, limit=resolved_limit)
    except Exception as exc:
        _logger(request).error("Index search failed: %s", exc)
        raise HTTPException(status_code=500, detail="search failed") from exc
    return {"matches": [match.to_dict() for match in matches]}


@router.post("/reindex")
async def reindex(request: Request) -> dict[str, bool]:
    scheduler: IndexScheduler = _require(request, "scheduler")
    try:
        stats = await asyncio.to_thread(scheduler.reindex)
    except Exception as exc:
        _logger(request).error("Index reindex failed: %s", exc)
        raise HTTPException(status_code=500, detail="reindex failed") from exc
    _logger(request).info("Reindex finished: %s", stats.as_dict())
    return {"ok": True}


@router.get("/documents")
async def list_documents(request: Request) -> dict[str, Any]:
    """List indexed documents, the last scan time of each root and store statistics."""
    store: SQLiteIndexStore = _require(request, "store")
    try:
        documents = await asyncio.to_thread(store.list_documents, 0)
        roots = await asyncio.to_thread(store.list_root_scans)
        stats = await asyncio.to_thread(store.get_stats)
    except Exception as exc:
        _logger(request).error("Listing indexed documents failed: %s", exc)
        raise HTTPException(status_code=500, detail="listing failed") from exc
    return {
        "documents": [{"path": doc.path, "updated_at": doc.updated_at} for doc in documents],
        "roots": [{"path": path, "last_indexed": when} for path, when in roots.items()],
        "stats": stats,
    }


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers
    )


async def _not_configured_handler(request: Request, exc: IndexNotConfiguredError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": str(exc)})


def build_app(**kwargs: Any) -> FastAPI:
    """Create a bare application with the index routes and no components attached."""
    application = FastAPI(title="LexFinder Web", version=__version__, **kwargs)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(StarletteHTTPException, _http_error_handler)
    application.add_exception_handler(IndexNotConfiguredError, _not_configured_handler)
    application.include_router(router)
    application.state.store = None
    application.state.searcher = None
    application.state.scheduler = None
    application.state.logger = None
    return application


def configure_app(
    application: FastAPI,
    *,
    store: SQLiteIndexStore | None,
    searcher: Searcher | None,
    scheduler: IndexScheduler | None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    application.state.store = store
    application.state.searcher = searcher
    application.state.scheduler = scheduler
    application.state.logger = logger
    return application


def create_app(config: AppConfig, *, logger: logging.Logger | None = None) -> FastAPI:
    """Build a fully wired application whose lifespan runs the background scanner."""
    logger = logger or LOGGER
    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    store = SQLiteIndexStore(resolved_db)
    indexer = Indexer(store, config.watch_paths, extensions=config.extensions, logger=logger)
    scheduler = IndexScheduler(indexer, interval=config.scan_interval, logger=logger)
    searcher = Searcher(
        store,
        snippet_chars=config.snippet_chars,
        default_limit=config.search_limit,
        logger=logger,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        scheduler.start()
        try:
            yield
        finally:
            await asyncio.to_thread(scheduler.stop)
            store.close()

    application = build_app(lifespan=lifespan)
    return configure_app(
        application, store=store, searcher=searcher, scheduler=scheduler, logger=logger
    )


app = build_app()
