"""FastAPI application exposing streaming repository analysis."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from datetime import timedelta
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from ..config import CompGraphConfig, load_config
from ..errors import FileFetchError, UpstreamFetchError, ValidationError
from ..events import complete_event, encode_sse, files_event, status_event
from ..logging import get_logger
from ..models import RepositoryRef
from ..session import AnalysisSession
from ..sources import GitHubSource, RepositorySource, parse_repo_url
from ..stores import CachedAnalysis, CacheStats, ResultCache
from ..streaming import stream_session

_AUTO_CACHE = object()

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

logger = get_logger("service")


class AnalyzeRequest(BaseModel):
    repoUrl: Optional[str] = None
    branch: Optional[str] = None


class FileContentRequest(BaseModel):
    repoUrl: Optional[str] = None
    filePath: Optional[str] = None
    branch: Optional[str] = None


class FileContentResponse(BaseModel):
    content: str
    filename: str
    size: int


class HealthResponse(BaseModel):
    status: str


def create_app(
    source_factory: Callable[[], RepositorySource] | None = None,
    *,
    config: CompGraphConfig | None = None,
    cache: ResultCache | None | object = _AUTO_CACHE,
) -> FastAPI:
    """Create the FastAPI application serving analysis streams."""

    settings = config or load_config(Path.cwd())

    def make_source() -> RepositorySource:
        if source_factory is not None:
            return source_factory()
        return GitHubSource.from_config(settings.github)

    result_cache: ResultCache | None
    if cache is _AUTO_CACHE:
        result_cache = _cache_from_config(settings)
    else:
        result_cache = cache  # type: ignore[assignment]

    app = FastAPI(title="compgraph", version="0.1.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze-repo")
    async def analyze_repo(payload: AnalyzeRequest) -> StreamingResponse:
        owner, name = parse_repo_url(payload.repoUrl)
        repo_url = payload.repoUrl or ""
        branch = payload.branch or "main"

        if result_cache is not None:
            loop = asyncio.get_running_loop()
            cached = await loop.run_in_executor(None, result_cache.get, repo_url, branch)
            if cached is not None:
                logger.info("Serving %s#%s from cache", repo_url, branch)
                return _event_stream(_replay_cached(cached))

        session = AnalysisSession(
            make_source(),
            RepositoryRef(owner=owner, name=name, branch=branch),
            max_files=settings.analysis.max_files,
            include_content=settings.analysis.include_content,
            exclude_segments=settings.analysis.exclude_segments,
        )
        return _event_stream(_run_session(session, repo_url, result_cache))

    @app.post("/file-content", response_model=FileContentResponse)
    async def file_content(payload: FileContentRequest) -> FileContentResponse:
        if not payload.repoUrl or not payload.filePath:
            raise ValidationError("Repository URL and file path are required")
        owner, name = parse_repo_url(payload.repoUrl)
        content = await make_source().fetch_file_content(
            owner, name, payload.filePath, payload.branch or "main"
        )
        return FileContentResponse(
            content=content,
            filename=payload.filePath.rsplit("/", 1)[-1],
            size=len(content.encode("utf-8")),
        )

    @app.get("/cache")
    async def cache_stats() -> dict[str, Any]:
        stats = CacheStats(0, 0)
        if result_cache is not None:
            stats = await asyncio.get_running_loop().run_in_executor(None, result_cache.stats)
        return {"success": True, "stats": stats.to_dict()}

    @app.delete("/cache")
    async def clear_cache() -> dict[str, Any]:
        if result_cache is not None:
            await asyncio.get_running_loop().run_in_executor(None, result_cache.clear)
        return {"success": True, "message": "Cache cleared successfully"}

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_: Any, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _: Any, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(FileFetchError)
    async def file_fetch_error_handler(_: Any, exc: FileFetchError) -> JSONResponse:
        if exc.status == 404:
            return JSONResponse(status_code=404, content={"error": "File not found"})
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.exception_handler(UpstreamFetchError)
    async def upstream_error_handler(
        _: Any, exc: UpstreamFetchError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=502, content={"error": str(exc)})

    return app


def _cache_from_config(config: CompGraphConfig) -> ResultCache | None:
    if not config.cache.enabled:
        return None
    return ResultCache(
        config.cache.directory, max_age=timedelta(hours=config.cache.max_age_hours)
    )


def _event_stream(body: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(body, media_type="text/event-stream", headers=_SSE_HEADERS)


async def _run_session(
    session: AnalysisSession, repo_url: str, cache: ResultCache | None
) -> AsyncIterator[str]:
    async with aclosing(stream_session(session)) as events:
        async for event in events:
            yield encode_sse(event)

    result = session.result
    if cache is not None and result is not None:
        try:
            await asyncio.get_running_loop().run_in_executor(None, cache.store, repo_url, result)
        except OSError as exc:
            logger.warning("Failed to cache analysis for %s: %s", repo_url, exc)


async def _replay_cached(cached: CachedAnalysis) -> AsyncIterator[str]:
    result = cached.result
    yield encode_sse(status_event("Loaded analysis from cache"))
    yield encode_sse(files_event(result.all_files, result.repository))
    yield encode_sse(
        complete_event(result.components, result.total_files, result.analyzed_files)
    )


def run_service(
    host: str = "0.0.0.0", port: int = 8000, *, config: CompGraphConfig | None = None
) -> None:  # pragma: no cover - integration path
    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
