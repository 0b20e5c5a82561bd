from __future__ import annotations

"""
FastAPI application for the PM standards browser.

- Data lives in a DataStore built at startup and attached to app.state
- Every read endpoint works on one data set generation
- POST /api/reload re-ingests and swaps; a failed reload keeps the old data
- Missing sources answer 404, unreadable sources 500
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .config import (
    ComparisonSummary,
    ComparisonView,
    DashboardStats,
    HealthResponse,
    ReloadResponse,
    SearchResult,
    StandardExcerpt,
    TopicResolution,
)
from .errors import DataSourceNotFound, ParseFailure
from .store import DataStore


def get_store(request: Request) -> DataStore:
    return request.app.state.store


# =============================================================================
# Error shaping
# =============================================================================

async def _not_found_handler(request: Request, exc: DataSourceNotFound) -> JSONResponse:
    logger.warning("{} {} -> 404: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=404, content={"error": str(exc)})


async def _parse_failure_handler(request: Request, exc: ParseFailure) -> JSONResponse:
    logger.error("{} {} -> 500: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


# =============================================================================
# App factory
# =============================================================================

def create_app(store: Optional[DataStore] = None) -> FastAPI:
    """
    Build the API around ``store``; a default CSV-backed store is used
    when none is given.  The store is loaded once at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting app warmup...")
        data = app.state.store.reload()
        logger.info(
            "Warmup complete: {} standards loaded",
            "no" if data.standards is None else len(data.standards),
        )
        yield

    app = FastAPI(title="PM Standards Browser", lifespan=lifespan)
    app.state.store = store or DataStore()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DataSourceNotFound, _not_found_handler)
    app.add_exception_handler(ParseFailure, _parse_failure_handler)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="healthy")

    @app.get("/api/standards", response_model=List[StandardExcerpt])
    def list_standards(store: DataStore = Depends(get_store)):
        return store.list_standards()

    @app.get("/api/comparison", response_model=List[Dict[str, str]])
    def list_comparisons(store: DataStore = Depends(get_store)):
        return store.list_comparisons()

    @app.get("/api/comparison-summary", response_model=ComparisonSummary)
    def comparison_summary(store: DataStore = Depends(get_store)):
        return store.comparison_summary()

    @app.get("/api/comparison/{topic}", response_model=List[StandardExcerpt])
    def comparisons_by_topic(topic: str, store: DataStore = Depends(get_store)):
        return store.comparisons_by_topic(topic)

    @app.get("/api/comparison/{topic}/view", response_model=ComparisonView)
    def comparison_view(topic: str, store: DataStore = Depends(get_store)):
        return store.comparison_view(topic)

    @app.get("/api/topics", response_model=List[str])
    def distinct_topics(store: DataStore = Depends(get_store)):
        return store.distinct_topics()

    @app.get("/api/topics/resolve", response_model=TopicResolution)
    def resolve_topic(q: str = Query(""), store: DataStore = Depends(get_store)):
        return TopicResolution(query=q, topic=store.resolve_topic(q))

    @app.get("/api/search", response_model=List[SearchResult])
    def search(q: str = Query(""), store: DataStore = Depends(get_store)):
        if not q.strip():
            return []
        return store.search(q)

    @app.get("/api/dashboard", response_model=DashboardStats)
    def dashboard(store: DataStore = Depends(get_store)):
        return store.dashboard()

    @app.post("/api/reload", response_model=ReloadResponse)
    def reload(store: DataStore = Depends(get_store)):
        data = store.reload()
        return ReloadResponse(
            standards=None if data.standards is None else len(data.standards),
            comparisons=None if data.comparisons is None else len(data.comparisons),
            rejected=len(data.rejections),
        )

    return app


app = create_app()
