"""FastAPI application serving repository flow metrics."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from repoflow import __version__
from repoflow.config.loader import load_config
from repoflow.config.schema import AppConfig
from repoflow.github import (
    PullRequestSource,
    UpstreamError,
    UpstreamNotFound,
    UpstreamRateLimited,
)
from repoflow.models import MetricsSnapshot, RepoId
from repoflow.service import MetricsService

logger = structlog.get_logger("api")

SERVICE_NAME = "repoflow-backend"


@asynccontextmanager
async def lifespan(app: FastAPI):
    service: MetricsService = app.state.service
    await service.start()
    try:
        yield
    finally:
        await service.stop()


def get_service(request: Request) -> MetricsService:
    """Dependency returning the process-wide metrics service."""
    return request.app.state.service


def create_app(
    config: AppConfig | None = None,
    source: PullRequestSource | None = None,
) -> FastAPI:
    """Build the app and its MetricsService.

    *source* replaces the GitHub client, mainly for tests.
    """
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Repoflow API",
        description="Pull request flow metrics for GitHub repositories",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.service = MetricsService(config, source=source)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health_check():
        """Liveness check."""
        return {"status": "ok", "service": SERVICE_NAME, "version": __version__}

    @app.get("/api/repos/popular", response_model=list[RepoId])
    async def get_popular_repos(service: MetricsService = Depends(get_service)):
        return service.preloader.targets

    @app.get("/api/repos/{owner}/{repo}/metrics", response_model=MetricsSnapshot)
    async def get_repo_metrics(
        owner: str,
        repo: str,
        service: MetricsService = Depends(get_service),
    ):
        repo_id = RepoId(owner=owner, repo=repo)
        try:
            return await service.get(repo_id)
        except UpstreamRateLimited:
            logger.warning("rate_limited", repo=str(repo_id))
            raise HTTPException(status_code=429, detail="GitHub Rate Limit Exceeded")
        except UpstreamNotFound:
            logger.info("repo_not_found", repo=str(repo_id))
            raise HTTPException(status_code=404, detail="Repository Not Found")
        except UpstreamError as e:
            logger.error("metrics_fetch_failed", repo=str(repo_id), error=str(e))
            raise HTTPException(status_code=500, detail="Internal Server Error")

    @app.get("/api/cache/stats")
    async def cache_stats(service: MetricsService = Depends(get_service)):
        """Cache counters plus upstream, refresh and preload activity."""
        return service.stats()

    return app
