"""FastAPI application factory for Sitesmith."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sitesmith import __version__
from sitesmith.api.deps import init_services, reset_services
from sitesmith.api.middleware import (
    RequestBodyLimitMiddleware,
    RequestTimingMiddleware,
    SecurityHeadersMiddleware,
)
from sitesmith.api.routers import preview, projects
from sitesmith.api.schemas import ErrorResponse, HealthResponse
from sitesmith.generation.classifier import GenerationFailed, Stage, classify
from sitesmith.generation.orchestrator import GenerationOrchestrator
from sitesmith.generation.upstream import UpstreamClient
from sitesmith.settings import Settings
from sitesmith.storage.memory_repo import InMemoryProjectRepository
from sitesmith.storage.repository import ProjectRepository
from sitesmith.storage.sql_repo import SqlProjectRepository

logger = logging.getLogger("sitesmith.api")


def build_repository(settings: Settings) -> ProjectRepository:
    """SQL store when ``database_url`` is set, in-memory otherwise."""
    if settings.database_url:
        return SqlProjectRepository.from_url(settings.database_url)
    logger.warning("DATABASE_URL not set; saved projects are kept in memory only")
    return InMemoryProjectRepository()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create the upstream client, store and orchestrator alongside the application."""
    settings: Settings = app.state.settings
    if settings.upstream_api_key is None:
        logger.warning("UPSTREAM_API_KEY not set; generation requests will fail")
    repository = build_repository(settings)
    upstream = UpstreamClient(settings)
    init_services(GenerationOrchestrator(settings, upstream, repository), repository)
    try:
        yield
    finally:
        await upstream.aclose()
        if isinstance(repository, SqlProjectRepository):
            repository.dispose()
        reset_services()


def _error_body(exc: GenerationFailed) -> dict[str, object]:
    return ErrorResponse.from_error(exc.error, exc.artifacts).to_content()


async def _generation_failed_handler(request: Request, exc: GenerationFailed) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=_error_body(exc))


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    failure = GenerationFailed(classify(exc, stage=Stage.VALIDATING))
    return JSONResponse(status_code=failure.http_status, content=_error_body(failure))


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Sitesmith",
        description="Generates websites (HTML, CSS, JavaScript) from a prose description.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestBodyLimitMiddleware)

    app.add_exception_handler(GenerationFailed, _generation_failed_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(projects.router, prefix="/projects", tags=["projects"])
    app.include_router(preview.router, prefix="/preview", tags=["preview"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info(
        "Sitesmith API Server v%s starting (host=%s, port=%d)",
        __version__, settings.api_server_host, settings.effective_port,
    )

    uvicorn.run(
        "sitesmith.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.effective_port,
        log_level=settings.log_level.lower(),
    )
