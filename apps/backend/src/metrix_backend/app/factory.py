"""FastAPI application factory for the collector."""

from __future__ import annotations
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.gzip import GZipMiddleware
from metrix.errors import MetricsError
from metrix.repository import MetricsRepository
from metrix_backend.app.dependencies import get_repository
from metrix_backend.app.errors import install_error_handlers
from metrix_backend.app.middleware import AccessLogMiddleware, GzipRequestMiddleware
from metrix_backend.app.routers import metrics_router


logger = logging.getLogger(__name__)

_GZIP_MINIMUM_SIZE = 32


def create_app(repository: MetricsRepository | None = None) -> FastAPI:
    """Build the collector app, optionally bound to an explicit repository."""

    def _resolve_repository() -> MetricsRepository:
        return repository if repository is not None else get_repository()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        active = _resolve_repository()
        await active.start()
        logger.info("Metrics repository %s started", type(active).__name__)
        try:
            yield
        finally:
            try:
                await active.close()
            except MetricsError:
                logger.exception("Failed to close metrics repository")

    app = FastAPI(title="Metrix collector", lifespan=lifespan)
    if repository is not None:
        app.dependency_overrides[get_repository] = lambda: repository

    app.add_middleware(GzipRequestMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=_GZIP_MINIMUM_SIZE)
    app.add_middleware(AccessLogMiddleware)
    install_error_handlers(app)
    app.include_router(metrics_router)
    return app


__all__ = ["create_app"]
