"""Dependency wiring for the collector application."""

from __future__ import annotations
import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Annotated, Any
from fastapi import Depends, Request
from metrix.config import get_settings
from metrix.repository import (
    FileMetricsRepository,
    InMemoryMetricsRepository,
    MetricsRepository,
    PostgresMetricsRepository,
)


_repository_ref: dict[str, MetricsRepository | None] = {"repository": None}
_DISCONNECT_POLL_SECONDS = 0.25


def _create_repository(settings: Any | None = None) -> MetricsRepository:
    """Instantiate the single storage backend selected by the settings."""
    settings = settings or get_settings()
    backend = settings.storage_backend
    if backend == "postgres":
        return PostgresMetricsRepository(str(settings.database_dsn))
    if backend == "file":
        return FileMetricsRepository(
            settings.file_storage_path,
            store_interval=settings.store_interval,
            restore=settings.restore,
        )
    if backend == "memory":
        return InMemoryMetricsRepository()
    msg = f"Unsupported repository backend: {backend}"
    raise ValueError(msg)


def get_repository() -> MetricsRepository:
    """Return the process-wide repository, creating it on first use."""
    repository = _repository_ref["repository"]
    if repository is None:
        repository = _create_repository()
        _repository_ref["repository"] = repository
    return repository


async def _watch_disconnect(request: Request, event: asyncio.Event) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(_DISCONNECT_POLL_SECONDS)
    event.set()


async def request_cancel_event(request: Request) -> AsyncIterator[asyncio.Event]:
    """Yield an event that is set once the client disconnects."""
    event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, event))
    try:
        yield event
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


RepositoryDep = Annotated[MetricsRepository, Depends(get_repository)]
CancelEventDep = Annotated[asyncio.Event, Depends(request_cancel_event)]


__all__ = [
    "CancelEventDep",
    "RepositoryDep",
    "get_repository",
    "request_cancel_event",
]
