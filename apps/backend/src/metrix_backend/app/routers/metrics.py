"""Metric update, query, listing and liveness routes."""

from __future__ import annotations
import html
import logging
from fastapi import APIRouter, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from metrix.errors import MetricsError
from metrix.models import Metric, format_value, parse_kind
from metrix_backend.app.dependencies import CancelEventDep, RepositoryDep
from metrix_backend.app.errors import raise_for_metrics_error
from metrix_backend.app.schemas import BatchAck


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/update/", response_model=Metric, response_model_exclude_none=True)
async def update_metric_json(
    metric: Metric,
    repository: RepositoryDep,
    cancel: CancelEventDep,
) -> Metric:
    """Merge one metric and echo the stored value.

    Once the write has succeeded the request succeeds. If reading the merged
    value back fails, the submitted metric is echoed instead so clients do
    not resend an update that was already applied.
    """
    try:
        update = metric.to_update()
        await repository.add(update.kind, update.name, update.value, cancel=cancel)
    except MetricsError as exc:
        raise_for_metrics_error(exc)
    try:
        stored = await repository.get(update.kind, update.name)
    except MetricsError as exc:
        logger.warning(
            "Stored %s %s but could not read it back: %s",
            update.kind.value,
            update.name,
            exc,
        )
        stored = format_value(update.kind, update.value)
    return Metric.from_stored(update.kind, update.name, stored)


@router.post("/updates/", response_model=BatchAck)
async def update_metrics_batch(
    metrics: list[Metric],
    repository: RepositoryDep,
) -> BatchAck:
    """Apply a batch of metrics; an empty batch is a no-op."""
    if metrics:
        try:
            await repository.add_batch(metrics)
        except MetricsError as exc:
            raise_for_metrics_error(exc)
    return BatchAck()


@router.post("/value/", response_model=Metric, response_model_exclude_none=True)
async def get_metric_json(metric: Metric, repository: RepositoryDep) -> Metric:
    """Return the requested metric populated with its current value."""
    try:
        kind = parse_kind(metric.type)
        stored = await repository.get(kind, metric.id)
    except MetricsError as exc:
        raise_for_metrics_error(exc)
    return Metric.from_stored(kind, metric.id, stored)


@router.post(
    "/update/{metric_type}/{name}/{value}", response_class=PlainTextResponse
)
async def update_metric(
    metric_type: str,
    name: str,
    value: str,
    repository: RepositoryDep,
    cancel: CancelEventDep,
) -> str:
    """Merge one metric supplied through the URL path."""
    try:
        await repository.add(metric_type, name, value, cancel=cancel)
    except MetricsError as exc:
        raise_for_metrics_error(exc)
    return "OK"


@router.get("/value/{metric_type}/{name}", response_class=PlainTextResponse)
async def get_metric(metric_type: str, name: str, repository: RepositoryDep) -> str:
    """Return the current value of one metric as plain text."""
    try:
        return await repository.get(metric_type, name)
    except MetricsError as exc:
        raise_for_metrics_error(exc)


@router.get("/", response_class=HTMLResponse)
async def list_metrics(repository: RepositoryDep) -> str:
    """Render every stored metric as an HTML list."""
    try:
        snapshot = await repository.get_all()
    except MetricsError as exc:
        raise_for_metrics_error(exc)
    items = "".join(
        f"<li><b>{html.escape(name)}</b> ({kind.value}): {html.escape(value)}</li>"
        for (kind, name), value in sorted(
            snapshot.items(), key=lambda item: (item[0][1], item[0][0].value)
        )
    )
    return f"<html><body><h1>Metrics</h1><ul>{items}</ul></body></html>"


@router.get("/ping", response_class=PlainTextResponse)
async def ping(repository: RepositoryDep) -> PlainTextResponse:
    """Report whether the storage backend is reachable."""
    try:
        await repository.ping()
    except MetricsError as exc:
        logger.error("Storage ping failed: %s", exc)
        return PlainTextResponse(
            "storage unavailable", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return PlainTextResponse("OK")


__all__ = ["router"]
