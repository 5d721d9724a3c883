"""Mapping from repository errors to HTTP responses."""

from __future__ import annotations
import logging
from typing import NoReturn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from metrix.errors import (
    BatchAbortedError,
    MetricNotFoundError,
    MetricsError,
    MetricValidationError,
    OperationCancelledError,
)


logger = logging.getLogger(__name__)


def status_for_error(exc: MetricsError) -> int:
    """Return the HTTP status code for a repository error.

    Validation errors are client faults, unknown metrics are missing
    resources and every unresolved storage error is a server fault. Aborted
    batches are classified by the error that aborted them.
    """
    if isinstance(exc, BatchAbortedError) and isinstance(exc.cause, MetricsError):
        return status_for_error(exc.cause)
    if isinstance(exc, MetricValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, MetricNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, OperationCancelledError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_for_metrics_error(exc: MetricsError) -> NoReturn:
    """Raise an HTTPException describing ``exc``."""
    code = status_for_error(exc)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Metrics storage failure: %s", exc)
    raise HTTPException(status_code=code, detail=str(exc)) from exc


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> PlainTextResponse:
    return PlainTextResponse(
        "invalid request payload", status_code=status.HTTP_400_BAD_REQUEST
    )


def install_error_handlers(app: FastAPI) -> None:
    """Report malformed request payloads as bad requests."""
    app.add_exception_handler(RequestValidationError, _request_validation_handler)


__all__ = ["install_error_handlers", "raise_for_metrics_error", "status_for_error"]
