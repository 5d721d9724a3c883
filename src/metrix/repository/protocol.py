"""Protocol describing the metrics repository contract."""

from __future__ import annotations
import asyncio
from collections.abc import Sequence
from typing import Protocol, runtime_checkable
from metrix.models import Metric, MetricKey, MetricKind


@runtime_checkable
class MetricsRepository(Protocol):
    """Storage contract implemented identically by every backend."""

    async def start(self) -> None:
        """Acquire resources and restore state before serving requests."""

    async def close(self) -> None:
        """Flush state and release resources owned by the backend."""

    async def add(
        self,
        kind: str | MetricKind,
        name: str,
        value: object,
        *,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Validate and merge a single update."""

    async def get(self, kind: str | MetricKind, name: str) -> str:
        """Return the canonical value stored for ``(kind, name)``."""

    async def get_all(self) -> dict[MetricKey, str]:
        """Return a snapshot of every stored metric."""

    async def ping(self) -> None:
        """Raise when the backend's external dependency is unreachable."""

    async def add_batch(self, metrics: Sequence[Metric]) -> None:
        """Apply a sequence of wire metrics."""


__all__ = ["MetricsRepository"]
