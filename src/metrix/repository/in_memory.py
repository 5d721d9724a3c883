"""Async-safe in-memory metrics repository."""

from __future__ import annotations
import asyncio
from collections.abc import Mapping, Sequence
from metrix.errors import MetricNotFoundError
from metrix.models import (
    Metric,
    MetricKey,
    MetricKind,
    MetricUpdate,
    format_counter,
    format_gauge,
)
from metrix.repository.base import BaseMetricsRepository


class InMemoryMetricsRepository(BaseMetricsRepository):
    """Process-lifetime store keeping gauges and counters in two dicts.

    A single lock guards both dicts for every read, write and iteration.
    """

    def __init__(self) -> None:
        """Initialize empty gauge and counter maps."""
        self._lock = asyncio.Lock()
        self._gauges: dict[str, float] = {}
        self._counters: dict[str, int] = {}

    async def _apply(
        self, update: MetricUpdate, *, cancel: asyncio.Event | None = None
    ) -> None:
        async with self._lock:
            if update.kind is MetricKind.GAUGE:
                self._gauges[update.name] = float(update.value)
            else:
                current = self._counters.get(update.name, 0)
                self._counters[update.name] = current + int(update.value)

    async def _read(self, kind: MetricKind, name: str) -> str:
        async with self._lock:
            if kind is MetricKind.GAUGE:
                gauge = self._gauges.get(name)
                if gauge is not None:
                    return format_gauge(gauge)
            else:
                counter = self._counters.get(name)
                if counter is not None:
                    return format_counter(counter)
        raise MetricNotFoundError(f"{kind.value} {name} not found")

    async def get_all(self) -> dict[MetricKey, str]:
        """Return a copy of every stored metric taken under the lock."""
        async with self._lock:
            snapshot: dict[MetricKey, str] = {
                (MetricKind.GAUGE, name): format_gauge(value)
                for name, value in self._gauges.items()
            }
            snapshot.update(
                ((MetricKind.COUNTER, name), format_counter(value))
                for name, value in self._counters.items()
            )
        return snapshot

    async def add_batch(self, metrics: Sequence[Metric]) -> None:
        """Apply metrics one by one without transactional guarantees.

        Items are validated and merged in order. The first failing item stops
        the batch and its error is raised; items before it remain applied.
        Callers needing all-or-nothing semantics must use the SQL backend.
        """
        for metric in metrics:
            await self._apply(metric.to_update())

    async def export_state(self) -> tuple[dict[str, float], dict[str, int]]:
        """Return copies of the raw gauge and counter maps."""
        async with self._lock:
            return dict(self._gauges), dict(self._counters)

    async def merge_state(
        self, gauges: Mapping[str, float], counters: Mapping[str, int]
    ) -> None:
        """Overwrite stored entries with the provided raw values."""
        async with self._lock:
            self._gauges.update(gauges)
            self._counters.update(counters)


__all__ = ["InMemoryMetricsRepository"]
