"""Buffer of polled metrics awaiting the next report."""

from __future__ import annotations
import asyncio
from collections.abc import Mapping
from metrix.models import Metric, MetricKind


class MetricAccumulator:
    """Hold the latest gauge readings and counter deltas since the last report.

    Gauges keep only their most recent value. Counters accumulate deltas that
    :meth:`drain` hands out and resets, so every increment is reported once.
    """

    def __init__(self) -> None:
        """Initialize empty buffers."""
        self._lock = asyncio.Lock()
        self._gauges: dict[str, float] = {}
        self._deltas: dict[str, int] = {}

    async def set_gauges(self, gauges: Mapping[str, float]) -> None:
        """Record the latest value of each gauge."""
        async with self._lock:
            self._gauges.update(gauges)

    async def set_gauge(self, name: str, value: float) -> None:
        """Record the latest value of one gauge."""
        await self.set_gauges({name: value})

    async def increment(self, name: str, delta: int = 1) -> None:
        """Add ``delta`` to the pending increment of ``name``."""
        async with self._lock:
            self._deltas[name] = self._deltas.get(name, 0) + delta

    async def drain(self) -> list[Metric]:
        """Return a batch of every buffered metric and reset counter deltas."""
        async with self._lock:
            batch = [
                Metric(id=name, type=MetricKind.GAUGE.value, value=value)
                for name, value in sorted(self._gauges.items())
            ]
            batch.extend(
                Metric(id=name, type=MetricKind.COUNTER.value, delta=delta)
                for name, delta in sorted(self._deltas.items())
            )
            self._deltas.clear()
        return batch

    async def restore(self, batch: list[Metric]) -> None:
        """Merge the counter deltas of an unsent batch back into the buffer."""
        async with self._lock:
            for metric in batch:
                if metric.type == MetricKind.COUNTER.value and metric.delta:
                    pending = self._deltas.get(metric.id, 0)
                    self._deltas[metric.id] = pending + metric.delta

    async def pending_deltas(self) -> dict[str, int]:
        """Return a copy of the counter deltas not yet reported."""
        async with self._lock:
            return dict(self._deltas)


__all__ = ["MetricAccumulator"]
