"""Tests for the agent metric buffer."""

from __future__ import annotations
import pytest
from metrix.models import Metric
from metrix_agent import MetricAccumulator


@pytest.mark.asyncio
async def test_drain_returns_gauges_and_deltas() -> None:
    """Draining yields the latest gauges and accumulated deltas."""

    accumulator = MetricAccumulator()
    await accumulator.set_gauge("Heap", 1.0)
    await accumulator.set_gauges({"Heap": 2.0, "Load": 0.5})
    await accumulator.increment("PollCount")
    await accumulator.increment("PollCount", 2)

    batch = await accumulator.drain()

    assert [m.model_dump(exclude_none=True) for m in batch] == [
        {"id": "Heap", "type": "gauge", "value": 2.0},
        {"id": "Load", "type": "gauge", "value": 0.5},
        {"id": "PollCount", "type": "counter", "delta": 3},
    ]


@pytest.mark.asyncio
async def test_drain_resets_deltas_but_keeps_gauges() -> None:
    """Counters are reported once while gauges are re-sent."""

    accumulator = MetricAccumulator()
    await accumulator.set_gauge("Heap", 1.0)
    await accumulator.increment("PollCount")
    await accumulator.drain()

    batch = await accumulator.drain()

    assert [m.id for m in batch] == ["Heap"]
    assert await accumulator.pending_deltas() == {}


@pytest.mark.asyncio
async def test_restore_merges_unsent_deltas() -> None:
    """Deltas of a failed report are added to new increments."""

    accumulator = MetricAccumulator()
    await accumulator.increment("PollCount", 4)
    failed = await accumulator.drain()
    await accumulator.increment("PollCount")

    await accumulator.restore(failed)

    assert await accumulator.pending_deltas() == {"PollCount": 5}


@pytest.mark.asyncio
async def test_restore_ignores_gauges() -> None:
    """Restoring never touches gauge readings."""

    accumulator = MetricAccumulator()
    await accumulator.set_gauge("Heap", 3.0)

    await accumulator.restore([Metric(id="Heap", type="gauge", value=1.0)])

    batch = await accumulator.drain()
    assert batch == [Metric(id="Heap", type="gauge", value=3.0)]
