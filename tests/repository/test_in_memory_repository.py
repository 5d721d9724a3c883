"""Tests for the in-memory metrics repository."""

from __future__ import annotations
import asyncio
import pytest
from metrix.errors import (
    InvalidMetricValueError,
    MetricNotFoundError,
    UnsupportedMetricTypeError,
)
from metrix.models import Metric, MetricKey, MetricKind
from metrix.repository import (
    BaseMetricsRepository,
    InMemoryMetricsRepository,
    MetricsRepository,
)


@pytest.mark.asyncio
async def test_in_memory_repository_satisfies_protocol() -> None:
    """The in-memory store implements the repository protocol."""

    repository = InMemoryMetricsRepository()
    await repository.start()

    assert isinstance(repository, MetricsRepository)
    await repository.ping()
    await repository.close()


@pytest.mark.asyncio
async def test_gauge_keeps_last_write_and_counter_sums() -> None:
    """Gauges overwrite and counters accumulate."""

    repository = InMemoryMetricsRepository()

    await repository.add("gauge", "Heap", "1.5")
    await repository.add("gauge", "Heap", "123.45")
    await repository.add("counter", "Poll", "1")
    await repository.add("counter", "Poll", "1")
    await repository.add("counter", "Poll", "-5")

    assert await repository.get("gauge", "Heap") == "123.45"
    assert await repository.get("counter", "Poll") == "-3"


@pytest.mark.asyncio
async def test_lookup_scenario() -> None:
    """Stored metrics read back canonically and unknown ones are reported."""

    repository = InMemoryMetricsRepository()
    await repository.add("gauge", "Heap", "123.45")
    await repository.add("counter", "Poll", "1")
    await repository.add("counter", "Poll", "1")

    assert await repository.get("gauge", "Heap") == "123.45"
    assert await repository.get("counter", "Poll") == "2"
    with pytest.raises(MetricNotFoundError):
        await repository.get("gauge", "Missing")
    with pytest.raises(UnsupportedMetricTypeError):
        await repository.add("weird", "x", "1")


@pytest.mark.asyncio
async def test_kinds_have_separate_namespaces() -> None:
    """A gauge and a counter may share a name."""

    repository = InMemoryMetricsRepository()
    await repository.add(MetricKind.GAUGE, "load", 0.5)
    await repository.add(MetricKind.COUNTER, "load", 3)

    assert await repository.get_all() == {
        (MetricKind.GAUGE, "load"): "0.5",
        (MetricKind.COUNTER, "load"): "3",
    }
    with pytest.raises(MetricNotFoundError):
        await repository.get("counter", "other")


@pytest.mark.asyncio
async def test_invalid_update_leaves_state_unchanged() -> None:
    """Rejected values never reach the store."""

    repository = InMemoryMetricsRepository()
    await repository.add("counter", "Poll", "4")

    with pytest.raises(InvalidMetricValueError):
        await repository.add("counter", "Poll", "1.5")

    assert await repository.get("counter", "Poll") == "4"


@pytest.mark.asyncio
async def test_get_all_returns_a_copy() -> None:
    """Mutating the returned mapping does not affect the store."""

    repository = InMemoryMetricsRepository()
    await repository.add("gauge", "Heap", "1")
    snapshot = await repository.get_all()
    snapshot.clear()

    assert await repository.get_all() == {(MetricKind.GAUGE, "Heap"): "1"}


@pytest.mark.asyncio
async def test_batch_applies_in_order() -> None:
    """Batch items merge like individual updates, in order."""

    repository = InMemoryMetricsRepository()
    await repository.add_batch(
        [
            Metric(id="Heap", type="gauge", value=1.0),
            Metric(id="Heap", type="gauge", value=2.0),
            Metric(id="Poll", type="counter", delta=2),
            Metric(id="Poll", type="counter", delta=3),
        ]
    )

    assert await repository.get("gauge", "Heap") == "2"
    assert await repository.get("counter", "Poll") == "5"


@pytest.mark.asyncio
async def test_batch_is_best_effort() -> None:
    """Items before a failing one remain applied."""

    repository = InMemoryMetricsRepository()
    batch = [
        Metric(id="Poll", type="counter", delta=1),
        Metric(id="Bad", type="counter"),
        Metric(id="After", type="counter", delta=1),
    ]

    with pytest.raises(InvalidMetricValueError):
        await repository.add_batch(batch)

    assert await repository.get("counter", "Poll") == "1"
    with pytest.raises(MetricNotFoundError):
        await repository.get("counter", "After")


@pytest.mark.asyncio
async def test_empty_batch_is_noop() -> None:
    """An empty batch changes nothing."""

    repository = InMemoryMetricsRepository()
    await repository.add_batch([])

    assert await repository.get_all() == {}


@pytest.mark.asyncio
async def test_concurrent_counter_increments_are_not_lost() -> None:
    """Concurrent increments to one counter all land."""

    repository = InMemoryMetricsRepository()

    await asyncio.gather(
        *(repository.add("counter", "hits", 1) for _ in range(200))
    )

    assert await repository.get("counter", "hits") == "200"


@pytest.mark.asyncio
async def test_export_and_merge_state() -> None:
    """Raw state can be exported and merged back."""

    source = InMemoryMetricsRepository()
    await source.add("gauge", "Heap", 2.5)
    await source.add("counter", "Poll", 9)
    gauges, counters = await source.export_state()

    target = InMemoryMetricsRepository()
    await target.merge_state(gauges, counters)

    assert await target.get_all() == await source.get_all()


def test_base_repository_requires_backend_hooks() -> None:
    """Backends missing storage hooks cannot be instantiated."""

    class IncompleteRepository(BaseMetricsRepository):
        async def get_all(self) -> dict[MetricKey, str]:
            return {}

    with pytest.raises(TypeError):
        BaseMetricsRepository()  # type: ignore[abstract]
    with pytest.raises(TypeError):
        IncompleteRepository()  # type: ignore[abstract]
