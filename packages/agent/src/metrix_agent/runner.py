"""Poll and report loops driving the agent."""

from __future__ import annotations
import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping
from typing import Any
from metrix_agent.accumulator import MetricAccumulator
from metrix_agent.client import AgentError, MetricsClient
from metrix_agent.runtime import poll_runtime_metrics


logger = logging.getLogger(__name__)

POLL_COUNT = "PollCount"

Poller = Callable[[], Mapping[str, float]]


async def poll_once(
    accumulator: MetricAccumulator, poller: Poller = poll_runtime_metrics
) -> None:
    """Take one reading of the runtime statistics."""
    await accumulator.set_gauges(poller())
    await accumulator.increment(POLL_COUNT)


async def report_once(client: MetricsClient, accumulator: MetricAccumulator) -> bool:
    """Send everything buffered; return whether the collector accepted it.

    Counter deltas of a rejected batch are put back so the next report
    carries them.
    """
    batch = await accumulator.drain()
    if not batch:
        return True
    try:
        await client.send_batch(batch)
    except AgentError as exc:
        await accumulator.restore(batch)
        logger.warning("Failed to report %s metrics: %s", len(batch), exc)
        return False
    logger.debug("Reported %s metrics", len(batch))
    return True


async def _every(
    interval: float, stop: asyncio.Event, action: Callable[[], Any]
) -> None:
    while not stop.is_set():
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=interval)
        if not stop.is_set():
            await action()


async def run_agent(
    settings: Any,
    *,
    client: MetricsClient | None = None,
    accumulator: MetricAccumulator | None = None,
    poller: Poller = poll_runtime_metrics,
    stop: asyncio.Event | None = None,
) -> None:
    """Poll every ``poll_interval`` and report every ``report_interval``.

    Runs until ``stop`` is set. A final report is attempted on the way out so
    readings taken since the last report are not lost.
    """
    stop = stop or asyncio.Event()
    accumulator = accumulator or MetricAccumulator()
    owned_client = client is None
    client = client or MetricsClient(settings.address)
    logger.info(
        "Agent reporting to %s (poll %ss, report %ss)",
        client.base_url,
        settings.poll_interval,
        settings.report_interval,
    )

    async def poll() -> None:
        await poll_once(accumulator, poller)

    async def report() -> None:
        await report_once(client, accumulator)

    tasks = [
        asyncio.create_task(_every(settings.poll_interval, stop, poll)),
        asyncio.create_task(_every(settings.report_interval, stop, report)),
    ]
    try:
        await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await report_once(client, accumulator)
        if owned_client:
            await client.aclose()


__all__ = ["POLL_COUNT", "poll_once", "report_once", "run_agent"]
