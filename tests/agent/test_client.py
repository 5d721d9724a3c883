"""Tests for the agent HTTP client."""

from __future__ import annotations
import gzip
import json
import httpx
import pytest
import respx
from metrix.models import Metric, MetricKind
from metrix_agent import AgentError, MetricsClient


BASE_URL = "http://collector.test"


@pytest.mark.asyncio
async def test_send_batch_posts_gzip_json() -> None:
    """Batches are gzip-compressed JSON lists sent to ``/updates/``."""

    async with MetricsClient(BASE_URL) as client:
        with respx.mock(assert_all_called=True) as router:
            route = router.post(f"{BASE_URL}/updates/").mock(
                return_value=httpx.Response(200, json={"status": "ok"})
            )
            await client.send_batch(
                [
                    Metric(id="Heap", type="gauge", value=1.5),
                    Metric(id="PollCount", type="counter", delta=2),
                ]
            )

    request = route.calls.last.request
    assert request.headers["Content-Encoding"] == "gzip"
    assert request.headers["Accept-Encoding"] == "gzip"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(gzip.decompress(request.content)) == [
        {"id": "Heap", "type": "gauge", "value": 1.5},
        {"id": "PollCount", "type": "counter", "delta": 2},
    ]


@pytest.mark.asyncio
async def test_send_empty_batch_is_skipped() -> None:
    """Nothing is sent for an empty batch."""

    async with MetricsClient(BASE_URL) as client:
        with respx.mock(assert_all_called=False) as router:
            route = router.post(f"{BASE_URL}/updates/")
            await client.send_batch([])

    assert not route.called


@pytest.mark.asyncio
async def test_error_status_raises_agent_error() -> None:
    """Non-2xx responses become agent errors."""

    async with MetricsClient(BASE_URL) as client:
        with respx.mock() as router:
            router.post(f"{BASE_URL}/updates/").mock(
                return_value=httpx.Response(500, text="storage unavailable")
            )
            with pytest.raises(AgentError, match="500: storage unavailable"):
                await client.send_batch([Metric(id="x", type="gauge", value=1)])


@pytest.mark.asyncio
async def test_transport_error_raises_agent_error() -> None:
    """Connection failures become agent errors."""

    async with MetricsClient(BASE_URL) as client:
        with respx.mock() as router:
            router.post(f"{BASE_URL}/updates/").mock(
                side_effect=httpx.ConnectError("refused")
            )
            with pytest.raises(AgentError, match="refused"):
                await client.send_batch([Metric(id="x", type="gauge", value=1)])


@pytest.mark.asyncio
async def test_update_and_value_round_trip() -> None:
    """Single updates and lookups decode the echoed metric."""

    async with MetricsClient(BASE_URL) as client:
        with respx.mock(assert_all_called=True) as router:
            update_route = router.post(f"{BASE_URL}/update/").mock(
                return_value=httpx.Response(
                    200, json={"id": "Poll", "type": "counter", "delta": 5}
                )
            )
            router.post(f"{BASE_URL}/value/").mock(
                return_value=httpx.Response(
                    200, json={"id": "Heap", "type": "gauge", "value": 2.5}
                )
            )

            echoed = await client.update(Metric(id="Poll", type="counter", delta=2))
            value = await client.value(MetricKind.GAUGE, "Heap")

    assert json.loads(update_route.calls.last.request.content) == {
        "id": "Poll",
        "type": "counter",
        "delta": 2,
    }
    assert echoed.delta == 5
    assert value.value == 2.5


@pytest.mark.asyncio
async def test_ping_reports_health() -> None:
    """Ping maps success and failure to a boolean."""

    async with MetricsClient(BASE_URL) as client:
        with respx.mock() as router:
            route = router.get(f"{BASE_URL}/ping")
            route.side_effect = [
                httpx.Response(200, text="OK"),
                httpx.Response(500, text="storage unavailable"),
            ]

            assert await client.ping() is True
            assert await client.ping() is False


def test_bare_address_gets_http_scheme() -> None:
    """Addresses without a scheme default to plain HTTP."""

    client = MetricsClient("localhost:8080/")

    assert client.base_url == "http://localhost:8080"
