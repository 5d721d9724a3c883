"""HTTP client for pushing metrics to a collector."""

from __future__ import annotations
import gzip
import json
from collections.abc import Sequence
from typing import Any
import httpx
from metrix.models import Metric, MetricKind


class AgentError(RuntimeError):
    """Raised when the collector cannot be reached or rejects a request."""


class MetricsClient:
    """Thin async wrapper around the collector's HTTP routes.

    The client owns its :class:`httpx.AsyncClient` unless one is supplied,
    in which case closing it is left to the caller.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Bind the client to the collector at ``base_url``."""
        if "://" not in base_url:
            base_url = f"http://{base_url}"
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout
        )

    @property
    def base_url(self) -> str:
        """Return the collector base URL."""
        return self._base_url

    async def __aenter__(self) -> MetricsClient:
        """Return the client for use in ``async with``."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close the owned HTTP client."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise AgentError(f"{method} {path} failed: {exc}") from exc
        if response.is_error:
            detail = response.text.strip() or response.reason_phrase
            msg = f"{method} {path} returned {response.status_code}: {detail}"
            raise AgentError(msg)
        return response

    async def send_batch(self, metrics: Sequence[Metric]) -> None:
        """Send ``metrics`` as one gzip-compressed JSON batch."""
        if not metrics:
            return
        payload = json.dumps(
            [metric.model_dump(exclude_none=True) for metric in metrics]
        ).encode("utf-8")
        await self._request(
            "POST",
            "/updates/",
            content=gzip.compress(payload),
            headers={
                "Content-Type": "application/json",
                "Content-Encoding": "gzip",
                "Accept-Encoding": "gzip",
            },
        )

    async def update(self, metric: Metric) -> Metric:
        """Send a single metric and return the value the collector stored."""
        response = await self._request(
            "POST", "/update/", json=metric.model_dump(exclude_none=True)
        )
        return Metric.model_validate(response.json())

    async def value(self, kind: MetricKind | str, name: str) -> Metric:
        """Fetch the current value of one metric."""
        kind_name = kind.value if isinstance(kind, MetricKind) else kind
        response = await self._request(
            "POST", "/value/", json={"id": name, "type": kind_name}
        )
        return Metric.model_validate(response.json())

    async def ping(self) -> bool:
        """Return whether the collector reports healthy storage."""
        try:
            await self._request("GET", "/ping")
        except AgentError:
            return False
        return True


__all__ = ["AgentError", "MetricsClient"]
