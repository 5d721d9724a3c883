"""Shared validation path for metrics repository backends."""

from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from metrix.models import (
    Metric,
    MetricKey,
    MetricKind,
    MetricUpdate,
    parse_kind,
    validate_update,
)


class BaseMetricsRepository(ABC):
    """Base helper that validates updates before any backend is touched.

    Subclasses implement the ``_apply``/``_read`` hooks and inherit the public
    operations, so the merge and validation rules stay identical whichever
    backend is configured.
    """

    async def start(self) -> None:
        """No resources to acquire by default."""

    async def close(self) -> None:
        """No resources to release by default."""

    async def add(
        self,
        kind: str | MetricKind,
        name: str,
        value: object,
        *,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Validate ``value`` for ``kind`` and merge it into the store."""
        update = validate_update(kind, name, value)
        await self._apply(update, cancel=cancel)

    async def get(self, kind: str | MetricKind, name: str) -> str:
        """Return the canonical value stored for ``(kind, name)``."""
        return await self._read(parse_kind(kind), name)

    @abstractmethod
    async def get_all(self) -> dict[MetricKey, str]:
        """Return a snapshot of every stored metric."""
        pass  # pragma: no cover

    async def ping(self) -> None:
        """Report success; only backends with external dependencies probe."""

    @abstractmethod
    async def add_batch(self, metrics: Sequence[Metric]) -> None:
        """Apply a sequence of wire metrics."""
        pass  # pragma: no cover

    @abstractmethod
    async def _apply(
        self, update: MetricUpdate, *, cancel: asyncio.Event | None = None
    ) -> None:
        """Merge a validated update into the store."""
        pass  # pragma: no cover

    @abstractmethod
    async def _read(self, kind: MetricKind, name: str) -> str:
        """Return the canonical value of one metric."""
        pass  # pragma: no cover


__all__ = ["BaseMetricsRepository"]
