"""In-memory metrics repository with durable JSON snapshots."""

from __future__ import annotations
import asyncio
import contextlib
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError
from metrix.errors import MetricValidationError, SnapshotError, StorageUnavailableError
from metrix.models import (
    Metric,
    MetricKind,
    MetricUpdate,
    format_counter,
    format_gauge,
    validate_update,
)
from metrix.repository.in_memory import InMemoryMetricsRepository


logger = logging.getLogger(__name__)


class MetricsSnapshot(BaseModel):
    """On-disk layout of a metrics snapshot.

    Values are canonical strings so floats and 64-bit integers survive the
    round trip exactly.
    """

    gauges: dict[str, str] = Field(default_factory=dict)
    counters: dict[str, str] = Field(default_factory=dict)


class FileMetricsRepository(InMemoryMetricsRepository):
    """In-memory repository that snapshots its state to a JSON file.

    With ``store_interval`` set to ``0`` every successful update is written
    to disk before the call returns. Positive intervals save from a
    background task started by :meth:`start`; :meth:`close` always writes a
    final snapshot.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        store_interval: float = 300,
        restore: bool = True,
    ) -> None:
        """Configure the snapshot location and schedule."""
        super().__init__()
        if store_interval < 0:
            raise ValueError("store_interval must not be negative.")
        self._path = Path(path).expanduser()
        self._store_interval = store_interval
        self._restore = restore
        self._save_lock = asyncio.Lock()
        self._snapshot_task: asyncio.Task[None] | None = None

    @property
    def path(self) -> Path:
        """Return the snapshot file location."""
        return self._path

    @property
    def synchronous(self) -> bool:
        """Return whether every update is persisted before returning."""
        return self._store_interval == 0

    async def start(self) -> None:
        """Restore the previous snapshot and schedule periodic saves."""
        if self._restore:
            try:
                await self.load_from_file()
            except SnapshotError as exc:
                logger.warning("Starting with empty state: %s", exc)
        if not self.synchronous and self._snapshot_task is None:
            self._snapshot_task = asyncio.create_task(self._snapshot_loop())

    async def close(self) -> None:
        """Stop the periodic task and write a final snapshot."""
        if self._snapshot_task is not None:
            self._snapshot_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._snapshot_task
            self._snapshot_task = None
        await self._persist()

    async def _apply(
        self, update: MetricUpdate, *, cancel: asyncio.Event | None = None
    ) -> None:
        await super()._apply(update, cancel=cancel)
        if self.synchronous:
            await self._persist()

    async def add_batch(self, metrics: Sequence[Metric]) -> None:
        """Apply metrics best effort and save once when saving synchronously."""
        if not self.synchronous:
            await super().add_batch(metrics)
            return
        try:
            for metric in metrics:
                await InMemoryMetricsRepository._apply(self, metric.to_update())
        finally:
            if metrics:
                await self._persist()

    async def save_to_file(self) -> None:
        """Atomically replace the snapshot file with the current state."""
        async with self._save_lock:
            gauges, counters = await self.export_state()
            snapshot = MetricsSnapshot(
                gauges={name: format_gauge(value) for name, value in gauges.items()},
                counters={
                    name: format_counter(value) for name, value in counters.items()
                },
            )
            await asyncio.to_thread(self._write_snapshot, snapshot)

    async def load_from_file(self) -> None:
        """Merge the snapshot file into memory; a missing file is empty state."""
        try:
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except FileNotFoundError:
            logger.info("No metrics snapshot found at %s", self._path)
            return
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Metrics snapshot {self._path} could not be read."
            raise SnapshotError(msg) from exc
        try:
            snapshot = MetricsSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            msg = f"Metrics snapshot {self._path} is malformed."
            raise SnapshotError(msg) from exc

        gauges: dict[str, float] = {}
        counters: dict[str, int] = {}
        for kind, entries in (
            (MetricKind.GAUGE, snapshot.gauges),
            (MetricKind.COUNTER, snapshot.counters),
        ):
            for name, text in entries.items():
                try:
                    update = validate_update(kind, name, text)
                except MetricValidationError as exc:
                    logger.warning("Skipping snapshot entry %s: %s", name, exc)
                    continue
                if kind is MetricKind.GAUGE:
                    gauges[name] = float(update.value)
                else:
                    counters[name] = int(update.value)
        await self.merge_state(gauges, counters)
        logger.info(
            "Restored %s gauges and %s counters from %s",
            len(gauges),
            len(counters),
            self._path,
        )

    async def _persist(self) -> None:
        try:
            await self.save_to_file()
        except OSError as exc:
            msg = f"Failed to write metrics snapshot to {self._path}."
            raise StorageUnavailableError(msg) from exc

    async def _snapshot_loop(self) -> None:
        while True:
            await asyncio.sleep(self._store_interval)
            try:
                await self.save_to_file()
            except OSError:
                logger.exception("Failed to save metrics snapshot to %s", self._path)

    def _write_snapshot(self, snapshot: MetricsSnapshot) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(snapshot.model_dump_json(indent=2))
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


__all__ = ["FileMetricsRepository", "MetricsSnapshot"]
