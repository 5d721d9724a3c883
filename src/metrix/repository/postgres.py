"""PostgreSQL-backed metrics repository."""

from __future__ import annotations
import asyncio
import contextlib
import logging
from collections.abc import Sequence
from typing import Any
import psycopg
from psycopg_pool import AsyncConnectionPool
from metrix.errors import (
    BatchAbortedError,
    MetricNotFoundError,
    MetricValidationError,
    RetryExhaustedError,
    StorageError,
    StoragePermanentError,
    StorageUnavailableError,
)
from metrix.models import (
    Metric,
    MetricKey,
    MetricKind,
    MetricUpdate,
    format_counter,
    format_gauge,
)
from metrix.repository.base import BaseMetricsRepository
from metrix.retry import RetryPolicy


logger = logging.getLogger(__name__)

POSTGRES_METRICS_SCHEMA = """
CREATE TABLE IF NOT EXISTS gauges (
    name TEXT PRIMARY KEY,
    value DOUBLE PRECISION NOT NULL
);
CREATE TABLE IF NOT EXISTS counters (
    name TEXT PRIMARY KEY,
    delta BIGINT NOT NULL
);
"""

UPSERT_GAUGE = """
INSERT INTO gauges (name, value)
VALUES (%s, %s)
ON CONFLICT (name) DO UPDATE SET value = EXCLUDED.value
"""

UPSERT_COUNTER = """
INSERT INTO counters (name, delta)
VALUES (%s, %s)
ON CONFLICT (name) DO UPDATE SET delta = counters.delta + EXCLUDED.delta
"""

_CONNECTION_EXCEPTION_CLASS = "08"


async def ensure_schema(conn: Any) -> None:
    """Create the gauge and counter tables when they do not exist yet."""
    for statement in POSTGRES_METRICS_SCHEMA.strip().split(";"):
        if statement.strip():
            await conn.execute(statement)


def is_transient_error(exc: BaseException) -> bool:
    """Return whether ``exc`` is a connection-level fault worth retrying.

    Only SQLSTATE class 08 (connection exception) and client-side connection
    failures without a SQLSTATE qualify. Constraint violations, data errors
    and programming errors never do.
    """
    if not isinstance(exc, psycopg.OperationalError):
        return False
    sqlstate = exc.sqlstate
    return sqlstate is None or sqlstate.startswith(_CONNECTION_EXCEPTION_CLASS)


def _to_storage_error(exc: psycopg.Error) -> StorageError:
    if is_transient_error(exc):
        return StorageUnavailableError(f"metrics database unavailable: {exc}")
    return StoragePermanentError(f"metrics database error: {exc}")


def _upsert(update: MetricUpdate) -> tuple[str, tuple[str, float | int]]:
    if update.kind is MetricKind.GAUGE:
        return UPSERT_GAUGE, (update.name, float(update.value))
    return UPSERT_COUNTER, (update.name, int(update.value))


class PostgresMetricsRepository(BaseMetricsRepository):
    """Metrics repository storing gauges and counters in PostgreSQL tables.

    The database is the only source of truth: reads always hit the tables and
    counter merges happen inside a single upsert statement, so concurrent
    writers never lose increments. The repository owns its connection pool.
    """

    def __init__(
        self,
        dsn: str,
        *,
        min_pool_size: int = 1,
        max_pool_size: int = 10,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Create the (unopened) connection pool for ``dsn``."""
        self._pool: Any = AsyncConnectionPool(
            dsn, min_size=min_pool_size, max_size=max_pool_size, open=False
        )
        self._retry = retry_policy or RetryPolicy()
        self._init_lock = asyncio.Lock()
        self._initialized = False

    async def start(self) -> None:
        """Open the pool and create the schema."""
        await self._pool.open()
        await self._ensure_initialized()

    async def close(self) -> None:
        """Close the connection pool."""
        await self._pool.close()

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            try:
                async with self._pool.connection() as conn:
                    await ensure_schema(conn)
                    await conn.commit()
            except psycopg.Error as exc:
                raise _to_storage_error(exc) from exc
            self._initialized = True

    async def _apply(
        self, update: MetricUpdate, *, cancel: asyncio.Event | None = None
    ) -> None:
        await self._ensure_initialized()
        statement, params = _upsert(update)

        async def attempt() -> None:
            async with self._pool.connection() as conn:
                await conn.execute(statement, params)
                await conn.commit()

        try:
            await self._retry.run(
                attempt, is_transient=is_transient_error, cancel=cancel
            )
        except RetryExhaustedError as exc:
            msg = f"could not store {update.kind.value} {update.name}: {exc}"
            raise StorageUnavailableError(msg) from exc.last_error
        except psycopg.Error as exc:
            raise _to_storage_error(exc) from exc

    async def _read(self, kind: MetricKind, name: str) -> str:
        await self._ensure_initialized()
        if kind is MetricKind.GAUGE:
            query = "SELECT value FROM gauges WHERE name = %s"
        else:
            query = "SELECT delta FROM counters WHERE name = %s"
        try:
            async with self._pool.connection() as conn:
                cursor = await conn.execute(query, (name,))
                row = await cursor.fetchone()
        except psycopg.Error as exc:
            raise _to_storage_error(exc) from exc
        if row is None:
            raise MetricNotFoundError(f"{kind.value} {name} not found")
        if kind is MetricKind.GAUGE:
            return format_gauge(row[0])
        return format_counter(row[0])

    async def get_all(self) -> dict[MetricKey, str]:
        """Read every gauge and counter row."""
        await self._ensure_initialized()
        try:
            async with self._pool.connection() as conn:
                cursor = await conn.execute("SELECT name, value FROM gauges")
                gauge_rows = await cursor.fetchall()
                cursor = await conn.execute("SELECT name, delta FROM counters")
                counter_rows = await cursor.fetchall()
        except psycopg.Error as exc:
            raise _to_storage_error(exc) from exc
        snapshot: dict[MetricKey, str] = {
            (MetricKind.GAUGE, name): format_gauge(value) for name, value in gauge_rows
        }
        snapshot.update(
            ((MetricKind.COUNTER, name), format_counter(delta))
            for name, delta in counter_rows
        )
        return snapshot

    async def ping(self) -> None:
        """Run a lightweight query to verify connectivity."""
        try:
            async with self._pool.connection() as conn:
                await conn.execute("SELECT 1")
        except psycopg.Error as exc:
            raise _to_storage_error(exc) from exc

    async def add_batch(self, metrics: Sequence[Metric]) -> None:
        """Apply every metric inside one transaction or none of them.

        Every item is validated before a connection is taken. Validation and
        database errors are raised as :class:`BatchAbortedError` carrying the
        failing position; database errors roll the transaction back first.
        """
        if not metrics:
            return
        updates: list[MetricUpdate] = []
        for index, metric in enumerate(metrics):
            try:
                updates.append(metric.to_update())
            except MetricValidationError as exc:
                raise BatchAbortedError(index, exc) from exc
        await self._ensure_initialized()
        try:
            async with self._pool.connection() as conn:
                index = 0
                try:
                    for index, update in enumerate(updates):
                        await conn.execute(*_upsert(update))
                    await conn.commit()
                except psycopg.Error as exc:
                    with contextlib.suppress(psycopg.Error):
                        await conn.rollback()
                    logger.warning("Rolled back metrics batch at item %s", index)
                    raise BatchAbortedError(index, exc) from exc
        except psycopg.Error as exc:
            raise _to_storage_error(exc) from exc


__all__ = [
    "POSTGRES_METRICS_SCHEMA",
    "PostgresMetricsRepository",
    "ensure_schema",
    "is_transient_error",
]
