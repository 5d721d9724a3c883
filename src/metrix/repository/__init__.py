"""Metrics repository backends sharing one update and query contract."""

from metrix.repository.base import BaseMetricsRepository
from metrix.repository.file import FileMetricsRepository, MetricsSnapshot
from metrix.repository.in_memory import InMemoryMetricsRepository
from metrix.repository.postgres import PostgresMetricsRepository
from metrix.repository.protocol import MetricsRepository


__all__ = [
    "BaseMetricsRepository",
    "FileMetricsRepository",
    "InMemoryMetricsRepository",
    "MetricsRepository",
    "MetricsSnapshot",
    "PostgresMetricsRepository",
]
