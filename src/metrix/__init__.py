"""Metrix: runtime telemetry collection with interchangeable storage backends."""

from metrix.errors import (
    BatchAbortedError,
    InvalidMetricValueError,
    MetricNotFoundError,
    MetricsError,
    MetricValidationError,
    StoragePermanentError,
    StorageUnavailableError,
    UnsupportedMetricTypeError,
)
from metrix.models import Metric, MetricKind, MetricUpdate


__all__ = [
    "BatchAbortedError",
    "InvalidMetricValueError",
    "Metric",
    "MetricKind",
    "MetricNotFoundError",
    "MetricUpdate",
    "MetricValidationError",
    "MetricsError",
    "StoragePermanentError",
    "StorageUnavailableError",
    "UnsupportedMetricTypeError",
]
