"""Error taxonomy shared by every metrics repository backend."""

from __future__ import annotations


class MetricsError(RuntimeError):
    """Base error type for metrics repository operations."""


class MetricValidationError(MetricsError):
    """Raised when an update is rejected before reaching a backend."""


class UnsupportedMetricTypeError(MetricValidationError):
    """Raised when the metric kind is neither gauge nor counter."""


class InvalidMetricValueError(MetricValidationError):
    """Raised when a value does not parse according to its metric kind."""


class MetricNotFoundError(MetricsError):
    """Raised when a metric has never been written."""


class StorageError(MetricsError):
    """Base error for faults raised by the storage layer."""


class StorageUnavailableError(StorageError):
    """Raised when a write could not be durably applied due to a transient fault."""


class StoragePermanentError(StorageError):
    """Raised for storage faults that retrying cannot resolve."""


class SnapshotError(StoragePermanentError):
    """Raised when a metrics snapshot file cannot be decoded."""


class BatchAbortedError(MetricsError):
    """Raised when a transactional batch was rolled back as a whole."""

    def __init__(self, index: int, cause: BaseException) -> None:
        """Record the position of the failing item and the underlying error."""
        super().__init__(f"batch aborted at item {index}: {cause}")
        self.index = index
        self.cause = cause


class OperationCancelledError(MetricsError):
    """Raised when a caller cancels an operation between retry attempts."""


class RetryExhaustedError(MetricsError):
    """Raised when every attempt of a retry schedule failed transiently."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        """Record the number of attempts and the final transient error."""
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


__all__ = [
    "BatchAbortedError",
    "InvalidMetricValueError",
    "MetricNotFoundError",
    "MetricValidationError",
    "MetricsError",
    "OperationCancelledError",
    "RetryExhaustedError",
    "SnapshotError",
    "StorageError",
    "StoragePermanentError",
    "StorageUnavailableError",
    "UnsupportedMetricTypeError",
]
