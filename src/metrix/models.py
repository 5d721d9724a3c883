"""Metric kinds, wire payloads and the backend-independent validation path."""

from __future__ import annotations
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, StrictFloat, StrictInt
from metrix.errors import InvalidMetricValueError, UnsupportedMetricTypeError


__all__ = [
    "Metric",
    "MetricKey",
    "MetricKind",
    "MetricUpdate",
    "format_counter",
    "format_gauge",
    "format_value",
    "parse_kind",
    "validate_update",
]


_GAUGE_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_COUNTER_RE = re.compile(r"[+-]?\d+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class MetricKind(str, Enum):
    """Supported metric kinds, each with its own name namespace."""

    GAUGE = "gauge"
    COUNTER = "counter"

    @property
    def value_field(self) -> str:
        """Return the wire field that carries values of this kind."""
        return "value" if self is MetricKind.GAUGE else "delta"


MetricKey = tuple[MetricKind, str]
"""Identity of a stored metric: its kind plus its name."""


@dataclass(frozen=True, slots=True)
class MetricUpdate:
    """A validated update ready to be merged by a backend."""

    kind: MetricKind
    name: str
    value: float | int

    @property
    def key(self) -> MetricKey:
        """Return the storage key of the update."""
        return (self.kind, self.name)


def parse_kind(kind: str | MetricKind) -> MetricKind:
    """Return the metric kind for ``kind`` or raise an unsupported-type error."""
    try:
        return MetricKind(kind)
    except ValueError as exc:
        msg = f"unsupported metric type: {kind}"
        raise UnsupportedMetricTypeError(msg) from exc


def _parse_gauge(name: str, raw: object) -> float:
    if isinstance(raw, bool):
        raise InvalidMetricValueError(f"invalid gauge value for {name}: {raw!r}")
    if isinstance(raw, str):
        if not _GAUGE_RE.fullmatch(raw):
            raise InvalidMetricValueError(f"invalid gauge value for {name}: {raw!r}")
        value = float(raw)
    elif isinstance(raw, int | float):
        value = float(raw)
    else:
        raise InvalidMetricValueError(f"invalid gauge value for {name}: {raw!r}")
    if not math.isfinite(value):
        raise InvalidMetricValueError(f"gauge value for {name} must be finite")
    return value


def _parse_counter(name: str, raw: object) -> int:
    if isinstance(raw, str) and _COUNTER_RE.fullmatch(raw):
        value = int(raw)
    elif isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    else:
        raise InvalidMetricValueError(f"invalid counter delta for {name}: {raw!r}")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidMetricValueError(f"counter delta for {name} overflows int64")
    return value


def validate_update(kind: str | MetricKind, name: str, raw: object) -> MetricUpdate:
    """Validate a raw update and return its typed form.

    ``raw`` is either the textual value of a path-style update or an already
    decoded JSON number. ``None`` means the payload lacked the value field for
    its kind.
    """
    metric_kind = parse_kind(kind)
    if not name:
        raise InvalidMetricValueError("metric name required")
    if raw is None:
        msg = f"missing {metric_kind.value} {metric_kind.value_field} for {name}"
        raise InvalidMetricValueError(msg)
    if metric_kind is MetricKind.GAUGE:
        return MetricUpdate(metric_kind, name, _parse_gauge(name, raw))
    return MetricUpdate(metric_kind, name, _parse_counter(name, raw))


def format_gauge(value: float) -> str:
    """Return the shortest positional decimal that round-trips ``value``."""
    return format(Decimal(repr(float(value))).normalize(), "f")


def format_counter(value: int) -> str:
    """Return the plain decimal digits of ``value``."""
    return str(int(value))


def format_value(kind: MetricKind, value: float | int) -> str:
    """Format a stored value canonically for its kind."""
    if kind is MetricKind.GAUGE:
        return format_gauge(value)
    return format_counter(int(value))


class Metric(BaseModel):
    """Wire representation of a metric update or query."""

    id: str
    type: str
    value: StrictInt | StrictFloat | None = Field(
        default=None, description="Gauge value; JSON numbers only."
    )
    delta: StrictInt | None = Field(
        default=None, description="Counter delta; JSON integers only."
    )

    def to_update(self) -> MetricUpdate:
        """Validate the payload and return the matching update."""
        kind = parse_kind(self.type)
        raw = self.value if kind is MetricKind.GAUGE else self.delta
        return validate_update(kind, self.id, raw)

    @classmethod
    def from_stored(cls, kind: MetricKind, name: str, text: str) -> Metric:
        """Build a payload populated with a stored canonical value."""
        if kind is MetricKind.GAUGE:
            return cls(id=name, type=kind.value, value=float(text))
        return cls(id=name, type=kind.value, delta=int(text))
