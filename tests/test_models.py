"""Tests for metric parsing, validation and canonical formatting."""

import pytest
from pydantic import ValidationError
from metrix.errors import InvalidMetricValueError, UnsupportedMetricTypeError
from metrix.models import (
    Metric,
    MetricKind,
    format_counter,
    format_gauge,
    format_value,
    parse_kind,
    validate_update,
)


def test_parse_kind_accepts_known_kinds() -> None:
    """Both metric kinds parse from their wire names."""

    assert parse_kind("gauge") is MetricKind.GAUGE
    assert parse_kind("counter") is MetricKind.COUNTER
    assert parse_kind(MetricKind.GAUGE) is MetricKind.GAUGE


@pytest.mark.parametrize("kind", ["weird", "Gauge", "", "histogram"])
def test_parse_kind_rejects_unknown(kind: str) -> None:
    """Unknown or differently cased kinds are unsupported."""

    with pytest.raises(UnsupportedMetricTypeError):
        parse_kind(kind)


def test_validate_gauge_from_text() -> None:
    """Gauge text values become floats."""

    update = validate_update("gauge", "Heap", "123.45")

    assert update.kind is MetricKind.GAUGE
    assert update.name == "Heap"
    assert update.value == pytest.approx(123.45)
    assert update.key == (MetricKind.GAUGE, "Heap")


@pytest.mark.parametrize("text", ["1", "-2.5", "+3.", ".5", "1e3", "2.5E-2"])
def test_validate_gauge_accepts_decimal_forms(text: str) -> None:
    """Plain and exponent decimal forms are accepted."""

    assert validate_update("gauge", "g", text).value == float(text)


@pytest.mark.parametrize(
    "text", ["abc", "", " 1", "1 ", "1_000", "nan", "inf", "0x10", "1e999"]
)
def test_validate_gauge_rejects_bad_text(text: str) -> None:
    """Malformed, padded and non-finite gauge text is rejected."""

    with pytest.raises(InvalidMetricValueError):
        validate_update("gauge", "g", text)


def test_validate_gauge_rejects_bool_and_non_finite_numbers() -> None:
    """JSON booleans and non-finite floats are not gauge values."""

    with pytest.raises(InvalidMetricValueError):
        validate_update("gauge", "g", True)
    with pytest.raises(InvalidMetricValueError):
        validate_update("gauge", "g", float("inf"))


def test_validate_counter_from_text_and_int() -> None:
    """Counter deltas parse from signed digits or integers."""

    assert validate_update("counter", "c", "5").value == 5
    assert validate_update("counter", "c", "-7").value == -7
    assert validate_update("counter", "c", 42).value == 42


@pytest.mark.parametrize("raw", ["1.5", "abc", "", "1e3", 1.5, False])
def test_validate_counter_rejects_non_integers(raw: object) -> None:
    """Fractions, words, exponents and booleans are not counter deltas."""

    with pytest.raises(InvalidMetricValueError):
        validate_update("counter", "c", raw)


def test_validate_counter_rejects_int64_overflow() -> None:
    """Deltas beyond the signed 64-bit range are rejected."""

    assert validate_update("counter", "c", str(2**63 - 1)).value == 2**63 - 1
    with pytest.raises(InvalidMetricValueError):
        validate_update("counter", "c", str(2**63))
    with pytest.raises(InvalidMetricValueError):
        validate_update("counter", "c", -(2**63) - 1)


def test_validate_update_requires_name_and_value() -> None:
    """Empty names and missing values are invalid."""

    with pytest.raises(InvalidMetricValueError, match="name required"):
        validate_update("gauge", "", "1")
    with pytest.raises(InvalidMetricValueError, match="missing counter delta"):
        validate_update("counter", "c", None)


def test_validate_update_checks_kind_before_value() -> None:
    """An unknown kind is reported even when the value is malformed."""

    with pytest.raises(UnsupportedMetricTypeError):
        validate_update("weird", "x", "not-a-number")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (123.45, "123.45"),
        (1.0, "1"),
        (0.0, "0"),
        (-2.5, "-2.5"),
        (1e20, "100000000000000000000"),
        (1.5e-7, "0.00000015"),
    ],
)
def test_format_gauge_is_shortest_positional(value: float, expected: str) -> None:
    """Gauges render without exponent and without trailing zeros."""

    assert format_gauge(value) == expected


def test_format_gauge_round_trips() -> None:
    """Formatted gauges parse back to the same float."""

    for value in (0.1, 1 / 3, 123456.789, -0.000123):
        assert float(format_gauge(value)) == value


def test_format_counter_and_value() -> None:
    """Counters render as plain integers."""

    assert format_counter(2) == "2"
    assert format_counter(-15) == "-15"
    assert format_value(MetricKind.COUNTER, 7) == "7"
    assert format_value(MetricKind.GAUGE, 2.0) == "2"


def test_metric_to_update_uses_field_for_kind() -> None:
    """Gauges read ``value`` and counters read ``delta``."""

    gauge = Metric(id="Heap", type="gauge", value=1.5, delta=3)
    counter = Metric(id="Poll", type="counter", value=1.5, delta=3)

    assert gauge.to_update().value == 1.5
    assert counter.to_update().value == 3


def test_metric_to_update_reports_missing_field() -> None:
    """A counter payload carrying only ``value`` is invalid."""

    with pytest.raises(InvalidMetricValueError):
        Metric(id="Poll", type="counter", value=2.0).to_update()


def test_metric_from_stored_populates_single_field() -> None:
    """Stored text is decoded into the field matching the kind."""

    gauge = Metric.from_stored(MetricKind.GAUGE, "Heap", "123.45")
    counter = Metric.from_stored(MetricKind.COUNTER, "Poll", "2")

    assert gauge.model_dump(exclude_none=True) == {
        "id": "Heap",
        "type": "gauge",
        "value": 123.45,
    }
    assert counter.model_dump(exclude_none=True) == {
        "id": "Poll",
        "type": "counter",
        "delta": 2,
    }


@pytest.mark.parametrize(
    "fields",
    [
        {"value": True},
        {"value": "1.5"},
        {"delta": False},
        {"delta": "7"},
        {"delta": 2.0},
    ],
)
def test_metric_payload_rejects_coercible_values(fields: dict[str, object]) -> None:
    """The wire model does not coerce booleans, strings or floats into numbers."""

    with pytest.raises(ValidationError):
        Metric(id="x", type="gauge", **fields)


def test_metric_payload_accepts_integer_gauge_values() -> None:
    """Integer JSON numbers are valid gauge values."""

    assert Metric(id="Heap", type="gauge", value=2).to_update().value == 2.0
