"""Unit tests for data models - focusing on lenient wire coercion."""

import math
from datetime import datetime

import pytest
from pydantic import ValidationError

from routelens.models import (
    GeoPrecision,
    Hop,
    MonitorSample,
    ProbeType,
    Target,
    Trace,
    coerce_float,
)


class TestCoerceFloat:
    """Tests for coerce_float helper, used by every numeric hop field."""

    def test_converts_int(self):
        assert coerce_float(42) == 42.0

    def test_converts_numeric_string(self):
        assert coerce_float(" 12.5 ") == 12.5

    def test_rejects_bool(self):
        assert coerce_float(True) is None

    def test_rejects_garbage(self):
        assert coerce_float("fast") is None
        assert coerce_float([1]) is None

    def test_int_beyond_float_range(self):
        assert coerce_float(10 ** 400) is None
        assert coerce_float(-(10 ** 400)) is None


class TestHop:
    """Tests for Hop validation."""

    def test_non_numeric_latency_becomes_none(self):
        hop = Hop.model_validate({"hop": 1, "latency_last_ms": "n/a"})
        assert hop.latency_last_ms is None

    def test_zero_latency_is_kept(self):
        """0 ms is a real measurement, not 'no data'."""
        hop = Hop.model_validate({"hop": 1, "latency_avg_ms": 0})
        assert hop.latency_avg_ms == 0.0

    def test_negative_and_non_finite_latency_dropped(self):
        hop = Hop.model_validate({"latency_best_ms": -3, "latency_worst_ms": float("inf")})
        assert hop.latency_best_ms is None
        assert hop.latency_worst_ms is None

    def test_loss_clamped(self):
        assert Hop.model_validate({"loss": 140}).loss == 100.0
        assert Hop.model_validate({"loss": -5}).loss == 0.0

    def test_invalid_ordinal_becomes_none(self):
        assert Hop.model_validate({"hop": 0}).hop is None
        assert Hop.model_validate({"hop": "x"}).hop is None
        assert Hop.model_validate({"hop": 2.5}).hop is None
        assert Hop.model_validate({"hop": "7"}).hop == 7

    def test_unknown_precision_becomes_none(self):
        assert Hop.model_validate({"geo_precision": "street"}).geo_precision is None
        assert Hop.model_validate({"geo_precision": "City"}).geo_precision == GeoPrecision.CITY

    def test_non_finite_coordinates_kept_for_classifier(self):
        hop = Hop.model_validate({"lon": float("nan"), "lat": 10})
        assert math.isnan(hop.lon)

    @pytest.mark.parametrize("field", ["hop", "lon", "lat", "latency_last_ms", "loss"])
    def test_oversized_int_becomes_none(self, field):
        hop = Hop.model_validate({field: 10 ** 400, "ip": "1.1.1.1"})
        assert getattr(hop, field) is None
        assert hop.ip == "1.1.1.1"

    def test_missing_address_defaults_empty(self):
        hop = Hop.model_validate({"hop": 3})
        assert hop.host == ""
        assert hop.ip == ""

    def test_hop_is_immutable(self):
        hop = Hop.model_validate({"hop": 1})
        with pytest.raises(ValidationError):
            hop.ip = "10.0.0.1"


class TestTrace:
    """Tests for Trace validation."""

    def test_missing_hops_become_empty(self):
        assert Trace.model_validate({"target": "x"}).hops == ()

    def test_null_hops_become_empty(self):
        assert Trace.model_validate({"hops": None}).hops == ()

    def test_non_object_hops_dropped(self):
        trace = Trace.model_validate({"hops": [{"hop": 1}, "junk", 3, {"hop": 2}]})
        assert [h.hop for h in trace.hops] == [1, 2]

    def test_hop_order_preserved(self):
        """Ordinals are not re-sorted, even when out of order."""
        trace = Trace.model_validate({"hops": [{"hop": 3}, {"hop": 1}, {"hop": 1}]})
        assert [h.hop for h in trace.hops] == [3, 1, 1]

    def test_truncated_flag(self):
        assert Trace.model_validate({"truncated": True}).truncated is True
        assert Trace.model_validate({"truncated": "true"}).truncated is True
        assert Trace.model_validate({}).truncated is False


class TestMonitorSample:
    """Tests for MonitorSample validation."""

    def test_parses_current_wire_format(self):
        sample = MonitorSample.model_validate({
            "created_at": "2025-01-15T10:00:00Z",
            "latency_ms": 25.5,
            "packet_loss": 1.5,
            "speed_down": 94.2,
        })

        assert isinstance(sample.created_at, datetime)
        assert sample.latency_ms == 25.5
        assert sample.packet_loss == 1.5
        assert sample.speed_down == 94.2

    def test_accepts_legacy_pascal_case(self):
        sample = MonitorSample.model_validate({
            "CreatedAt": "2025-01-15T10:00:00Z",
            "LatencyMs": 30,
            "PacketLoss": 5,
            "SpeedDown": 50,
        })

        assert sample.latency_ms == 30.0
        assert sample.packet_loss == 5.0
        assert sample.speed_down == 50.0

    def test_missing_latency_counts_as_zero(self):
        sample = MonitorSample.model_validate({})
        assert sample.latency_ms == 0.0
        assert sample.packet_loss == 0.0
        assert sample.speed_down is None

    def test_oversized_int_counts_as_missing(self):
        sample = MonitorSample.model_validate({"latency_ms": 10 ** 400, "speed_down": 10 ** 400})
        assert sample.latency_ms == 0.0
        assert sample.speed_down is None

    def test_unparseable_timestamp_kept_as_string(self):
        sample = MonitorSample.model_validate({"created_at": "yesterday"})
        assert sample.created_at == "yesterday"


class TestTarget:
    """Tests for Target probe type mapping."""

    @pytest.mark.parametrize("raw,expected", [
        ("MODE_ICMP", ProbeType.ICMP),
        ("MODE_HTTP", ProbeType.HTTP),
        ("ssh", ProbeType.SSH),
        ("IPERF3", ProbeType.IPERF),
        ("", ProbeType.ICMP),
        ("MODE_CARRIER_PIGEON", ProbeType.ICMP),
    ])
    def test_probe_type_mapping(self, raw, expected):
        target = Target.model_validate({"address": "1.1.1.1", "probe_type": raw})
        assert target.probe_type == expected

    def test_empty_last_error_is_none(self):
        target = Target.model_validate({"address": "1.1.1.1", "last_error": ""})
        assert target.last_error is None

    def test_only_icmp_lacks_throughput(self):
        assert not ProbeType.ICMP.measures_throughput
        assert all(p.measures_throughput for p in ProbeType if p is not ProbeType.ICMP)
