"""Unit tests for geo precision classification and map points."""

import pytest

from routelens.geo import (
    classify_hop,
    high_precision_points,
    representative_latency,
    scatter_points,
)
from routelens.models import GeoPrecision, Hop


def make_hop(**fields) -> Hop:
    return Hop.model_validate({"hop": 1, "ip": "192.0.2.1", **fields})


class TestClassifyHopRejects:
    """Rules 1 and 2: no usable coordinates."""

    def test_missing_coordinates(self):
        geo = classify_hop(make_hop(city="Paris"))
        assert geo.mappable is False

    def test_missing_one_component(self):
        assert classify_hop(make_hop(lon=2.3)).mappable is False

    @pytest.mark.parametrize("lon,lat", [
        (float("nan"), float("nan")),
        (float("inf"), 48.8),
        (2.3, float("-inf")),
    ])
    def test_non_finite_coordinates(self, lon, lat):
        assert classify_hop(make_hop(lon=lon, lat=lat)).mappable is False

    @pytest.mark.parametrize("fields", [
        {},
        {"geo_precision": "city", "city": "Paris"},
        {"city": "Paris", "subdiv": "IDF", "country": "France"},
    ])
    def test_zero_zero_never_mappable(self, fields):
        """(0, 0) is the 'unknown location' sentinel regardless of other fields."""
        geo = classify_hop(make_hop(lon=0, lat=0, **fields))
        assert geo.mappable is False
        assert geo.high_precision is False

    def test_zero_longitude_alone_is_valid(self):
        """Greenwich meridian points are real locations."""
        geo = classify_hop(make_hop(lon=0, lat=51.48, city="London"))
        assert geo.mappable is True


class TestClassifyHopExplicitPrecision:
    """Rules 3 and 4: precision reported by the backend."""

    @pytest.mark.parametrize("precision", ["country", "none"])
    def test_coarse_precision_is_scatter_only(self, precision):
        geo = classify_hop(make_hop(lon=105, lat=35, geo_precision=precision, city="ignored"))

        assert geo.mappable is True
        assert geo.high_precision is False
        assert geo.precision == GeoPrecision(precision)

    @pytest.mark.parametrize("precision", ["city", "subdivision"])
    def test_fine_precision_draws_lines(self, precision):
        geo = classify_hop(make_hop(lon=116.4, lat=39.9, geo_precision=precision))

        assert geo.mappable is True
        assert geo.high_precision is True


class TestClassifyHopInferredPrecision:
    """Rule 5: fallback when no precision was reported."""

    def test_city_name_means_city(self):
        geo = classify_hop(make_hop(lon=116.4, lat=39.9, city="Beijing", subdiv="Beijing"))
        assert geo.precision == GeoPrecision.CITY
        assert geo.high_precision is True

    def test_subdivision_only(self):
        geo = classify_hop(make_hop(lon=120.1, lat=30.2, subdiv="Zhejiang"))
        assert geo.precision == GeoPrecision.SUBDIVISION
        assert geo.high_precision is True

    def test_neither_means_country(self):
        geo = classify_hop(make_hop(lon=105, lat=35, country="China"))
        assert geo.precision == GeoPrecision.COUNTRY
        assert geo.high_precision is False
        assert geo.mappable is True


class TestRepresentativeLatency:
    """Latency used for colors: last, then avg, then legacy, then 0."""

    def test_prefers_last(self):
        assert representative_latency(make_hop(latency_last_ms=5, latency_avg_ms=50)) == 5

    def test_falls_back_to_avg(self):
        assert representative_latency(make_hop(latency_avg_ms=50)) == 50

    def test_zero_last_is_a_value(self):
        assert representative_latency(make_hop(latency_last_ms=0, latency_avg_ms=50)) == 0

    def test_legacy_single_latency(self):
        assert representative_latency(make_hop(latency_ms=33)) == 33

    def test_defaults_to_zero(self):
        assert representative_latency(make_hop()) == 0.0


class TestPoints:
    """Scatter points vs. high-precision points."""

    def test_scatter_includes_coarse_points(self, beijing_hop, country_hop, tokyo_hop, timeout_hop):
        hops = [Hop.model_validate(h) for h in (beijing_hop, country_hop, tokyo_hop, timeout_hop)]

        points = scatter_points(hops)

        assert [p.hop for p in points] == [1, 2, 3]
        assert points[1].precision == GeoPrecision.COUNTRY
        assert points[1].high_precision is False

    def test_high_precision_keeps_hop_order(self, beijing_hop, country_hop, tokyo_hop):
        hops = [Hop.model_validate(h) for h in (beijing_hop, country_hop, tokyo_hop)]
        assert [p.hop for p in high_precision_points(hops)] == [1, 3]

    def test_point_name_fallbacks(self):
        points = scatter_points([
            make_hop(lon=1, lat=1, city="Lyon"),
            make_hop(lon=1, lat=1, subdiv="Bavaria"),
            make_hop(lon=1, lat=1, host="edge.example.net"),
            make_hop(lon=1, lat=1),
        ])
        assert [p.name for p in points] == ["Lyon", "Bavaria", "edge.example.net", "192.0.2.1"]

    def test_does_not_mutate_hops(self, beijing_hop):
        hop = Hop.model_validate(beijing_hop)
        before = hop.model_dump()
        scatter_points([hop])
        assert hop.model_dump() == before
