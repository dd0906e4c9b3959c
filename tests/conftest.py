"""Shared pytest fixtures for RouteLens tests."""

import pytest
import respx


@pytest.fixture
def respx_mock():
    """Fixture that provides a respx mock router.

    Configuration:
        - assert_all_mocked=False: Allows unmocked requests to pass through.
        - assert_all_called=True: Ensures every mock defined is actually used.
          Catches typos in mock URLs and dead mocks.
    """
    with respx.mock(assert_all_mocked=False, assert_all_called=True) as mock:
        yield mock


@pytest.fixture
def beijing_hop():
    """City-precision hop with native and English names."""
    return {
        "hop": 1,
        "host": "bj-core-1.example.net",
        "ip": "202.97.1.1",
        "lon": 116.4,
        "lat": 39.9,
        "geo_precision": "city",
        "city": "北京",
        "city_en": "Beijing",
        "subdiv": "北京市",
        "subdiv_en": "Beijing",
        "country": "中国",
        "country_en": "China",
        "isp": "ChinaNet",
        "asn": "AS4134",
        "loss": 0,
        "latency_last_ms": 12.5,
        "latency_avg_ms": 13.1,
        "latency_best_ms": 11.9,
        "latency_worst_ms": 15.2,
    }


@pytest.fixture
def country_hop():
    """Hop located only to country level (centroid coordinates)."""
    return {
        "hop": 2,
        "host": "",
        "ip": "203.0.113.9",
        "lon": 105.0,
        "lat": 35.0,
        "geo_precision": "country",
        "country": "中国",
        "country_en": "China",
        "loss": 0,
        "latency_last_ms": 150.0,
    }


@pytest.fixture
def tokyo_hop():
    return {
        "hop": 3,
        "host": "tyo-edge.example.net",
        "ip": "198.51.100.7",
        "lon": 139.7,
        "lat": 35.7,
        "geo_precision": "city",
        "city": "东京",
        "city_en": "Tokyo",
        "country": "日本",
        "country_en": "Japan",
        "loss": 0,
        "latency_last_ms": 250.0,
        "latency_avg_ms": 90.0,
    }


@pytest.fixture
def timeout_hop():
    return {"hop": 4, "ip": "*", "loss": 100}


@pytest.fixture
def trace_payload(beijing_hop, country_hop, tokyo_hop, timeout_hop):
    """Raw trace object as returned by the trace endpoint."""
    return {
        "target": "tyo-edge.example.net",
        "hops": [beijing_hop, country_hop, tokyo_hop, timeout_hop],
        "truncated": False,
    }


@pytest.fixture
def history_payload():
    """Three samples, oldest first, as returned by the history endpoint."""
    return [
        {"created_at": "2025-01-15T10:00:00Z", "target": "1.1.1.1",
         "latency_ms": 10, "packet_loss": 0, "speed_down": 80.0},
        {"created_at": "2025-01-15T10:05:00Z", "target": "1.1.1.1",
         "latency_ms": 20, "packet_loss": 3, "speed_down": 95.5},
        {"created_at": "2025-01-15T10:10:00Z", "target": "1.1.1.1",
         "latency_ms": 30, "packet_loss": 0, "speed_down": 91.0},
    ]


@pytest.fixture
def targets_payload():
    return [
        {"id": 1, "name": "Cloudflare", "address": "1.1.1.1", "enabled": True,
         "probe_type": "MODE_HTTP", "probe_config": "{\"url\": \"https://1.1.1.1\"}"},
        {"id": 2, "name": "Google DNS", "address": "8.8.8.8", "enabled": True,
         "probe_type": "MODE_ICMP", "probe_config": ""},
    ]
