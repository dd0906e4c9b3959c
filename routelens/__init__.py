"""RouteLens console core - trace interpretation and metrics pipeline"""

from .geo import GeoClassification, MapPoint, classify_hop, high_precision_points, scatter_points
from .hops import HopRow, format_latency, is_timeout, project_hops
from .localization import format_location, pick_field
from .metrics import (
    DownlinkReading,
    MetricsSummary,
    SpeedStatus,
    metric_series,
    speed_status,
    summarize,
)
from .models import GeoPrecision, Hop, MonitorSample, ProbeType, Target, Trace
from .parser import parse_trace
from .segments import PathSegment, RouteMap, Severity, build_route, build_segments

__all__ = [
    "GeoClassification",
    "MapPoint",
    "classify_hop",
    "high_precision_points",
    "scatter_points",
    "HopRow",
    "format_latency",
    "is_timeout",
    "project_hops",
    "format_location",
    "pick_field",
    "DownlinkReading",
    "MetricsSummary",
    "SpeedStatus",
    "metric_series",
    "speed_status",
    "summarize",
    "GeoPrecision",
    "Hop",
    "MonitorSample",
    "ProbeType",
    "Target",
    "Trace",
    "parse_trace",
    "PathSegment",
    "RouteMap",
    "Severity",
    "build_route",
    "build_segments",
]

__version__ = "0.1.0"
