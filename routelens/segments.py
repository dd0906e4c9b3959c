"""Route line segments between geolocated hops."""

from enum import Enum
from typing import Dict, List, Sequence

from pydantic import BaseModel, ConfigDict, computed_field

from .geo import MapPoint, scatter_points
from .models import Trace

CRITICAL_LATENCY_MS = 200
WARNING_LATENCY_MS = 100


class Severity(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


SEVERITY_COLORS: Dict[Severity, str] = {
    Severity.HEALTHY: "#52c41a",
    Severity.WARNING: "#faad14",
    Severity.CRITICAL: "#ff4d4f",
}


class PathSegment(BaseModel):
    """One line between two consecutive high-precision hops.

    Segments carry no direction of their own; consumers draw them in list
    order, which follows hop order from source to target.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    from_point: MapPoint
    to_point: MapPoint
    severity: Severity

    @computed_field
    @property
    def color(self) -> str:
        return SEVERITY_COLORS[self.severity]


class RouteMap(BaseModel):
    """Everything a map view needs for one trace."""

    model_config = ConfigDict(frozen=True)

    points: List[MapPoint]
    line_points: List[MapPoint]
    segments: List[PathSegment]


def latency_severity(latency_ms: float) -> Severity:
    """Severity tier for a latency value in milliseconds."""
    if latency_ms > CRITICAL_LATENCY_MS:
        return Severity.CRITICAL
    if latency_ms > WARNING_LATENCY_MS:
        return Severity.WARNING
    return Severity.HEALTHY


def build_segments(points: Sequence[MapPoint], label: str = "trace") -> List[PathSegment]:
    """Connect consecutive points with segments colored by destination latency.

    Parameters
    ----------
    points : Sequence[MapPoint]
        High-precision points in hop order.
    label : str
        Name given to each segment, normally the trace target.

    Returns
    -------
    List[PathSegment]
        ``len(points) - 1`` segments, or none for fewer than two points.
    """
    return [
        PathSegment(
            name=label,
            from_point=current,
            to_point=following,
            severity=latency_severity(following.latency),
        )
        for current, following in zip(points, points[1:])
    ]


def build_route(trace: Trace) -> RouteMap:
    """Scatter markers, line points and segments for a trace."""
    points = scatter_points(trace.hops)
    line_points = [p for p in points if p.high_precision]
    return RouteMap(
        points=points,
        line_points=line_points,
        segments=build_segments(line_points, trace.target or "trace"),
    )
