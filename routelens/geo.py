"""Geolocation precision classification for trace hops.

All hops with usable coordinates are shown as map markers, but only hops
located to city or subdivision precision take part in drawn route lines.
Country-level coordinates are the country's centroid, and a line snapping to
it would draw a visibly wrong path.
"""

import math
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from .models import GeoPrecision, Hop

_COARSE_PRECISIONS = (GeoPrecision.COUNTRY, GeoPrecision.NONE)


class GeoClassification(BaseModel):
    """Result of classifying one hop.

    Attributes
    ----------
    mappable : bool
        Coordinates can be placed on the map (scatter marker).
    precision : GeoPrecision
        Explicit precision from the backend or the inferred tier.
    high_precision : bool
        Coordinates are precise enough to draw route lines through.
    """

    model_config = ConfigDict(frozen=True)

    mappable: bool
    precision: GeoPrecision
    high_precision: bool = False


class MapPoint(BaseModel):
    """A hop placed on the map."""

    model_config = ConfigDict(frozen=True)

    name: str
    lon: float
    lat: float
    latency: float
    hop: Optional[int] = None
    precision: GeoPrecision
    high_precision: bool


UNMAPPABLE = GeoClassification(mappable=False, precision=GeoPrecision.NONE)


def has_coordinates(hop: Hop) -> bool:
    """Coordinates present, finite and not the (0, 0) "unknown" sentinel."""
    if hop.lon is None or hop.lat is None:
        return False
    if not (math.isfinite(hop.lon) and math.isfinite(hop.lat)):
        return False
    return not (hop.lon == 0 and hop.lat == 0)


def infer_precision(hop: Hop) -> GeoPrecision:
    """Precision tier for hops where the backend did not report one."""
    if hop.city:
        return GeoPrecision.CITY
    if hop.subdiv:
        return GeoPrecision.SUBDIVISION
    return GeoPrecision.COUNTRY


def classify_hop(hop: Hop) -> GeoClassification:
    """Classify a hop's coordinates for map display.

    Rules, first match wins:

    1. Missing or non-finite coordinates: not mappable.
    2. Exactly (0, 0): not mappable, it marks an unknown location rather than
       the point in the Gulf of Guinea.
    3. Explicit ``country`` or ``none`` precision: scatter marker only.
    4. Explicit ``city`` or ``subdivision`` precision: usable for lines.
    5. No explicit precision: inferred from the names present, city, then
       subdivision, otherwise country (scatter only).
    """
    if not has_coordinates(hop):
        return UNMAPPABLE

    precision = hop.geo_precision or infer_precision(hop)
    return GeoClassification(
        mappable=True,
        precision=precision,
        high_precision=precision not in _COARSE_PRECISIONS,
    )


def representative_latency(hop: Hop) -> float:
    """Latency used to color a hop: last, then average, then legacy single value."""
    for value in (hop.latency_last_ms, hop.latency_avg_ms, hop.latency_ms):
        if value is not None:
            return value
    return 0.0


def point_name(hop: Hop) -> str:
    return hop.city or hop.subdiv or hop.host or hop.ip


def scatter_points(hops: Iterable[Hop]) -> List[MapPoint]:
    """All mappable hops as map markers, in hop order."""
    points: List[MapPoint] = []
    for hop in hops:
        geo = classify_hop(hop)
        if not geo.mappable:
            continue
        points.append(
            MapPoint(
                name=point_name(hop),
                lon=hop.lon,
                lat=hop.lat,
                latency=representative_latency(hop),
                hop=hop.hop,
                precision=geo.precision,
                high_precision=geo.high_precision,
            )
        )
    return points


def high_precision_points(hops: Iterable[Hop]) -> List[MapPoint]:
    """Subset of scatter_points() that route lines may pass through."""
    return [p for p in scatter_points(hops) if p.high_precision]
