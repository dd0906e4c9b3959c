"""Rolling statistics and status indicators over monitoring samples.

Samples are expected oldest first, as returned by the history endpoint. The
series may have gaps; nothing here assumes regular spacing.
"""

import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError

from .models import MonitorSample, ProbeType, Target, TargetStatus

logger = logging.getLogger(__name__)


class DownlinkReading(BaseModel):
    """Downlink throughput, or "not applicable" for targets that never measure it.

    ``applicable=False`` is distinct from a measured 0 Mbps: an ICMP target has
    no throughput probe, so showing 0 would suggest a failed speed test.
    """

    model_config = ConfigDict(frozen=True)

    applicable: bool
    value: Optional[float] = None


NOT_APPLICABLE = DownlinkReading(applicable=False)


class MetricsSummary(BaseModel):
    """At-a-glance statistics for one target."""

    model_config = ConfigDict(frozen=True)

    sample_count: int
    avg_latency: float
    avg_loss: float
    latest_downlink: float
    downlink: DownlinkReading


class SpeedStatus(str, Enum):
    """Throughput probe indicator shown next to the downlink figure."""

    NO_DATA = "no_data"  # throughput not measured for this target
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    PENDING = "pending"


class MetricSeries(BaseModel):
    """Chart-ready values for one metric."""

    model_config = ConfigDict(frozen=True)

    metric: str
    unit: str
    timestamps: List[Any]
    values: List[float]


# metric name -> (unit, sample accessor)
METRICS = {
    "latency": ("ms", lambda s: s.latency_ms),
    "loss": ("%", lambda s: s.packet_loss),
    "speed": ("Mbps", lambda s: s.speed_down or 0.0),
}


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def latest_downlink(samples: Sequence[MonitorSample]) -> float:
    """Downlink of the newest sample, 0 when there is none."""
    if not samples:
        return 0.0
    return samples[-1].speed_down or 0.0


def summarize(samples: Iterable[MonitorSample], probe_type: ProbeType) -> MetricsSummary:
    """Reduce a sample series to averages and the latest downlink.

    Parameters
    ----------
    samples : Iterable[MonitorSample]
        Samples ordered oldest to newest.
    probe_type : ProbeType
        Probe method of the target, gates the downlink reading.

    Returns
    -------
    MetricsSummary
        Means are 0 for an empty series. For ICMP targets ``downlink`` is
        "not applicable" regardless of the samples.
    """
    samples = list(samples)
    downlink_value = latest_downlink(samples)

    if probe_type.measures_throughput:
        downlink = DownlinkReading(applicable=True, value=downlink_value)
    else:
        downlink = NOT_APPLICABLE

    return MetricsSummary(
        sample_count=len(samples),
        avg_latency=_mean([s.latency_ms for s in samples]),
        avg_loss=_mean([s.packet_loss for s in samples]),
        latest_downlink=downlink_value,
        downlink=downlink,
    )


# =============================================================================
# SPEED STATUS
# =============================================================================

def _speed_disabled(target: Optional[Target], downlink: float) -> bool:
    return target is None or not target.probe_type.measures_throughput


def _speed_measured(target: Optional[Target], downlink: float) -> bool:
    return downlink > 0


def _speed_failed(target: Optional[Target], downlink: float) -> bool:
    return bool(target.last_error)


# Evaluated in order, the first matching rule decides the status
SPEED_STATUS_RULES: Tuple[Tuple[SpeedStatus, Callable[[Optional[Target], float], bool]], ...] = (
    (SpeedStatus.NO_DATA, _speed_disabled),
    (SpeedStatus.HEALTHY, _speed_measured),
    (SpeedStatus.DEGRADED, _speed_failed),
)


def speed_status(target: Optional[Target], downlink: float) -> SpeedStatus:
    """Derive the speed indicator for a target.

    Parameters
    ----------
    target : Optional[Target]
        The selected target, None when it is not (yet) in the target list.
    downlink : float
        Latest downlink in Mbps, see latest_downlink().

    Returns
    -------
    SpeedStatus
        NO_DATA, HEALTHY, DEGRADED or PENDING, by first matching rule.
    """
    for status, matches in SPEED_STATUS_RULES:
        if matches(target, downlink):
            return status
    return SpeedStatus.PENDING


# =============================================================================
# CHARTS & OVERVIEW
# =============================================================================

def metric_series(samples: Iterable[MonitorSample], metric: str) -> MetricSeries:
    """Extract timestamps and values of one metric for charting.

    Raises
    ------
    ValueError
        If ``metric`` is not one of "latency", "loss", "speed".
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric {metric!r}, expected one of {sorted(METRICS)}")

    unit, accessor = METRICS[metric]
    samples = list(samples)
    return MetricSeries(
        metric=metric,
        unit=unit,
        timestamps=[s.created_at for s in samples],
        values=[accessor(s) for s in samples],
    )


def target_overview(payload: Any) -> List[TargetStatus]:
    """Parse the status endpoint response into per-target snapshots.

    Entries that do not validate are skipped with a warning, so one broken
    target does not hide the others.
    """
    if not isinstance(payload, dict):
        return []
    entries = payload.get("targets") or []
    if not isinstance(entries, list):
        return []

    result: List[TargetStatus] = []
    for entry in entries:
        try:
            result.append(TargetStatus.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed status entry: {e.error_count()} errors")
    return result
