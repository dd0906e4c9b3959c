"""Data models for the RouteLens console pipeline"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Backend marker values for hops that never answered
TIMEOUT_IP = "*"
TIMEOUT_HOST = "???"


class GeoPrecision(str, Enum):
    """Granularity of the location known for a hop."""

    CITY = "city"
    SUBDIVISION = "subdivision"
    COUNTRY = "country"
    NONE = "none"


class ProbeType(str, Enum):
    """Measurement method configured for a target."""

    ICMP = "MODE_ICMP"
    HTTP = "MODE_HTTP"
    SSH = "MODE_SSH"
    IPERF = "MODE_IPERF"

    @property
    def measures_throughput(self) -> bool:
        """ICMP targets only ever report latency and loss."""
        return self is not ProbeType.ICMP


_PROBE_TYPE_NAMES = {
    "MODE_ICMP": ProbeType.ICMP,
    "ICMP": ProbeType.ICMP,
    "MODE_HTTP": ProbeType.HTTP,
    "HTTP": ProbeType.HTTP,
    "MODE_SSH": ProbeType.SSH,
    "SSH": ProbeType.SSH,
    "MODE_IPERF": ProbeType.IPERF,
    "MODE_IPERF3": ProbeType.IPERF,
    "IPERF": ProbeType.IPERF,
    "IPERF3": ProbeType.IPERF,
}


# =============================================================================
# LENIENT COERCION HELPERS
# =============================================================================

def coerce_float(value: Any) -> Optional[float]:
    """Convert a wire value to float, returning None for anything non-numeric.

    Booleans are rejected even though they are ints in Python, the backend
    never sends them for numeric fields.

    Parameters
    ----------
    value : Any
        Raw value from decoded JSON.

    Returns
    -------
    Optional[float]
        Float value (may be non-finite), or None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            # JSON ints are unbounded, floats are not
            return None
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def coerce_measure(value: Any) -> Optional[float]:
    """Like coerce_float, but only finite non-negative values survive."""
    number = coerce_float(value)
    if number is None or not math.isfinite(number) or number < 0:
        return None
    return number


def coerce_percent(value: Any) -> Optional[float]:
    """Finite percentage clamped into [0, 100], or None."""
    number = coerce_float(value)
    if number is None or not math.isfinite(number):
        return None
    return min(max(number, 0.0), 100.0)


def coerce_text(value: Any) -> Optional[str]:
    """Keep strings, stringify scalars, drop containers."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def parse_timestamp(value: Any) -> Any:
    """Parse an ISO timestamp if possible, otherwise hand the value back."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            # trailing Z is shorthand for UTC, older Pythons do not accept it
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


# =============================================================================
# TRACE MODELS
# =============================================================================

class Hop(BaseModel):
    """One traceroute step as reported by the probe backend.

    Every field is optional on the wire. Values that cannot be interpreted are
    replaced by None instead of failing validation, since a garbled hop is a
    normal result for an unreachable router.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    hop: Optional[int] = None
    host: str = ""
    ip: str = ""
    lon: Optional[float] = None
    lat: Optional[float] = None
    geo_precision: Optional[GeoPrecision] = None
    city: Optional[str] = None
    subdiv: Optional[str] = None
    country: Optional[str] = None
    city_en: Optional[str] = None
    subdiv_en: Optional[str] = None
    country_en: Optional[str] = None
    isp: Optional[str] = None
    asn: Optional[str] = None
    loss: Optional[float] = None
    latency_last_ms: Optional[float] = None
    latency_avg_ms: Optional[float] = None
    latency_best_ms: Optional[float] = None
    latency_worst_ms: Optional[float] = None
    # Single-value latency written by older probes
    latency_ms: Optional[float] = None

    @field_validator("hop", mode="before")
    @classmethod
    def parse_ordinal(cls, v):
        """Accept positive integral ordinals only."""
        number = coerce_float(v)
        if number is None or not math.isfinite(number) or number < 1:
            return None
        if number != int(number):
            return None
        return int(number)

    @field_validator("host", "ip", mode="before")
    @classmethod
    def parse_address(cls, v):
        return coerce_text(v) or ""

    @field_validator(
        "city", "subdiv", "country", "city_en", "subdiv_en", "country_en", "isp", "asn",
        mode="before",
    )
    @classmethod
    def parse_text(cls, v):
        return coerce_text(v)

    @field_validator("lon", "lat", mode="before")
    @classmethod
    def parse_coordinate(cls, v):
        """Keep non-finite floats; the geo classifier decides what they mean."""
        return coerce_float(v)

    @field_validator("geo_precision", mode="before")
    @classmethod
    def parse_precision(cls, v):
        """Unknown precision labels are treated as absent."""
        if isinstance(v, GeoPrecision):
            return v
        if isinstance(v, str):
            try:
                return GeoPrecision(v.strip().lower())
            except ValueError:
                logger.debug(f"Ignoring unknown geo_precision {v!r}")
                return None
        return None

    @field_validator("loss", mode="before")
    @classmethod
    def parse_loss(cls, v):
        return coerce_percent(v)

    @field_validator(
        "latency_last_ms", "latency_avg_ms", "latency_best_ms", "latency_worst_ms", "latency_ms",
        mode="before",
    )
    @classmethod
    def parse_latency(cls, v):
        return coerce_measure(v)


class Trace(BaseModel):
    """Full ordered hop sequence for one target at one probe time."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    target: str = ""
    hops: Tuple[Hop, ...] = ()
    truncated: bool = False  # path exceeded the probe's max-hop limit

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v):
        return coerce_text(v) or ""

    @field_validator("hops", mode="before")
    @classmethod
    def parse_hops(cls, v):
        """Coerce missing hops to empty and drop entries that are not objects."""
        if v is None:
            return ()
        if not isinstance(v, (list, tuple)):
            logger.debug(f"Trace hops is {type(v).__name__}, expected a list")
            return ()
        kept = [h for h in v if isinstance(h, (Hop, Mapping))]
        if len(kept) != len(v):
            logger.debug(f"Dropped {len(v) - len(kept)} malformed hop entries")
        return tuple(kept)

    @field_validator("truncated", mode="before")
    @classmethod
    def parse_truncated(cls, v):
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("true", "1")


# =============================================================================
# MONITORING MODELS
# =============================================================================

class MonitorSample(BaseModel):
    """One periodic latency/loss/throughput measurement for a target.

    Accepts both the snake_case keys of the current backend and the
    PascalCase keys of older releases (e.g. ``LatencyMs``).
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    created_at: Optional[Union[datetime, str]] = Field(
        None, validation_alias=AliasChoices("created_at", "CreatedAt")
    )
    target: str = Field("", validation_alias=AliasChoices("target", "Target"))
    latency_ms: float = Field(0.0, validation_alias=AliasChoices("latency_ms", "LatencyMs"))
    packet_loss: float = Field(0.0, validation_alias=AliasChoices("packet_loss", "PacketLoss"))
    speed_down: Optional[float] = Field(
        None, validation_alias=AliasChoices("speed_down", "SpeedDown")
    )
    speed_up: Optional[float] = Field(None, validation_alias=AliasChoices("speed_up", "SpeedUp"))

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_datetime(cls, v):
        return parse_timestamp(v)

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v):
        return coerce_text(v) or ""

    @field_validator("latency_ms", mode="before")
    @classmethod
    def parse_latency(cls, v):
        """Missing latency counts as 0 in averages."""
        return coerce_measure(v) or 0.0

    @field_validator("packet_loss", mode="before")
    @classmethod
    def parse_loss(cls, v):
        return coerce_percent(v) or 0.0

    @field_validator("speed_down", "speed_up", mode="before")
    @classmethod
    def parse_speed(cls, v):
        return coerce_measure(v)


class Target(BaseModel):
    """Monitored endpoint as returned by the target list endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: Optional[int] = Field(None, validation_alias=AliasChoices("id", "ID"))
    name: str = Field("", validation_alias=AliasChoices("name", "Name"))
    address: str = Field("", validation_alias=AliasChoices("address", "Address"))
    desc: str = Field("", validation_alias=AliasChoices("desc", "Desc"))
    enabled: bool = Field(True, validation_alias=AliasChoices("enabled", "Enabled"))
    probe_type: ProbeType = Field(
        ProbeType.ICMP, validation_alias=AliasChoices("probe_type", "ProbeType", "ProbeMode")
    )
    # Opaque JSON blob (URL for HTTP, port for iperf, credentials for SSH)
    probe_config: str = Field("", validation_alias=AliasChoices("probe_config", "ProbeConfig"))
    last_error: Optional[str] = Field(None, validation_alias=AliasChoices("last_error", "LastError"))

    @field_validator("name", "address", "desc", "probe_config", mode="before")
    @classmethod
    def parse_text(cls, v):
        return coerce_text(v) or ""

    @field_validator("probe_type", mode="before")
    @classmethod
    def parse_probe_type(cls, v):
        """Map backend mode names to ProbeType, defaulting to ICMP like the backend."""
        if isinstance(v, ProbeType):
            return v
        if isinstance(v, str):
            return _PROBE_TYPE_NAMES.get(v.strip().upper(), ProbeType.ICMP)
        return ProbeType.ICMP

    @field_validator("last_error", mode="before")
    @classmethod
    def parse_last_error(cls, v):
        """Empty error strings mean the last probe succeeded."""
        return coerce_text(v) or None


class TargetStatus(BaseModel):
    """Latest snapshot for one target from the status endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    target: Target
    latency: float = 0.0
    loss: float = 0.0
    speed_down: float = 0.0
    speed_up: float = 0.0
    updated_at: Optional[Union[datetime, str]] = None

    @field_validator("latency", "speed_down", "speed_up", mode="before")
    @classmethod
    def parse_measure(cls, v):
        return coerce_measure(v) or 0.0

    @field_validator("loss", mode="before")
    @classmethod
    def parse_loss(cls, v):
        return coerce_percent(v) or 0.0

    @field_validator("updated_at", mode="before")
    @classmethod
    def parse_datetime(cls, v):
        return parse_timestamp(v)
