"""Projection of trace hops into hop table rows."""

from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, computed_field

from .localization import format_location
from .models import TIMEOUT_HOST, TIMEOUT_IP, GeoPrecision, Hop, Trace
from .segments import Severity

# Display value for missing measurements
PLACEHOLDER = "N/A"
ASN_PLACEHOLDER = "-"

CRITICAL_LOSS_PERCENT = 50
WARNING_LOSS_PERCENT = 10


class HopRow(BaseModel):
    """One row of the hop table.

    Latency attributes keep None for "no data" so that a measured 0 ms can be
    told apart from a missing value; the ``*_display`` attributes hold the
    rendered strings.

    Attributes
    ----------
    key : int
        Hop ordinal, or the row position when the ordinal is missing.
    is_timeout : bool
        The hop did not answer; consumers render these rows muted.
    coarse_location : bool
        Location is only known to country level and is approximate.
    """

    model_config = ConfigDict(frozen=True)

    key: int
    hop: Optional[int]
    host: str
    ip: str
    location: str
    isp: Optional[str]
    asn: str
    loss: Optional[float]
    loss_display: str
    loss_severity: Severity
    last: Optional[float]
    avg: Optional[float]
    best: Optional[float]
    worst: Optional[float]
    last_display: str
    avg_display: str
    best_display: str
    worst_display: str
    is_timeout: bool
    geo_precision: Optional[GeoPrecision]
    coarse_location: bool

    @computed_field
    @property
    def emphasis(self) -> str:
        return "muted" if self.is_timeout else "normal"


def is_timeout(hop: Hop) -> bool:
    """A hop timed out when all probes were lost or it reported no address.

    Any one of the three markers is enough; ``ip == "*"`` counts even when
    the backend reported 0% loss.
    """
    return hop.loss == 100 or hop.ip == TIMEOUT_IP or hop.host == TIMEOUT_HOST


def format_latency(value: Any) -> str:
    """Render a latency cell, keeping 0 ms distinct from missing data."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return PLACEHOLDER
    return f"{value:.1f}ms"


def format_loss(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return PLACEHOLDER
    return f"{value:.1f}%"


def loss_severity(loss: Optional[float]) -> Severity:
    """Severity tier for a hop's packet loss percentage."""
    if loss is None:
        return Severity.HEALTHY
    if loss > CRITICAL_LOSS_PERCENT:
        return Severity.CRITICAL
    if loss > WARNING_LOSS_PERCENT:
        return Severity.WARNING
    return Severity.HEALTHY


def project_hop(hop: Hop, locale: Optional[str], position: int = 0) -> HopRow:
    """Build the table row for a single hop."""
    return HopRow(
        key=hop.hop if hop.hop is not None else position,
        hop=hop.hop,
        host=hop.host or hop.ip,
        ip=hop.ip,
        location=format_location(hop, locale),
        isp=hop.isp,
        asn=hop.asn or ASN_PLACEHOLDER,
        loss=hop.loss,
        loss_display=format_loss(hop.loss),
        loss_severity=loss_severity(hop.loss),
        last=hop.latency_last_ms,
        avg=hop.latency_avg_ms,
        best=hop.latency_best_ms,
        worst=hop.latency_worst_ms,
        last_display=format_latency(hop.latency_last_ms),
        avg_display=format_latency(hop.latency_avg_ms),
        best_display=format_latency(hop.latency_best_ms),
        worst_display=format_latency(hop.latency_worst_ms),
        is_timeout=is_timeout(hop),
        geo_precision=hop.geo_precision,
        coarse_location=hop.geo_precision == GeoPrecision.COUNTRY,
    )


def project_hops(source: Union[Trace, Iterable[Hop], None], locale: Optional[str]) -> List[HopRow]:
    """Map every hop to a table row, keeping timeouts and the original order.

    Parameters
    ----------
    source : Union[Trace, Iterable[Hop], None]
        A parsed trace or its hops. None yields no rows.
    locale : Optional[str]
        Active locale, selects native or English location names.

    Returns
    -------
    List[HopRow]
        One row per hop. Rows are never re-sorted by ordinal.
    """
    if source is None:
        return []
    hops = source.hops if isinstance(source, Trace) else source
    return [project_hop(hop, locale, position) for position, hop in enumerate(hops, start=1)]
