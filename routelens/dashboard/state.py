"""Dashboard state for the RouteLens console.

This module holds the only mutable state of the console core: which target is
selected, which locale is active, and the raw data last fetched for them.
Display data is never stored; it is derived from the raw data by the pipeline
functions each time a view property is read.

The state is organized into logical sections:
    - Base State Variables: Raw data from the backend
    - Data Loading Methods: Async methods to fetch data
    - Derived Views: Pipeline output for each console panel
    - Event Handlers: User interaction handlers
    - Helper Methods: Internal utility functions

Note
----
Fetches can complete out of order. Each fetch records the selection generation
and a request sequence number when it is dispatched; a result is only applied
if the selection has not changed since and no newer result of the same kind
has been applied. Switching from target A to B therefore never shows A's data
under B, even if A's request is the last to finish.
"""

import asyncio
import itertools
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import httpx
from dotenv import find_dotenv, load_dotenv

from . import api
from .refresh import AutoRefresh
from ..hops import HopRow, project_hops
from ..metrics import MetricSeries, MetricsSummary, SpeedStatus, metric_series, speed_status, summarize
from ..models import MonitorSample, ProbeType, Target, Trace
from ..parser import parse_trace
from ..segments import RouteMap, build_route

load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = os.getenv("ROUTELENS_DEFAULT_LOCALE", "en")


# =============================================================================
# DASHBOARD STATE
# =============================================================================

class DashboardState:
    """State of the console dashboard for one operator session.

    Attributes
    ----------
    targets : List[Target]
        Monitored targets, read-only copy of the backend list.
    selected_target : str
        Address of the selected target, "" before targets are loaded.
    locale : str
        Active locale tag, decides which location names are shown.
    raw_trace : Any
        Trace payload as fetched, decoded on demand by ``trace``.
    history : List[MonitorSample]
        Samples of the selected target, oldest first.
    history_range : tuple
        Optional (start, end) passed to the history endpoint.
    loading : bool
        Whether at least one refresh is in progress.
    healthy : bool
        Whether the backend answered the last health check.
    error_message : str
        Last fetch error for the current selection, "" until one occurs.
    auto_refresh : AutoRefresh
        Periodic refresh of trace and history; off until started.
    """

    def __init__(self, locale: str = DEFAULT_LOCALE, refresh_interval: Optional[float] = None):
        # ---------------------------------------------------------------------
        # Base State Variables
        # ---------------------------------------------------------------------
        self.targets: List[Target] = []
        self.selected_target: str = ""
        self.locale: str = locale
        self.raw_trace: Any = None
        self.history: List[MonitorSample] = []
        self.history_range: tuple = (None, None)

        self.loading: bool = False
        self.healthy: bool = True
        self.error_message: str = ""

        # ---------------------------------------------------------------------
        # Result ordering
        # ---------------------------------------------------------------------
        self._generation = 0
        self._sequence = itertools.count(1)
        self._applied: Dict[str, int] = {"trace": 0, "history": 0}
        self._refreshes = 0

        if refresh_interval is None:
            self.auto_refresh = AutoRefresh(self.refresh, enabled=False)
        else:
            self.auto_refresh = AutoRefresh(self.refresh, interval=refresh_interval, enabled=False)

    # =========================================================================
    # DATA LOADING METHODS
    # =========================================================================

    async def load_targets(self) -> None:
        """Load the target list and select the first target if none is selected."""
        try:
            self.targets = await api.get_targets()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to load targets: {e}")
            self.error_message = str(e)
            return

        if self.targets and not self.selected_target:
            self.select_target(self.targets[0].address)

    async def load_trace(self) -> None:
        """Load the latest trace of the selected target in the active locale."""
        target = self.selected_target
        if not target:
            return
        generation, sequence = self._generation, next(self._sequence)

        try:
            raw = await api.get_latest_trace(target, self.locale)
        except httpx.HTTPError as e:
            self._record_error(generation, f"Failed to load trace for {target}: {e}")
            return

        if self._accept("trace", generation, sequence, target):
            self.raw_trace = raw

    async def load_history(self) -> None:
        """Load monitoring history of the selected target."""
        target = self.selected_target
        if not target:
            return
        generation, sequence = self._generation, next(self._sequence)
        start, end = self.history_range

        try:
            samples = await api.get_history(target, start=start, end=end)
        except httpx.HTTPError as e:
            self._record_error(generation, f"Failed to load history for {target}: {e}")
            return

        if self._accept("history", generation, sequence, target):
            self.history = samples

    async def check_health(self) -> None:
        """Check if the backend is healthy and update state."""
        self.healthy = await api.check_health()

    async def refresh(self) -> None:
        """Reload trace and history of the selected target.

        Used as the auto refresh callback.
        """
        self._refreshes += 1
        self.loading = True
        try:
            await asyncio.gather(self.load_trace(), self.load_history())
        finally:
            # overlapping refreshes (auto refresh tick during refresh_all)
            self._refreshes -= 1
            self.loading = self._refreshes > 0

    async def refresh_all(self) -> None:
        """Health check, target list, then trace and history.

        Used when the dashboard is first opened.
        """
        await self.check_health()
        await self.load_targets()
        await self.refresh()

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    @property
    def selected_target_meta(self) -> Optional[Target]:
        """Target record of the selection, None if it is not in the list."""
        for target in self.targets:
            if target.address == self.selected_target:
                return target
        return None

    @property
    def probe_type(self) -> ProbeType:
        meta = self.selected_target_meta
        return meta.probe_type if meta else ProbeType.ICMP

    @property
    def trace(self) -> Optional[Trace]:
        """Decoded trace, None when missing or unparseable."""
        return parse_trace(self.raw_trace)

    @property
    def truncated(self) -> bool:
        trace = self.trace
        return bool(trace and trace.truncated)

    @property
    def hop_rows(self) -> List[HopRow]:
        """Rows of the hop table in the active locale."""
        return project_hops(self.trace, self.locale)

    @property
    def route(self) -> Optional[RouteMap]:
        """Map markers and route segments, None without a trace."""
        trace = self.trace
        if trace is None:
            return None
        return build_route(trace)

    @property
    def summary(self) -> MetricsSummary:
        return summarize(self.history, self.probe_type)

    @property
    def speed_status(self) -> SpeedStatus:
        """Speed test indicator for the selected target."""
        return speed_status(self.selected_target_meta, self.summary.latest_downlink)

    def chart(self, metric: str) -> MetricSeries:
        """Chart series of "latency", "loss" or "speed" for the history panel."""
        return metric_series(self.history, metric)

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    def select_target(self, address: str) -> None:
        """Switch to another target; in-flight results for the old one are dropped."""
        if address == self.selected_target:
            return
        self.selected_target = address
        self.raw_trace = None
        self.history = []
        self._invalidate()

    def set_locale(self, locale: str) -> None:
        """Switch locale; the trace is refetched since location names are localized."""
        if locale == self.locale:
            return
        self.locale = locale
        self._invalidate()

    def set_history_range(
        self,
        start: Union[datetime, str, None] = None,
        end: Union[datetime, str, None] = None,
    ) -> None:
        self.history_range = (start, end)
        self._invalidate()

    async def trigger_probe(self) -> None:
        """Ask the backend to probe the selected target now."""
        try:
            await api.trigger_probe(self.selected_target or None)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to trigger probe: {e}")
            self.error_message = str(e)

    def clear_error(self) -> None:
        """Clear the current error message."""
        self.error_message = ""

    # =========================================================================
    # HELPER METHODS (Private)
    # =========================================================================

    def _invalidate(self) -> None:
        self._generation += 1
        logger.debug(f"Selection changed: target={self.selected_target}, "
                     f"locale={self.locale}, generation={self._generation}")

    def _accept(self, kind: str, generation: int, sequence: int, target: str) -> bool:
        """Decide whether a finished fetch may overwrite state."""
        if generation != self._generation:
            logger.debug(f"Ignoring stale {kind} for {target}: generation={generation} "
                         f"(current={self._generation})")
            return False
        if sequence < self._applied[kind]:
            logger.debug(f"Ignoring superseded {kind} for {target}: sequence={sequence}")
            return False
        self._applied[kind] = sequence
        return True

    def _record_error(self, generation: int, message: str) -> None:
        logger.warning(message)
        if generation == self._generation:
            self.error_message = message
