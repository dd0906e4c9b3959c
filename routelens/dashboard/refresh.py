"""Restartable periodic refresh for dashboard views."""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 1.0
MAX_INTERVAL_SECONDS = 3600.0


def _interval_from_env() -> float:
    raw = os.getenv("ROUTELENS_REFRESH_SECONDS", "5")
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid ROUTELENS_REFRESH_SECONDS={raw!r}, using 5s")
        return 5.0
    return min(max(value, MIN_INTERVAL_SECONDS), MAX_INTERVAL_SECONDS)


DEFAULT_INTERVAL_SECONDS = _interval_from_env()


class AutoRefresh:
    """Runs an async callback every ``interval`` seconds on the running loop.

    At most one timer task exists at any time. Every change (interval, enabled
    flag, restart) cancels the pending task before a new one is scheduled, so
    ticks never overlap or double up.

    Attributes
    ----------
    interval : float
        Seconds between the end of one tick and the start of the next.
    enabled : bool
        Whether auto refresh is switched on.
    tick_count : int
        Number of completed callback invocations, for status display.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval: float = DEFAULT_INTERVAL_SECONDS,
        enabled: bool = True,
    ):
        self._validate_interval(interval)
        self._callback = callback
        self.interval = float(interval)
        self.enabled = enabled
        self.tick_count = 0
        self._task: Optional[asyncio.Task] = None

    @staticmethod
    def _validate_interval(interval: float) -> None:
        if not MIN_INTERVAL_SECONDS <= interval <= MAX_INTERVAL_SECONDS:
            raise ValueError(
                f"interval must be between {MIN_INTERVAL_SECONDS} and "
                f"{MAX_INTERVAL_SECONDS} seconds, got {interval}"
            )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the timer if enabled. Replaces any pending timer."""
        self._cancel()
        if not self.enabled:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Auto refresh started: interval={self.interval}s")

    def stop(self) -> None:
        """Cancel the pending timer, if any."""
        if self._cancel():
            logger.debug("Auto refresh stopped")

    def restart(self) -> None:
        self.start()

    def set_interval(self, interval: float) -> None:
        """Change the interval; a running timer is rescheduled with it."""
        self._validate_interval(interval)
        self.interval = float(interval)
        if self.running:
            self.start()

    def set_enabled(self, enabled: bool) -> None:
        """Toggle auto refresh on or off."""
        self.enabled = enabled
        if enabled:
            self.start()
        else:
            self.stop()

    def _cancel(self) -> bool:
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # a failed refresh must not end auto refresh
                logger.warning(f"Auto refresh tick failed: {e}", exc_info=True)
            self.tick_count += 1
