"""Async client for the RouteLens probe backend.

Every function opens a short-lived ``httpx.AsyncClient``; errors from the
backend propagate as httpx exceptions so callers can tell a failed fetch apart
from an empty result.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import httpx
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from ..models import MonitorSample, Target

load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)

API_URL = os.getenv("ROUTELENS_API_URL", "http://localhost:8080").rstrip("/")
API_TOKEN = os.getenv("ROUTELENS_API_TOKEN", "")

# Default timeouts for API requests (seconds)
DEFAULT_TIMEOUT = 10.0
HEALTH_TIMEOUT = 5.0


def _get_headers() -> Dict[str, str]:
    """Get default headers for API requests."""
    if not API_TOKEN:
        return {}
    return {"Authorization": f"Bearer {API_TOKEN}"}


def _format_time(value: Union[datetime, str, None]) -> Optional[str]:
    """Render a range bound as RFC3339, the only format the backend accepts."""
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


async def get_targets() -> List[Target]:
    """Fetch all monitored targets.

    Returns
    -------
    List[Target]
        Targets in backend order. Records that do not validate are skipped.

    Raises
    ------
    httpx.HTTPStatusError
        If the API returns an error status code.
    """
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        resp = await client.get(
            f"{API_URL}/api/v1/targets",
            headers=_get_headers(),
        )
        resp.raise_for_status()
        data = resp.json()

    targets: List[Target] = []
    for item in data or []:
        try:
            targets.append(Target.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed target record: {e.error_count()} errors")
    return targets


async def get_history(
    target: str,
    start: Union[datetime, str, None] = None,
    end: Union[datetime, str, None] = None,
) -> List[MonitorSample]:
    """Fetch the monitoring history of one target.

    Parameters
    ----------
    target : str
        Target address.
    start, end : Union[datetime, str, None]
        Optional time range. The backend defaults to the last 6 hours.

    Returns
    -------
    List[MonitorSample]
        Samples ordered oldest to newest.
    """
    params: Dict[str, Any] = {"target": target}
    if start is not None:
        params["start"] = _format_time(start)
    if end is not None:
        params["end"] = _format_time(end)

    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        resp = await client.get(
            f"{API_URL}/api/v1/history",
            headers=_get_headers(),
            params=params,
        )
        resp.raise_for_status()
        data = resp.json()

    samples: List[MonitorSample] = []
    for item in data or []:
        try:
            samples.append(MonitorSample.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed sample for {target}: {e.error_count()} errors")
    return samples


async def get_latest_trace(target: str, lang: Optional[str] = None) -> Optional[Any]:
    """Fetch the most recent trace of a target.

    The payload is returned undecoded (object or string); it goes through
    ``routelens.parser.parse_trace`` before use.

    Parameters
    ----------
    target : str
        Target address.
    lang : Optional[str]
        Locale tag; the backend localizes location names for non-Chinese
        locales.

    Returns
    -------
    Optional[Any]
        Raw trace payload, or None if no trace was recorded yet (404).
    """
    params: Dict[str, Any] = {"target": target}
    if lang:
        params["lang"] = lang

    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        resp = await client.get(
            f"{API_URL}/api/v1/trace",
            headers=_get_headers(),
            params=params,
        )
        if resp.status_code == 404:
            logger.debug(f"No trace recorded yet for {target}")
            return None
        resp.raise_for_status()

    try:
        return resp.json()
    except ValueError:
        # Let the parser decide what to make of it
        return resp.text


async def get_status() -> Dict[str, Any]:
    """Fetch the latest snapshot of every target.

    Returns
    -------
    Dict[str, Any]
        ``{"targets": [...]}``, see ``routelens.metrics.target_overview``.
    """
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        resp = await client.get(
            f"{API_URL}/api/v1/status",
            headers=_get_headers(),
        )
        resp.raise_for_status()
        return resp.json()


async def trigger_probe(target: Optional[str] = None) -> Dict[str, Any]:
    """Ask the backend to probe one target now, or all targets when None."""
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        resp = await client.post(
            f"{API_URL}/api/v1/probe",
            headers=_get_headers(),
            json={"target": target or ""},
        )
        resp.raise_for_status()
        return resp.json()


async def check_health() -> bool:
    """Check if the probe backend is reachable."""
    try:
        async with httpx.AsyncClient(timeout=HEALTH_TIMEOUT) as client:
            # system info is public and cheap, no auth header needed
            resp = await client.get(f"{API_URL}/api/v1/system/info")
            return resp.status_code == 200

    except (httpx.RequestError, httpx.TimeoutException):
        return False
