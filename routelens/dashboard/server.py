"""Read-only view API serving the console's derived data as JSON.

Each endpoint fetches raw data from the probe backend and runs it through the
pipeline, so any frontend can render hop tables, maps and summaries without
reimplementing the classification rules.
"""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from . import api
from ..hops import project_hops
from ..metrics import METRICS, metric_series, speed_status, summarize, target_overview
from ..models import ProbeType
from ..parser import parse_trace
from ..segments import build_route
from .state import DEFAULT_LOCALE

load_dotenv(find_dotenv(usecwd=True), override=False)

# configure logging
LOG_LEVEL = getattr(logging, os.getenv("ROUTELENS_LOG_LEVEL", "INFO").upper(), logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="RouteLens Console",
    description="Derived trace, route and metrics views for the RouteLens probe backend",
    version="0.1.0",
)

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:*,http://127.0.0.1:*")  # Dev default

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _upstream_error(action: str, error: httpx.HTTPError) -> HTTPException:
    """Map a backend failure to 502 so clients can tell it from bad input."""
    logger.error(f"Backend error while {action}: {error}")
    return HTTPException(status_code=502, detail=f"Backend error while {action}: {error}")


#=====================
# Health
#=====================

@app.get("/health")
async def health():
    """Liveness of this service plus reachability of the backend."""
    backend_ok = await api.check_health()
    return {"status": "healthy", "backend": "up" if backend_ok else "down"}


#=====================
# View Endpoints
#=====================

@app.get("/api/view/targets")
async def view_targets() -> List[Dict[str, Any]]:
    """All targets with their latest snapshot and speed indicator."""
    try:
        payload = await api.get_status()
    except httpx.HTTPError as e:
        raise _upstream_error("fetching status", e)

    return [
        {
            **entry.model_dump(mode="json"),
            "speed_status": speed_status(entry.target, entry.speed_down).value,
        }
        for entry in target_overview(payload)
    ]


@app.get("/api/view/trace")
async def view_trace(
    target: str = Query(..., min_length=1),
    lang: str = Query(DEFAULT_LOCALE),
):
    """Hop table rows and route map of the latest trace of a target."""
    try:
        raw = await api.get_latest_trace(target, lang)
    except httpx.HTTPError as e:
        raise _upstream_error(f"fetching trace for {target}", e)

    trace = parse_trace(raw)
    if trace is None:
        raise HTTPException(status_code=404, detail=f"No trace available for {target}")

    return {
        "target": trace.target or target,
        "truncated": trace.truncated,
        "rows": [row.model_dump(mode="json") for row in project_hops(trace, lang)],
        "route": build_route(trace).model_dump(mode="json"),
    }


@app.get("/api/view/summary")
async def view_summary(
    target: str = Query(..., min_length=1),
    start: Optional[str] = None,
    end: Optional[str] = None,
):
    """Average latency/loss, latest downlink and speed indicator of a target."""
    try:
        targets, samples = await asyncio.gather(
            api.get_targets(),
            api.get_history(target, start=start, end=end),
        )
    except httpx.HTTPError as e:
        raise _upstream_error(f"fetching history for {target}", e)

    meta = next((t for t in targets if t.address == target), None)
    summary = summarize(samples, meta.probe_type if meta else ProbeType.ICMP)

    return {
        "target": target,
        "summary": summary.model_dump(mode="json"),
        "speed_status": speed_status(meta, summary.latest_downlink).value,
        "last_error": meta.last_error if meta else None,
    }


@app.get("/api/view/charts/{metric}")
async def view_chart(
    metric: str,
    target: str = Query(..., min_length=1),
    start: Optional[str] = None,
    end: Optional[str] = None,
):
    """Chart series for one metric of a target's history."""
    if metric not in METRICS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown metric '{metric}', expected one of {sorted(METRICS)}",
        )

    try:
        samples = await api.get_history(target, start=start, end=end)
    except httpx.HTTPError as e:
        raise _upstream_error(f"fetching history for {target}", e)

    return metric_series(samples, metric).model_dump(mode="json")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("ROUTELENS_VIEW_PORT", "8002")))
