"""JSON read endpoints: monitoring status, hourly analytics and raw history."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

log = structlog.get_logger(__name__)

router = APIRouter()

_LATEST_COUNT = 10


@router.get("/monitoring/status")
async def get_status(request: Request) -> JSONResponse:
    """Current sampling state, configuration and record count."""
    scheduler = request.app.state.scheduler
    return JSONResponse(content={"success": True, **scheduler.status().to_dict()})


@router.get("/analytics")
async def get_analytics(request: Request) -> JSONResponse:
    """Hourly buckets, strategy analysis and the latest samples (newest first)."""
    scheduler = request.app.state.scheduler
    hourly = scheduler.snapshot()
    report = scheduler.analyze()
    latest = list(reversed(scheduler.history(_LATEST_COUNT)))

    return JSONResponse(content={
        "success": True,
        "total_records": scheduler.status().history_size,
        "hourly": [bucket.to_dict() for bucket in hourly],
        "analysis": report.to_dict(),
        "latest": [sample.to_dict() for sample in latest],
    })


@router.get("/history")
async def get_history(
    request: Request,
    last_n: int | None = Query(default=None, ge=1),
) -> JSONResponse:
    """Raw retained samples, oldest first; last_n limits to the most recent."""
    scheduler = request.app.state.scheduler
    samples = scheduler.history(last_n)
    return JSONResponse(content=[sample.to_dict() for sample in samples])
