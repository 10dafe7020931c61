"""POST endpoints: start and stop the sampling loop, fetch a live quote."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from p2p_monitor.config import SamplingSettings
from p2p_monitor.exceptions import AdapterFailure, InvalidConfiguration
from p2p_monitor.scheduler import StartResult, StopResult

log = structlog.get_logger(__name__)

router = APIRouter()


class SamplingRequest(BaseModel):
    """Sampling parameters; omitted fields fall back to SAMPLING_ settings."""

    model_config = ConfigDict(populate_by_name=True)

    min_amount: int | None = Field(default=None, alias="minAmount")
    bank: str | None = None


def _resolve(body: SamplingRequest | None, sampling: SamplingSettings) -> tuple[int, str | None]:
    body = body or SamplingRequest()
    min_amount = body.min_amount if body.min_amount is not None else sampling.default_min_amount
    bank = body.bank if body.bank is not None else sampling.default_bank
    return min_amount, bank


@router.post("/monitoring/start")
async def start_monitoring(request: Request, body: SamplingRequest | None = None) -> JSONResponse:
    """Start sampling; a second start while running is reported, not an error."""
    scheduler = request.app.state.scheduler
    min_amount, bank = _resolve(body, request.app.state.settings.sampling)

    try:
        result = await scheduler.start(min_amount, bank)
    except InvalidConfiguration as e:
        log.warning("monitoring_start_rejected", error=str(e))
        return JSONResponse(
            status_code=422,
            content={"success": False, "message": str(e)},
        )

    if result is StartResult.ALREADY_RUNNING:
        message = "Monitoring is already running"
    else:
        message = "Monitoring started"
        log.info("monitoring_started_via_api", min_amount=min_amount, bank=bank)

    return JSONResponse(content={
        "success": True,
        "result": result.value,
        "message": message,
        "status": scheduler.status().to_dict(),
    })


@router.post("/monitoring/stop")
async def stop_monitoring(request: Request) -> JSONResponse:
    """Stop sampling; stopping an idle monitor is a no-op."""
    scheduler = request.app.state.scheduler

    result = await scheduler.stop()
    if result is StopResult.NOT_RUNNING:
        message = "Monitoring is not running"
    else:
        message = "Monitoring stopped"
        log.info("monitoring_stopped_via_api")

    return JSONResponse(content={
        "success": True,
        "result": result.value,
        "message": message,
        "status": scheduler.status().to_dict(),
    })


@router.post("/quotes/current")
async def current_quote(request: Request, body: SamplingRequest | None = None) -> JSONResponse:
    """Fetch both sides right now for display; nothing is recorded."""
    scheduler = request.app.state.scheduler
    min_amount, bank = _resolve(body, request.app.state.settings.sampling)

    try:
        live = await scheduler.quote(min_amount, bank)
    except InvalidConfiguration as e:
        return JSONResponse(
            status_code=422,
            content={"success": False, "message": str(e)},
        )
    except AdapterFailure as e:
        log.warning("live_quote_failed", kind=e.kind.value, error=str(e))
        return JSONResponse(
            status_code=502,
            content={"success": False, "kind": e.kind.value, "message": str(e)},
        )

    return JSONResponse(content={"success": True, **live.to_dict()})
