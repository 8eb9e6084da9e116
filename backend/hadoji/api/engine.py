"""Engine API: scheduler status, manual tick trigger and venue symbol listing."""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from hadoji.config import RESOLUTION_SECONDS, Settings, settings
from hadoji.schemas.market import ProductSymbol
from hadoji.services.delta_client import DeltaClient
from hadoji.services.errors import TransportError
from hadoji.services.scheduler import TickScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["engine"])


def get_scheduler() -> TickScheduler:
    # Dependency override in main.py will supply singleton.
    raise RuntimeError("scheduler dependency is not configured")


def get_delta_client() -> DeltaClient:
    return DeltaClient()


def get_settings() -> Settings:
    return settings


@router.get("/resolutions")
async def list_resolutions() -> dict[str, list[str]]:
    """Return supported candle resolutions, shortest first."""
    return {"resolutions": sorted(RESOLUTION_SECONDS, key=RESOLUTION_SECONDS.__getitem__)}


@router.get("/symbols", response_model=list[ProductSymbol])
async def list_symbols(client: DeltaClient = Depends(get_delta_client)) -> list[ProductSymbol]:
    """Return perpetual futures listed on the venue, for choosing trading and history symbols."""
    try:
        return await client.list_perpetual_symbols()
    except TransportError as e:
        logger.warning("Delta API unreachable: %s", e)
        raise HTTPException(
            status_code=503,
            detail="Venue product list temporarily unavailable. Check network or try again later.",
        ) from e


@router.get("/status")
async def get_status(
    scheduler: TickScheduler = Depends(get_scheduler),
    config: Settings = Depends(get_settings),
) -> dict:
    """Return engine configuration summary and the last tick report."""
    report = scheduler.last_report
    return {
        "mode": config.mode,
        "tradingSymbol": config.trading_symbol,
        "historySymbol": config.candle_symbol,
        "resolution": config.resolution,
        "schedulerRunning": scheduler.running,
        "tickInProgress": scheduler.tick_in_progress,
        "skippedTicks": scheduler.skipped_ticks,
        "lastTick": asdict(report) if report is not None else None,
    }


@router.post("/ticks")
async def trigger_tick(scheduler: TickScheduler = Depends(get_scheduler)) -> dict[str, bool]:
    """Run one tick now through the same overlap guard as the scheduler clock."""
    if not scheduler.trigger():
        raise HTTPException(status_code=409, detail="A tick is already in progress.")
    logger.info("Manual tick triggered")
    return {"started": True}
