import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hadoji.api.engine import get_delta_client, get_scheduler, router as engine_router
from hadoji.config import settings
from hadoji.services.delta_client import DeltaClient
from hadoji.services.pipeline import SignalPipeline
from hadoji.services.scheduler import TickScheduler

logging.getLogger("hadoji").setLevel(settings.log_level.upper())

delta_client = DeltaClient()
pipeline = SignalPipeline(client=delta_client)
scheduler = TickScheduler(
    pipeline=pipeline,
    interval=settings.poll_interval_seconds,
    symbol=settings.trading_symbol,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_scheduler:
        scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)


@app.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(engine_router)
app.dependency_overrides[get_scheduler] = lambda: scheduler
app.dependency_overrides[get_delta_client] = lambda: delta_client
