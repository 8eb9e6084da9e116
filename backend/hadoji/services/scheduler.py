import asyncio
import logging
import time

from hadoji.services.errors import EngineError
from hadoji.services.pipeline import SignalPipeline, TickReport

logger = logging.getLogger(__name__)


class TickScheduler:
    """Runs the pipeline every `interval` seconds; a tick due while one is running is skipped."""

    def __init__(self, pipeline: SignalPipeline, interval: float, symbol: str) -> None:
        self._pipeline = pipeline
        self._interval = interval
        self._symbol = symbol
        self._in_progress = False
        self._clock_task: asyncio.Task[None] | None = None
        self._tick_task: asyncio.Task[TickReport] | None = None
        self.last_report: TickReport | None = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._clock_task is not None and not self._clock_task.done()

    @property
    def tick_in_progress(self) -> bool:
        return self._in_progress

    def start(self) -> None:
        if self.running:
            return
        self._clock_task = asyncio.create_task(self._run_clock())
        logger.info("Scheduler started: symbol=%s interval=%ss", self._symbol, self._interval)

    async def stop(self) -> None:
        if self._clock_task is not None:
            self._clock_task.cancel()
            try:
                await self._clock_task
            except asyncio.CancelledError:
                pass
            self._clock_task = None
        if self._tick_task is not None and not self._tick_task.done():
            await self._tick_task
        logger.info("Scheduler stopped: symbol=%s", self._symbol)

    def trigger(self) -> bool:
        """Start a tick unless one is already running. Returns whether a tick started."""
        if self._in_progress:
            self.skipped_ticks += 1
            logger.warning(
                "Tick skipped, previous tick still running: symbol=%s at=%s",
                self._symbol,
                int(time.time()),
            )
            return False
        self._in_progress = True
        self._tick_task = asyncio.create_task(self._guarded_tick())
        return True

    async def wait_for_tick(self) -> TickReport | None:
        """Await the current tick, if any."""
        if self._tick_task is None:
            return self.last_report
        return await self._tick_task

    async def _run_clock(self) -> None:
        while True:
            self.trigger()
            await asyncio.sleep(self._interval)

    async def _guarded_tick(self) -> TickReport:
        started_at = int(time.time())
        try:
            report = await self._pipeline.run_tick(now=started_at)
        except EngineError as e:
            level = logging.WARNING if e.kind == "InsufficientHistory" else logging.ERROR
            logger.log(
                level,
                "Tick failed: kind=%s symbol=%s tick=%s error=%s",
                e.kind,
                self._symbol,
                started_at,
                e,
            )
            report = TickReport(
                started_at=started_at,
                symbol=self._symbol,
                status="failed",
                error_kind=e.kind,
                error=str(e),
            )
        except Exception as e:
            logger.exception("Tick crashed: symbol=%s tick=%s", self._symbol, started_at)
            report = TickReport(
                started_at=started_at,
                symbol=self._symbol,
                status="failed",
                error_kind=type(e).__name__,
                error=str(e),
            )
        finally:
            self._in_progress = False
        self.last_report = report
        return report
