"""One scheduler tick: fetch -> normalize -> Heikin-Ashi -> indicators -> signal -> bracket."""

import logging
import time
from dataclasses import dataclass

from hadoji.config import Settings, settings as default_settings
from hadoji.schemas.market import Candle
from hadoji.services.candle_store import drop_forming_candle, ensure_history, normalize_candles
from hadoji.services.execution import BracketExecutor
from hadoji.services.indicators.heikin_ashi import compute_heikin_ashi
from hadoji.services.indicators.moving_average import compute_indicators
from hadoji.services.trading_strategy import (
    BracketReport,
    SetupGates,
    Signal,
    StrategyParams,
    evaluate_gates,
    signal_from_gates,
)

logger = logging.getLogger(__name__)


@dataclass
class Evaluation:
    signal: Signal | None
    gates: SetupGates | None


@dataclass
class TickReport:
    started_at: int  # Unix seconds
    symbol: str
    status: str  # no_signal | signal | executed | failed
    candles: int = 0
    dropped: int = 0
    signal: Signal | None = None
    bracket: BracketReport | None = None
    error_kind: str | None = None
    error: str | None = None


class SignalPipeline:
    def __init__(self, client, config: Settings | None = None) -> None:
        self._client = client
        self._settings = config or default_settings
        self._executor = BracketExecutor(client, self._settings)
        self._params = StrategyParams(
            doji_ratio=self._settings.doji_ratio,
            wick_tolerance=self._settings.wick_tolerance,
        )

    def evaluate(self, candles: list[Candle]) -> Evaluation:
        """Pure evaluation of closed candles; no I/O, no state kept between calls."""
        ha_bars = compute_heikin_ashi(candles)
        indicators = compute_indicators(
            candles,
            fast_period=self._settings.ema_fast,
            slow_period=self._settings.ema_slow,
            atr_period=self._settings.atr_period,
        )
        gates = evaluate_gates(candles, ha_bars, indicators, self._params)
        return Evaluation(signal=signal_from_gates(candles, indicators, gates), gates=gates)

    async def load_closed_candles(self, now: int) -> tuple[list[Candle], int]:
        """Closed candles for the lookback window plus the number of dropped records."""
        cfg = self._settings
        raw = await self._client.fetch_candles(
            cfg.candle_symbol, cfg.resolution, now - cfg.lookback_seconds, now
        )
        normalized = normalize_candles(raw)
        closed = drop_forming_candle(normalized.candles, cfg.resolution_seconds, now)
        ensure_history(closed, cfg.ema_slow)
        return closed, normalized.dropped

    async def run_tick(self, now: int | None = None) -> TickReport:
        """Run one tick. Fetch, resolve and entry errors propagate to the caller."""
        now = int(time.time()) if now is None else now
        cfg = self._settings
        candles, dropped = await self.load_closed_candles(now)
        evaluation = self.evaluate(candles)
        report = TickReport(
            started_at=now,
            symbol=cfg.trading_symbol,
            status="no_signal",
            candles=len(candles),
            dropped=dropped,
        )

        signal = evaluation.signal
        if signal is None:
            logger.debug(
                "No signal: symbol=%s bar_time=%s gates=%s",
                cfg.candle_symbol,
                candles[-1].time,
                evaluation.gates,
            )
            return report

        report.signal = signal
        report.status = "signal"
        logger.info(
            "%s signal: symbol=%s resolution=%s bar_time=%s close=%s atr=%s",
            signal.direction.value.capitalize(),
            cfg.candle_symbol,
            cfg.resolution,
            signal.time,
            signal.close,
            signal.atr,
        )
        if cfg.mode != "trading":
            logger.info("Simulation mode: bracket not submitted for %s", cfg.trading_symbol)
            return report

        report.bracket = await self._executor.execute(signal)
        report.status = "executed"
        return report
