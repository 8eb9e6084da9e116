"""Trend (EMA) and volatility (ATR) indicators, right-aligned to the candle index.

Every output list has the same length as its input. Positions before the first
full window hold None, never 0, so index k always describes candle k.

Both trend lines use the same exponential moving average: seeded with the simple
average of the first `period` values, then smoothed with k = 2 / (period + 1).
ATR belongs to the same exponential family but uses Wilder's factor 1 / period
on the true range, seeded the same way.
"""

from hadoji.schemas.market import Candle
from hadoji.services.trading_strategy.types import IndicatorSeries


def _exponential(values: list[float], period: int, alpha: float) -> list[float | None]:
    n = len(values)
    out: list[float | None] = [None] * n
    if period < 1 or n < period:
        return out
    prev = sum(values[:period]) / period
    out[period - 1] = prev
    for i in range(period, n):
        prev = prev + alpha * (values[i] - prev)
        out[i] = prev
    return out


def ema(values: list[float], period: int) -> list[float | None]:
    return _exponential(values, period, 2.0 / (period + 1.0))


def true_range(highs: list[float], lows: list[float], closes: list[float]) -> list[float]:
    """Index 0 has no prior close and uses high - low only."""
    trs: list[float] = []
    for i in range(len(highs)):
        if i == 0:
            trs.append(highs[0] - lows[0])
            continue
        prev_close = closes[i - 1]
        trs.append(
            max(
                highs[i] - lows[i],
                abs(highs[i] - prev_close),
                abs(lows[i] - prev_close),
            )
        )
    return trs


def average_true_range(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int,
) -> list[float | None]:
    if not (len(highs) == len(lows) == len(closes)):
        raise ValueError("highs, lows and closes must have equal length")
    if period < 1:
        return [None] * len(highs)
    return _exponential(true_range(highs, lows, closes), period, 1.0 / period)


def compute_indicators(
    candles: list[Candle],
    fast_period: int,
    slow_period: int,
    atr_period: int,
) -> IndicatorSeries:
    closes = [c.close for c in candles]
    return IndicatorSeries(
        ema_fast=ema(closes, fast_period),
        ema_slow=ema(closes, slow_period),
        atr=average_true_range(
            [c.high for c in candles],
            [c.low for c in candles],
            closes,
            atr_period,
        ),
    )
