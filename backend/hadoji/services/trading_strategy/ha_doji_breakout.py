"""Heikin-Ashi doji breakout strategy.

Evaluated only at the last closed candle i. Bars used:
  bar[i]   breakout bar (raw candle high/low/close is tested)
  bar[i-1] pattern bar (doji or directional HA bar with a negligible wick)
  bar[i-2] context bar (doji, or opposite color for the reversal variant)

Long fires when EMA fast > EMA slow, the HA pattern holds and the raw candle
breaks above the pattern bar's HA high. Short is the mirror image.
"""

from dataclasses import dataclass

from hadoji.schemas.market import Candle
from hadoji.services.trading_strategy.types import (
    Direction,
    HeikinAshiBar,
    IndicatorSeries,
    Signal,
    StrategyParams,
)

MIN_BARS = 3


def is_doji(bar: HeikinAshiBar, doji_ratio: float) -> bool:
    """Small body relative to range. A flat bar (zero range) is never a doji."""
    bar_range = bar.ha_high - bar.ha_low
    if bar_range <= 0:
        return False
    return abs(bar.ha_close - bar.ha_open) / bar_range < doji_ratio


def is_bullish(bar: HeikinAshiBar) -> bool:
    return bar.ha_close > bar.ha_open


def is_bearish(bar: HeikinAshiBar) -> bool:
    return bar.ha_close < bar.ha_open


def has_no_lower_wick(bar: HeikinAshiBar, tolerance: float) -> bool:
    return (bar.ha_open - bar.ha_low) <= (bar.ha_high - bar.ha_close) * tolerance


def has_no_upper_wick(bar: HeikinAshiBar, tolerance: float) -> bool:
    """Mirror of has_no_lower_wick for bearish bars."""
    return (bar.ha_high - bar.ha_open) <= (bar.ha_close - bar.ha_low) * tolerance


@dataclass(frozen=True)
class SetupGates:
    """Individual gate outcomes at one bar, kept for logging."""

    trend_up: bool
    trend_down: bool
    pattern_long: bool
    pattern_short: bool
    breakout_long: bool
    breakout_short: bool

    @property
    def long(self) -> bool:
        return self.trend_up and self.pattern_long and self.breakout_long

    @property
    def short(self) -> bool:
        return self.trend_down and self.pattern_short and self.breakout_short


def evaluate_gates(
    candles: list[Candle],
    ha_bars: list[HeikinAshiBar],
    indicators: IndicatorSeries,
    params: StrategyParams,
) -> SetupGates | None:
    """Gate outcomes at i = len(candles) - 1, or None with fewer than 3 bars."""
    n = len(candles)
    if n < MIN_BARS or len(ha_bars) != n:
        return None
    i = n - 1

    fast = indicators.ema_fast[i] if i < len(indicators.ema_fast) else None
    slow = indicators.ema_slow[i] if i < len(indicators.ema_slow) else None
    trend_defined = fast is not None and slow is not None
    trend_up = trend_defined and fast > slow
    trend_down = trend_defined and fast < slow

    pattern_bar = ha_bars[i - 1]
    context_bar = ha_bars[i - 2]
    any_doji = is_doji(pattern_bar, params.doji_ratio) or is_doji(context_bar, params.doji_ratio)

    setup_a_long = any_doji and is_bullish(pattern_bar) and has_no_lower_wick(
        pattern_bar, params.wick_tolerance
    )
    # Reversal-from-bearish-context variant
    setup_b_long = is_bearish(context_bar) and setup_a_long

    setup_a_short = any_doji and is_bearish(pattern_bar) and has_no_upper_wick(
        pattern_bar, params.wick_tolerance
    )
    setup_b_short = is_bullish(context_bar) and setup_a_short

    candle = candles[i]
    breakout_long = candle.high > pattern_bar.ha_high or candle.close > pattern_bar.ha_high
    breakout_short = candle.low < pattern_bar.ha_low or candle.close < pattern_bar.ha_low

    return SetupGates(
        trend_up=trend_up,
        trend_down=trend_down,
        pattern_long=setup_a_long or setup_b_long,
        pattern_short=setup_a_short or setup_b_short,
        breakout_long=breakout_long,
        breakout_short=breakout_short,
    )


def detect_signal(
    candles: list[Candle],
    ha_bars: list[HeikinAshiBar],
    indicators: IndicatorSeries,
    params: StrategyParams | None = None,
) -> Signal | None:
    """Return a Signal at the last candle, or None.

    `candles` must already be restricted to closed bars. Missing indicator values
    (warm-up) yield None instead of raising.
    """
    params = params or StrategyParams()
    return signal_from_gates(candles, indicators, evaluate_gates(candles, ha_bars, indicators, params))


def signal_from_gates(
    candles: list[Candle],
    indicators: IndicatorSeries,
    gates: SetupGates | None,
) -> Signal | None:
    if gates is None:
        return None
    if gates.long:
        direction = Direction.LONG
    elif gates.short:
        direction = Direction.SHORT
    else:
        return None

    i = len(candles) - 1
    atr = indicators.atr[i] if i < len(indicators.atr) else None
    if atr is None:
        return None
    return Signal(
        direction=direction,
        bar_index=i,
        time=candles[i].time,
        close=candles[i].close,
        atr=atr,
    )
