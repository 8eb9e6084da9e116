"""Heikin-Ashi candles derived from raw OHLC."""

from hadoji.schemas.market import Candle
from hadoji.services.trading_strategy.types import HeikinAshiBar


def compute_heikin_ashi(candles: list[Candle]) -> list[HeikinAshiBar]:
    """
    Single forward pass; bar i depends on bar i-1.
    Seed: ha_open[0] = (open[0] + close[0]) / 2.
    """
    bars: list[HeikinAshiBar] = []
    for i, c in enumerate(candles):
        ha_close = (c.open + c.high + c.low + c.close) / 4.0
        if i == 0:
            ha_open = (c.open + c.close) / 2.0
        else:
            prev = bars[i - 1]
            ha_open = (prev.ha_open + prev.ha_close) / 2.0
        bars.append(
            HeikinAshiBar(
                time=c.time,
                ha_open=ha_open,
                ha_close=ha_close,
                ha_high=max(c.high, ha_open, ha_close),
                ha_low=min(c.low, ha_open, ha_close),
            )
        )
    return bars
