"""Trading strategy module — produces signals from candles, Heikin-Ashi bars and indicators."""

from hadoji.services.trading_strategy.types import (
    BracketOrder,
    BracketReport,
    Direction,
    HeikinAshiBar,
    IndicatorSeries,
    LegResult,
    Signal,
    StrategyParams,
)
from hadoji.services.trading_strategy.ha_doji_breakout import (
    SetupGates,
    detect_signal,
    evaluate_gates,
    signal_from_gates,
)

__all__ = [
    "BracketOrder",
    "BracketReport",
    "Direction",
    "HeikinAshiBar",
    "IndicatorSeries",
    "LegResult",
    "SetupGates",
    "Signal",
    "StrategyParams",
    "detect_signal",
    "evaluate_gates",
    "signal_from_gates",
]
