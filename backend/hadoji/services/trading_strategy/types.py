"""Trading strategy types."""

from dataclasses import dataclass, field
from enum import Enum


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def entry_side(self) -> str:
        return "buy" if self is Direction.LONG else "sell"

    @property
    def exit_side(self) -> str:
        return "sell" if self is Direction.LONG else "buy"


@dataclass(frozen=True)
class HeikinAshiBar:
    time: int  # Unix seconds, same as source candle
    ha_open: float
    ha_close: float
    ha_high: float
    ha_low: float


@dataclass(frozen=True)
class IndicatorSeries:
    """Right-aligned indicator arrays; None marks warm-up positions."""

    ema_fast: list[float | None]
    ema_slow: list[float | None]
    atr: list[float | None]


@dataclass(frozen=True)
class StrategyParams:
    doji_ratio: float = 0.25
    wick_tolerance: float = 0.12


@dataclass(frozen=True)
class Signal:
    """A fired setup at the last closed candle."""

    direction: Direction
    bar_index: int
    time: int  # Unix seconds (candle open time)
    close: float  # Raw close, reference price for the bracket
    atr: float


@dataclass(frozen=True)
class BracketOrder:
    entry_side: str  # "buy" | "sell"
    instrument_id: int
    size: int
    stop_price: float
    target_price: float

    @property
    def exit_side(self) -> str:
        return "sell" if self.entry_side == "buy" else "buy"


@dataclass
class LegResult:
    leg: str  # "entry" | "target" | "stop"
    ok: bool
    order_id: int | str | None = None
    error: str | None = None


@dataclass
class BracketReport:
    order: BracketOrder
    legs: list[LegResult] = field(default_factory=list)

    @property
    def errors(self) -> list[LegResult]:
        return [leg for leg in self.legs if not leg.ok]

    @property
    def protected(self) -> bool:
        return not self.errors
