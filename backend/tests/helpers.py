"""Shared fixtures: synthetic candle series and an in-memory venue client."""

from hadoji.config import Settings
from hadoji.schemas.market import Candle, Instrument, OrderAck
from hadoji.services.errors import InstrumentNotFound

START_TIME = 1_699_999_200  # aligned to 15m
STEP = 900


def make_candle(time: int, open_: float, high: float, low: float, close: float, volume: float = 1.0) -> Candle:
    return Candle(time=time, open=open_, high=high, low=low, close=close, volume=volume)


def rising_candles(n: int, base: float = 100.0) -> list[Candle]:
    """Linear uptrend whose Heikin-Ashi bars are exact from bar 0.

    Every HA bar is a bullish doji (body 2, range 9) with a 0.5 lower wick, and
    each raw high breaks the previous HA high, so the long setup holds at every
    bar once the EMAs are defined.
    """
    return [
        make_candle(START_TIME + k * STEP, base + k, base + k + 9, base + k, base + k + 1)
        for k in range(n)
    ]


def falling_candles(n: int, base: float = 200.0) -> list[Candle]:
    """Mirror image of rising_candles: every bar satisfies the short setup."""
    return [
        make_candle(START_TIME + k * STEP, base - k, base - k, base - k - 9, base - k - 1)
        for k in range(n)
    ]


def flat_candles(n: int, price: float = 100.0) -> list[Candle]:
    return [make_candle(START_TIME + k * STEP, price, price, price, price) for k in range(n)]


def as_records(candles: list[Candle]) -> list[list]:
    """Venue-style tuples: [time, open, high, low, close, volume]."""
    return [[c.time, str(c.open), str(c.high), str(c.low), str(c.close), str(c.volume)] for c in candles]


def close_time(candles: list[Candle]) -> int:
    """A 'now' at which the last candle has just closed."""
    return candles[-1].time + STEP


def engine_settings(**overrides) -> Settings:
    values = {
        "trading_symbol": "BTCUSD",
        "resolution": "15m",
        "mode": "trading",
        "ema_fast": 3,
        "ema_slow": 5,
        "atr_period": 3,
        "order_size": 2,
        "lookback_seconds": 7 * 24 * 60 * 60,
        "run_scheduler": False,
    }
    values.update(overrides)
    return Settings(**values)


class FakeVenueClient:
    """Records every call; `failures` maps an order kind to the exception it raises."""

    def __init__(self, records=None, instrument: Instrument | None = None, failures=None) -> None:
        self.records = records if records is not None else []
        self.instrument = instrument if instrument is not None else Instrument(id=27, symbol="BTCUSD")
        self.instrument_missing = False
        self.failures = failures or {}
        self.fetch_calls: list[tuple] = []
        self.resolve_calls: list[str] = []
        self.orders: list[dict] = []

    async def fetch_candles(self, symbol, resolution, start, end):
        self.fetch_calls.append((symbol, resolution, start, end))
        return list(self.records)

    async def resolve_instrument(self, symbol):
        self.resolve_calls.append(symbol)
        if self.instrument_missing:
            raise InstrumentNotFound(symbol)
        return self.instrument

    async def submit_order(self, instrument_id, side, size, order_kind, price=None, reduce_only=False):
        self.orders.append(
            {
                "instrument_id": instrument_id,
                "side": side,
                "size": size,
                "kind": order_kind,
                "price": price,
                "reduce_only": reduce_only,
            }
        )
        error = self.failures.get(order_kind)
        if error is not None:
            raise error
        return OrderAck(id=len(self.orders), side=side, kind=order_kind, size=size, price=price, state="open")
