from typing import Literal

from pydantic import BaseModel, ConfigDict

OrderSide = Literal["buy", "sell"]
OrderKind = Literal["market", "limit", "stop_trigger"]


class Candle(BaseModel):
    """Closed or forming OHLCV bar. `time` is the bar open in unix seconds."""

    model_config = ConfigDict(frozen=True)

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class ProductSymbol(BaseModel):
    """Listed perpetual contract, for choosing trading and history symbols."""

    id: int
    symbol: str
    description: str | None = None
    state: str | None = None


class Instrument(BaseModel):
    id: int
    symbol: str
    contract_type: str | None = None


class OrderAck(BaseModel):
    """Venue acknowledgement of a submitted order."""

    id: int | str
    side: OrderSide
    kind: OrderKind
    size: int
    price: float | None = None
    state: str | None = None
