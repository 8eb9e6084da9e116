"""Error kinds raised by the fetch/resolve/execution layers.

Indicator and pattern code never raises for warm-up conditions; it returns None.
"""


class EngineError(Exception):
    kind = "EngineError"


class InsufficientHistory(EngineError):
    kind = "InsufficientHistory"

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"{available} candles available, {required} required")
        self.available = available
        self.required = required


class DataValidationError(EngineError):
    kind = "DataValidationError"


class TransportError(EngineError):
    """Network failure or timeout talking to the venue."""

    kind = "TransportError"


class InstrumentNotFound(EngineError):
    kind = "InstrumentNotFound"

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No instrument found for symbol {symbol}")
        self.symbol = symbol


class OrderError(EngineError):
    kind = "OrderError"

    def __init__(self, message: str, leg: str | None = None) -> None:
        super().__init__(message)
        self.leg = leg
