from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Delta Exchange history resolutions -> seconds
RESOLUTION_SECONDS = {
    "1m": 60,
    "3m": 3 * 60,
    "5m": 5 * 60,
    "15m": 15 * 60,
    "30m": 30 * 60,
    "1h": 60 * 60,
    "2h": 2 * 60 * 60,
    "4h": 4 * 60 * 60,
    "6h": 6 * 60 * 60,
    "1d": 24 * 60 * 60,
    "1w": 7 * 24 * 60 * 60,
}

# Closed bars required beyond the slow EMA warm-up
HISTORY_MARGIN = 5


class Settings(BaseSettings):
    app_name: str = "Heikin-Ashi Doji Signal Engine"
    delta_rest_base_url: str = "https://testnet-api.delta.exchange"
    delta_api_key: str = ""
    delta_api_secret: str = ""
    request_timeout_seconds: float = 15.0

    # simulation: log signals only; trading: submit brackets to the venue
    mode: Literal["simulation", "trading"] = "simulation"
    run_scheduler: bool = True
    log_level: str = "INFO"

    # Instrument used for orders; history symbol may differ by product
    trading_symbol: str = "BTCUSD"
    history_symbol: str | None = None
    resolution: str = "15m"
    order_size: int = Field(default=1, ge=1)
    poll_interval_seconds: float = Field(default=60.0, gt=0)
    lookback_seconds: int = Field(default=7 * 24 * 60 * 60, gt=0)

    # Strategy parameters
    ema_fast: int = Field(default=50, ge=1)
    ema_slow: int = Field(default=200, ge=1)
    doji_ratio: float = Field(default=0.25, gt=0, le=1)
    wick_tolerance: float = Field(default=0.12, gt=0, le=1)
    atr_period: int = Field(default=14, ge=1)
    stop_atr_mult: float = Field(default=1.0, gt=0)
    target_atr_mult: float = Field(default=2.0, gt=0)
    min_stop_price: float = Field(default=0.0, ge=0)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @model_validator(mode="after")
    def _check_strategy(self) -> "Settings":
        if self.resolution not in RESOLUTION_SECONDS:
            raise ValueError(
                f"Unsupported resolution {self.resolution!r}. Allowed: {list(RESOLUTION_SECONDS)}"
            )
        if self.ema_fast >= self.ema_slow:
            raise ValueError("ema_fast must be shorter than ema_slow")
        # One extra bar for the forming candle dropped each tick
        bars = self.ema_slow + HISTORY_MARGIN + 1
        required = bars * self.resolution_seconds
        if self.lookback_seconds < required:
            raise ValueError(
                f"lookback_seconds={self.lookback_seconds} cannot cover {bars} {self.resolution} bars; "
                f"need at least {required}"
            )
        return self

    @property
    def candle_symbol(self) -> str:
        """Symbol used for the history endpoint."""
        return self.history_symbol or self.trading_symbol

    @property
    def resolution_seconds(self) -> int:
        return RESOLUTION_SECONDS[self.resolution]


settings = Settings()
