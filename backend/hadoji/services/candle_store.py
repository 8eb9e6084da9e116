"""Candle normalization: venue history records -> ordered, validated Candle list."""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from hadoji.config import HISTORY_MARGIN
from hadoji.schemas.market import Candle
from hadoji.services.errors import DataValidationError, InsufficientHistory

logger = logging.getLogger(__name__)

_FIELDS = ("time", "open", "high", "low", "close", "volume")


@dataclass
class NormalizedCandles:
    candles: list[Candle]
    dropped: int


def _parse_record(record: Any) -> Candle:
    if isinstance(record, Mapping):
        values = [record.get(name) for name in _FIELDS]
    elif isinstance(record, Sequence) and not isinstance(record, (str, bytes)):
        values = list(record[: len(_FIELDS)])
        values += [None] * (len(_FIELDS) - len(values))
    else:
        raise DataValidationError(f"Unsupported candle record type {type(record).__name__}")

    time_, open_, high, low, close, volume = values
    if any(v is None or v == "" for v in (time_, open_, high, low, close)):
        raise DataValidationError("Candle record is missing required fields")
    try:
        candle = Candle(
            time=int(float(time_)),
            open=float(open_),
            high=float(high),
            low=float(low),
            close=float(close),
            volume=float(volume) if volume not in (None, "") else 0.0,
        )
    except (TypeError, ValueError, OverflowError) as e:
        raise DataValidationError(f"Candle record has non-numeric fields: {e}") from e

    if not all(
        math.isfinite(v)
        for v in (candle.time, candle.open, candle.high, candle.low, candle.close, candle.volume)
    ):
        raise DataValidationError("Candle record has non-finite values")
    if min(candle.open, candle.high, candle.low, candle.close, candle.volume) < 0:
        raise DataValidationError("Candle record has negative values")
    if candle.high < max(candle.open, candle.close) or candle.low > min(candle.open, candle.close):
        raise DataValidationError("Candle high/low do not bracket open/close")
    return candle


def normalize_candles(raw: Any) -> NormalizedCandles:
    """Coerce raw history records (tuples or mappings) into Candles, oldest first.

    Invalid records and duplicate timestamps are dropped and counted rather than
    failing the whole batch. Raises DataValidationError only when the payload is
    not a list of records at all.
    """
    if raw is None:
        return NormalizedCandles(candles=[], dropped=0)
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise DataValidationError(f"Expected a list of candle records, got {type(raw).__name__}")

    parsed: list[Candle] = []
    dropped = 0
    for record in raw:
        try:
            parsed.append(_parse_record(record))
        except DataValidationError as e:
            dropped += 1
            logger.debug("Dropping candle record %r: %s", record, e)

    parsed.sort(key=lambda c: c.time)
    candles: list[Candle] = []
    for candle in parsed:
        if candles and candle.time == candles[-1].time:
            dropped += 1
            continue
        candles.append(candle)

    if dropped:
        logger.warning(
            "Candle normalization dropped %d of %d records (kind=%s)",
            dropped,
            len(raw),
            DataValidationError.kind,
        )
    return NormalizedCandles(candles=candles, dropped=dropped)


def drop_forming_candle(candles: list[Candle], resolution_seconds: int, now: int) -> list[Candle]:
    """Return only closed bars: the last bar is removed while its period is still open."""
    if candles and candles[-1].time + resolution_seconds > now:
        return candles[:-1]
    return candles


def ensure_history(candles: list[Candle], slow_period: int, margin: int = HISTORY_MARGIN) -> None:
    required = slow_period + margin
    if len(candles) < required:
        raise InsufficientHistory(available=len(candles), required=required)
