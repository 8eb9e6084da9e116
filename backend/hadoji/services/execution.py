"""Bracket order execution: market entry, then take-profit limit, then stop-loss trigger.

The venue has no atomic multi-leg order, so legs are sent one by one. Only the
entry leg gates the rest: once it is filled, a failed target or stop is reported
and the remaining leg is still attempted. Nothing is rolled back.
"""

import logging

from hadoji.config import Settings, settings as default_settings
from hadoji.services.errors import EngineError, OrderError
from hadoji.services.trading_strategy.types import (
    BracketOrder,
    BracketReport,
    Direction,
    LegResult,
    Signal,
)

logger = logging.getLogger(__name__)


def build_bracket(
    signal: Signal,
    instrument_id: int,
    size: int,
    stop_atr_mult: float = 1.0,
    target_atr_mult: float = 2.0,
    min_price: float = 0.0,
) -> BracketOrder:
    """Stop and target around the signal close; prices floored at min_price."""
    risk = signal.atr * stop_atr_mult
    reward = signal.atr * target_atr_mult
    if signal.direction is Direction.LONG:
        stop_price = signal.close - risk
        target_price = signal.close + reward
    else:
        stop_price = signal.close + risk
        target_price = signal.close - reward
    return BracketOrder(
        entry_side=signal.direction.entry_side,
        instrument_id=instrument_id,
        size=size,
        stop_price=max(min_price, stop_price),
        target_price=max(min_price, target_price),
    )


class BracketExecutor:
    def __init__(self, client, config: Settings | None = None) -> None:
        self._client = client
        self._settings = config or default_settings

    async def execute(self, signal: Signal) -> BracketReport:
        """Submit entry -> target -> stop for a fired signal.

        Raises InstrumentNotFound before any order, and propagates entry-leg
        errors. Target/stop failures are recorded in the report only.
        """
        symbol = self._settings.trading_symbol
        instrument = await self._client.resolve_instrument(symbol)

        order = build_bracket(
            signal,
            instrument_id=instrument.id,
            size=self._settings.order_size,
            stop_atr_mult=self._settings.stop_atr_mult,
            target_atr_mult=self._settings.target_atr_mult,
            min_price=self._settings.min_stop_price,
        )
        report = BracketReport(order=order)

        try:
            entry_ack = await self._client.submit_order(
                order.instrument_id, order.entry_side, order.size, "market"
            )
        except OrderError as e:
            e.leg = "entry"
            raise
        report.legs.append(LegResult(leg="entry", ok=True, order_id=entry_ack.id))
        logger.info(
            "Entry filled: symbol=%s side=%s size=%s ref_close=%s atr=%s",
            symbol,
            order.entry_side,
            order.size,
            signal.close,
            signal.atr,
        )

        report.legs.append(
            await self._submit_protective_leg(symbol, order, "target", "limit", order.target_price)
        )
        report.legs.append(
            await self._submit_protective_leg(symbol, order, "stop", "stop_trigger", order.stop_price)
        )
        return report

    async def _submit_protective_leg(
        self,
        symbol: str,
        order: BracketOrder,
        leg: str,
        kind: str,
        price: float,
    ) -> LegResult:
        try:
            ack = await self._client.submit_order(
                order.instrument_id,
                order.exit_side,
                order.size,
                kind,
                price=price,
                reduce_only=True,
            )
        except EngineError as e:
            logger.error(
                "Protective %s leg failed, position unprotected: symbol=%s side=%s price=%s kind=%s error=%s",
                leg,
                symbol,
                order.exit_side,
                price,
                e.kind,
                e,
            )
            return LegResult(leg=leg, ok=False, error=f"{e.kind}: {e}")
        except Exception as e:
            logger.exception(
                "Protective %s leg crashed, position unprotected: symbol=%s side=%s price=%s order_kind=%s",
                leg,
                symbol,
                order.exit_side,
                price,
                kind,
            )
            return LegResult(leg=leg, ok=False, error=f"{type(e).__name__}: {e}")
        return LegResult(leg=leg, ok=True, order_id=ack.id)
