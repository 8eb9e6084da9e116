import unittest

from hadoji.services.errors import InsufficientHistory, TransportError
from hadoji.services.pipeline import SignalPipeline
from hadoji.services.trading_strategy import Direction
from tests.helpers import (
    STEP,
    FakeVenueClient,
    as_records,
    close_time,
    engine_settings,
    flat_candles,
    rising_candles,
)


class TestSignalPipeline(unittest.IsolatedAsyncioTestCase):
    async def test_insufficient_history_sends_no_orders(self):
        settings = engine_settings()
        candles = rising_candles(settings.ema_slow + 2)
        client = FakeVenueClient(records=as_records(candles))
        with self.assertRaises(InsufficientHistory):
            await SignalPipeline(client, settings).run_tick(now=close_time(candles))
        self.assertEqual(client.orders, [])
        self.assertEqual(client.resolve_calls, [])

    async def test_fetch_uses_history_symbol_and_lookback(self):
        settings = engine_settings(history_symbol="BTCUSD_HIST", lookback_seconds=36_000)
        candles = flat_candles(20)
        client = FakeVenueClient(records=as_records(candles))
        now = close_time(candles)
        await SignalPipeline(client, settings).run_tick(now=now)
        self.assertEqual(client.fetch_calls, [("BTCUSD_HIST", "15m", now - 36_000, now)])

    async def test_trading_mode_submits_bracket(self):
        candles = rising_candles(20)
        client = FakeVenueClient(records=as_records(candles))
        report = await SignalPipeline(client, engine_settings()).run_tick(now=close_time(candles))

        self.assertEqual(report.status, "executed")
        self.assertEqual(report.signal.direction, Direction.LONG)
        self.assertEqual(report.signal.time, candles[-1].time)
        self.assertEqual(report.candles, 20)
        self.assertEqual([o["kind"] for o in client.orders], ["market", "limit", "stop_trigger"])
        close = candles[-1].close
        self.assertEqual(client.orders[1]["price"], close + 18.0)
        self.assertEqual(client.orders[2]["price"], close - 9.0)

    async def test_simulation_mode_only_reports(self):
        candles = rising_candles(20)
        client = FakeVenueClient(records=as_records(candles))
        report = await SignalPipeline(client, engine_settings(mode="simulation")).run_tick(
            now=close_time(candles)
        )
        self.assertEqual(report.status, "signal")
        self.assertIsNotNone(report.signal)
        self.assertIsNone(report.bracket)
        self.assertEqual(client.orders, [])

    async def test_forming_candle_is_not_evaluated(self):
        candles = rising_candles(20)
        client = FakeVenueClient(records=as_records(candles))
        now = candles[-1].time + STEP // 2
        report = await SignalPipeline(client, engine_settings(mode="simulation")).run_tick(now=now)
        self.assertEqual(report.candles, 19)
        self.assertEqual(report.signal.time, candles[-2].time)

    async def test_no_signal(self):
        candles = flat_candles(20)
        client = FakeVenueClient(records=as_records(candles))
        report = await SignalPipeline(client, engine_settings()).run_tick(now=close_time(candles))
        self.assertEqual(report.status, "no_signal")
        self.assertIsNone(report.signal)
        self.assertEqual(client.orders, [])

    async def test_dropped_records_are_counted(self):
        records = as_records(rising_candles(20)) + [[None, 1, 1, 1, 1, 1]]
        client = FakeVenueClient(records=records)
        report = await SignalPipeline(client, engine_settings(mode="simulation")).run_tick(
            now=close_time(rising_candles(20))
        )
        self.assertEqual(report.dropped, 1)
        self.assertEqual(report.candles, 20)

    async def test_same_data_yields_same_signal(self):
        candles = rising_candles(30)
        client = FakeVenueClient(records=as_records(candles))
        pipeline = SignalPipeline(client, engine_settings(mode="simulation"))
        first = await pipeline.run_tick(now=close_time(candles))
        second = await pipeline.run_tick(now=close_time(candles))
        self.assertEqual(first.signal, second.signal)
        self.assertEqual(pipeline.evaluate(candles), pipeline.evaluate(candles))

    async def test_fetch_failure_propagates(self):
        class FailingClient(FakeVenueClient):
            async def fetch_candles(self, symbol, resolution, start, end):
                raise TransportError("timeout")

        client = FailingClient()
        with self.assertRaises(TransportError):
            await SignalPipeline(client, engine_settings()).run_tick(now=0)
        self.assertEqual(client.orders, [])


if __name__ == "__main__":
    unittest.main()
