import unittest

from fastapi.testclient import TestClient

from hadoji.api.engine import get_delta_client, get_scheduler
from hadoji.main import app
from hadoji.schemas.market import ProductSymbol
from hadoji.services.errors import TransportError
from hadoji.services.pipeline import TickReport


class FakeScheduler:
    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.running = True
        self.tick_in_progress = not accept
        self.skipped_ticks = 0
        self.last_report = TickReport(started_at=1_700_000_000, symbol="BTCUSD", status="no_signal", candles=250)

    def trigger(self) -> bool:
        return self.accept


class FakeProductClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def list_perpetual_symbols(self) -> list[ProductSymbol]:
        if self.error is not None:
            raise self.error
        return [ProductSymbol(id=27, symbol="BTCUSD", description="Bitcoin Perpetual", state="live")]


class TestEngineApi(unittest.TestCase):
    def setUp(self):
        self._saved_overrides = dict(app.dependency_overrides)
        self.scheduler = FakeScheduler()
        self.venue = FakeProductClient()
        app.dependency_overrides[get_scheduler] = lambda: self.scheduler
        app.dependency_overrides[get_delta_client] = lambda: self.venue
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        app.dependency_overrides.update(self._saved_overrides)

    def test_healthz(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_status(self):
        payload = self.client.get("/api/v1/status").json()
        self.assertTrue(payload["schedulerRunning"])
        self.assertEqual(payload["lastTick"]["status"], "no_signal")
        self.assertEqual(payload["lastTick"]["candles"], 250)
        self.assertIn(payload["mode"], ("simulation", "trading"))

    def test_trigger_tick(self):
        response = self.client.post("/api/v1/ticks")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"started": True})

    def test_trigger_while_running_conflicts(self):
        self.scheduler.accept = False
        response = self.client.post("/api/v1/ticks")
        self.assertEqual(response.status_code, 409)

    def test_resolutions(self):
        resolutions = self.client.get("/api/v1/resolutions").json()["resolutions"]
        self.assertEqual(resolutions[0], "1m")
        self.assertEqual(resolutions[-1], "1w")
        self.assertIn("15m", resolutions)

    def test_symbols(self):
        response = self.client.get("/api/v1/symbols")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["symbol"], "BTCUSD")
        self.assertEqual(response.json()[0]["id"], 27)

    def test_symbols_unavailable(self):
        self.venue.error = TransportError("connect failed")
        response = self.client.get("/api/v1/symbols")
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
