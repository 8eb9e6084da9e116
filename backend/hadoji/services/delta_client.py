import hashlib
import hmac
import json
import logging
import time
from typing import Any

import httpx

from hadoji.config import Settings, settings as default_settings
from hadoji.schemas.market import Instrument, OrderAck, OrderKind, OrderSide, ProductSymbol
from hadoji.services.errors import InstrumentNotFound, OrderError, TransportError

logger = logging.getLogger(__name__)

_ORDER_TYPES: dict[str, dict[str, str]] = {
    "market": {"order_type": "market_order"},
    "limit": {"order_type": "limit_order"},
    "stop_trigger": {"order_type": "market_order", "stop_order_type": "stop_loss_order"},
}


def sign_request(secret: str, method: str, timestamp: str, path: str, query: str, body: str) -> str:
    """Delta signature: HMAC-SHA256 over method + timestamp + path + query + body."""
    message = method + timestamp + path + query + body
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return f"HTTP {response.status_code}: {error.get('code', 'unknown')} {error.get('context', '')}".strip()
    return f"HTTP {response.status_code}: {payload}"


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decoded body when it is a JSON object, else None."""
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


class DeltaClient:
    """Delta Exchange REST client: candle history, product lookup and order submission."""

    def __init__(
        self,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = config or default_settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.delta_rest_base_url,
            timeout=self._settings.request_timeout_seconds,
            transport=self._transport,
        )

    async def fetch_candles(
        self, symbol: str, resolution: str, start: int, end: int
    ) -> list[Any]:
        """Raw history records for [start, end] in unix seconds; ordering is left to normalization."""
        params = {"symbol": symbol, "resolution": resolution, "start": start, "end": end}
        try:
            async with self._client() as client:
                response = await client.get("/v2/history/candles", params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"Candle history request failed: {_error_message(e.response)}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Candle history request failed: {e!r}") from e
        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                f"Candle history response is not JSON: {response.text[:200]!r}"
            ) from e
        if isinstance(payload, dict):
            return payload.get("result") or []
        if isinstance(payload, list):
            return payload
        raise TransportError(f"Unexpected candle history payload: {type(payload).__name__}")

    async def list_perpetual_symbols(self) -> list[ProductSymbol]:
        """Perpetual futures listed on the venue, for picking trading/history symbols."""
        try:
            async with self._client() as client:
                response = await client.get(
                    "/v2/products", params={"contract_types": "perpetual_futures"}
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"Product listing failed: {_error_message(e.response)}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Product listing failed: {e!r}") from e
        payload = _json_object(response)
        if payload is None or not isinstance(payload.get("result"), list):
            raise TransportError("Product listing returned an unexpected payload")

        symbols: list[ProductSymbol] = []
        for item in payload["result"]:
            if not isinstance(item, dict) or item.get("contract_type") != "perpetual_futures":
                continue
            if item.get("id") is None or not item.get("symbol"):
                continue
            symbols.append(
                ProductSymbol(
                    id=item["id"],
                    symbol=item["symbol"],
                    description=item.get("description"),
                    state=item.get("state"),
                )
            )
        return symbols

    async def resolve_instrument(self, symbol: str) -> Instrument:
        try:
            async with self._client() as client:
                response = await client.get(f"/v2/products/{symbol}")
        except httpx.HTTPError as e:
            raise TransportError(f"Product lookup failed: {e!r}") from e
        if response.status_code == 404:
            raise InstrumentNotFound(symbol)
        if response.is_error:
            raise TransportError(f"Product lookup failed: {_error_message(response)}")
        payload = _json_object(response)
        if payload is None:
            raise TransportError(f"Product lookup returned a non-object body: {response.text[:200]!r}")
        product = payload.get("result") or {}
        if not isinstance(product, dict):
            raise TransportError(f"Unexpected product payload for {symbol}")
        product_id = product.get("id", product.get("product_id"))
        if product_id is None:
            raise InstrumentNotFound(symbol)
        try:
            product_id = int(product_id)
        except (TypeError, ValueError) as e:
            raise TransportError(f"Product {symbol} has a malformed id {product_id!r}") from e
        return Instrument(
            id=product_id,
            symbol=product.get("symbol", symbol),
            contract_type=product.get("contract_type"),
        )

    def _signed_headers(self, method: str, path: str, query: str, body: str) -> dict[str, str]:
        timestamp = str(int(time.time()))
        signature = sign_request(
            self._settings.delta_api_secret, method, timestamp, path, query, body
        )
        return {
            "api-key": self._settings.delta_api_key,
            "timestamp": timestamp,
            "signature": signature,
            "User-Agent": "hadoji",
            "Content-Type": "application/json",
        }

    async def submit_order(
        self,
        instrument_id: int,
        side: OrderSide,
        size: int,
        order_kind: OrderKind,
        price: float | None = None,
        reduce_only: bool = False,
    ) -> OrderAck:
        if order_kind not in _ORDER_TYPES:
            raise ValueError(f"Unknown order kind {order_kind!r}")
        if order_kind != "market" and price is None:
            raise ValueError(f"{order_kind} orders require a price")

        order: dict[str, Any] = {
            "product_id": instrument_id,
            "size": size,
            "side": side,
            **_ORDER_TYPES[order_kind],
        }
        if order_kind == "limit":
            order["limit_price"] = str(price)
        elif order_kind == "stop_trigger":
            order["stop_price"] = str(price)
        if reduce_only:
            order["reduce_only"] = True

        path = "/v2/orders"
        body = json.dumps(order, separators=(",", ":"))
        headers = self._signed_headers("POST", path, "", body)
        try:
            async with self._client() as client:
                response = await client.post(path, content=body, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Order submission failed: {e!r}") from e

        if response.is_error:
            raise OrderError(f"Order rejected: {_error_message(response)}")
        # 2xx without a usable acknowledgement; the order may still be live
        payload = _json_object(response)
        if payload is None:
            raise OrderError(
                f"Order response is not a JSON object: HTTP {response.status_code} {response.text[:200]!r}"
            )
        if not payload.get("success", True):
            raise OrderError(f"Order rejected: {payload.get('error')}")
        result = payload.get("result")
        order_id = result.get("id") if isinstance(result, dict) else None
        if order_id is None:
            raise OrderError(f"Order acknowledgement has no order id: {payload}")
        ack = OrderAck(
            id=order_id,
            side=side,
            kind=order_kind,
            size=size,
            price=price,
            state=result.get("state"),
        )
        logger.info(
            "Order accepted: id=%s product_id=%s side=%s kind=%s size=%s price=%s",
            ack.id,
            instrument_id,
            side,
            order_kind,
            size,
            price,
        )
        return ack
