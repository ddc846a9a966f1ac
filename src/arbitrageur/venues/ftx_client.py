"""FTX REST API client (authenticated, async).

Every failure raises FtxApiError: a missing price, position or margin
fraction must never be mistaken for a real value by the decision logic.

Usage:
    async with FtxClient(key, secret, subaccount) as ftx:
        price = await ftx.get_price("ETH-PERP")
        size = await ftx.get_position_size("ETH-PERP")
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
import time
from decimal import Decimal
from typing import Any, Callable, Optional
from urllib.parse import quote, urlencode

import aiohttp

from arbitrageur.errors import FtxApiError
from arbitrageur.models.trading import FtxAccountInfo, FtxMarketInfo, FtxOrder

logger = logging.getLogger(__name__)

FTX_API_URL = "https://ftx.com"
API_PREFIX = "/api"
DEFAULT_TIMEOUT = 60  # seconds


def _to_decimal(value: Any, field_name: str) -> Decimal:
    if value is None:
        raise FtxApiError(f"missing field {field_name}")
    try:
        return Decimal(str(value))
    except ArithmeticError as exc:
        raise FtxApiError(f"field {field_name}={value!r} is not a number") from exc


class FtxClient:
    """Async client for the FTX REST API.

    Args:
        api_key: API key.
        api_secret: API secret used for HMAC-SHA256 signing.
        subaccount: Subaccount name (sent as FTX-SUBACCOUNT).
        base_url: API host.
        timeout: Total request timeout in seconds.
        clock: Millisecond timestamp source for signing.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        subaccount: str | None = None,
        base_url: str = FTX_API_URL,
        timeout: int = DEFAULT_TIMEOUT,
        clock: Callable[[], int] = lambda: int(time.time() * 1000),
    ):
        self._api_key = api_key
        self._api_secret = api_secret.encode("utf-8")
        self._subaccount = subaccount
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._clock = clock
        self._session: Optional[aiohttp.ClientSession] = None

    async def open(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> FtxClient:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_market(self, market_name: str) -> FtxMarketInfo:
        """GET /markets/{name}: size increment metadata."""
        result = await self._request_dict("GET", f"/markets/{quote(market_name, safe='')}")
        return FtxMarketInfo(
            name=result.get("name", market_name),
            size_increment=_to_decimal(result.get("sizeIncrement"), "sizeIncrement"),
        )

    async def get_price(self, market_name: str) -> Decimal:
        """Last traded price of a market."""
        result = await self._request_dict("GET", f"/markets/{quote(market_name, safe='')}")
        price = result.get("price")
        if price is None:
            price = result.get("last")
        return _to_decimal(price, "price")

    async def get_position_size(self, market_name: str) -> Decimal:
        """Signed net position size in base units; 0 if no position."""
        result = await self._request("GET", "/positions")
        if not isinstance(result, list):
            raise FtxApiError("unexpected /positions payload")
        for position in result:
            if position.get("future") == market_name:
                return _to_decimal(position.get("netSize"), "netSize")
        return Decimal("0")

    async def get_account_info(self) -> FtxAccountInfo:
        """GET /account. marginFraction is null when there are no positions."""
        result = await self._request_dict("GET", "/account")
        margin_fraction = result.get("marginFraction")
        return FtxAccountInfo(
            margin_fraction=(
                None if margin_fraction is None
                else _to_decimal(margin_fraction, "marginFraction")
            ),
        )

    async def place_order(self, order: FtxOrder) -> dict:
        """POST /orders."""
        return await self._request("POST", "/orders", body=order.to_payload())

    # ------------------------------------------------------------------
    # Internal: signing + HTTP
    # ------------------------------------------------------------------

    def _sign(self, ts: int, method: str, path: str, body: str) -> str:
        payload = f"{ts}{method}{path}{body}".encode("utf-8")
        return hmac.new(self._api_secret, payload, hashlib.sha256).hexdigest()

    def _headers(self, method: str, path: str, body: str) -> dict[str, str]:
        ts = self._clock()
        headers = {
            "FTX-KEY": self._api_key,
            "FTX-SIGN": self._sign(ts, method, path, body),
            "FTX-TS": str(ts),
        }
        if self._subaccount:
            headers["FTX-SUBACCOUNT"] = quote(self._subaccount)
        if body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        body: dict | None = None,
    ) -> Any:
        """Signed request → ``result`` field. Raises FtxApiError on any failure."""
        await self.open()
        path = f"{API_PREFIX}{endpoint}"
        if params:
            path = f"{path}?{urlencode(params)}"
        body_str = json.dumps(body) if body is not None else ""
        headers = self._headers(method, path, body_str)
        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(
                method, url, data=body_str or None, headers=headers,
            ) as resp:
                status = resp.status
                try:
                    data = await resp.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError):
                    data = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FtxApiError(f"{method} {endpoint} failed: {exc!r}") from exc

        if not isinstance(data, dict):
            raise FtxApiError(f"{method} {endpoint} returned a non-JSON body", status)
        if status != 200 or not data.get("success", False):
            raise FtxApiError(data.get("error") or f"{method} {endpoint} failed", status)
        return data.get("result")

    async def _request_dict(self, method: str, endpoint: str) -> dict:
        result = await self._request(method, endpoint)
        if not isinstance(result, dict):
            raise FtxApiError(f"unexpected {endpoint} payload")
        return result
