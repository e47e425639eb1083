"""Crypto.com public ticker collector.

Fetches last price and volume change for perpetual instruments such as
``BTCUSD-PERP``. Volatility is computed locally from the rolling price
history, so the first few snapshots after start-up report 0.
"""

from __future__ import annotations

import logging

import requests

from ..errors import FetchError
from .base import MarketSnapshot, PriceHistory

logger = logging.getLogger(__name__)


class CryptoComCollector:
    """Snapshot source backed by the Crypto.com v2 public REST API."""

    API_URL = "https://api.crypto.com/v2/public/get-ticker"

    def __init__(self, session: requests.Session | None = None, timeout: float = 10.0) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.history = PriceHistory()

    def snapshot(self, symbol: str) -> MarketSnapshot:
        ticker = self._get_ticker(symbol)

        try:
            price = float(ticker["a"])
            volume_change = float(ticker.get("v_change") or 1.0)
        except (KeyError, TypeError, ValueError) as exc:
            raise FetchError(f"Unparseable ticker for {symbol}: {exc}", symbol=symbol) from exc
        if price <= 0:
            raise FetchError(f"Non-positive price {price} for {symbol}", symbol=symbol)

        self.history.append(symbol, price)
        return MarketSnapshot(
            symbol=symbol,
            price=price,
            volatility=self.history.volatility(symbol),
            volume_change_ratio=max(volume_change, 0.0),
        )

    def price_history(self, symbol: str) -> list[float]:
        return self.history.get(symbol)

    def _get_ticker(self, symbol: str) -> dict:
        try:
            resp = self.session.get(
                self.API_URL,
                params={"instrument_name": symbol},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Crypto.com ticker request failed for %s: %s", symbol, exc)
            raise FetchError(f"Ticker request failed for {symbol}: {exc}", symbol=symbol) from exc

        rows = ((data or {}).get("result") or {}).get("data") or []
        if not rows or not isinstance(rows[0], dict):
            raise FetchError(f"Invalid ticker response for {symbol}", symbol=symbol)
        return rows[0]
