"""Intraday snapshot collector using yfinance.

Useful for symbols Crypto.com does not list (``BTC-USD``, equities).
Price comes from the latest 1-minute bar; the volume ratio compares the
last five bars against the whole session.
"""

from __future__ import annotations

import logging

import pandas as pd
import yfinance as yf

from ..errors import FetchError
from .base import MarketSnapshot, PriceHistory

logger = logging.getLogger(__name__)

_RECENT_BARS = 5


def _volume_ratio(volume: pd.Series, recent: int = _RECENT_BARS) -> float:
    """Mean of the last ``recent`` bars divided by the mean of the window."""
    volume = volume.dropna()
    if len(volume) < recent:
        return 1.0
    baseline = volume.mean()
    if baseline <= 0:
        return 1.0
    return float(volume.iloc[-recent:].mean() / baseline)


class YFinanceCollector:
    """Snapshot source backed by Yahoo Finance 1-minute bars."""

    def __init__(self, period: str = "1d", interval: str = "1m") -> None:
        self.period = period
        self.interval = interval
        self.history = PriceHistory()

    def snapshot(self, symbol: str) -> MarketSnapshot:
        try:
            hist = yf.Ticker(symbol).history(period=self.period, interval=self.interval)
        except Exception as exc:
            logger.warning("yfinance history failed for %s: %s", symbol, exc)
            raise FetchError(f"History request failed for {symbol}: {exc}", symbol=symbol) from exc

        if hist is None or hist.empty or "Close" not in hist.columns:
            raise FetchError(f"No intraday bars for {symbol}", symbol=symbol)

        close = hist["Close"].dropna()
        if close.empty:
            raise FetchError(f"No closing prices for {symbol}", symbol=symbol)
        price = float(close.iloc[-1])
        if price <= 0:
            raise FetchError(f"Non-positive price {price} for {symbol}", symbol=symbol)

        volume_ratio = 1.0
        if "Volume" in hist.columns:
            volume_ratio = _volume_ratio(hist["Volume"])

        self.history.append(symbol, price)
        return MarketSnapshot(
            symbol=symbol,
            price=price,
            volatility=self.history.volatility(symbol),
            volume_change_ratio=volume_ratio,
        )

    def price_history(self, symbol: str) -> list[float]:
        return self.history.get(symbol)
