"""Shared snapshot model and rolling price history for market data collectors."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

import numpy as np

# Keep the last 100 observations per symbol (~50 minutes at a 30s tick)
_HISTORY_LENGTH = 100


@dataclass(frozen=True)
class MarketSnapshot:
    """Point-in-time market view used by one controller tick."""

    symbol: str
    price: float
    volatility: float  # (max - min) / min over the rolling history
    volume_change_ratio: float  # current volume vs. average, 1.0 = normal
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


class DataSource(Protocol):
    def snapshot(self, symbol: str) -> MarketSnapshot:
        """Return the latest snapshot or raise FetchError."""
        ...


class PriceHistory:
    """Bounded per-symbol price buffers."""

    def __init__(self, maxlen: int = _HISTORY_LENGTH) -> None:
        self.maxlen = maxlen
        self._prices: dict[str, deque[float]] = {}

    def append(self, symbol: str, price: float) -> None:
        buf = self._prices.setdefault(symbol, deque(maxlen=self.maxlen))
        buf.append(price)

    def get(self, symbol: str) -> list[float]:
        return list(self._prices.get(symbol, ()))

    def volatility(self, symbol: str) -> float:
        """High/low range of the buffered prices as a fraction of the low.

        Catches V-shaped moves that a start-vs-end comparison would miss.
        """
        buf = self._prices.get(symbol)
        if buf is None or len(buf) < 2:
            return 0.0
        prices = np.asarray(buf, dtype=float)
        low = float(prices.min())
        if low == 0:
            return 0.0
        return float((prices.max() - low) / low)
