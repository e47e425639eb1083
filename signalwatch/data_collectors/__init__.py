"""Market data collectors.

Provides price/volatility/volume snapshots from the Crypto.com public
ticker and from Yahoo Finance intraday bars.
"""

from .base import DataSource, MarketSnapshot, PriceHistory
from .cryptocom_collector import CryptoComCollector
from .yfinance_collector import YFinanceCollector


def build_data_source(name: str) -> DataSource:
    """Instantiate the collector registered under ``name``."""
    if name == "yfinance":
        return YFinanceCollector()
    if name == "cryptocom":
        return CryptoComCollector()
    raise ValueError(f"Unknown data source: {name!r}")


__all__ = [
    "CryptoComCollector",
    "DataSource",
    "MarketSnapshot",
    "PriceHistory",
    "YFinanceCollector",
    "build_data_source",
]
