"""Tests for the market data collectors."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from signalwatch.data_collectors import (
    CryptoComCollector,
    PriceHistory,
    YFinanceCollector,
    build_data_source,
)
from signalwatch.data_collectors.yfinance_collector import _volume_ratio
from signalwatch.errors import FetchError


def _session(*payloads) -> MagicMock:
    session = MagicMock()
    responses = []
    for payload in payloads:
        resp = MagicMock()
        resp.json.return_value = payload
        responses.append(resp)
    session.get.side_effect = responses
    return session


def _ticker(price, v_change="1.0") -> dict:
    return {"code": 0, "result": {"data": [{"i": "BTCUSD-PERP", "a": price, "v_change": v_change}]}}


class TestPriceHistory:
    def test_volatility_is_range_over_low(self):
        history = PriceHistory()
        for price in (100, 95, 104):
            history.append("X", price)
        assert history.volatility("X") == pytest.approx(9 / 95)

    def test_single_point_has_no_volatility(self):
        history = PriceHistory()
        history.append("X", 100)
        assert history.volatility("X") == 0.0
        assert history.volatility("missing") == 0.0

    def test_bounded(self):
        history = PriceHistory(maxlen=3)
        for price in range(10):
            history.append("X", price)
        assert history.get("X") == [7, 8, 9]


class TestCryptoComCollector:
    def test_snapshot_parses_ticker(self):
        session = _session(_ticker("95000.5", "2.5"))
        snap = CryptoComCollector(session=session).snapshot("BTCUSD-PERP")

        assert snap.symbol == "BTCUSD-PERP"
        assert snap.price == 95000.5
        assert snap.volume_change_ratio == 2.5
        assert snap.volatility == 0.0
        assert session.get.call_args.kwargs["params"] == {"instrument_name": "BTCUSD-PERP"}

    def test_volatility_accumulates_across_snapshots(self):
        collector = CryptoComCollector(session=_session(_ticker("100"), _ticker("102")))
        collector.snapshot("BTCUSD-PERP")
        snap = collector.snapshot("BTCUSD-PERP")
        assert snap.volatility == pytest.approx(0.02)
        assert collector.price_history("BTCUSD-PERP") == [100.0, 102.0]

    def test_missing_volume_change_defaults_to_normal(self):
        payload = {"result": {"data": [{"a": "50"}]}}
        snap = CryptoComCollector(session=_session(payload)).snapshot("X")
        assert snap.volume_change_ratio == 1.0

    @pytest.mark.parametrize(
        "payload",
        [
            {"result": {"data": []}},
            {"result": {}},
            {},
            _ticker("not-a-price"),
            _ticker("0"),
        ],
    )
    def test_bad_responses_raise_fetch_error(self, payload):
        with pytest.raises(FetchError):
            CryptoComCollector(session=_session(payload)).snapshot("X")

    def test_http_error_raises_fetch_error(self):
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("503")
        with pytest.raises(FetchError) as info:
            CryptoComCollector(session=session).snapshot("X")
        assert info.value.symbol == "X"

    def test_network_error_raises_fetch_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(FetchError):
            CryptoComCollector(session=session).snapshot("X")


class TestYFinanceCollector:
    def _bars(self, closes, volumes) -> pd.DataFrame:
        return pd.DataFrame({"Close": closes, "Volume": volumes})

    def test_snapshot_from_latest_bar(self):
        bars = self._bars([100.0] * 9 + [110.0], [100] * 5 + [400] * 5)
        with patch("signalwatch.data_collectors.yfinance_collector.yf.Ticker") as ticker:
            ticker.return_value.history.return_value = bars
            snap = YFinanceCollector().snapshot("BTC-USD")

        ticker.assert_called_once_with("BTC-USD")
        ticker.return_value.history.assert_called_once_with(period="1d", interval="1m")
        assert snap.price == 110.0
        assert snap.volume_change_ratio == pytest.approx(1.6)

    def test_empty_history_raises(self):
        with patch("signalwatch.data_collectors.yfinance_collector.yf.Ticker") as ticker:
            ticker.return_value.history.return_value = pd.DataFrame()
            with pytest.raises(FetchError):
                YFinanceCollector().snapshot("NOPE")

    def test_library_error_raises(self):
        with patch("signalwatch.data_collectors.yfinance_collector.yf.Ticker") as ticker:
            ticker.return_value.history.side_effect = RuntimeError("rate limited")
            with pytest.raises(FetchError):
                YFinanceCollector().snapshot("BTC-USD")

    def test_volume_ratio_needs_enough_bars(self):
        assert _volume_ratio(pd.Series([1.0, 2.0])) == 1.0
        assert _volume_ratio(pd.Series([0.0] * 6)) == 1.0


def test_build_data_source():
    assert isinstance(build_data_source("cryptocom"), CryptoComCollector)
    assert isinstance(build_data_source("yfinance"), YFinanceCollector)
    with pytest.raises(ValueError):
        build_data_source("bloomberg")
