"""Tests for opportunity payload parsing."""

from __future__ import annotations

import pytest

from signalwatch.signals.signal_types import Opportunity, ToolUsage, WatchCondition, format_number


class TestFromPayload:
    def test_directional_payload(self):
        opp = Opportunity.from_payload({
            "opportunity": "LONG",
            "probability": 72,
            "reasoning": "1H RSI at 28, bids stacked at 94k",
            "entry": 95000,
            "stopLoss": 93500,
            "targets": [98000, "99500"],
            "riskReward": 2.8,
            "timeValidity": "4h",
        })
        assert opp.kind == "LONG"
        assert opp.is_directional
        assert opp.probability == 72.0
        assert opp.stop_loss == 93500.0
        assert opp.targets == (98000.0, 99500.0)
        assert opp.risk_reward == 2.8
        assert opp.time_validity == "4h"
        assert opp.watch_conditions == ()

    def test_watch_payload(self):
        opp = Opportunity.from_payload({
            "opportunity": "watch",
            "probability": 55,
            "reasoning": "Range bound",
            "watchConditions": [
                {"trigger": "price_below", "value": 95, "then": "reversal long"},
                {"trigger": "volume_spike", "value": "3"},
            ],
        })
        assert opp.kind == "WATCH"
        assert not opp.is_directional
        assert opp.watch_conditions == (
            WatchCondition("price_below", 95.0, "reversal long"),
            WatchCondition("volume_spike", 3.0, ""),
        )

    def test_unknown_trigger_is_dropped(self):
        opp = Opportunity.from_payload({
            "opportunity": "WATCH",
            "probability": 50,
            "watchConditions": [
                {"trigger": "open_interest", "value": 1},
                {"trigger": "price_above", "value": 110, "then": "breakout"},
            ],
        })
        assert [c.trigger for c in opp.watch_conditions] == ["price_above"]

    def test_tools_used_attached(self):
        tools = (ToolUsage("get_ticker", {"instrument_name": "BTCUSD-PERP"}),)
        opp = Opportunity.from_payload({"opportunity": "WAIT", "probability": 40}, tools_used=tools)
        assert opp.tools_used == tools

    def test_invalid_time_validity_ignored(self):
        opp = Opportunity.from_payload({"opportunity": "SHORT", "probability": 70, "timeValidity": "1w"})
        assert opp.time_validity is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"opportunity": "HOLD", "probability": 70},
            {"opportunity": "LONG"},
            {"opportunity": "LONG", "probability": "high"},
            {"opportunity": "WATCH", "probability": 50, "watchConditions": {"trigger": "price_below"}},
            {"opportunity": "WATCH", "probability": 50, "watchConditions": [{"trigger": "price_below"}]},
            ["LONG"],
            {"opportunity": "LONG", "probability": 70, "targets": 105},
            {"opportunity": "LONG", "probability": 70, "targets": "105"},
        ],
    )
    def test_invalid_payloads_raise(self, payload):
        with pytest.raises(ValueError):
            Opportunity.from_payload(payload)


class TestFormatting:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(95, "95"), (95.0, "95"), (95.5, "95.5"), (0.015, "0.015"), (123456.0, "123456")],
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_condition_label(self):
        assert WatchCondition("price_below", 95.0, "reversal").label == "price_below $95"


def test_missing_targets_default_to_empty():
    opp = Opportunity.from_payload({"opportunity": "LONG", "probability": 70, "targets": None})
    assert opp.targets == ()
