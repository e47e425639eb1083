"""Watch-condition evaluation against a live price and volume flag."""

from __future__ import annotations

from .registry import SignalRegistry
from .signal_types import Signal, WatchCondition


def condition_met(condition: WatchCondition, price: float, volume_spike: bool) -> bool:
    """Return True if a single condition is satisfied right now."""
    if condition.trigger == "price_below":
        return price < condition.value
    if condition.trigger == "price_above":
        return price > condition.value
    if condition.trigger == "volume_spike":
        # value is informational only
        return volume_spike
    # funding_change: no funding-rate feed is wired in
    return False


def first_triggered(
    signal: Signal, price: float, volume_spike: bool
) -> WatchCondition | None:
    """First condition of ``signal`` (in list order) that is satisfied."""
    for condition in signal.watch_conditions:
        if condition_met(condition, price, volume_spike):
            return condition
    return None


class WatchEvaluator:
    """Select the active signals of a symbol whose watch conditions fired."""

    def __init__(self, registry: SignalRegistry) -> None:
        self.registry = registry

    def evaluate(self, symbol: str, price: float, volume_spike: bool) -> list[Signal]:
        """Return each triggered signal at most once."""
        triggered: list[Signal] = []
        for signal in self.registry.active_signals_for(symbol):
            if not signal.watch_conditions:
                continue
            if first_triggered(signal, price, volume_spike) is not None:
                triggered.append(signal)
        return triggered
