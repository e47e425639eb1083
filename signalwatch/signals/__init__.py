"""Signal model, registry and watch-condition evaluation."""

from .registry import SignalRegistry
from .signal_types import Opportunity, Signal, ToolUsage, WatchCondition
from .watch_evaluator import WatchEvaluator, condition_met, first_triggered

__all__ = [
    "Opportunity",
    "Signal",
    "SignalRegistry",
    "ToolUsage",
    "WatchCondition",
    "WatchEvaluator",
    "condition_met",
    "first_triggered",
]
