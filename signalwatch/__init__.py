"""signalwatch: market monitor with AI analysis and watch-condition follow-ups."""

from .config import MonitorConfig
from .cooldown import CooldownDecision, CooldownGate
from .errors import AnalysisError, ConfigError, FetchError, NotifyError, SignalWatchError
from .signals import Opportunity, Signal, SignalRegistry, WatchCondition, WatchEvaluator
from .trigger_controller import TriggerController, evaluate_acceptance

__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "ConfigError",
    "CooldownDecision",
    "CooldownGate",
    "FetchError",
    "MonitorConfig",
    "NotifyError",
    "Opportunity",
    "Signal",
    "SignalRegistry",
    "SignalWatchError",
    "TriggerController",
    "WatchCondition",
    "WatchEvaluator",
    "evaluate_acceptance",
]
