"""Exception hierarchy for signalwatch.

Every failure of an external collaborator is recoverable: the controller
catches these per symbol and keeps the tick loop alive.
"""

from __future__ import annotations


class SignalWatchError(Exception):
    """Base error for all signalwatch subsystems."""


class FetchError(SignalWatchError):
    """Market data could not be fetched or parsed for a symbol."""

    def __init__(self, message: str, *, symbol: str = "") -> None:
        self.symbol = symbol
        super().__init__(message)


class AnalysisError(SignalWatchError):
    """The analysis service failed (network, quota, or unparseable reply)."""

    def __init__(self, message: str, *, symbol: str = "") -> None:
        self.symbol = symbol
        super().__init__(message)


class NotifyError(SignalWatchError):
    """A notification could not be delivered."""


class ConfigError(SignalWatchError, ValueError):
    """A configuration value is missing, unparseable, or out of range."""
