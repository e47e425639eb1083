"""Per-symbol cooldown between full analysis dispatches."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

DEFAULT_WINDOW = timedelta(minutes=5)


@dataclass(frozen=True)
class CooldownDecision:
    allowed: bool
    remaining: timedelta = timedelta(0)


class CooldownGate:
    """Fixed-window gate keyed by symbol.

    ``try_acquire`` checks the window and, when allowed, reserves the symbol
    in the same locked step, so two concurrent callers cannot both pass.
    The window itself only starts on ``record``, i.e. when the analysis was
    actually dispatched. ``release`` drops a reservation that never led to a
    dispatch.
    """

    def __init__(self, window: timedelta = DEFAULT_WINDOW) -> None:
        self.window = window
        self._last_dispatch: dict[str, datetime] = {}
        self._reserved: set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, symbol: str, now: datetime) -> CooldownDecision:
        with self._lock:
            if symbol in self._reserved:
                return CooldownDecision(allowed=False, remaining=self.window)
            last = self._last_dispatch.get(symbol)
            if last is not None:
                elapsed = now - last
                if elapsed < self.window:
                    return CooldownDecision(allowed=False, remaining=self.window - elapsed)
            self._reserved.add(symbol)
            return CooldownDecision(allowed=True)

    def record(self, symbol: str, now: datetime) -> None:
        """Start the cooldown window for a dispatched analysis."""
        with self._lock:
            self._last_dispatch[symbol] = now
            self._reserved.discard(symbol)

    def release(self, symbol: str) -> None:
        with self._lock:
            self._reserved.discard(symbol)

    def last_dispatch(self, symbol: str) -> datetime | None:
        with self._lock:
            return self._last_dispatch.get(symbol)
