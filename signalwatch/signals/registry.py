"""In-memory registry of emitted signals.

The registry is the single owner of signal state. Every mutation happens
under one lock so concurrent per-symbol tasks cannot interleave updates.
Unknown ids are tolerated everywhere: a triggered signal may have been
deactivated by another task between evaluation and update.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

from .signal_types import Opportunity, Signal, WatchCondition

logger = logging.getLogger(__name__)


class SignalRegistry:
    """Process-lifetime store of signals keyed by generated id."""

    def __init__(self) -> None:
        self._signals: dict[str, Signal] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)

    def store(self, symbol: str, opportunity: Opportunity) -> str:
        """Create an active signal for an accepted opportunity and return its id."""
        signal = Signal(
            id=str(uuid.uuid4()),
            symbol=symbol,
            opportunity=opportunity,
            created_at=datetime.now(tz=timezone.utc),
            watch_conditions=tuple(opportunity.watch_conditions),
        )
        with self._lock:
            self._signals[signal.id] = signal
        logger.debug(
            "Stored signal %s for %s (%s, %d watch conditions)",
            signal.id, symbol, opportunity.kind, len(signal.watch_conditions),
        )
        return signal.id

    def get(self, signal_id: str) -> Signal | None:
        with self._lock:
            return self._signals.get(signal_id)

    def increment_followup(self, signal_id: str) -> int:
        """Bump the follow-up counter. Returns the new count, or 0 if unknown."""
        with self._lock:
            signal = self._signals.get(signal_id)
            if signal is None:
                return 0
            signal.followup_count += 1
            return signal.followup_count

    def deactivate(self, signal_id: str) -> None:
        """Terminally deactivate a signal. Idempotent; unknown ids are ignored."""
        with self._lock:
            signal = self._signals.get(signal_id)
            if signal is None or not signal.active:
                return
            signal.active = False
            signal.watch_conditions = ()
        logger.debug("Deactivated signal %s", signal_id)

    def replace_watch_conditions(
        self, signal_id: str, conditions: Iterable[WatchCondition]
    ) -> bool:
        """Swap in a follow-up's conditions wholesale.

        Applies only to an existing active signal. An empty replacement
        deactivates the signal instead. Returns whether the signal is still
        active afterwards.
        """
        new_conditions = tuple(conditions)
        with self._lock:
            signal = self._signals.get(signal_id)
            if signal is None or not signal.active:
                return False
            if not new_conditions:
                signal.active = False
                signal.watch_conditions = ()
                return False
            signal.watch_conditions = new_conditions
            return True

    def active_signals_for(self, symbol: str) -> list[Signal]:
        with self._lock:
            return [s for s in self._signals.values() if s.symbol == symbol and s.active]

    def all_active_watch_conditions(self, symbol: str) -> list[WatchCondition]:
        """Flattened conditions across a symbol's active signals (introspection only)."""
        with self._lock:
            return [
                cond
                for s in self._signals.values()
                if s.symbol == symbol and s.active
                for cond in s.watch_conditions
            ]

    def all_signals(self) -> list[Signal]:
        """Every signal ever stored, active or not, in insertion order."""
        with self._lock:
            return list(self._signals.values())
