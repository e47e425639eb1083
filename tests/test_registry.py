"""Tests for the in-memory signal registry."""

from __future__ import annotations

import threading

from signalwatch.signals.registry import SignalRegistry
from signalwatch.signals.signal_types import WatchCondition

from tests.fakes import directional, watch


BELOW_95 = WatchCondition("price_below", 95, "reversal")
ABOVE_110 = WatchCondition("price_above", 110, "breakout")


class TestStore:
    def test_new_signal_defaults(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        sig = reg.get(sid)
        assert sig is not None
        assert sig.symbol == "X"
        assert sig.followup_count == 0
        assert sig.active is True
        assert sig.watch_conditions == (BELOW_95,)
        assert sig.created_at.tzinfo is not None

    def test_ids_are_unique(self):
        reg = SignalRegistry()
        ids = {reg.store("X", watch(BELOW_95)) for _ in range(50)}
        assert len(ids) == 50
        assert len(reg) == 50

    def test_directional_without_conditions_is_active_but_empty(self):
        reg = SignalRegistry()
        sid = reg.store("X", directional())
        sig = reg.get(sid)
        assert sig.active is True
        assert sig.watch_conditions == ()


class TestMutations:
    def test_increment_followup(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        assert reg.increment_followup(sid) == 1
        assert reg.increment_followup(sid) == 2

    def test_increment_unknown_id_returns_zero(self):
        reg = SignalRegistry()
        assert reg.increment_followup("missing") == 0

    def test_deactivate_is_idempotent(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        reg.deactivate(sid)
        first = reg.get(sid)
        snapshot = (first.active, first.watch_conditions, first.followup_count)
        reg.deactivate(sid)
        second = reg.get(sid)
        assert (second.active, second.watch_conditions, second.followup_count) == snapshot
        assert snapshot == (False, (), 0)

    def test_deactivate_unknown_id_is_noop(self):
        reg = SignalRegistry()
        reg.deactivate("missing")
        assert len(reg) == 0

    def test_deactivation_keeps_audit_record(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        reg.deactivate(sid)
        assert reg.active_signals_for("X") == []
        assert [s.id for s in reg.all_signals()] == [sid]
        assert reg.get(sid).opportunity.watch_conditions == (BELOW_95,)

    def test_increment_after_deactivation_does_not_reactivate(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        reg.deactivate(sid)
        assert reg.increment_followup(sid) == 1
        assert reg.get(sid).active is False
        assert reg.active_signals_for("X") == []

    def test_replace_watch_conditions(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        assert reg.replace_watch_conditions(sid, [ABOVE_110]) is True
        assert reg.get(sid).watch_conditions == (ABOVE_110,)

    def test_replace_with_empty_deactivates(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        assert reg.replace_watch_conditions(sid, []) is False
        assert reg.get(sid).active is False

    def test_replace_on_inactive_signal_is_ignored(self):
        reg = SignalRegistry()
        sid = reg.store("X", watch(BELOW_95))
        reg.deactivate(sid)
        assert reg.replace_watch_conditions(sid, [ABOVE_110]) is False
        assert reg.get(sid).watch_conditions == ()
        assert reg.replace_watch_conditions("missing", [ABOVE_110]) is False


class TestQueries:
    def test_active_signals_filtered_by_symbol(self):
        reg = SignalRegistry()
        a = reg.store("X", watch(BELOW_95))
        reg.store("Y", watch(BELOW_95))
        c = reg.store("X", directional())
        reg.deactivate(c)
        assert [s.id for s in reg.active_signals_for("X")] == [a]

    def test_all_active_watch_conditions_flattened(self):
        reg = SignalRegistry()
        reg.store("X", watch(BELOW_95))
        reg.store("X", watch(ABOVE_110, BELOW_95))
        dead = reg.store("X", watch(ABOVE_110))
        reg.deactivate(dead)
        conditions = reg.all_active_watch_conditions("X")
        assert sorted(c.trigger for c in conditions) == ["price_above", "price_below", "price_below"]
        assert reg.all_active_watch_conditions("Y") == []


def test_concurrent_increments_are_not_lost():
    reg = SignalRegistry()
    sid = reg.store("X", watch(BELOW_95))

    def bump():
        for _ in range(200):
            reg.increment_followup(sid)

    threads = [threading.Thread(target=bump) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert reg.get(sid).followup_count == 1600
