"""Per-tick trigger state machine.

For each symbol a tick runs two independent paths over one snapshot:

1. Watch path: active signals whose watch conditions fired get a follow-up
   analysis (bounded by ``max_followups_per_signal``, not cooldown-gated).
2. Pre-filter path: high volatility or a volume spike dispatches a full
   analysis, gated by the per-symbol cooldown. Accepted verdicts become new
   signals.

Collaborator calls are blocking and run in worker threads. Every failure
is contained to the symbol (or signal) that caused it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from .config import MonitorConfig
from .cooldown import CooldownGate
from .data_collectors.base import DataSource, MarketSnapshot
from .errors import AnalysisError, FetchError
from .notifications.events import NotificationEvent, Notifier
from .signals.registry import SignalRegistry
from .signals.signal_types import Opportunity, Signal
from .signals.watch_evaluator import WatchEvaluator, first_triggered

logger = logging.getLogger(__name__)

FOLLOWUP_REASON = "Watch condition triggered"


class Analyzer(Protocol):
    def analyze(
        self, symbol: str, price: float, reason: str, context: Optional[str] = None
    ) -> Opportunity | None: ...


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def evaluate_acceptance(opportunity: Opportunity, config: MonitorConfig) -> str | None:
    """Return the rejection reason for a verdict, or None if it is accepted.

    Only directional (LONG/SHORT) verdicts are held to the thresholds.
    """
    if not opportunity.is_directional:
        return None
    if opportunity.probability < config.min_probability:
        return (
            f"Probability {opportunity.probability:g}% below minimum "
            f"{config.min_probability:g}%"
        )
    if opportunity.risk_reward is not None and opportunity.risk_reward < config.min_risk_reward:
        return f"R:R {opportunity.risk_reward:g} below minimum {config.min_risk_reward:g}"
    return None


def build_trigger_reason(snapshot: MarketSnapshot, config: MonitorConfig) -> str:
    """Describe which pre-filter conditions held, or "" if none did."""
    reasons = []
    if snapshot.volatility >= config.volatility_threshold:
        reasons.append(f"Volatility {snapshot.volatility * 100:.2f}%")
    if snapshot.volume_change_ratio >= config.volume_spike_threshold:
        reasons.append(f"Volume {snapshot.volume_change_ratio:.1f}x")
    return ", ".join(reasons)


class TriggerController:
    """Orchestrates snapshot, watch evaluation, pre-filter and analysis."""

    def __init__(
        self,
        data_source: DataSource,
        analyzer: Analyzer,
        notifier: Notifier,
        config: MonitorConfig,
        registry: SignalRegistry | None = None,
        cooldown: CooldownGate | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.data_source = data_source
        self.analyzer = analyzer
        self.notifier = notifier
        self.config = config
        self.registry = registry if registry is not None else SignalRegistry()
        self.cooldown = cooldown if cooldown is not None else CooldownGate(config.cooldown_window)
        self.evaluator = WatchEvaluator(self.registry)
        self.clock = clock

    # ── Tick ───────────────────────────────────────────────────

    async def announce_startup(self, symbols: Iterable[str]) -> None:
        await self._notify(NotificationEvent(kind="startup", symbols=tuple(symbols)))

    async def run_tick(self, symbols: Iterable[str]) -> None:
        """Process every symbol once; returns when all symbols are done."""
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def _guarded(symbol: str) -> None:
            async with semaphore:
                try:
                    await self.check_symbol(symbol)
                except Exception:
                    logger.exception("Unexpected error checking %s", symbol)

        await asyncio.gather(*(_guarded(s) for s in symbols))

    async def check_symbol(self, symbol: str) -> None:
        try:
            snapshot = await self._call(self.data_source.snapshot, symbol)
        except (FetchError, asyncio.TimeoutError) as exc:
            logger.warning("Snapshot failed for %s: %s", symbol, exc)
            await self._notify(NotificationEvent(
                kind="error", symbol=symbol, message=f"Market data unavailable: {exc}",
            ))
            return

        volume_spike = snapshot.volume_change_ratio >= self.config.volume_spike_threshold
        for signal in self.evaluator.evaluate(symbol, snapshot.price, volume_spike):
            try:
                await self._handle_triggered(signal, snapshot.price, volume_spike)
            except Exception as exc:
                logger.exception("Follow-up for signal %s on %s failed", signal.id, symbol)
                await self._notify(NotificationEvent(
                    kind="error", symbol=symbol, signal_id=signal.id,
                    message=f"Follow-up failed: {exc}",
                ))

        reason = build_trigger_reason(snapshot, self.config)
        if reason:
            logger.info("Pre-filter triggered for %s: %s", symbol, reason)
            await self._analyze_new_opportunity(snapshot, reason)

    # ── Watch path ─────────────────────────────────────────────

    async def _handle_triggered(self, signal: Signal, price: float, volume_spike: bool) -> None:
        symbol = signal.symbol
        max_followups = self.config.max_followups_per_signal

        count = self.registry.increment_followup(signal.id)
        if count > max_followups:
            logger.info("Max follow-ups (%d) reached for signal %s", max_followups, signal.id)
            self.registry.deactivate(signal.id)
            return

        condition = first_triggered(signal, price, volume_spike)
        if condition is not None:
            trigger_info = condition.label
            context = (
                f"Previous analysis suggested watching when {trigger_info}. "
                f"That condition just triggered. "
                f"Previous assessment: {signal.opportunity.reasoning}"
            )
        else:
            trigger_info = "Watch condition met"
            context = "Watch condition triggered for previous signal."

        logger.info(
            "Watch condition triggered for %s: %s (follow-up %d/%d)",
            symbol, trigger_info, count, max_followups,
        )
        await self._notify(NotificationEvent(
            kind="watch_triggered", symbol=symbol, trigger_info=trigger_info, signal_id=signal.id,
        ))

        try:
            opportunity = await self._call(
                self.analyzer.analyze, symbol, price, FOLLOWUP_REASON, context
            )
        except (AnalysisError, asyncio.TimeoutError) as exc:
            logger.error("Follow-up analysis failed for %s: %s", symbol, exc)
            await self._notify(NotificationEvent(
                kind="error", symbol=symbol, message=f"Follow-up analysis failed: {exc}",
            ))
            return

        if opportunity is None:
            await self._notify(NotificationEvent(kind="no_opportunity", symbol=symbol))
            return

        await self._notify_tool_usage(symbol, opportunity)
        await self._notify(NotificationEvent(
            kind="followup", symbol=symbol, trigger_info=trigger_info,
            opportunity=opportunity, signal_id=signal.id,
        ))

        if opportunity.watch_conditions:
            self.registry.replace_watch_conditions(signal.id, opportunity.watch_conditions)
        else:
            self.registry.deactivate(signal.id)
            logger.info("Signal %s resolved by follow-up (%s)", signal.id, opportunity.kind)

    # ── Pre-filter path ────────────────────────────────────────

    async def _analyze_new_opportunity(self, snapshot: MarketSnapshot, reason: str) -> None:
        symbol = snapshot.symbol

        now = self.clock()
        decision = self.cooldown.try_acquire(symbol, now)
        if not decision.allowed:
            logger.info("%s on cooldown (%s remaining)", symbol, decision.remaining)
            await self._notify(NotificationEvent(
                kind="cooldown", symbol=symbol, remaining=decision.remaining,
            ))
            return

        self.cooldown.record(symbol, now)
        await self._notify(NotificationEvent(kind="analysis_start", symbol=symbol, message=reason))

        try:
            opportunity = await self._call(
                self.analyzer.analyze, symbol, snapshot.price, reason, None
            )
        except (AnalysisError, asyncio.TimeoutError) as exc:
            logger.error("Analysis failed for %s: %s", symbol, exc)
            await self._notify(NotificationEvent(
                kind="error", symbol=symbol, message=f"Analysis failed: {exc}",
            ))
            return

        if opportunity is None:
            logger.info("No opportunity for %s", symbol)
            await self._notify(NotificationEvent(kind="no_opportunity", symbol=symbol))
            return

        await self._notify_tool_usage(symbol, opportunity)

        rejection = evaluate_acceptance(opportunity, self.config)
        if rejection is not None:
            logger.info("Rejected %s %s: %s", symbol, opportunity.kind, rejection)
            await self._notify(NotificationEvent(kind="rejection", symbol=symbol, message=rejection))
            return

        signal_id = self.registry.store(symbol, opportunity)
        logger.info("Signal stored for %s (ID: %s)", symbol, signal_id)
        await self._notify(NotificationEvent(
            kind="signal", symbol=symbol, opportunity=opportunity, signal_id=signal_id,
        ))

    # ── Collaborator helpers ───────────────────────────────────

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking collaborator call off the event loop, with an optional deadline."""
        # A timed-out call keeps its worker thread until the collaborator returns,
        # so every collaborator bounds its own I/O (HTTP timeouts, analyzer timeout).
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), self.config.call_timeout)

    async def _notify(self, event: NotificationEvent) -> None:
        try:
            await asyncio.to_thread(self.notifier.notify, event)
        except Exception as exc:
            logger.error("Notification %s for %s failed: %s", event.kind, event.symbol, exc)

    async def _notify_tool_usage(self, symbol: str, opportunity: Opportunity) -> None:
        if opportunity.tools_used:
            await self._notify(NotificationEvent(
                kind="tool_usage", symbol=symbol, tools=opportunity.tools_used,
            ))
