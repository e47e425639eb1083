"""Telegram-HTML rendering of notification events.

Deterministic template rendering only; reasoning text coming from the
model is escaped before it is embedded.
"""

from __future__ import annotations

import html
import math
import re

from ..signals.signal_types import Opportunity, WatchCondition, format_number
from .events import NotificationEvent

_HTML_TAG_RE = re.compile(r"<[^>]+>")


def strip_tags(text: str) -> str:
    """Plain-text fallback for a rendered message."""
    return html.unescape(_HTML_TAG_RE.sub("", text))


def probability_bar(probability: float) -> str:
    filled = max(0, min(10, round(probability / 10)))
    return "█" * filled + "░" * (10 - filled)


def _price(value: float | None) -> str:
    if value is None:
        return "n/a"
    if abs(value) < 1:
        return f"${format_number(value)}"
    return f"${value:,.2f}".rstrip("0").rstrip(".")


def format_trigger(cond: WatchCondition) -> str:
    if cond.trigger == "price_below":
        return f"Price &lt; {_price(cond.value)}"
    if cond.trigger == "price_above":
        return f"Price &gt; {_price(cond.value)}"
    if cond.trigger == "volume_spike":
        return f"Volume spike ({format_number(cond.value)}x)"
    if cond.trigger == "funding_change":
        return f"Funding rate changes to {format_number(cond.value)}%"
    return str(cond.trigger)


def format_watch_conditions(conditions: tuple[WatchCondition, ...]) -> str:
    if not conditions:
        return ""
    lines = ["🔔 <b>I'll alert you when:</b>"]
    for cond in conditions:
        lines.append(f"• {format_trigger(cond)} → {html.escape(cond.consequence)}")
    return "\n".join(lines)


def format_opportunity(symbol: str, opp: Opportunity) -> str:
    reasoning = html.escape(opp.reasoning)

    if opp.is_directional:
        emoji = "🟢" if opp.kind == "LONG" else "🔴"
        targets = " → ".join(_price(t) for t in opp.targets) or "n/a"
        rr = f"1:{opp.risk_reward:.1f}" if opp.risk_reward is not None else "n/a"
        return (
            f"{emoji} <b>{opp.kind} Opportunity ({opp.probability:.0f}%)</b> "
            f"{probability_bar(opp.probability)}\n\n"
            f"📊 {symbol}\n"
            f"💵 Entry: {_price(opp.entry)}\n"
            f"🛑 Stop: {_price(opp.stop_loss)}\n"
            f"🎯 Targets: {targets}\n"
            f"📈 R:R: {rr}\n\n"
            f"📝 {reasoning}\n\n"
            f"⏰ Valid: {opp.time_validity or '12h'}"
        )

    if opp.kind == "WATCH":
        header = f"👀 <b>WATCHING {symbol}</b> ({opp.probability:.0f}% potential)"
    else:
        header = f"⏸️ <b>WAIT</b> - {symbol}"
    parts = [header, f"📝 {reasoning}"]
    conditions = format_watch_conditions(opp.watch_conditions)
    if conditions:
        parts.append(conditions)
    return "\n\n".join(parts)


def format_event(event: NotificationEvent) -> str:
    """Render an event as a Telegram-HTML message."""
    symbol = event.symbol
    kind = event.kind

    if kind == "startup":
        return (
            "🤖 <b>Signal System Started</b>\n\n"
            f"📊 Monitoring: {', '.join(event.symbols)}\n"
            "✅ Ready to detect opportunities!"
        )
    if kind == "analysis_start":
        return f"🔥 <b>Analyzing {symbol}</b>\n{html.escape(event.message)}"
    if kind == "cooldown":
        seconds = event.remaining.total_seconds() if event.remaining else 0
        minutes = max(1, math.ceil(seconds / 60))
        return f"⏳ {symbol} on cooldown ({minutes}m remaining)"
    if kind == "rejection":
        return f"❌ <b>Signal Rejected</b> - {symbol}\n{html.escape(event.message)}"
    if kind == "watch_triggered":
        return f"🎯 <b>Watch Condition Triggered</b>\n{symbol}: {html.escape(event.trigger_info)}"
    if kind == "followup" and event.opportunity is not None:
        return (
            f"🎯 <b>TRIGGER HIT: {html.escape(event.trigger_info)}</b>\n\n"
            + format_opportunity(symbol, event.opportunity)
        )
    if kind == "signal" and event.opportunity is not None:
        return format_opportunity(symbol, event.opportunity)
    if kind == "no_opportunity":
        return f"ℹ️ {symbol}: no trading opportunity found"
    if kind == "tool_usage":
        if not event.tools:
            return f"⚠️ <b>Warning:</b> no market tools used for {symbol}\nSignal reliability: LOW"
        names = ", ".join(html.escape(t.name) for t in event.tools)
        return f"✅ Used <b>{len(event.tools)} tools</b> for {symbol}:\n{names}"
    if kind == "error":
        return f"❌ <b>Error</b> - {symbol}\n{html.escape(event.message)}"
    return html.escape(event.message or kind)
