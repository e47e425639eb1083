"""Core dataclasses shared by the registry, evaluator and controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional, get_args

logger = logging.getLogger(__name__)

OpportunityKind = Literal["LONG", "SHORT", "WAIT", "WATCH"]
TriggerKind = Literal["price_below", "price_above", "volume_spike", "funding_change"]

OPPORTUNITY_KINDS: tuple[str, ...] = get_args(OpportunityKind)
TRIGGER_KINDS: tuple[str, ...] = get_args(TriggerKind)
TIME_VALIDITIES = ("4h", "12h", "24h")


@dataclass(frozen=True)
class WatchCondition:
    """A price/volume trigger attached to a stored signal."""

    trigger: TriggerKind
    value: float
    consequence: str = ""  # what opportunity emerges when triggered

    @property
    def label(self) -> str:
        """Short form used in follow-up context, e.g. ``price_below $95``."""
        return f"{self.trigger} ${format_number(self.value)}"


@dataclass(frozen=True)
class ToolUsage:
    """A tool invocation reported by the analysis model."""

    name: str
    input: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Opportunity:
    """Verdict returned by the analysis service."""

    kind: OpportunityKind
    probability: float  # 0 to 100
    reasoning: str = ""
    entry: Optional[float] = None
    stop_loss: Optional[float] = None
    targets: tuple[float, ...] = ()
    risk_reward: Optional[float] = None
    time_validity: Optional[str] = None
    watch_conditions: tuple[WatchCondition, ...] = ()
    tools_used: tuple[ToolUsage, ...] = ()

    @property
    def is_directional(self) -> bool:
        return self.kind in ("LONG", "SHORT")

    @classmethod
    def from_payload(
        cls, payload: dict[str, Any], tools_used: tuple[ToolUsage, ...] = ()
    ) -> Opportunity:
        """Build an Opportunity from the camelCase JSON the model returns.

        Raises ValueError when the verdict kind, probability, targets or
        watch conditions are unusable.
        Watch conditions with an unknown trigger are dropped, not fatal.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

        kind = str(payload.get("opportunity", "")).upper()
        if kind not in OPPORTUNITY_KINDS:
            raise ValueError(f"Unknown opportunity kind: {payload.get('opportunity')!r}")

        probability = _to_float(payload.get("probability"))
        if probability is None:
            raise ValueError(f"Missing or non-numeric probability: {payload.get('probability')!r}")

        validity = payload.get("timeValidity")
        if validity not in TIME_VALIDITIES:
            validity = None

        return cls(
            kind=kind,  # type: ignore[arg-type]
            probability=probability,
            reasoning=str(payload.get("reasoning", "") or ""),
            entry=_to_float(payload.get("entry")),
            stop_loss=_to_float(payload.get("stopLoss")),
            targets=_parse_targets(payload.get("targets")),
            risk_reward=_to_float(payload.get("riskReward")),
            time_validity=validity,
            watch_conditions=_parse_conditions(payload.get("watchConditions")),
            tools_used=tools_used,
        )


@dataclass
class Signal:
    """One emitted opportunity plus its mutable watch state.

    Only the registry mutates ``followup_count``, ``watch_conditions`` and
    ``active``.
    """

    id: str
    symbol: str
    opportunity: Opportunity
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
    followup_count: int = 0
    watch_conditions: tuple[WatchCondition, ...] = ()
    active: bool = True


def format_number(value: float) -> str:
    """Render 95.0 as ``95`` and 95.5 as ``95.5``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.8f}".rstrip("0").rstrip(".")


def _parse_targets(raw: Any) -> tuple[float, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"targets must be a list, got {type(raw).__name__}")
    return tuple(t for t in (_to_float(x) for x in raw) if t is not None)


def _parse_conditions(raw: Any) -> tuple[WatchCondition, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"watchConditions must be a list, got {type(raw).__name__}")

    conditions: list[WatchCondition] = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError(f"Malformed watch condition: {item!r}")
        trigger = item.get("trigger")
        if trigger not in TRIGGER_KINDS:
            logger.warning("Dropping watch condition with unknown trigger %r", trigger)
            continue
        value = _to_float(item.get("value"))
        if value is None:
            raise ValueError(f"Watch condition {trigger} has no numeric value")
        conditions.append(
            WatchCondition(trigger=trigger, value=value, consequence=str(item.get("then", "") or ""))
        )
    return tuple(conditions)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
