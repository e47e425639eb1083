"""Runtime configuration for the signal monitor.

Values come from environment variables (optionally loaded from a ``.env``
file by the CLI entry points) and can be overridden by command-line flags:

    SIGNALWATCH_SYMBOLS=BTCUSD-PERP,ETHUSD-PERP
    CHECK_INTERVAL_SECONDS=30
    MIN_PROBABILITY=65
    MIN_RISK_REWARD=2.5
    COOLDOWN_MINUTES=5
    MAX_FOLLOWUPS_PER_SIGNAL=3
    PREFILTER_MIN_VOLATILITY=0.015
    PREFILTER_MIN_VOLUME_SPIKE=2.0

    ANTHROPIC_API_KEY=...
    TELEGRAM_BOT_TOKEN=...
    TELEGRAM_CHAT_ID=...
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta

from .errors import ConfigError

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DATA_SOURCES = ("cryptocom", "yfinance")


@dataclass(frozen=True)
class MonitorConfig:
    """Thresholds and collaborator settings consumed by the monitor."""

    symbols: tuple[str, ...] = ("BTCUSD-PERP",)
    check_interval_seconds: float = 30.0
    min_probability: float = 65.0
    min_risk_reward: float = 2.5
    cooldown_minutes: float = 5.0
    max_followups_per_signal: int = 3
    volatility_threshold: float = 0.015  # 1.5% high/low range
    volume_spike_threshold: float = 2.0  # 2x average
    call_timeout_seconds: float = 60.0  # 0 disables the deadline
    max_concurrency: int = 4
    data_source: str = "cryptocom"
    analysis_model: str = DEFAULT_MODEL
    anthropic_api_key: str = field(default="", repr=False)
    telegram_bot_token: str = field(default="", repr=False)
    telegram_chat_id: str = ""

    def __post_init__(self) -> None:
        if not self.symbols:
            raise ConfigError("At least one symbol is required")
        _check_range("check_interval_seconds", self.check_interval_seconds, low=10)
        _check_range("min_probability", self.min_probability, low=0, high=100)
        _check_range("min_risk_reward", self.min_risk_reward, low=1)
        _check_range("max_followups_per_signal", self.max_followups_per_signal, low=1, high=5)
        _check_range("volatility_threshold", self.volatility_threshold, low=0, high=1)
        _check_range("volume_spike_threshold", self.volume_spike_threshold, low=1)
        _check_range("call_timeout_seconds", self.call_timeout_seconds, low=0)
        _check_range("max_concurrency", self.max_concurrency, low=1)
        if self.cooldown_minutes <= 0:
            raise ConfigError("cooldown_minutes must be positive")
        if self.data_source not in DATA_SOURCES:
            raise ConfigError(
                f"data_source must be one of {', '.join(DATA_SOURCES)}, got {self.data_source!r}"
            )

    @property
    def cooldown_window(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)

    @property
    def call_timeout(self) -> float | None:
        return self.call_timeout_seconds or None

    @property
    def has_telegram(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MonitorConfig:
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            symbols=parse_symbols(env.get("SIGNALWATCH_SYMBOLS", "")) or defaults.symbols,
            check_interval_seconds=_env_float(
                env, "CHECK_INTERVAL_SECONDS", defaults.check_interval_seconds
            ),
            min_probability=_env_float(env, "MIN_PROBABILITY", defaults.min_probability),
            min_risk_reward=_env_float(env, "MIN_RISK_REWARD", defaults.min_risk_reward),
            cooldown_minutes=_env_float(env, "COOLDOWN_MINUTES", defaults.cooldown_minutes),
            max_followups_per_signal=_env_int(
                env, "MAX_FOLLOWUPS_PER_SIGNAL", defaults.max_followups_per_signal
            ),
            volatility_threshold=_env_float(
                env, "PREFILTER_MIN_VOLATILITY", defaults.volatility_threshold
            ),
            volume_spike_threshold=_env_float(
                env, "PREFILTER_MIN_VOLUME_SPIKE", defaults.volume_spike_threshold
            ),
            call_timeout_seconds=_env_float(
                env, "CALL_TIMEOUT_SECONDS", defaults.call_timeout_seconds
            ),
            max_concurrency=_env_int(env, "MAX_CONCURRENCY", defaults.max_concurrency),
            data_source=env.get("DATA_SOURCE", defaults.data_source).strip().lower(),
            analysis_model=env.get("ANALYSIS_MODEL", "").strip() or defaults.analysis_model,
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
            telegram_bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
            telegram_chat_id=env.get("TELEGRAM_CHAT_ID", ""),
        )


def parse_symbols(raw: str) -> tuple[str, ...]:
    """Split a comma-separated symbol list, dropping blanks and repeats."""
    return tuple(dict.fromkeys(s.strip().upper() for s in raw.split(",") if s.strip()))


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _check_range(
    name: str, value: float, low: float | None = None, high: float | None = None
) -> None:
    if low is not None and value < low:
        raise ConfigError(f"{name} must be >= {low}, got {value}")
    if high is not None and value > high:
        raise ConfigError(f"{name} must be <= {high}, got {value}")
