"""Continuous market monitor.

Samples every watched symbol on a fixed interval, runs the trigger state
machine, and pushes events to Telegram (or the log when Telegram is not
configured). Ticks never overlap: the next tick is scheduled only after
the previous one has finished.

Usage:
    python -m signalwatch.continuous_monitor --symbols BTCUSD-PERP,ETHUSD-PERP
    python -m signalwatch.continuous_monitor --source yfinance --symbols BTC-USD --once
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import time

from dotenv import load_dotenv

from .analysis.claude_analyzer import ClaudeAnalyzer
from .config import DATA_SOURCES, MonitorConfig, parse_symbols
from .data_collectors import build_data_source
from .errors import ConfigError
from .notifications.events import Notifier
from .notifications.telegram_notifier import LoggingNotifier, TelegramNotifier
from .trigger_controller import TriggerController

logger = logging.getLogger(__name__)


def build_notifier(config: MonitorConfig) -> Notifier:
    if config.has_telegram:
        return TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
    logger.warning("Telegram not configured; notifications go to the log only")
    return LoggingNotifier()


def build_controller(config: MonitorConfig) -> TriggerController:
    """Wire the default collaborators for a config."""
    analyzer = ClaudeAnalyzer(
        api_key=config.anthropic_api_key,
        model=config.analysis_model,
        min_probability=config.min_probability,
        min_risk_reward=config.min_risk_reward,
        timeout=config.call_timeout,
    )
    return TriggerController(
        data_source=build_data_source(config.data_source),
        analyzer=analyzer,
        notifier=build_notifier(config),
        config=config,
    )


async def run_monitor(
    controller: TriggerController,
    symbols: list[str] | tuple[str, ...],
    interval_seconds: float,
    duration_minutes: float | None = None,
    max_ticks: int | None = None,
) -> int:
    """Run ticks until the duration or tick limit is reached. Returns ticks run."""
    symbols = list(symbols)
    logger.info(
        "Monitor started. Watching %s, tick every %.0fs, min probability %.0f%%, min R:R %.1f",
        ", ".join(symbols), interval_seconds,
        controller.config.min_probability, controller.config.min_risk_reward,
    )
    await controller.announce_startup(symbols)

    started = time.monotonic()
    deadline = started + duration_minutes * 60 if duration_minutes else None
    ticks = 0
    while True:
        tick_start = time.monotonic()
        await controller.run_tick(symbols)
        ticks += 1
        logger.debug("Tick %d finished in %.2fs", ticks, time.monotonic() - tick_start)

        if max_ticks is not None and ticks >= max_ticks:
            break
        if deadline is not None and time.monotonic() >= deadline:
            break
        delay = max(0.0, interval_seconds - (time.monotonic() - tick_start))
        await asyncio.sleep(delay)

    logger.info(
        "Monitor session complete after %d ticks; %d signals recorded",
        ticks, len(controller.registry),
    )
    return ticks


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Continuous market monitor with watch-condition follow-ups"
    )
    parser.add_argument(
        "--symbols", type=str, default="",
        help="Comma-separated symbols to watch (default: SIGNALWATCH_SYMBOLS)",
    )
    parser.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between ticks (default: CHECK_INTERVAL_SECONDS or 30)",
    )
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Total runtime in minutes (default: run forever)",
    )
    parser.add_argument(
        "--once", action="store_true",
        help="Run a single tick and exit",
    )
    parser.add_argument(
        "--source", choices=DATA_SOURCES, default=None,
        help="Market data source (default: DATA_SOURCE or cryptocom)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    return parser


def config_from_args(args: argparse.Namespace, base: MonitorConfig) -> MonitorConfig:
    """Apply CLI overrides on top of an environment-derived config."""
    overrides: dict = {}
    symbols = parse_symbols(args.symbols)
    if symbols:
        overrides["symbols"] = symbols
    if args.interval is not None:
        overrides["check_interval_seconds"] = args.interval
    if args.source:
        overrides["data_source"] = args.source
    return dataclasses.replace(base, **overrides) if overrides else base


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    load_dotenv()
    try:
        config = config_from_args(args, MonitorConfig.from_env())
    except ConfigError as exc:
        parser.error(str(exc))
    controller = build_controller(config)

    asyncio.run(run_monitor(
        controller,
        config.symbols,
        interval_seconds=config.check_interval_seconds,
        duration_minutes=args.duration,
        max_ticks=1 if args.once else None,
    ))


if __name__ == "__main__":
    main()
