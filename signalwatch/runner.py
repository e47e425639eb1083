"""One-shot analysis runner.

Fetches a snapshot per symbol, runs a single analysis and prints the
rendered verdict together with the acceptance decision. Nothing is stored
and no cooldown applies; handy for checking credentials and prompts.

Usage:
    python -m signalwatch.runner BTCUSD-PERP
    python -m signalwatch.runner --source yfinance BTC-USD ETH-USD
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from dotenv import load_dotenv

from .analysis.claude_analyzer import ClaudeAnalyzer
from .config import DATA_SOURCES, MonitorConfig
from .data_collectors import build_data_source
from .data_collectors.base import DataSource
from .errors import AnalysisError, ConfigError, FetchError
from .notifications.formatter import format_opportunity, strip_tags
from .trigger_controller import Analyzer, build_trigger_reason, evaluate_acceptance

logger = logging.getLogger(__name__)


def analyze(
    symbol: str,
    data_source: DataSource,
    analyzer: Analyzer,
    config: MonitorConfig,
) -> str:
    """Snapshot + analysis for one symbol, rendered as plain text."""
    snapshot = data_source.snapshot(symbol)
    reason = build_trigger_reason(snapshot, config) or "Manual analysis request"
    opportunity = analyzer.analyze(symbol, snapshot.price, reason, None)
    if opportunity is None:
        return f"{symbol} @ {snapshot.price}: no opportunity"

    verdict = evaluate_acceptance(opportunity, config)
    status = "ACCEPTED" if verdict is None else f"REJECTED ({verdict})"
    return (
        f"{symbol} @ {snapshot.price} [{reason}]\n"
        f"{strip_tags(format_opportunity(symbol, opportunity))}\n"
        f"Status: {status}"
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run a single analysis for one or more symbols"
    )
    parser.add_argument(
        "symbols",
        nargs="+",
        help="One or more instrument symbols (e.g. BTCUSD-PERP)",
    )
    parser.add_argument(
        "--source", choices=DATA_SOURCES, default=None,
        help="Market data source (default: DATA_SOURCE or cryptocom)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()
    try:
        config = MonitorConfig.from_env()
    except ConfigError as exc:
        parser.error(str(exc))
    if args.source:
        config = dataclasses.replace(config, data_source=args.source)

    data_source = build_data_source(config.data_source)
    analyzer = ClaudeAnalyzer(
        api_key=config.anthropic_api_key,
        model=config.analysis_model,
        min_probability=config.min_probability,
        min_risk_reward=config.min_risk_reward,
        timeout=config.call_timeout,
    )

    failures = 0
    for symbol in args.symbols:
        try:
            report = analyze(symbol.upper(), data_source, analyzer, config)
        except (FetchError, AnalysisError) as exc:
            logger.error("%s: %s", symbol, exc)
            failures += 1
            continue
        sys.stdout.write(report)
        sys.stdout.write("\n\n" + "=" * 72 + "\n\n")

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
