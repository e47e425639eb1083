"""Opportunity analysis backed by the Anthropic Messages API.

The model is asked to investigate the market with the declared tools and
reply with a single JSON verdict. Tool invocations it reports are returned
on the Opportunity as ``tools_used`` diagnostics.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

import anthropic

from ..config import DEFAULT_MODEL
from ..errors import AnalysisError
from ..signals.signal_types import Opportunity, ToolUsage

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

_MARKET_TOOLS: list[dict[str, Any]] = [
    {
        "name": "get_ticker",
        "description": "Get latest price and volume for a crypto symbol",
        "input_schema": {
            "type": "object",
            "properties": {
                "instrument_name": {
                    "type": "string",
                    "description": "Symbol name (e.g. BTCUSD-PERP)",
                },
            },
            "required": ["instrument_name"],
        },
    },
    {
        "name": "get_orderbook",
        "description": "Get current bids and asks depth",
        "input_schema": {
            "type": "object",
            "properties": {
                "instrument_name": {"type": "string"},
                "depth": {"type": "number", "description": "Number of levels (default 10)"},
            },
            "required": ["instrument_name"],
        },
    },
    {
        "name": "get_candles",
        "description": "Get historical price candles (OHLCV)",
        "input_schema": {
            "type": "object",
            "properties": {
                "instrument_name": {"type": "string"},
                "timeframe": {"type": "string", "description": "1m, 5m, 15m, 1h, 4h, 1d"},
                "count": {"type": "number", "description": "Number of candles"},
            },
            "required": ["instrument_name"],
        },
    },
]


def build_prompt(
    symbol: str,
    price: float,
    reason: str,
    context: Optional[str] = None,
    min_probability: float = 65,
    min_risk_reward: float = 2.5,
) -> str:
    """Render the analysis prompt for one symbol."""
    followup = f"FOLLOW-UP CONTEXT:\n{context}\n\n" if context else ""
    return f"""You are an elite crypto trader analyzing {symbol}.

{followup}CURRENT SITUATION:
- Price: ${price}
- Trigger: {reason}

USE YOUR TOOLS TO INVESTIGATE:
- get_ticker: current market data
- get_orderbook: depth (walls, imbalance)
- get_candles: multi-timeframe candles (1d, 4h, 1h, 15m)

ANALYZE QUICKLY:
- Order flow (buying vs selling pressure)
- Technical structure (trend, support/resistance)
- Leverage positioning (funding rate, orderbook imbalance)

RESPOND WITH JSON ONLY:

{{
  "opportunity": "LONG" | "SHORT" | "WAIT" | "WATCH",
  "probability": <0-100>,
  "reasoning": "<2-3 sentences citing specific data points>",

  // If LONG or SHORT:
  "entry": <price>,
  "stopLoss": <price>,
  "targets": [<tp1>, <tp2>],
  "riskReward": <ratio>,
  "timeValidity": "4h" | "12h" | "24h",

  // If WATCH:
  "watchConditions": [
    {{
      "trigger": "price_below" | "price_above" | "volume_spike",
      "value": <number>,
      "then": "<what opportunity emerges>"
    }}
  ]
}}

CRITICAL RULES:
- Use the tools before responding (don't guess data)
- Only LONG/SHORT if probability >= {min_probability:g}% AND R:R >= {min_risk_reward:g}
- If uncertain, return WATCH with specific price triggers
- Reference actual data in reasoning (e.g. "1H RSI at 28")"""


def extract_tool_usage(content: list[Any]) -> tuple[ToolUsage, ...]:
    """Collect tool_use blocks from a Messages API response."""
    return tuple(
        ToolUsage(name=getattr(block, "name", ""), input=dict(getattr(block, "input", None) or {}))
        for block in content
        if getattr(block, "type", None) == "tool_use"
    )


def parse_response(content: list[Any]) -> Opportunity | None:
    """Turn response content blocks into an Opportunity.

    Returns None when the model produced no text or no JSON object.
    Raises ValueError when the JSON is present but invalid.
    """
    tools_used = extract_tool_usage(content)
    text = next(
        (getattr(b, "text", "") for b in content if getattr(b, "type", None) == "text"),
        None,
    )
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        return None
    payload = json.loads(match.group(0))
    return Opportunity.from_payload(payload, tools_used=tools_used)


class ClaudeAnalyzer:
    """Analysis service: (symbol, price, reason, context) -> Opportunity | None."""

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        min_probability: float = 65,
        min_risk_reward: float = 2.5,
        client: anthropic.Anthropic | None = None,
        timeout: float | None = None,
    ) -> None:
        self.model = model
        self.min_probability = min_probability
        self.min_risk_reward = min_risk_reward
        self.timeout = timeout
        if client is None:
            kwargs: dict[str, Any] = {"api_key": api_key or None}
            if timeout:
                kwargs["timeout"] = timeout
            client = anthropic.Anthropic(**kwargs)
        self.client = client

    def analyze(
        self,
        symbol: str,
        price: float,
        reason: str,
        context: Optional[str] = None,
    ) -> Opportunity | None:
        prompt = build_prompt(
            symbol, price, reason, context,
            min_probability=self.min_probability,
            min_risk_reward=self.min_risk_reward,
        )
        logger.info("Requesting analysis for %s at %s (%s)", symbol, price, reason)
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=4000,
                temperature=0.2,
                messages=[{"role": "user", "content": prompt}],
                tools=_MARKET_TOOLS,
            )
        except anthropic.APIError as exc:
            raise AnalysisError(f"Analysis request failed for {symbol}: {exc}", symbol=symbol) from exc

        try:
            opportunity = parse_response(list(response.content or []))
        except ValueError as exc:
            raise AnalysisError(f"Unparseable analysis for {symbol}: {exc}", symbol=symbol) from exc

        if opportunity is None:
            logger.info("Analysis for %s returned no verdict", symbol)
        else:
            logger.info(
                "Analysis for %s: %s %.0f%% (%d tools used)",
                symbol, opportunity.kind, opportunity.probability, len(opportunity.tools_used),
            )
        return opportunity
