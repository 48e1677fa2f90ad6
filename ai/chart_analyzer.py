"""
ai/chart_analyzer.py
Author: Yang
Description: Vision-model chart classifier.
             Input: base64 PNG chart + asset/timeframe + trading memory summary.
             Output: AnalysisResult with setup type, analysis text and optional warning.
"""

import logging
from typing import Optional

from ai.base import VisionAPIError, call_vision
from ai.prompt import build_prompt
from ai.response_parser import parse_response
from memory.records import AnalysisResult

logger = logging.getLogger(__name__)


def analyze_chart(base64_image: str, asset: str, timeframe: str,
                  trading_memory: Optional[dict], settings: dict,
                  source_title: Optional[str] = None) -> AnalysisResult:
    """
    Ask the configured vision model to classify and analyse one chart.

    Args:
        base64_image:   PNG bytes, base64-encoded.
        asset:          Symbol shown on the chart, e.g. "BTC/USD".
        timeframe:      Chart interval, e.g. "1H".
        trading_memory: Summary from TradingMemory.get_summary().
        settings:       SettingsStore.get_config() output.
        source_title:   Where the chart came from (file name, tab title).

    Raises:
        VisionAPIError on a missing key or a failed provider call.
    """
    provider = settings.get("provider", "openai")
    if not settings.get("apiKey"):
        raise VisionAPIError(f"{provider} API key not configured")

    prompt = build_prompt(asset, timeframe, trading_memory, source_title)
    try:
        raw = call_vision(
            provider     = provider,
            api_key      = settings["apiKey"],
            model        = settings.get("model"),
            prompt       = prompt,
            base64_image = base64_image,
            max_tokens   = settings.get("maxTokens", 1000),
            temperature  = settings.get("temperature", 0.7),
        )
    except VisionAPIError as e:
        logger.error("analyze_chart(%s %s) API error: %s", asset, timeframe, e)
        raise

    result = parse_response(raw, trading_memory)
    logger.info("Chart analysis %s %s: setup=%s warning=%s",
                asset, timeframe, result["setupType"], bool(result["warning"]))
    return result
