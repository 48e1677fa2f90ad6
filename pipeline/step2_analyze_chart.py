"""
pipeline/step2_analyze_chart.py
Author: Yang
Description: Classify a loaded chart with the configured vision model,
             using the trader's setup history as prompt context and for warnings.
"""

import logging

from ai.chart_analyzer import analyze_chart
from memory.records import AnalysisResult

logger = logging.getLogger(__name__)


def run_analysis(memory, settings_store, chart: dict,
                 asset: str, timeframe: str) -> AnalysisResult:
    """
    Args:
        memory:         TradingMemory
        settings_store: SettingsStore
        chart:          load_chart() output.
        asset, timeframe: chart context for the prompt.
    """
    summary = memory.get_summary()
    result  = analyze_chart(
        base64_image   = chart["base64"],
        asset          = asset,
        timeframe      = timeframe,
        trading_memory = summary,
        settings       = settings_store.get_config(),
        source_title   = chart.get("source_title"),
    )
    if result["warning"]:
        logger.warning("Step 2 %s: %s", result["setupType"], result["warning"])
    else:
        logger.info("Step 2: setup=%s (history: %d setups)",
                    result["setupType"], len(summary))
    return result
