"""
graph/state.py
Author: Yang
Description: LangGraph state definition shared across the analysis graph nodes.
             Each field corresponds to one pipeline step's input or output.
"""

from typing import TypedDict


class AnalysisState(TypedDict):
    # Inputs
    image_path:   str
    asset:        str
    timeframe:    str

    # Step 1
    chart:        dict   # {base64, source_title, captured_at}

    # Step 2
    analysis:     dict   # {setupType, fullAnalysis, warning, timestamp}

    # Global abort
    abort_reason: str
