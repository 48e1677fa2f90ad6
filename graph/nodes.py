"""
graph/nodes.py
Author: Yang
Description: LangGraph node functions and graph construction.
             Each node wraps one pipeline step and updates AnalysisState.
"""

import logging
from langgraph.graph import StateGraph, END

from ai.base import VisionAPIError
from graph.state import AnalysisState
from memory.errors import InvalidInput
from pipeline.step1_load_chart import load_chart
from pipeline.step2_analyze_chart import run_analysis

logger = logging.getLogger(__name__)


# ── Graph routing helpers ──────────────────────────────────────────────────────

def _should_continue(state: AnalysisState) -> str:
    """Route to END if an abort_reason has been set, otherwise continue."""
    return END if state.get("abort_reason") else "continue"


# ── Graph builder ──────────────────────────────────────────────────────────────

def build_graph(memory, settings_store):
    """
    Construct the chart analysis graph: load_chart → analyze.
    *memory* and *settings_store* are bound into the node closures.
    """

    def node_load_chart(state: AnalysisState) -> AnalysisState:
        try:
            state["chart"] = load_chart(state["image_path"])
        except (InvalidInput, OSError) as e:
            state["abort_reason"] = f"Step 1: {e}"
        return state

    def node_analyze(state: AnalysisState) -> AnalysisState:
        try:
            state["analysis"] = run_analysis(
                memory, settings_store, state["chart"],
                asset=state["asset"], timeframe=state["timeframe"],
            )
        except VisionAPIError as e:
            state["abort_reason"] = f"Step 2: {e}"
        return state

    g = StateGraph(AnalysisState)
    g.add_node("load_chart", node_load_chart)
    g.add_node("analyze", node_analyze)

    g.set_entry_point("load_chart")
    g.add_conditional_edges(
        "load_chart",
        _should_continue,
        {"continue": "analyze", END: END},
    )
    g.add_edge("analyze", END)
    return g.compile()


def run_graph(memory, settings_store, image_path: str,
              asset: str, timeframe: str) -> AnalysisState:
    """Build and invoke the analysis graph. Returns the final state."""
    app = build_graph(memory, settings_store)
    initial: AnalysisState = {
        "image_path":   image_path,
        "asset":        asset,
        "timeframe":    timeframe,
        "chart":        {},
        "analysis":     {},
        "abort_reason": "",
    }
    final = app.invoke(initial)
    if final.get("abort_reason"):
        logger.info("Analysis aborted: %s", final["abort_reason"])
    return final
