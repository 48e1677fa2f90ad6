"""
memory/records.py
Author: Yang
Description: Record shapes stored under the tradingStats key.
             Field names stay camelCase so exported JSON is portable.
"""

from typing import Optional, TypedDict


class TradeEntry(TypedDict):
    outcome:   str    # "win" | "loss" | "be"
    note:      str
    timestamp: str    # ISO-8601


class SetupRecord(TypedDict):
    wins:           int
    losses:         int
    breakEven:      int
    trades:         list    # [TradeEntry] — append-only, oldest first
    commonMistakes: list    # ≤ 5 distinct labels, newest last


class AnalysisResult(TypedDict):
    setupType:    str
    fullAnalysis: str
    warning:      Optional[str]
    timestamp:    str


def new_setup_record() -> SetupRecord:
    return {
        "wins":           0,
        "losses":         0,
        "breakEven":      0,
        "trades":         [],
        "commonMistakes": [],
    }
