"""
memory/mistakes.py
Author: Yang
Description: Keyword extraction of recurring mistakes from loss notes.
             Keeps a bounded, recency-ordered list per setup.
"""

import re

MAX_MISTAKES = 5

# Order matters: labels are appended in table order for a single note.
MISTAKE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"enter(?:ed)?\s+too\s+early", re.I),     "Entered too early"),
    (re.compile(r"enter(?:ed)?\s+too\s+late", re.I),      "Entered too late"),
    (re.compile(r"stop\s+(?:loss\s+)?too\s+tight", re.I), "Stop loss too tight"),
    (re.compile(r"stop\s+(?:loss\s+)?too\s+wide", re.I),  "Stop loss too wide"),
    (re.compile(r"miss(?:ed)?\s+confirmation", re.I),     "Missed confirmation"),
    (re.compile(r"fomo", re.I),                           "FOMO entry"),
    (re.compile(r"revenge\s+trad", re.I),                 "Revenge trading"),
    (re.compile(r"over\s?lever", re.I),                   "Over-leveraged"),
    (re.compile(r"wrong\s+direction", re.I),              "Wrong direction"),
    (re.compile(r"against\s+trend", re.I),                "Traded against trend"),
]


def extract_mistakes(note: str) -> list[str]:
    """Return every mistake label whose pattern occurs in *note*, in table order."""
    if not note:
        return []
    return [label for pattern, label in MISTAKE_PATTERNS if pattern.search(note)]


def update_common_mistakes(record: dict, note: str) -> None:
    """
    Fold mistakes found in *note* into record["commonMistakes"] in place.
    Oldest label is evicted once the list grows past MAX_MISTAKES.
    """
    mistakes = record.setdefault("commonMistakes", [])
    for label in extract_mistakes(note):
        if label in mistakes:
            continue
        mistakes.append(label)
        if len(mistakes) > MAX_MISTAKES:
            mistakes.pop(0)
