"""
tools/journal.py
Author: Yang
Description: Human-readable, append-only trade journal (MEMORY.md).
             Best-effort — the stats store stays the source of truth.
"""

import logging

from config import JOURNAL_FILE
from memory.warning import win_rate

logger = logging.getLogger(__name__)

_OUTCOME_LABELS = {"win": "WIN", "loss": "LOSS", "be": "BREAK-EVEN"}


def format_journal_entry(setup_type: str, entry: dict, record: dict) -> str:
    wins   = record.get("wins", 0)
    losses = record.get("losses", 0)
    be     = record.get("breakEven", 0)
    lines  = [
        "\n---\n",
        f"## {setup_type} | {entry.get('timestamp', '?')}\n",
        f"- Outcome: {_OUTCOME_LABELS.get(entry.get('outcome'), entry.get('outcome', '?'))}\n",
        f"- Record: {wins}W / {losses}L / {be}BE | "
        f"Win rate: {win_rate(wins, losses):.1f}%\n",
    ]
    if entry.get("note"):
        lines.append(f"- Note: {entry['note']}\n")
    if record.get("commonMistakes"):
        lines.append(f"- Common mistakes: {', '.join(record['commonMistakes'])}\n")
    return "".join(lines)


def append_trade_to_journal(setup_type: str, entry: dict, record: dict,
                            path: str = JOURNAL_FILE) -> bool:
    """
    Append one formatted trade + running record to the journal file.
    Returns True on success.
    """
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(format_journal_entry(setup_type, entry, record))
        logger.info("Journal appended: %s", setup_type)
        return True
    except OSError as e:
        logger.error("Journal write failed: %s", e)
        return False
