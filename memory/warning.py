"""
memory/warning.py
Author: Yang
Description: Warn when a new classification fuzzy-matches a setup the trader
             historically loses on. Reads a stats snapshot, never writes it.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

MIN_DECIDED_TRADES = 3      # wins + losses needed before judging a setup
POOR_WIN_RATE_PCT  = 40.0   # strictly below this → warning

_NON_KEY_CHARS = re.compile(r"[^a-z0-9\s]")


def comparison_key(label: str) -> str:
    """Lowercase and drop everything outside [a-z0-9 whitespace]."""
    return _NON_KEY_CHARS.sub("", label.lower())


def win_rate(wins: int, losses: int) -> float:
    """Win percentage over decided trades; break-evens are excluded by the caller."""
    total = wins + losses
    return wins / total * 100 if total > 0 else 0.0


def evaluate_warning(candidate: Optional[str], history: Optional[dict]) -> Optional[str]:
    """
    Return a caution message if *candidate* matches a poor-performing setup.

    Matching is bidirectional substring containment on comparison keys, so
    "Bull Flag Breakout" matches a stored "Bull Flag" and vice versa. When
    several stored setups qualify, the last one visited wins.
    """
    if not candidate or candidate == "Unknown" or not history:
        return None

    key = comparison_key(candidate)
    if not key:
        return None

    warning = None
    for historical, stats in history.items():
        hist_key = comparison_key(historical)
        if not hist_key or (key not in hist_key and hist_key not in key):
            continue
        if not isinstance(stats, dict):
            logger.warning("Skipping malformed record %r (%s)",
                           historical, type(stats).__name__)
            continue

        wins   = stats.get("wins", 0)
        losses = stats.get("losses", 0)
        total  = wins + losses
        rate   = win_rate(wins, losses)

        if total >= MIN_DECIDED_TRADES and rate < POOR_WIN_RATE_PCT:
            warning = (
                f'You have a poor track record with "{historical}" setups: '
                f"{wins} wins vs {losses} losses ({rate:.1f}% win rate). "
                f"Consider extra caution or skipping this trade."
            )
            logger.info("Warning raised for %r via history %r (%.1f%%)",
                        candidate, historical, rate)
    return warning
