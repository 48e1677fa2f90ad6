"""
memory/stats_store.py
Author: Yang
Description: Per-setup trading statistics over an injected key-value store.
             Whole-mapping reads and writes only — no per-key patches.

Failure policy:
    reads  — absorbed, logged, treated as empty history
    writes — raised as PersistenceError so a logged trade is never lost silently
"""

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from config import STATS_KEY
from memory.errors import FormatError, InvalidInput, PersistenceError
from memory.mistakes import update_common_mistakes
from memory.normalizer import normalize_setup_type
from memory.records import SetupRecord, new_setup_record
from memory.warning import win_rate

logger = logging.getLogger(__name__)

_OUTCOME_ALIASES = {
    "win":        "win",
    "loss":       "loss",
    "be":         "be",
    "breakeven":  "be",
    "break_even": "be",
}

_COUNTER_FIELD = {"win": "wins", "loss": "losses", "be": "breakEven"}


def canonical_outcome(outcome: str) -> str:
    """Map "win" / "loss" / "be" (or a break-even alias) to its stored token."""
    if not isinstance(outcome, str):
        raise InvalidInput(f"outcome must be a string, got {type(outcome).__name__}")
    token = _OUTCOME_ALIASES.get(outcome.strip().lower())
    if token is None:
        raise InvalidInput(f"unknown outcome: {outcome!r} (expected win, loss or be)")
    return token


class TradingMemory:
    """
    Owner of the StatsMapping.  *store* needs read(key) and write(key, value);
    see tools/kv_store.py.  Callers must serialize log_trade calls — two
    overlapping read-modify-write cycles can lose an update.
    """

    def __init__(self, store, key: str = STATS_KEY):
        self.store = store
        self.key   = key

    # ── Raw access ────────────────────────────────────────────────────────────

    def init(self) -> None:
        """Seed an empty mapping on first run."""
        try:
            if self.store.read(self.key) is None:
                self.store.write(self.key, {})
        except Exception as e:
            logger.error("Failed to initialise trading memory: %s", e)

    def get_all(self) -> dict:
        try:
            stats = self.store.read(self.key)
        except Exception as e:
            logger.error("Failed to read stats: %s", e)
            return {}
        if stats is None:
            return {}
        if not isinstance(stats, dict):
            logger.warning("Stored stats is %s, not a mapping — ignoring",
                           type(stats).__name__)
            return {}
        return stats

    def save(self, stats: dict) -> None:
        try:
            ok = self.store.write(self.key, stats)
        except Exception as e:
            logger.error("Failed to save stats: %s", e)
            raise PersistenceError(f"could not save trading stats: {e}") from e
        if ok is False:
            logger.error("Failed to save stats: store rejected write")
            raise PersistenceError("could not save trading stats: store rejected write")

    def clear_all(self) -> None:
        """Drop every setup record. Use with caution."""
        self.save({})
        logger.info("All trading stats cleared")

    # ── Trade logging ─────────────────────────────────────────────────────────

    def log_trade(self, setup_type: str, outcome: str, note: str = "",
                  timestamp: Optional[str] = None) -> SetupRecord:
        """
        Record one trade outcome under the normalized setup key.

        Args:
            setup_type: Classification label, any casing.
            outcome:    "win", "loss" or "be" (break-even aliases accepted).
            note:       Optional free-text note; loss notes feed commonMistakes.
            timestamp:  ISO-8601 string; defaults to now (UTC).

        Returns:
            The updated SetupRecord.
        """
        key = normalize_setup_type(setup_type)
        if not key:
            raise InvalidInput("setup type must not be blank")
        token = canonical_outcome(outcome)
        if note is None:
            note = ""
        if not isinstance(note, str):
            raise InvalidInput(f"note must be a string, got {type(note).__name__}")

        stats  = self.get_all()
        if not isinstance(stats.get(key, {}), dict):
            logger.warning("Replacing malformed record %r (%s)",
                           key, type(stats[key]).__name__)
            stats[key] = new_setup_record()
        record = stats.setdefault(key, new_setup_record())
        record.setdefault("trades", [])
        record.setdefault("commonMistakes", [])

        field = _COUNTER_FIELD[token]
        record[field] = record.get(field, 0) + 1
        record["trades"].append({
            "outcome":   token,
            "note":      note,
            "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        })

        if token == "loss" and note:
            update_common_mistakes(record, note)

        self.save(stats)
        logger.info("Trade logged: %s - %s", key, token)
        return record

    # ── Queries ───────────────────────────────────────────────────────────────

    def _records(self):
        """Yield (setup, record) pairs, skipping values that are not objects."""
        for setup, stats in self.get_all().items():
            if not isinstance(stats, dict):
                logger.warning("Skipping malformed record %r (%s)",
                               setup, type(stats).__name__)
                continue
            yield setup, stats

    def get_stats_for_setup(self, setup_type: str) -> Optional[SetupRecord]:
        return self.get_all().get(normalize_setup_type(setup_type))

    def get_summary(self) -> dict:
        """Counts and mistakes per setup, without trade history (prompt context)."""
        summary = {}
        for setup, stats in self._records():
            summary[setup] = {
                "wins":           stats.get("wins", 0),
                "losses":         stats.get("losses", 0),
                "breakEven":      stats.get("breakEven", 0),
                "commonMistakes": list(stats.get("commonMistakes", [])),
            }
        return summary

    def get_display_summary(self) -> dict:
        """Totals plus a per-setup breakdown sorted by decided trades, busiest first."""
        summary = {
            "totalTrades":    0,
            "totalWins":      0,
            "totalLosses":    0,
            "totalBE":        0,
            "overallWinRate": 0.0,
            "setupBreakdown": [],
        }

        for setup, stats in self._records():
            wins   = stats.get("wins", 0)
            losses = stats.get("losses", 0)
            be     = stats.get("breakEven", 0)

            summary["totalTrades"] += wins + losses + be
            summary["totalWins"]   += wins
            summary["totalLosses"] += losses
            summary["totalBE"]     += be
            summary["setupBreakdown"].append({
                "setupType":   setup,
                "wins":        wins,
                "losses":      losses,
                "breakEven":   be,
                "winRate":     round(win_rate(wins, losses), 1),
                "totalTrades": wins + losses,
            })

        summary["overallWinRate"] = round(
            win_rate(summary["totalWins"], summary["totalLosses"]), 1)
        summary["setupBreakdown"].sort(key=lambda s: s["totalTrades"], reverse=True)
        return summary

    # ── Backup ────────────────────────────────────────────────────────────────

    def export_stats(self) -> str:
        return json.dumps(self.get_all(), indent=2, ensure_ascii=False)

    def import_stats(self, json_string: str) -> None:
        """Replace all stats with *json_string*. Stored state is untouched on FormatError."""
        try:
            stats = json.loads(json_string)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error("Failed to import stats: %s", e)
            raise FormatError("Invalid JSON format") from e
        if not isinstance(stats, dict):
            logger.error("Failed to import stats: top level is %s", type(stats).__name__)
            raise FormatError("Invalid JSON format: expected an object of setups")
        bad = [setup for setup, record in stats.items() if not isinstance(record, dict)]
        if bad:
            logger.error("Failed to import stats: non-object records %s", bad)
            raise FormatError(
                f"Invalid stats format: setup records must be objects ({', '.join(bad)})")

        self.save(copy.deepcopy(stats))
        logger.info("Stats imported successfully (%d setups)", len(stats))
