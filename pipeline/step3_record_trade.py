"""
pipeline/step3_record_trade.py
Author: Yang
Description: Persist a trade outcome to the stats store, then append a
             human-readable entry to the MEMORY.md journal.
"""

import logging

from config import JOURNAL_FILE
from memory.normalizer import normalize_setup_type
from memory.records import SetupRecord
from tools.journal import append_trade_to_journal

logger = logging.getLogger(__name__)


def record_trade(memory, setup_type: str, outcome: str, note: str = "",
                 journal_path: str = JOURNAL_FILE) -> SetupRecord:
    """
    Log one outcome.  PersistenceError / InvalidInput from the stats store
    propagate; a failed journal append is only logged.

    Args:
        memory:     TradingMemory
        setup_type: Label from the analysis (any casing).
        outcome:    "win", "loss" or "be".
        note:       Optional trader note.

    Returns:
        Updated SetupRecord.
    """
    record = memory.log_trade(setup_type, outcome, note)
    key    = normalize_setup_type(setup_type)
    append_trade_to_journal(key, record["trades"][-1], record, path=journal_path)

    logger.info("Step 3 %s: %dW / %dL / %dBE",
                key, record["wins"], record["losses"], record["breakEven"])
    return record
