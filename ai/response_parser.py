"""
ai/response_parser.py
Author: Yang
Description: Split a vision model reply into its SETUP_TYPE label and the
             remaining analysis, then check the label against trade history.
             Never raises — malformed replies degrade to "Unknown".
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from memory.records import AnalysisResult
from memory.warning import evaluate_warning

logger = logging.getLogger(__name__)

UNKNOWN_SETUP = "Unknown"

_SETUP_LINE   = re.compile(r"SETUP_TYPE:\s*([^\n]+)", re.I)
_SETUP_STRIP  = re.compile(r"SETUP_TYPE:\s*[^\n]+\n*", re.I)


def parse_response(response_text: Optional[str],
                   trading_memory: Optional[dict] = None) -> AnalysisResult:
    """
    Extract the first "SETUP_TYPE: <label>" line from *response_text*.

    Args:
        response_text:  Raw model reply.
        trading_memory: Stats mapping (or summary) keyed by setup label.

    Returns:
        {setupType, fullAnalysis, warning, timestamp}
    """
    text = response_text if isinstance(response_text, str) else ""

    setup_type    = UNKNOWN_SETUP
    full_analysis = text.strip()

    match = _SETUP_LINE.search(text)
    if match:
        full_analysis = _SETUP_STRIP.sub("", text, count=1).strip()
        if match.group(1).strip():
            setup_type = match.group(1).strip()
        else:
            logger.warning("Blank SETUP_TYPE value in response")
    else:
        logger.warning("No SETUP_TYPE line in response (%d chars)", len(text))

    return {
        "setupType":    setup_type,
        "fullAnalysis": full_analysis,
        "warning":      evaluate_warning(setup_type, trading_memory),
        "timestamp":    datetime.now(timezone.utc).isoformat(),
    }
