"""
pipeline/step1_load_chart.py
Author: Yang
Description: Load a chart screenshot from disk and base64-encode it for the
             vision model.  Stands in for live screen capture.
"""

import base64
import logging
import os
from datetime import datetime, timezone

from memory.errors import InvalidInput

logger = logging.getLogger(__name__)


def load_chart(path: str) -> dict:
    """
    Read the image at *path*.

    Returns:
        {base64: str, source_title: str, captured_at: ISO-8601 str}
    """
    if not path or not os.path.isfile(path):
        raise InvalidInput(f"chart image not found: {path}")

    with open(path, "rb") as f:
        data = f.read()
    if not data:
        raise InvalidInput(f"chart image is empty: {path}")

    logger.info("Step 1: loaded chart %s (%d bytes)", path, len(data))
    return {
        "base64":       base64.b64encode(data).decode("ascii"),
        "source_title": os.path.basename(path),
        "captured_at":  datetime.now(timezone.utc).isoformat(),
    }
