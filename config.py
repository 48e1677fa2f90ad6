"""
config.py
Author: Yang
Project: Chart Setup Memory Agent
Description: Centralised configuration — environment variables, thresholds, constants.
             All tuneable parameters live here; nothing else should call os.getenv directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ── API credentials ────────────────────────────────────────────────────────────
OPENAI_API_KEY      = os.getenv("OPENAI_API_KEY", "")
GEMINI_API_KEY      = os.getenv("GEMINI_API_KEY", "")
ANTHROPIC_API_KEY   = os.getenv("ANTHROPIC_API_KEY", "")

# ── Vision model defaults ──────────────────────────────────────────────────────
# Stored settings (tools/settings_store.py) override these per user.
AI_PROVIDER     = os.getenv("AI_PROVIDER", "openai")
AI_MODEL        = os.getenv("AI_MODEL", "gpt-4o")
AI_MAX_TOKENS   = int(os.getenv("AI_MAX_TOKENS", "1000"))
AI_TEMPERATURE  = float(os.getenv("AI_TEMPERATURE", "0.7"))
HTTP_TIMEOUT    = int(os.getenv("HTTP_TIMEOUT", "60"))

MAX_TOKENS_MIN  = 100
MAX_TOKENS_MAX  = 4000

PROVIDER_API_KEYS: dict[str, str] = {
    "openai":    OPENAI_API_KEY,
    "gemini":    GEMINI_API_KEY,
    "anthropic": ANTHROPIC_API_KEY,
}

# ── Chart defaults ─────────────────────────────────────────────────────────────
DEFAULT_ASSET     = os.getenv("DEFAULT_ASSET", "BTC/USD")
DEFAULT_TIMEFRAME = os.getenv("DEFAULT_TIMEFRAME", "1H")

# ── Storage ────────────────────────────────────────────────────────────────────
STORE_BACKEND     = os.getenv("STORE_BACKEND", "chroma")     # chroma | memory
CHROMA_PATH       = os.getenv("CHROMA_PATH", "./chroma_db")
CHROMA_COLLECTION = "setup_memory"
STATS_KEY         = "tradingStats"
SETTINGS_KEY      = "settings"

# ── Paths ─────────────────────────────────────────────────────────────────────
JOURNAL_FILE  = os.getenv("JOURNAL_FILE", "MEMORY.md")
LOG_FILE      = os.getenv("LOG_FILE", "agent.log")
