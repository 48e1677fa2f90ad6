"""
ai/prompt.py
Author: Yang
Description: Chart analysis prompt, with the trader's per-setup history
             appended so the model can flag setups they keep losing on.
"""

from typing import Optional

from memory.warning import POOR_WIN_RATE_PCT, win_rate

_HEADER = """You are a technical analysis expert. Analyse this chart and answer BRIEFLY.

**Context:**
- Asset: {asset}
- Timeframe: {timeframe}
- Source: {source}

**REQUIREMENTS:**
1. First line: "SETUP_TYPE: [pattern classification]" (e.g. "Bull Flag", "Support Bounce")

2. Answer these in 3-5 sentences:

📊 **ACTION:** BUY, SELL or NO TRADE?

📍 **TRADE ZONES:**
   - Where to enter?
   - Where to place the stop loss?
   - Profit target?

⚖️ **RISK/REWARD:** What is the R/R ratio? (e.g. 1:2, 1:3)
"""

_FOOTER = """
**NOTES:**
- For EDUCATIONAL purposes only, NOT financial advice
- Keep it SHORT (3-5 sentences)
- Focus on: BUY/SELL/NO TRADE? WHERE? STOP WHERE? R/R?

Analyse now."""


def format_memory_context(trading_memory: dict) -> str:
    lines = ["", "⚠️ **YOUR TRADING HISTORY:**"]
    for setup, stats in trading_memory.items():
        if not isinstance(stats, dict):
            continue
        wins   = stats.get("wins", 0)
        losses = stats.get("losses", 0)
        lines.append(f"- {setup}: {wins} wins / {losses} losses "
                     f"({win_rate(wins, losses):.1f}% win rate)")
        if stats.get("commonMistakes"):
            lines.append(f"  Common mistakes: {', '.join(stats['commonMistakes'])}")

    lines.append("")
    lines.append(f"**IMPORTANT:** If the current pattern resembles a setup the trader "
                 f"often loses on (win rate < {POOR_WIN_RATE_PCT:.0f}%), WARN CLEARLY:")
    lines.append('"⚠️ WARNING: You have a losing history with the [name] setup - '
                 '[X] wins / [Y] losses ([Z]% win rate). Be careful or skip this trade."')
    return "\n".join(lines) + "\n"


def build_prompt(asset: str, timeframe: str, trading_memory: Optional[dict] = None,
                 source_title: Optional[str] = None) -> str:
    prompt = _HEADER.format(asset=asset, timeframe=timeframe, source=source_title or "Chart")
    if trading_memory:
        prompt += format_memory_context(trading_memory)
    return prompt + _FOOTER
