"""
memory/normalizer.py
Author: Yang
Description: Canonical storage key for a setup label.
             "bull flag", "Bull Flag" and " BULL FLAG " all become "Bull Flag".
"""

from memory.errors import InvalidInput


def normalize_setup_type(raw: str) -> str:
    """
    Trim, then title-case each space-separated word.
    Punctuation is kept and runs of spaces are not collapsed.
    """
    if not isinstance(raw, str):
        raise InvalidInput(f"setup type must be a string, got {type(raw).__name__}")
    words = raw.strip().split(" ")
    return " ".join(w[:1].title() + w[1:].lower() for w in words)
