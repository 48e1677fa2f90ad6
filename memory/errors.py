"""
memory/errors.py
Author: Yang
Description: Error taxonomy for the setup memory engine.
"""


class SetupMemoryError(Exception):
    """Base class for all setup-memory failures."""


class InvalidInput(SetupMemoryError, ValueError):
    """Malformed argument — wrong type, blank label, unknown outcome."""


class PersistenceError(SetupMemoryError):
    """The key-value store rejected or failed a write."""


class FormatError(SetupMemoryError, ValueError):
    """Imported stats are not a well-formed JSON object."""
