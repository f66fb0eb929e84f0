"""Sanitization utilities for spreadsheet-safe output."""

from typing import Optional

# Leading characters that make spreadsheet applications evaluate a cell.
# Merchant and note text comes straight from bank exports, so it is untrusted.
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def sanitize_for_csv(value: Optional[str]) -> Optional[str]:
    """Neutralise a text value before writing it to CSV or Excel.

    Values that begin with a formula-triggering character are prefixed
    with a single quote.

    Args:
        value: Text to sanitize, or None.

    Returns:
        Sanitized text, or None if input was None.
    """
    if not value:
        return value
    if value.startswith(_FORMULA_CHARS):
        return "'" + value
    return value
