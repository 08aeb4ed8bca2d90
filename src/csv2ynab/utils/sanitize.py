"""Sanitization utilities for safe output generation."""

from typing import Optional


# Characters that trigger formula execution in spreadsheet applications
# when they appear at the start of a cell value
# Includes | for DDE (Dynamic Data Exchange) attack prevention
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def sanitize_for_csv(value: Optional[str]) -> Optional[str]:
    """Sanitize a string value for safe spreadsheet viewing.

    Prefixes values that start with formula-triggering characters
    (=, +, -, @, tab, etc.) with a single quote, the OWASP mitigation
    for CSV injection. Only free-text columns should go through this;
    dates and amounts are generated and always safe.

    Args:
        value: String value to sanitize, or None.

    Returns:
        Sanitized string, or None if input was None.
    """
    if value is None:
        return None

    if not value:
        return value

    if value.startswith(_FORMULA_CHARS):
        return "'" + value

    return value
