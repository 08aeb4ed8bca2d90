"""Decimal utilities for amount parsing, formatting and separator detection.

All monetary calculations use Decimal to avoid floating-point precision issues.
"""

import re
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

DOT = "."
COMMA = ","
DECIMAL_SEPARATORS = (DOT, COMMA)

ZERO = Decimal("0")

# Everything except digits, separators and the minus sign is noise
# (currency symbols, spaces, letters like "EUR" or "CR").
_NON_NUMERIC_PATTERN = re.compile(r"[^\d.,-]")

# Leading signed decimal, e.g. "-12.50" in "-12.50-3"
_LEADING_NUMBER_PATTERN = re.compile(r"^[-]?(?:\d+\.?\d*|\.\d+)")

# Strict trailing-decimal shapes used for separator detection
_COMMA_DECIMAL_PATTERN = re.compile(r"-?[\d\s.]*,\d{1,2}")
_DOT_DECIMAL_PATTERN = re.compile(r"-?[\d\s,]*\.\d{1,2}")


def parse_amount(raw_amount: Optional[str], decimal_separator: str = DOT) -> Decimal:
    """Parse a raw amount string into a signed Decimal.

    Handles:
    - Standard: 1234.56, -1234.56
    - With currency: $1,234.56, -1 234,56 EUR
    - European format: 1.234,56 with decimal_separator=","

    Parsing is lenient. Empty or unparseable input yields zero, so a
    malformed amount cannot be told apart from a real zero downstream.

    Args:
        raw_amount: The raw amount string to parse.
        decimal_separator: "." or ",".

    Returns:
        Parsed amount, or Decimal("0").
    """
    if not raw_amount:
        return ZERO

    amount_str = _NON_NUMERIC_PATTERN.sub("", raw_amount)

    if decimal_separator == COMMA:
        # 1.000,00 -> 1000.00
        amount_str = amount_str.replace(".", "").replace(",", ".", 1)
    else:
        # 1,000.00 -> 1000.00
        amount_str = amount_str.replace(",", "")

    match = _LEADING_NUMBER_PATTERN.match(amount_str)
    if not match:
        return ZERO

    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return ZERO


def format_amount(amount: Decimal, decimal_places: int = 2) -> str:
    """Format a positive amount for the output file.

    Rounding is half-up on the exact decimal value. Sub-cent ties can
    therefore differ from the web app, which rounded binary floats:
    1.005 gives "1.01" here but "1.00" there.

    Args:
        amount: The amount to format.
        decimal_places: Number of decimal places (default 2).

    Returns:
        Fixed-point string like "12.50", or "" when the amount is not positive.
    """
    if amount <= 0:
        return ""
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "0"
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)
    return str(rounded)


def safe_decimal(value: Optional[object], default: Decimal = ZERO) -> Decimal:
    """Safely convert a value to Decimal.

    Args:
        value: Value to convert (string, int, float, or None).
        default: Default value if conversion fails.

    Returns:
        Decimal value or default.
    """
    if value is None or value == "":
        return default

    try:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, str)):
            return Decimal(str(value))
        if isinstance(value, float):
            # Convert float to string first for precision
            return Decimal(str(value))
        return default
    except (InvalidOperation, ValueError):
        return default


def detect_decimal_separator(tokens: Iterable[Optional[str]]) -> str:
    """Infer the decimal separator from a sample of raw amount tokens.

    Phase one counts tokens ending in a separator followed by one or two
    digits. The larger count wins. On a tie (including no matches at all)
    comma is chosen only if some token contains a comma and none contains
    a dot; otherwise dot.

    Args:
        tokens: Raw amount strings. Empty values are ignored.

    Returns:
        "." or ",".
    """
    values = [t for t in tokens if t]

    comma_matches = sum(1 for v in values if _COMMA_DECIMAL_PATTERN.fullmatch(v))
    dot_matches = sum(1 for v in values if _DOT_DECIMAL_PATTERN.fullmatch(v))

    if comma_matches > dot_matches:
        return COMMA
    if dot_matches > comma_matches:
        return DOT

    has_comma = any(COMMA in v for v in values)
    has_dot = any(DOT in v for v in values)
    if has_comma and not has_dot:
        return COMMA

    return DOT
