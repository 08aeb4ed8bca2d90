"""Date parsing and normalization utilities."""

import re
from datetime import date
from functools import lru_cache
from typing import Optional

# Sentinel format value that enables format auto-detection
AUTO_DATE_FORMAT = "auto"

# Selectable date formats (value, label)
DATE_FORMATS = [
    (AUTO_DATE_FORMAT, "Auto Detect"),
    ("yyyy-MM-dd", "YYYY-MM-DD (2023-12-31)"),
    ("dd/MM/yyyy", "DD/MM/YYYY (31/12/2023)"),
    ("MM/dd/yyyy", "MM/DD/YYYY (12/31/2023)"),
    ("dd.MM.yyyy", "DD.MM.YYYY (31.12.2023)"),
    ("yyyy/MM/dd", "YYYY/MM/DD (2023/12/31)"),
]

# Formats tried in order when the format is "auto".
#
# IMPORTANT - Date Format Ambiguity:
# "03/04/2024" matches both dd/MM/yyyy and MM/dd/yyyy. Day-first wins because
# it is tried first. Pick an explicit format for US-style statements.
AUTO_DETECT_FORMATS = [
    "yyyy-MM-dd",
    "dd/MM/yyyy",
    "MM/dd/yyyy",
    "dd.MM.yyyy",
    "yyyy/MM/dd",
]

# Already-canonical dates are accepted as-is in auto mode
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Auto-detected years must fall strictly inside this range
MIN_AUTO_YEAR = 1900
MAX_AUTO_YEAR = 2100

# Pattern token -> (group name, regex fragment)
_FORMAT_TOKENS = {
    "yyyy": ("year", r"\d{1,4}"),
    "yy": ("short_year", r"\d{1,2}"),
    "MM": ("month", r"\d{1,2}"),
    "M": ("month", r"\d{1,2}"),
    "dd": ("day", r"\d{1,2}"),
    "d": ("day", r"\d{1,2}"),
}

_TOKEN_SPLITTER = re.compile(r"yyyy|yy|MM|M|dd|d|.", re.DOTALL)


@lru_cache(maxsize=32)
def compile_date_format(pattern: str) -> re.Pattern[str]:
    """Translate a display pattern like "dd/MM/yyyy" into an anchored regex.

    Supported tokens are yyyy, yy, MM, M, dd and d. Any other character is
    matched literally. Results are cached, so per-row calls with an
    explicit format compile the pattern once.

    Args:
        pattern: Date pattern string.

    Returns:
        Compiled regex with year/short_year, month and day named groups.

    Raises:
        ValueError: If the pattern lacks a year, month or day token, or
            repeats one.
    """
    parts = []
    seen: set[str] = set()
    for token in _TOKEN_SPLITTER.findall(pattern):
        if token in _FORMAT_TOKENS:
            group, fragment = _FORMAT_TOKENS[token]
            if group in seen:
                raise ValueError(f"Date format '{pattern}' repeats the {group} field")
            seen.add(group)
            parts.append(f"(?P<{group}>{fragment})")
        else:
            parts.append(re.escape(token))

    has_year = "year" in seen or "short_year" in seen
    if not (has_year and "month" in seen and "day" in seen):
        raise ValueError(f"Date format '{pattern}' needs year, month and day fields")

    return re.compile("^" + "".join(parts) + "$")


# Compiled auto-detect patterns for efficiency
COMPILED_AUTO_FORMATS = [compile_date_format(fmt) for fmt in AUTO_DETECT_FORMATS]


def _expand_short_year(short_year: int, today: Optional[date] = None) -> int:
    """Resolve a two-digit year to the closest century around today."""
    current = (today or date.today()).year
    candidate = current - current % 100 + short_year
    if candidate > current + 50:
        candidate -= 100
    elif candidate <= current - 50:
        candidate += 100
    return candidate


def _parse_with(date_str: str, pattern: re.Pattern[str]) -> Optional[date]:
    """Strictly parse a date string against one compiled format.

    Returns:
        Parsed date, or None if the shape or the calendar date is invalid.
    """
    match = pattern.match(date_str)
    if not match:
        return None

    fields = match.groupdict()
    if fields.get("year") is not None:
        year = int(fields["year"])
    else:
        year = _expand_short_year(int(fields["short_year"]))

    try:
        return date(year, int(fields["month"]), int(fields["day"]))
    except ValueError:
        return None


def parse_date(raw_date: str, date_format: str = AUTO_DATE_FORMAT) -> date:
    """Parse a raw date string into a date object.

    Auto mode tries AUTO_DETECT_FORMATS in order and only accepts years
    strictly between 1900 and 2100. An explicit format is applied as-is.

    Args:
        raw_date: The raw date string to parse.
        date_format: "auto" or an explicit pattern such as "dd.MM.yyyy".

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if not raw_date:
        raise ValueError("Empty date string")

    date_str = raw_date.strip()
    if not date_str:
        raise ValueError("Empty date string after stripping whitespace")

    if date_format != AUTO_DATE_FORMAT:
        parsed = _parse_with(date_str, compile_date_format(date_format))
        if parsed is None:
            raise ValueError(f"Cannot parse date '{raw_date}' with format '{date_format}'")
        return parsed

    for pattern in COMPILED_AUTO_FORMATS:
        parsed = _parse_with(date_str, pattern)
        if parsed is not None and MIN_AUTO_YEAR < parsed.year < MAX_AUTO_YEAR:
            return parsed

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def normalize_date(raw_date: Optional[str], date_format: str = AUTO_DATE_FORMAT) -> Optional[str]:
    """Normalize a raw date token to a YYYY-MM-DD string.

    In auto mode a token already shaped like YYYY-MM-DD is returned unchanged
    without calendar validation, so "2023-13-45" passes through. Every other
    token must parse to a real calendar date.

    Args:
        raw_date: Raw date token from the source file.
        date_format: "auto" or an explicit pattern.

    Returns:
        Canonical date string, or None if the token cannot be normalized.
    """
    if not raw_date:
        return None

    date_str = raw_date.strip()
    if not date_str:
        return None

    if date_format == AUTO_DATE_FORMAT and ISO_DATE_PATTERN.match(date_str):
        return date_str

    try:
        return date_to_iso(parse_date(date_str, date_format))
    except ValueError:
        return None


def date_to_iso(d: date) -> str:
    """Convert a date to ISO 8601 format (YYYY-MM-DD).

    Args:
        d: Date to convert.

    Returns:
        ISO format date string.
    """
    return d.isoformat()


def is_supported_format(date_format: str) -> bool:
    """Check whether a format is one of the selectable formats."""
    return any(value == date_format for value, _ in DATE_FORMATS)
