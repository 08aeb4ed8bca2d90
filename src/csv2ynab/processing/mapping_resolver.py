"""Default column mapping detection and mapping edits."""

import re
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional

from csv2ynab.config import MappingConfig
from csv2ynab.models.transaction import SourceRecord
from csv2ynab.utils.decimal_utils import DOT, detect_decimal_separator
from csv2ynab.utils.logging_config import get_logger

logger = get_logger(__name__)

# Header patterns per field, first matching header wins
DATE_HEADER_PATTERN = re.compile(r"date|time", re.IGNORECASE)
PAYEE_HEADER_PATTERN = re.compile(r"payee|description|merchant|name", re.IGNORECASE)
MEMO_HEADER_PATTERN = re.compile(r"memo|reference|note", re.IGNORECASE)
AMOUNT_HEADER_PATTERN = re.compile(r"amount|value|sum", re.IGNORECASE)

# Fields whose change triggers separator re-detection
AMOUNT_SOURCE_FIELDS = ("amount_column", "outflow_column", "inflow_column")


def find_header(headers: Sequence[str], pattern: re.Pattern[str]) -> str:
    """Return the first header matching pattern, or "" if none does."""
    for header in headers:
        if pattern.search(header):
            return header
    return ""


def column_values(rows: Sequence[SourceRecord], column: str) -> list[str]:
    """Collect one column's raw values from sample rows."""
    if not column:
        return []
    return [row.get(column) or "" for row in rows]


def detect_separator_for_column(rows: Sequence[SourceRecord], column: str) -> str:
    """Detect the decimal separator used in one column.

    Returns "." when no column is given.
    """
    if not column:
        return DOT
    return detect_decimal_separator(column_values(rows, column))


def resolve_default_mapping(
    headers: Sequence[str],
    sample_rows: Sequence[SourceRecord],
) -> MappingConfig:
    """Propose a mapping for a new header layout.

    Args:
        headers: Column headers in file order.
        sample_rows: Leading rows used for separator detection.

    Returns:
        MappingConfig in single amount mode with detected columns.
    """
    amount_column = find_header(headers, AMOUNT_HEADER_PATTERN)
    config = MappingConfig(
        date_column=find_header(headers, DATE_HEADER_PATTERN),
        payee_column=find_header(headers, PAYEE_HEADER_PATTERN),
        memo_column=find_header(headers, MEMO_HEADER_PATTERN),
        amount_column=amount_column,
        decimal_separator=detect_separator_for_column(sample_rows, amount_column),
    )
    logger.debug(
        f"Resolved default mapping: date={config.date_column!r}, "
        f"payee={config.payee_column!r}, memo={config.memo_column!r}, "
        f"amount={config.amount_column!r}, separator={config.decimal_separator!r}"
    )
    return config


def detected_separator(config: MappingConfig, sample_rows: Sequence[SourceRecord]) -> str:
    """Return the separator suggested by the active amount-source column."""
    return detect_separator_for_column(sample_rows, config.amount_source_column)


def update_mapping(
    config: MappingConfig,
    sample_rows: Sequence[SourceRecord],
    has_initial_config: bool,
    **changes: object,
) -> MappingConfig:
    """Apply user edits to a mapping.

    Changing an amount-source column to a non-empty value re-detects the
    decimal separator, but only while no initial config was supplied.
    Once a saved or caller-provided mapping exists, the user's separator
    choice is kept.

    Args:
        config: Current mapping.
        sample_rows: Leading rows used for separator detection.
        has_initial_config: Whether the session started from an existing config.
        **changes: MappingConfig field values to set.

    Returns:
        A new MappingConfig.
    """
    updated = replace(config, **changes)  # type: ignore[arg-type]

    redetect = (
        not has_initial_config
        and "decimal_separator" not in changes
        and any(changes.get(f) for f in AMOUNT_SOURCE_FIELDS)
    )
    if redetect:
        separator = detected_separator(updated, sample_rows)
        if separator != updated.decimal_separator:
            logger.info(f"Decimal separator re-detected as {separator!r}")
            updated = replace(updated, decimal_separator=separator)

    return updated


def initial_mapping(
    headers: Sequence[str],
    sample_rows: Sequence[SourceRecord],
    saved: Optional[MappingConfig] = None,
) -> tuple[MappingConfig, bool]:
    """Pick the starting mapping for a session.

    Args:
        headers: Column headers in file order.
        sample_rows: Leading rows used for detection.
        saved: Previously saved mapping for this header layout, if any.

    Returns:
        Tuple of (mapping, whether it came from an existing config).
    """
    if saved is not None:
        return saved, True
    return resolve_default_mapping(headers, sample_rows), False
