"""Data models for source records and YNAB output rows."""

from csv2ynab.models.transaction import (
    YNAB_FIELDS,
    CanonicalRow,
    ProcessingResult,
    ProcessingStats,
    SourceRecord,
)

__all__ = [
    "YNAB_FIELDS",
    "CanonicalRow",
    "ProcessingResult",
    "ProcessingStats",
    "SourceRecord",
]
