"""Transformation pipeline components."""

from csv2ynab.processing.mapping_resolver import (
    detected_separator,
    initial_mapping,
    resolve_default_mapping,
    update_mapping,
)
from csv2ynab.processing.payee_cleaner import (
    apply_rules,
    auto_clean,
    clean_payee,
)
from csv2ynab.processing.transformer import (
    process_all,
    transform_row,
)

__all__ = [
    "detected_separator",
    "initial_mapping",
    "resolve_default_mapping",
    "update_mapping",
    "apply_rules",
    "auto_clean",
    "clean_payee",
    "process_all",
    "transform_row",
]
