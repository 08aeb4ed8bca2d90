"""Row transformation from bank statement records to YNAB rows."""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from csv2ynab.config import AmountMode, MappingConfig
from csv2ynab.models.transaction import (
    CanonicalRow,
    ProcessingResult,
    ProcessingStats,
    SourceRecord,
)
from csv2ynab.processing.payee_cleaner import clean_payee
from csv2ynab.utils.date_utils import normalize_date
from csv2ynab.utils.decimal_utils import ZERO, format_amount, parse_amount, safe_decimal
from csv2ynab.utils.logging_config import get_logger

logger = get_logger(__name__)


def _cell(record: SourceRecord, column: str) -> str:
    """Return a cell value, or "" for an unmapped or missing column."""
    if not column:
        return ""
    return record.get(column) or ""


def _resolve_amounts(
    record: SourceRecord, config: MappingConfig
) -> Optional[tuple[Decimal, Decimal]]:
    """Work out (outflow, inflow) for a record.

    Returns:
        Tuple of non-negative amounts, or None if the row should be skipped.
    """
    outflow = ZERO
    inflow = ZERO

    if config.amount_mode == AmountMode.SINGLE and config.amount_column:
        raw_amount = _cell(record, config.amount_column)
        if config.skip_empty_amount and not raw_amount:
            logger.debug("Skipping row: empty amount field")
            return None

        amount = parse_amount(raw_amount, config.decimal_separator)

        if config.is_negative_outflow:
            if amount < 0:
                outflow = abs(amount)
            else:
                inflow = amount
        else:
            # Zero lands here too; it renders as an empty inflow
            if amount > 0:
                outflow = amount
            else:
                inflow = abs(amount)

    elif config.amount_mode == AmountMode.SEPARATE:
        raw_outflow = _cell(record, config.outflow_column)
        raw_inflow = _cell(record, config.inflow_column)
        if config.skip_empty_amount and not raw_outflow and not raw_inflow:
            logger.debug("Skipping row: empty outflow and inflow fields")
            return None

        out_value = parse_amount(raw_outflow, config.decimal_separator)
        in_value = parse_amount(raw_inflow, config.decimal_separator)

        if out_value > 0 and in_value > 0:
            logger.warning(
                f"Row has both outflow ({out_value}) and inflow ({in_value}); using outflow"
            )

        if out_value > 0:
            outflow = out_value
        elif in_value > 0:
            inflow = in_value

    return outflow, inflow


def transform_row(record: SourceRecord, config: MappingConfig) -> Optional[CanonicalRow]:
    """Convert one source record into a YNAB row.

    Args:
        record: Column name -> raw value.
        config: Mapping to apply.

    Returns:
        CanonicalRow, or None if the record is skipped (missing or invalid
        date, or empty amount when skip_empty_amount is set).
    """
    raw_date = _cell(record, config.date_column)
    if not raw_date:
        logger.debug("Skipping row: empty date field")
        return None

    date_str = normalize_date(raw_date, config.date_format)
    if date_str is None:
        logger.debug(f"Skipping row: unparseable date '{raw_date}'")
        return None

    amounts = _resolve_amounts(record, config)
    if amounts is None:
        return None
    outflow, inflow = amounts

    payee = _cell(record, config.payee_column)
    memo = _cell(record, config.memo_column)
    if config.trim_whitespace:
        payee = payee.strip()
        memo = memo.strip()

    payee = clean_payee(payee, config.auto_clean_payee, config.payee_rules)

    return CanonicalRow(
        date=date_str,
        payee=payee,
        memo=memo,
        outflow=format_amount(outflow),
        inflow=format_amount(inflow),
    )


def process_all(records: Sequence[SourceRecord], config: MappingConfig) -> ProcessingResult:
    """Transform every record and aggregate statistics.

    Output order matches input order. Totals are summed from the formatted
    output strings so they equal what the exported file contains.

    Args:
        records: Source records in file order.
        config: Mapping to apply.

    Returns:
        ProcessingResult with emitted rows and stats.
    """
    rows: list[CanonicalRow] = []
    skipped = 0
    total_inflow = ZERO
    total_outflow = ZERO

    for record in records:
        row = transform_row(record, config)
        if row is None:
            skipped += 1
            continue
        rows.append(row)
        total_outflow += safe_decimal(row.outflow)
        total_inflow += safe_decimal(row.inflow)

    stats = ProcessingStats(
        total_rows=len(records),
        valid_rows=len(rows),
        skipped_rows=skipped,
        total_inflow=total_inflow,
        total_outflow=total_outflow,
    )

    logger.info(
        f"Converted {stats.valid_rows}/{stats.total_rows} rows "
        f"({stats.skipped_rows} skipped)"
    )
    return ProcessingResult(rows=rows, stats=stats)
