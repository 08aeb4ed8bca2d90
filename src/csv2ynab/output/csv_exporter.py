"""CSV exporter for the YNAB import format."""

import csv
import io
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Optional, TextIO

from csv2ynab.models.transaction import YNAB_FIELDS, CanonicalRow
from csv2ynab.utils.logging_config import get_logger
from csv2ynab.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)


def default_export_name(today: Optional[date] = None) -> str:
    """Return the default export file name, e.g. ynab-import-2024-01-15.csv."""
    return f"ynab-import-{(today or date.today()).isoformat()}.csv"


class YNABExporter:
    """Writes converted rows as a YNAB-importable CSV.

    Every field is quoted and the file starts with the
    Date,Payee,Memo,Outflow,Inflow header row.
    """

    def __init__(self, sanitize_formulas: bool = False):
        """Initialize the exporter.

        Args:
            sanitize_formulas: Guard payee and memo against spreadsheet
                formula injection.
        """
        self.sanitize_formulas = sanitize_formulas

    def _row_values(self, row: CanonicalRow) -> list[str]:
        values = row.to_list()
        if self.sanitize_formulas:
            values[1] = sanitize_for_csv(values[1]) or ""
            values[2] = sanitize_for_csv(values[2]) or ""
        return values

    def _write(self, handle: TextIO, rows: Sequence[CanonicalRow]) -> None:
        writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
        writer.writerow(YNAB_FIELDS)
        for row in rows:
            writer.writerow(self._row_values(row))

    def to_string(self, rows: Sequence[CanonicalRow]) -> str:
        """Render rows as CSV text.

        Args:
            rows: Converted rows.

        Returns:
            CSV document including the header row.
        """
        buffer = io.StringIO()
        self._write(buffer, rows)
        return buffer.getvalue()

    def export(self, output_path: Path, rows: Sequence[CanonicalRow]) -> Path:
        """Write rows to a CSV file.

        Args:
            output_path: File to create or overwrite.
            rows: Converted rows.

        Returns:
            Path to the written file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            self._write(f, rows)

        logger.info(f"Exported {len(rows)} rows to {output_path}")
        return output_path
