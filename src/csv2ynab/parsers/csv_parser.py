"""CSV reader with delimiter detection."""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from csv2ynab.models.transaction import SourceRecord
from csv2ynab.parsers.base import BaseParser, ParseError
from csv2ynab.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum CSV file size to prevent memory exhaustion (50 MB)
MAX_CSV_FILE_SIZE = 50 * 1024 * 1024

# Maximum number of rows to prevent memory exhaustion from many small rows
MAX_CSV_ROWS = 500_000

# Delimiters considered during detection
CANDIDATE_DELIMITERS = [",", ";", "\t", "|"]


@dataclass
class ParsedCSV:
    """Headers and records read from one CSV file.

    Attributes:
        headers: Column names from the header row, in file order.
        records: One dict per data row, keyed by header.
        delimiter: Delimiter used to split the file.
        ragged_rows: Number of rows whose cell count differed from the header.
    """

    headers: list[str]
    records: list[SourceRecord] = field(default_factory=list)
    delimiter: str = ","
    ragged_rows: int = 0

    @property
    def row_count(self) -> int:
        """Return the number of data rows."""
        return len(self.records)

    def sample(self, size: int) -> list[SourceRecord]:
        """Return the first rows for mapping detection."""
        return self.records[:size]


class CSVParser(BaseParser):
    """Reader for delimited bank statement exports."""

    @property
    def supported_extensions(self) -> list[str]:
        """Return supported file extensions."""
        return [".csv", ".tsv", ".txt"]

    def parse(self, file_path: Path, delimiter: Optional[str] = None) -> ParsedCSV:
        """Read a CSV file into headers and records.

        The first non-blank line is the header row. Blank lines are skipped,
        short rows are padded with empty strings and extra cells are dropped.

        Args:
            file_path: Path to the CSV file.
            delimiter: Delimiter to use instead of the detected one.

        Returns:
            ParsedCSV with headers and records.

        Raises:
            FileNotFoundError: If the file does not exist.
            ParseError: If the file is too large, empty or unreadable.
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_size = file_path.stat().st_size
        if file_size > MAX_CSV_FILE_SIZE:
            raise ParseError(
                f"File too large ({file_size / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_CSV_FILE_SIZE / 1024 / 1024:.0f} MB",
                file_path,
            )

        if delimiter is None:
            delimiter = self.detect_delimiter(file_path)

        logger.info(f"Parsing {file_path.name} (delimiter={delimiter!r})")

        headers: Optional[list[str]] = None
        records: list[SourceRecord] = []
        ragged_rows = 0
        try:
            with open(file_path, encoding="utf-8-sig", errors="replace", newline="") as f:
                reader = csv.reader(f, delimiter=delimiter)

                for row in reader:
                    if not row or all(cell.strip() == "" for cell in row):
                        continue

                    if headers is None:
                        headers = row
                        continue

                    if len(records) >= MAX_CSV_ROWS:
                        raise ParseError(
                            f"File exceeds maximum row limit ({MAX_CSV_ROWS:,} rows). "
                            f"Split file into smaller chunks.",
                            file_path,
                        )

                    if len(row) != len(headers):
                        ragged_rows += 1
                        row = (row + [""] * len(headers))[: len(headers)]

                    records.append(dict(zip(headers, row)))

        except ParseError:
            raise
        except (OSError, csv.Error) as e:
            raise ParseError(f"Failed to parse CSV file: {e}", file_path) from e

        if headers is None:
            raise ParseError("The CSV file appears to be empty.", file_path)
        if not records:
            raise ParseError("The CSV file has a header row but no data rows.", file_path)

        logger.info(f"Read {len(records)} rows with {len(headers)} columns from {file_path.name}")
        if ragged_rows:
            logger.warning(
                f"{ragged_rows} rows in {file_path.name} did not match the header width"
            )

        return ParsedCSV(
            headers=headers,
            records=records,
            delimiter=delimiter,
            ragged_rows=ragged_rows,
        )

    def detect_delimiter(self, file_path: Path) -> str:
        """Detect the delimiter of a file from its first lines.

        Args:
            file_path: Path to the CSV file.

        Returns:
            Detected delimiter, "," if nothing better is found.
        """
        return self._detect_delimiter(self._read_first_lines(file_path, 20))

    def _detect_delimiter(self, lines: list[str]) -> str:
        """Detect CSV delimiter from content.

        Args:
            lines: First few lines of file.

        Returns:
            Detected delimiter character.
        """
        lines = [line for line in lines if line.strip()]
        if not lines:
            return ","

        # csv.Sniffer handles quoted fields correctly
        sample = "\n".join(lines[:10])
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters="".join(CANDIDATE_DELIMITERS))
            return dialect.delimiter
        except csv.Error:
            pass

        # Fallback to simple counting (less accurate with quoted fields)
        delimiter_counts: dict[str, list[int]] = {d: [] for d in CANDIDATE_DELIMITERS}

        for line in lines[:10]:
            for d in CANDIDATE_DELIMITERS:
                delimiter_counts[d].append(line.count(d))

        # Choose delimiter with the highest count present on most lines
        best_delimiter = ","
        best_score = 0.0

        for d, counts in delimiter_counts.items():
            non_zero = [c for c in counts if c > 0]
            if not non_zero:
                continue

            avg = sum(non_zero) / len(non_zero)
            if avg > best_score and len(non_zero) > len(counts) / 2:
                best_score = avg
                best_delimiter = d

        return best_delimiter
