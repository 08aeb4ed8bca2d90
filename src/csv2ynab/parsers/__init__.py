"""Readers for bank statement files."""

from csv2ynab.parsers.base import BaseParser, ParseError
from csv2ynab.parsers.csv_parser import CSVParser, ParsedCSV

__all__ = [
    "BaseParser",
    "ParseError",
    "CSVParser",
    "ParsedCSV",
]
