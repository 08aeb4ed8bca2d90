"""Convert bank statement CSV exports into YNAB import files."""

__version__ = "0.1.0"
