"""Output generation for YNAB import files."""

from csv2ynab.output.csv_exporter import YNABExporter, default_export_name

__all__ = ["YNABExporter", "default_export_name"]
