#!/usr/bin/env python3
"""Bank statement CSV to YNAB converter.

This is the main entry point script for csv2ynab.
It wraps the package CLI for convenient execution.

Usage:
    python convert_statement.py statement.csv --output ynab.csv

For full documentation and options:
    python convert_statement.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from csv2ynab.cli import main

if __name__ == "__main__":
    sys.exit(main())
