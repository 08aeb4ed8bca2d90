"""Allow running the package with ``python -m csv2ynab``."""

import sys

from csv2ynab.cli import main

sys.exit(main())
