"""Transaction data models for the YNAB import format."""

from dataclasses import dataclass, field
from decimal import Decimal

# One input row: column name -> raw cell value
SourceRecord = dict[str, str]

# Column order of the YNAB CSV import format
YNAB_FIELDS = ["Date", "Payee", "Memo", "Outflow", "Inflow"]


@dataclass(frozen=True)
class CanonicalRow:
    """One transaction in YNAB import shape.

    Every field is a string so rows can be written without further
    formatting. At most one of outflow/inflow is non-empty.

    Attributes:
        date: Transaction date as YYYY-MM-DD.
        payee: Cleaned payee text.
        memo: Memo text.
        outflow: Money out with two decimals, or "".
        inflow: Money in with two decimals, or "".
    """

    date: str
    payee: str = ""
    memo: str = ""
    outflow: str = ""
    inflow: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the row keyed by YNAB column names."""
        return {
            "Date": self.date,
            "Payee": self.payee,
            "Memo": self.memo,
            "Outflow": self.outflow,
            "Inflow": self.inflow,
        }

    def to_list(self) -> list[str]:
        """Return the row values in YNAB column order."""
        return [self.date, self.payee, self.memo, self.outflow, self.inflow]


@dataclass
class ProcessingStats:
    """Summary statistics for one conversion run.

    Attributes:
        total_rows: Number of input records.
        valid_rows: Number of emitted rows.
        skipped_rows: Number of records dropped.
        total_inflow: Sum of emitted Inflow values.
        total_outflow: Sum of emitted Outflow values.
    """

    total_rows: int = 0
    valid_rows: int = 0
    skipped_rows: int = 0
    total_inflow: Decimal = field(default_factory=lambda: Decimal("0"))
    total_outflow: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def net(self) -> Decimal:
        """Return inflow minus outflow."""
        return self.total_inflow - self.total_outflow


@dataclass
class ProcessingResult:
    """Output rows plus the statistics describing them."""

    rows: list[CanonicalRow] = field(default_factory=list)
    stats: ProcessingStats = field(default_factory=ProcessingStats)
