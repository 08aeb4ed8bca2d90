"""Tests for row transformation and batch processing."""

from decimal import Decimal

import pytest

from csv2ynab.config import AmountMode, MappingConfig, PayeeRule
from csv2ynab.models.transaction import CanonicalRow
from csv2ynab.processing.transformer import process_all, transform_row
from csv2ynab.utils.decimal_utils import safe_decimal


def make_config(**overrides: object) -> MappingConfig:
    """Create a single-amount MappingConfig with common test columns."""
    values: dict[str, object] = {
        "date_column": "date",
        "payee_column": "payee",
        "memo_column": "memo",
        "amount_column": "amount",
    }
    values.update(overrides)
    return MappingConfig(**values)  # type: ignore[arg-type]


def make_split_config(**overrides: object) -> MappingConfig:
    """Create a separate outflow/inflow MappingConfig."""
    values: dict[str, object] = {
        "date_column": "date",
        "payee_column": "payee",
        "amount_mode": AmountMode.SEPARATE,
        "outflow_column": "debit",
        "inflow_column": "credit",
    }
    values.update(overrides)
    return MappingConfig(**values)  # type: ignore[arg-type]


class TestTransformRowSingleAmount:
    """Tests for transform_row with one signed amount column."""

    def test_comma_negative_amount_is_outflow(self) -> None:
        """Test a European debit."""
        config = make_config(decimal_separator=",")
        row = transform_row({"date": "2023-12-31", "amount": "-12,50"}, config)

        assert row == CanonicalRow(date="2023-12-31", outflow="12.50", inflow="")

    def test_auto_date_is_normalized(self) -> None:
        """Test that day-first dates are converted."""
        row = transform_row({"date": "31/12/2023", "amount": "5"}, make_config())

        assert row is not None
        assert row.date == "2023-12-31"
        assert row.inflow == "5.00"

    def test_positive_amount_is_inflow_by_default(self) -> None:
        """Test the default sign policy."""
        row = transform_row({"date": "2024-01-02", "amount": "1,234.56"}, make_config())

        assert row is not None
        assert row.inflow == "1234.56"
        assert row.outflow == ""

    def test_positive_outflow_policy(self) -> None:
        """Test that positive amounts become outflows when configured."""
        config = make_config(is_negative_outflow=False)

        debit = transform_row({"date": "2024-01-02", "amount": "25.00"}, config)
        credit = transform_row({"date": "2024-01-02", "amount": "-25"}, config)

        assert debit is not None and credit is not None
        assert (debit.outflow, debit.inflow) == ("25.00", "")
        assert (credit.outflow, credit.inflow) == ("", "25.00")

    @pytest.mark.parametrize("negative_outflow", [True, False])
    def test_zero_amount_emits_row_with_empty_amounts(self, negative_outflow: bool) -> None:
        """Test that zero is emitted under both sign policies."""
        config = make_config(is_negative_outflow=negative_outflow)
        row = transform_row({"date": "2024-01-02", "amount": "0.00"}, config)

        assert row is not None
        assert row.outflow == ""
        assert row.inflow == ""

    def test_unparseable_amount_is_zero(self) -> None:
        """Test that malformed amounts do not skip the row."""
        row = transform_row({"date": "2024-01-02", "amount": "n/a"}, make_config())

        assert row is not None
        assert (row.outflow, row.inflow) == ("", "")

    def test_empty_amount_is_skipped(self) -> None:
        """Test skip_empty_amount in single mode."""
        assert transform_row({"date": "2024-01-02", "amount": ""}, make_config()) is None

    def test_empty_amount_kept_when_not_skipping(self) -> None:
        """Test that empty amounts produce a row when skipping is off."""
        config = make_config(skip_empty_amount=False)
        row = transform_row({"date": "2024-01-02", "amount": ""}, config)

        assert row == CanonicalRow(date="2024-01-02")

    def test_amount_is_rounded_to_cents(self) -> None:
        """Test two-decimal output."""
        row = transform_row({"date": "2024-01-02", "amount": "-3.456"}, make_config())

        assert row is not None
        assert row.outflow == "3.46"


class TestTransformRowSeparateAmounts:
    """Tests for transform_row with outflow and inflow columns."""

    def test_outflow_wins_when_both_positive(self) -> None:
        """Test that outflow takes precedence."""
        record = {"date": "2024-01-02", "debit": "10.00", "credit": "5.00"}
        row = transform_row(record, make_split_config())

        assert row is not None
        assert (row.outflow, row.inflow) == ("10.00", "")

    def test_inflow_only(self) -> None:
        """Test a credit row."""
        record = {"date": "2024-01-02", "debit": "", "credit": "19,99"}
        row = transform_row(record, make_split_config(decimal_separator=","))

        assert row is not None
        assert (row.outflow, row.inflow) == ("", "19.99")

    def test_negative_values_are_ignored(self) -> None:
        """Test that only positive values count in separate mode."""
        record = {"date": "2024-01-02", "debit": "-10.00", "credit": "4.00"}
        row = transform_row(record, make_split_config())

        assert row is not None
        assert (row.outflow, row.inflow) == ("", "4.00")

    def test_both_empty_is_skipped(self) -> None:
        """Test skip_empty_amount in separate mode."""
        record = {"date": "2024-01-02", "debit": "", "credit": ""}
        assert transform_row(record, make_split_config()) is None

    def test_both_zero_is_emitted(self) -> None:
        """Test that explicit zeros are not treated as empty."""
        record = {"date": "2024-01-02", "debit": "0.00", "credit": "0.00"}
        row = transform_row(record, make_split_config())

        assert row is not None
        assert (row.outflow, row.inflow) == ("", "")

    def test_only_outflow_column_mapped(self) -> None:
        """Test separate mode with one mapped column."""
        config = make_split_config(inflow_column="")
        row = transform_row({"date": "2024-01-02", "debit": "7.5"}, config)

        assert row is not None
        assert row.outflow == "7.50"


class TestTransformRowFields:
    """Tests for date skipping and text fields."""

    def test_empty_date_is_skipped(self) -> None:
        """Test that a missing date skips the row."""
        assert transform_row({"date": "", "amount": "-1"}, make_config()) is None
        assert transform_row({"amount": "-1"}, make_config()) is None

    def test_invalid_date_is_skipped(self) -> None:
        """Test that an unparseable date skips the row."""
        assert transform_row({"date": "someday", "amount": "-1"}, make_config()) is None

    def test_explicit_date_format(self) -> None:
        """Test that the configured format is applied."""
        config = make_config(date_format="MM/dd/yyyy")
        row = transform_row({"date": "03/04/2024", "amount": "1"}, config)

        assert row is not None
        assert row.date == "2024-03-04"

    def test_unmapped_payee_and_memo_are_empty(self) -> None:
        """Test that unmapped text columns yield empty strings."""
        config = make_config(payee_column="", memo_column="")
        row = transform_row({"date": "2024-01-02", "amount": "1", "payee": "x"}, config)

        assert row is not None
        assert row.payee == ""
        assert row.memo == ""

    def test_whitespace_trimmed_by_default(self) -> None:
        """Test payee and memo trimming."""
        record = {"date": "2024-01-02", "amount": "1", "payee": "  Shop ", "memo": " ref "}
        row = transform_row(record, make_config())

        assert row is not None
        assert row.payee == "Shop"
        assert row.memo == "ref"

    def test_whitespace_kept_when_trim_disabled(self) -> None:
        """Test that trimming can be turned off."""
        record = {"date": "2024-01-02", "amount": "1", "payee": "  Shop ", "memo": " ref "}
        row = transform_row(record, make_config(trim_whitespace=False))

        assert row is not None
        assert row.payee == "  Shop "
        assert row.memo == " ref "

    def test_auto_clean_payee(self) -> None:
        """Test noise stripping on the payee."""
        record = {"date": "2024-01-02", "amount": "-4", "payee": "POS Purchase  STARBUCKS #123"}
        row = transform_row(record, make_config(auto_clean_payee=True))

        assert row is not None
        assert row.payee == "STARBUCKS #123"

    def test_payee_rules_applied(self) -> None:
        """Test find/replace rules on the payee."""
        config = make_config(payee_rules=[PayeeRule("STAR", "X"), PayeeRule("BUCKS", "Y")])
        row = transform_row({"date": "2024-01-02", "amount": "-4", "payee": "STARBUCKS"}, config)

        assert row is not None
        assert row.payee == "X"


class TestProcessAll:
    """Tests for process_all."""

    @pytest.fixture
    def records(self) -> list[dict[str, str]]:
        """Mixed statement rows including ones that must be skipped."""
        return [
            {"date": "31.12.2023", "payee": "Bakery", "memo": "", "amount": "-12,50"},
            {"date": "", "payee": "No date", "memo": "", "amount": "-1,00"},
            {"date": "02.01.2024", "payee": "Salary", "memo": "Jan", "amount": "2.100,00"},
            {"date": "03.01.2024", "payee": "Pending", "memo": "", "amount": ""},
            {"date": "04.01.2024", "payee": "Rent", "memo": "", "amount": "-950,00"},
            {"date": "05.01.2024", "payee": "Adjustment", "memo": "", "amount": "0,00"},
        ]

    def test_stats(self, records: list[dict[str, str]]) -> None:
        """Test row counts and totals."""
        result = process_all(records, make_config(decimal_separator=","))
        stats = result.stats

        assert stats.total_rows == 6
        assert stats.valid_rows == 4
        assert stats.skipped_rows == 2
        assert stats.total_outflow == Decimal("962.50")
        assert stats.total_inflow == Decimal("2100.00")
        assert stats.net == Decimal("1137.50")

    def test_order_is_preserved(self, records: list[dict[str, str]]) -> None:
        """Test that emitted rows keep input order."""
        result = process_all(records, make_config(decimal_separator=","))

        assert [r.payee for r in result.rows] == ["Bakery", "Salary", "Rent", "Adjustment"]

    def test_totals_match_emitted_rows(self, records: list[dict[str, str]]) -> None:
        """Test that totals equal the sum of the output fields."""
        result = process_all(records, make_config(decimal_separator=","))

        assert result.stats.total_outflow == sum(
            (safe_decimal(r.outflow) for r in result.rows), Decimal("0")
        )
        assert result.stats.total_inflow == sum(
            (safe_decimal(r.inflow) for r in result.rows), Decimal("0")
        )
        assert result.stats.valid_rows == len(result.rows)
        assert result.stats.valid_rows + result.stats.skipped_rows == result.stats.total_rows

    def test_outflow_and_inflow_are_exclusive(self, records: list[dict[str, str]]) -> None:
        """Test that no row carries both amounts."""
        result = process_all(records, make_config(decimal_separator=","))

        for row in result.rows:
            assert not (row.outflow and row.inflow)

    def test_rerun_is_deterministic(self, records: list[dict[str, str]]) -> None:
        """Test that the same input and config give the same output."""
        config = make_config(decimal_separator=",")
        assert process_all(records, config) == process_all(records, config)

    def test_empty_input(self) -> None:
        """Test processing no records."""
        result = process_all([], make_config())

        assert result.rows == []
        assert result.stats.total_rows == 0
        assert result.stats.total_inflow == Decimal("0")
        assert result.stats.net == Decimal("0")
