"""Tests for default mapping detection and mapping edits."""

from csv2ynab.config import AmountMode, MappingConfig
from csv2ynab.processing.mapping_resolver import (
    DATE_HEADER_PATTERN,
    detected_separator,
    find_header,
    initial_mapping,
    resolve_default_mapping,
    update_mapping,
)

EURO_HEADERS = ["Booking Date", "Description", "Reference", "Amount"]
EURO_ROWS = [
    {"Booking Date": "31.12.2023", "Description": "Bakery", "Reference": "R1", "Amount": "-12,50"},
    {"Booking Date": "02.01.2024", "Description": "Salary", "Reference": "R2", "Amount": "2.100,00"},
]

SPLIT_HEADERS = ["Date", "Details", "Debit", "Credit"]
SPLIT_ROWS = [
    {"Date": "2024-01-02", "Details": "Rent", "Debit": "950,00", "Credit": ""},
    {"Date": "2024-01-03", "Details": "Refund", "Debit": "", "Credit": "19,99"},
]


class TestResolveDefaultMapping:
    """Tests for resolve_default_mapping."""

    def test_detects_columns_and_separator(self) -> None:
        """Test detection on a typical European export."""
        config = resolve_default_mapping(EURO_HEADERS, EURO_ROWS)

        assert config.date_column == "Booking Date"
        assert config.payee_column == "Description"
        assert config.memo_column == "Reference"
        assert config.amount_column == "Amount"
        assert config.amount_mode == AmountMode.SINGLE
        assert config.decimal_separator == ","
        assert config.is_valid()

    def test_defaults_for_other_options(self) -> None:
        """Test that non-column options take their defaults."""
        config = resolve_default_mapping(EURO_HEADERS, EURO_ROWS)

        assert config.date_format == "auto"
        assert config.is_negative_outflow is True
        assert config.skip_empty_amount is True
        assert config.trim_whitespace is True
        assert config.auto_clean_payee is False
        assert config.payee_rules == ()

    def test_first_matching_header_wins(self) -> None:
        """Test that header order decides between candidates."""
        headers = ["Value Date", "Transaction Date", "Name", "Value"]
        config = resolve_default_mapping(headers, [])

        assert config.date_column == "Value Date"
        assert config.payee_column == "Name"
        # "Value Date" also matches the amount pattern and comes first
        assert config.amount_column == "Value Date"

    def test_missing_amount_column(self) -> None:
        """Test headers without an amount column."""
        config = resolve_default_mapping(["Date", "Text", "Debit"], [{"Date": "x"}])

        assert config.amount_column == ""
        assert config.payee_column == ""
        assert config.decimal_separator == "."
        assert not config.is_valid()

    def test_find_header_returns_empty_string(self) -> None:
        """Test that no match yields an empty column name."""
        assert find_header(["Payee", "Amount"], DATE_HEADER_PATTERN) == ""
        assert find_header(["Posting TIME"], DATE_HEADER_PATTERN) == "Posting TIME"


class TestUpdateMapping:
    """Tests for update_mapping."""

    def test_changing_amount_column_redetects_separator(self) -> None:
        """Test re-detection while no initial config exists."""
        config = MappingConfig(date_column="Date")
        updated = update_mapping(
            config, SPLIT_ROWS, False, amount_mode=AmountMode.SEPARATE, outflow_column="Debit"
        )

        assert updated.outflow_column == "Debit"
        assert updated.decimal_separator == ","

    def test_initial_config_keeps_separator(self) -> None:
        """Test that a saved config's separator is not overwritten."""
        config = MappingConfig(date_column="Booking Date", decimal_separator=".")
        updated = update_mapping(config, EURO_ROWS, True, amount_column="Amount")

        assert updated.amount_column == "Amount"
        assert updated.decimal_separator == "."

    def test_explicit_separator_is_kept(self) -> None:
        """Test that a separator set in the same edit is not re-detected."""
        config = MappingConfig(date_column="Booking Date")
        updated = update_mapping(
            config, EURO_ROWS, False, amount_column="Amount", decimal_separator="."
        )

        assert updated.decimal_separator == "."

    def test_clearing_column_does_not_redetect(self) -> None:
        """Test that setting an amount column to empty keeps the separator."""
        config = MappingConfig(amount_column="Amount", decimal_separator=",")
        updated = update_mapping(config, EURO_ROWS, False, amount_column="")

        assert updated.amount_column == ""
        assert updated.decimal_separator == ","

    def test_other_fields_do_not_redetect(self) -> None:
        """Test that non-amount edits leave the separator alone."""
        config = MappingConfig(amount_column="Amount", decimal_separator=".")
        updated = update_mapping(config, EURO_ROWS, False, payee_column="Description")

        assert updated.payee_column == "Description"
        assert updated.decimal_separator == "."

    def test_original_config_is_unchanged(self) -> None:
        """Test that updates return a new object."""
        config = MappingConfig()
        update_mapping(config, EURO_ROWS, False, amount_column="Amount")

        assert config.amount_column == ""
        assert config.decimal_separator == "."


class TestInitialMapping:
    """Tests for initial_mapping and detected_separator."""

    def test_saved_config_is_used(self) -> None:
        """Test that a saved mapping takes precedence over detection."""
        saved = MappingConfig(date_column="Booking Date", amount_column="Amount")
        config, has_initial = initial_mapping(EURO_HEADERS, EURO_ROWS, saved)

        assert config is saved
        assert has_initial is True

    def test_detection_without_saved_config(self) -> None:
        """Test fallback to detection."""
        config, has_initial = initial_mapping(EURO_HEADERS, EURO_ROWS)

        assert config.amount_column == "Amount"
        assert has_initial is False

    def test_detected_separator_uses_inflow_in_separate_mode(self) -> None:
        """Test that the inflow column is sampled when no outflow column is set."""
        config = MappingConfig(amount_mode=AmountMode.SEPARATE, inflow_column="Credit")
        assert detected_separator(config, SPLIT_ROWS) == ","
