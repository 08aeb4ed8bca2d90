"""Command-line interface for csv2ynab."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from csv2ynab import __version__
from csv2ynab.config import (
    AmountMode,
    ConfigError,
    ConfigStore,
    MappingConfig,
    Settings,
    load_config,
)
from csv2ynab.models.transaction import YNAB_FIELDS, CanonicalRow, ProcessingStats
from csv2ynab.output import YNABExporter, default_export_name
from csv2ynab.parsers import CSVParser, ParsedCSV, ParseError
from csv2ynab.processing import (
    detected_separator,
    initial_mapping,
    process_all,
    update_mapping,
)
from csv2ynab.utils.date_utils import DATE_FORMATS
from csv2ynab.utils.decimal_utils import DECIMAL_SEPARATORS
from csv2ynab.utils.logging_config import DEFAULT_LOG_FILE, LogContext, get_logger, setup_logging

console = Console()
logger = get_logger(__name__)

# Column options and the MappingConfig field each one sets
COLUMN_OPTIONS = {
    "date_column": "--date-column",
    "payee_column": "--payee-column",
    "memo_column": "--memo-column",
    "amount_column": "--amount-column",
    "outflow_column": "--outflow-column",
    "inflow_column": "--inflow-column",
}

# Boolean MappingConfig fields settable from the command line
FLAG_FIELDS = ["is_negative_outflow", "skip_empty_amount", "trim_whitespace", "auto_clean_payee"]


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="csv2ynab",
        description="Convert bank statement CSV exports into YNAB import files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s statement.csv
  %(prog)s statement.csv -o ynab.csv --decimal-separator ,
  %(prog)s statement.csv --outflow-column Debit --inflow-column Credit
  %(prog)s statement.csv --auto-clean-payee --payee-rule "AMZN=Amazon"
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "input_file",
        type=Path,
        help="Bank statement CSV file",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output file path (default: ynab-import-YYYY-MM-DD.csv)",
    )

    parser.add_argument(
        "--delimiter",
        default=None,
        help="Field delimiter of the input file (default: detected)",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: config/settings.yaml)",
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Base config directory (default: ./config)",
    )

    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Neither load nor save the remembered mapping for this file layout",
    )

    # Column mapping
    mapping_group = parser.add_argument_group("Column Mapping")
    for field_name, option in COLUMN_OPTIONS.items():
        mapping_group.add_argument(
            option,
            dest=field_name,
            default=None,
            metavar="COLUMN",
            help=f"Column for {field_name.replace('_column', '')}",
        )
    mapping_group.add_argument(
        "--swap-payee-memo",
        action="store_true",
        help="Exchange the payee and memo columns for this run (not remembered)",
    )

    # Parsing options
    parsing_group = parser.add_argument_group("Parsing")
    parsing_group.add_argument(
        "--date-format",
        choices=[value for value, _ in DATE_FORMATS],
        default=None,
        help="Date format of the input (default: auto)",
    )
    parsing_group.add_argument(
        "--decimal-separator",
        choices=list(DECIMAL_SEPARATORS),
        default=None,
        help="Decimal separator of amounts (default: detected)",
    )
    parsing_group.add_argument(
        "--positive-outflow",
        dest="is_negative_outflow",
        action="store_const",
        const=False,
        help="Treat positive amounts as outflows",
    )
    parsing_group.add_argument(
        "--negative-outflow",
        dest="is_negative_outflow",
        action="store_const",
        const=True,
        help="Treat negative amounts as outflows (default)",
    )
    parsing_group.add_argument(
        "--keep-empty-amount",
        dest="skip_empty_amount",
        action="store_const",
        const=False,
        help="Keep rows whose amount is empty",
    )
    parsing_group.add_argument(
        "--skip-empty-amount",
        dest="skip_empty_amount",
        action="store_const",
        const=True,
        help="Skip rows whose amount is empty (default)",
    )
    parsing_group.add_argument(
        "--no-trim",
        dest="trim_whitespace",
        action="store_const",
        const=False,
        help="Keep surrounding whitespace in payee and memo",
    )
    parsing_group.add_argument(
        "--trim",
        dest="trim_whitespace",
        action="store_const",
        const=True,
        help="Trim whitespace in payee and memo (default)",
    )

    # Payee cleanup
    payee_group = parser.add_argument_group("Payee Cleanup")
    payee_group.add_argument(
        "--auto-clean-payee",
        dest="auto_clean_payee",
        action="store_const",
        const=True,
        help="Strip common bank noise like 'POS Purchase' from payees",
    )
    payee_group.add_argument(
        "--no-auto-clean-payee",
        dest="auto_clean_payee",
        action="store_const",
        const=False,
        help="Leave payees as exported by the bank",
    )
    payee_group.add_argument(
        "--payee-rule",
        action="append",
        default=[],
        metavar="MATCH=REPLACEMENT",
        help="Replace payees containing MATCH with REPLACEMENT (repeatable, first match wins)",
    )
    payee_group.add_argument(
        "--remove-rule",
        action="append",
        type=int,
        default=[],
        metavar="INDEX",
        help="Remove a remembered payee rule by its 1-based position (repeatable)",
    )

    # Output options
    parser.add_argument(
        "--preview",
        type=int,
        default=None,
        metavar="N",
        help="Number of converted rows to show (default: from settings, 50)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Convert and show results without writing the output file",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def parse_rule(spec: str) -> tuple[str, str]:
    """Split a MATCH=REPLACEMENT rule argument.

    Args:
        spec: Rule text from the command line.

    Returns:
        Tuple of (match, replacement).

    Raises:
        ValueError: If there is no '=' or the match is empty.
    """
    match, sep, replacement = spec.partition("=")
    if not sep or not match:
        raise ValueError(f"Invalid payee rule '{spec}', expected MATCH=REPLACEMENT")
    return match, replacement


def collect_changes(args: argparse.Namespace, headers: list[str]) -> dict[str, object]:
    """Gather mapping edits requested on the command line.

    Args:
        args: Parsed command-line arguments.
        headers: Column headers of the input file.

    Returns:
        MappingConfig field values to set.

    Raises:
        ValueError: If a named column does not exist in the file.
    """
    changes: dict[str, object] = {}

    for field_name, option in COLUMN_OPTIONS.items():
        column = getattr(args, field_name)
        if column is None:
            continue
        if column and column not in headers:
            raise ValueError(
                f"{option}: column '{column}' not found. "
                f"Available columns: {', '.join(headers)}"
            )
        changes[field_name] = column

    if args.outflow_column is not None or args.inflow_column is not None:
        changes["amount_mode"] = AmountMode.SEPARATE
    elif args.amount_column is not None:
        changes["amount_mode"] = AmountMode.SINGLE

    if args.date_format is not None:
        changes["date_format"] = args.date_format
    if args.decimal_separator is not None:
        changes["decimal_separator"] = args.decimal_separator

    for field_name in FLAG_FIELDS:
        value = getattr(args, field_name)
        if value is not None:
            changes[field_name] = value

    return changes


def apply_rule_edits(config: MappingConfig, args: argparse.Namespace) -> MappingConfig:
    """Apply --remove-rule and --payee-rule edits.

    Adding a rule that already exists is a no-op, so repeating a command
    against a remembered mapping leaves it unchanged.

    Args:
        config: Current mapping.
        args: Parsed command-line arguments.

    Returns:
        Edited mapping.

    Raises:
        ValueError: On malformed rules or out-of-range indexes.
    """
    # Remove from the highest index down so positions stay stable
    for position in sorted(set(args.remove_rule), reverse=True):
        if not 1 <= position <= len(config.payee_rules):
            raise ValueError(
                f"--remove-rule {position}: there are {len(config.payee_rules)} rules"
            )
        config = config.without_rule(position - 1)

    for spec in args.payee_rule:
        match, replacement = parse_rule(spec)
        config = config.with_rule(match, replacement)

    return config


def display_mapping(config: MappingConfig, suggested_separator: str) -> None:
    """Display the mapping in use.

    Args:
        config: Mapping applied to the file.
        suggested_separator: Separator detected from the amount column.
    """
    table = Table(title="Column Mapping", show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Date column", escape(config.date_column) or "[red]-[/red]")
    table.add_row("Payee column", escape(config.payee_column) or "-")
    table.add_row("Memo column", escape(config.memo_column) or "-")
    table.add_row("Amount mode", config.amount_mode.value)
    if config.amount_mode == AmountMode.SINGLE:
        table.add_row("Amount column", escape(config.amount_column) or "[red]-[/red]")
        table.add_row(
            "Sign",
            "negative = outflow" if config.is_negative_outflow else "positive = outflow",
        )
    else:
        table.add_row("Outflow column", escape(config.outflow_column) or "-")
        table.add_row("Inflow column", escape(config.inflow_column) or "-")
    table.add_row("Date format", config.date_format)
    table.add_row("Decimal separator", repr(config.decimal_separator))
    table.add_row("Skip empty amounts", "yes" if config.skip_empty_amount else "no")
    table.add_row("Trim whitespace", "yes" if config.trim_whitespace else "no")
    table.add_row("Auto-clean payees", "yes" if config.auto_clean_payee else "no")
    for i, rule in enumerate(config.payee_rules, 1):
        table.add_row(f"Payee rule {i}", escape(f"{rule.match!r} -> {rule.replacement!r}"))

    console.print(table)

    if suggested_separator != config.decimal_separator:
        console.print(
            f"[yellow]Amounts look like they use {suggested_separator!r} as decimal "
            f"separator; pass --decimal-separator {suggested_separator} to switch.[/yellow]"
        )


def display_preview(rows: list[CanonicalRow], limit: int) -> None:
    """Display the first converted rows.

    Args:
        rows: Converted rows.
        limit: Maximum rows to show.
    """
    if limit <= 0 or not rows:
        return

    table = Table(title=f"Preview (first {min(limit, len(rows))} of {len(rows)})")
    for name in YNAB_FIELDS:
        justify = "right" if name in ("Outflow", "Inflow") else "left"
        table.add_column(name, justify=justify)

    for row in rows[:limit]:
        table.add_row(
            row.date,
            escape(row.payee),
            escape(row.memo),
            f"[red]{row.outflow}[/red]" if row.outflow else "",
            f"[green]{row.inflow}[/green]" if row.inflow else "",
        )

    console.print(table)


def display_summary(stats: ProcessingStats) -> None:
    """Display processing summary.

    Args:
        stats: Statistics for the conversion.
    """
    console.print("\n[bold]Processing Summary[/bold]")
    console.print(f"  Total rows: {stats.total_rows:,}")
    console.print(f"  Valid rows: {stats.valid_rows:,}")
    console.print(f"  Skipped rows: {stats.skipped_rows:,}")
    console.print(f"  Total inflow: {stats.total_inflow:,.2f}")
    console.print(f"  Total outflow: {stats.total_outflow:,.2f}")
    net_style = "green" if stats.net >= 0 else "red"
    console.print(f"  Net: [{net_style}]{stats.net:,.2f}[/{net_style}]")


def read_input(args: argparse.Namespace) -> Optional[ParsedCSV]:
    """Read the input file, reporting problems on the console.

    Args:
        args: Parsed command-line arguments.

    Returns:
        ParsedCSV, or None if the file could not be read.
    """
    input_file: Path = args.input_file
    parser = CSVParser()

    if not input_file.exists():
        console.print(f"[red]Error: Input file not found: {input_file}[/red]")
        return None
    if not input_file.is_file():
        console.print(f"[red]Error: Not a file: {input_file}[/red]")
        return None
    if not parser.can_parse(input_file):
        console.print(
            f"[red]Error: Please provide a CSV file "
            f"({', '.join(parser.supported_extensions)}): {input_file}[/red]"
        )
        return None

    try:
        with console.status("[bold green]Reading statement..."):
            return parser.parse(input_file, delimiter=args.delimiter)
    except ParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.warning(f"{input_file.name}: {e}")
        return None


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments to parse (default: sys.argv).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = get_log_level(args.verbose)
    setup_logging(level=log_level, console_output=args.verbose > 0)

    try:
        settings = load_config(settings_path=args.config, config_dir=args.config_dir)
    except (ConfigError, OSError) as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        return 1

    if settings.logging.file != DEFAULT_LOG_FILE:
        setup_logging(
            level=log_level,
            log_file=settings.logging.file,
            console_output=args.verbose > 0,
        )

    console.print(f"[bold]csv2ynab v{__version__}[/bold]\n")

    parsed = read_input(args)
    if parsed is None:
        return 1

    console.print(
        f"Read {parsed.row_count:,} rows with {len(parsed.headers)} columns "
        f"(delimiter {parsed.delimiter!r})"
    )

    return convert(args, settings, parsed)


def convert(args: argparse.Namespace, settings: Settings, parsed: ParsedCSV) -> int:
    """Resolve the mapping, transform rows and write the YNAB file.

    Args:
        args: Parsed command-line arguments.
        settings: Loaded settings.
        parsed: Input headers and records.

    Returns:
        Exit code.
    """
    sample_rows = parsed.sample(settings.sample_size)

    store: Optional[ConfigStore] = None
    if settings.cache.enabled and not args.no_cache:
        store = ConfigStore(settings.cache.path)

    saved = store.load(parsed.headers) if store else None
    if saved is not None:
        console.print("[dim]Using remembered mapping for this file layout[/dim]")
    config, has_initial_config = initial_mapping(parsed.headers, sample_rows, saved)

    try:
        changes = collect_changes(args, parsed.headers)
        if changes:
            config = update_mapping(config, sample_rows, has_initial_config, **changes)
        config = apply_rule_edits(config, args)
    except (ValueError, ConfigError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    # The swap applies to this run only; the remembered mapping stays unswapped
    remembered = config
    if args.swap_payee_memo:
        config = config.swap_payee_memo()

    display_mapping(config, detected_separator(config, sample_rows))

    errors = config.validation_errors()
    if errors:
        console.print("\n[red]Mapping is incomplete:[/red]")
        for err in errors:
            console.print(f"  - {err}")
        console.print(f"Available columns: {', '.join(parsed.headers)}")
        return 1

    with LogContext(logger, "conversion", file=args.input_file.name, rows=parsed.row_count):
        result = process_all(parsed.records, config)

    preview_rows = args.preview if args.preview is not None else settings.output.preview_rows
    display_preview(result.rows, preview_rows)
    display_summary(result.stats)

    if store is not None:
        store.save(parsed.headers, remembered)

    if args.dry_run:
        console.print("\n[yellow]Dry run - no output generated[/yellow]")
        return 0

    if not result.rows:
        console.print("\n[yellow]No rows could be converted; nothing written.[/yellow]")
        return 1

    output_path = args.output or Path(settings.output.directory) / default_export_name()
    exporter = YNABExporter(sanitize_formulas=settings.output.sanitize_formulas)
    try:
        exporter.export(output_path, result.rows)
    except OSError as e:
        console.print(f"[red]Error: Could not write {output_path}: {e}[/red]")
        return 1

    console.print(f"\n[green]YNAB file written to {output_path}[/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
