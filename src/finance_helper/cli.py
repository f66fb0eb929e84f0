"""Command-line interface for finance-helper."""

import argparse
import sys
from pathlib import Path
from typing import Callable, Optional

import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from finance_helper import __version__
from finance_helper.config import Config, ConfigError, default_config_dir, load_config
from finance_helper.models.category import CategoryType
from finance_helper.models.mapping import ColumnMapping
from finance_helper.models.report import CompareMode, MonthlyMetric, ReportView, SpendingReport
from finance_helper.models.transaction import Transaction
from finance_helper.parsers import ParseError, discover_files
from finance_helper.processing.pipeline import ImportPipeline
from finance_helper.processing.report_generator import (
    compare_monthly,
    forecast_next_month,
    generate_report,
)
from finance_helper.storage import (
    FormatError,
    RuleStore,
    StoreError,
    TransactionStore,
    dump_json,
    export_backup,
    export_categories_and_rules,
    export_merchant_aliases,
    import_categories_and_rules,
    import_merchant_aliases,
    load_json,
    load_rule_store,
    save_rule_store,
)
from finance_helper.utils.decimal_utils import format_currency
from finance_helper.utils.logging_config import get_logger, setup_logging
from finance_helper.utils.regex_utils import compile_user_pattern

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="finance-helper",
        description="Import bank and credit card CSV statements, categorize and report on them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s import ./statements
  %(prog)s add-category Groceries --type expense
  %(prog)s add-rule "supermarket|PAK\\s*N\\s*SAVE" --category Groceries
  %(prog)s reclassify --force
  %(prog)s report --month 2024-03 --view expense
  %(prog)s export report.xlsx
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: <config-dir>/settings.yaml)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Configuration directory (default: $FINANCE_HELPER_CONFIG_DIR or ./config)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the rule store and transactions (overrides settings)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    import_parser = subparsers.add_parser("import", help="Import CSV statements")
    import_parser.add_argument("paths", nargs="+", type=Path, help="CSV files or directories")
    import_parser.add_argument(
        "--mapping",
        type=Path,
        default=None,
        help="YAML or JSON column mapping to use instead of header inference",
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be imported without saving",
    )

    reclassify_parser = subparsers.add_parser(
        "reclassify", help="Re-run categorization and merchant normalization"
    )
    reclassify_parser.add_argument(
        "--force",
        action="store_true",
        help="Clear existing categories before matching",
    )

    report_parser = subparsers.add_parser("report", help="Show spending report")
    _add_report_arguments(report_parser)
    report_parser.add_argument(
        "--compare",
        choices=[m.value for m in CompareMode],
        default=None,
        help="Add month-over-month or year-over-year comparison",
    )
    report_parser.add_argument(
        "--metric",
        choices=[m.value for m in MonthlyMetric],
        default=MonthlyMetric.EXPENSE.value,
        help="Metric for comparison and forecast (default: expense)",
    )

    export_parser = subparsers.add_parser("export", help="Export transactions and report")
    export_parser.add_argument(
        "output",
        type=Path,
        help="Output .xlsx file, or a directory for CSV files",
    )
    _add_report_arguments(export_parser)

    for name, help_text in (
        ("backup", "Write all transactions to a JSON backup"),
        ("export-rules", "Export categories and rules to JSON"),
        ("export-aliases", "Export merchant aliases to JSON"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("output", type=Path, help="Destination JSON file")

    for name, help_text in (
        ("restore", "Merge transactions from a JSON backup"),
        ("import-rules", "Import categories and rules from JSON"),
        ("import-aliases", "Import merchant aliases from JSON"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("input", type=Path, help="Source JSON file")

    category_parser = subparsers.add_parser("add-category", help="Create a category")
    category_parser.add_argument("name", help="Unique category name")
    category_parser.add_argument(
        "--type",
        choices=[t.value for t in CategoryType],
        default=CategoryType.EXPENSE.value,
        help="Category type (default: expense)",
    )
    category_parser.add_argument("--color", default=None, help="Display color, e.g. #4CAF50")

    rule_parser = subparsers.add_parser("add-rule", help="Create a category rule")
    rule_parser.add_argument("pattern", help="Regular expression matched against merchant and note")
    rule_parser.add_argument("--category", required=True, help="Name of the target category")
    rule_parser.add_argument("--flags", default="i", help="Regex flags (default: i)")

    alias_parser = subparsers.add_parser("add-alias", help="Create a merchant alias")
    alias_parser.add_argument("pattern", help="Regular expression matched against merchant and note")
    alias_parser.add_argument("canonical_name", help="Canonical merchant name")
    alias_parser.add_argument("--flags", default="i", help="Regex flags (default: i)")

    clear_parser = subparsers.add_parser("clear", help="Delete all stored transactions")
    clear_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    subparsers.add_parser("validate", help="Validate settings and stored rules")

    return parser


def _add_report_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--month", default=None, help="Restrict to one month (YYYY-MM)")
    parser.add_argument(
        "--view",
        choices=[v.value for v in ReportView],
        default=ReportView.ALL.value,
        help="Transactions covered by the breakdowns (default: all)",
    )


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


class AppContext:
    """Configuration and store locations shared by all commands."""

    def __init__(self, config: Config, data_dir: Optional[Path] = None):
        self.config = config
        if data_dir is not None:
            config.storage.data_dir = str(data_dir)
        self.rules_path = config.storage.rules_path
        self.transactions = TransactionStore(config.storage.transactions_path)

    def load_rules(self) -> RuleStore:
        return load_rule_store(self.rules_path)

    def save_rules(self, store: RuleStore) -> None:
        save_rule_store(store, self.rules_path)

    def pipeline(self, store: Optional[RuleStore] = None) -> ImportPipeline:
        return ImportPipeline(store or self.load_rules(), self.config)


def load_mapping(path: Path) -> ColumnMapping:
    """Read a column mapping from a YAML or JSON file.

    Raises:
        ValueError: If the file does not describe a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of column roles")
    return ColumnMapping.from_dict(data)


def import_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Import CSV statements into the transaction store."""
    mapping = None
    if args.mapping:
        try:
            mapping = load_mapping(args.mapping)
        except (OSError, ValueError, yaml.YAMLError) as e:
            console.print(f"[red]Error: Invalid mapping file: {e}[/red]")
            return 1

    files = discover_files(args.paths)
    if not files:
        console.print("[yellow]No CSV statements found.[/yellow]")
        return 0

    pipeline = ctx.pipeline()
    transactions = ctx.transactions.load()
    starting_count = len(transactions)

    table = Table(title="Import Summary")
    table.add_column("File")
    table.add_column("Rows", justify="right")
    table.add_column("Accepted", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Template")

    errors: list[str] = []
    for file_path in files:
        with console.status(f"[bold green]Importing {file_path.name}..."):
            try:
                result = pipeline.ingest_file(file_path, transactions, mapping)
            except (ParseError, OSError) as e:
                errors.append(f"{file_path.name}: {e}")
                logger.warning(f"Failed to import {file_path}: {e}")
                continue
        transactions = result.transactions
        table.add_row(
            file_path.name,
            str(result.total_rows),
            str(result.accepted_count),
            str(result.added_count),
            (result.mapping.template if result.mapping else None) or "custom",
        )

    console.print(table)
    added = len(transactions) - starting_count
    console.print(f"Imported {added} new transactions ({len(transactions)} total)")

    if errors:
        console.print(f"\n[red]Errors ({len(errors)}):[/red]")
        for error in errors:
            console.print(f"  - {error}")

    if args.dry_run:
        console.print("\n[yellow]Dry run - nothing saved[/yellow]")
    elif added:
        ctx.transactions.save(transactions)

    return 1 if errors and not added else 0


def reclassify_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Re-run classification of stored transactions against the current rules."""
    transactions = ctx.transactions.load()
    if not transactions:
        console.print("[yellow]No transactions stored.[/yellow]")
        return 0

    pipeline = ctx.pipeline()
    with console.status("[bold green]Reclassifying transactions..."):
        pipeline.reclassify(transactions, force=args.force)
        pipeline.renormalize_merchants(transactions)
    ctx.transactions.replace(transactions)

    categorized = sum(1 for t in transactions if t.category)
    console.print(
        f"[green]Reclassified {len(transactions)} transactions "
        f"({categorized} categorized)[/green]"
    )
    return 0


def _build_report(args: argparse.Namespace, ctx: AppContext) -> tuple[list[Transaction], SpendingReport]:
    transactions = ctx.transactions.load()
    report = generate_report(
        transactions,
        view=ReportView(args.view),
        month=args.month,
        top_n=ctx.config.report.top_merchants,
    )
    return transactions, report


def _amount_table(title: str, label: str, rows: list, symbol: str) -> Table:
    table = Table(title=title)
    table.add_column(label)
    table.add_column("Amount", justify="right")
    for row in rows:
        table.add_row(row.name, format_currency(row.value, symbol))
    return table


def report_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Print a spending report for the stored transactions."""
    transactions, report = _build_report(args, ctx)
    if not transactions:
        console.print("[yellow]No transactions stored.[/yellow]")
        return 0

    symbol = ctx.config.report.currency_symbol
    console.print(f"\n[bold]Spending Report[/bold] ({report.month or 'all months'}, {report.view.value})")
    console.print(f"  Transactions: {report.transaction_count}")
    console.print(f"  Income:   {format_currency(report.totals.income, symbol)}")
    console.print(f"  Expenses: {format_currency(report.totals.expense, symbol)}")
    console.print(f"  Net:      {format_currency(report.totals.net, symbol)}\n")

    console.print(_amount_table("By Category", "Category", report.by_category, symbol))
    console.print(_amount_table("By Account", "Account", report.by_account, symbol))
    console.print(_amount_table("Top Merchants", "Merchant", report.top_merchants, symbol))

    metric = MonthlyMetric(args.metric)
    monthly = Table(title=f"Monthly ({metric.value})")
    monthly.add_column("Month")
    monthly.add_column("Income", justify="right")
    monthly.add_column("Expense", justify="right")
    monthly.add_column("Net", justify="right")
    reference: list = []
    if args.compare:
        reference = compare_monthly(report.monthly, CompareMode(args.compare), metric)
        monthly.add_column(f"{args.compare.upper()} reference", justify="right")

    for index, month in enumerate(report.monthly):
        cells = [
            month.month,
            format_currency(month.income, symbol),
            format_currency(month.expense, symbol),
            format_currency(month.net, symbol),
        ]
        if args.compare:
            value = reference[index]
            cells.append("-" if value is None else format_currency(value, symbol))
        monthly.add_row(*cells)
    console.print(monthly)

    forecast = forecast_next_month(report.monthly, metric, ctx.config.report.forecast_window)
    if forecast is not None:
        month_key, value = forecast
        console.print(f"Forecast {metric.value} for {month_key}: {format_currency(value, symbol)}")
    return 0


def export_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Write transactions and the report to Excel or CSV files."""
    from finance_helper.output import CSVExporter, ExcelWriter

    transactions, report = _build_report(args, ctx)
    if not transactions:
        console.print("[yellow]No transactions stored.[/yellow]")
        return 0

    if args.output.suffix.lower() == ".xlsx":
        ExcelWriter(ctx.config).write(args.output, transactions, report)
        console.print(f"[green]Excel file written to {args.output}[/green]")
    else:
        files = CSVExporter(ctx.config).export(args.output, transactions, report)
        console.print(f"[green]{len(files)} CSV files written to {args.output}[/green]")
    return 0


def _write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_json(payload), encoding="utf-8")


def _read_json(path: Path) -> object:
    return load_json(path.read_text(encoding="utf-8"))


def backup_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Write every stored transaction to a JSON backup."""
    transactions = ctx.transactions.load()
    if not transactions:
        console.print("[yellow]No transactions stored.[/yellow]")
        return 0
    _write_json(args.output, export_backup(transactions))
    console.print(f"[green]Backed up {len(transactions)} transactions to {args.output}[/green]")
    return 0


def restore_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Merge a JSON backup into the stored transactions."""
    existing = ctx.transactions.load()
    result = ctx.pipeline().restore_backup(_read_json(args.input), existing)
    if result.added_count:
        ctx.transactions.save(result.transactions)
    console.print(
        f"[green]Restored {result.added_count} new transactions "
        f"({result.duplicate_count} already present)[/green]"
    )
    return 0


def export_rules_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Export categories and rules to JSON."""
    store = ctx.load_rules()
    _write_json(args.output, export_categories_and_rules(store))
    console.print(
        f"[green]Exported {len(store.list_categories())} categories and "
        f"{len(store.list_rules())} rules to {args.output}[/green]"
    )
    return 0


def import_rules_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Import categories and rules from JSON."""
    store = ctx.load_rules()
    summary = import_categories_and_rules(store, _read_json(args.input))
    ctx.save_rules(store)
    console.print(
        f"[green]Categories and rules: {summary.created} created, "
        f"{summary.updated} updated, {summary.skipped} skipped[/green]"
    )
    console.print("Run [bold]reclassify[/bold] to apply the rules to stored transactions.")
    return 0


def export_aliases_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Export merchant aliases to JSON."""
    store = ctx.load_rules()
    _write_json(args.output, export_merchant_aliases(store))
    console.print(f"[green]Exported {len(store.list_aliases())} aliases to {args.output}[/green]")
    return 0


def import_aliases_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Import merchant aliases from JSON."""
    store = ctx.load_rules()
    summary = import_merchant_aliases(store, _read_json(args.input))
    ctx.save_rules(store)
    console.print(
        f"[green]Merchant aliases: {summary.created} created, {summary.updated} updated[/green]"
    )
    console.print("Run [bold]reclassify[/bold] to apply the aliases to stored transactions.")
    return 0


def add_category_command(args: argparse.Namespace, ctx: AppContext) -> int:
    store = ctx.load_rules()
    category = store.add_category(args.name, CategoryType(args.type), args.color)
    ctx.save_rules(store)
    console.print(f"[green]Created category {category.name} (id {category.id})[/green]")
    return 0


def add_rule_command(args: argparse.Namespace, ctx: AppContext) -> int:
    store = ctx.load_rules()
    category = store.find_category(args.category)
    if category is None:
        console.print(f"[red]Error: Category not found: {args.category}[/red]")
        return 1
    if compile_user_pattern(args.pattern, args.flags) is None:
        console.print(f"[yellow]Warning: pattern {args.pattern!r} is invalid and will be skipped[/yellow]")
    rule = store.add_rule(args.pattern, category.id, flags=args.flags)  # type: ignore[arg-type]
    ctx.save_rules(store)
    console.print(f"[green]Created rule {rule.id} for {category.name}[/green]")
    return 0


def add_alias_command(args: argparse.Namespace, ctx: AppContext) -> int:
    store = ctx.load_rules()
    if compile_user_pattern(args.pattern, args.flags, "alias") is None:
        console.print(f"[yellow]Warning: pattern {args.pattern!r} is invalid and will be skipped[/yellow]")
    alias = store.add_alias(args.pattern, args.canonical_name, flags=args.flags)
    ctx.save_rules(store)
    console.print(f"[green]Created alias {alias.id} -> {alias.canonical_name}[/green]")
    return 0


def clear_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Delete all stored transactions."""
    if not args.yes:
        answer = console.input("Delete all stored transactions? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            console.print("Cancelled.")
            return 0
    ctx.transactions.clear()
    console.print("[green]Transaction store cleared[/green]")
    return 0


def validate_command(args: argparse.Namespace, ctx: AppContext) -> int:
    """Validate settings, the rule store, and the transaction store.

    Returns:
        0 if valid, 1 if errors found.
    """
    console.print("[bold]Validating configuration...[/bold]\n")

    errors: list[str] = []
    warnings: list[str] = []

    try:
        store = ctx.load_rules()
        console.print(f"[green]✓[/green] Rule store: {ctx.rules_path}")
        console.print(f"  - {len(store.list_categories())} categories")
        console.print(f"  - {len(store.list_rules())} rules")
        console.print(f"  - {len(store.list_aliases())} merchant aliases")
        for rule in store.list_rules():
            if compile_user_pattern(rule.pattern, rule.flags, f"rule {rule.id}") is None:
                warnings.append(f"Rule {rule.id} pattern {rule.pattern!r} is invalid and skipped")
        for alias in store.list_aliases():
            if compile_user_pattern(alias.pattern, alias.flags, f"alias {alias.id}") is None:
                warnings.append(f"Alias {alias.id} pattern {alias.pattern!r} is invalid and skipped")
    except (StoreError, yaml.YAMLError) as e:
        errors.append(f"Failed to load rule store: {e}")

    try:
        transactions = ctx.transactions.load()
        console.print(f"[green]✓[/green] Transactions: {len(transactions)} stored")
    except FormatError as e:
        errors.append(f"Failed to load transactions: {e}")

    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for w in warnings:
            console.print(f"  - {w}")

    if errors:
        console.print("\n[red]Errors:[/red]")
        for err in errors:
            console.print(f"  - {err}")
        return 1

    console.print("\n[green]Configuration is valid.[/green]")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, AppContext], int]] = {
    "import": import_command,
    "reclassify": reclassify_command,
    "report": report_command,
    "export": export_command,
    "backup": backup_command,
    "restore": restore_command,
    "export-rules": export_rules_command,
    "import-rules": import_rules_command,
    "export-aliases": export_aliases_command,
    "import-aliases": import_aliases_command,
    "add-category": add_category_command,
    "add-rule": add_rule_command,
    "add-alias": add_alias_command,
    "clear": clear_command,
    "validate": validate_command,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments (defaults to ``sys.argv[1:]``).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    log_level = get_log_level(args.verbose)
    setup_logging(level=log_level, console_output=args.verbose > 0)

    config_dir = args.config_dir or default_config_dir()
    try:
        config = load_config(settings_path=args.config, config_dir=config_dir)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    # -v flags override the configured level
    if not args.verbose:
        log_level = config.logging.level
    setup_logging(
        level=log_level,
        log_file=config.logging.file or None,
        console_output=args.verbose > 0,
    )

    ctx = AppContext(config, args.data_dir)
    try:
        return COMMANDS[args.command](args, ctx)
    except (FormatError, StoreError, ParseError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
