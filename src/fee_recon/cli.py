"""
Command-line interface for the fee payment reconciliation tool.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import load_config, generate_default_config, ReconConfig
from .models.transaction import ReconciliationResult, ReconciliationSummary
from .parsers.statement_parser import StatementParser
from .repository.payment_repository import FilePaymentRepository
from .matching.engine import ReconciliationEngine
from .reports.excel_generator import ExcelReportGenerator
from .reports.exporters import export_csv, export_json
from .utils.exceptions import ReconciliationError
from .utils.logging_config import setup_logging

console = Console()

PREVIEW_ROWS = 20


@click.group()
@click.version_option(version=__version__)
def main():
    """Fee Payment Bank Reconciliation Tool."""
    pass


@main.command()
@click.argument("statement_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-p",
    "--payments",
    "payments_file",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Recorded payments export (CSV, JSON or XLSX)",
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output report path")
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["xlsx", "csv", "json"]),
    default="xlsx",
    show_default=True,
    help="Report format",
)
@click.option(
    "--date-tolerance", type=int, default=None, help="Override date tolerance in days"
)
@click.option(
    "--tie-break",
    type=click.Choice(["first_eligible", "closest_date"]),
    default=None,
    help="Override the tie-break policy",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Reconcile and show summary without writing a report"
)
def reconcile(
    statement_file: Path,
    payments_file: Path,
    config: Optional[Path],
    output: Optional[Path],
    output_format: str,
    date_tolerance: Optional[int],
    tie_break: Optional[str],
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile a bank statement with recorded fee payments.

    STATEMENT_FILE: Path to the bank statement (XLSX or CSV)
    """
    try:
        recon_config = load_config(config)
        _setup_logging(recon_config, verbose)

        if date_tolerance is not None:
            if date_tolerance < 0:
                raise click.BadParameter("must not be negative", param_hint="--date-tolerance")
            recon_config.matching.date_tolerance_days = date_tolerance
        if tie_break is not None:
            recon_config.matching.tie_break = tie_break

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Parsing bank statement...", total=None)
            parser = StatementParser(recon_config)
            transactions = parser.parse_file(statement_file)
            progress.update(task, completed=True)

            task = progress.add_task("Running reconciliation...", total=None)
            start_time = datetime.now()

            repository = FilePaymentRepository(payments_file, recon_config.payments)
            engine = ReconciliationEngine(recon_config, repository)
            result = engine.reconcile(transactions)

            processing_time = (datetime.now() - start_time).total_seconds()
            progress.update(task, completed=True)

        if result.is_empty:
            console.print(
                "[yellow]No credit transactions found. The statement contains no "
                "incoming payments to reconcile.[/yellow]"
            )
            return

        summary = engine.generate_summary(
            result,
            statement_filename=statement_file.name,
            processing_time=processing_time,
        )
        _display_summary(summary, recon_config)
        _display_unmatched(result, recon_config)

        if dry_run:
            console.print("\n[yellow]Dry run - no report generated[/yellow]")
            return

        report_path = _write_report(recon_config, summary, result, output, output_format)
        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except click.BadParameter:
        raise
    except ReconciliationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command("parse-statement")
@click.argument("statement_file", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def parse_statement(statement_file: Path, config: Optional[Path]):
    """
    Parse a bank statement and display its transactions.

    STATEMENT_FILE: Path to the bank statement (XLSX or CSV)
    """
    try:
        recon_config = load_config(config)
        parser = StatementParser(recon_config)
        transactions = parser.parse_file(statement_file)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {escape(str(e))}[/red]")
        sys.exit(1)

    currency = recon_config.output.currency
    table = Table(title=f"Statement Transactions: {statement_file.name}")
    table.add_column("Row", justify="right")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Type")

    for txn in transactions[:PREVIEW_ROWS]:
        table.add_row(
            str(txn.source_row_index),
            str(txn.date),
            txn.description[:40] + "..." if len(txn.description) > 40 else txn.description,
            f"{currency} {txn.amount:,.2f}",
            "credit" if txn.is_credit else "debit",
        )

    console.print(table)

    if len(transactions) > PREVIEW_ROWS:
        console.print(f"\n... and {len(transactions) - PREVIEW_ROWS} more transactions")

    credits = sum(1 for txn in transactions if txn.is_credit)
    console.print(f"\nTotal transactions: {len(transactions)} ({credits} credits)")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _setup_logging(config: ReconConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else config.logging.level
    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(level, log_file=log_file, log_format=config.logging.format)


def _write_report(
    config: ReconConfig,
    summary: ReconciliationSummary,
    result: ReconciliationResult,
    output: Optional[Path],
    output_format: str,
) -> Path:
    if output is None:
        now = datetime.now()
        name = config.output.excel.filename_template.format(
            date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")
        )
        output = Path(name).with_suffix(f".{output_format}")

    if output_format == "csv":
        return export_csv(result, output)
    if output_format == "json":
        return export_json(result, summary, output)
    return ExcelReportGenerator(config).generate_report(summary, result, output)


def _display_summary(summary: ReconciliationSummary, config: ReconConfig) -> None:
    """Display reconciliation summary in console."""
    currency = config.output.currency
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Payment Window", f"{summary.window_start} to {summary.window_end}")
    table.add_row("Statement Credits", str(summary.total_credits))
    table.add_row("Debits Excluded", str(summary.excluded_debits))
    table.add_row("Recorded Payments", str(summary.total_recorded_payments))
    table.add_row("Matched", str(summary.matched_count))
    table.add_row("Unmatched from Bank", str(summary.unmatched_bank_count))
    table.add_row("Unmatched from Portal", str(summary.unmatched_recorded_count))
    table.add_row("Total Matched", f"{currency} {summary.total_matched:,.2f}")
    table.add_row("Total Unmatched from Bank", f"{currency} {summary.total_unmatched_bank:,.2f}")
    table.add_row(
        "Total Unmatched from Portal", f"{currency} {summary.total_unmatched_recorded:,.2f}"
    )
    table.add_row("Bank Match Rate", f"{summary.match_rate_bank:.1f}%")
    table.add_row("Processing Time", f"{summary.processing_time_seconds:.2f}s")

    console.print(table)


def _display_unmatched(result: ReconciliationResult, config: ReconConfig) -> None:
    currency = config.output.currency

    if result.unmatched_bank:
        table = Table(title="Unmatched from Bank Statement")
        table.add_column("Row", justify="right")
        table.add_column("Bank Date")
        table.add_column("Description")
        table.add_column("Amount", justify="right")
        for txn in result.unmatched_bank[:PREVIEW_ROWS]:
            table.add_row(
                str(txn.source_row_index),
                str(txn.date),
                txn.description,
                f"{currency} {txn.amount:,.2f}",
            )
        console.print(table)

    if result.unmatched_recorded:
        table = Table(title="Unmatched from Portal Records")
        table.add_column("Portal Date")
        table.add_column("Student Name")
        table.add_column("Amount", justify="right")
        table.add_column("Method")
        for payment in result.unmatched_recorded[:PREVIEW_ROWS]:
            table.add_row(
                str(payment.payment_day),
                payment.student_name,
                f"{currency} {payment.amount_paid:,.2f}",
                payment.payment_method,
            )
        console.print(table)


if __name__ == "__main__":
    main()
