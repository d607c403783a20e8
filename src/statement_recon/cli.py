"""
Command-line interface for the statement reconciliation tool.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import json
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import load_config, generate_default_config, ReconConfig
from .matching.session import ReconciliationSession
from .models.transaction import MatchCandidate, ReconciliationSummary, TransactionSource
from .reports.excel_generator import ExcelReportGenerator
from .store.csv_store import CsvTransactionStore, parse_transaction_file
from .utils.exceptions import ReconciliationError
from .utils.logging_config import level_from_name, setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Bank statement to ledger reconciliation tool."""
    pass


@main.command()
@click.argument("bank_file", type=click.Path(exists=True, path_type=Path))
@click.argument("recorded_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option(
    "--decisions-out",
    type=click.Path(path_type=Path),
    help="Write exported decisions as JSON",
)
@click.option(
    "--min-confidence", type=float, default=None, help="Override minimum candidate confidence"
)
@click.option(
    "--auto-accept",
    type=float,
    default=None,
    help="Bulk-accept candidates at or above this confidence",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--dry-run", is_flag=True, help="Show summary without writing any files")
def reconcile(
    bank_file: Path,
    recorded_file: Path,
    config: Optional[Path],
    output: Optional[Path],
    decisions_out: Optional[Path],
    min_confidence: Optional[float],
    auto_accept: Optional[float],
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile a bank statement export with recorded ledger transactions.

    BANK_FILE: Path to the bank statement CSV

    RECORDED_FILE: Path to the ledger CSV export
    """
    try:
        recon_config = load_config(config)
        _setup_logging(recon_config, verbose)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Loading transactions...", total=None)
            store = CsvTransactionStore(bank_file, recorded_file, recon_config)
            session = ReconciliationSession(store, recon_config)
            progress.update(task, completed=True)

            task = progress.add_task("Scoring candidates...", total=None)
            candidates = session.list_candidates(min_confidence)
            progress.update(task, completed=True)

            if auto_accept is not None:
                task = progress.add_task("Accepting high-confidence matches...", total=None)
                accepted = session.bulk_accept(auto_accept)
                progress.update(task, completed=True)
                console.print(f"[green]Accepted {len(accepted)} matches[/green]")

        _display_candidates(session.current_candidates() if auto_accept is not None else candidates)
        _display_summary(session.summary())

        if dry_run:
            console.print("\n[yellow]Dry run - no files written[/yellow]")
            return

        if decisions_out is not None:
            _write_decisions(session, decisions_out)
            console.print(f"[green]Decisions written: {decisions_out}[/green]")

        if output is None:
            output = _default_report_path(recon_config)

        report_path = ExcelReportGenerator(recon_config).generate_report(session, output)
        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("bank_file", type=click.Path(exists=True, path_type=Path))
@click.argument("recorded_file", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
@click.option("--min-confidence", type=float, default=None)
def candidates(
    bank_file: Path,
    recorded_file: Path,
    config: Optional[Path],
    min_confidence: Optional[float],
):
    """
    Show ranked match candidates without recording any decisions.

    BANK_FILE: Path to the bank statement CSV

    RECORDED_FILE: Path to the ledger CSV export
    """
    try:
        recon_config = load_config(config)
        store = CsvTransactionStore(bank_file, recorded_file, recon_config)
        session = ReconciliationSession(store, recon_config)
        found = session.list_candidates(min_confidence)
    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    _display_candidates(found)
    console.print(f"\nTotal candidates: {len(found)}")


@main.command("show-transactions")
@click.argument("csv_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--side",
    type=click.Choice([s.value for s in TransactionSource]),
    default=TransactionSource.BANK.value,
    show_default=True,
)
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def show_transactions(csv_file: Path, side: str, config: Optional[Path]):
    """
    Parse a CSV export and display a transaction preview.

    CSV_FILE: Path to a bank statement or ledger CSV
    """
    source = TransactionSource(side)

    try:
        recon_config = load_config(config)
        side_config = (
            recon_config.input.bank
            if source == TransactionSource.BANK
            else recon_config.input.recorded
        )
        transactions = parse_transaction_file(csv_file, side_config, source)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"{source.value.title()} Transactions: {csv_file.name}")
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("Reference")
    table.add_column("Amount", justify="right")
    table.add_column("Type")
    table.add_column("Description")

    for txn in transactions[:20]:  # Show first 20
        table.add_row(
            txn.id,
            str(txn.date),
            txn.reference or "-",
            f"${txn.amount:,.2f}",
            txn.type.value,
            txn.description[:40] + "..." if len(txn.description) > 40 else txn.description,
        )

    console.print(table)

    if len(transactions) > 20:
        console.print(f"\n... and {len(transactions) - 20} more transactions")

    console.print(f"\nTotal transactions: {len(transactions)}")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _setup_logging(config: ReconConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else level_from_name(config.logging.level)
    setup_logging(level, log_file=config.logging.file, log_format=config.logging.format)


def _display_candidates(found: list[MatchCandidate]) -> None:
    """Display ranked candidates in console."""
    table = Table(title="Match Candidates")
    table.add_column("Candidate", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Reason")

    for candidate in found:
        table.add_row(
            candidate.id,
            f"{candidate.confidence:.2f}",
            str(candidate.date_distance_days),
            candidate.reason.value,
        )

    console.print(table)


def _display_summary(summary: ReconciliationSummary) -> None:
    """Display reconciliation summary in console."""
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total Bank Transactions", str(summary.total_bank_transactions))
    table.add_row("Total Recorded Transactions", str(summary.total_recorded_transactions))
    table.add_row("Accepted", str(summary.matched_count))
    table.add_row("Manual", str(summary.manual_count))
    table.add_row("Open Suggestions", str(summary.suggested_count))
    table.add_row("Bank Unmatched", str(summary.bank_unmatched_count))
    table.add_row("Recorded Unmatched", str(summary.recorded_unmatched_count))
    table.add_row("Bank Match Rate", f"{summary.match_rate_bank:.1f}%")

    console.print(table)


def _write_decisions(session: ReconciliationSession, path: Path) -> None:
    payload = {
        "session_id": session.id,
        "decisions": [d.to_dict() for d in session.export_decisions()],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(payload, f, indent=2)


def _default_report_path(config: ReconConfig) -> Path:
    template = config.output.excel.filename_template
    if not config.output.excel.include_timestamp:
        return Path(template.replace("_{date}", "").replace("_{time}", ""))
    now = datetime.now()
    return Path(template.format(date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")))


if __name__ == "__main__":
    main()
