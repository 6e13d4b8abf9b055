"""
CLI interface for Pool Club Billing.

Front desk access to table sessions and bills.
"""

import logging
import sys
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from pool_club_billing.client.session_api import (
    SessionApiClient,
    SessionApiError,
    StaffIdentity
)
from pool_club_billing.config.loader import AppConfig, resolve_config
from pool_club_billing.core.billing import BillBreakdown, compute_bill
from pool_club_billing.core.desk import EndGamePreview, FrontDesk
from pool_club_billing.core.rates import RatePolicy
from pool_club_billing.core.tables import PoolTable, TableSession, parse_timestamp

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

_config_path: Optional[str] = None


def _load_config() -> AppConfig:
    return resolve_config(_config_path)


def _get_desk(config: AppConfig) -> FrontDesk:
    """Build a front desk wired to the configured session store."""
    client = SessionApiClient(
        base_url=config.api.base_url,
        timeout=config.api.timeout_seconds
    )
    return FrontDesk(client, rate=config.rates, table_count=config.tables.count)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML config (defaults to $POOL_CLUB_CONFIG)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """Pool Club Billing CLI."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if ctx.invoked_subcommand is None:
        console.print("Pool Club Billing - Use --help to see available commands")


@app.command()
def quote(
    start: str = typer.Option(..., "--start", "-s", help="Session start (ISO-8601)"),
    end: str = typer.Option(..., "--end", "-e", help="Session end (ISO-8601)"),
    rate: Optional[float] = typer.Option(
        None,
        "--rate",
        "-r",
        help="Hourly rate, overrides the configured rate"
    )
):
    """Compute the bill for a session interval without touching the API."""
    try:
        config = _load_config()
        policy = config.rates
        if rate is not None:
            policy = RatePolicy(
                hourly_rate=Decimal(str(rate)),
                grace_threshold_minutes=config.rates.grace_threshold_minutes
            )
        start_time = parse_timestamp(start)
        end_time = parse_timestamp(end)
        breakdown = compute_bill(start_time, end_time, policy)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_receipt(breakdown, config.currency, start_time=start_time, end_time=end_time)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def tables():
    """Show which tables are free and which have a game in progress."""
    try:
        config = _load_config()
        board = _get_desk(config).refresh()
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_board(board)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def start(
    table_id: int = typer.Argument(..., help="Table number"),
    player: str = typer.Argument(..., help="Player name"),
    staff: str = typer.Option("", "--staff", help="Staff member's first name"),
    staff_id: str = typer.Option("", "--staff-id", help="Staff member's user id")
):
    """Start a game on a free table."""
    try:
        config = _load_config()
        _get_desk(config).start_game(table_id, player, StaffIdentity(staff, staff_id))
    except SessionApiError as e:
        console.print(f"[red]Failed to start the game. Please try again.[/] ({e})")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[green]✓[/] Game Started for Table No: {table_id}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def end(
    table_id: int = typer.Argument(..., help="Table number"),
    staff: str = typer.Option("", "--staff", help="Staff member's first name"),
    staff_id: str = typer.Option("", "--staff-id", help="Staff member's user id"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Close the game without asking for confirmation"
    )
):
    """
    End the game on a table.

    The end time is captured when the command runs. The receipt is shown
    before anything is recorded, and the game is only closed once confirmed.
    """
    try:
        config = _load_config()
        desk = _get_desk(config)
        preview = desk.preview_end(table_id)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_preview(preview, config.currency)

    if not yes and not typer.confirm("Close game?"):
        console.print("[yellow]Cancelled[/] - game is still running")
        sys.exit(EXIT_CODE_PASS)

    try:
        desk.finalize_end(preview, StaffIdentity(staff, staff_id))
    except SessionApiError as e:
        console.print(f"[red]Failed to end the game. Please try again.[/] ({e})")
        sys.exit(EXIT_CODE_FAIL)

    console.print("[green]✓[/] Game successfully ended.")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def history():
    """List every recorded session."""
    try:
        config = _load_config()
        records = _get_desk(config).client.list_all_sessions() or []
        sessions = [TableSession.from_api(record) for record in records]
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_history(sessions, config.currency)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def earnings():
    """Show the earnings summary reported by the session store."""
    try:
        config = _load_config()
        summary = _get_desk(config).client.get_earnings_summary()
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_earnings(summary)
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: float, currency: str) -> str:
    """Format an amount with the club's currency label."""
    return f"{currency}: {amount:,.2f}"


def _format_time(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M:%S") if value else "-"


def _display_receipt(
    breakdown: BillBreakdown,
    currency: str,
    player: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None
):
    """Display a bill the way the front desk receipt lays it out."""
    console.print("\n[bold]Game Receipt[/bold]")
    console.print("-" * 40)
    if player:
        console.print(f"Player: {player}")
    console.print(f"Start Time: {_format_time(start_time)}")
    console.print(f"End Time: {_format_time(end_time)}")
    console.print(f"Total Time: {breakdown.total_minutes} minutes")
    console.print("-" * 40)
    console.print(f"Initial Charge (60 min): {_format_currency(breakdown.initial_charge, currency)}")
    if breakdown.additional_minutes > 0:
        console.print(f"Additional Time: {breakdown.additional_minutes} minutes")
    if breakdown.additional_charge > 0:
        console.print(f"Additional Charge: {_format_currency(breakdown.additional_charge, currency)}")
    console.print(f"[bold]Total Bill: {_format_currency(breakdown.total_bill, currency)}[/bold]\n")


def _display_preview(preview: EndGamePreview, currency: str):
    _display_receipt(
        preview.breakdown,
        currency,
        player=preview.table.occupant,
        start_time=preview.table.start_time,
        end_time=preview.table.end_time
    )


def _display_board(board: List[PoolTable]):
    table = Table(title="Pool Club Tables")
    table.add_column("Table", justify="right")
    table.add_column("Status")
    table.add_column("Player")
    table.add_column("Start Time")
    for pool_table in board:
        status = "[red]Game Started[/]" if pool_table.occupied else "[green]Available[/]"
        table.add_row(
            str(pool_table.id),
            status,
            pool_table.occupant or "-",
            _format_time(pool_table.start_time)
        )
    console.print(table)


def _display_history(sessions: List[TableSession], currency: str):
    if not sessions:
        console.print("[dim]No sessions recorded yet.[/]")
        return

    table = Table(title="Past Sessions")
    table.add_column("Table", justify="right")
    table.add_column("Player")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Total", justify="right")
    for session in sessions:
        table.add_row(
            str(session.table_id) if session.table_id else "-",
            session.player_name or "-",
            session.start_time.isoformat(sep=" ", timespec="minutes") if session.start_time else "-",
            session.end_time.isoformat(sep=" ", timespec="minutes") if session.end_time else "-",
            _format_currency(session.total_amount, currency) if session.total_amount else "-"
        )
    console.print(table)


def _display_earnings(summary: Dict[str, Any]):
    if not summary:
        console.print("[dim]No earnings reported.[/]")
        return

    table = Table(title="Earnings Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    items = summary.items() if isinstance(summary, dict) else enumerate(summary)
    for key, value in items:
        if isinstance(value, float):
            value = f"{value:,.2f}"
        elif isinstance(value, int) and not isinstance(value, bool):
            value = f"{value:,}"
        table.add_row(str(key), str(value))
    console.print(table)


if __name__ == "__main__":
    app()
