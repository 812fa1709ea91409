"""Logs command — show the audit trail."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from riskguard.cli.context import account_store, get_config

console = Console()

_STATUS_COLORS = {"Success": "green", "Warning": "yellow", "Failed": "red", "Error": "bold red"}


@click.command()
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=20,
    show_default=True,
    help="Maximum number of entries to show.",
)
@click.pass_context
def logs(ctx: click.Context, limit: int) -> None:
    """Show recent audit log entries, newest first."""
    entries = account_store(get_config(ctx)).get_logs()[:limit]

    if not entries:
        console.print("[yellow]No audit log entries.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("Time", width=19, style="dim")
    table.add_column("Action", min_width=18)
    table.add_column("User", min_width=16)
    table.add_column("Status", width=8)
    table.add_column("Details", min_width=20)

    for entry in entries:
        color = _STATUS_COLORS.get(entry.status.value, "white")
        table.add_row(
            entry.timestamp[:19].replace("T", " "),
            entry.action,
            entry.user or "-",
            f"[{color}]{entry.status.value}[/{color}]",
            entry.description or "",
        )

    console.print(table)
