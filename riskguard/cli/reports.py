"""Reports command — browse, render, and delete saved assessment reports."""

from __future__ import annotations

import os
from contextlib import suppress
from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from riskguard.cli.context import account_store, get_config, settings_store
from riskguard.domain.models import AuditStatus
from riskguard.engine.report import render_markdown

console = Console()

_RISK_COLORS = {"Low": "green", "Medium": "yellow", "High": "red"}


@click.group()
def reports() -> None:
    """Manage saved assessment reports (newest first, last 50 kept)."""


@reports.command("list")
@click.pass_context
def list_reports(ctx: click.Context) -> None:
    """List saved reports."""
    store = account_store(get_config(ctx))
    saved = store.list_reports()

    if not saved:
        console.print("[yellow]No reports saved yet. Run 'riskguard assess'.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("Report", min_width=24)
    table.add_column("Date", width=10)
    table.add_column("Score", width=6, justify="right")
    table.add_column("Risk", width=7)
    table.add_column("AI apps", width=8, justify="right")
    table.add_column("Shadow", width=7, justify="right")

    for report in saved:
        color = _RISK_COLORS.get(report.risk_level.value, "white")
        table.add_row(
            report.id,
            report.date,
            str(report.score),
            f"[{color}]{report.risk_level.value}[/{color}]",
            str(report.summary.ai_apps),
            str(report.summary.shadow_ai_apps),
        )

    console.print(table)


@reports.command("show")
@click.argument("report_id")
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the report to a Markdown file instead of printing to console.",
)
@click.option(
    "--redact-users",
    is_flag=True,
    default=False,
    help="Mask power-user emails in the output.",
)
@click.pass_context
def show_report(
    ctx: click.Context, report_id: str, output_path: Path | None, redact_users: bool
) -> None:
    """Render a saved report as Markdown."""
    store = account_store(get_config(ctx))
    report = store.get_report_by_id(report_id)
    if report is None:
        raise click.ClickException(f"No report with id '{report_id}'.")

    md_text = render_markdown(report, redact_users=redact_users)
    if output_path is not None:
        output_path.write_text(md_text, encoding="utf-8")
        with suppress(OSError):
            os.chmod(output_path, 0o600)
        console.print(f"[green]Report written to {output_path}[/green]")
    else:
        console.print(Markdown(md_text))


@reports.command("delete")
@click.argument("report_id")
@click.pass_context
def delete_report(ctx: click.Context, report_id: str) -> None:
    """Delete a saved report."""
    config = get_config(ctx)
    store = account_store(config)
    if store.get_report_by_id(report_id) is None:
        raise click.ClickException(f"No report with id '{report_id}'.")

    store.remove_report(report_id)
    user = settings_store(config).get_settings().email
    store.add_log("Report Deleted", user, AuditStatus.SUCCESS, report_id)
    console.print(f"[green]Deleted report {report_id}.[/green]")
