"""Assess command — run a shadow-AI assessment for the stored account."""

from __future__ import annotations

import asyncio
import os
from contextlib import suppress
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel

from riskguard.adapters.zero_trust import ZeroTrustEventSource
from riskguard.cli.context import TOOL_REGISTRY, account_store, get_config, settings_store
from riskguard.domain.errors import RiskGuardError
from riskguard.engine.assessment import run_assessment
from riskguard.engine.report import render_markdown
from riskguard.narrative.insights import FALLBACK_INSIGHTS
from riskguard.narrative.orchestrator import create_orchestrator
from riskguard.tools.dispatcher import ToolDispatcher

console = Console()

_RISK_COLORS = {"Low": "bold green", "Medium": "yellow", "High": "bold red"}


@click.command()
@click.option(
    "--stream",
    is_flag=True,
    default=False,
    help="Print the narrative model's output live as it is generated.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write the report to a Markdown file.",
)
@click.pass_context
def assess(ctx: click.Context, stream: bool, output_path: Path | None) -> None:
    """Run a shadow AI assessment and save the report."""
    config = get_config(ctx)
    current = settings_store(config).get_settings()
    store = account_store(config)

    source = ZeroTrustEventSource(current, config.platform)
    orchestrator = create_orchestrator(config.llm, ToolDispatcher(registry=TOOL_REGISTRY))

    def _sink(text: str) -> None:
        console.print(text, end="", markup=False, highlight=False)

    try:
        report = asyncio.run(
            run_assessment(
                current,
                source,
                store,
                orchestrator=orchestrator,
                config=config.assessment,
                ai_type_id=config.platform.ai_app_type_id,
                on_chunk=_sink if stream else None,
            )
        )
    except RiskGuardError as err:
        console.print(f"[red]{err}[/red]")
        ctx.exit(1)

    if stream:
        console.print()
        if report.ai_insights == FALLBACK_INSIGHTS:
            console.print("[yellow]AI narrative unavailable; showing fixed insights.[/yellow]")

    color = _RISK_COLORS.get(report.risk_level.value, "white")
    s = report.summary
    console.print(
        Panel(
            f"[bold]{report.score}/100[/bold]  Risk: [{color}]{report.risk_level.value}[/{color}]\n"
            f"AI apps: {s.ai_apps}  Shadow: {s.shadow_ai_apps} ({s.shadow_usage:.1f}%)  "
            f"Unapproved: {s.unapproved_apps}  Exfiltration: {s.data_exfiltration_kb} KB\n"
            f"[dim]{report.id}[/dim]",
            title="[bold]Shadow AI Assessment[/bold]",
            expand=False,
        )
    )

    if output_path is not None:
        output_path.write_text(render_markdown(report), encoding="utf-8")
        with suppress(OSError):
            os.chmod(output_path, 0o600)
        console.print(f"[green]Report written to {output_path}[/green]")
