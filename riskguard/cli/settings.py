"""Settings command — view and update platform credentials."""

from __future__ import annotations

import dataclasses

import click
from rich.console import Console
from rich.table import Table

from riskguard.cli.context import account_store, get_config, settings_store
from riskguard.domain.models import AuditStatus
from riskguard.security.redaction import mask_secret

console = Console()


@click.group()
def settings() -> None:
    """View or update zero-trust platform credentials."""


@settings.command("show")
@click.pass_context
def show_settings(ctx: click.Context) -> None:
    """Show stored settings (the API key is masked)."""
    current = settings_store(get_config(ctx)).get_settings()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Account ID", current.account_id or "[dim]not set[/dim]")
    table.add_row("Email", current.email or "[dim]not set[/dim]")
    table.add_row("API key", mask_secret(current.api_key) or "[dim]not set[/dim]")
    cf = current.cloudflare_contact
    table.add_row("Platform contact", f"{cf.name} ({cf.role}, {cf.team}) <{cf.email}>")
    cust = current.customer_contact
    table.add_row("Customer", f"{cust.customer_name}: {cust.name} ({cust.role}) <{cust.email}>")
    console.print(table)


@settings.command("set")
@click.option("--account-id", default=None, help="Platform account identifier.")
@click.option("--email", default=None, help="Account email used with a global API key.")
@click.option(
    "--api-key",
    default=None,
    help="API key or scoped API token.",
)
@click.pass_context
def set_settings(
    ctx: click.Context,
    account_id: str | None,
    email: str | None,
    api_key: str | None,
) -> None:
    """Update stored credentials. Unspecified fields keep their value."""
    if account_id is None and email is None and api_key is None:
        raise click.UsageError("Provide at least one of --account-id, --email, --api-key.")

    config = get_config(ctx)
    store = settings_store(config)
    current = store.get_settings()

    changes = {}
    if account_id is not None:
        changes["account_id"] = account_id.strip()
    if email is not None:
        changes["email"] = email.strip()
    if api_key is not None:
        changes["api_key"] = api_key.strip()

    updated = dataclasses.replace(current, **changes)
    store.update_settings(updated)
    account_store(config).add_log(
        "API Credentials Updated",
        updated.email,
        AuditStatus.SUCCESS,
        ", ".join(sorted(changes)),
    )
    console.print("[green]Settings saved.[/green]")
