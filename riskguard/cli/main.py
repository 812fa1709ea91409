"""CLI entry point for riskguard."""

from pathlib import Path

import click

from riskguard.cli.assess import assess
from riskguard.cli.logs import logs
from riskguard.cli.reports import reports
from riskguard.cli.settings import settings
from riskguard.config import load_config
from riskguard.log import configure_logging


@click.group()
@click.version_option(package_name="riskguard")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to a YAML config file (default: ~/.riskguard/config.yml).",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """RiskGuard — shadow AI risk assessment for zero-trust gateways."""
    configure_logging(verbose)
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as err:
        raise click.ClickException(str(err)) from err
    ctx.ensure_object(dict)["config"] = config


cli.add_command(assess)
cli.add_command(reports)
cli.add_command(logs)
cli.add_command(settings)
