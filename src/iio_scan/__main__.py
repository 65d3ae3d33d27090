"""CLI entry point for iio-scan."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click

from .config import Config
from .exceptions import ScanError
from .logging_setup import configure_logging
from .scanner import Scanner


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="IIO_SCAN_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the logging level (e.g., DEBUG, INFO)."
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format."
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str], log_format: Optional[str]) -> None:
    """iio-scan - finds IIO contexts announced on the local network."""
    try:
        if config_file:
            cfg = Config.from_file(Path(config_file))
        else:
            cfg = Config()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()

    configure_logging(cfg.logging)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the contexts as JSON.")
@click.pass_context
def scan(ctx: click.Context, as_json: bool) -> None:
    """Discover, verify and describe IIO contexts."""
    config: Config = ctx.obj["config"]
    scanner = Scanner(app_config=config)
    results = []

    try:
        asyncio.run(scanner.scan(results))
    except KeyboardInterrupt:
        click.echo("\nScan interrupted by user.", err=True)
        sys.exit(130)
    except ScanError as e:
        click.echo(f"Scan failed: {e}", err=True)
        # Print what was described before the failure.
        if not results:
            sys.exit(1)

    if as_json:
        click.echo(json.dumps([info.model_dump() for info in results], indent=2))
    elif not results:
        click.echo("No contexts found.")
    else:
        for i, info in enumerate(results):
            click.echo(f"{i}: {info.description} [{info.uri}]")


@cli.command("discover-host")
@click.pass_context
def discover_host(ctx: click.Context) -> None:
    """Print address:port of the first advertised IIOD."""
    config: Config = ctx.obj["config"]
    scanner = Scanner(app_config=config)
    try:
        found = asyncio.run(scanner.discover_host())
    except ScanError as e:
        click.echo(f"Discovery failed: {e}", err=True)
        sys.exit(1)

    if found is None:
        click.echo("No host found.", err=True)
        sys.exit(1)
    address, port = found
    click.echo(f"{address}:{port}")


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"iio-scan v{__version__}")


@cli.command("config-show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
