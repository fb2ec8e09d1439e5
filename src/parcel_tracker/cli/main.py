#!/usr/bin/env python3
"""
Main CLI Entry Point for Parcel Tracker

Provides the command-line interface for capturing pages and working with the
record store.
"""

import logging
import os

import click

from ..core.config import get_config, reload_config


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    Parcel Tracker - Order and Shipment Records for Customs Declarations

    Captures order and tracking details from saved shopping pages and looks
    them up by tracking number when declaring forwarded packages.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    # Set environment if specified
    if config_env:
        os.environ["PARCELS_ENV"] = config_env
        reload_config()

    # Configure debug logging if requested
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("parcel_tracker").setLevel(logging.DEBUG)

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = get_config()

    if verbose:
        click.echo(f"Environment: {ctx.obj['config'].environment.value}")
        click.echo(f"Store file: {ctx.obj['config'].storage.store_file}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from parcel_tracker import __author__, __version__

    click.echo(f"Parcel Tracker v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Export Directory: {config_obj.export_dir}")
    click.echo(f"  Store File: {config_obj.storage.store_file}")
    click.echo(f"  Fuzzy Prefix Length: {config_obj.matching.fuzzy_prefix_length}")
    click.echo(f"  Active Sources: {', '.join(config_obj.extraction.active_sources)}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


# Import record commands
from .records import (  # noqa: E402
    capture,
    clear,
    delete,
    export,
    list_records,
    lookup,
    manual,
    match_page,
    pages,
    stats,
)

for command in (capture, lookup, list_records, stats, manual, delete, clear, export, match_page, pages):
    main.add_command(command)


if __name__ == "__main__":
    main()
