"""kubereports CLI.

Commands:
    run          Run the collection service until SIGTERM/SIGINT
    collect      Run exactly one collection cycle and exit
    catalog      Show the report resources that are collected
    show-config  Print the configuration resolved from the environment
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from kubereports import __version__
from kubereports.catalog import REPORT_RESOURCES
from kubereports.config import ConfigError, load_config
from kubereports.models.config import ExporterConfig


def _load_or_exit() -> ExporterConfig:
    try:
        return load_config()
    except ValueError as exc:  # ConfigError included
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """kubereports: export Trivy reports from Kubernetes to S3 and/or disk."""


@cli.command()
def run() -> None:
    """Run the collection service (same as ``python -m kubereports``)."""
    from kubereports.app import main

    asyncio.run(main())


@cli.command()
def collect() -> None:
    """Run one collection cycle and exit.

    Exits 0 even when some resources failed; failures are in the logs.
    """
    from kubereports.app import _ComponentError, run_once

    config = _load_or_exit()
    try:
        failures = asyncio.run(run_once(config))
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)
    except _ComponentError as exc:
        click.echo(f"Startup error: {exc}", err=True)
        sys.exit(1)
    if failures:
        click.echo(f"{failures} resource type(s) failed; see logs", err=True)


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include disabled resources.")
@click.option("--json", "as_json", is_flag=True, help="Output JSON.")
def catalog(show_all: bool, as_json: bool) -> None:
    """Show the report resources collected each cycle, in order."""
    entries = [r for r in REPORT_RESOURCES if show_all or r.enabled]
    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "name": r.name,
                        "kind": r.kind,
                        "fileName": r.document_name,
                        "apiVersion": r.api_version,
                        "enabled": r.enabled,
                    }
                    for r in entries
                ],
                indent=2,
            )
        )
        return
    for r in entries:
        marker = "" if r.enabled else "  (disabled)"
        click.echo(f"{r.name:<30} {r.kind:<28} {r.document_name}{marker}")


@cli.command("show-config")
def show_config() -> None:
    """Print the configuration resolved from the environment as JSON."""
    config = _load_or_exit()
    click.echo(json.dumps(config.summary(), indent=2, sort_keys=True))
