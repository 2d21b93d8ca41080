"""
Command-line interface for ch_schema_dump.

Provides dump and inspect commands for ClickHouse catalogs, read either
from a live server or from a YAML catalog file.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ch_schema_dump import __version__
from ch_schema_dump.exceptions import CatalogUnavailable
from ch_schema_dump.metadata import ClickHouseCatalog, SnapshotBuilder, YamlCatalog
from ch_schema_dump.models import DumpConfig, SchemaSnapshot
from ch_schema_dump.output import get_renderer

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def connection_options(f):
    """Options shared by commands that read a catalog."""
    options = [
        click.option("--config", "config_file", type=click.Path(exists=True, path_type=Path), default=None,
                     help="YAML config file (clickhouse connection, simple, ignore_tables, format)"),
        click.option("--catalog-file", type=click.Path(path_type=Path), default=None,
                     help="Read the catalog from a YAML file instead of a server"),
        click.option("--host", type=str, default=None, help="ClickHouse host (default: localhost)"),
        click.option("--port", type=int, default=None, help="ClickHouse HTTP port (default: 8123)"),
        click.option("--user", type=str, default=None, help="ClickHouse user (default: default)"),
        click.option("--password", type=str, default=None, envvar="CLICKHOUSE_PASSWORD",
                     help="ClickHouse password (or CLICKHOUSE_PASSWORD)"),
        click.option("--database", type=str, default=None, help="Database to dump (default: default)"),
        click.option("--secure", is_flag=True, default=None, help="Connect over HTTPS"),
        click.option("--ignore", "ignore", multiple=True,
                     help="Regular expression of table names to skip (repeatable)"),
        click.option("--simple", is_flag=True, default=None,
                     help="Omit engine options and signedness, strip CASTs from defaults"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def load_config(
    config_file: Optional[Path],
    host: Optional[str],
    port: Optional[int],
    user: Optional[str],
    password: Optional[str],
    database: Optional[str],
    secure: Optional[bool],
    ignore: Tuple[str, ...],
    simple: Optional[bool],
) -> DumpConfig:
    """Build the run config: config file first, then command-line overrides."""
    config = DumpConfig.from_yaml(config_file) if config_file else DumpConfig()

    if host is not None:
        config.host = host
    if port is not None:
        config.port = port
    if user is not None:
        config.username = user
    if password is not None:
        config.password = password
    if database is not None:
        config.database = database
    if secure:
        config.secure = True
    if simple:
        config.simple = True
    config.ignore_tables = list(config.ignore_tables) + list(ignore)
    return config


def build_from_config(config: DumpConfig, catalog_file: Optional[Path]) -> SchemaSnapshot:
    """Read the catalog named by the config and build a snapshot."""
    if catalog_file:
        catalog = YamlCatalog.from_file(catalog_file)
        return SnapshotBuilder(catalog, ignore_tables=config.ignore_tables, simple=config.simple).build()

    with ClickHouseCatalog(
        host=config.host,
        port=config.port,
        username=config.username,
        password=config.password,
        database=config.database,
        secure=config.secure,
    ) as catalog:
        return SnapshotBuilder(catalog, ignore_tables=config.ignore_tables, simple=config.simple).build()


@click.group()
@click.version_option(version=__version__, prog_name="ch-schema-dump")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    ClickHouse Schema Dump - catalog translator for ClickHouse

    Dump functions, tables and materialized views as an engine-neutral
    schema description or as native DDL.
    """
    setup_logging(verbose)


@cli.command()
@connection_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["schema", "sql"]),
    default=None,
    help="Output format (default: schema)",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file (default: stdout)",
)
def dump(
    config_file: Optional[Path],
    catalog_file: Optional[Path],
    host: Optional[str],
    port: Optional[int],
    user: Optional[str],
    password: Optional[str],
    database: Optional[str],
    secure: Optional[bool],
    ignore: Tuple[str, ...],
    simple: Optional[bool],
    output_format: Optional[str],
    output: Optional[Path],
) -> None:
    """
    Dump a ClickHouse catalog.

    Examples:

        # Dump a live database as a schema description
        ch-schema-dump dump --host localhost --database analytics

        # Dump native DDL to a file, skipping temporary tables
        ch-schema-dump dump --database analytics --format sql \\
            --ignore 'tmp_.*' --output schema.sql

        # Dump from a captured YAML catalog
        ch-schema-dump dump --catalog-file catalog.yaml
    """
    config = load_config(config_file, host, port, user, password, database, secure, ignore, simple)
    if output_format:
        config.output_format = output_format

    try:
        renderer = get_renderer(config.output_format, simple=config.simple)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    try:
        snapshot = build_from_config(config, catalog_file)
    except CatalogUnavailable as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if output:
        with open(output, "w") as f:
            failures = renderer.render(snapshot, f)
        console.print(f"[green]Schema written to: {output}[/green]")
    else:
        failures = renderer.render(snapshot, sys.stdout)

    if failures:
        console.print(f"[yellow]{len(failures)} object(s) could not be dumped; see comments in output[/yellow]")


@cli.command()
@connection_options
def inspect(
    config_file: Optional[Path],
    catalog_file: Optional[Path],
    host: Optional[str],
    port: Optional[int],
    user: Optional[str],
    password: Optional[str],
    database: Optional[str],
    secure: Optional[bool],
    ignore: Tuple[str, ...],
    simple: Optional[bool],
) -> None:
    """
    Summarize a ClickHouse catalog.

    Example:

        ch-schema-dump inspect --catalog-file catalog.yaml
    """
    config = load_config(config_file, host, port, user, password, database, secure, ignore, simple)

    try:
        snapshot = build_from_config(config, catalog_file)
    except CatalogUnavailable as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    out = Console()
    table = Table(title=f"Catalog: {snapshot.database or config.database}")
    table.add_column("Object", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Engine", style="blue")
    table.add_column("Columns", style="green", justify="right")
    table.add_column("Indexes", style="yellow", justify="right")
    table.add_column("Warnings", style="red", justify="right")

    for obj in snapshot.ordered():
        descriptor = snapshot.get_descriptor(obj.name)
        if descriptor is None:
            table.add_row(obj.name, obj.kind.value, "-", "-", "-", "-")
            continue
        table.add_row(
            obj.name,
            obj.kind.value,
            descriptor.engine or "-",
            str(len(descriptor.columns)),
            str(len(descriptor.indexes)),
            str(len(descriptor.warnings)),
        )

    out.print(table)


if __name__ == "__main__":
    cli()
