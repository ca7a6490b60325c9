"""Command-line interface for SchemaFlow.

This module provides the CLI commands for installing the system tables,
previewing DDL and inspecting collections.
"""

import json
import uuid
from typing import NoReturn

import click

from schemaflow import __version__
from schemaflow.core.config import get_settings
from schemaflow.core.exceptions import SchemaFlowError
from schemaflow.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="SchemaFlow")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """SchemaFlow - data-defined collections with a record lifecycle pipeline."""
    # One correlation ID per command invocation
    bind_correlation_id(f"cid_{uuid.uuid4().hex[:12]}")
    ctx.call_on_close(clear_context)


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates the system tables and the administrator and public groups.
    """
    from schemaflow.infrastructure.persistence.database import create_db_engine
    from schemaflow.infrastructure.persistence.system_tables import (
        create_system_tables,
        seed_default_groups,
    )

    settings = get_settings()
    configure_logging(settings)

    if not force:
        click.confirm(
            "This will create the system tables. Continue?",
            abort=True,
            default=False,
        )

    engine = create_db_engine(settings)
    try:
        create_system_tables(engine)
        created = seed_default_groups(engine, settings)
    finally:
        engine.dispose()

    click.echo(f"Database initialized successfully ({len(created)} group(s) created).")


@cli.command()
@click.argument("collection")
@click.argument("fields_file", type=click.File("r"))
@click.option(
    "--dialect",
    type=click.Choice(["mysql", "sqlite", "postgresql"]),
    default="sqlite",
    show_default=True,
    help="SQL dialect to compile for",
)
def ddl(collection: str, fields_file, dialect: str) -> None:
    """Print the CREATE TABLE statement for a JSON list of field descriptions."""
    from schemaflow.domain.services.schema_manager import SchemaManager
    from schemaflow.infrastructure.persistence.schema_source import CatalogSchemaSource
    from schemaflow.infrastructure.persistence.table_builder import TableBuilder

    configure_logging(get_settings())

    try:
        descriptions = json.load(fields_file)
    except ValueError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="FIELDS_FILE") from e

    if not isinstance(descriptions, list):
        raise click.BadParameter("expected a JSON list of field descriptions", param_hint="FIELDS_FILE")

    builder = TableBuilder(SchemaManager(CatalogSchemaSource(dialect)))
    with LoggingContext(collection=collection, dialect=dialect):
        try:
            sql_statements = builder.build_table(builder.create_table(collection, descriptions))
        except SchemaFlowError as e:
            raise click.ClickException(str(e)) from e

    for sql in sql_statements:
        click.echo(f"{sql};")


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include system collections")
def collections(show_all: bool) -> None:
    """List the collections of the configured database."""
    from schemaflow.domain.services.schema_manager import SchemaManager
    from schemaflow.infrastructure.persistence.database import create_db_engine
    from schemaflow.infrastructure.persistence.sqlalchemy_schema import SQLAlchemySchemaSource

    settings = get_settings()
    configure_logging(settings)

    engine = create_db_engine(settings)
    try:
        manager = SchemaManager(SQLAlchemySchemaSource(engine))
        for name, collection in sorted(manager.get_collections().items()):
            if collection.system and not show_all:
                continue
            primary_key = collection.primary_key_name or "-"
            click.echo(f"{name}\t{len(collection.fields)} fields\tpk={primary_key}")
    finally:
        engine.dispose()


@cli.command()
def info() -> None:
    """Display SchemaFlow configuration."""
    settings = get_settings()

    click.echo(f"""
SchemaFlow v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Files:
  Root URL:     {settings.files_root_url}
  Thumbnails:   {settings.files_thumbnail_url}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `schemaflow` command is run
    or when using `python -m schemaflow`.
    """
    cli()


if __name__ == "__main__":
    main()
