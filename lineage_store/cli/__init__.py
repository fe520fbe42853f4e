"""
Command Line Interface for the lineage store.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..errors import MetadataStoreError
from ..logging_config import configure_logging
from ..store import MetadataAccessObject

app = typer.Typer(help="Lineage Store - ML lineage metadata schema management")
console = Console()


def _open_store(database_url: Optional[str]) -> MetadataAccessObject:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    return MetadataAccessObject.from_url(database_url or settings.database_url)


def _fail(error: MetadataStoreError) -> None:
    console.print(Panel.fit(escape(str(error.to_dict())), title="❌ Error", style="bold red"))
    raise typer.Exit(code=1)


@app.command()
def init(
    database_url: Optional[str] = typer.Option(None, help="Database URL"),
    enable_upgrade_migration: Optional[bool] = typer.Option(
        None,
        "--enable-upgrade-migration/--no-enable-upgrade-migration",
        help="Upgrade an older schema to the library version",
    ),
):
    """Create the schema, or check (and optionally upgrade) an existing one."""
    if enable_upgrade_migration is None:
        enable_upgrade_migration = get_settings().enable_upgrade_migration
    store = _open_store(database_url)
    try:
        store.init_metadata_source_if_not_exists(enable_upgrade_migration)
        version = store.get_schema_version()
    except MetadataStoreError as error:
        _fail(error)
    finally:
        store.close()
    console.print(f"✅ Metadata source ready at schema version {version}")


@app.command()
def version(
    database_url: Optional[str] = typer.Option(None, help="Database URL"),
):
    """Show the stored schema version and the library version."""
    store = _open_store(database_url)
    try:
        library_version = store.get_library_version()
        try:
            schema_version = str(store.get_schema_version())
        except MetadataStoreError as error:
            schema_version = f"- ({error.code.value})"
    finally:
        store.close()

    table = Table(title="Schema Versions", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("Library", str(library_version))
    table.add_row("Metadata source", schema_version)
    console.print(table)


@app.command()
def downgrade(
    to_version: int = typer.Argument(..., help="Target schema version"),
    database_url: Optional[str] = typer.Option(None, help="Database URL"),
):
    """Step the schema back to an older version."""
    store = _open_store(database_url)
    try:
        store.downgrade_metadata_source(to_version)
    except MetadataStoreError as error:
        _fail(error)
    finally:
        store.close()
    console.print(f"✅ Downgraded metadata source to schema version {to_version}")


@app.command()
def reset(
    database_url: Optional[str] = typer.Option(None, help="Database URL"),
    yes: bool = typer.Option(False, "--yes", help="Confirm dropping all data"),
):
    """Drop every table and recreate the schema at the library version."""
    if not yes:
        console.print("❌ Refusing to drop data without --yes")
        raise typer.Exit(code=1)
    store = _open_store(database_url)
    try:
        store.init_metadata_source()
    except MetadataStoreError as error:
        _fail(error)
    finally:
        store.close()
    console.print(
        f"✅ Metadata source recreated at schema version {store.get_library_version()}"
    )


if __name__ == "__main__":
    app()
