"""Command line interface for Schema Studio."""

import logging
import sys
from pathlib import Path
from sys import stdout
from typing import Literal

from cyclopts import App
from ingest import import_schema, validate_django_models
from layout import layout_tables, recommend_layout
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from schema import (
    JsonImportError,
    Schema,
    SQLDialect,
    UnsupportedFormatError,
    export_filename,
    export_schema,
    schema_to_json,
    table_to_sql,
)
from schema.operations import touch

from schema_studio.settings import (
    Settings,
    default_settings_path,
    export_options,
    layout_options,
    load_settings,
)

app = App(help="Schema Studio CLI tool")

type SourceFormat = Literal["json", "django"]
type TargetFormat = Literal["json", "sql", "prisma", "django", "laravel", "typeorm"]
type Dialect = Literal["postgresql", "mysql", "sqlite", "sqlserver"]
type Algorithm = Literal["auto", "grid", "hierarchical", "force-directed", "circular"]

console = Console()
err_console = Console(stderr=True)

PYTHON_EXTENSIONS = {".py"}


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def configure_logging(*, verbose: bool) -> None:
    """Send library logging to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def setup(*, verbose: bool, config: Path | None) -> Settings:
    """Configure logging and load settings shared by all commands."""
    configure_logging(verbose=verbose)
    path = config or default_settings_path()
    if config is not None and not config.is_file():
        print_error(f"Settings file does not exist: {config}")
        sys.exit(1)
    try:
        settings = load_settings(path)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)
    if path is not None:
        print_info(f"Settings: {path}")
    return settings


def read_source(location: Path) -> str:
    """Read a source file or exit with an error."""
    if not location.is_file():
        print_error(f"Source file does not exist: {location}")
        sys.exit(1)
    try:
        return location.read_text(encoding="utf-8")
    except (PermissionError, OSError, UnicodeDecodeError) as e:
        print_error(f"Cannot read source file: {location} ({e})")
        sys.exit(1)


def guess_source_format(location: Path) -> SourceFormat:
    """Django for Python files, JSON for everything else."""
    return "django" if location.suffix.lower() in PYTHON_EXTENSIONS else "json"


def load_schema(location: Path, source_format: SourceFormat | None = None) -> Schema:
    """Import a schema from a file or exit with an error."""
    content = read_source(location)
    fmt = source_format or guess_source_format(location)
    print_info(f"Source: {location} ({fmt})")
    try:
        return import_schema(content, fmt)
    except (JsonImportError, UnsupportedFormatError) as e:
        print_error(str(e))
        sys.exit(1)


def write_output(text: str, output: Path | None) -> None:
    """Write to ``output`` when given, stdout otherwise."""
    if output is None:
        stdout.write(text)
        return
    try:
        output.write_text(text, encoding="utf-8")
    except (PermissionError, OSError) as e:
        print_error(f"Failed to write output file: {e}")
        sys.exit(1)
    print_success(f"Written to {output}")


def format_validation_table(errors: list[str]) -> None:
    """Format validation errors as a rich table."""
    table = Table(title="Django Model Validation")
    table.add_column("#", style="bold blue", justify="right")
    table.add_column("Problem", style="bold yellow")
    for index, error in enumerate(errors, start=1):
        table.add_row(str(index), error)
    console.print(table)


@app.command
def export(  # noqa: PLR0913
    source: Path,
    fmt: TargetFormat = "sql",
    *,
    source_format: SourceFormat | None = None,
    dialect: Dialect | None = None,
    output: Path | None = None,
    output_dir: Path | None = None,
    config: Path | None = None,
    verbose: bool = False,
) -> None:
    """Convert a JSON schema or Django models to another format.

    Parameters
    ----------
    source
        JSON schema document or Django models file.
    fmt
        Target format.
    source_format
        Override the format guessed from the file extension.
    dialect
        SQL dialect, also used as the Prisma datasource provider.
    output
        File to write, stdout when omitted.
    output_dir
        Directory to write into, using the suggested file name.
    config
        Settings file, ``schema-studio.toml`` in the working directory by default.
    verbose
        Show debug logging.

    """
    settings = setup(verbose=verbose, config=config)
    try:
        options = export_options(settings, fmt, dialect)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)

    schema = load_schema(source, source_format)
    print_info(f"Output format: {fmt}")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Generating output...", total=None)
        try:
            text = export_schema(schema, options)
        except UnsupportedFormatError as e:
            print_error(str(e))
            sys.exit(1)

    if output is None and output_dir is not None:
        output = output_dir / export_filename(source.stem, options)
    write_output(text, output)
    print_success(
        f"Exported {len(schema.tables)} tables and "
        f"{len(schema.relationships)} relationships",
    )


@app.command
def validate(source: Path, *, verbose: bool = False) -> None:
    """Check a Django models file for common problems."""
    configure_logging(verbose=verbose)
    result = validate_django_models(read_source(source))
    if result.valid:
        print_success(f"No problems found in {source}")
        return
    format_validation_table(result.errors)
    sys.exit(1)


@app.command
def layout(  # noqa: PLR0913
    source: Path,
    algorithm: Algorithm = "auto",
    *,
    source_format: SourceFormat | None = None,
    seed: int | None = None,
    output: Path | None = None,
    config: Path | None = None,
    verbose: bool = False,
) -> None:
    """Reposition the tables of a schema and write it back as JSON."""
    settings = setup(verbose=verbose, config=config)
    schema = load_schema(source, source_format)

    chosen = None if algorithm == "auto" else algorithm
    if chosen is None and "algorithm" not in settings.get("layout", {}):
        chosen = recommend_layout(schema.tables, schema.relationships)
    try:
        options = layout_options(settings, chosen, seed)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)
    print_info(f"Layout algorithm: {options.algorithm}")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Arranging tables...", total=None)
        tables = layout_tables(schema.tables, schema.relationships, options)

    write_output(schema_to_json(touch(schema, tables=tables)), output)


@app.command
def recommend(
    source: Path,
    *,
    source_format: SourceFormat | None = None,
    verbose: bool = False,
) -> None:
    """Suggest a layout algorithm for a schema."""
    configure_logging(verbose=verbose)
    schema = load_schema(source, source_format)
    console.print(recommend_layout(schema.tables, schema.relationships))


@app.command
def table(
    source: Path,
    name: str,
    dialect: Dialect = "postgresql",
    *,
    source_format: SourceFormat | None = None,
    descriptions: bool = False,
    verbose: bool = False,
) -> None:
    """Print the CREATE TABLE statement for one table."""
    configure_logging(verbose=verbose)
    schema = load_schema(source, source_format)
    selected = schema.table_named(name) or schema.table(name)
    if selected is None:
        print_error(f"Table not found: {name}")
        sys.exit(1)
    stdout.write(
        table_to_sql(
            selected,
            SQLDialect(dialect),
            schema=schema,
            include_descriptions=descriptions,
        ),
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
