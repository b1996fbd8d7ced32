"""Tests for the export dispatcher."""

import json

import pytest

from schema.main import (
    ExportOptions,
    UnsupportedFormatError,
    export_filename,
    export_schema,
)
from schema.types import ExportFormat, Schema, SQLDialect

MARKERS = {
    ExportFormat.JSON: '{\n  "version": "1.0.0"',
    ExportFormat.SQL: "-- Schema: Blog",
    ExportFormat.PRISMA: "// Prisma schema generated from Blog",
    ExportFormat.DJANGO: '"""Django models generated from the Blog schema."""',
    ExportFormat.LARAVEL: "<?php",
    ExportFormat.TYPEORM: "import {",
}


@pytest.mark.parametrize("fmt", list(ExportFormat))
def test_every_format_is_dispatched(blog_schema: Schema, fmt: ExportFormat) -> None:
    """Each known format produces its own kind of output."""
    output = export_schema(blog_schema, ExportOptions(format=fmt))
    assert output.startswith(MARKERS[fmt])


def test_plain_strings_are_accepted(blog_schema: Schema) -> None:
    """Formats and dialects may be given as plain strings."""
    output = export_schema(
        blog_schema,
        ExportOptions(format="sql", sql_dialect="sqlite"),  # type: ignore[arg-type]
    )
    assert "-- Dialect: SQLITE" in output


def test_dialect_selects_prisma_provider(blog_schema: Schema) -> None:
    """The SQL dialect doubles as the Prisma datasource provider."""
    output = export_schema(
        blog_schema,
        ExportOptions(format=ExportFormat.PRISMA, sql_dialect=SQLDialect.SQLSERVER),
    )
    assert 'provider = "sqlserver"' in output


def test_json_positions_option(blog_schema: Schema) -> None:
    """Positions can be left out of JSON exports."""
    output = export_schema(
        blog_schema,
        ExportOptions(format=ExportFormat.JSON, include_positions=False),
    )
    assert all("position" not in table for table in json.loads(output)["tables"])


def test_unknown_format(blog_schema: Schema) -> None:
    """Unknown formats are rejected by name."""
    with pytest.raises(UnsupportedFormatError, match="Unsupported export format: xml"):
        export_schema(blog_schema, ExportOptions(format="xml"))


@pytest.mark.parametrize(
    ("options", "expected"),
    [
        (ExportOptions(format=ExportFormat.JSON), "blog.json"),
        (ExportOptions(format=ExportFormat.SQL), "blog-postgresql.sql"),
        (
            ExportOptions(format=ExportFormat.SQL, sql_dialect=SQLDialect.MYSQL),
            "blog-mysql.sql",
        ),
        (ExportOptions(format=ExportFormat.PRISMA), "blog.prisma"),
        (ExportOptions(format=ExportFormat.DJANGO), "blog-models.py"),
        (ExportOptions(format=ExportFormat.LARAVEL), "blog-migration.php"),
        (ExportOptions(format=ExportFormat.TYPEORM), "blog-entities.ts"),
    ],
)
def test_export_filename(options: ExportOptions, expected: str) -> None:
    """File names follow the format and dialect."""
    assert export_filename("blog", options) == expected


def test_export_filename_unknown_format() -> None:
    """File names are only suggested for known formats."""
    with pytest.raises(UnsupportedFormatError):
        export_filename("blog", ExportOptions(format="xml"))
