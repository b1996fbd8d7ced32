"""Export dispatch: one entry point for every output format."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from schema.django_export import schema_to_django
from schema.json_export import schema_to_json
from schema.laravel_export import schema_to_laravel
from schema.prisma_export import schema_to_prisma
from schema.sql_export import schema_to_sql
from schema.typeorm_export import schema_to_typeorm
from schema.types import ExportFormat, SQLDialect

if TYPE_CHECKING:
    from schema.types import Schema

logger = getLogger(__name__)


class UnsupportedFormatError(ValueError):
    """Raised for an export or import format outside the known set."""

    def __init__(self, fmt: str, direction: str = "export") -> None:
        """Name the offending format in the message."""
        self.format = fmt
        super().__init__(f"Unsupported {direction} format: {fmt}")


@dataclass(frozen=True)
class ExportOptions:
    """What to export and how."""

    format: ExportFormat | str
    sql_dialect: SQLDialect = SQLDialect.POSTGRESQL
    include_positions: bool = True
    include_descriptions: bool = True


def _export_format(fmt: ExportFormat | str) -> ExportFormat:
    try:
        return ExportFormat(fmt)
    except ValueError:
        raise UnsupportedFormatError(str(fmt)) from None


def export_schema(schema: Schema, options: ExportOptions) -> str:
    """Render a schema in the requested format.

    Raises:
        UnsupportedFormatError: If ``options.format`` is not a known format.

    """
    fmt = _export_format(options.format)
    logger.debug("Exporting schema %r as %s", schema.name, fmt)
    descriptions = options.include_descriptions

    match fmt:
        case ExportFormat.JSON:
            return schema_to_json(schema, include_positions=options.include_positions)
        case ExportFormat.SQL:
            return schema_to_sql(
                schema,
                SQLDialect(options.sql_dialect),
                include_descriptions=descriptions,
            )
        case ExportFormat.PRISMA:
            return schema_to_prisma(
                schema,
                provider=SQLDialect(options.sql_dialect),
                include_descriptions=descriptions,
            )
        case ExportFormat.DJANGO:
            return schema_to_django(schema, include_descriptions=descriptions)
        case ExportFormat.LARAVEL:
            return schema_to_laravel(schema, include_descriptions=descriptions)
        case ExportFormat.TYPEORM:
            return schema_to_typeorm(schema, include_descriptions=descriptions)


def export_filename(name: str, options: ExportOptions) -> str:
    """Suggested file name for an export."""
    match _export_format(options.format):
        case ExportFormat.JSON:
            return f"{name}.json"
        case ExportFormat.SQL:
            return f"{name}-{SQLDialect(options.sql_dialect)}.sql"
        case ExportFormat.PRISMA:
            return f"{name}.prisma"
        case ExportFormat.DJANGO:
            return f"{name}-models.py"
        case ExportFormat.LARAVEL:
            return f"{name}-migration.php"
        case ExportFormat.TYPEORM:
            return f"{name}-entities.ts"
