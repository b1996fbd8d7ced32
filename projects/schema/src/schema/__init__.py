"""Schema model and exporters for JSON, SQL, Prisma, Django, Laravel and TypeORM."""

from schema.json_export import JsonImportError, json_to_schema, schema_to_json
from schema.main import (
    ExportOptions,
    UnsupportedFormatError,
    export_filename,
    export_schema,
)
from schema.sql_export import schema_to_sql, table_to_sql
from schema.types import (
    Column,
    ColumnType,
    ExportFormat,
    ForeignKey,
    ForeignKeyAction,
    Position,
    Relationship,
    RelationshipType,
    Schema,
    SQLDialect,
    Table,
)

__all__ = [
    "Column",
    "ColumnType",
    "ExportFormat",
    "ExportOptions",
    "ForeignKey",
    "ForeignKeyAction",
    "JsonImportError",
    "Position",
    "Relationship",
    "RelationshipType",
    "SQLDialect",
    "Schema",
    "Table",
    "UnsupportedFormatError",
    "export_filename",
    "export_schema",
    "json_to_schema",
    "schema_to_json",
    "schema_to_sql",
    "table_to_sql",
]
