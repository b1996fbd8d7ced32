"""Value types for the schema model shared by importers, exporters and layout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from logging import getLogger

logger = getLogger(__name__)


class ColumnType(StrEnum):
    """Logical column types understood by every export target."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BIGINT = "bigint"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    JSON = "json"
    JSONB = "jsonb"
    UUID = "uuid"
    BINARY = "binary"
    ENUM = "enum"
    ARRAY = "array"


class RelationshipType(StrEnum):
    """Cardinality of a relationship between two tables."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"
    MANY_TO_ONE = "many-to-one"
    ZERO_TO_ONE = "zero-to-one"
    ZERO_TO_MANY = "zero-to-many"


class ForeignKeyAction(StrEnum):
    """Referential action applied on delete or update."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"


class SQLDialect(StrEnum):
    """SQL dialects supported by the DDL exporter."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"


class ExportFormat(StrEnum):
    """Targets the export dispatcher knows about."""

    JSON = "json"
    SQL = "sql"
    PRISMA = "prisma"
    DJANGO = "django"
    LARAVEL = "laravel"
    TYPEORM = "typeorm"


# Stored schemas may carry type names outside ColumnType; they are kept verbatim
type ColumnTypeName = ColumnType | str


@dataclass(frozen=True)
class Position:
    """Canvas coordinates of a table."""

    x: float = 0
    y: float = 0


@dataclass(frozen=True)
class ForeignKey:
    """Column-level reference to a column of another table."""

    table_id: str
    column_id: str
    on_delete: ForeignKeyAction | None = None
    on_update: ForeignKeyAction | None = None


@dataclass(frozen=True)
class Column:
    """A single column of a table."""

    id: str
    name: str
    type: ColumnTypeName = ColumnType.STRING
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    default_value: str | None = None
    foreign_key: ForeignKey | None = None
    description: str | None = None


@dataclass(frozen=True)
class Table:
    """A table with its ordered columns."""

    id: str
    name: str
    position: Position = Position()
    columns: tuple[Column, ...] = ()
    description: str | None = None

    def column(self, column_id: str) -> Column | None:
        """Find a column by ID."""
        return next((col for col in self.columns if col.id == column_id), None)

    def column_named(self, name: str) -> Column | None:
        """Find a column by name."""
        return next((col for col in self.columns if col.name == name), None)

    @property
    def primary_keys(self) -> tuple[Column, ...]:
        """All primary key columns, in column order."""
        return tuple(col for col in self.columns if col.primary_key)

    @property
    def has_foreign_keys(self) -> bool:
        """Whether any column declares a foreign key."""
        return any(col.foreign_key for col in self.columns)


@dataclass(frozen=True)
class Relationship:
    """Schema-level link between two table columns.

    Many-to-many links carry empty column IDs.
    """

    id: str
    source_table_id: str
    source_column_id: str
    target_table_id: str
    target_column_id: str
    type: RelationshipType = RelationshipType.MANY_TO_ONE
    name: str | None = None
    on_delete: ForeignKeyAction | None = None
    on_update: ForeignKeyAction | None = None


@dataclass(frozen=True)
class Schema:
    """Root aggregate: tables, relationships and bookkeeping metadata."""

    id: str
    name: str
    tables: tuple[Table, ...]
    relationships: tuple[Relationship, ...]
    created_at: datetime
    updated_at: datetime
    version: int = 1
    description: str | None = None

    def table(self, table_id: str) -> Table | None:
        """Find a table by ID."""
        return next((table for table in self.tables if table.id == table_id), None)

    def table_named(self, name: str) -> Table | None:
        """Find a table by name."""
        return next((table for table in self.tables if table.name == name), None)


def coerce_column_type(value: str) -> ColumnTypeName:
    """Return the ColumnType for a stored name, keeping unknown names verbatim."""
    try:
        return ColumnType(value)
    except ValueError:
        logger.debug("Keeping unknown column type %r", value)
        return value


def coerce_relationship_type(value: str | None) -> RelationshipType:
    """Return the RelationshipType for a stored name, many-to-one when unknown."""
    if value is None:
        return RelationshipType.MANY_TO_ONE
    try:
        return RelationshipType(value)
    except ValueError:
        logger.warning("Unknown relationship type %r, using many-to-one", value)
        return RelationshipType.MANY_TO_ONE


def coerce_action(value: str | None) -> ForeignKeyAction | None:
    """Return the ForeignKeyAction for a stored name, None when absent or unknown."""
    if value is None:
        return None
    try:
        return ForeignKeyAction(value.upper())
    except ValueError:
        logger.warning("Ignoring unknown referential action %r", value)
        return None
