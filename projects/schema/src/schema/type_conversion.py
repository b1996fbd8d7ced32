"""Per-target type maps and default-value classification.

Every lookup here is total: names outside ColumnType (legacy values kept from
stored schemas) fall through to the target's generic string-like type.
"""

import re
from enum import StrEnum, auto
from typing import NamedTuple

from schema.types import ColumnType, ColumnTypeName, SQLDialect

NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
NOW_PATTERN = re.compile(
    r"(?:[\w.]*\.)?now(?:\(\))?|current_timestamp(?:\(\))?",
    re.IGNORECASE,
)
UUID_PATTERN = re.compile(
    r"uuid_generate_v4\(\)|gen_random_uuid\(\)|(?:uuid\.)?uuid4(?:\(\))?",
    re.IGNORECASE,
)


class DefaultKind(StrEnum):
    """How a stored default value string should be rendered."""

    NULL = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    NOW = auto()
    UUID = auto()
    LITERAL = auto()


def classify_default(value: str) -> DefaultKind:
    """Classify a raw default value.

    Examples:
        "0", "-1.5"          -> NUMBER
        "true", "False"      -> BOOLEAN
        "now", "timezone.now", "CURRENT_TIMESTAMP" -> NOW
        "uuid_generate_v4()", "uuid.uuid4"          -> UUID
        "draft"              -> LITERAL

    """
    text = value.strip()
    if text.upper() in {"NULL", "NONE"}:
        return DefaultKind.NULL
    if NUMBER_PATTERN.fullmatch(text):
        return DefaultKind.NUMBER
    if text.lower() in {"true", "false"}:
        return DefaultKind.BOOLEAN
    if NOW_PATTERN.fullmatch(text):
        return DefaultKind.NOW
    if UUID_PATTERN.fullmatch(text):
        return DefaultKind.UUID
    return DefaultKind.LITERAL


def is_true(value: str) -> bool:
    """Interpret a BOOLEAN default."""
    return value.strip().lower() == "true"


_SQL_TYPES: dict[SQLDialect, dict[ColumnType, str]] = {
    SQLDialect.POSTGRESQL: {
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.FLOAT: "FLOAT",
        ColumnType.DECIMAL: "DECIMAL(10,2)",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "TIMESTAMP",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.TIME: "TIME",
        ColumnType.JSON: "JSON",
        ColumnType.JSONB: "JSONB",
        ColumnType.UUID: "UUID",
        ColumnType.BINARY: "BYTEA",
        ColumnType.ENUM: "VARCHAR(50)",
        ColumnType.ARRAY: "TEXT[]",
    },
    SQLDialect.MYSQL: {
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INTEGER: "INT",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.FLOAT: "FLOAT",
        ColumnType.DECIMAL: "DECIMAL(10,2)",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "DATETIME",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.TIME: "TIME",
        ColumnType.JSON: "JSON",
        ColumnType.JSONB: "JSON",
        ColumnType.UUID: "CHAR(36)",
        ColumnType.BINARY: "BLOB",
        ColumnType.ENUM: "ENUM()",
        ColumnType.ARRAY: "JSON",
    },
    SQLDialect.SQLITE: {
        ColumnType.STRING: "TEXT",
        ColumnType.TEXT: "TEXT",
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINT: "INTEGER",
        ColumnType.FLOAT: "REAL",
        ColumnType.DECIMAL: "REAL",
        ColumnType.BOOLEAN: "INTEGER",
        ColumnType.DATE: "TEXT",
        ColumnType.DATETIME: "TEXT",
        ColumnType.TIMESTAMP: "TEXT",
        ColumnType.TIME: "TEXT",
        ColumnType.JSON: "TEXT",
        ColumnType.JSONB: "TEXT",
        ColumnType.UUID: "TEXT",
        ColumnType.BINARY: "BLOB",
        ColumnType.ENUM: "TEXT",
        ColumnType.ARRAY: "TEXT",
    },
    SQLDialect.SQLSERVER: {
        ColumnType.STRING: "NVARCHAR(255)",
        ColumnType.TEXT: "NVARCHAR(MAX)",
        ColumnType.INTEGER: "INT",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.FLOAT: "FLOAT",
        ColumnType.DECIMAL: "DECIMAL(10,2)",
        ColumnType.BOOLEAN: "BIT",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "DATETIME2",
        ColumnType.TIMESTAMP: "DATETIME2",
        ColumnType.TIME: "TIME",
        ColumnType.JSON: "NVARCHAR(MAX)",
        ColumnType.JSONB: "NVARCHAR(MAX)",
        ColumnType.UUID: "UNIQUEIDENTIFIER",
        ColumnType.BINARY: "VARBINARY(MAX)",
        ColumnType.ENUM: "NVARCHAR(50)",
        ColumnType.ARRAY: "NVARCHAR(MAX)",
    },
}

# The single-table helper keeps unparameterised decimals and REAL floats
_SINGLE_TABLE_OVERRIDES: dict[SQLDialect, dict[ColumnType, str]] = {
    SQLDialect.POSTGRESQL: {ColumnType.FLOAT: "REAL", ColumnType.DECIMAL: "DECIMAL"},
    SQLDialect.MYSQL: {ColumnType.DECIMAL: "DECIMAL", ColumnType.ENUM: 'ENUM("")'},
    SQLDialect.SQLITE: {},
    SQLDialect.SQLSERVER: {ColumnType.DECIMAL: "DECIMAL"},
}


def _as_column_type(column_type: ColumnTypeName) -> ColumnType | None:
    try:
        return ColumnType(column_type)
    except ValueError:
        return None


def sql_type(column_type: ColumnTypeName, dialect: SQLDialect) -> str:
    """SQL type for a column in the full-schema DDL."""
    types = _SQL_TYPES[dialect]
    known = _as_column_type(column_type)
    return types[known] if known else types[ColumnType.STRING]


def single_table_sql_type(column_type: ColumnTypeName, dialect: SQLDialect) -> str:
    """SQL type for a column in the single-table DDL helper."""
    known = _as_column_type(column_type)
    if known is None:
        return "VARCHAR(255)"
    return _SINGLE_TABLE_OVERRIDES[dialect].get(known, _SQL_TYPES[dialect][known])


def sql_uuid_function(dialect: SQLDialect) -> str:
    """Server-side expression generating a UUID in the given dialect."""
    match dialect:
        case SQLDialect.POSTGRESQL:
            return "uuid_generate_v4()"
        case SQLDialect.MYSQL:
            return "(UUID())"
        case SQLDialect.SQLSERVER:
            return "NEWID()"
        case _:
            return "(lower(hex(randomblob(16))))"


def prisma_type(column_type: ColumnTypeName) -> str:
    """Prisma scalar type."""
    match column_type:
        case ColumnType.INTEGER:
            return "Int"
        case ColumnType.BIGINT:
            return "BigInt"
        case ColumnType.FLOAT:
            return "Float"
        case ColumnType.DECIMAL:
            return "Decimal"
        case ColumnType.BOOLEAN:
            return "Boolean"
        case (
            ColumnType.DATE
            | ColumnType.DATETIME
            | ColumnType.TIMESTAMP
            | ColumnType.TIME
        ):
            return "DateTime"
        case ColumnType.JSON | ColumnType.JSONB | ColumnType.ARRAY:
            return "Json"
        case ColumnType.BINARY:
            return "Bytes"
        case _:
            return "String"


class FieldInfo(NamedTuple):
    """A generated field constructor and its fixed arguments."""

    name: str
    arguments: tuple[str, ...] = ()


def django_field(column_type: ColumnTypeName) -> FieldInfo:
    """Django model field class for a column type."""
    match column_type:
        case ColumnType.TEXT:
            return FieldInfo("TextField")
        case ColumnType.INTEGER:
            return FieldInfo("IntegerField")
        case ColumnType.BIGINT:
            return FieldInfo("BigIntegerField")
        case ColumnType.FLOAT:
            return FieldInfo("FloatField")
        case ColumnType.DECIMAL:
            return FieldInfo("DecimalField", ("max_digits=10", "decimal_places=2"))
        case ColumnType.BOOLEAN:
            return FieldInfo("BooleanField")
        case ColumnType.DATE:
            return FieldInfo("DateField")
        case ColumnType.DATETIME | ColumnType.TIMESTAMP:
            return FieldInfo("DateTimeField")
        case ColumnType.TIME:
            return FieldInfo("TimeField")
        case ColumnType.JSON | ColumnType.JSONB | ColumnType.ARRAY:
            return FieldInfo("JSONField")
        case ColumnType.UUID:
            return FieldInfo("UUIDField")
        case ColumnType.BINARY:
            return FieldInfo("BinaryField")
        case ColumnType.ENUM:
            return FieldInfo("CharField", ("max_length=50",))
        case _:
            return FieldInfo("CharField", ("max_length=255",))


def laravel_method(column_type: ColumnTypeName) -> FieldInfo:
    """Laravel schema blueprint method; arguments follow the column name."""
    match column_type:
        case ColumnType.TEXT:
            return FieldInfo("text")
        case ColumnType.INTEGER:
            return FieldInfo("integer")
        case ColumnType.BIGINT:
            return FieldInfo("bigInteger")
        case ColumnType.FLOAT:
            return FieldInfo("float")
        case ColumnType.DECIMAL:
            return FieldInfo("decimal", ("10", "2"))
        case ColumnType.BOOLEAN:
            return FieldInfo("boolean")
        case ColumnType.DATE:
            return FieldInfo("date")
        case ColumnType.DATETIME:
            return FieldInfo("dateTime")
        case ColumnType.TIMESTAMP:
            return FieldInfo("timestamp")
        case ColumnType.TIME:
            return FieldInfo("time")
        case ColumnType.JSON | ColumnType.ARRAY:
            return FieldInfo("json")
        case ColumnType.JSONB:
            return FieldInfo("jsonb")
        case ColumnType.UUID:
            return FieldInfo("uuid")
        case ColumnType.BINARY:
            return FieldInfo("binary")
        case _:
            return FieldInfo("string")


class TypeInfo(NamedTuple):
    """TypeORM column type paired with the TypeScript property type."""

    column_type: str
    expression: str


def typeorm_type(column_type: ColumnTypeName) -> TypeInfo:
    """TypeORM column type and TypeScript type for a column type."""
    match column_type:
        case ColumnType.TEXT:
            return TypeInfo("text", "string")
        case ColumnType.INTEGER:
            return TypeInfo("int", "number")
        case ColumnType.BIGINT:
            return TypeInfo("bigint", "string")
        case ColumnType.FLOAT:
            return TypeInfo("float", "number")
        case ColumnType.DECIMAL:
            return TypeInfo("decimal", "number")
        case ColumnType.BOOLEAN:
            return TypeInfo("boolean", "boolean")
        case ColumnType.DATE:
            return TypeInfo("date", "Date")
        case ColumnType.DATETIME:
            return TypeInfo("datetime", "Date")
        case ColumnType.TIMESTAMP:
            return TypeInfo("timestamp", "Date")
        case ColumnType.TIME:
            return TypeInfo("time", "string")
        case ColumnType.JSON:
            return TypeInfo("json", "Record<string, unknown>")
        case ColumnType.JSONB:
            return TypeInfo("jsonb", "Record<string, unknown>")
        case ColumnType.UUID:
            return TypeInfo("uuid", "string")
        case ColumnType.BINARY:
            return TypeInfo("blob", "Buffer")
        case ColumnType.ENUM:
            return TypeInfo("varchar", "string")
        case ColumnType.ARRAY:
            return TypeInfo("simple-json", "unknown[]")
        case _:
            return TypeInfo("varchar", "string")
