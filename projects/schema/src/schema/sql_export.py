"""SQL DDL generation for PostgreSQL, MySQL, SQLite and SQL Server."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.dialects import mssql, mysql, postgresql, sqlite
from sqlalchemy.sql.compiler import IdentifierPreparer

from schema.relations import ResolvedRelation, dependency_order, resolve_relations
from schema.type_conversion import (
    DefaultKind,
    classify_default,
    is_true,
    single_table_sql_type,
    sql_type,
    sql_uuid_function,
)
from schema.types import Column, ForeignKeyAction, Schema, SQLDialect, Table

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect

logger = getLogger(__name__)

_DIALECTS: dict[SQLDialect, Dialect] = {
    SQLDialect.POSTGRESQL: postgresql.dialect(),
    SQLDialect.MYSQL: mysql.dialect(),
    SQLDialect.SQLITE: sqlite.dialect(),
    SQLDialect.SQLSERVER: mssql.dialect(),
}


def schema_preparer(dialect: SQLDialect) -> IdentifierPreparer:
    """Full-schema identifier quoting: backticks on MySQL, else double quotes."""
    engine_dialect = _DIALECTS[dialect]
    if dialect == SQLDialect.MYSQL:
        return engine_dialect.identifier_preparer
    return IdentifierPreparer(engine_dialect)


def table_preparer(dialect: SQLDialect) -> IdentifierPreparer:
    """Identifier quoting for single-table DDL: brackets on SQLite."""
    engine_dialect = _DIALECTS[dialect]
    match dialect:
        case SQLDialect.MYSQL:
            return engine_dialect.identifier_preparer
        case SQLDialect.SQLITE:
            return IdentifierPreparer(
                engine_dialect,
                initial_quote="[",
                final_quote="]",
                escape_quote="]",
            )
        case _:
            return IdentifierPreparer(engine_dialect)


def constraint_name(name: str, dialect: SQLDialect) -> str:
    """Truncate a constraint name to the dialect's identifier length limit."""
    return name[: _DIALECTS[dialect].max_identifier_length]


def render_default(value: str, dialect: SQLDialect) -> str:
    """SQL expression for a stored default value."""
    match classify_default(value):
        case DefaultKind.NULL:
            return "NULL"
        case DefaultKind.NUMBER:
            return value.strip()
        case DefaultKind.BOOLEAN if dialect == SQLDialect.POSTGRESQL:
            return "TRUE" if is_true(value) else "FALSE"
        case DefaultKind.BOOLEAN:
            return "1" if is_true(value) else "0"
        case DefaultKind.NOW:
            return "CURRENT_TIMESTAMP"
        case DefaultKind.UUID:
            return sql_uuid_function(dialect)
        case _:
            escaped = value.replace("'", "''")
            return f"'{escaped}'"


def render_actions(
    on_delete: ForeignKeyAction | None,
    on_update: ForeignKeyAction | None,
) -> str:
    """ON DELETE / ON UPDATE clauses, omitting NO ACTION."""
    clauses = [
        f" ON {event} {action}"
        for event, action in (("DELETE", on_delete), ("UPDATE", on_update))
        if action and action != ForeignKeyAction.NO_ACTION
    ]
    return "".join(clauses)


def generate_column_definition(
    column: Column,
    dialect: SQLDialect,
    preparer: IdentifierPreparer,
    *,
    inline_primary_key: bool,
) -> str:
    """Generate the column clause of a CREATE TABLE statement."""
    parts = [preparer.quote_identifier(column.name), sql_type(column.type, dialect)]
    if not column.nullable:
        parts.append("NOT NULL")
    if column.unique and not (column.primary_key and inline_primary_key):
        parts.append("UNIQUE")
    if column.default_value:
        parts.append(f"DEFAULT {render_default(column.default_value, dialect)}")
    if column.primary_key and inline_primary_key:
        parts.append("PRIMARY KEY")
    return " ".join(parts)


def generate_create_table(
    table: Table,
    dialect: SQLDialect,
    preparer: IdentifierPreparer,
    *,
    include_descriptions: bool = True,
) -> str:
    """Generate a CREATE TABLE statement; composite keys become a table constraint."""
    primary_keys = table.primary_keys
    inline = len(primary_keys) == 1

    lines = [
        generate_column_definition(
            column,
            dialect,
            preparer,
            inline_primary_key=inline,
        )
        for column in table.columns
    ]
    if len(primary_keys) > 1:
        names = ", ".join(preparer.quote_identifier(col.name) for col in primary_keys)
        lines.append(f"PRIMARY KEY ({names})")

    body = ",\n".join(f"  {line}" for line in lines)
    statement = f"CREATE TABLE {preparer.quote_identifier(table.name)} (\n{body}\n);"
    if include_descriptions and table.description:
        return f"-- {table.description}\n{statement}"
    return statement


def generate_foreign_key(
    relation: ResolvedRelation,
    dialect: SQLDialect,
    preparer: IdentifierPreparer,
) -> str:
    """Generate an ALTER TABLE ... ADD CONSTRAINT ... FOREIGN KEY statement."""
    source = relation.source_table
    target = relation.target_table
    source_column = relation.source_column
    target_column = relation.target_column
    if source_column is None or target_column is None:
        msg = "Many-to-many relations have no foreign key constraint"
        raise ValueError(msg)

    prefix = "fk" if relation.from_column else "rel"
    name = constraint_name(
        f"{prefix}_{source.name}_{source_column.name}_{target.name}",
        dialect,
    )
    quote = preparer.quote_identifier
    return (
        f"ALTER TABLE {quote(source.name)} ADD CONSTRAINT {quote(name)} "
        f"FOREIGN KEY ({quote(source_column.name)}) "
        f"REFERENCES {quote(target.name)}({quote(target_column.name)})"
        f"{render_actions(relation.on_delete, relation.on_update)};"
    )


def schema_to_sql(
    schema: Schema,
    dialect: SQLDialect = SQLDialect.POSTGRESQL,
    *,
    include_descriptions: bool = True,
    drop_tables: bool = False,
    generated_at: datetime | None = None,
) -> str:
    """Generate a DDL script for the whole schema.

    Tables without foreign key columns are created first, then every foreign
    key is added with ALTER TABLE once all tables exist.
    """
    preparer = schema_preparer(dialect)
    generated_at = generated_at or datetime.now(UTC)
    tables = dependency_order(schema.tables)

    parts = [
        f"-- Schema: {schema.name}\n"
        f"-- Generated: {generated_at.isoformat()}\n"
        f"-- Dialect: {dialect.upper()}\n",
    ]
    if drop_tables:
        parts.append(
            "\n".join(
                f"DROP TABLE IF EXISTS {preparer.quote_identifier(table.name)};"
                for table in reversed(tables)
            )
            + "\n",
        )

    parts.extend(
        generate_create_table(
            table,
            dialect,
            preparer,
            include_descriptions=include_descriptions,
        )
        + "\n"
        for table in tables
    )

    foreign_keys = [
        generate_foreign_key(relation, dialect, preparer)
        for relation in resolve_relations(schema)
        if not relation.is_many_to_many
    ]
    if foreign_keys:
        parts.append("\n".join(foreign_keys) + "\n")

    logger.debug(
        "Generated %s DDL for %d tables and %d foreign keys",
        dialect,
        len(tables),
        len(foreign_keys),
    )
    return "\n".join(parts)


def _inline_foreign_key(
    column: Column,
    preparer: IdentifierPreparer,
    schema: Schema | None,
) -> str:
    fk = column.foreign_key
    if fk is None:
        msg = f"Column {column.name} has no foreign key"
        raise ValueError(msg)

    target_table = schema.table(fk.table_id) if schema else None
    target_column = target_table.column(fk.column_id) if target_table else None
    table_name = target_table.name if target_table else fk.table_id
    column_name = target_column.name if target_column else fk.column_id

    quote = preparer.quote_identifier
    return (
        f"CONSTRAINT {quote(f'fk_{column.name}_{table_name}')} "
        f"FOREIGN KEY ({quote(column.name)}) "
        f"REFERENCES {quote(table_name)}({quote(column_name)})"
        f"{render_actions(fk.on_delete, fk.on_update)}"
    )


def table_to_sql(
    table: Table,
    dialect: SQLDialect = SQLDialect.POSTGRESQL,
    *,
    schema: Schema | None = None,
    include_descriptions: bool = False,
) -> str:
    """Generate a self-contained CREATE TABLE statement for one table.

    Foreign keys are inlined as table constraints. Reference names are looked
    up in ``schema`` when given, otherwise the raw IDs are used. Defaults are
    emitted verbatim.
    """
    preparer = table_preparer(dialect)
    quote = preparer.quote_identifier
    composite = len(table.primary_keys) > 1

    lines = []
    for column in table.columns:
        line = f"{quote(column.name)} {single_table_sql_type(column.type, dialect)}"
        if not column.nullable:
            line += " NOT NULL"
        if column.primary_key and not composite:
            line += " PRIMARY KEY"
        if column.unique and not column.primary_key:
            line += " UNIQUE"
        if column.default_value:
            line += f" DEFAULT {column.default_value}"
        lines.append(line)

    if composite:
        names = ", ".join(quote(col.name) for col in table.primary_keys)
        lines.append(f"PRIMARY KEY ({names})")
    lines.extend(
        _inline_foreign_key(column, preparer, schema)
        for column in table.columns
        if column.foreign_key
    )

    body = ",\n".join(f"  {line}" for line in lines)
    sql = f"CREATE TABLE {quote(table.name)} (\n{body}\n);\n"

    if include_descriptions and table.description:
        comment = f"Table: {table.description}"
        sql += (
            f"/* {comment} */\n" if dialect == SQLDialect.MYSQL else f"-- {comment}\n"
        )
    return sql
