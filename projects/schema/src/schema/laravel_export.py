"""Laravel migration generation."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from schema.relations import dependency_order, relations_from, resolve_relations
from schema.templating import render_template
from schema.type_conversion import (
    DefaultKind,
    classify_default,
    is_true,
    laravel_method,
)
from schema.types import Column, ColumnType, ForeignKeyAction, Schema, Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from schema.relations import ResolvedRelation

LARAVEL_ACTIONS = {
    ForeignKeyAction.CASCADE: "cascade",
    ForeignKeyAction.SET_NULL: "set null",
    ForeignKeyAction.RESTRICT: "restrict",
}


class Migration(NamedTuple):
    """One anonymous migration class."""

    table: str
    statements: list[str]
    description: str | None = None


def php_string(value: str) -> str:
    """Single-quoted PHP string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def php_default(value: str) -> tuple[str, bool]:
    """Default-value modifier and whether it needs the DB facade."""
    match classify_default(value):
        case DefaultKind.NOW:
            return "->useCurrent()", False
        case DefaultKind.UUID:
            return "->default(DB::raw('(UUID())'))", True
        case DefaultKind.NULL:
            return "->default(null)", False
        case DefaultKind.NUMBER:
            return f"->default({value.strip()})", False
        case DefaultKind.BOOLEAN:
            return f"->default({'true' if is_true(value) else 'false'})", False
        case _:
            return f"->default({php_string(value)})", False


def primary_key_statement(column: Column) -> str:
    """Blueprint call for a table's only primary key column."""
    name = php_string(column.name)
    match column.type:
        case ColumnType.INTEGER if column.name == "id":
            return "id()"
        case ColumnType.BIGINT if column.name == "id":
            return "id()"
        case ColumnType.INTEGER:
            return f"increments({name})"
        case ColumnType.BIGINT:
            return f"bigIncrements({name})"
        case _:
            method = laravel_method(column.type)
            return f"{method.name}({', '.join((name, *method.arguments))})->primary()"


def generate_column_statement(
    column: Column,
    *,
    single_primary_key: bool,
    include_descriptions: bool = True,
) -> tuple[str, bool]:
    """Blueprint statement for a column and whether it needs the DB facade."""
    uses_db = False
    if column.primary_key and single_primary_key:
        statement = primary_key_statement(column)
    else:
        method = laravel_method(column.type)
        arguments = ", ".join((php_string(column.name), *method.arguments))
        statement = f"{method.name}({arguments})"
        if column.nullable and not column.primary_key:
            statement += "->nullable()"
        if column.unique and not column.primary_key:
            statement += "->unique()"
        if column.default_value:
            modifier, uses_db = php_default(column.default_value)
            statement += modifier

    if include_descriptions and column.description:
        statement += f"->comment({php_string(column.description)})"
    return statement, uses_db


def generate_foreign_key(relation: ResolvedRelation) -> str | None:
    """Blueprint foreign key statement, None for many-to-many links."""
    source_column = relation.source_column
    target_column = relation.target_column
    if source_column is None or target_column is None:
        return None

    statement = (
        f"foreign({php_string(source_column.name)})"
        f"->references({php_string(target_column.name)})"
        f"->on({php_string(relation.target_table.name)})"
    )
    if relation.on_delete in LARAVEL_ACTIONS:
        statement += f"->onDelete({php_string(LARAVEL_ACTIONS[relation.on_delete])})"
    if relation.on_update in LARAVEL_ACTIONS:
        statement += f"->onUpdate({php_string(LARAVEL_ACTIONS[relation.on_update])})"
    return statement


def generate_migration(
    table: Table,
    relations: Sequence[ResolvedRelation],
    *,
    include_descriptions: bool = True,
) -> tuple[Migration, bool]:
    """Build the migration for a table and whether it needs the DB facade."""
    primary_keys = table.primary_keys
    statements: list[str] = []
    uses_db = False
    for column in table.columns:
        statement, needs_db = generate_column_statement(
            column,
            single_primary_key=len(primary_keys) == 1,
            include_descriptions=include_descriptions,
        )
        statements.append(statement)
        uses_db = uses_db or needs_db

    if len(primary_keys) > 1:
        keys = ", ".join(php_string(column.name) for column in primary_keys)
        statements.append(f"primary([{keys}])")

    for relation in relations_from(relations, table):
        if (statement := generate_foreign_key(relation)) is not None:
            statements.append(statement)

    description = table.description if include_descriptions else None
    return Migration(php_string(table.name), statements, description), uses_db


def schema_to_laravel(schema: Schema, *, include_descriptions: bool = True) -> str:
    """Generate Laravel migrations, one anonymous class per table."""
    relations = resolve_relations(schema)
    migrations: list[Migration] = []
    uses_db = False
    for table in dependency_order(schema.tables):
        migration, needs_db = generate_migration(
            table,
            relations,
            include_descriptions=include_descriptions,
        )
        migrations.append(migration)
        uses_db = uses_db or needs_db

    return render_template(
        "laravel_migration.php.j2",
        schema_name=schema.name,
        migrations=migrations,
        uses_db=uses_db,
    )
