"""Constructors, validation and lookups used when editing a schema."""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from schema.identifiers import IdGenerator, random_ids
from schema.types import (
    Column,
    ColumnType,
    ColumnTypeName,
    ForeignKeyAction,
    Position,
    Relationship,
    RelationshipType,
    Schema,
    Table,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

IDENTIFIER_PATTERN = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
DUPLICATE_OFFSET = Position(50, 50)


def empty_schema(
    name: str = "Untitled Schema",
    *,
    ids: IdGenerator = random_ids,
) -> Schema:
    """A new schema without tables."""
    now = datetime.now(UTC)
    return Schema(
        id=ids("schema"),
        name=name,
        tables=(),
        relationships=(),
        created_at=now,
        updated_at=now,
    )


def create_column(
    name: str = "",
    column_type: ColumnTypeName = ColumnType.STRING,
    *,
    ids: IdGenerator = random_ids,
    nullable: bool = True,
    primary_key: bool = False,
    unique: bool = False,
    default_value: str | None = None,
    description: str | None = None,
) -> Column:
    """A column with editor defaults: nullable string, no constraints."""
    return Column(
        id=ids("col"),
        name=name,
        type=column_type,
        nullable=nullable and not primary_key,
        primary_key=primary_key,
        unique=unique,
        default_value=default_value,
        description=description,
    )


def create_table(
    name: str = "New Table",
    columns: Iterable[Column] = (),
    *,
    ids: IdGenerator = random_ids,
    position: Position = Position(),
    description: str | None = None,
) -> Table:
    """A table at ``position`` with the given columns."""
    return Table(
        id=ids("table"),
        name=name,
        position=position,
        columns=tuple(columns),
        description=description,
    )


def create_relationship(  # noqa: PLR0913
    source_table_id: str,
    source_column_id: str,
    target_table_id: str,
    target_column_id: str,
    relationship_type: RelationshipType = RelationshipType.MANY_TO_ONE,
    *,
    ids: IdGenerator = random_ids,
    name: str | None = None,
    on_delete: ForeignKeyAction | None = None,
    on_update: ForeignKeyAction | None = None,
) -> Relationship:
    """A relationship between two columns."""
    return Relationship(
        id=ids("rel"),
        source_table_id=source_table_id,
        source_column_id=source_column_id,
        target_table_id=target_table_id,
        target_column_id=target_column_id,
        type=relationship_type,
        name=name,
        on_delete=on_delete,
        on_update=on_update,
    )


def duplicate_table(
    table: Table,
    *,
    ids: IdGenerator = random_ids,
    offset: Position = DUPLICATE_OFFSET,
) -> Table:
    """Copy a table with fresh IDs for the table and every column.

    Column content, including foreign keys, is preserved.
    """
    return replace(
        table,
        id=ids("table"),
        name=f"{table.name}_copy",
        position=Position(table.position.x + offset.x, table.position.y + offset.y),
        columns=tuple(replace(column, id=ids("col")) for column in table.columns),
    )


def validate_column(column: Column) -> list[str]:
    """Human-readable problems with a column; empty when valid."""
    errors: list[str] = []
    if not column.name.strip():
        errors.append("Column name is required")
    if column.name and not IDENTIFIER_PATTERN.fullmatch(column.name):
        errors.append("Column name must be a valid identifier")
    if column.primary_key and column.nullable:
        errors.append("Primary key columns cannot be nullable")
    return errors


def validate_table(table: Table) -> list[str]:
    """Human-readable problems with a table and its columns."""
    errors: list[str] = []
    if not table.name.strip():
        errors.append("Table name is required")
    if not table.columns:
        errors.append("Table must have at least one column")

    seen: set[str] = set()
    duplicates: list[str] = []
    for column in table.columns:
        if column.name in seen:
            duplicates.append(column.name)
        seen.add(column.name)
    if duplicates:
        errors.append(f"Duplicate column names: {', '.join(duplicates)}")

    for index, column in enumerate(table.columns, start=1):
        errors.extend(f"Column {index}: {error}" for error in validate_column(column))
    return errors


def validate_relationship(
    relationship: Relationship,
    tables: Sequence[Table],
) -> list[str]:
    """Human-readable problems with a relationship against the given tables."""
    errors: list[str] = []
    many_to_many = relationship.type == RelationshipType.MANY_TO_MANY

    if not relationship.source_table_id or not relationship.target_table_id:
        errors.append("Source and target tables are required")
    if not many_to_many and not (
        relationship.source_column_id and relationship.target_column_id
    ):
        errors.append("Source and target columns are required")
    if relationship.source_table_id == relationship.target_table_id:
        errors.append("Self-referencing relationships are not supported")

    source = next((t for t in tables if t.id == relationship.source_table_id), None)
    target = next((t for t in tables if t.id == relationship.target_table_id), None)
    if source is None or target is None:
        errors.append("Referenced tables must exist")
    if many_to_many:
        return errors
    if source and source.column(relationship.source_column_id) is None:
        errors.append("Source column must exist")
    if target and target.column(relationship.target_column_id) is None:
        errors.append("Target column must exist")
    return errors


def table_relationships(
    table_id: str,
    relationships: Iterable[Relationship],
) -> list[Relationship]:
    """Relationships with ``table_id`` at either end."""
    return [
        rel
        for rel in relationships
        if table_id in {rel.source_table_id, rel.target_table_id}
    ]


def connected_tables(
    table_id: str,
    tables: Iterable[Table],
    relationships: Iterable[Relationship],
) -> list[Table]:
    """Other tables sharing a relationship with ``table_id``."""
    connected = {
        rel.target_table_id if rel.source_table_id == table_id else rel.source_table_id
        for rel in table_relationships(table_id, relationships)
    }
    connected.discard(table_id)
    return [table for table in tables if table.id in connected]


def is_valid_foreign_key_target(column: Column) -> bool:
    """Only primary key or unique columns can be referenced."""
    return column.primary_key or column.unique


def sort_columns_by_importance(columns: Iterable[Column]) -> list[Column]:
    """Primary keys first, then foreign keys, then by name."""
    return sorted(
        columns,
        key=lambda col: (not col.primary_key, col.foreign_key is None, col.name),
    )


def touch(schema: Schema, **changes: object) -> Schema:
    """Apply changes and bump ``updated_at``."""
    changes["updated_at"] = datetime.now(UTC)
    return replace(schema, **changes)  # type: ignore[arg-type]
