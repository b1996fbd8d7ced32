"""Single source of truth for the relations an exporter should render.

A column-level foreign key and a schema-level Relationship may describe the
same link. ``resolve_relations`` merges both into one list so that no target
renders a link twice, and drops links whose references do not resolve.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from schema.types import (
    Column,
    ForeignKeyAction,
    Relationship,
    RelationshipType,
    Schema,
    Table,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRelation:
    """A link whose tables (and columns, unless many-to-many) all exist.

    ``from_column`` is True when the link comes from ``Column.foreign_key``
    rather than from a schema-level Relationship.
    """

    source_table: Table
    target_table: Table
    source_column: Column | None
    target_column: Column | None
    type: RelationshipType
    on_delete: ForeignKeyAction | None = None
    on_update: ForeignKeyAction | None = None
    name: str | None = None
    from_column: bool = False

    @property
    def is_many_to_many(self) -> bool:
        """Whether the link is a join-table-less many-to-many link."""
        return self.source_column is None or self.target_column is None


def is_covered(relationship: Relationship, source_column: Column) -> bool:
    """Whether the source column already declares this relationship's link."""
    fk = source_column.foreign_key
    return (
        fk is not None
        and fk.table_id == relationship.target_table_id
        and fk.column_id == relationship.target_column_id
    )


def _matching_type(schema: Schema, table: Table, column: Column) -> RelationshipType:
    fk = column.foreign_key
    for relationship in schema.relationships:
        if (
            fk is not None
            and relationship.source_table_id == table.id
            and relationship.source_column_id == column.id
            and relationship.target_table_id == fk.table_id
        ):
            return relationship.type
    return RelationshipType.MANY_TO_ONE


def _column_relations(schema: Schema) -> Iterable[ResolvedRelation]:
    for table in schema.tables:
        for column in table.columns:
            if (fk := column.foreign_key) is None:
                continue
            target_table = schema.table(fk.table_id)
            target_column = target_table.column(fk.column_id) if target_table else None
            if target_table is None or target_column is None:
                logger.warning(
                    "Skipping foreign key %s.%s: unresolved target %s.%s",
                    table.name,
                    column.name,
                    fk.table_id,
                    fk.column_id,
                )
                continue
            yield ResolvedRelation(
                source_table=table,
                target_table=target_table,
                source_column=column,
                target_column=target_column,
                type=_matching_type(schema, table, column),
                on_delete=fk.on_delete,
                on_update=fk.on_update,
                from_column=True,
            )


def _schema_relations(schema: Schema) -> Iterable[ResolvedRelation]:
    for relationship in schema.relationships:
        source_table = schema.table(relationship.source_table_id)
        target_table = schema.table(relationship.target_table_id)
        if source_table is None or target_table is None:
            logger.warning(
                "Skipping relationship %s: unresolved table reference",
                relationship.id,
            )
            continue

        if relationship.type == RelationshipType.MANY_TO_MANY and not (
            relationship.source_column_id or relationship.target_column_id
        ):
            yield ResolvedRelation(
                source_table=source_table,
                target_table=target_table,
                source_column=None,
                target_column=None,
                type=relationship.type,
                name=relationship.name,
            )
            continue

        source_column = source_table.column(relationship.source_column_id)
        target_column = target_table.column(relationship.target_column_id)
        if source_column is None or target_column is None:
            logger.warning(
                "Skipping relationship %s: unresolved column reference",
                relationship.id,
            )
            continue
        if is_covered(relationship, source_column):
            continue

        yield ResolvedRelation(
            source_table=source_table,
            target_table=target_table,
            source_column=source_column,
            target_column=target_column,
            type=relationship.type,
            on_delete=relationship.on_delete,
            on_update=relationship.on_update,
            name=relationship.name,
        )


def resolve_relations(schema: Schema) -> tuple[ResolvedRelation, ...]:
    """Column foreign keys first, then uncovered schema relationships."""
    return (*_column_relations(schema), *_schema_relations(schema))


def dependency_order(tables: Iterable[Table]) -> list[Table]:
    """Stable partition: tables without foreign key columns come first.

    This is a shallow ordering, not a topological sort.
    """
    return sorted(tables, key=lambda table: table.has_foreign_keys)


def relations_from(
    relations: Iterable[ResolvedRelation],
    table: Table,
) -> list[ResolvedRelation]:
    """Relations whose source is ``table``."""
    return [rel for rel in relations if rel.source_table.id == table.id]


def relations_to(
    relations: Iterable[ResolvedRelation],
    table: Table,
) -> list[ResolvedRelation]:
    """Relations whose target is ``table``."""
    return [rel for rel in relations if rel.target_table.id == table.id]


def many_to_many_columns(relations: Iterable[ResolvedRelation]) -> set[str]:
    """IDs of plain columns standing in for a named many-to-many link.

    The Django importer keeps a column for every ``ManyToManyField``; targets
    that render the link itself skip that column.
    """
    columns: set[str] = set()
    for relation in relations:
        if not relation.is_many_to_many or not relation.name:
            continue
        columns.update(
            column.id
            for column in relation.source_table.columns
            if column.name == relation.name
            and column.foreign_key is None
            and not column.primary_key
        )
    return columns
