"""Build schemas from Django model source and other importable formats.

The Django importer is a best-effort pipeline. Constructs it does not
recognise are skipped rather than reported, so partially valid input still
yields a schema::

    parse_models -> build_tables -> resolve_relationships

Each stage returns new values and never mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from ingest.fields import (
    FieldDeclaration,
    RelationKind,
    implicit_primary_key,
    parse_field,
    string_literal,
)
from ingest.scanner import find_classes, logical_lines
from schema.identifiers import IdGenerator, random_ids
from schema.json_export import json_to_schema
from schema.main import UnsupportedFormatError
from schema.naming import pascal_case, snake_case
from schema.types import (
    Column,
    ForeignKey,
    ForeignKeyAction,
    Position,
    Relationship,
    RelationshipType,
    Schema,
    Table,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ingest.scanner import ClassBlock

logger = getLogger(__name__)

MODEL_BASE = "models.Model"
SCHEMA_NAME = "Imported Django Schema"
SCHEMA_DESCRIPTION = "Schema imported from Django models"

# Initial placement of imported tables
TABLES_PER_ROW = 3
GRID_ORIGIN = Position(100, 100)
GRID_STEP = Position(300, 250)


class ImportFormat(StrEnum):
    """Source formats a schema can be imported from."""

    JSON = "json"
    DJANGO = "django"


@dataclass(frozen=True)
class DjangoModel:
    """A model class and the fields declared on it."""

    name: str
    fields: tuple[FieldDeclaration, ...]
    db_table: str | None = None
    description: str | None = None

    @property
    def table_name(self) -> str:
        """Explicit ``Meta.db_table`` or the snake_case class name."""
        return self.db_table or snake_case(self.name)


def read_model(block: ClassBlock) -> DjangoModel:
    """Collect fields, Meta options and the docstring of a model class."""
    fields = tuple(
        declaration
        for statement in block.members
        if (declaration := parse_field(statement.text, block.name)) is not None
    )
    if not any(declaration.primary_key for declaration in fields):
        fields = (implicit_primary_key(), *fields)

    db_table = None
    if (meta := block.nested("Meta")) and "db_table" in (options := meta.assignments()):
        db_table = string_literal(options["db_table"])

    return DjangoModel(
        name=block.name,
        fields=fields,
        db_table=db_table or None,
        description=block.docstring,
    )


def parse_models(content: str) -> list[DjangoModel]:
    """Find every ``models.Model`` subclass in the source."""
    models: list[DjangoModel] = []
    for block in find_classes(logical_lines(content)):
        if MODEL_BASE not in block.bases:
            continue
        model = read_model(block)
        logger.debug(
            "Parsed model %s (line %d) with %d fields",
            model.name,
            block.line,
            len(model.fields),
        )
        models.append(model)
    return models


def grid_position(index: int) -> Position:
    """Starting position of the ``index``-th imported table."""
    row, column = divmod(index, TABLES_PER_ROW)
    return Position(
        GRID_ORIGIN.x + column * GRID_STEP.x,
        GRID_ORIGIN.y + row * GRID_STEP.y,
    )


def build_column(declaration: FieldDeclaration, ids: IdGenerator) -> Column:
    """Column for a field; relation targets are filled in later."""
    return Column(
        id=ids("col"),
        name=declaration.column_name or declaration.name,
        type=declaration.column_type,
        nullable=declaration.nullable,
        primary_key=declaration.primary_key,
        unique=declaration.unique,
        default_value=declaration.default_value,
        description=declaration.description,
    )


def build_tables(
    models: Sequence[DjangoModel],
    *,
    ids: IdGenerator = random_ids,
) -> tuple[Table, ...]:
    """One table per model, in order, with one column per field."""
    return tuple(
        Table(
            id=ids("table"),
            name=model.table_name,
            position=grid_position(index),
            columns=tuple(build_column(field, ids) for field in model.fields),
            description=model.description,
        )
        for index, model in enumerate(models)
    )


class ModelLookup:
    """Find the model a relation field points at."""

    def __init__(self, models: Sequence[DjangoModel]) -> None:
        """Index models by class name and by table name."""
        self._by_class = {model.name: index for index, model in enumerate(models)}
        self._by_table: dict[str, int] = {}
        # Explicit db_table names win over derived ones
        for explicit in (False, True):
            for index, model in enumerate(models):
                if (model.db_table is not None) == explicit:
                    self._by_table[model.table_name] = index

    def find(self, reference: str) -> int | None:
        """Index of the referenced model: by class, table name, then PascalCase."""
        for candidate in (
            self._by_class.get(reference),
            self._by_table.get(reference),
            self._by_class.get(pascal_case(reference)),
        ):
            if candidate is not None:
                return candidate
        return None


def target_column(table: Table) -> Column | None:
    """Column a relation to ``table`` references: primary key, ``id`` or first."""
    if primary_keys := table.primary_keys:
        return primary_keys[0]
    return table.column_named("id") or next(iter(table.columns), None)


def resolve_relationships(
    models: Sequence[DjangoModel],
    tables: Sequence[Table],
    *,
    ids: IdGenerator = random_ids,
) -> tuple[tuple[Table, ...], tuple[Relationship, ...]]:
    """Link relation fields to their target tables.

    ``tables`` must be the output of ``build_tables`` for the same models.
    Foreign keys and one-to-one fields get a populated ``ForeignKey`` and a
    relationship; many-to-many fields get a relationship without columns.
    References to unknown models are dropped.
    """
    lookup = ModelLookup(models)
    resolved_tables: list[Table] = []
    relationships: list[Relationship] = []

    for model, table in zip(models, tables, strict=True):
        columns: list[Column] = []
        for declaration, column in zip(model.fields, table.columns, strict=True):
            relation = declaration.relation
            if relation is None or relation.kind == RelationKind.MANY_TO_MANY:
                columns.append(column)
                continue

            index = lookup.find(relation.model)
            target = tables[index] if index is not None else None
            referenced = target_column(target) if target is not None else None
            if target is None or referenced is None:
                logger.debug(
                    "Unresolved reference %r on %s.%s",
                    relation.model,
                    model.name,
                    declaration.name,
                )
                columns.append(column)
                continue

            columns.append(
                replace(
                    column,
                    foreign_key=ForeignKey(
                        table_id=target.id,
                        column_id=referenced.id,
                        on_delete=relation.on_delete,
                        on_update=ForeignKeyAction.CASCADE,
                    ),
                ),
            )
            relationships.append(
                Relationship(
                    id=ids("rel"),
                    source_table_id=table.id,
                    source_column_id=column.id,
                    target_table_id=target.id,
                    target_column_id=referenced.id,
                    type=(
                        RelationshipType.ONE_TO_ONE
                        if relation.kind == RelationKind.ONE_TO_ONE
                        else RelationshipType.MANY_TO_ONE
                    ),
                    on_delete=relation.on_delete,
                    on_update=ForeignKeyAction.CASCADE,
                ),
            )
        resolved_tables.append(replace(table, columns=tuple(columns)))

    for model, table in zip(models, tables, strict=True):
        for declaration in model.fields:
            relation = declaration.relation
            if relation is None or relation.kind != RelationKind.MANY_TO_MANY:
                continue
            index = lookup.find(relation.model)
            if index is None:
                logger.debug(
                    "Unresolved many-to-many %r on %s.%s",
                    relation.model,
                    model.name,
                    declaration.name,
                )
                continue
            if relation.through:
                logger.debug(
                    "Through model %s of %s.%s is not expanded",
                    relation.through,
                    model.name,
                    declaration.name,
                )
            relationships.append(
                Relationship(
                    id=ids("rel"),
                    source_table_id=table.id,
                    source_column_id="",
                    target_table_id=tables[index].id,
                    target_column_id="",
                    type=RelationshipType.MANY_TO_MANY,
                    name=declaration.name,
                ),
            )

    return tuple(resolved_tables), tuple(relationships)


def django_to_schema(content: str, *, ids: IdGenerator = random_ids) -> Schema:
    """Import Django model source as a schema.

    Never raises for source it cannot understand: unknown constructs are
    skipped and a source without models yields an empty schema.
    """
    models = parse_models(content)
    tables, relationships = resolve_relationships(
        models,
        build_tables(models, ids=ids),
        ids=ids,
    )
    logger.debug(
        "Imported %d tables and %d relationships",
        len(tables),
        len(relationships),
    )
    now = datetime.now(UTC)
    return Schema(
        id=ids("schema"),
        name=SCHEMA_NAME,
        tables=tables,
        relationships=relationships,
        created_at=now,
        updated_at=now,
        description=SCHEMA_DESCRIPTION,
    )


def import_schema(
    content: str,
    fmt: ImportFormat | str,
    *,
    ids: IdGenerator = random_ids,
) -> Schema:
    """Import a schema from JSON or Django source.

    Raises:
        UnsupportedFormatError: If ``fmt`` is not an import format.
        JsonImportError: If JSON content cannot be read.

    """
    try:
        source = ImportFormat(fmt)
    except ValueError:
        raise UnsupportedFormatError(str(fmt), "import") from None

    match source:
        case ImportFormat.JSON:
            return json_to_schema(content, ids=ids)
        case ImportFormat.DJANGO:
            return django_to_schema(content, ids=ids)
