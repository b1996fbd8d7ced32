"""Versioned JSON envelope for lossless schema exchange."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

from schema.identifiers import IdGenerator, random_ids
from schema.types import (
    Column,
    ForeignKey,
    Position,
    Relationship,
    Schema,
    Table,
    coerce_action,
    coerce_column_type,
    coerce_relationship_type,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = getLogger(__name__)

FORMAT_VERSION = "1.0.0"


class JsonImportError(ValueError):
    """Raised when a document cannot be read as a schema."""


class PositionData(TypedDict):
    """Serialized table position."""

    x: float
    y: float


class ForeignKeyData(TypedDict):
    """Serialized column foreign key."""

    tableId: str
    columnId: str
    onDelete: NotRequired[str]
    onUpdate: NotRequired[str]


class ColumnData(TypedDict):
    """Serialized column."""

    id: str
    name: str
    type: str
    nullable: bool
    primaryKey: bool
    unique: bool
    defaultValue: NotRequired[str]
    foreignKey: NotRequired[ForeignKeyData]
    description: NotRequired[str]


class TableData(TypedDict):
    """Serialized table."""

    id: str
    name: str
    columns: list[ColumnData]
    position: NotRequired[PositionData]
    description: NotRequired[str]


class RelationshipData(TypedDict):
    """Serialized relationship."""

    id: str
    sourceTableId: str
    sourceColumnId: str
    targetTableId: str
    targetColumnId: str
    type: str
    name: NotRequired[str]
    onDelete: NotRequired[str]
    onUpdate: NotRequired[str]


class MetadataData(TypedDict):
    """Envelope metadata."""

    name: str
    createdAt: str
    updatedAt: str
    exportedAt: str
    schemaVersion: int
    description: NotRequired[str]


class SchemaDocument(TypedDict):
    """The complete JSON envelope."""

    version: str
    metadata: MetadataData
    tables: list[TableData]
    relationships: list[RelationshipData]


def _column_to_data(column: Column) -> ColumnData:
    data: ColumnData = {
        "id": column.id,
        "name": column.name,
        "type": str(column.type),
        "nullable": column.nullable,
        "primaryKey": column.primary_key,
        "unique": column.unique,
    }
    if column.default_value is not None:
        data["defaultValue"] = column.default_value
    if fk := column.foreign_key:
        fk_data: ForeignKeyData = {"tableId": fk.table_id, "columnId": fk.column_id}
        if fk.on_delete:
            fk_data["onDelete"] = fk.on_delete.value
        if fk.on_update:
            fk_data["onUpdate"] = fk.on_update.value
        data["foreignKey"] = fk_data
    if column.description is not None:
        data["description"] = column.description
    return data


def _table_to_data(table: Table, *, include_positions: bool) -> TableData:
    data: TableData = {
        "id": table.id,
        "name": table.name,
        "columns": [_column_to_data(column) for column in table.columns],
    }
    if include_positions:
        data["position"] = {"x": table.position.x, "y": table.position.y}
    if table.description is not None:
        data["description"] = table.description
    return data


def _relationship_to_data(relationship: Relationship) -> RelationshipData:
    data: RelationshipData = {
        "id": relationship.id,
        "sourceTableId": relationship.source_table_id,
        "sourceColumnId": relationship.source_column_id,
        "targetTableId": relationship.target_table_id,
        "targetColumnId": relationship.target_column_id,
        "type": relationship.type.value,
    }
    if relationship.name is not None:
        data["name"] = relationship.name
    if relationship.on_delete:
        data["onDelete"] = relationship.on_delete.value
    if relationship.on_update:
        data["onUpdate"] = relationship.on_update.value
    return data


def schema_to_document(
    schema: Schema,
    *,
    include_positions: bool = True,
    exported_at: datetime | None = None,
) -> SchemaDocument:
    """Build the JSON envelope for a schema."""
    metadata: MetadataData = {
        "name": schema.name,
        "createdAt": schema.created_at.isoformat(),
        "updatedAt": schema.updated_at.isoformat(),
        "exportedAt": (exported_at or datetime.now(UTC)).isoformat(),
        "schemaVersion": schema.version,
    }
    if schema.description is not None:
        metadata["description"] = schema.description

    return {
        "version": FORMAT_VERSION,
        "metadata": metadata,
        "tables": [
            _table_to_data(table, include_positions=include_positions)
            for table in schema.tables
        ],
        "relationships": [_relationship_to_data(rel) for rel in schema.relationships],
    }


def schema_to_json(
    schema: Schema,
    *,
    include_positions: bool = True,
    exported_at: datetime | None = None,
) -> str:
    """Serialize a schema to the versioned JSON envelope."""
    document = schema_to_document(
        schema,
        include_positions=include_positions,
        exported_at=exported_at,
    )
    return json.dumps(document, indent=2)


def _parse_timestamp(value: object, fallback: datetime) -> datetime:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning("Ignoring malformed timestamp %r", value)
    return fallback


def _column_from_data(data: Mapping[str, Any]) -> Column:
    fk_data = data.get("foreignKey")
    foreign_key = (
        ForeignKey(
            table_id=fk_data["tableId"],
            column_id=fk_data["columnId"],
            on_delete=coerce_action(fk_data.get("onDelete")),
            on_update=coerce_action(fk_data.get("onUpdate")),
        )
        if fk_data
        else None
    )
    return Column(
        id=data["id"],
        name=data["name"],
        type=coerce_column_type(data.get("type", "string")),
        nullable=bool(data.get("nullable", True)),
        primary_key=bool(data.get("primaryKey", False)),
        unique=bool(data.get("unique", False)),
        default_value=data.get("defaultValue"),
        foreign_key=foreign_key,
        description=data.get("description"),
    )


def _table_from_data(data: Mapping[str, Any]) -> Table:
    position = data.get("position") or {}
    return Table(
        id=data["id"],
        name=data["name"],
        position=Position(x=position.get("x", 0), y=position.get("y", 0)),
        columns=tuple(
            _column_from_data(column) for column in data.get("columns") or []
        ),
        description=data.get("description"),
    )


def _relationship_from_data(data: Mapping[str, Any]) -> Relationship:
    return Relationship(
        id=data["id"],
        source_table_id=data["sourceTableId"],
        source_column_id=data.get("sourceColumnId", ""),
        target_table_id=data["targetTableId"],
        target_column_id=data.get("targetColumnId", ""),
        type=coerce_relationship_type(data.get("type")),
        name=data.get("name"),
        on_delete=coerce_action(data.get("onDelete")),
        on_update=coerce_action(data.get("onUpdate")),
    )


def document_to_schema(
    document: Mapping[str, Any],
    *,
    ids: IdGenerator = random_ids,
) -> Schema:
    """Build a schema from an already-parsed JSON document.

    Accepts both the versioned envelope and looser hand-written shapes:
    ``relationships`` and ``metadata`` are optional, missing positions become
    (0, 0).
    """
    tables = document.get("tables")
    if not isinstance(tables, list):
        msg = "Invalid JSON format: missing tables array"
        raise JsonImportError(msg)

    metadata = document.get("metadata") or {}
    now = datetime.now(UTC)
    return Schema(
        id=ids("schema"),
        name=metadata.get("name", "Imported Schema"),
        description=metadata.get("description"),
        tables=tuple(_table_from_data(table) for table in tables),
        relationships=tuple(
            _relationship_from_data(rel)
            for rel in document.get("relationships") or []
        ),
        created_at=_parse_timestamp(metadata.get("createdAt"), now),
        updated_at=_parse_timestamp(metadata.get("updatedAt"), now),
        version=int(metadata.get("schemaVersion", 1)),
    )


def json_to_schema(content: str, *, ids: IdGenerator = random_ids) -> Schema:
    """Parse the JSON envelope back into a schema."""
    try:
        document = json.loads(content)
        if not isinstance(document, dict):
            msg = "Invalid JSON format: expected an object"
            raise JsonImportError(msg)
        schema = document_to_schema(document, ids=ids)
    except (ValueError, KeyError, TypeError, AttributeError) as err:
        msg = f"Failed to import JSON: {err}"
        raise JsonImportError(msg) from err

    logger.debug(
        "Imported schema %r with %d tables",
        schema.name,
        len(schema.tables),
    )
    return schema
