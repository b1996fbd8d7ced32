"""Prisma schema generation."""

from __future__ import annotations

import json
from collections import Counter, defaultdict
from typing import TYPE_CHECKING, NamedTuple

from schema.naming import (
    camel_case,
    lower_first,
    pascal_case,
    pluralize,
    strip_id_suffix,
    unique_name,
)
from schema.relations import (
    ResolvedRelation,
    many_to_many_columns,
    resolve_relations,
)
from schema.templating import render_template
from schema.type_conversion import DefaultKind, classify_default, is_true, prisma_type
from schema.types import (
    Column,
    ColumnType,
    ForeignKeyAction,
    RelationshipType,
    Schema,
    SQLDialect,
    Table,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

PROVIDERS = {
    SQLDialect.POSTGRESQL: "postgresql",
    SQLDialect.MYSQL: "mysql",
    SQLDialect.SQLITE: "sqlite",
    SQLDialect.SQLSERVER: "sqlserver",
}

REFERENTIAL_ACTIONS = {
    ForeignKeyAction.CASCADE: "Cascade",
    ForeignKeyAction.SET_NULL: "SetNull",
    ForeignKeyAction.RESTRICT: "Restrict",
}


class FieldLine(NamedTuple):
    """One field of a Prisma model block."""

    name: str
    type: str
    attributes: tuple[str, ...] = ()
    doc: str | None = None


type RelationFields = dict[str, list[FieldLine]]


def model_name(table: Table) -> str:
    """Prisma model name for a table."""
    return pascal_case(table.name)


def prisma_default(column: Column) -> str | None:
    """Argument of the @default attribute, if any."""
    value = column.default_value
    if not value:
        if column.type == ColumnType.TIMESTAMP and not column.nullable:
            return "now()"
        return None

    match classify_default(value):
        case DefaultKind.NULL:
            return None
        case DefaultKind.NOW:
            return "now()"
        case DefaultKind.UUID:
            return "uuid()"
        case DefaultKind.NUMBER:
            return value.strip()
        case DefaultKind.BOOLEAN:
            return "true" if is_true(value) else "false"
        case _:
            return json.dumps(value)


def generate_scalar_field(
    column: Column,
    *,
    single_primary_key: bool,
    force_unique: bool = False,
    include_descriptions: bool = True,
) -> FieldLine:
    """Generate the scalar field for a column."""
    name = camel_case(column.name)
    optional = column.nullable and not column.primary_key
    field_type = prisma_type(column.type) + ("?" if optional else "")

    attributes: list[str] = []
    is_id = column.primary_key and single_primary_key
    if is_id:
        attributes.append("@id")
    if (column.unique or force_unique) and not is_id:
        attributes.append("@unique")
    if (default := prisma_default(column)) is not None:
        attributes.append(f"@default({default})")
    if name != column.name:
        attributes.append(f'@map("{column.name}")')

    doc = column.description if include_descriptions else None
    return FieldLine(name, field_type, tuple(attributes), doc)


def _relation_arguments(relation: ResolvedRelation, name: str | None) -> str:
    source_column = relation.source_column
    target_column = relation.target_column
    arguments = [json.dumps(name)] if name else []
    if source_column is not None and target_column is not None:
        arguments.append(f"fields: [{camel_case(source_column.name)}]")
        arguments.append(f"references: [{camel_case(target_column.name)}]")
    for label, action in (
        ("onDelete", relation.on_delete),
        ("onUpdate", relation.on_update),
    ):
        if action in REFERENTIAL_ACTIONS:
            arguments.append(f"{label}: {REFERENTIAL_ACTIONS[action]}")
    return ", ".join(arguments)


def _relation_name(
    relation: ResolvedRelation,
    pair_counts: Counter[frozenset[str]],
) -> str | None:
    """Prisma needs explicit names for self relations and repeated table pairs."""
    source = relation.source_table
    target = relation.target_table
    if source.id != target.id and pair_counts[frozenset((source.id, target.id))] < 2:
        return None
    if relation.name:
        return relation.name
    column = relation.source_column
    suffix = pascal_case(column.name) if column else "Link"
    return f"{model_name(source)}{suffix}"


def plan_relation_fields(
    relations: Iterable[ResolvedRelation],
    used_names: dict[str, set[str]],
) -> RelationFields:
    """Assign both sides of every relation to their models.

    ``used_names`` holds the scalar field names per table ID and is extended
    with every relation field name assigned here.
    """
    relations = list(relations)
    pair_counts = Counter(
        frozenset((rel.source_table.id, rel.target_table.id)) for rel in relations
    )
    fields: RelationFields = defaultdict(list)

    for relation in relations:
        source = relation.source_table
        target = relation.target_table
        source_model = model_name(source)
        target_model = model_name(target)
        name = _relation_name(relation, pair_counts)
        name_attribute = f"@relation({json.dumps(name)})" if name else None

        if relation.is_many_to_many:
            forward_base = (
                camel_case(relation.name)
                if relation.name
                else pluralize(lower_first(target_model))
            )
            forward = unique_name(forward_base, used_names[source.id])
            back_base = pluralize(lower_first(source_model))
            back = unique_name(back_base, used_names[target.id])
            attributes = (name_attribute,) if name_attribute else ()
            fields[source.id].append(
                FieldLine(forward, f"{target_model}[]", attributes),
            )
            fields[target.id].append(
                FieldLine(back, f"{source_model}[]", attributes),
            )
            continue

        source_column = relation.source_column
        if source_column is None:
            continue
        base = camel_case(strip_id_suffix(source_column.name))
        if base == camel_case(source_column.name):
            base = lower_first(target_model)
        forward = unique_name(base, used_names[source.id])
        optional = "?" if source_column.nullable else ""
        fields[source.id].append(
            FieldLine(
                forward,
                f"{target_model}{optional}",
                (f"@relation({_relation_arguments(relation, name)})",),
            ),
        )

        if relation.type in {RelationshipType.ONE_TO_ONE, RelationshipType.ZERO_TO_ONE}:
            back = unique_name(lower_first(source_model), used_names[target.id])
            back_type = f"{source_model}?"
        else:
            back_base = pluralize(lower_first(source_model))
            back = unique_name(back_base, used_names[target.id])
            back_type = f"{source_model}[]"
        attributes = (name_attribute,) if name_attribute else ()
        fields[target.id].append(FieldLine(back, back_type, attributes))

    return fields


def render_fields(fields: Iterable[FieldLine]) -> list[str]:
    """Render field lines with aligned name and type columns."""
    fields = list(fields)
    if not fields:
        return []
    name_width = max(len(field.name) for field in fields)
    type_width = max(len(field.type) for field in fields)

    lines: list[str] = []
    for field in fields:
        if field.doc:
            lines.append(f"  /// {field.doc}")
        line = f"  {field.name:<{name_width}} {field.type:<{type_width}}"
        if field.attributes:
            line += " " + " ".join(field.attributes)
        lines.append(line.rstrip())
    return lines


def generate_model(
    table: Table,
    relation_fields: list[FieldLine],
    one_to_one_columns: set[str],
    *,
    skipped_columns: set[str] | None = None,
    include_descriptions: bool = True,
) -> str:
    """Generate the model block for a table.

    Columns in ``skipped_columns`` are left out, for links rendered as
    relation fields instead.
    """
    name = model_name(table)
    primary_keys = table.primary_keys
    skipped_columns = skipped_columns or set()
    scalar_fields = [
        generate_scalar_field(
            column,
            single_primary_key=len(primary_keys) == 1,
            force_unique=column.id in one_to_one_columns,
            include_descriptions=include_descriptions,
        )
        for column in table.columns
        if column.id not in skipped_columns
    ]

    lines: list[str] = []
    if include_descriptions and table.description:
        lines.append(f"/// {table.description}")
    lines.append(f"model {name} {{")
    lines.extend(render_fields(scalar_fields))
    if relation_fields:
        lines.append("")
        lines.extend(render_fields(relation_fields))

    block_attributes: list[str] = []
    if len(primary_keys) > 1:
        keys = ", ".join(camel_case(column.name) for column in primary_keys)
        block_attributes.append(f"@@id([{keys}])")
    if name != table.name:
        block_attributes.append(f'@@map("{table.name}")')
    if block_attributes:
        lines.append("")
        lines.extend(f"  {attribute}" for attribute in block_attributes)

    lines.append("}")
    return "\n".join(lines)


def schema_to_prisma(
    schema: Schema,
    *,
    provider: SQLDialect = SQLDialect.POSTGRESQL,
    include_descriptions: bool = True,
) -> str:
    """Generate a Prisma schema file."""
    relations = resolve_relations(schema)
    placeholders = many_to_many_columns(relations)
    used_names = {
        table.id: {
            camel_case(column.name)
            for column in table.columns
            if column.id not in placeholders
        }
        for table in schema.tables
    }
    relation_fields = plan_relation_fields(relations, used_names)
    one_to_one_columns = {
        rel.source_column.id
        for rel in relations
        if rel.source_column is not None
        and rel.type in {RelationshipType.ONE_TO_ONE, RelationshipType.ZERO_TO_ONE}
    }

    preamble = render_template(
        "prisma_preamble.prisma.j2",
        schema_name=schema.name,
        description=schema.description if include_descriptions else None,
        provider=PROVIDERS[provider],
    )
    models = [
        generate_model(
            table,
            relation_fields.get(table.id, []),
            one_to_one_columns,
            skipped_columns=placeholders,
            include_descriptions=include_descriptions,
        )
        for table in schema.tables
    ]
    return "\n".join((preamble, "\n\n".join(models), ""))
