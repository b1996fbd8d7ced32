"""TypeORM entity generation."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from schema.naming import (
    camel_case,
    lower_first,
    pascal_case,
    pluralize,
    snake_case,
    strip_id_suffix,
    unique_name,
)
from schema.relations import (
    many_to_many_columns,
    relations_from,
    resolve_relations,
)
from schema.type_conversion import (
    DefaultKind,
    classify_default,
    is_true,
    typeorm_type,
)
from schema.types import (
    Column,
    ColumnType,
    ForeignKeyAction,
    RelationshipType,
    Schema,
    Table,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from schema.relations import ResolvedRelation

# Decorators imported from "typeorm"
type Imports = set[str]

CREATE_DATE_NAMES = {"created_at", "created", "creation_date", "date_created"}
UPDATE_DATE_NAMES = {"updated_at", "updated", "modified_at", "date_updated"}
DELETE_DATE_NAMES = {"deleted_at", "deleted"}
DATE_TYPES = {ColumnType.DATETIME, ColumnType.TIMESTAMP}
GENERATED_KEY_TYPES = {ColumnType.INTEGER, ColumnType.BIGINT}


def entity_name(table: Table) -> str:
    """TypeScript class name for a table."""
    return pascal_case(table.name)


def typeorm_default(value: str) -> str:
    """Value of the ``default`` column option."""
    match classify_default(value):
        case DefaultKind.NOW:
            return '() => "CURRENT_TIMESTAMP"'
        case DefaultKind.UUID:
            return '() => "uuid_generate_v4()"'
        case DefaultKind.NULL:
            return "null"
        case DefaultKind.NUMBER:
            return value.strip()
        case DefaultKind.BOOLEAN:
            return "true" if is_true(value) else "false"
        case _:
            return json.dumps(value)


def render_options(options: dict[str, str]) -> str:
    """Render an options object literal, empty string when there are none."""
    if not options:
        return ""
    return "{ " + ", ".join(f"{key}: {value}" for key, value in options.items()) + " }"


def column_options(column: Column, property_name: str) -> dict[str, str]:
    """Options of a ``@Column``-style decorator."""
    info = typeorm_type(column.type)
    options = {"type": json.dumps(info.column_type)}
    if column.type == ColumnType.ENUM:
        options["length"] = "50"
    elif info.column_type == "varchar":
        options["length"] = "255"
    if column.type == ColumnType.DECIMAL:
        options.update(precision="10", scale="2")
    if property_name != column.name:
        options["name"] = json.dumps(column.name)
    if column.nullable and not column.primary_key:
        options["nullable"] = "true"
    if column.unique and not column.primary_key:
        options["unique"] = "true"
    if column.default_value:
        options["default"] = typeorm_default(column.default_value)
    return options


def date_decorator(column: Column) -> str | None:
    """Create/Update/DeleteDateColumn for conventionally named timestamps."""
    if column.type not in DATE_TYPES or column.primary_key:
        return None
    name = snake_case(column.name)
    if name in CREATE_DATE_NAMES:
        return "CreateDateColumn"
    if name in UPDATE_DATE_NAMES:
        return "UpdateDateColumn"
    if name in DELETE_DATE_NAMES:
        return "DeleteDateColumn"
    return None


def generate_column(
    column: Column,
    imports: Imports,
    *,
    single_primary_key: bool,
    include_descriptions: bool = True,
) -> list[str]:
    """Generate the decorated property for a column."""
    name = camel_case(column.name)
    info = typeorm_type(column.type)
    name_option = {"name": json.dumps(column.name)} if name != column.name else {}

    if column.primary_key and single_primary_key and column.type in GENERATED_KEY_TYPES:
        options = dict(name_option)
        if column.type == ColumnType.BIGINT:
            options = {"type": '"bigint"', **options}
        decorator = f"PrimaryGeneratedColumn({render_options(options)})"
        imports.add("PrimaryGeneratedColumn")
    elif column.primary_key and single_primary_key and column.type == ColumnType.UUID:
        arguments = ", ".join(('"uuid"', *filter(None, [render_options(name_option)])))
        decorator = f"PrimaryGeneratedColumn({arguments})"
        imports.add("PrimaryGeneratedColumn")
    elif column.primary_key:
        decorator = f"PrimaryColumn({render_options(column_options(column, name))})"
        imports.add("PrimaryColumn")
    elif date_type := date_decorator(column):
        options = dict(name_option)
        if column.nullable:
            options["nullable"] = "true"
        decorator = f"{date_type}({render_options(options)})"
        imports.add(date_type)
    else:
        decorator = f"Column({render_options(column_options(column, name))})"
        imports.add("Column")

    nullable = column.nullable and not column.primary_key
    type_expression = f"{info.expression} | null" if nullable else info.expression
    lines = []
    if include_descriptions and column.description:
        lines.append(f"  /** {column.description} */")
    lines.extend((f"  @{decorator}", f"  {name}: {type_expression};"))
    return lines


def generate_relation(
    relation: ResolvedRelation,
    name: str,
    imports: Imports,
) -> list[str]:
    """Generate the decorated relation property for a resolved relation."""
    target = entity_name(relation.target_table)

    if relation.is_many_to_many:
        imports.update(("ManyToMany", "JoinTable"))
        return [
            f"  @ManyToMany(() => {target})",
            "  @JoinTable()",
            f"  {name}: {target}[];",
        ]

    source_column = relation.source_column
    target_column = relation.target_column
    if source_column is None or target_column is None:
        return []

    decorator = (
        "OneToOne"
        if relation.type in {RelationshipType.ONE_TO_ONE, RelationshipType.ZERO_TO_ONE}
        else "ManyToOne"
    )
    options: dict[str, str] = {}
    for label, action in (
        ("onDelete", relation.on_delete),
        ("onUpdate", relation.on_update),
    ):
        if action and action != ForeignKeyAction.NO_ACTION:
            options[label] = json.dumps(action.value)
    if not source_column.nullable:
        options["nullable"] = "false"

    join_options = {"name": json.dumps(source_column.name)}
    if not target_column.primary_key:
        referenced = camel_case(target_column.name)
        join_options["referencedColumnName"] = json.dumps(referenced)

    imports.update((decorator, "JoinColumn"))
    arguments = ", ".join(filter(None, (f"() => {target}", render_options(options))))
    type_expression = f"{target} | null" if source_column.nullable else target
    return [
        f"  @{decorator}({arguments})",
        f"  @JoinColumn({render_options(join_options)})",
        f"  {name}: {type_expression};",
    ]


def generate_entity(
    table: Table,
    relations: Sequence[ResolvedRelation],
    imports: Imports,
    *,
    include_descriptions: bool = True,
) -> str:
    """Generate the entity class for a table."""
    name = entity_name(table)
    primary_keys = table.primary_keys
    outgoing = relations_from(relations, table)
    placeholders = many_to_many_columns(outgoing)
    columns = [column for column in table.columns if column.id not in placeholders]
    imports.add("Entity")

    members = [
        generate_column(
            column,
            imports,
            single_primary_key=len(primary_keys) == 1,
            include_descriptions=include_descriptions,
        )
        for column in columns
    ]

    used = {camel_case(column.name) for column in columns}
    for relation in outgoing:
        if relation.is_many_to_many:
            base = (
                camel_case(relation.name)
                if relation.name
                else pluralize(lower_first(entity_name(relation.target_table)))
            )
        elif relation.source_column is not None:
            base = camel_case(strip_id_suffix(relation.source_column.name))
            if base == camel_case(relation.source_column.name):
                base = lower_first(entity_name(relation.target_table))
        else:
            continue
        members.append(generate_relation(relation, unique_name(base, used), imports))

    lines = []
    if include_descriptions and table.description:
        lines.append(f"/** {table.description} */")
    entity_argument = json.dumps(table.name) if name != table.name else ""
    lines.extend((f"@Entity({entity_argument})", f"export class {name} {{"))
    lines.append("\n\n".join("\n".join(member) for member in members))
    lines.append("}")
    return "\n".join(lines)


def schema_to_typeorm(schema: Schema, *, include_descriptions: bool = True) -> str:
    """Generate TypeORM entities for the schema."""
    imports: Imports = set()
    relations = resolve_relations(schema)

    # Force evaluation to populate imports
    entities = [
        generate_entity(
            table,
            relations,
            imports,
            include_descriptions=include_descriptions,
        )
        for table in schema.tables
    ]

    header = f'import {{ {", ".join(sorted(imports))} }} from "typeorm";'
    return "\n\n".join((header, *entities)) + "\n"
