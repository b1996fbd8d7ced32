"""Django model source generation."""

from __future__ import annotations

import keyword
from collections import Counter, defaultdict
from typing import TYPE_CHECKING

from schema.naming import (
    pascal_case,
    pluralize,
    snake_case,
    strip_id_suffix,
    unique_name,
)
from schema.relations import ResolvedRelation, relations_from, resolve_relations
from schema.type_conversion import DefaultKind, classify_default, django_field, is_true
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

type Imports = dict[str, set[str]]

ON_DELETE = {
    ForeignKeyAction.CASCADE: "models.CASCADE",
    ForeignKeyAction.SET_NULL: "models.SET_NULL",
    ForeignKeyAction.RESTRICT: "models.RESTRICT",
    ForeignKeyAction.NO_ACTION: "models.DO_NOTHING",
}


def field_name(name: str) -> str:
    """Python attribute name for a column."""
    name = snake_case(name)
    return f"{name}_" if keyword.iskeyword(name) else name


def python_default(value: str, imports: Imports) -> str:
    """Python expression for a stored default value."""
    match classify_default(value):
        case DefaultKind.NULL:
            return "None"
        case DefaultKind.NUMBER:
            return value.strip()
        case DefaultKind.BOOLEAN:
            return "True" if is_true(value) else "False"
        case DefaultKind.NOW:
            imports["django.utils"].add("timezone")
            return "timezone.now"
        case DefaultKind.UUID:
            imports.setdefault("uuid", set())
            return "uuid.uuid4"
        case _:
            return repr(value)


def _common_arguments(
    column: Column,
    name: str,
    *,
    include_descriptions: bool,
) -> list[str]:
    args: list[str] = []
    if column.nullable and not column.primary_key:
        args.extend(("null=True", "blank=True"))
    if name != column.name:
        args.append(f"db_column={column.name!r}")
    if include_descriptions and column.description:
        args.append(f"help_text={column.description!r}")
    return args


def generate_field(
    column: Column,
    imports: Imports,
    *,
    single_primary_key: bool,
    name: str | None = None,
    include_descriptions: bool = True,
) -> str:
    """Generate a plain (non-relational) model field assignment."""
    name = name or field_name(column.name)
    is_pk = column.primary_key and single_primary_key

    if is_pk and column.type == ColumnType.INTEGER:
        field, args = "AutoField", ["primary_key=True"]
    elif is_pk and column.type == ColumnType.BIGINT:
        field, args = "BigAutoField", ["primary_key=True"]
    elif is_pk and column.type == ColumnType.UUID:
        imports.setdefault("uuid", set())
        field = "UUIDField"
        args = ["primary_key=True", "default=uuid.uuid4", "editable=False"]
    else:
        info = django_field(column.type)
        field, args = info.name, list(info.arguments)
        if is_pk:
            args.append("primary_key=True")
        if column.default_value:
            args.append(f"default={python_default(column.default_value, imports)}")

    if column.unique and not column.primary_key:
        args.append("unique=True")
    args.extend(
        _common_arguments(column, name, include_descriptions=include_descriptions),
    )
    return f"    {name} = models.{field}({', '.join(args)})"


def generate_relation_field(
    relation: ResolvedRelation,
    name: str,
    *,
    related_name: str | None,
    primary_key: bool = False,
    include_descriptions: bool = True,
) -> str:
    """Generate a ForeignKey or OneToOneField assignment for a column relation."""
    column = relation.source_column
    target_column = relation.target_column
    if column is None or target_column is None:
        msg = "Many-to-many relations are rendered with generate_many_to_many"
        raise ValueError(msg)

    target = (
        "self"
        if relation.source_table.id == relation.target_table.id
        else pascal_case(relation.target_table.name)
    )
    one_to_one = relation.type in {
        RelationshipType.ONE_TO_ONE,
        RelationshipType.ZERO_TO_ONE,
    }
    field = "OneToOneField" if one_to_one else "ForeignKey"
    on_delete = ON_DELETE.get(relation.on_delete, "models.CASCADE")

    args = [repr(target), f"on_delete={on_delete}"]
    if not target_column.primary_key:
        args.append(f"to_field={target_column.name!r}")
    if related_name:
        args.append(f"related_name={related_name!r}")
    if primary_key:
        args.append("primary_key=True")
    if column.unique and not one_to_one and not column.primary_key:
        args.append("unique=True")

    if column.nullable and not column.primary_key:
        args.extend(("null=True", "blank=True"))
    # Django stores the column as "<name>_id" unless told otherwise
    if f"{name}_id" != column.name:
        args.append(f"db_column={column.name!r}")
    if include_descriptions and column.description:
        args.append(f"help_text={column.description!r}")
    return f"    {name} = models.{field}({', '.join(args)})"


def generate_many_to_many(relation: ResolvedRelation, name: str) -> str:
    """Generate a ManyToManyField assignment."""
    target = (
        "self"
        if relation.source_table.id == relation.target_table.id
        else pascal_case(relation.target_table.name)
    )
    return f"    {name} = models.ManyToManyField({target!r}, blank=True)"


def generate_str_method(table: Table) -> list[str]:
    """Generate ``__str__`` returning a name-like field, else the primary key."""
    name_column = next(
        (column for column in table.columns if "name" in column.name.lower()),
        None,
    )
    if name_column:
        body = f"return str(self.{field_name(name_column.name)})"
    else:
        body = f'return f"{pascal_case(table.name)}({{self.pk}})"'
    return ["    def __str__(self) -> str:", f"        {body}"]


def assign_field_names(
    table: Table,
    by_column: dict[str, ResolvedRelation],
) -> dict[str, str]:
    """Attribute name per column ID; relation fields drop the ``_id`` suffix."""
    names: dict[str, str] = {}
    used = {"pk"}
    for column in table.columns:
        if column.id not in by_column:
            names[column.id] = unique_name(field_name(column.name), used, "_")
    for column in table.columns:
        if column.id in by_column:
            base = field_name(strip_id_suffix(column.name))
            names[column.id] = unique_name(base, used, suffix="_ref")
    return names


def generate_class_definition(
    table: Table,
    relations: Sequence[ResolvedRelation],
    imports: Imports,
    *,
    include_descriptions: bool = True,
) -> str:
    """Generate the complete model class for a table."""
    class_name = pascal_case(table.name)
    primary_keys = table.primary_keys
    single_primary_key = len(primary_keys) == 1
    outgoing = relations_from(relations, table)

    many_to_many = [rel for rel in outgoing if rel.is_many_to_many]
    m2m_names = {field_name(rel.name) for rel in many_to_many if rel.name}
    by_column = {
        rel.source_column.id: rel
        for rel in outgoing
        if rel.source_column is not None
    }
    target_counts = Counter(rel.target_table.id for rel in by_column.values())
    names = assign_field_names(table, by_column)

    lines = [f"class {class_name}(models.Model):"]
    if include_descriptions and table.description:
        lines.extend((f'    """{table.description}"""', ""))

    if len(primary_keys) > 1:
        keys = ", ".join(repr(names[column.id]) for column in primary_keys)
        lines.append(f"    pk = models.CompositePrimaryKey({keys})")

    for column in table.columns:
        name = names[column.id]
        relation = by_column.get(column.id)
        if relation is not None:
            related_name = (
                f"{snake_case(table.name)}_{name}"
                if target_counts[relation.target_table.id] > 1
                else None
            )
            lines.append(
                generate_relation_field(
                    relation,
                    name,
                    related_name=related_name,
                    primary_key=column.primary_key and single_primary_key,
                    include_descriptions=include_descriptions,
                ),
            )
        elif name not in m2m_names:
            # Columns named like a many-to-many link are rendered as that link
            lines.append(
                generate_field(
                    column,
                    imports,
                    single_primary_key=single_primary_key,
                    name=name,
                    include_descriptions=include_descriptions,
                ),
            )

    used = {name for name in names.values() if name not in m2m_names}
    for relation in many_to_many:
        base = (
            field_name(relation.name)
            if relation.name
            else pluralize(snake_case(relation.target_table.name))
        )
        lines.append(generate_many_to_many(relation, unique_name(base, used, "_set")))

    lines.append("")
    lines.extend(("    class Meta:", f"        db_table = {table.name!r}", ""))
    lines.extend(generate_str_method(table))
    return "\n".join(lines)


def generate_imports(imports: Imports) -> str:
    """Generate import statements from collected imports."""
    plain = sorted(module for module, names in imports.items() if not names)
    lines = [f"import {module}" for module in plain]
    lines.extend(
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(imports.items())
        if names
    )
    return "\n".join(lines)


def schema_to_django(schema: Schema, *, include_descriptions: bool = True) -> str:
    """Generate a Django ``models.py`` for the schema."""
    imports: Imports = defaultdict(set)
    imports["django.db"].add("models")
    relations = resolve_relations(schema)

    # Force evaluation to populate imports
    models = [
        generate_class_definition(
            table,
            relations,
            imports,
            include_descriptions=include_descriptions,
        )
        for table in schema.tables
    ]

    parts = (
        f'"""Django models generated from the {schema.name} schema."""',
        "",
        generate_imports(imports),
        "",
        "",
        "\n\n\n".join(models),
        "",
    )
    return "\n".join(parts)
