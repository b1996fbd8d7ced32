"""Django field declarations and their argument lists."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import NamedTuple

from schema.types import ColumnType, ForeignKeyAction

logger = getLogger(__name__)

FIELD_PATTERN = re.compile(r"(\w+)\s*=\s*models\.(\w+)\s*\((.*)\)", re.DOTALL)
KEYWORD_PATTERN = re.compile(r"(\w+)\s*=(?!=)\s*(.*)", re.DOTALL)
STRING_PATTERN = re.compile(r"[rRuUbB]?(['\"])(.*)\1", re.DOTALL)
ACTION_PATTERN = re.compile(r"(?:models\.)?(\w+)")

FIELD_TYPES: dict[str, ColumnType] = {
    "CharField": ColumnType.STRING,
    "EmailField": ColumnType.STRING,
    "URLField": ColumnType.STRING,
    "SlugField": ColumnType.STRING,
    "TextField": ColumnType.TEXT,
    "IntegerField": ColumnType.INTEGER,
    "SmallIntegerField": ColumnType.INTEGER,
    "PositiveIntegerField": ColumnType.INTEGER,
    "PositiveSmallIntegerField": ColumnType.INTEGER,
    "AutoField": ColumnType.INTEGER,
    "SmallAutoField": ColumnType.INTEGER,
    "BigIntegerField": ColumnType.BIGINT,
    "PositiveBigIntegerField": ColumnType.BIGINT,
    "BigAutoField": ColumnType.BIGINT,
    "FloatField": ColumnType.FLOAT,
    "DecimalField": ColumnType.DECIMAL,
    "BooleanField": ColumnType.BOOLEAN,
    "DateField": ColumnType.DATE,
    "DateTimeField": ColumnType.DATETIME,
    "TimeField": ColumnType.TIME,
    "JSONField": ColumnType.JSON,
    "UUIDField": ColumnType.UUID,
    "BinaryField": ColumnType.BINARY,
    "ForeignKey": ColumnType.INTEGER,
    "OneToOneField": ColumnType.INTEGER,
    "ManyToManyField": ColumnType.JSON,
}

AUTO_FIELDS = {"AutoField", "SmallAutoField", "BigAutoField"}

ON_DELETE_ACTIONS = {
    "CASCADE": ForeignKeyAction.CASCADE,
    "SET_NULL": ForeignKeyAction.SET_NULL,
    "PROTECT": ForeignKeyAction.RESTRICT,
    "RESTRICT": ForeignKeyAction.RESTRICT,
    "DO_NOTHING": ForeignKeyAction.NO_ACTION,
}

IMPLICIT_ID_DESCRIPTION = "Auto-generated primary key (Django default)"


class RelationKind(StrEnum):
    """Django fields that point at another model."""

    FOREIGN_KEY = "ForeignKey"
    ONE_TO_ONE = "OneToOneField"
    MANY_TO_MANY = "ManyToManyField"


RELATION_FIELDS = {kind.value for kind in RelationKind}


class Arguments(NamedTuple):
    """A call's argument list split into positional and keyword parts."""

    positional: list[str]
    keywords: dict[str, str]


@dataclass(frozen=True)
class RelationDeclaration:
    """The model reference carried by a relation field."""

    kind: RelationKind
    model: str
    on_delete: ForeignKeyAction = ForeignKeyAction.CASCADE
    through: str | None = None


@dataclass(frozen=True)
class FieldDeclaration:
    """One ``name = models.Field(...)`` line of a model class."""

    name: str
    field_type: str
    column_type: ColumnType
    column_name: str = ""
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    default_value: str | None = None
    description: str | None = None
    relation: RelationDeclaration | None = None


def implicit_primary_key() -> FieldDeclaration:
    """The ``id`` field Django adds to models without a primary key."""
    return FieldDeclaration(
        name="id",
        field_type="AutoField",
        column_type=ColumnType.INTEGER,
        column_name="id",
        nullable=False,
        primary_key=True,
        unique=True,
        description=IMPLICIT_ID_DESCRIPTION,
    )


def split_arguments(text: str) -> list[str]:
    """Split an argument list at commas outside brackets and string literals."""
    pieces: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for char in text:
        current.append(char)
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == "," and depth == 0:
            current.pop()
            pieces.append("".join(current).strip())
            current = []

    pieces.append("".join(current).strip())
    return [piece for piece in pieces if piece]


def parse_arguments(text: str) -> Arguments:
    """Separate ``name=value`` arguments from positional ones."""
    arguments = Arguments([], {})
    for piece in split_arguments(text):
        if match := KEYWORD_PATTERN.fullmatch(piece):
            arguments.keywords[match.group(1)] = match.group(2).strip()
        else:
            arguments.positional.append(piece)
    return arguments


def string_literal(value: str) -> str | None:
    """Content of a quoted string literal, None for any other expression."""
    if match := STRING_PATTERN.fullmatch(value.strip()):
        return match.group(2)
    return None


def unquote(value: str) -> str:
    """Strip surrounding quotes, leaving other expressions verbatim."""
    literal = string_literal(value)
    return value.strip() if literal is None else literal


def model_reference(value: str, declaring_model: str) -> str:
    """Normalise a model reference: quotes and app labels dropped, 'self' resolved."""
    reference = unquote(value)
    if reference == "self":
        return declaring_model
    return reference.rsplit(".", 1)[-1]


def on_delete_action(value: str | None) -> ForeignKeyAction:
    """Map ``models.CASCADE`` and friends; CASCADE when absent or unknown."""
    if value and (match := ACTION_PATTERN.fullmatch(value.strip())):
        return ON_DELETE_ACTIONS.get(match.group(1), ForeignKeyAction.CASCADE)
    return ForeignKeyAction.CASCADE


def is_field_type(field_type: str) -> bool:
    """Known field classes and anything named like a custom field."""
    return field_type in FIELD_TYPES or field_type.endswith("Field")


def parse_relation(
    kind: RelationKind,
    arguments: Arguments,
    declaring_model: str,
) -> RelationDeclaration | None:
    """Read the target model and ``on_delete`` from keywords or positions.

    Positional arguments follow the field signature ``(to, on_delete, ...)``.
    """
    positional = iter(arguments.positional)
    keywords = arguments.keywords
    target = keywords["to"] if "to" in keywords else next(positional, None)
    if not target:
        return None

    model = model_reference(target, declaring_model)
    if kind == RelationKind.MANY_TO_MANY:
        through = arguments.keywords.get("through")
        return RelationDeclaration(
            kind=kind,
            model=model,
            through=model_reference(through, declaring_model) if through else None,
        )
    return RelationDeclaration(
        kind=kind,
        model=model,
        on_delete=on_delete_action(keywords.get("on_delete", next(positional, None))),
    )


def parse_field(text: str, declaring_model: str) -> FieldDeclaration | None:
    """Parse a field assignment statement; None when it is not one."""
    if not (match := FIELD_PATTERN.fullmatch(text)):
        return None
    name, field_type, argument_text = match.groups()
    if not is_field_type(field_type):
        logger.debug("Skipping %s.%s: not a field", declaring_model, name)
        return None

    arguments = parse_arguments(argument_text)
    keywords = arguments.keywords
    declaration = FieldDeclaration(
        name=name,
        field_type=field_type,
        column_type=FIELD_TYPES.get(field_type, ColumnType.STRING),
        column_name=unquote(keywords["db_column"]) if "db_column" in keywords else name,
    )

    null = keywords.get("null")
    explicitly_nullable = null == "True" or keywords.get("blank") == "True"
    if null == "False":
        declaration = replace(declaration, nullable=False)
    if explicitly_nullable:
        declaration = replace(declaration, nullable=True)
    if keywords.get("unique") == "True":
        declaration = replace(declaration, unique=True)
    if "default" in keywords:
        declaration = replace(declaration, default_value=unquote(keywords["default"]))
    if "help_text" in keywords:
        declaration = replace(declaration, description=unquote(keywords["help_text"]))

    if field_type in RELATION_FIELDS:
        relation = parse_relation(RelationKind(field_type), arguments, declaring_model)
        declaration = replace(declaration, relation=relation)
        if relation and relation.kind != RelationKind.MANY_TO_MANY:
            declaration = replace(declaration, nullable=explicitly_nullable)

    if "max_length" in keywords:
        declaration = replace(declaration, column_type=ColumnType.STRING)
    if keywords.get("primary_key") == "True" or field_type in AUTO_FIELDS:
        declaration = replace(declaration, primary_key=True, nullable=False)
    return declaration
