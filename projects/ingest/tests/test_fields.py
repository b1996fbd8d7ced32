"""Tests for Django field declaration parsing."""

import pytest

from ingest.fields import (
    RelationKind,
    model_reference,
    on_delete_action,
    parse_arguments,
    parse_field,
    split_arguments,
    string_literal,
)
from schema.types import ColumnType, ForeignKeyAction


def test_split_arguments_respects_nesting() -> None:
    """Commas inside brackets and strings do not split."""
    assert split_arguments('"a, b", to=f(1, 2), choices=[1, 2],') == [
        '"a, b"',
        "to=f(1, 2)",
        "choices=[1, 2]",
    ]


def test_parse_arguments() -> None:
    """Keyword arguments are separated from positional ones."""
    arguments = parse_arguments("User, on_delete=models.CASCADE, check=a == b")
    assert arguments.positional == ["User"]
    assert arguments.keywords == {
        "on_delete": "models.CASCADE",
        "check": "a == b",
    }


def test_string_literal() -> None:
    """Quoted values are unwrapped, expressions are not literals."""
    assert string_literal("'posts'") == "posts"
    assert string_literal('r"raw"') == "raw"
    assert string_literal("timezone.now") is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("'Author'", "Author"),
        ("Author", "Author"),
        ("'blog.Author'", "Author"),
        ("'self'", "Post"),
    ],
)
def test_model_reference(value: str, expected: str) -> None:
    """App labels are dropped and 'self' means the declaring model."""
    assert model_reference(value, "Post") == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("models.SET_NULL", ForeignKeyAction.SET_NULL),
        ("PROTECT", ForeignKeyAction.RESTRICT),
        ("models.RESTRICT", ForeignKeyAction.RESTRICT),
        ("models.DO_NOTHING", ForeignKeyAction.NO_ACTION),
        ("models.SET(0)", ForeignKeyAction.CASCADE),
        (None, ForeignKeyAction.CASCADE),
    ],
)
def test_on_delete_action(value: str | None, expected: ForeignKeyAction) -> None:
    """Django deletion handlers map to referential actions."""
    assert on_delete_action(value) is expected


@pytest.mark.parametrize(
    "text",
    [
        "objects = models.Manager()",
        "ordering = ['-id']",
        "class Meta:",
        "def __str__(self):",
    ],
)
def test_non_fields_are_ignored(text: str) -> None:
    """Managers and other statements are not fields."""
    assert parse_field(text, "Post") is None


def test_plain_field() -> None:
    """Options set nullability, uniqueness and defaults."""
    field = parse_field(
        "username = models.CharField(max_length=150, unique=True)",
        "User",
    )
    assert field is not None
    assert field.column_type == ColumnType.STRING
    assert field.unique is True
    assert field.nullable is True
    assert field.primary_key is False

    field = parse_field(
        "price = models.DecimalField(max_digits=8, decimal_places=2, default=0, "
        "null=False)",
        "Item",
    )
    assert field is not None
    assert field.column_type == ColumnType.DECIMAL
    assert field.default_value == "0"
    assert field.nullable is False


def test_string_default_and_help_text() -> None:
    """Quoted defaults and help text are unwrapped."""
    field = parse_field(
        "status = models.CharField(max_length=10, default='draft', "
        'help_text="Workflow state")',
        "Post",
    )
    assert field is not None
    assert field.default_value == "draft"
    assert field.description == "Workflow state"


def test_db_column_and_custom_fields() -> None:
    """``db_column`` renames the column; unknown *Field classes are strings."""
    field = parse_field("amount = MoneyField()", "Item")
    assert field is None
    field = parse_field(
        "amount = models.MoneyField(db_column='amount_cents')",
        "Item",
    )
    assert field is not None
    assert field.column_type == ColumnType.STRING
    assert field.column_name == "amount_cents"


def test_primary_keys() -> None:
    """Explicit and auto primary keys are never nullable."""
    slug = parse_field(
        "slug = models.SlugField(primary_key=True, null=True)",
        "Page",
    )
    assert slug is not None
    assert slug.primary_key is True
    assert slug.nullable is False

    big = parse_field("id = models.BigAutoField()", "Page")
    assert big is not None
    assert big.primary_key is True
    assert big.column_type == ColumnType.BIGINT


def test_foreign_key() -> None:
    """Relations are required unless null or blank is set."""
    field = parse_field(
        "author = models.ForeignKey(User, on_delete=models.PROTECT)",
        "Post",
    )
    assert field is not None
    assert field.column_type == ColumnType.INTEGER
    assert field.nullable is False
    assert field.relation is not None
    assert field.relation.kind == RelationKind.FOREIGN_KEY
    assert field.relation.model == "User"
    assert field.relation.on_delete == ForeignKeyAction.RESTRICT

    field = parse_field(
        "editor = models.ForeignKey(to='auth.User', on_delete=models.SET_NULL, "
        "null=True)",
        "Post",
    )
    assert field is not None
    assert field.nullable is True
    assert field.relation is not None
    assert field.relation.model == "User"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        (
            "models.ForeignKey(User, models.SET_NULL, null=True)",
            ForeignKeyAction.SET_NULL,
        ),
        ("models.OneToOneField('User', models.DO_NOTHING)", ForeignKeyAction.NO_ACTION),
    ],
)
def test_positional_on_delete(text: str, expected: ForeignKeyAction) -> None:
    """on_delete may follow the target as the second positional argument."""
    field = parse_field(f"editor = {text}", "Post")
    assert field is not None
    assert field.relation is not None
    assert field.relation.model == "User"
    assert field.relation.on_delete == expected


def test_many_to_many() -> None:
    """Many-to-many fields record their target and through model."""
    field = parse_field(
        "tags = models.ManyToManyField('Tag', through='PostTag')",
        "Post",
    )
    assert field is not None
    assert field.column_type == ColumnType.JSON
    assert field.nullable is True
    assert field.relation is not None
    assert field.relation.kind == RelationKind.MANY_TO_MANY
    assert field.relation.model == "Tag"
    assert field.relation.through == "PostTag"
