"""Tests for importing Django models and dispatching imports."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ingest.fields import IMPLICIT_ID_DESCRIPTION
from ingest.main import (
    SCHEMA_NAME,
    ImportFormat,
    django_to_schema,
    import_schema,
    parse_models,
)
from schema.django_export import schema_to_django
from schema.identifiers import SequentialIds
from schema.json_export import JsonImportError
from schema.main import UnsupportedFormatError
from schema.types import (
    ColumnType,
    ForeignKey,
    ForeignKeyAction,
    Position,
    RelationshipType,
)

if TYPE_CHECKING:
    from schema.types import Schema, Table

BLOG_MODELS = '''
from django.db import models


class User(models.Model):
    """A registered author."""

    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True)

    def __str__(self):
        return self.username


class Post(models.Model):
    author = models.ForeignKey(User, on_delete=models.CASCADE)
    title = models.CharField(max_length=200)  # shown in listings
    body = models.TextField(
        help_text="Markdown, # allowed",
        null=True,
    )
    tags = models.ManyToManyField("Tag", blank=True)

    class Meta:
        db_table = "blog_posts"
        ordering = ["-id"]


class Tag(models.Model):
    label = models.SlugField(unique=True)
    # hidden = models.BooleanField()


class PostForm(forms.ModelForm):
    title = models.CharField(max_length=10)
'''

PROFILE_MODELS = """
from django.db import models


class Account(models.Model):
    id = models.BigAutoField(primary_key=True)


class Profile(models.Model):
    account = models.OneToOneField(
        "accounts.Account", on_delete=models.PROTECT, null=True
    )
    parent = models.ForeignKey("self", on_delete=models.SET_NULL, null=True)
    owner = models.ForeignKey(to="Ghost", on_delete=models.CASCADE)
    objects = models.Manager()
    uid = models.UUIDField(default=uuid.uuid4, editable=False)
    handle = models.CharField(max_length=30, db_column="handle_name")
"""


@pytest.fixture(name="blog")
def fixture_blog() -> Schema:
    """The blog models imported with predictable IDs."""
    return django_to_schema(BLOG_MODELS, ids=SequentialIds())


def table(schema: Schema, name: str) -> Table:
    """Look up a table that must exist."""
    found = schema.table_named(name)
    assert found is not None, name
    return found


def test_models_become_tables(blog: Schema) -> None:
    """Only models.Model subclasses are imported, in source order."""
    assert blog.name == SCHEMA_NAME
    assert [t.name for t in blog.tables] == ["user", "blog_posts", "tag"]
    assert [t.position for t in blog.tables] == [
        Position(100, 100),
        Position(400, 100),
        Position(700, 100),
    ]
    assert table(blog, "user").description == "A registered author."


def test_implicit_primary_key(blog: Schema) -> None:
    """Models without a primary key get Django's ``id`` column first."""
    for imported in blog.tables:
        first = imported.columns[0]
        assert first.name == "id"
        assert first.type == ColumnType.INTEGER
        assert first.primary_key is True
        assert first.nullable is False
        assert first.unique is True
        assert first.description == IMPLICIT_ID_DESCRIPTION


def test_field_options(blog: Schema) -> None:
    """Field options map to column attributes."""
    users = table(blog, "user")
    username = users.column_named("username")
    assert username is not None
    assert username.type == ColumnType.STRING
    assert username.unique is True
    assert username.nullable is True

    posts = table(blog, "blog_posts")
    assert [column.name for column in posts.columns] == [
        "id",
        "author",
        "title",
        "body",
        "tags",
    ]
    body = posts.column_named("body")
    assert body is not None
    assert body.type == ColumnType.TEXT
    assert body.description == "Markdown, # allowed"
    assert posts.column_named("hidden") is None


def test_foreign_key_resolution(blog: Schema) -> None:
    """A ForeignKey yields one many-to-one relationship and a column reference."""
    users = table(blog, "user")
    posts = table(blog, "blog_posts")
    author = posts.column_named("author")
    assert author is not None
    assert author.nullable is False
    assert author.foreign_key == ForeignKey(
        table_id=users.id,
        column_id=users.columns[0].id,
        on_delete=ForeignKeyAction.CASCADE,
        on_update=ForeignKeyAction.CASCADE,
    )

    many_to_one = [
        rel for rel in blog.relationships if rel.type == RelationshipType.MANY_TO_ONE
    ]
    assert len(many_to_one) == 1
    (relationship,) = many_to_one
    assert relationship.source_table_id == posts.id
    assert relationship.source_column_id == author.id
    assert relationship.target_table_id == users.id
    assert relationship.target_column_id == users.columns[0].id
    assert relationship.on_delete == ForeignKeyAction.CASCADE


def test_many_to_many(blog: Schema) -> None:
    """ManyToManyField yields a relationship without columns."""
    posts = table(blog, "blog_posts")
    tags = table(blog, "tag")
    (link,) = [
        rel for rel in blog.relationships if rel.type == RelationshipType.MANY_TO_MANY
    ]
    assert link.source_table_id == posts.id
    assert link.target_table_id == tags.id
    assert link.source_column_id == ""
    assert link.target_column_id == ""
    assert link.name == "tags"
    column = posts.column_named("tags")
    assert column is not None
    assert column.type == ColumnType.JSON


def test_one_to_one_self_and_unresolved() -> None:
    """One-to-one, self references and unknown targets."""
    schema = django_to_schema(PROFILE_MODELS, ids=SequentialIds())
    accounts = table(schema, "account")
    profiles = table(schema, "profile")

    assert [column.name for column in accounts.columns] == ["id"]
    assert accounts.columns[0].type == ColumnType.BIGINT
    assert [column.name for column in profiles.columns] == [
        "id",
        "account",
        "parent",
        "owner",
        "uid",
        "handle_name",
    ]

    types = {
        rel.source_column_id: rel.type for rel in schema.relationships
    }
    account = profiles.column_named("account")
    parent = profiles.column_named("parent")
    owner = profiles.column_named("owner")
    assert account is not None
    assert parent is not None
    assert owner is not None
    assert types == {
        account.id: RelationshipType.ONE_TO_ONE,
        parent.id: RelationshipType.MANY_TO_ONE,
    }
    assert account.foreign_key is not None
    assert account.foreign_key.table_id == accounts.id
    assert account.foreign_key.on_delete == ForeignKeyAction.RESTRICT
    assert account.nullable is True
    assert parent.foreign_key is not None
    assert parent.foreign_key.table_id == profiles.id
    assert owner.foreign_key is None
    assert owner.nullable is False

    uid = profiles.column_named("uid")
    assert uid is not None
    assert uid.type == ColumnType.UUID
    assert uid.default_value == "uuid.uuid4"


def test_references_by_table_name() -> None:
    """References may name a db_table or a snake_case model name."""
    source = """
class Author(models.Model):
    name = models.CharField(max_length=50)

    class Meta:
        db_table = 'writers'


class Book(models.Model):
    writer = models.ForeignKey('writers', on_delete=models.CASCADE)
    author = models.ForeignKey('author', on_delete=models.CASCADE)
"""
    schema = django_to_schema(source)
    writers = table(schema, "writers")
    books = table(schema, "book")
    targets = [
        column.foreign_key.table_id
        for column in books.columns
        if column.foreign_key is not None
    ]
    assert targets == [writers.id, writers.id]


def test_fourth_table_wraps_to_next_row() -> None:
    """Imported tables are placed three to a row."""
    source = "\n".join(
        f"class Model{index}(models.Model):\n    value = models.IntegerField()\n"
        for index in range(4)
    )
    models = parse_models(source)
    assert [model.table_name for model in models] == [
        "model0",
        "model1",
        "model2",
        "model3",
    ]
    schema = django_to_schema(source)
    assert schema.tables[3].position == Position(100, 350)


def test_source_without_models() -> None:
    """Unrecognised source gives an empty schema rather than an error."""
    schema = django_to_schema("def main():\n    pass\n")
    assert schema.tables == ()
    assert schema.relationships == ()
    assert schema.name == SCHEMA_NAME


def test_exported_models_import_again(blog: Schema) -> None:
    """Generated Django source is understood by the importer."""
    reimported = django_to_schema(schema_to_django(blog))
    assert [t.name for t in reimported.tables] == ["user", "blog_posts", "tag"]
    assert sorted(rel.type for rel in reimported.relationships) == sorted(
        rel.type for rel in blog.relationships
    )
    posts = table(reimported, "blog_posts")
    author = posts.column_named("author")
    assert author is not None
    assert author.foreign_key is not None
    body = posts.column_named("body")
    assert body is not None
    assert body.description == "Markdown, # allowed"


def test_import_schema_dispatch() -> None:
    """Formats are selected by name."""
    assert import_schema('{"tables": []}', "json").name == "Imported Schema"
    assert import_schema(BLOG_MODELS, ImportFormat.DJANGO).name == SCHEMA_NAME

    with pytest.raises(UnsupportedFormatError, match="Unsupported import format: yaml"):
        import_schema("", "yaml")
    with pytest.raises(JsonImportError):
        import_schema("{", ImportFormat.JSON)
