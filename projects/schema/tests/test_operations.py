"""Tests for schema editing helpers."""

from datetime import UTC, datetime

from schema.identifiers import SequentialIds
from schema.operations import (
    connected_tables,
    create_column,
    create_relationship,
    create_table,
    duplicate_table,
    empty_schema,
    is_valid_foreign_key_target,
    sort_columns_by_importance,
    table_relationships,
    touch,
    validate_column,
    validate_relationship,
    validate_table,
)
from schema.types import (
    Column,
    ColumnType,
    Position,
    RelationshipType,
    Schema,
    Table,
)


def test_constructors_use_the_id_generator() -> None:
    """New entities take IDs from the given generator."""
    ids = SequentialIds()
    schema = empty_schema("Shop", ids=ids)
    column = create_column("id", ColumnType.INTEGER, ids=ids, primary_key=True)
    table = create_table("orders", [column], ids=ids, position=Position(10, 20))
    assert schema.id == "schema_1"
    assert schema.tables == ()
    assert column.id == "col_1"
    assert column.nullable is False
    assert table.id == "table_1"
    assert table.columns == (column,)


def test_duplicate_table_reassigns_ids(blog_schema: Schema) -> None:
    """Copies get fresh IDs, a new name and an offset position."""
    posts = blog_schema.table("t_posts")
    assert posts is not None
    copy = duplicate_table(posts, ids=SequentialIds())
    assert copy.id == "table_1"
    assert copy.name == "posts_copy"
    assert copy.position == Position(450, 150)
    assert [column.id for column in copy.columns] == [
        "col_1",
        "col_2",
        "col_3",
        "col_4",
    ]
    assert [column.name for column in copy.columns] == [
        column.name for column in posts.columns
    ]
    assert copy.columns[1].foreign_key == posts.columns[1].foreign_key


def test_validate_column() -> None:
    """Names must be identifiers and keys cannot be nullable."""
    assert validate_column(Column(id="c", name="title")) == []
    assert validate_column(Column(id="c", name="")) == ["Column name is required"]
    assert validate_column(Column(id="c", name="2fast", primary_key=True)) == [
        "Column name must be a valid identifier",
        "Primary key columns cannot be nullable",
    ]


def test_validate_table() -> None:
    """Tables need a name, columns and unique column names."""
    assert validate_table(Table(id="t", name=" ")) == [
        "Table name is required",
        "Table must have at least one column",
    ]
    table = Table(
        id="t",
        name="things",
        columns=(Column(id="a", name="x"), Column(id="b", name="x")),
    )
    assert validate_table(table) == ["Duplicate column names: x"]
    table = Table(id="t", name="things", columns=(Column(id="a", name=""),))
    assert validate_table(table) == ["Column 1: Column name is required"]


def test_validate_relationship(blog_schema: Schema) -> None:
    """Relationships must point at existing tables and columns."""
    tables = blog_schema.tables
    valid, many_to_many = blog_schema.relationships
    assert validate_relationship(valid, tables) == []
    assert validate_relationship(many_to_many, tables) == []

    self_reference = create_relationship("t_posts", "c_title", "t_posts", "c_title")
    assert "Self-referencing relationships are not supported" in (
        validate_relationship(self_reference, tables)
    )
    missing = create_relationship("t_posts", "c_nope", "t_users", "")
    assert validate_relationship(missing, tables) == [
        "Source and target columns are required",
        "Source column must exist",
        "Target column must exist",
    ]
    unknown = create_relationship(
        "t_posts",
        "",
        "t_missing",
        "",
        RelationshipType.MANY_TO_MANY,
    )
    assert validate_relationship(unknown, tables) == ["Referenced tables must exist"]


def test_connected_tables(blog_schema: Schema) -> None:
    """Neighbours are found through relationships in either direction."""
    relationships = blog_schema.relationships
    assert len(table_relationships("t_posts", relationships)) == 2
    assert [
        table.name
        for table in connected_tables("t_users", blog_schema.tables, relationships)
    ] == ["posts"]
    assert {
        table.name
        for table in connected_tables("t_posts", blog_schema.tables, relationships)
    } == {"users", "tags"}


def test_foreign_key_targets_and_sorting(blog_schema: Schema) -> None:
    """Keys sort first and only keys or unique columns can be referenced."""
    posts = blog_schema.table("t_posts")
    users = blog_schema.table("t_users")
    assert posts is not None
    assert users is not None
    ordered = sort_columns_by_importance(reversed(posts.columns))
    assert [column.name for column in ordered] == [
        "id",
        "author_id",
        "published",
        "title",
    ]
    assert [is_valid_foreign_key_target(column) for column in users.columns] == [
        True,
        True,
        False,
        False,
    ]


def test_touch_bumps_updated_at(blog_schema: Schema) -> None:
    """Edits move ``updated_at`` forward and keep ``created_at``."""
    updated = touch(blog_schema, name="Renamed")
    assert updated.name == "Renamed"
    assert updated.created_at == blog_schema.created_at
    assert updated.updated_at > datetime(2024, 1, 1, tzinfo=UTC)
