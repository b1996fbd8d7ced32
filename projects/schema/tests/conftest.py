"""Shared schema fixtures."""

from datetime import UTC, datetime

import pytest

from schema.types import (
    Column,
    ColumnType,
    ForeignKey,
    ForeignKeyAction,
    Position,
    Relationship,
    RelationshipType,
    Schema,
    Table,
)

CREATED = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture(name="blog_schema")
def fixture_blog_schema() -> Schema:
    """Users, posts and tags with a foreign key and a many-to-many link."""
    users = Table(
        id="t_users",
        name="users",
        position=Position(100, 100),
        columns=(
            Column(
                id="c_user_id",
                name="id",
                type=ColumnType.INTEGER,
                nullable=False,
                primary_key=True,
                unique=True,
            ),
            Column(
                id="c_username",
                name="username",
                type=ColumnType.STRING,
                nullable=False,
                unique=True,
            ),
            Column(id="c_email", name="email", type=ColumnType.STRING),
            Column(
                id="c_created_at",
                name="created_at",
                type=ColumnType.TIMESTAMP,
                nullable=False,
                default_value="now()",
            ),
        ),
    )
    posts = Table(
        id="t_posts",
        name="posts",
        position=Position(400, 100),
        description="Blog posts",
        columns=(
            Column(
                id="c_post_id",
                name="id",
                type=ColumnType.INTEGER,
                nullable=False,
                primary_key=True,
            ),
            Column(
                id="c_author_id",
                name="author_id",
                type=ColumnType.INTEGER,
                nullable=False,
                foreign_key=ForeignKey(
                    table_id="t_users",
                    column_id="c_user_id",
                    on_delete=ForeignKeyAction.CASCADE,
                ),
            ),
            Column(
                id="c_title",
                name="title",
                type=ColumnType.STRING,
                nullable=False,
                description="Headline shown in listings",
            ),
            Column(
                id="c_published",
                name="published",
                type=ColumnType.BOOLEAN,
                nullable=False,
                default_value="false",
            ),
        ),
    )
    tags = Table(
        id="t_tags",
        name="tags",
        position=Position(700, 100),
        columns=(
            Column(
                id="c_tag_id",
                name="id",
                type=ColumnType.INTEGER,
                nullable=False,
                primary_key=True,
            ),
            Column(id="c_tag_name", name="label", type=ColumnType.STRING),
        ),
    )
    return Schema(
        id="schema_blog",
        name="Blog",
        description="A small blog",
        tables=(posts, users, tags),
        relationships=(
            Relationship(
                id="r_author",
                source_table_id="t_posts",
                source_column_id="c_author_id",
                target_table_id="t_users",
                target_column_id="c_user_id",
                type=RelationshipType.MANY_TO_ONE,
                on_delete=ForeignKeyAction.CASCADE,
            ),
            Relationship(
                id="r_tags",
                source_table_id="t_posts",
                source_column_id="",
                target_table_id="t_tags",
                target_column_id="",
                type=RelationshipType.MANY_TO_MANY,
                name="tags",
            ),
        ),
        created_at=CREATED,
        updated_at=CREATED,
    )


@pytest.fixture(name="order_items")
def fixture_order_items() -> Table:
    """A join table with a composite primary key."""
    return Table(
        id="t_order_items",
        name="order_items",
        columns=(
            Column(
                id="c_order",
                name="order_id",
                type=ColumnType.INTEGER,
                nullable=False,
                primary_key=True,
            ),
            Column(
                id="c_product",
                name="product_id",
                type=ColumnType.INTEGER,
                nullable=False,
                primary_key=True,
            ),
            Column(id="c_quantity", name="quantity", type=ColumnType.INTEGER),
        ),
    )


@pytest.fixture(name="composite_schema")
def fixture_composite_schema(order_items: Table) -> Schema:
    """A schema holding only the composite key table."""
    return Schema(
        id="schema_orders",
        name="Orders",
        tables=(order_items,),
        relationships=(),
        created_at=CREATED,
        updated_at=CREATED,
    )
