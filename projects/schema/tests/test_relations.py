"""Tests for relation resolution."""

import logging
from dataclasses import replace

import pytest

from schema.relations import (
    dependency_order,
    is_covered,
    many_to_many_columns,
    relations_from,
    relations_to,
    resolve_relations,
)
from schema.types import Column, ColumnType, Relationship, RelationshipType, Schema


def test_covered_relationships_are_merged(blog_schema: Schema) -> None:
    """A relationship mirrored by a column foreign key appears once."""
    relations = resolve_relations(blog_schema)
    assert len(relations) == 2

    column_relation, many_to_many = relations
    assert column_relation.from_column is True
    assert column_relation.source_table.name == "posts"
    assert column_relation.target_table.name == "users"
    assert column_relation.type == RelationshipType.MANY_TO_ONE
    assert many_to_many.is_many_to_many
    assert many_to_many.name == "tags"


def test_is_covered(blog_schema: Schema) -> None:
    """Coverage compares target table and column."""
    posts = blog_schema.table("t_posts")
    assert posts is not None
    author = posts.column("c_author_id")
    title = posts.column("c_title")
    assert author is not None
    assert title is not None
    relationship = blog_schema.relationships[0]
    assert is_covered(relationship, author)
    assert not is_covered(relationship, title)
    assert not is_covered(replace(relationship, target_column_id="c_username"), author)


def test_column_relation_takes_relationship_type(blog_schema: Schema) -> None:
    """The matching relationship's cardinality is kept."""
    relationships = (
        replace(blog_schema.relationships[0], type=RelationshipType.ONE_TO_ONE),
        blog_schema.relationships[1],
    )
    schema = replace(blog_schema, relationships=relationships)
    assert resolve_relations(schema)[0].type == RelationshipType.ONE_TO_ONE


def test_dangling_relationships_are_skipped(
    blog_schema: Schema,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Relationships pointing at missing tables or columns are dropped."""
    dangling = (
        Relationship(
            id="r_missing_table",
            source_table_id="t_posts",
            source_column_id="c_title",
            target_table_id="t_missing",
            target_column_id="c_missing",
        ),
        Relationship(
            id="r_missing_column",
            source_table_id="t_posts",
            source_column_id="c_missing",
            target_table_id="t_users",
            target_column_id="c_user_id",
        ),
    )
    schema = replace(
        blog_schema,
        relationships=(*blog_schema.relationships, *dangling),
    )
    with caplog.at_level(logging.WARNING, logger="schema.relations"):
        relations = resolve_relations(schema)
    assert len(relations) == 2
    assert "r_missing_table" in caplog.text
    assert "r_missing_column" in caplog.text


def test_dependency_order(blog_schema: Schema) -> None:
    """Tables without foreign keys come first, otherwise order is kept."""
    ordered = dependency_order(blog_schema.tables)
    assert [table.name for table in ordered] == ["users", "tags", "posts"]


def test_relations_from_and_to(blog_schema: Schema) -> None:
    """Relations can be filtered by either end."""
    relations = resolve_relations(blog_schema)
    posts = blog_schema.table("t_posts")
    users = blog_schema.table("t_users")
    assert posts is not None
    assert users is not None
    assert len(relations_from(relations, posts)) == 2
    assert relations_from(relations, users) == []
    assert [rel.source_table.name for rel in relations_to(relations, users)] == [
        "posts",
    ]


def test_many_to_many_columns(blog_schema: Schema) -> None:
    """Only plain columns named after a many-to-many link are placeholders."""
    assert many_to_many_columns(resolve_relations(blog_schema)) == set()

    posts, *others = blog_schema.tables
    tags = Column(id="c_post_tags", name="tags", type=ColumnType.JSON)
    posts = replace(posts, columns=(*posts.columns, tags))
    schema = replace(blog_schema, tables=(posts, *others))
    assert many_to_many_columns(resolve_relations(schema)) == {"c_post_tags"}
