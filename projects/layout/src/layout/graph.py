"""Directed table graph derived from relationships."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from schema.types import Relationship, Table

logger = getLogger(__name__)

type Adjacency = dict[str, list[str]]


def build_adjacency(
    tables: Sequence[Table],
    relationships: Iterable[Relationship],
) -> Adjacency:
    """Source to target edges between known tables.

    Self loops, duplicate edges and edges touching unknown tables are dropped.
    """
    adjacency: Adjacency = {table.id: [] for table in tables}
    for rel in relationships:
        source, target = rel.source_table_id, rel.target_table_id
        if source == target or source not in adjacency or target not in adjacency:
            continue
        if target not in adjacency[source]:
            adjacency[source].append(target)
    return adjacency


def in_degrees(adjacency: Adjacency) -> dict[str, int]:
    """Number of incoming edges per table."""
    degrees = dict.fromkeys(adjacency, 0)
    for targets in adjacency.values():
        for target in targets:
            degrees[target] += 1
    return degrees


def topological_levels(adjacency: Adjacency) -> list[list[str]]:
    """Kahn layering: repeatedly peel off the tables without incoming edges.

    Tables left over because they sit on a cycle form one final level.
    """
    degrees = in_degrees(adjacency)
    current = [node for node, degree in degrees.items() if degree == 0]
    levels: list[list[str]] = []
    placed: set[str] = set()

    while current:
        levels.append(current)
        placed.update(current)
        following: list[str] = []
        for node in current:
            for target in adjacency[node]:
                degrees[target] -= 1
                if degrees[target] == 0 and target not in placed:
                    following.append(target)
        current = following

    if leftover := [node for node in adjacency if node not in placed]:
        logger.debug("Placing %d tables on cycles in a final level", len(leftover))
        levels.append(leftover)
    return levels


def max_depth(adjacency: Adjacency) -> int:
    """Deepest edge count reached by depth-first walks from each unvisited table.

    Each table is visited once overall, so the result depends on table order
    for graphs with shared descendants.
    """
    visited: set[str] = set()
    deepest = 0

    for start in adjacency:
        if start in visited:
            continue
        stack = [(start, 0)]
        while stack:
            node, depth = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            deepest = max(deepest, depth)
            stack.extend(
                (neighbour, depth + 1) for neighbour in reversed(adjacency[node])
            )
    return deepest
