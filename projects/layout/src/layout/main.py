"""Table arrangement entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from layout.algorithms import (
    circular_layout,
    force_directed_layout,
    grid_layout,
    hierarchical_layout,
)
from layout.graph import build_adjacency, in_degrees, max_depth
from layout.types import LayoutAlgorithm, LayoutOptions, coerce_algorithm

if TYPE_CHECKING:
    from collections.abc import Sequence

    from schema.types import Relationship, Table

logger = getLogger(__name__)

# Recommendation thresholds
SMALL_GRAPH_TABLES = 6
DENSE_RATIO = 1.5
CONNECTED_RATIO = 0.8
HIERARCHY_DEPTH = 2


def layout_tables(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
    options: LayoutOptions | None = None,
) -> tuple[Table, ...]:
    """Return the tables with new positions; nothing but ``position`` changes.

    Unknown algorithm names fall back to force-directed.
    """
    options = options or LayoutOptions()
    algorithm = coerce_algorithm(options.algorithm)
    logger.debug("Laying out %d tables with %s", len(tables), algorithm)

    match algorithm:
        case LayoutAlgorithm.GRID:
            return grid_layout(tables, options)
        case LayoutAlgorithm.HIERARCHICAL:
            return hierarchical_layout(tables, relationships, options)
        case LayoutAlgorithm.CIRCULAR:
            return circular_layout(tables, options)
        case LayoutAlgorithm.FORCE_DIRECTED:
            return force_directed_layout(tables, relationships, options)


def has_clear_hierarchy(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
) -> bool:
    """At least one root table and a depth-first depth beyond two levels."""
    adjacency = build_adjacency(tables, relationships)
    roots = [node for node, degree in in_degrees(adjacency).items() if degree == 0]
    return bool(roots) and max_depth(adjacency) > HIERARCHY_DEPTH


def recommend_layout(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
) -> LayoutAlgorithm:
    """Pick an algorithm from the table count and relationship density.

    Large and sparse graphs both get force-directed.
    """
    count = len(tables)
    if count == 0:
        return LayoutAlgorithm.FORCE_DIRECTED

    ratio = len(relationships) / count
    if count <= SMALL_GRAPH_TABLES and ratio >= DENSE_RATIO:
        return LayoutAlgorithm.CIRCULAR
    if ratio >= CONNECTED_RATIO and has_clear_hierarchy(tables, relationships):
        return LayoutAlgorithm.HIERARCHICAL
    return LayoutAlgorithm.FORCE_DIRECTED
