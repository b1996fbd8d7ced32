"""Position computation for each layout algorithm."""

from __future__ import annotations

import math
import random
from dataclasses import replace
from typing import TYPE_CHECKING

from layout.graph import build_adjacency, topological_levels
from schema.types import Position

if TYPE_CHECKING:
    from collections.abc import Sequence

    from layout.types import LayoutOptions
    from schema.types import Relationship, Table

# Repulsion only acts between tables closer than this many multiples of k
REPULSION_RANGE = 3


def _moved(table: Table, x: float, y: float) -> Table:
    return replace(table, position=Position(x, y))


def grid_layout(tables: Sequence[Table], options: LayoutOptions) -> tuple[Table, ...]:
    """Row-major grid, ``ceil(sqrt(n))`` tables wide."""
    if not tables:
        return ()
    columns = math.ceil(math.sqrt(len(tables)))
    center, spacing = options.center_offset, options.spacing
    return tuple(
        _moved(
            table,
            center.x + (index % columns) * spacing.x,
            center.y + (index // columns) * spacing.y,
        )
        for index, table in enumerate(tables)
    )


def hierarchical_layout(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
    options: LayoutOptions,
) -> tuple[Table, ...]:
    """One row per topological level, each row centred horizontally."""
    levels = topological_levels(build_adjacency(tables, relationships))
    slots: dict[str, tuple[int, int, int]] = {}
    for level, members in enumerate(levels):
        for index, table_id in enumerate(members):
            slots[table_id] = (level, index, len(members))

    center, spacing = options.center_offset, options.spacing
    positioned = []
    for table in tables:
        level, index, width = slots[table.id]
        positioned.append(
            _moved(
                table,
                center.x + (index - (width - 1) / 2) * spacing.x,
                center.y + level * spacing.y,
            ),
        )
    return tuple(positioned)


def force_directed_layout(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
    options: LayoutOptions,
) -> tuple[Table, ...]:
    """Fruchterman-Reingold simulation for a fixed number of iterations.

    Every pair of nearby tables pushes apart with ``k**2 / d`` and every
    relationship pulls its two tables together with ``d**2 / k``, where
    ``k = sqrt(spacing.x * spacing.y / n)``. Per-step movement is capped by a
    temperature cooling linearly to zero. The finished layout is translated so
    its centroid lands on the center offset and rounded to whole units.
    """
    count = len(tables)
    if count == 0:
        return ()

    rng = random.Random(options.seed)  # noqa: S311
    center, spacing = options.center_offset, options.spacing
    iterations = max(options.iterations, 0)
    k = math.sqrt(spacing.x * spacing.y / count)
    start_temperature = max(spacing.x, spacing.y) / 10

    index_of = {table.id: index for index, table in enumerate(tables)}
    xs = [rng.random() * center.x * 2 for _ in tables]
    ys = [rng.random() * center.y * 2 for _ in tables]
    edges = [
        (index_of[rel.source_table_id], index_of[rel.target_table_id])
        for rel in relationships
        if rel.source_table_id in index_of and rel.target_table_id in index_of
    ]

    for iteration in range(iterations):
        temperature = start_temperature * (1 - iteration / iterations)
        dxs = [0.0] * count
        dys = [0.0] * count

        for i in range(count):
            for j in range(i + 1, count):
                dx, dy = xs[j] - xs[i], ys[j] - ys[i]
                distance = math.hypot(dx, dy) or 1
                if distance >= k * REPULSION_RANGE:
                    continue
                force = k * k / distance
                fx, fy = dx / distance * force, dy / distance * force
                dxs[i] -= fx
                dys[i] -= fy
                dxs[j] += fx
                dys[j] += fy

        for source, target in edges:
            dx, dy = xs[target] - xs[source], ys[target] - ys[source]
            distance = math.hypot(dx, dy) or 1
            force = distance * distance / k
            fx, fy = dx / distance * force, dy / distance * force
            dxs[source] += fx
            dys[source] += fy
            dxs[target] -= fx
            dys[target] -= fy

        for i in range(count):
            displacement = min(math.hypot(dxs[i], dys[i]), temperature)
            angle = math.atan2(dys[i], dxs[i])
            xs[i] += math.cos(angle) * displacement
            ys[i] += math.sin(angle) * displacement

    offset_x = center.x - sum(xs) / count
    offset_y = center.y - sum(ys) / count
    return tuple(
        _moved(table, round(xs[i] + offset_x), round(ys[i] + offset_y))
        for i, table in enumerate(tables)
    )


def circular_layout(
    tables: Sequence[Table],
    options: LayoutOptions,
) -> tuple[Table, ...]:
    """Evenly spaced on a circle, clockwise from the top."""
    count = len(tables)
    if count == 0:
        return ()
    center, spacing = options.center_offset, options.spacing
    radius = min(spacing.x, spacing.y) * math.sqrt(count) / (2 * math.pi)
    positioned = []
    for index, table in enumerate(tables):
        angle = 2 * math.pi * index / count - math.pi / 2
        positioned.append(
            _moved(
                table,
                round(center.x + radius * math.cos(angle)),
                round(center.y + radius * math.sin(angle)),
            ),
        )
    return tuple(positioned)
