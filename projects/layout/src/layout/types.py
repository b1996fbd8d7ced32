"""Type definitions for the layout module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import NamedTuple

from schema.types import Position


class LayoutAlgorithm(StrEnum):
    """Available table arrangement strategies."""

    GRID = "grid"
    HIERARCHICAL = "hierarchical"
    FORCE_DIRECTED = "force-directed"
    CIRCULAR = "circular"


class Spacing(NamedTuple):
    """Distance between neighbouring tables along each axis."""

    x: float
    y: float


DEFAULT_SPACING = Spacing(350, 280)
DEFAULT_CENTER = Position(400, 300)
DEFAULT_ITERATIONS = 300


@dataclass(frozen=True)
class LayoutOptions:
    """Parameters shared by every layout algorithm."""

    algorithm: LayoutAlgorithm | str = LayoutAlgorithm.FORCE_DIRECTED
    spacing: Spacing = DEFAULT_SPACING
    center_offset: Position = field(default=DEFAULT_CENTER)

    # Force-directed only
    iterations: int = DEFAULT_ITERATIONS
    seed: int | None = None


def coerce_algorithm(value: LayoutAlgorithm | str) -> LayoutAlgorithm:
    """Map a stored algorithm name to a member, force-directed when unknown."""
    try:
        return LayoutAlgorithm(value)
    except ValueError:
        return LayoutAlgorithm.FORCE_DIRECTED
