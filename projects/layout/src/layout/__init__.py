"""Automatic arrangement of schema tables on a canvas."""

from layout.main import layout_tables, recommend_layout
from layout.types import LayoutAlgorithm, LayoutOptions, Spacing

__all__ = [
    "LayoutAlgorithm",
    "LayoutOptions",
    "Spacing",
    "layout_tables",
    "recommend_layout",
]
