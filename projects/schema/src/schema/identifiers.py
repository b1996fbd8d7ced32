"""Identifier generation for schema entities."""

from collections import Counter
from typing import Literal, Protocol
from uuid import uuid4

type IdKind = Literal["schema", "table", "col", "rel"]


class IdGenerator(Protocol):
    """Callable producing a fresh, unique identifier for an entity kind."""

    def __call__(self, kind: IdKind, /) -> str:
        """Return a new identifier."""
        ...


def random_ids(kind: IdKind, /) -> str:
    """Random identifier, e.g. ``table_3f2a9c1d0b7e``."""
    return f"{kind}_{uuid4().hex[:12]}"


class SequentialIds:
    """Deterministic per-kind counter, e.g. ``col_1``, ``col_2``."""

    def __init__(self) -> None:
        """Start every kind at zero."""
        self._counts: Counter[str] = Counter()

    def __call__(self, kind: IdKind, /) -> str:
        """Return the next identifier for ``kind``."""
        self._counts[kind] += 1
        return f"{kind}_{self._counts[kind]}"
