"""SpatialIndex -- uniform grid bucketing of entities by position.

The arena is cut into square buckets of ``cell_size`` world units.  Each
entity lives in exactly one bucket, the one containing its current
position, so neighbourhood queries only touch the buckets overlapping
the query area instead of scanning every entity.

The index is eager: owners call ``relocate`` every time an entity moves,
so a bucket never holds a stale entry.  Entities positioned outside the
arena are kept in the nearest edge bucket rather than dropped, so an
indexed entity is never reported missing by a radius query that reaches
its position.
"""

from __future__ import annotations

import math
from typing import Generic, Protocol, TypeVar


class Positioned(Protocol):
    """Anything with a float position."""

    x: float
    y: float


E = TypeVar("E", bound=Positioned)


class SpatialIndex(Generic[E]):
    """Grid of buckets holding entity references.

    Entities are tracked by identity, so they need not be hashable.

    Args:
        width: Arena width covered by the index.
        height: Arena height covered by the index.
        cell_size: Bucket edge length in world units.
    """

    def __init__(self, width: float, height: float, cell_size: float) -> None:
        if cell_size <= 0:
            msg = f"cell_size must be > 0, got {cell_size}"
            raise ValueError(msg)
        self.cell_size = float(cell_size)
        self._entities: dict[int, E] = {}
        self._membership: dict[int, int] = {}
        self._resize_grid(width, height)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity: object) -> bool:
        return id(entity) in self._entities

    # -- Mutation --

    def insert(self, entity: E) -> None:
        """Add an entity to the bucket for its position.

        Inserting an entity that is already indexed relocates it.
        """
        key = id(entity)
        if key in self._entities:
            self.relocate(entity)
            return
        index = self._bucket_index(entity.x, entity.y)
        self._entities[key] = entity
        self._membership[key] = index
        self._buckets[index][key] = entity

    def remove(self, entity: E) -> None:
        """Drop an entity from the index.  Unknown entities are ignored."""
        key = id(entity)
        index = self._membership.pop(key, None)
        if index is None:
            return
        del self._entities[key]
        del self._buckets[index][key]

    def relocate(self, entity: E) -> None:
        """Move an entity to the bucket for its current position.

        No-op if the bucket is unchanged.  Unknown entities are inserted.
        """
        key = id(entity)
        old = self._membership.get(key)
        if old is None:
            self.insert(entity)
            return
        new = self._bucket_index(entity.x, entity.y)
        if new == old:
            return
        del self._buckets[old][key]
        self._buckets[new][key] = entity
        self._membership[key] = new

    def clear(self) -> None:
        """Remove every entity."""
        for bucket in self._buckets:
            bucket.clear()
        self._entities.clear()
        self._membership.clear()

    def rebuild(self, width: float, height: float) -> None:
        """Re-grid for a new arena size and re-bucket every entity."""
        entities = list(self._entities.values())
        self._entities.clear()
        self._membership.clear()
        self._resize_grid(width, height)
        for entity in entities:
            self.insert(entity)

    # -- Queries --

    def query_cell(self, x: float, y: float) -> list[E]:
        """Return the entities in the bucket containing ``(x, y)``.

        Positions outside the arena return an empty list.
        """
        col = math.floor(x / self.cell_size)
        row = math.floor(y / self.cell_size)
        if not (0 <= col < self.cols and 0 <= row < self.rows):
            return []
        return list(self._buckets[row * self.cols + col].values())

    def query_radius(self, x: float, y: float, radius: float) -> list[E]:
        """Return every entity in buckets overlapping the query circle's box.

        The result is a superset of the entities within ``radius``;
        callers that need an exact match must filter by distance.  No
        ordering is guaranteed.

        The box is clamped to the grid the same way positions are, so a
        query lying outside the arena still scans the edge buckets that
        hold out-of-arena entities.
        """
        min_col = self._clamp_col(math.floor((x - radius) / self.cell_size))
        max_col = self._clamp_col(math.floor((x + radius) / self.cell_size))
        min_row = self._clamp_row(math.floor((y - radius) / self.cell_size))
        max_row = self._clamp_row(math.floor((y + radius) / self.cell_size))

        results: list[E] = []
        for row in range(min_row, max_row + 1):
            base = row * self.cols
            for col in range(min_col, max_col + 1):
                results.extend(self._buckets[base + col].values())
        return results

    def bucket_of(self, entity: E) -> tuple[int, int] | None:
        """Return ``(col, row)`` of the bucket holding ``entity``, or None."""
        index = self._membership.get(id(entity))
        if index is None:
            return None
        return index % self.cols, index // self.cols

    # -- Internals --

    def _resize_grid(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)
        self.cols = max(1, math.ceil(width / self.cell_size))
        self.rows = max(1, math.ceil(height / self.cell_size))
        self._buckets: list[dict[int, E]] = [{} for _ in range(self.cols * self.rows)]

    def _clamp_col(self, col: int) -> int:
        return min(max(col, 0), self.cols - 1)

    def _clamp_row(self, row: int) -> int:
        return min(max(row, 0), self.rows - 1)

    def _bucket_index(self, x: float, y: float) -> int:
        col = self._clamp_col(math.floor(x / self.cell_size))
        row = self._clamp_row(math.floor(y / self.cell_size))
        return row * self.cols + col
