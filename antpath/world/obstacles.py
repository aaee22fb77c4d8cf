"""Obstacles -- circular barriers that ants steer around."""

from __future__ import annotations

from dataclasses import dataclass

from antpath.world.geometry import distance, normalize
from antpath.world.spatial import SpatialIndex


@dataclass(eq=False)
class Obstacle:
    """A solid circle.

    Attributes:
        x: Centre x coordinate.
        y: Centre y coordinate.
        radius: Obstacle radius.
    """

    x: float
    y: float
    radius: float

    def contains(self, x: float, y: float, buffer: float = 0.0) -> bool:
        return distance(self.x, self.y, x, y) < self.radius + buffer


class ObstacleField:
    """Every obstacle in the arena, bucketed for local queries.

    Args:
        width: Arena width.
        height: Arena height.
        cell_size: Spatial index bucket size.
    """

    def __init__(self, width: float, height: float, cell_size: float) -> None:
        self.obstacles: list[Obstacle] = []
        self._index: SpatialIndex[Obstacle] = SpatialIndex(width, height, cell_size)
        self._max_radius = 0.0

    def __len__(self) -> int:
        return len(self.obstacles)

    def add(self, x: float, y: float, radius: float) -> Obstacle:
        obstacle = Obstacle(x=x, y=y, radius=radius)
        self.obstacles.append(obstacle)
        self._index.insert(obstacle)
        self._max_radius = max(self._max_radius, radius)
        return obstacle

    def remove_at(self, x: float, y: float, radius: float = 10.0) -> bool:
        """Remove the first obstacle overlapping the given circle.

        Returns:
            True if an obstacle was removed.
        """
        for obstacle in self._nearby(x, y, radius):
            if distance(obstacle.x, obstacle.y, x, y) <= obstacle.radius + radius:
                self._index.remove(obstacle)
                self.obstacles = [o for o in self.obstacles if o is not obstacle]
                self._max_radius = max(
                    (o.radius for o in self.obstacles),
                    default=0.0,
                )
                return True
        return False

    def collides(self, x: float, y: float, buffer: float = 0.0) -> bool:
        """Return True if ``(x, y)`` lies inside any obstacle (plus buffer)."""
        return any(o.contains(x, y, buffer) for o in self._nearby(x, y, buffer))

    def safe_position(
        self,
        x: float,
        y: float,
        buffer: float = 0.0,
    ) -> tuple[float, float]:
        """Push ``(x, y)`` just outside the obstacle containing it, if any."""
        for obstacle in self._nearby(x, y, buffer):
            if obstacle.contains(x, y, buffer):
                ux, uy = normalize(x - obstacle.x, y - obstacle.y)
                if ux == 0.0 and uy == 0.0:
                    ux = 1.0
                safe = obstacle.radius + buffer + 1.0
                return obstacle.x + ux * safe, obstacle.y + uy * safe
        return x, y

    def avoidance_vector(
        self,
        x: float,
        y: float,
        sensing_radius: float,
    ) -> tuple[float, float] | None:
        """Return a unit vector pointing away from nearby obstacles.

        Every obstacle whose edge is within ``sensing_radius`` pushes with
        a weight that grows linearly from 0 at the edge of the sensing
        range to 1 at the obstacle surface.

        Returns:
            The normalised sum of the pushes, or None if no obstacle is
            within range.
        """
        push_x = 0.0
        push_y = 0.0
        near = False
        for obstacle in self._nearby(x, y, sensing_radius):
            dist = distance(obstacle.x, obstacle.y, x, y)
            if dist >= obstacle.radius + sensing_radius:
                continue
            near = True
            away_x, away_y = normalize(x - obstacle.x, y - obstacle.y)
            weight = 1.0
            if sensing_radius > 0:
                weight = max(0.0, 1.0 - (dist - obstacle.radius) / sensing_radius)
            push_x += away_x * weight * 2.0
            push_y += away_y * weight * 2.0
        if not near:
            return None
        return normalize(push_x, push_y)

    def clear(self) -> None:
        self.obstacles.clear()
        self._index.clear()
        self._max_radius = 0.0

    def rebuild(self, width: float, height: float) -> None:
        self._index.rebuild(width, height)

    def _nearby(self, x: float, y: float, reach: float) -> list[Obstacle]:
        if not self.obstacles:
            return []
        return self._index.query_radius(x, y, self._max_radius + reach)
