"""Environment -- the collaborators an ant consults on every tick.

Ants never keep references to food, obstacles or the nest.  The engine
bundles them into an ``Environment`` and hands it to ``Colony.update``,
which passes it on to each ant for the duration of that tick only.

Each collaborator is a narrow protocol so tests can substitute their own
(e.g. a food provider that never grants anything).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class FoodProvider(Protocol):
    """Point queries against food sources."""

    def collectable_at(self, x: float, y: float) -> Any | None:
        """Return a handle to a food source reachable from ``(x, y)``, or None."""
        ...

    def take(self, source: Any, amount: float) -> float:
        """Withdraw up to ``amount`` from ``source``; return what was granted."""
        ...


class ObstacleProvider(Protocol):
    """Repulsion from nearby obstacles."""

    def avoidance_vector(
        self,
        x: float,
        y: float,
        sensing_radius: float,
    ) -> tuple[float, float] | None:
        """Return a unit vector pointing away from nearby obstacles, or None."""
        ...


class NestLike(Protocol):
    """The colony's home: a circle that stores delivered food."""

    x: float
    y: float
    radius: float

    def contains(self, x: float, y: float) -> bool: ...

    def store(self, amount: float) -> None: ...


@dataclass
class Environment:
    """Collaborators passed into each ant update.

    Attributes:
        food: Food-source provider.
        obstacles: Obstacle provider.
        nest: The colony nest.
    """

    food: FoodProvider
    obstacles: ObstacleProvider
    nest: NestLike
