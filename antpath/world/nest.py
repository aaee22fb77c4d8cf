"""Nest -- the colony's home base and food store."""

from __future__ import annotations

from dataclasses import dataclass

from antpath.world.geometry import distance


@dataclass
class Nest:
    """A circular nest that accumulates delivered food.

    Attributes:
        x: Centre x coordinate.
        y: Centre y coordinate.
        radius: Returning ants inside this radius unload their food.
        storage_goal: Target amount of stored food.
        food_stored: Food delivered so far.
    """

    x: float
    y: float
    radius: float = 30.0
    storage_goal: float = 1000.0
    food_stored: float = 0.0

    def contains(self, x: float, y: float, buffer: float = 0.0) -> bool:
        """Return True if ``(x, y)`` is strictly inside the nest (plus buffer)."""
        return distance(self.x, self.y, x, y) < self.radius + buffer

    def store(self, amount: float) -> None:
        """Add delivered food to the store."""
        self.food_stored += amount

    @property
    def progress(self) -> float:
        """Fraction of the storage goal reached (may exceed 1.0)."""
        return self.food_stored / self.storage_goal

    def reset(self) -> None:
        """Empty the store."""
        self.food_stored = 0.0
