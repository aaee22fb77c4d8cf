"""Food sources and the supply that ants collect from.

A ``FoodSource`` is a circular pile whose reach shrinks as it is eaten
and slowly regrows toward its initial quantity.  ``FoodSupply`` keeps the
sources in a ``SpatialIndex`` so "is there food within reach of this
ant?" only looks at nearby buckets.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from antpath.world.geometry import distance
from antpath.world.spatial import SpatialIndex

if TYPE_CHECKING:
    from antpath.simulation.config import SimulationConfig

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FoodSource:
    """A single pile of food.

    Attributes:
        x: Centre x coordinate.
        y: Centre y coordinate.
        quantity: Units currently available.
        size: Scale factor for the reach radius.
        initial_quantity: Quantity at creation; regrowth stops here.
    """

    x: float
    y: float
    quantity: float
    size: float = 4.0
    initial_quantity: float = field(init=False)

    def __post_init__(self) -> None:
        self.initial_quantity = self.quantity

    @property
    def depleted(self) -> bool:
        """Return True once nothing is left to take."""
        return self.quantity <= 0

    @property
    def radius(self) -> float:
        """Reach of the pile; shrinks with the remaining quantity."""
        return math.sqrt(max(self.quantity, 0.0)) * self.size * 0.25

    @property
    def max_radius(self) -> float:
        """Radius at full quantity."""
        return math.sqrt(self.initial_quantity) * self.size * 0.25

    @property
    def percent_remaining(self) -> float:
        return 100.0 * self.quantity / self.initial_quantity

    def take(self, amount: float) -> float:
        """Remove up to ``amount`` units and return what was actually taken."""
        granted = min(max(amount, 0.0), max(self.quantity, 0.0))
        self.quantity -= granted
        return granted

    def regrow(self, amount: float) -> None:
        """Add ``amount`` units, never exceeding the initial quantity."""
        if self.quantity < self.initial_quantity:
            self.quantity = min(self.initial_quantity, self.quantity + amount)


class FoodSupply:
    """All food sources in the arena.

    Reads ``config.food`` and ``config.ant.collection_reach`` live, so
    settings changed through ``SimulationConfig.set`` apply immediately.

    Args:
        config: Simulation configuration.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self.config = config
        self.sources: list[FoodSource] = []
        self._index: SpatialIndex[FoodSource] = SpatialIndex(
            config.arena.width,
            config.arena.height,
            config.arena.spatial_cell_size,
        )
        self._max_radius = 0.0

    def __len__(self) -> int:
        return len(self.sources)

    def add(self, x: float, y: float, quantity: float) -> FoodSource:
        """Place a new source and return it."""
        source = FoodSource(x=x, y=y, quantity=quantity, size=self.config.food.size)
        self.sources.append(source)
        self._index.insert(source)
        self._max_radius = max(self._max_radius, source.max_radius)
        return source

    def remove(self, source: FoodSource) -> None:
        """Remove a source; unknown sources are ignored."""
        if source not in self._index:
            return
        self._index.remove(source)
        self.sources = [s for s in self.sources if s is not source]
        self._max_radius = max((s.max_radius for s in self.sources), default=0.0)

    def active(self) -> list[FoodSource]:
        """Return every source that still holds food."""
        return [s for s in self.sources if not s.depleted]

    def collectable_at(self, x: float, y: float) -> FoodSource | None:
        """Return the nearest non-depleted source within reach of ``(x, y)``.

        A source is within reach when the distance to its centre is less
        than its radius plus the ant collection reach.
        """
        reach = self.config.ant.collection_reach
        best: FoodSource | None = None
        best_dist = math.inf
        for source in self._index.query_radius(x, y, self._max_radius + reach):
            if source.depleted:
                continue
            dist = distance(source.x, source.y, x, y)
            if dist < source.radius + reach and dist < best_dist:
                best = source
                best_dist = dist
        return best

    def take(self, source: FoodSource, amount: float) -> float:
        """Withdraw up to ``amount`` from ``source``; may grant less."""
        granted = source.take(amount)
        if source.depleted:
            logger.debug(f"Food source at ({source.x:.0f}, {source.y:.0f}) depleted")
        return granted

    def nearest(self, x: float, y: float) -> FoodSource | None:
        """Return the closest non-depleted source, or None if there is none."""
        active = self.active()
        if not active:
            return None
        return min(active, key=lambda s: distance(s.x, s.y, x, y))

    def update(self, speed_multiplier: float = 1.0) -> None:
        """Regrow every source by ``regen_rate`` scaled by the speed multiplier."""
        amount = self.config.food.regen_rate * speed_multiplier
        if amount <= 0:
            return
        for source in self.sources:
            source.regrow(amount)

    def clear(self) -> None:
        """Remove every source."""
        self.sources.clear()
        self._index.clear()
        self._max_radius = 0.0

    def rebuild(self, width: float, height: float) -> None:
        """Re-grid the index for a new arena size."""
        self._index.rebuild(width, height)
