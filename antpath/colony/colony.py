"""Colony -- the population of ants belonging to one nest.

A Colony owns its ants exclusively: it spawns them around the nest, fans
the per-tick update out to each of them, culls the exhausted, and grows
the population at random up to a cap.  It also keeps its own
``SpatialIndex`` of ants, relocated after every move, so hosts can ask
which ants are near a point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from antpath.colony.ant import Ant
from antpath.world.geometry import distance
from antpath.world.spatial import SpatialIndex

if TYPE_CHECKING:
    from numpy.random import Generator

    from antpath.pheromones.fields import PheromoneField
    from antpath.simulation.config import SimulationConfig
    from antpath.world.environment import Environment

logger = logging.getLogger(__name__)

_TICKS_PER_SECOND = 60.0  # spawn_rate is expressed per 60 ticks


@dataclass
class Colony:
    """Top-level state for the ant population.

    Attributes:
        config: Simulation configuration, read live.
        nest_x: X coordinate of the nest centre.
        nest_y: Y coordinate of the nest centre.
        ants: Living ant population.
        next_id: Identifier handed to the next spawned ant.
        food_delivered: Total food delivered since the last reset.
    """

    config: SimulationConfig
    nest_x: float
    nest_y: float
    ants: list[Ant] = field(default_factory=list)
    next_id: int = 0
    food_delivered: float = 0.0
    index: SpatialIndex[Ant] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Build the ant index over the arena and index any given ants."""
        arena = self.config.arena
        self.index = SpatialIndex(arena.width, arena.height, arena.spatial_cell_size)
        for ant in self.ants:
            self.index.insert(ant)

    @property
    def count(self) -> int:
        return len(self.ants)

    @property
    def carrying_count(self) -> int:
        """Number of ants currently carrying food."""
        return sum(1 for ant in self.ants if ant.is_carrying)

    def spawn_ant(self, rng: Generator) -> Ant:
        """Create a new ant near the nest.

        Args:
            rng: Seeded random generator.

        Returns:
            The newly created Ant (also appended to ``self.ants``).
        """
        ant = Ant.spawn(
            ant_id=self.next_id,
            nest_x=self.nest_x,
            nest_y=self.nest_y,
            nest_radius=self.config.nest.radius,
            config=self.config,
            rng=rng,
        )
        self.next_id += 1
        self.ants.append(ant)
        self.index.insert(ant)
        return ant

    def initialize(self, rng: Generator) -> None:
        """Reset and spawn the initial population."""
        self.reset()
        for _ in range(self.config.ant.initial_count):
            self.spawn_ant(rng)
        logger.debug(f"Colony initialised with {self.count} ants")

    def reset(self) -> None:
        """Drop every ant and restart id numbering."""
        self.ants.clear()
        self.index.clear()
        self.next_id = 0
        self.food_delivered = 0.0

    def update(
        self,
        pheromones: PheromoneField,
        env: Environment,
        rng: Generator,
        speed_multiplier: float = 1.0,
    ) -> float:
        """Advance every ant by one tick, cull the dead, maybe spawn one.

        Args:
            pheromones: Shared pheromone field.
            env: Food, obstacle and nest collaborators for this tick.
            rng: Random source.
            speed_multiplier: Global movement multiplier.

        Returns:
            Food delivered to the nest this tick.
        """
        delivered = 0.0
        for ant in self.ants:
            delivered += ant.update(
                pheromones,
                env,
                self.config,
                rng,
                speed_multiplier,
            )
            if ant.is_alive:
                self.index.relocate(ant)

        dead = self.remove_dead()
        if dead:
            logger.debug(f"{len(dead)} ant(s) ran out of energy")

        self.food_delivered += delivered
        self._maybe_spawn(rng, speed_multiplier)
        return delivered

    def remove_dead(self) -> list[Ant]:
        """Remove and return ants that have run out of energy.

        Returns:
            List of ants that were removed.
        """
        dead = [a for a in self.ants if not a.is_alive]
        for ant in dead:
            self.index.remove(ant)
        self.ants = [a for a in self.ants if a.is_alive]
        return dead

    def ants_near(self, x: float, y: float, radius: float) -> list[Ant]:
        """Return the ants within ``radius`` of ``(x, y)``."""
        return [
            ant
            for ant in self.index.query_radius(x, y, radius)
            if distance(ant.x, ant.y, x, y) <= radius
        ]

    def rebuild_index(self, width: float, height: float) -> None:
        """Re-grid the ant index after an arena resize."""
        self.index.rebuild(width, height)

    def _maybe_spawn(self, rng: Generator, speed_multiplier: float) -> None:
        chance = self.config.ant.spawn_rate * speed_multiplier / _TICKS_PER_SECOND
        if rng.random() < chance and self.count < self.config.ant.max_count:
            ant = self.spawn_ant(rng)
            logger.debug(f"Spawned ant {ant.ant_id} ({self.count} alive)")
