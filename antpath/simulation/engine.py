"""SimulationEngine -- the main tick loop.

Owns all top-level simulation state and advances it in the canonical
tick order:

1. Regrow food sources
2. Update ants (sense, steer, move, deposit) against the field as it
   stood at the end of the previous tick
3. Advance the pheromone field (evaporate, diffuse) exactly once

Pausing is the host's business: it simply stops calling ``step``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator

from antpath.colony.colony import Colony
from antpath.pheromones.fields import Channel, PheromoneField
from antpath.simulation.config import ConfigError, SimulationConfig
from antpath.world.environment import Environment
from antpath.world.food import FoodSupply
from antpath.world.nest import Nest
from antpath.world.obstacles import ObstacleField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationStats:
    """Snapshot of headline numbers for reporting.

    Attributes:
        tick: Ticks simulated so far.
        ants: Living ants.
        carrying: Ants currently carrying food.
        food_stored: Food stored in the nest.
        active_food_sources: Food sources that still hold food.
        to_food_total: Summed "to food" pheromone.
        to_nest_total: Summed "to nest" pheromone.
    """

    tick: int
    ants: int
    carrying: int
    food_stored: float
    active_food_sources: int
    to_food_total: float
    to_nest_total: float


@dataclass
class SimulationEngine:
    """Drives the simulation forward tick by tick.

    Attributes:
        config: Loaded simulation configuration.
        pheromone_field: Both pheromone grids.
        nest: The colony nest.
        food: Food sources.
        obstacles: Obstacles.
        colony: The ant population.
        rng: Master seeded random generator.
        tick: Current tick count.
    """

    config: SimulationConfig
    rng: Generator | None = None
    pheromone_field: PheromoneField = field(init=False)
    nest: Nest = field(init=False)
    food: FoodSupply = field(init=False)
    obstacles: ObstacleField = field(init=False)
    colony: Colony = field(init=False)
    tick: int = 0

    def __post_init__(self) -> None:
        """Build the field, collaborators, colony and RNG from config."""
        if self.rng is None:
            self.rng = np.random.default_rng(self.config.seed)
        arena = self.config.arena
        nest_x, nest_y = self.config.nest_position
        self.pheromone_field = PheromoneField(
            width=arena.width,
            height=arena.height,
            config=self.config.pheromone,
        )
        self.nest = Nest(
            x=nest_x,
            y=nest_y,
            radius=self.config.nest.radius,
            storage_goal=self.config.nest.storage_goal,
        )
        self.food = FoodSupply(self.config)
        self.obstacles = ObstacleField(
            arena.width,
            arena.height,
            arena.spatial_cell_size,
        )
        self.colony = Colony(config=self.config, nest_x=nest_x, nest_y=nest_y)
        self._place_configured_entities()
        self.colony.initialize(self.rng)
        logger.info(
            f"Engine ready: arena {arena.width:g}x{arena.height:g}, "
            f"{self.colony.count} ants, {len(self.food)} food sources, "
            f"{len(self.obstacles)} obstacles",
        )

    @property
    def environment(self) -> Environment:
        """The collaborators handed to ants each tick."""
        return Environment(food=self.food, obstacles=self.obstacles, nest=self.nest)

    def step(self) -> None:
        """Advance the simulation by one tick."""
        multiplier = self.config.speed_multiplier
        self.food.update(multiplier)
        delivered = self.colony.update(
            self.pheromone_field,
            self.environment,
            self.rng,
            multiplier,
        )
        if delivered:
            logger.debug(f"Tick {self.tick}: {delivered:g} food delivered")
        self.pheromone_field.tick()
        self.tick += 1

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
        """
        for _ in range(ticks):
            self.step()

    def reset(self) -> None:
        """Clear pheromones and the nest store and respawn the colony.

        Food sources and obstacles are rebuilt from the configuration.
        """
        self.pheromone_field.clear()
        self.nest.reset()
        self.food.clear()
        self.obstacles.clear()
        self._place_configured_entities()
        self.colony.initialize(self.rng)
        self.tick = 0
        logger.info("Simulation reset")

    def resize(self, width: float, height: float) -> None:
        """Change the arena size, keeping pheromone values that still fit.

        Raises:
            ConfigError: If the new size is invalid.
        """
        arena = self.config.arena
        old = (arena.width, arena.height)
        arena.width, arena.height = width, height
        try:
            arena.validate()
        except ConfigError:
            arena.width, arena.height = old
            raise
        self.pheromone_field.resize(width, height)
        self.food.rebuild(width, height)
        self.obstacles.rebuild(width, height)
        self.colony.rebuild_index(width, height)
        logger.info(f"Arena resized to {width:g}x{height:g}")

    def stats(self) -> SimulationStats:
        """Return a snapshot of the current headline numbers."""
        return SimulationStats(
            tick=self.tick,
            ants=self.colony.count,
            carrying=self.colony.carrying_count,
            food_stored=self.nest.food_stored,
            active_food_sources=len(self.food.active()),
            to_food_total=self.pheromone_field.total(Channel.TO_FOOD),
            to_nest_total=self.pheromone_field.total(Channel.TO_NEST),
        )

    def _place_configured_entities(self) -> None:
        """Add the food sources and obstacles listed in the config."""
        for x, y, quantity in self.config.food.sources:
            self.food.add(float(x), float(y), float(quantity))
        for x, y, radius in self.config.obstacles:
            self.obstacles.add(float(x), float(y), float(radius))
