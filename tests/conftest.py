"""Shared fixtures for the antpath test suite."""

from __future__ import annotations

import itertools
from collections.abc import Iterable

import numpy as np
import pytest
from numpy.random import Generator

from antpath.colony.colony import Colony
from antpath.pheromones.fields import PheromoneField
from antpath.simulation.config import (
    AntConfig,
    ArenaConfig,
    FoodConfig,
    NestConfig,
    SimulationConfig,
)
from antpath.world.environment import Environment
from antpath.world.food import FoodSupply
from antpath.world.nest import Nest
from antpath.world.obstacles import ObstacleField


class ScriptedRandom:
    """Random source replaying fixed values, for exact steering tests.

    ``random()`` cycles through ``values``; ``uniform(low, high)`` returns
    the midpoint unless ``uniform_value`` is given.
    """

    def __init__(
        self,
        values: Iterable[float] = (0.99,),
        uniform_value: float | None = None,
    ) -> None:
        self._values = itertools.cycle(list(values))
        self._uniform_value = uniform_value

    def random(self) -> float:
        return next(self._values)

    def uniform(self, low: float, high: float) -> float:
        if self._uniform_value is not None:
            return self._uniform_value
        return (low + high) / 2.0


class StingyFood:
    """Food provider that always finds a source but never grants any."""

    def __init__(self) -> None:
        self.requests = 0

    def collectable_at(self, x: float, y: float) -> object:
        return object()

    def take(self, source: object, amount: float) -> float:
        self.requests += 1
        return 0.0


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


@pytest.fixture
def small_config() -> SimulationConfig:
    """A 100x100 arena with the nest at (50, 50) and no random spawning."""
    return SimulationConfig(
        arena=ArenaConfig(
            width=100,
            height=100,
            spatial_cell_size=10,
            boundary_buffer=2,
        ),
        ant=AntConfig(initial_count=0, max_count=50, spawn_rate=0.0),
        nest=NestConfig(x=50, y=50, radius=10),
        food=FoodConfig(regen_rate=0.0),
    )


@pytest.fixture
def small_field(small_config: SimulationConfig) -> PheromoneField:
    """A 20x20-cell pheromone field over the small arena."""
    return PheromoneField(width=100, height=100, config=small_config.pheromone)


@pytest.fixture
def small_env(small_config: SimulationConfig) -> Environment:
    """Empty food supply, no obstacles and a nest at (50, 50)."""
    return Environment(
        food=FoodSupply(small_config),
        obstacles=ObstacleField(100, 100, 10),
        nest=Nest(x=50, y=50, radius=10),
    )


@pytest.fixture
def small_colony(small_config: SimulationConfig, rng: Generator) -> Colony:
    """A colony at (50, 50) pre-populated with 5 ants."""
    colony = Colony(config=small_config, nest_x=50, nest_y=50)
    for _ in range(5):
        colony.spawn_ant(rng)
    return colony


@pytest.fixture
def scripted() -> type[ScriptedRandom]:
    """Factory for random sources that replay fixed values."""
    return ScriptedRandom


@pytest.fixture
def stingy_food() -> StingyFood:
    """A food provider that never grants anything."""
    return StingyFood()
