"""Ant -- individual agent with local sensing and steering.

Each ant only knows its own state and what its three pheromone sensors
report.  Trails emerge from the interplay of deposition and decay:

- **Searching** ants mark the way they came with "to nest" pheromone and
  steer along "to food" pheromone left by ants that already found food.
- **Returning** ants carry food home, lay "to food" pheromone whose
  strength grows with the load, and steer along "to nest" pheromone or
  straight for the nest.

Per-tick priority (first match wins for steering):

1. Spend energy; an exhausted ant dies and does nothing else.
2. Goal check: pick up food / unload at the nest.
3. Obstacle avoidance.
4. Trail following or exploration.

Movement and deposition then run every tick the ant is alive.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from antpath.pheromones.fields import Channel
from antpath.world.geometry import TAU, angle_diff, distance, heading_to, turn_toward

if TYPE_CHECKING:
    from numpy.random import Generator

    from antpath.pheromones.fields import PheromoneField, SensorReading
    from antpath.simulation.config import SimulationConfig
    from antpath.world.environment import Environment

# -- Constants ---------------------------------------------------------------

_PICKUP_AMOUNT = 1.0  # food requested per pickup
_AVOID_WEIGHT = 0.7  # share of the away-heading when dodging obstacles
_AVOID_RANGE = 1.5  # obstacle sensing range, in sensor distances
_CLOSE_TO_NEST = 2.0  # nest radii within which returning ants home directly
_LEAVE_NEST_JITTER = math.pi / 4  # max deviation from a U-turn at the nest
_SEARCH_WANDER = 0.5  # random-walk scale when no trail is sensed
_HOMING_FALLBACK = 0.5  # turn-speed share when homing without a trail


class AntState(Enum):
    """Behavioural state of an ant."""

    SEARCHING = auto()
    RETURNING = auto()


@dataclass(eq=False)
class Ant:
    """A single ant agent.

    Attributes:
        ant_id: Colony-unique identifier.
        x: Current x position.
        y: Current y position.
        heading: Current movement direction in radians (0 = east,
            pi/2 = south).
        energy: Remaining energy; the ant dies at 0.
        carrying: Amount of food currently carried.
        state: Current behavioural state.
        ticks_since_deposit: Ticks since the last pheromone deposit.
        age: Ticks since birth.
    """

    ant_id: int
    x: float
    y: float
    heading: float = 0.0
    energy: float = 100.0
    carrying: float = 0.0
    state: AntState = AntState.SEARCHING
    ticks_since_deposit: int = 0
    age: int = 0

    @property
    def is_alive(self) -> bool:
        """Return True if this ant still has energy."""
        return self.energy > 0

    @property
    def is_carrying(self) -> bool:
        return self.carrying > 0

    @classmethod
    def spawn(
        cls,
        ant_id: int,
        nest_x: float,
        nest_y: float,
        nest_radius: float,
        config: SimulationConfig,
        rng: Generator,
    ) -> Ant:
        """Create a searching ant scattered around the nest.

        The ant is placed at a random offset of up to
        ``spawn_jitter * nest_radius`` from the nest centre, with a random
        heading and a full energy store.

        Args:
            ant_id: Identifier to assign.
            nest_x: Nest centre x.
            nest_y: Nest centre y.
            nest_radius: Nest radius.
            config: Simulation configuration.
            rng: Seeded random generator.

        Returns:
            A new Ant instance.
        """
        angle = float(rng.uniform(0.0, TAU))
        offset = float(rng.uniform(0.0, nest_radius * config.ant.spawn_jitter))
        return cls(
            ant_id=ant_id,
            x=nest_x + math.cos(angle) * offset,
            y=nest_y + math.sin(angle) * offset,
            heading=float(rng.uniform(0.0, TAU)),
            energy=config.ant.energy_capacity,
        )

    def update(
        self,
        pheromones: PheromoneField,
        env: Environment,
        config: SimulationConfig,
        rng: Generator,
        speed_multiplier: float = 1.0,
    ) -> float:
        """Perform one tick of sensing, steering, movement and deposition.

        Args:
            pheromones: Shared pheromone field (read for sensing, written
                for deposition).
            env: Food, obstacle and nest collaborators for this tick.
            config: Simulation configuration, read live.
            rng: Random source.
            speed_multiplier: Global movement multiplier for this tick.

        Returns:
            Amount of food delivered to the nest this tick.
        """
        if not self.is_alive:
            return 0.0

        self.age += 1
        self.energy -= config.ant.energy_consumption
        if self.energy <= 0:
            self.energy = 0.0
            return 0.0

        delivered = 0.0
        reached = False
        match self.state:
            case AntState.SEARCHING:
                reached = self._try_collect(env)
            case AntState.RETURNING:
                delivered = self._try_unload(env, config, rng)
                reached = self.state is AntState.SEARCHING

        if not reached:
            self._steer(pheromones, env, config, rng)

        self._move(config, speed_multiplier)
        self._deposit(pheromones, config)
        return delivered

    # -- Goal checks --

    def _try_collect(self, env: Environment) -> bool:
        """Pick up food within reach; switch to RETURNING if any was granted.

        Returns:
            True if a source was within reach, even when it granted
            nothing; the ant then keeps its heading for this tick.
        """
        source = env.food.collectable_at(self.x, self.y)
        if source is None:
            return False
        granted = env.food.take(source, _PICKUP_AMOUNT)
        if granted <= 0:
            return True
        self.carrying = granted
        self.state = AntState.RETURNING
        self.heading = heading_to(self.x, self.y, env.nest.x, env.nest.y)
        return True

    def _try_unload(
        self,
        env: Environment,
        config: SimulationConfig,
        rng: Generator,
    ) -> float:
        """Unload at the nest, turn roughly around and refill energy."""
        if not env.nest.contains(self.x, self.y):
            return 0.0
        delivered = self.carrying
        env.nest.store(delivered)
        self.carrying = 0.0
        self.state = AntState.SEARCHING
        self.heading += math.pi + float(
            rng.uniform(-_LEAVE_NEST_JITTER, _LEAVE_NEST_JITTER),
        )
        self.energy = config.ant.energy_capacity
        return delivered

    # -- Steering --

    def _steer(
        self,
        pheromones: PheromoneField,
        env: Environment,
        config: SimulationConfig,
        rng: Generator,
    ) -> None:
        """Choose a new heading from obstacles, trails and chance.

        Obstacle avoidance always wins: the heading is pulled 70% of the
        way toward the away-direction and pheromones are ignored.
        """
        ant_cfg = config.ant
        away = env.obstacles.avoidance_vector(
            self.x,
            self.y,
            ant_cfg.sensor_distance * _AVOID_RANGE,
        )
        if away is not None:
            away_heading = math.atan2(away[1], away[0])
            self.heading += _AVOID_WEIGHT * angle_diff(self.heading, away_heading)
            return

        if self.state is AntState.SEARCHING:
            self._search(pheromones, config, rng)
        else:
            self._head_home(pheromones, env, config, rng)

    def _search(
        self,
        pheromones: PheromoneField,
        config: SimulationConfig,
        rng: Generator,
    ) -> None:
        """SEARCHING: explore at random or follow "to food" trails.

        With probability ``exploration_rate`` the heading is perturbed by
        up to +/- ``turn_speed``.  Otherwise the ant follows the "to food"
        channel, falling back to a smaller random walk when nothing above
        the fade threshold is sensed.
        """
        ant_cfg = config.ant
        if rng.random() < ant_cfg.exploration_rate:
            self._wander(ant_cfg.turn_speed, rng)
            return

        reading = self._sense(pheromones, Channel.TO_FOOD, config)
        if not self._follow(reading, config):
            self._wander(ant_cfg.turn_speed * _SEARCH_WANDER, rng)

    def _head_home(
        self,
        pheromones: PheromoneField,
        env: Environment,
        config: SimulationConfig,
        rng: Generator,
    ) -> None:
        """RETURNING: home in on the nest or follow "to nest" trails.

        Close to the nest the ant points straight at it.  Otherwise one
        draw against ``return_home_bias`` decides between turning toward
        the nest bearing and the usual explore/follow choice; following
        with no trail in range falls back to a gentler turn toward the
        nest.
        """
        ant_cfg = config.ant
        nest = env.nest
        bearing = heading_to(self.x, self.y, nest.x, nest.y)
        if distance(self.x, self.y, nest.x, nest.y) < nest.radius * _CLOSE_TO_NEST:
            self.heading = bearing
            return

        if rng.random() < ant_cfg.return_home_bias:
            self.heading = turn_toward(self.heading, bearing, ant_cfg.turn_speed)
            return

        if rng.random() < ant_cfg.exploration_rate:
            self._wander(ant_cfg.turn_speed, rng)
            return

        reading = self._sense(pheromones, Channel.TO_NEST, config)
        if not self._follow(reading, config):
            self.heading = turn_toward(
                self.heading,
                bearing,
                ant_cfg.turn_speed * _HOMING_FALLBACK,
            )

    def _sense(
        self,
        pheromones: PheromoneField,
        channel: Channel,
        config: SimulationConfig,
    ) -> SensorReading:
        return pheromones.sense(
            channel,
            self.x,
            self.y,
            self.heading,
            config.ant.sensor_angle,
            config.ant.sensor_distance,
        )

    def _follow(self, reading: SensorReading, config: SimulationConfig) -> bool:
        """Turn toward a strictly stronger side sensor.

        Ties and a strongest forward sensor keep the heading.

        Returns:
            False if no sensor is above the fade threshold.
        """
        if reading.strongest <= config.pheromone.fade_threshold:
            return False
        turn = config.ant.turn_speed
        if reading.left > reading.forward and reading.left > reading.right:
            self.heading -= turn
        elif reading.right > reading.forward and reading.right > reading.left:
            self.heading += turn
        return True

    def _wander(self, scale: float, rng: Generator) -> None:
        """Perturb the heading by a uniform value in ``[-scale, scale)``."""
        self.heading += (float(rng.random()) - 0.5) * 2.0 * scale

    # -- Movement / deposition --

    def _move(self, config: SimulationConfig, speed_multiplier: float) -> None:
        """Advance along the heading and bounce off the arena walls."""
        speed = config.ant.speed * speed_multiplier
        if self.is_carrying:
            speed *= config.ant.carrier_speed
        self.x += math.cos(self.heading) * speed
        self.y += math.sin(self.heading) * speed
        self._bounce(config)
        self.heading %= TAU

    def _bounce(self, config: SimulationConfig) -> None:
        """Clamp inside the arena inset and mirror the heading off the wall."""
        arena = config.arena
        buffer = arena.boundary_buffer
        if self.x < buffer:
            self.x = buffer
            self.heading = math.pi - self.heading
        elif self.x > arena.width - buffer:
            self.x = arena.width - buffer
            self.heading = math.pi - self.heading

        if self.y < buffer:
            self.y = buffer
            self.heading = -self.heading
        elif self.y > arena.height - buffer:
            self.y = arena.height - buffer
            self.heading = -self.heading

    def _deposit(self, pheromones: PheromoneField, config: SimulationConfig) -> None:
        """Lay pheromone every ``deposition_interval`` ticks.

        SEARCHING ants mark "to nest" at a fixed strength; RETURNING ants
        mark "to food" at a strength proportional to the food carried.
        """
        self.ticks_since_deposit += 1
        if self.ticks_since_deposit < config.ant.deposition_interval:
            return
        self.ticks_since_deposit = 0

        if self.state is AntState.SEARCHING:
            pheromones.deposit(
                Channel.TO_NEST,
                self.x,
                self.y,
                config.pheromone.to_nest.strength,
            )
        else:
            pheromones.deposit(
                Channel.TO_FOOD,
                self.x,
                self.y,
                config.pheromone.to_food.strength * self.carrying,
            )
