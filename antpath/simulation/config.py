"""Config -- load simulation parameters from YAML files.

All tunable values (arena size, pheromone rates, ant behaviour, nest and
food settings) live in YAML and are parsed into typed dataclasses here.
Every section validates itself on construction and raises
``ConfigError`` for contradictory values, which is the only hard failure
the simulation surfaces to its caller.

Sections are mutated in place through ``SimulationConfig.set`` so that
every component holding a reference sees the new value on its next tick.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Keys that change the shape of grids/indexes; only resize() may touch them.
_GEOMETRY_KEYS = frozenset(
    {
        "arena.width",
        "arena.height",
        "arena.spatial_cell_size",
        "pheromone.resolution",
    },
)


class ConfigError(ValueError):
    """Raised when configuration values contradict each other."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def _known(cls: type, data: dict[str, Any], section: str) -> dict[str, Any]:
    """Return ``data`` restricted to ``cls`` fields, rejecting unknown keys."""
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - names)
    if unknown:
        msg = f"unknown key(s) in '{section}': {', '.join(unknown)}"
        raise ConfigError(msg)
    return dict(data)


@dataclass
class ArenaConfig:
    """Size of the simulated area.

    Attributes:
        width: Arena width in world units.
        height: Arena height in world units.
        spatial_cell_size: Bucket size for spatial indexes.
        boundary_buffer: Inset from the arena edge where ants bounce.
    """

    width: float = 800.0
    height: float = 600.0
    spatial_cell_size: float = 20.0
    boundary_buffer: float = 10.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(self.width > 0, f"arena.width must be > 0, got {self.width}")
        _require(self.height > 0, f"arena.height must be > 0, got {self.height}")
        _require(
            self.spatial_cell_size > 0,
            f"arena.spatial_cell_size must be > 0, got {self.spatial_cell_size}",
        )
        _require(
            self.boundary_buffer >= 0,
            f"arena.boundary_buffer must be >= 0, got {self.boundary_buffer}",
        )
        _require(
            2 * self.boundary_buffer < min(self.width, self.height),
            "arena.boundary_buffer leaves no room inside the arena",
        )


@dataclass
class ChannelConfig:
    """Settings for one pheromone channel.

    Attributes:
        strength: Base amount deposited per deposit event.
        evaporation_rate: Multiplier applied each tick, in (0, 1].
        diffusion_rate: Fraction spread to neighbours each tick, in [0, 1].
    """

    strength: float = 100.0
    evaporation_rate: float = 0.995
    diffusion_rate: float = 0.1

    def __post_init__(self) -> None:
        self.validate()

    def validate(self, name: str = "channel") -> None:
        _require(
            self.strength >= 0,
            f"{name}.strength must be >= 0, got {self.strength}",
        )
        _require(
            0.0 < self.evaporation_rate <= 1.0,
            f"{name}.evaporation_rate must be in (0, 1], got {self.evaporation_rate}",
        )
        _require(
            0.0 <= self.diffusion_rate <= 1.0,
            f"{name}.diffusion_rate must be in [0, 1], got {self.diffusion_rate}",
        )


@dataclass
class PheromoneConfig:
    """Pheromone grid settings.

    Attributes:
        resolution: World units per grid cell.
        max_intensity: Cap for any cell value.
        fade_threshold: Values below this count as zero.
        to_food: Settings for the "to food" channel.
        to_nest: Settings for the "to nest" channel.
    """

    resolution: float = 5.0
    max_intensity: float = 500.0
    fade_threshold: float = 5.0
    to_food: ChannelConfig = field(default_factory=ChannelConfig)
    to_nest: ChannelConfig = field(default_factory=ChannelConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(
            self.resolution > 0,
            f"pheromone.resolution must be > 0, got {self.resolution}",
        )
        _require(
            self.fade_threshold >= 0,
            f"pheromone.fade_threshold must be >= 0, got {self.fade_threshold}",
        )
        _require(
            self.max_intensity > self.fade_threshold,
            "pheromone.max_intensity must exceed pheromone.fade_threshold",
        )
        self.to_food.validate("pheromone.to_food")
        self.to_nest.validate("pheromone.to_nest")

    def channel(self, name: str) -> ChannelConfig:
        """Return the settings block for channel ``name``."""
        if name == "to_food":
            return self.to_food
        if name == "to_nest":
            return self.to_nest
        msg = f"unknown pheromone channel '{name}'"
        raise ConfigError(msg)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PheromoneConfig:
        values = _known(cls, data, "pheromone")
        for name in ("to_food", "to_nest"):
            if name in values:
                values[name] = ChannelConfig(
                    **_known(ChannelConfig, values[name] or {}, f"pheromone.{name}"),
                )
        return cls(**values)


@dataclass
class AntConfig:
    """Per-ant behaviour settings.

    Attributes:
        initial_count: Ants spawned when the colony is (re)initialised.
        max_count: Population cap for random spawning.
        spawn_rate: New ants per 60 ticks while below the cap.
        speed: Distance moved per tick.
        turn_speed: Maximum heading change per steering decision (radians).
        sensor_angle: Angle between the forward and side sensors.
        sensor_distance: Distance from the ant to each sensor point.
        exploration_rate: Chance per tick to ignore pheromones.
        energy_capacity: Maximum (and starting) energy.
        energy_consumption: Energy spent per tick.
        carrier_speed: Speed multiplier while carrying food.
        deposition_interval: Ticks between pheromone deposits.
        return_home_bias: Chance per tick a returning ant steers straight
            for the nest instead of consulting pheromones.
        collection_reach: Extra reach added to a food source's radius.
        spawn_jitter: Fraction of the nest radius used to scatter spawns.
    """

    initial_count: int = 100
    max_count: int = 500
    spawn_rate: float = 0.5
    speed: float = 2.0
    turn_speed: float = 0.15
    sensor_angle: float = math.pi / 4
    sensor_distance: float = 15.0
    exploration_rate: float = 0.1
    energy_capacity: float = 100.0
    energy_consumption: float = 0.05
    carrier_speed: float = 0.7
    deposition_interval: int = 2
    return_home_bias: float = 0.5
    collection_reach: float = 3.0
    spawn_jitter: float = 0.8

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(
            0 <= self.initial_count <= self.max_count,
            "ant.initial_count must be between 0 and ant.max_count",
        )
        for name in (
            "spawn_rate",
            "speed",
            "turn_speed",
            "sensor_angle",
            "sensor_distance",
            "energy_consumption",
            "carrier_speed",
            "collection_reach",
            "spawn_jitter",
        ):
            value = getattr(self, name)
            _require(value >= 0, f"ant.{name} must be >= 0, got {value}")
        for name in ("exploration_rate", "return_home_bias"):
            value = getattr(self, name)
            _require(0.0 <= value <= 1.0, f"ant.{name} must be in [0, 1], got {value}")
        _require(
            self.energy_capacity > 0,
            f"ant.energy_capacity must be > 0, got {self.energy_capacity}",
        )
        _require(
            self.deposition_interval >= 1,
            f"ant.deposition_interval must be >= 1, got {self.deposition_interval}",
        )


@dataclass
class NestConfig:
    """Nest placement and size.

    Attributes:
        x: Nest centre x (None = arena centre).
        y: Nest centre y (None = arena centre).
        radius: Radius within which returning ants unload.
        storage_goal: Target amount of stored food (reporting only).
    """

    x: float | None = None
    y: float | None = None
    radius: float = 30.0
    storage_goal: float = 1000.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(self.radius > 0, f"nest.radius must be > 0, got {self.radius}")
        _require(
            self.storage_goal > 0,
            f"nest.storage_goal must be > 0, got {self.storage_goal}",
        )


@dataclass
class FoodConfig:
    """Food-source settings.

    Attributes:
        size: Scale of a source's reach radius (``sqrt(q) * size / 4``).
        regen_rate: Units regrown per tick, up to the initial quantity.
        sources: Initial sources as ``[x, y, quantity]`` triples.
    """

    size: float = 4.0
    regen_rate: float = 0.05
    sources: list[list[float]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(self.size > 0, f"food.size must be > 0, got {self.size}")
        _require(
            self.regen_rate >= 0,
            f"food.regen_rate must be >= 0, got {self.regen_rate}",
        )
        for entry in self.sources:
            _require(
                len(entry) == 3 and entry[2] > 0,
                f"food.sources entries must be [x, y, quantity > 0], got {entry}",
            )


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        speed_multiplier: Global movement/time multiplier.
        arena: Arena size settings.
        pheromone: Pheromone grid settings.
        ant: Ant behaviour settings.
        nest: Nest settings.
        food: Food-source settings.
        obstacles: Initial obstacles as ``[x, y, radius]`` triples.
    """

    seed: int = 42
    speed_multiplier: float = 1.0
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    pheromone: PheromoneConfig = field(default_factory=PheromoneConfig)
    ant: AntConfig = field(default_factory=AntConfig)
    nest: NestConfig = field(default_factory=NestConfig)
    food: FoodConfig = field(default_factory=FoodConfig)
    obstacles: list[list[float]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check cross-section constraints."""
        _require(
            self.speed_multiplier >= 0,
            f"speed_multiplier must be >= 0, got {self.speed_multiplier}",
        )
        for entry in self.obstacles:
            _require(
                len(entry) == 3 and entry[2] > 0,
                f"obstacles entries must be [x, y, radius > 0], got {entry}",
            )

    @property
    def nest_position(self) -> tuple[float, float]:
        """Nest centre, defaulting to the middle of the arena."""
        x = self.nest.x if self.nest.x is not None else self.arena.width / 2
        y = self.nest.y if self.nest.y is not None else self.arena.height / 2
        return float(x), float(y)

    def set(self, key: str, value: Any) -> None:
        """Change one setting in place, e.g. ``set("ant.speed", 3.0)``.

        The owning section is revalidated; on failure the old value is
        restored and ``ConfigError`` propagates.

        Args:
            key: Dotted path to the setting.
            value: New value.

        Raises:
            ConfigError: If the key is unknown, changes grid geometry, or
                the new value is invalid.
        """
        if key in _GEOMETRY_KEYS:
            msg = f"'{key}' changes grid geometry; use SimulationEngine.resize"
            raise ConfigError(msg)

        *path, name = key.split(".")
        target: Any = self
        for part in path:
            target = getattr(target, part, None)
            if not is_dataclass(target):
                msg = f"unknown config key '{key}'"
                raise ConfigError(msg)
        if name not in {f.name for f in fields(target)} or is_dataclass(
            getattr(target, name),
        ):
            msg = f"unknown config key '{key}'"
            raise ConfigError(msg)

        old = getattr(target, name)
        setattr(target, name, value)
        try:
            self._validate_all()
        except ConfigError:
            setattr(target, name, old)
            raise
        logger.debug(f"Config {key}: {old!r} -> {value!r}")

    def _validate_all(self) -> None:
        self.arena.validate()
        self.pheromone.validate()
        self.ant.validate()
        self.nest.validate()
        self.food.validate()
        self.validate()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a plain mapping (as parsed from YAML).

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        values = _known(cls, data, "root")
        sections: dict[str, type] = {
            "arena": ArenaConfig,
            "ant": AntConfig,
            "nest": NestConfig,
            "food": FoodConfig,
        }
        for name, section_cls in sections.items():
            if name in values:
                values[name] = section_cls(
                    **_known(section_cls, values[name] or {}, name),
                )
        if "pheromone" in values:
            values["pheromone"] = PheromoneConfig.from_dict(values["pheromone"] or {})
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If the file holds unknown keys or invalid values.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        config = cls.from_dict(data)
        logger.info(f"Loaded config from {path}")
        return config
