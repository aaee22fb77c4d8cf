"""PheromoneField -- dual-channel pheromone grid over a continuous arena.

Each channel ("to food", "to nest") is stored as a separate NumPy 2D
array indexed ``grid[row, col]``.  Positions are continuous floats and
are mapped to cells by the field's resolution.  The field provides
deposit/sense operations and delegates evaporation and diffusion to
``diffusion.py``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from antpath.simulation.config import ChannelConfig, PheromoneConfig

logger = logging.getLogger(__name__)


class Channel(Enum):
    """Independent pheromone channels, each with its own layer."""

    TO_FOOD = "to_food"
    TO_NEST = "to_nest"


class SensorReading(NamedTuple):
    """Values sampled at the three sensor points of an agent."""

    forward: float
    left: float
    right: float

    @property
    def strongest(self) -> float:
        """Return the largest of the three readings."""
        return max(self.forward, self.left, self.right)


@dataclass
class PheromoneLayer:
    """A single pheromone channel stored as a 2D NumPy array.

    Rates are read from the channel config on every tick, so changes made
    through ``SimulationConfig.set`` take effect immediately.

    Attributes:
        channel: Which pheromone this layer represents.
        grid: Concentration values in ``[0, max_intensity]``.
        settings: Per-channel strength/evaporation/diffusion settings.
    """

    channel: Channel
    grid: NDArray[np.float64]
    settings: ChannelConfig

    @property
    def evaporation_rate(self) -> float:
        """Multiplicative decay applied each tick (1.0 = no decay)."""
        return self.settings.evaporation_rate

    @property
    def diffusion_rate(self) -> float:
        """Fraction of a cell's value spread to its neighbours each tick."""
        return self.settings.diffusion_rate


@dataclass
class PheromoneField:
    """Both pheromone layers for an arena.

    Attributes:
        width: Arena width in world units.
        height: Arena height in world units.
        config: Pheromone settings (resolution, caps, channel rates).
        resolution: World units per grid cell, fixed at construction.
        cols: Number of grid columns (``ceil(width / resolution)``).
        rows: Number of grid rows (``ceil(height / resolution)``).
        layers: Mapping from Channel to its layer.
    """

    width: float
    height: float
    config: PheromoneConfig
    resolution: float = field(init=False)
    cols: int = field(init=False)
    rows: int = field(init=False)
    layers: dict[Channel, PheromoneLayer] = field(init=False, repr=False)
    neighbour_counts: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Size the grids from the arena and create both layers, zeroed."""
        self.resolution = float(self.config.resolution)
        self.cols, self.rows = self._grid_shape(self.width, self.height)
        self.layers = {}
        for channel in Channel:
            self.layers[channel] = PheromoneLayer(
                channel=channel,
                grid=np.zeros((self.rows, self.cols), dtype=np.float64),
                settings=self.config.channel(channel.value),
            )
        self.neighbour_counts = _count_neighbours(self.rows, self.cols)

    # -- Coordinates --

    def cell_of(self, x: float, y: float) -> tuple[int, int] | None:
        """Map a world position to ``(col, row)``, or None outside the grid."""
        if math.isnan(x) or math.isnan(y):
            return None
        col = math.floor(x / self.resolution)
        row = math.floor(y / self.resolution)
        if 0 <= col < self.cols and 0 <= row < self.rows:
            return col, row
        return None

    # -- Deposit / read --

    def deposit(self, channel: Channel, x: float, y: float, amount: float) -> None:
        """Add pheromone at the cell containing ``(x, y)``.

        The cell value is capped at ``max_intensity``.  Positions outside
        the grid are silently dropped.

        Args:
            channel: Which pheromone to deposit.
            x: World x coordinate.
            y: World y coordinate.
            amount: Quantity to add (must be >= 0).
        """
        cell = self.cell_of(x, y)
        if cell is None:
            return
        col, row = cell
        grid = self.layers[channel].grid
        grid[row, col] = min(grid[row, col] + amount, self.config.max_intensity)

    def read(self, channel: Channel, x: float, y: float) -> float:
        """Return the concentration at ``(x, y)``, or 0.0 outside the grid."""
        cell = self.cell_of(x, y)
        if cell is None:
            return 0.0
        col, row = cell
        return float(self.layers[channel].grid[row, col])

    def sense(
        self,
        channel: Channel,
        x: float,
        y: float,
        heading: float,
        sensor_angle: float,
        sensor_distance: float,
    ) -> SensorReading:
        """Sample the field at an agent's forward, left and right sensors.

        Each sensor sits ``sensor_distance`` away from ``(x, y)``: forward
        along ``heading``, left at ``heading - sensor_angle`` and right at
        ``heading + sensor_angle``.  Sensors outside the grid read 0.0.
        """
        left_angle = heading - sensor_angle
        right_angle = heading + sensor_angle
        return SensorReading(
            forward=self.read(
                channel,
                x + math.cos(heading) * sensor_distance,
                y + math.sin(heading) * sensor_distance,
            ),
            left=self.read(
                channel,
                x + math.cos(left_angle) * sensor_distance,
                y + math.sin(left_angle) * sensor_distance,
            ),
            right=self.read(
                channel,
                x + math.cos(right_angle) * sensor_distance,
                y + math.sin(right_angle) * sensor_distance,
            ),
        )

    def get_layer(self, channel: Channel) -> NDArray[np.float64]:
        """Return the raw NumPy array for a channel."""
        return self.layers[channel].grid

    def total(self, channel: Channel) -> float:
        """Return the summed concentration of a channel."""
        return float(self.layers[channel].grid.sum())

    # -- Lifecycle --

    def tick(self) -> None:
        """Advance both channels by one step of evaporation + diffusion."""
        from antpath.pheromones.diffusion import update_field

        update_field(self)

    def clear(self) -> None:
        """Zero every cell in both channels."""
        for layer in self.layers.values():
            layer.grid.fill(0.0)

    def resize(self, width: float, height: float) -> None:
        """Resize the grids for a new arena, keeping the overlapping cells.

        Cells are matched by ``(col, row)``; cells outside the old extent
        start at zero.
        """
        cols, rows = self._grid_shape(width, height)
        keep_rows = min(rows, self.rows)
        keep_cols = min(cols, self.cols)
        for layer in self.layers.values():
            grid = np.zeros((rows, cols), dtype=np.float64)
            grid[:keep_rows, :keep_cols] = layer.grid[:keep_rows, :keep_cols]
            layer.grid = grid
        logger.info(
            f"Pheromone grid resized {self.cols}x{self.rows} -> {cols}x{rows}",
        )
        self.width = width
        self.height = height
        self.cols = cols
        self.rows = rows
        self.neighbour_counts = _count_neighbours(rows, cols)

    def _grid_shape(self, width: float, height: float) -> tuple[int, int]:
        return (
            max(1, math.ceil(width / self.resolution)),
            max(1, math.ceil(height / self.resolution)),
        )


def _count_neighbours(rows: int, cols: int) -> NDArray[np.float64]:
    """Number of in-bounds Moore neighbours for every cell (8 inside, 3 at corners)."""
    ones = np.pad(np.ones((rows, cols), dtype=np.float64), 1)
    counts = np.zeros((rows, cols), dtype=np.float64)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            counts += ones[1 + dy : 1 + dy + rows, 1 + dx : 1 + dx + cols]
    return counts
