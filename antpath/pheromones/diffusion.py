"""Diffusion and evaporation logic for pheromone layers.

Operates on the raw NumPy arrays inside ``PheromoneLayer`` objects.
Separated from ``fields.py`` so that diffusion algorithms can be
swapped or optimised independently.

Every update works on whole arrays: each step reads the grid as it was
before the step and writes a fresh result, so the order in which cells
would be visited can never bias the spread.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from antpath.pheromones.fields import PheromoneField, PheromoneLayer

_MOORE_OFFSETS = [
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
]


def evaporate(layer: PheromoneLayer, threshold: float) -> None:
    """Decay concentrations above ``threshold`` by the evaporation rate.

    Only cells strictly above the threshold decay.  A cell that the decay
    pushes below the threshold snaps to exactly zero; cells that were
    already below it are left for ``fade`` to deal with.

    Args:
        layer: The pheromone layer to evaporate (modified in-place).
        threshold: Fade threshold below which values count as zero.
    """
    grid = layer.grid
    active = grid > threshold
    np.multiply(grid, layer.evaporation_rate, out=grid, where=active)
    grid[active & (grid < threshold)] = 0.0


def diffuse(
    layer: PheromoneLayer,
    threshold: float,
    neighbour_counts: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Spread pheromone from every active cell to its Moore neighbours.

    A cell above ``threshold`` gives away ``value * diffusion_rate``,
    split evenly over its in-bounds neighbours (8 inside the grid, 5 on
    an edge, 3 in a corner).  Total pheromone is conserved.

    Args:
        layer: The pheromone layer to diffuse (modified in-place).
        threshold: Only cells strictly above this value diffuse.
        neighbour_counts: In-bounds neighbour count per cell.

    Returns:
        The amount each cell received from its neighbours this step.
    """
    snapshot = layer.grid
    rate = layer.diffusion_rate
    if rate <= 0:
        return np.zeros_like(snapshot)

    rows, cols = snapshot.shape
    active = (snapshot > threshold) & (neighbour_counts > 0)
    donated = np.where(active, snapshot * rate, 0.0)
    share = np.divide(
        donated,
        neighbour_counts,
        out=np.zeros_like(donated),
        where=neighbour_counts > 0,
    )

    padded = np.pad(share, 1)
    inflow = np.zeros_like(snapshot)
    for dy, dx in _MOORE_OFFSETS:
        inflow += padded[1 + dy : 1 + dy + rows, 1 + dx : 1 + dx + cols]

    layer.grid = snapshot - donated + inflow
    return inflow


def fade(
    layer: PheromoneLayer,
    threshold: float,
    inflow: NDArray[np.float64],
) -> None:
    """Drop sub-threshold residue that nothing is feeding any more.

    A cell below ``threshold`` that received no diffusion this step is
    set to zero.  Cells still being fed keep accumulating until they
    cross the threshold.  Layers that do not evaporate never fade.

    Args:
        layer: The pheromone layer to fade (modified in-place).
        threshold: Fade threshold below which values count as zero.
        inflow: Per-cell amount received during this step's diffusion.
    """
    if layer.evaporation_rate >= 1.0:
        return
    grid = layer.grid
    grid[(grid < threshold) & (inflow <= 0)] = 0.0


def update_field(field: PheromoneField) -> None:
    """Run one tick of evaporation + diffusion on both channels.

    The channels never interact.  Values are clamped to
    ``max_intensity`` after diffusion.

    Args:
        field: The complete pheromone field to update.
    """
    threshold = field.config.fade_threshold
    cap = field.config.max_intensity
    for layer in field.layers.values():
        evaporate(layer, threshold)
        inflow = diffuse(layer, threshold, field.neighbour_counts)
        fade(layer, threshold, inflow)
        np.clip(layer.grid, 0.0, cap, out=layer.grid)
