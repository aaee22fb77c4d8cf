"""Tests for antpath.pheromones -- fields, sensing, diffusion, evaporation."""

import math

import numpy as np
import pytest

from antpath.pheromones.diffusion import diffuse, evaporate
from antpath.pheromones.fields import Channel, PheromoneField
from antpath.simulation.config import ChannelConfig, PheromoneConfig


def make_field(
    size: float = 40.0,
    *,
    evaporation_rate: float = 0.995,
    diffusion_rate: float = 0.1,
    fade_threshold: float = 5.0,
    max_intensity: float = 500.0,
) -> PheromoneField:
    """Build a square field with identical settings on both channels."""
    config = PheromoneConfig(
        resolution=5.0,
        max_intensity=max_intensity,
        fade_threshold=fade_threshold,
        to_food=ChannelConfig(
            evaporation_rate=evaporation_rate,
            diffusion_rate=diffusion_rate,
        ),
        to_nest=ChannelConfig(
            evaporation_rate=evaporation_rate,
            diffusion_rate=diffusion_rate,
        ),
    )
    return PheromoneField(width=size, height=size, config=config)


class TestPheromoneField:
    """Tests for PheromoneField setup and basic operations."""

    def test_both_channels_created(self, small_field: PheromoneField) -> None:
        for channel in Channel:
            assert channel in small_field.layers

    def test_grid_dimensions_round_up(self) -> None:
        field = PheromoneField(width=42, height=20, config=PheromoneConfig())
        assert (field.cols, field.rows) == (9, 4)
        assert field.get_layer(Channel.TO_FOOD).shape == (4, 9)

    def test_initial_concentrations_zero(self, small_field: PheromoneField) -> None:
        for layer in small_field.layers.values():
            assert np.all(layer.grid == 0.0)

    def test_deposit_and_read(self, small_field: PheromoneField) -> None:
        small_field.deposit(Channel.TO_FOOD, 12.0, 7.5, 42.0)
        assert small_field.read(Channel.TO_FOOD, 12.0, 7.5) == 42.0
        # Same cell, different point inside it
        assert small_field.read(Channel.TO_FOOD, 14.9, 5.0) == 42.0
        assert small_field.get_layer(Channel.TO_FOOD)[1, 2] == 42.0

    def test_deposit_accumulates(self, small_field: PheromoneField) -> None:
        small_field.deposit(Channel.TO_NEST, 1.0, 1.0, 10.0)
        small_field.deposit(Channel.TO_NEST, 1.0, 1.0, 5.0)
        assert small_field.read(Channel.TO_NEST, 1.0, 1.0) == 15.0

    def test_deposit_clamps_at_max_intensity(
        self,
        small_field: PheromoneField,
    ) -> None:
        small_field.deposit(Channel.TO_FOOD, 20.0, 20.0, 500.0)
        small_field.deposit(Channel.TO_FOOD, 20.0, 20.0, 1e6)
        assert small_field.read(Channel.TO_FOOD, 20.0, 20.0) == 500.0

    def test_deposit_outside_is_dropped(self, small_field: PheromoneField) -> None:
        for x, y in [(-1.0, 5.0), (5.0, -0.01), (100.0, 5.0), (5.0, 250.0)]:
            small_field.deposit(Channel.TO_FOOD, x, y, 50.0)
        assert small_field.total(Channel.TO_FOOD) == 0.0

    def test_read_outside_is_zero(self, small_field: PheromoneField) -> None:
        assert small_field.read(Channel.TO_NEST, -10.0, -10.0) == 0.0
        assert small_field.read(Channel.TO_NEST, float("nan"), 3.0) == 0.0

    def test_clear(self, small_field: PheromoneField) -> None:
        small_field.deposit(Channel.TO_FOOD, 10.0, 10.0, 100.0)
        small_field.deposit(Channel.TO_NEST, 30.0, 30.0, 100.0)
        small_field.clear()
        assert small_field.total(Channel.TO_FOOD) == 0.0
        assert small_field.total(Channel.TO_NEST) == 0.0


class TestSensing:
    """Tests for the three-sensor sampling."""

    def test_forward_deposit_reads_forward_only(
        self,
        small_field: PheromoneField,
    ) -> None:
        """Deposit on the forward sensor; side sensors land on empty cells."""
        small_field.deposit(Channel.TO_FOOD, 65.0, 50.0, 100.0)
        reading = small_field.sense(
            Channel.TO_FOOD,
            50.0,
            50.0,
            heading=0.0,
            sensor_angle=math.pi / 2,
            sensor_distance=15.0,
        )
        assert reading.forward == 100.0
        assert reading.left == reading.right == 0.0
        assert reading.strongest == 100.0

    def test_left_is_heading_minus_angle(self, small_field: PheromoneField) -> None:
        # Heading east, left sensor points toward -y
        small_field.deposit(Channel.TO_NEST, 50.0, 35.0, 80.0)
        reading = small_field.sense(
            Channel.TO_NEST,
            50.0,
            50.0,
            heading=0.0,
            sensor_angle=math.pi / 2,
            sensor_distance=15.0,
        )
        assert reading.left == 80.0
        assert reading.right == 0.0

    def test_sensors_outside_read_zero(self, small_field: PheromoneField) -> None:
        small_field.get_layer(Channel.TO_FOOD).fill(50.0)
        reading = small_field.sense(
            Channel.TO_FOOD,
            2.0,
            2.0,
            heading=math.pi,
            sensor_angle=0.1,
            sensor_distance=15.0,
        )
        assert reading == (0.0, 0.0, 0.0)

    def test_channels_sensed_independently(
        self,
        small_field: PheromoneField,
    ) -> None:
        small_field.deposit(Channel.TO_FOOD, 65.0, 50.0, 100.0)
        reading = small_field.sense(Channel.TO_NEST, 50.0, 50.0, 0.0, 0.5, 15.0)
        assert reading.strongest == 0.0


class TestEvaporation:
    """Tests for pheromone evaporation and threshold snapping."""

    def test_evaporation_reduces_concentration(self) -> None:
        field = make_field(evaporation_rate=0.9, diffusion_rate=0.0)
        layer = field.layers[Channel.TO_FOOD]
        layer.grid.fill(100.0)
        evaporate(layer, threshold=5.0)
        assert np.allclose(layer.grid, 90.0)

    def test_rate_one_keeps_values(self) -> None:
        field = make_field(evaporation_rate=1.0, diffusion_rate=0.0)
        layer = field.layers[Channel.TO_FOOD]
        layer.grid.fill(100.0)
        evaporate(layer, threshold=5.0)
        assert np.allclose(layer.grid, 100.0)

    def test_value_just_below_threshold_snaps_to_zero(self) -> None:
        field = make_field(evaporation_rate=0.99)
        field.deposit(Channel.TO_FOOD, 20.0, 20.0, 5.0 * 0.99)
        field.tick()
        assert field.read(Channel.TO_FOOD, 20.0, 20.0) == 0.0
        assert field.total(Channel.TO_FOOD) == 0.0

    def test_decay_below_threshold_snaps_to_zero(self) -> None:
        field = make_field(evaporation_rate=0.9, diffusion_rate=0.0)
        field.deposit(Channel.TO_NEST, 20.0, 20.0, 5.2)
        field.tick()
        assert field.read(Channel.TO_NEST, 20.0, 20.0) == 0.0

    def test_monotonic_without_inflow(self, rng: np.random.Generator) -> None:
        field = make_field(evaporation_rate=0.95, diffusion_rate=0.0)
        before = rng.uniform(0.0, 400.0, size=(field.rows, field.cols))
        field.layers[Channel.TO_FOOD].grid[:] = before
        field.tick()
        assert np.all(field.get_layer(Channel.TO_FOOD) <= before)


class TestDiffusion:
    """Tests for pheromone diffusion."""

    def test_total_concentration_conserved(
        self,
        rng: np.random.Generator,
    ) -> None:
        """Diffusion alone neither creates nor destroys pheromone."""
        field = make_field(evaporation_rate=1.0, diffusion_rate=0.2)
        grid = field.layers[Channel.TO_FOOD].grid
        grid[:] = rng.uniform(0.0, 100.0, size=(field.rows, field.cols))
        # Faint cells, some fed by neighbours and some isolated
        grid[0, :] = 2.0
        grid[:, 7] = 4.5
        assert np.any((grid > 0) & (grid < field.config.fade_threshold))
        total_before = field.total(Channel.TO_FOOD)
        field.tick()
        total_after = field.total(Channel.TO_FOOD)
        assert np.isclose(total_before, total_after), (
            f"Diffusion changed total: {total_before} -> {total_after}"
        )

    def test_spreads_to_all_eight_neighbours(self) -> None:
        field = make_field(evaporation_rate=1.0, diffusion_rate=0.4)
        layer = field.layers[Channel.TO_FOOD]
        layer.grid[4, 4] = 400.0
        diffuse(layer, 5.0, field.neighbour_counts)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                assert layer.grid[4 + dy, 4 + dx] == pytest.approx(20.0)
        assert layer.grid[4, 4] == pytest.approx(240.0)

    def test_corner_uses_in_bounds_neighbour_count(self) -> None:
        field = make_field(evaporation_rate=1.0, diffusion_rate=0.3)
        layer = field.layers[Channel.TO_NEST]
        layer.grid[0, 0] = 300.0
        diffuse(layer, 5.0, field.neighbour_counts)
        assert layer.grid[0, 1] == pytest.approx(30.0)
        assert layer.grid[1, 0] == pytest.approx(30.0)
        assert layer.grid[1, 1] == pytest.approx(30.0)
        assert layer.grid.sum() == pytest.approx(300.0)

    def test_no_directional_bias(self) -> None:
        """A point source spreads symmetrically whatever the visit order."""
        field = make_field(size=45.0, evaporation_rate=1.0, diffusion_rate=0.5)
        layer = field.layers[Channel.TO_FOOD]
        layer.grid[4, 4] = 400.0
        for _ in range(3):
            field.tick()
        grid = layer.grid
        assert np.allclose(grid, grid.T)
        assert np.allclose(grid, grid[::-1, :])
        assert np.allclose(grid, grid[:, ::-1])

    def test_sub_threshold_cells_do_not_diffuse(self) -> None:
        field = make_field(evaporation_rate=1.0, diffusion_rate=0.5)
        layer = field.layers[Channel.TO_FOOD]
        layer.grid[3, 3] = 5.0
        diffuse(layer, 5.0, field.neighbour_counts)
        assert layer.grid[3, 3] == 5.0
        assert layer.grid.sum() == 5.0

    def test_neighbour_builds_up_past_threshold(self) -> None:
        """Inflow below the threshold accumulates instead of being dropped."""
        field = make_field()
        field.deposit(Channel.TO_FOOD, 22.0, 22.0, 100.0)
        layer = field.layers[Channel.TO_FOOD]
        history = []
        for _ in range(5):
            field.tick()
            history.append(float(layer.grid[4, 5]))
        assert history == sorted(history)
        assert history[0] == pytest.approx(1.24375)
        assert history[-1] > field.config.fade_threshold
        # Second ring is reached once the first ring is active
        field.tick()
        assert layer.grid[4, 6] > 0.0

    def test_isolated_residue_fades(self) -> None:
        field = make_field()
        layer = field.layers[Channel.TO_NEST]
        layer.grid[2, 2] = 3.0
        layer.grid[6, 6] = 100.0
        field.tick()
        assert layer.grid[2, 2] == 0.0
        assert layer.grid[6, 5] > 0.0

    def test_residue_kept_without_evaporation(self) -> None:
        field = make_field(evaporation_rate=1.0)
        field.deposit(Channel.TO_NEST, 12.0, 12.0, 3.0)
        field.tick()
        assert field.read(Channel.TO_NEST, 12.0, 12.0) == 3.0

    def test_channels_do_not_interact(self) -> None:
        field = make_field()
        field.deposit(Channel.TO_FOOD, 20.0, 20.0, 300.0)
        field.tick()
        assert field.total(Channel.TO_NEST) == 0.0
        assert field.total(Channel.TO_FOOD) > 0.0

    def test_rates_read_live_from_config(self) -> None:
        field = make_field(evaporation_rate=1.0, diffusion_rate=0.0)
        field.deposit(Channel.TO_FOOD, 20.0, 20.0, 100.0)
        field.config.to_food.diffusion_rate = 0.8
        field.tick()
        assert field.read(Channel.TO_FOOD, 20.0, 20.0) == pytest.approx(20.0)


class TestResize:
    """Tests for resizing with value migration."""

    def test_grow_keeps_values_and_zeroes_new_cells(self) -> None:
        field = make_field(size=20.0)
        field.deposit(Channel.TO_FOOD, 12.0, 17.0, 77.0)
        field.resize(40.0, 30.0)
        assert (field.cols, field.rows) == (8, 6)
        assert field.read(Channel.TO_FOOD, 12.0, 17.0) == 77.0
        assert field.total(Channel.TO_FOOD) == 77.0
        assert field.get_layer(Channel.TO_NEST).shape == (6, 8)

    def test_shrink_drops_cells_outside(self) -> None:
        field = make_field(size=40.0)
        field.deposit(Channel.TO_NEST, 2.0, 2.0, 10.0)
        field.deposit(Channel.TO_NEST, 37.0, 37.0, 20.0)
        field.resize(20.0, 20.0)
        assert field.total(Channel.TO_NEST) == 10.0
        assert field.read(Channel.TO_NEST, 37.0, 37.0) == 0.0

    def test_neighbour_counts_follow_resize(self) -> None:
        field = make_field(size=20.0)
        field.resize(10.0, 10.0)
        assert field.neighbour_counts.shape == (2, 2)
        assert np.all(field.neighbour_counts == 3.0)
