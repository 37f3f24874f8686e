"""
Tests for the kinetic Ising simulation driver.

These tests verify:
- iter = 0 is the identity with independent storage
- seeded runs are bit-identical
- the caller's grid is never modified
- parameter validation
- single-step and long-run edge cases
- statistical behaviour (no drift at B = J = 0, ordering at J > 0)
- inertia freezes uniform -1 areas
- snapshots and early stop
"""

import numpy as np
import pytest

from spatialising.lattice import Lattice
from spatialising.kinetic_ising import (
    SimulationParams,
    KineticIsingRunner,
    simulate,
    kinetic_ising,
)
from spatialising.metrics import composition_index
from spatialising.exceptions import InvalidParameter
from spatialising.logger import Logger, MemoryStrategy


def random_grid(rows, cols, seed=0):
    rng = np.random.default_rng(seed)
    return rng.choice(np.array([-1, 1], dtype=np.int8), size=(rows, cols))


class TestIdentity:

    @pytest.mark.parametrize("B,J,seed", [(0.0, 0.0, 1), (0.9, 0.5, 42), (-3.0, 2.0, 7)])
    def test_zero_iterations_returns_equal_grid(self, B, J, seed):
        grid = random_grid(5, 7)
        result = simulate(grid, B=B, J=J, iter=0, inertia=1.0, seed=seed)
        assert np.array_equal(result.values, grid)

    def test_zero_iterations_independent_storage(self):
        initial = Lattice(random_grid(4, 4))
        result = simulate(initial, B=0.0, J=0.0, iter=0)
        assert result is not initial
        result.flip(0, 0)
        assert initial.get(0, 0) != result.get(0, 0)

    def test_input_array_not_modified(self):
        grid = random_grid(6, 6)
        before = grid.copy()
        simulate(grid, B=0.5, J=0.5, iter=500, seed=3)
        assert np.array_equal(grid, before)

    def test_input_lattice_not_modified(self):
        initial = Lattice(random_grid(6, 6))
        before = initial.copy()
        simulate(initial, B=0.5, J=0.5, iter=500, seed=3)
        assert initial == before


class TestDeterminism:

    def test_same_seed_identical(self):
        grid = random_grid(12, 9, seed=5)
        a = simulate(grid, B=0.2, J=0.4, iter=2000, inertia=0.5, seed=42)
        b = simulate(grid, B=0.2, J=0.4, iter=2000, inertia=0.5, seed=42)
        assert a == b

    def test_different_seeds_differ(self):
        grid = random_grid(12, 9, seed=5)
        a = simulate(grid, B=0.0, J=0.0, iter=2000, seed=1)
        b = simulate(grid, B=0.0, J=0.0, iter=2000, seed=2)
        assert a != b

    def test_updates_continue_the_same_chain(self):
        grid = random_grid(8, 8, seed=11)
        stack = kinetic_ising(grid, B=0.1, J=0.3, iter=100, updates=3, seed=9)
        assert stack.shape == (3, 8, 8)
        first = simulate(grid, B=0.1, J=0.3, iter=100, seed=9)
        last = simulate(grid, B=0.1, J=0.3, iter=300, seed=9)
        assert np.array_equal(stack[0], first.values)
        assert np.array_equal(stack[2], last.values)


class TestValidation:

    @pytest.mark.parametrize("kwargs", [
        dict(B=0.0, J=0.0, iter=-1),
        dict(B=0.0, J=-0.5, iter=10),
        dict(B=0.0, J=0.5, iter=10, inertia=-1.0),
        dict(B=float("nan"), J=0.5, iter=10),
        dict(B=0.0, J=0.5, iter=10.5),
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(InvalidParameter):
            simulate(np.ones((3, 3)), **kwargs)

    def test_invalid_updates(self):
        with pytest.raises(InvalidParameter):
            kinetic_ising(np.ones((3, 3)), B=0.0, J=0.0, iter=1, updates=0)

    def test_non_binary_grid(self):
        with pytest.raises(InvalidParameter):
            simulate(np.array([[1, 2], [1, 1]]), B=0.0, J=0.0, iter=1)

    def test_stack_rejected(self):
        with pytest.raises(InvalidParameter):
            simulate(np.ones((2, 3, 3)), B=0.0, J=0.0, iter=1)

    def test_params_validate_reports_error(self):
        is_valid, err = SimulationParams(B=0.0, J=-1.0, iterations=5).validate()
        assert not is_valid
        assert "J" in err

    def test_invalid_parameters_logged(self):
        store = MemoryStrategy()
        Logger.set_log_storage_strategy(store)
        with pytest.raises(InvalidParameter):
            SimulationParams(B=0.0, J=0.0, iterations=-3).check()
        assert any("iterations" in m for m in store.messages("ERROR"))


class TestEdgeCases:

    def test_single_iteration_changes_at_most_one_cell(self):
        grid = random_grid(5, 5, seed=2)
        for seed in range(50):
            result = simulate(grid, B=0.0, J=0.0, iter=1, seed=seed)
            assert np.count_nonzero(result.values != grid) <= 1

    def test_iterations_beyond_cell_count(self):
        grid = random_grid(3, 3)
        result = simulate(grid, B=0.1, J=0.1, iter=1000, seed=1)
        assert result.shape == (3, 3)
        assert set(np.unique(result.values)) <= {-1, 1}

    def test_single_cell_grid(self):
        result = simulate([[-1]], B=5.0, J=1.0, iter=50, seed=0)
        assert result.get(0, 0) == 1

    def test_kinetic_ising_returns_2d_array(self):
        out = kinetic_ising(random_grid(4, 5), B=0.0, J=0.0, iter=10)
        assert isinstance(out, np.ndarray)
        assert out.shape == (4, 5)


class TestStatistics:

    def test_no_drift_without_pressure_or_coupling(self, half_split):
        """
        B = J = 0 leaves the mean composition of a balanced grid unbiased.

        Every flip has probability 1/2 here, so an unbalanced start relaxes
        towards composition 0; only a balanced start keeps its mean.
        """
        start = composition_index(half_split)
        finals = [
            composition_index(simulate(half_split, B=0.0, J=0.0, iter=300, seed=seed))
            for seed in range(40)
        ]
        assert abs(np.mean(finals) - start) < 0.08

    def test_unbalanced_start_relaxes_towards_zero(self):
        grid = np.ones((10, 10), dtype=np.int8)
        finals = [
            composition_index(simulate(grid, B=0.0, J=0.0, iter=300, seed=seed))
            for seed in range(20)
        ]
        assert np.mean(finals) < 0.3

    def test_coupling_orders_single_defect(self):
        """A lone -1 among +1s is absorbed when J > 0."""
        grid = np.ones((4, 4), dtype=np.int8)
        grid[1, 2] = -1
        finals = [
            composition_index(simulate(grid, B=0.0, J=1.0, iter=1000, inertia=0.0, seed=seed))
            for seed in range(42, 62)
        ]
        assert np.mean(finals) > 0.8
        assert sum(f > 0.8 for f in finals) >= 18

    def test_positive_pressure_grows_plus_cover(self):
        grid = -np.ones((10, 10), dtype=np.int8)
        result = simulate(grid, B=0.9, J=0.0, iter=1000, seed=4)
        assert composition_index(result) > 0.3

    def test_inertia_freezes_uniform_minus_area(self):
        grid = -np.ones((10, 10), dtype=np.int8)
        result = simulate(grid, B=0.9, J=0.9, iter=1000, inertia=150, seed=4)
        assert np.array_equal(result.values, grid)


class TestRunner:

    def test_result_counts(self):
        params = SimulationParams(B=0.0, J=0.0, iterations=200)
        result = KineticIsingRunner(random_grid(5, 5), params, seed=3).run()
        assert result.n_attempts == 200
        assert 0 < result.n_flips <= 200
        assert result.acceptance_rate == pytest.approx(result.n_flips / 200)
        assert result.seed == 3
        assert not result.stopped_early
        assert len(result.snapshots) == 1

    def test_snapshots_are_independent(self):
        params = SimulationParams(B=0.0, J=0.0, iterations=50, updates=4)
        result = KineticIsingRunner(random_grid(5, 5), params, seed=3).run()
        assert len(result.snapshots) == 4
        before = result.snapshots[1].copy()
        result.snapshots[0].flip(0, 0)
        assert result.snapshots[1] == before
        assert result.to_array().shape == (4, 5, 5)

    def test_stop_check_ends_run(self):
        calls = []

        def stop():
            calls.append(1)
            return len(calls) >= 5

        params = SimulationParams(B=0.0, J=0.0, iterations=100, updates=3)
        result = KineticIsingRunner(random_grid(5, 5), params, seed=3).run(stop_check=stop)
        assert result.stopped_early
        assert result.n_attempts == 5
        assert len(result.snapshots) == 1

    def test_step_mutates_only_runner_copy(self):
        grid = random_grid(3, 3)
        runner = KineticIsingRunner(grid, SimulationParams(B=0.0, J=0.0, iterations=1), seed=0)
        for _ in range(20):
            runner.step()
        assert np.array_equal(grid, random_grid(3, 3))

    def test_run_is_logged(self):
        store = MemoryStrategy()
        Logger.set_log_storage_strategy(store)
        simulate(random_grid(3, 3), B=0.0, J=0.0, iter=10, seed=1)
        assert any(m.startswith("start KineticIsingRunner.run") for m in store.messages())
        assert any("10 attempts" in m for m in store.messages("INFO"))
