"""
Tests for the objective function and its parameter-vector adapter.
"""

import math
import numpy as np
import pytest

from spatialising.objective import objective, make_objective, ObjectiveFunction
from spatialising.metrics import MetricVector, metric_vector
from spatialising.kinetic_ising import simulate
from spatialising.exceptions import DimensionMismatch, InvalidParameter


def random_grid(rows, cols, seed=0):
    return np.random.default_rng(seed).choice(np.array([-1, 1], dtype=np.int8), size=(rows, cols))


class TestObjective:

    @pytest.mark.parametrize("m", [(0.0, 0.0), (-1.0, 1.0), (0.37, 0.12)])
    def test_identity_is_zero(self, m):
        assert objective(m, m) == 0.0

    def test_symmetry(self):
        m1, m2 = (0.2, 0.4), (-0.5, 0.1)
        assert objective(m1, m2) == objective(m2, m1)

    def test_euclidean(self):
        assert objective((0.0, 0.0), (0.3, 0.4)) == pytest.approx(0.5)

    def test_non_negative(self):
        assert objective((0.9, 0.1), (-0.9, 0.8)) > 0

    def test_accepts_metric_vectors(self):
        assert objective(MetricVector(1.0, 0.0), MetricVector(0.0, 0.0)) == pytest.approx(1.0)

    def test_length_mismatch(self):
        with pytest.raises(DimensionMismatch):
            objective((0.1, 0.2), (0.1, 0.2, 0.3))


class TestObjectiveFunction:

    def setup_method(self):
        self.initial = random_grid(8, 8, seed=1)
        self.target = random_grid(8, 8, seed=2)

    def test_matches_manual_pipeline(self):
        fun = make_objective(self.initial, self.target, iter=200, inertia=0.5, seed=13)
        expected = objective(
            metric_vector(self.target),
            metric_vector(simulate(self.initial, 0.3, 0.4, 200, 0.5, 13))
        )
        assert fun([0.3, 0.4]) == pytest.approx(expected)

    def test_deterministic(self):
        fun = make_objective(self.initial, self.target, iter=300, seed=5)
        assert fun((0.1, 0.2)) == fun((0.1, 0.2))
        assert fun.n_evaluations == 2

    def test_zero_iterations_scores_initial(self):
        fun = make_objective(self.initial, self.initial, iter=0)
        assert fun((0.5, 0.5)) == 0.0

    def test_evaluate_returns_metrics(self):
        fun = make_objective(self.initial, self.target, iter=50)
        value, metrics = fun.evaluate(np.array([0.0, 0.0]))
        assert isinstance(metrics, MetricVector)
        assert fun.last_metrics == metrics
        assert math.isfinite(value)

    def test_target_metrics_precomputed(self):
        fun = ObjectiveFunction(self.initial, self.target, iter=10)
        assert fun.target_metrics == metric_vector(self.target)

    def test_wrong_vector_length(self):
        fun = make_objective(self.initial, self.target, iter=10)
        with pytest.raises(InvalidParameter):
            fun([0.1])
        with pytest.raises(InvalidParameter):
            fun([0.1, 0.2, 0.3])

    def test_negative_J(self):
        fun = make_objective(self.initial, self.target, iter=10)
        with pytest.raises(InvalidParameter):
            fun([0.1, -0.2])

    def test_shape_mismatch(self):
        with pytest.raises(DimensionMismatch):
            make_objective(self.initial, random_grid(4, 4), iter=10)

    def test_stack_target_rejected(self):
        with pytest.raises(InvalidParameter):
            make_objective(self.initial, np.stack([self.target, self.target]), iter=10)
