"""
Calibration objective.

The distance between two metric vectors (composition, texture) is their
Euclidean distance. ObjectiveFunction wraps the whole pipeline

    (B, J) -> simulate(initial) -> metric_vector -> distance to target

as a single-argument function, which is all an external optimizer (for
example simulated annealing) needs. The seed is fixed for every evaluation,
so the function is deterministic and optimizer runs can be compared.
"""

import numpy as np
from typing import Optional, Sequence, Tuple

from .lattice import Lattice, as_layers
from .metrics import MetricVector, metric_vector
from .kinetic_ising import simulate
from .exceptions import DimensionMismatch, InvalidParameter
from .logger import Logger


def objective(target_metrics: Sequence[float], candidate_metrics: Sequence[float]) -> float:
    """
    Euclidean distance between two metric vectors.

    Zero iff the vectors are identical, symmetric in its arguments.

    Raises:
        DimensionMismatch: If the vectors differ in length.
    """
    target = np.asarray(target_metrics, dtype=np.float64).ravel()
    candidate = np.asarray(candidate_metrics, dtype=np.float64).ravel()
    if target.shape != candidate.shape:
        raise DimensionMismatch(
            f"Metric vectors differ in length: {target.size} vs {candidate.size}"
        )
    return float(np.sqrt(np.sum((target - candidate) ** 2)))


class ObjectiveFunction:
    """
    Parameter-vector adapter: x = (B, J) -> distance to the target metrics.

    Target metrics are computed once at construction.
    """

    def __init__(
        self,
        initial,
        target,
        iter: int,
        inertia: float = 0.0,
        seed: Optional[int] = 42
    ):
        self.initial = Lattice.from_array(initial)
        target_layers, is_stack = as_layers(target)
        if is_stack:
            raise InvalidParameter("Target must be a single grid, not a stack")
        if target_layers[0].shape != self.initial.shape:
            raise DimensionMismatch(
                f"Target shape {target_layers[0].shape} differs from initial shape {self.initial.shape}"
            )
        self.target_metrics = metric_vector(target_layers[0])
        self.iter = iter
        self.inertia = inertia
        self.seed = seed
        self.n_evaluations = 0
        self.last_metrics: Optional[MetricVector] = None

    def evaluate(self, x: Sequence[float]) -> Tuple[float, MetricVector]:
        """
        Simulate with x = (B, J) and score the result.

        Returns:
            (objective value, metrics of the simulated lattice)

        Raises:
            InvalidParameter: x does not hold exactly two values, or J < 0.
        """
        x = np.asarray(x, dtype=np.float64).ravel()
        if x.size != 2:
            raise InvalidParameter(f"Parameter vector must be (B, J), got {x.size} values")
        B, J = float(x[0]), float(x[1])

        simulated = simulate(self.initial, B, J, self.iter, self.inertia, self.seed)
        metrics = metric_vector(simulated)
        value = objective(self.target_metrics, metrics)

        self.n_evaluations += 1
        self.last_metrics = metrics
        Logger.log(
            f"objective(B={B:.6g}, J={J:.6g}) = {value:.6g} "
            f"[composition={metrics.composition:.6g}, texture={metrics.texture:.6g}]"
        )
        return value, metrics

    def __call__(self, x: Sequence[float]) -> float:
        return self.evaluate(x)[0]


def make_objective(
    initial,
    target,
    iter: int,
    inertia: float = 0.0,
    seed: Optional[int] = 42
) -> ObjectiveFunction:
    """
    Build the single-argument objective an external optimizer minimizes.

    Args:
        initial: Observed grid at t1, start of every simulation.
        target: Observed grid at t2.
        iter: Flip attempts per simulation.
        inertia: Inertia used in every simulation.
        seed: Seed reused for every evaluation.
    """
    return ObjectiveFunction(initial, target, iter, inertia, seed)
