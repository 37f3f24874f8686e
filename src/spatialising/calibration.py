"""
Calibration of (B, J) against an observed target pattern.

The optimizer is a pluggable strategy: anything with a
`minimize(fun, start, lower, upper)` method can drive the calibration, for
example an external simulated-annealing implementation. A deterministic
grid search is provided as the built-in strategy.

Replicate sweeps evaluate a parameter grid with several seeds per
combination to expose the stochastic spread of the objective.

Sweep seeds: base_seed + combo_idx * n_replicates + rep
"""

import itertools
import warnings
import numpy as np
import pandas as pd
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .lattice import Lattice
from .metrics import MetricVector
from .objective import make_objective
from .exceptions import InvalidParameter
from .logger import Logger

PARAMETER_NAMES = ("B", "J")

SUMMARY_COLUMNS = [
    "B", "J", "n_replicates", "mean_objective", "std_objective",
    "min_objective", "mean_composition", "mean_texture",
]

# iterations per cell used when the caller gives none
DEFAULT_SWEEPS = 3



def _is_real(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float, np.integer, np.floating))


def _is_pair(value) -> bool:
    """True for a length-2 sequence of real numbers."""
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        return False
    return len(value) == 2 and all(_is_real(v) for v in value)


@dataclass
class ParameterBounds:
    """Box constraints and starting point for (B, J)."""
    lower: Sequence[float] = (-0.9, 0.0)
    upper: Sequence[float] = (0.9, 0.9)
    start: Optional[Sequence[float]] = None

    def validate(self) -> Tuple[bool, Optional[str]]:
        if not (_is_pair(self.lower) and _is_pair(self.upper)):
            return False, "lower and upper must hold (B, J)"
        lower = np.asarray(self.lower, dtype=np.float64)
        upper = np.asarray(self.upper, dtype=np.float64)
        if not (np.all(np.isfinite(lower)) and np.all(np.isfinite(upper))):
            return False, "bounds must be finite"
        if np.any(lower > upper):
            return False, "lower bounds must not exceed upper bounds"
        if lower[1] < 0:
            return False, "lower bound of J must be >= 0"
        if self.start is not None:
            if not _is_pair(self.start):
                return False, "start must hold (B, J)"
            start = np.asarray(self.start, dtype=np.float64)
            if np.any(start < lower) or np.any(start > upper):
                return False, "start must lie within the bounds"
        return True, None

    def check(self) -> None:
        is_valid, error = self.validate()
        if not is_valid:
            raise InvalidParameter(f"Invalid parameter bounds: {error}")

    @property
    def start_point(self) -> np.ndarray:
        """Start point, the centre of the box when none is given."""
        if self.start is not None:
            return np.asarray(self.start, dtype=np.float64)
        return (np.asarray(self.lower, dtype=np.float64) + np.asarray(self.upper, dtype=np.float64)) / 2.0

    def clamp(self, x: Sequence[float]) -> np.ndarray:
        return np.clip(np.asarray(x, dtype=np.float64), self.lower, self.upper)


@dataclass
class OptimizationResult:
    """
    Outcome of an optimizer strategy.

    Attributes:
        par: Best parameter vector found.
        value: Objective at par.
        n_evaluations: Number of objective calls.
        history: (parameter vector, value) for every call, in call order.
    """
    par: np.ndarray
    value: float
    n_evaluations: int
    history: List[Tuple[Tuple[float, ...], float]] = field(default_factory=list)


@runtime_checkable
class Optimizer(Protocol):
    """Strategy minimizing a scalar function within box bounds."""

    def minimize(
        self,
        fun: Callable[[np.ndarray], float],
        start: np.ndarray,
        lower: np.ndarray,
        upper: np.ndarray
    ) -> OptimizationResult:
        ...


class GridSearchOptimizer:
    """
    Exhaustive search over a regular grid spanned by the bounds.

    The start point is evaluated first; ties keep the earliest candidate.
    """

    def __init__(self, points_per_axis: int = 5):
        if points_per_axis < 2:
            raise InvalidParameter("points_per_axis must be >= 2")
        self.points_per_axis = points_per_axis

    def candidates(self, start, lower, upper) -> List[np.ndarray]:
        axes = [
            np.linspace(lo, hi, self.points_per_axis)
            for lo, hi in zip(np.asarray(lower, dtype=np.float64), np.asarray(upper, dtype=np.float64))
        ]
        points = [np.asarray(start, dtype=np.float64)]
        points.extend(np.array(combo) for combo in itertools.product(*axes))
        return points

    def minimize(self, fun, start, lower, upper) -> OptimizationResult:
        history = []
        best_par = None
        best_value = float("inf")
        for x in self.candidates(start, lower, upper):
            value = float(fun(x))
            history.append((tuple(float(v) for v in x), value))
            if value < best_value:
                best_value = value
                best_par = x
        return OptimizationResult(
            par=best_par,
            value=best_value,
            n_evaluations=len(history),
            history=history
        )


@dataclass
class CalibrationResult:
    """
    Calibrated parameters and the evidence behind them.

    Attributes:
        B, J: Best parameters.
        value: Objective at (B, J).
        metrics: Metrics of the simulation at (B, J).
        target_metrics: Metrics of the target grid.
        iterations: Flip attempts per simulation.
        inertia: Inertia used.
        seed: Seed used for every simulation.
        history: DataFrame with columns B, J, objective.
    """
    B: float
    J: float
    value: float
    metrics: MetricVector
    target_metrics: MetricVector
    iterations: int
    inertia: float
    seed: int
    history: pd.DataFrame

    @property
    def n_evaluations(self) -> int:
        return len(self.history)


def calibrate(
    initial,
    target,
    bounds: Optional[ParameterBounds] = None,
    optimizer: Optional[Optimizer] = None,
    iter: Optional[int] = None,
    inertia: float = 0.0,
    seed: int = 42
) -> CalibrationResult:
    """
    Find (B, J) so that simulating from `initial` reproduces the metrics of `target`.

    Args:
        initial: Observed grid at t1.
        target: Observed grid at t2, same shape.
        bounds: Box constraints; candidates are clamped into them.
        optimizer: Strategy with a minimize() method, GridSearchOptimizer() if None.
        iter: Flip attempts per simulation, 3 per cell if None.
        inertia: Inertia used in every simulation.
        seed: Seed reused for every simulation.

    Returns:
        CalibrationResult
    """
    bounds = bounds or ParameterBounds()
    bounds.check()
    optimizer = optimizer or GridSearchOptimizer()
    if not isinstance(optimizer, Optimizer):
        raise InvalidParameter("optimizer must provide minimize(fun, start, lower, upper)")

    initial = Lattice.from_array(initial)
    if iter is None:
        iter = DEFAULT_SWEEPS * initial.n_cells

    fun = make_objective(initial, target, iter, inertia, seed)

    def bounded(x):
        return fun(bounds.clamp(x))

    Logger.log(
        f"start calibrate(lower={list(bounds.lower)}, upper={list(bounds.upper)}, "
        f"iter={iter}, inertia={inertia}, seed={seed}, optimizer={type(optimizer).__name__})"
    )
    outcome = optimizer.minimize(
        bounded,
        bounds.start_point,
        np.asarray(bounds.lower, dtype=np.float64),
        np.asarray(bounds.upper, dtype=np.float64)
    )

    best = bounds.clamp(outcome.par)
    value, metrics = fun.evaluate(best)
    history = pd.DataFrame(
        [(par[0], par[1], val) for par, val in outcome.history],
        columns=["B", "J", "objective"]
    )

    Logger.log(
        f"end calibrate: B={best[0]:.6g}, J={best[1]:.6g}, objective={value:.6g}, "
        f"{outcome.n_evaluations} evaluations",
        Logger.LogPriority.INFO
    )

    return CalibrationResult(
        B=float(best[0]),
        J=float(best[1]),
        value=value,
        metrics=metrics,
        target_metrics=fun.target_metrics,
        iterations=iter,
        inertia=inertia,
        seed=seed,
        history=history
    )


@dataclass
class SweepResult:
    """Result of a single sweep run."""
    B: float
    J: float
    replicate: int
    seed: int
    objective: float
    composition: float
    texture: float


def generate_parameter_combinations(
    parameter_grid: Dict[str, List[float]]
) -> List[Dict[str, float]]:
    """
    Generate all combinations from parameter grid.

    Args:
        parameter_grid: Dict of param_name -> list of values

    Returns:
        List of dicts, each representing one parameter combination
    """
    keys = list(parameter_grid.keys())
    values = list(parameter_grid.values())
    return [dict(zip(keys, combo)) for combo in itertools.product(*values)]


def run_sweep(
    initial,
    target,
    parameter_grid: Dict[str, List[float]],
    iter: Optional[int] = None,
    inertia: float = 0.0,
    n_replicates: int = 10,
    base_seed: int = 42,
    progress_callback=None
) -> List[SweepResult]:
    """
    Evaluate every (B, J) combination of the grid across replicates.

    Args:
        parameter_grid: {"B": [...], "J": [...]}
        n_replicates: Seeds per combination.
        progress_callback: Optional callback(completed, total).

    Returns:
        One SweepResult per run, combination-major order.
    """
    if set(parameter_grid) != set(PARAMETER_NAMES):
        raise InvalidParameter(f"parameter_grid must have exactly the keys {PARAMETER_NAMES}")
    for name in PARAMETER_NAMES:
        axis = parameter_grid[name]
        if not isinstance(axis, (list, tuple)) or not axis:
            raise InvalidParameter(f"parameter_grid[{name!r}] must be a non-empty list")
        if not all(_is_real(v) for v in axis):
            raise InvalidParameter(f"parameter_grid[{name!r}] must hold real numbers")
    if any(j < 0 for j in parameter_grid["J"]):
        raise InvalidParameter("J values of the sweep must be >= 0")
    if n_replicates < 1:
        raise InvalidParameter("n_replicates must be >= 1")
    if n_replicates < 5:
        warnings.warn(
            f"n_replicates={n_replicates} is low for reliable statistics. "
            f"Consider n_replicates >= 5 to estimate the objective spread.",
            UserWarning
        )

    initial = Lattice.from_array(initial)
    if iter is None:
        iter = DEFAULT_SWEEPS * initial.n_cells

    combos = generate_parameter_combinations(
        {name: parameter_grid[name] for name in PARAMETER_NAMES}
    )
    total_runs = len(combos) * n_replicates
    Logger.log(f"start run_sweep: {len(combos)} combinations x {n_replicates} replicates")

    results = []
    completed = 0
    for combo_idx, params in enumerate(combos):
        for rep in range(n_replicates):
            seed = base_seed + combo_idx * n_replicates + rep
            fun = make_objective(initial, target, iter, inertia, seed)
            value, metrics = fun.evaluate((params["B"], params["J"]))
            results.append(SweepResult(
                B=float(params["B"]),
                J=float(params["J"]),
                replicate=rep,
                seed=seed,
                objective=value,
                composition=metrics.composition,
                texture=metrics.texture
            ))

            completed += 1
            if progress_callback:
                progress_callback(completed, total_runs)

    Logger.log(f"end run_sweep: {completed} runs", Logger.LogPriority.INFO)
    return results


def analyze_sweep_results(results: List[SweepResult]) -> pd.DataFrame:
    """
    Statistics of the objective per (B, J) combination.

    Returns:
        DataFrame with B, J, n_replicates, mean/std/min objective and mean
        composition/texture, sorted by mean objective.
    """
    if not results:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    df = pd.DataFrame([asdict(r) for r in results])
    grouped = df.groupby(["B", "J"], sort=False)
    summary = grouped.agg(
        n_replicates=("objective", "size"),
        mean_objective=("objective", "mean"),
        std_objective=("objective", "std"),
        min_objective=("objective", "min"),
        mean_composition=("composition", "mean"),
        mean_texture=("texture", "mean"),
    ).reset_index()
    summary["std_objective"] = summary["std_objective"].fillna(0.0)
    return summary.sort_values("mean_objective", kind="stable").reset_index(drop=True)
