"""
Kinetic Ising simulation driver.

Runs Glauber dynamics on a binary lattice: for every flip attempt a cell is
picked uniformly at random, its local field is evaluated and the flip rule
decides whether it changes sign. Each decision depends on the lattice state
left by the previous one, so a run is a strictly sequential Markov chain.

Independent runs (different parameters or seeds) share nothing: each owns a
private copy of the initial lattice and its own RandomSource, so they may be
executed concurrently.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .lattice import Lattice
from .local_field import LocalFieldEvaluator
from .flip_rule import FlipDecisionRule, RandomSource
from .exceptions import InvalidParameter
from .logger import Logger


@dataclass(frozen=True)
class SimulationParams:
    """
    Parameters of one simulation run, immutable while it executes.

    Attributes:
        B: External pressure strength (sign-meaningful).
        J: Coupling strength, >= 0.
        iterations: Flip attempts per update, >= 0.
        inertia: Damping of -1 -> +1 flips in uniform -1 areas, >= 0.
        updates: Number of successive snapshots to record, >= 1.
    """
    B: float
    J: float
    iterations: int
    inertia: float = 0.0
    updates: int = 1

    def validate(self) -> Tuple[bool, Optional[str]]:
        for name in ("B", "J", "inertia"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
                return False, f"{name} must be a real number"
            if not math.isfinite(value):
                return False, f"{name} must be finite"
        if self.J < 0:
            return False, f"J must be >= 0, got {self.J}"
        if self.inertia < 0:
            return False, f"inertia must be >= 0, got {self.inertia}"
        for name in ("iterations", "updates"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                return False, f"{name} must be an integer, got {value!r}"
        if self.iterations < 0:
            return False, f"iterations must be >= 0, got {self.iterations}"
        if self.updates < 1:
            return False, f"updates must be >= 1, got {self.updates}"
        return True, None

    def check(self) -> None:
        """Raise InvalidParameter if the parameters are not valid."""
        is_valid, error = self.validate()
        if not is_valid:
            Logger.log(f"Invalid simulation parameters: {error}", Logger.LogPriority.ERROR)
            raise InvalidParameter(error)


@dataclass
class SimulationResult:
    """
    Outcome of one simulation run.

    Attributes:
        snapshots: Lattice after each update, in order.
        params: Parameters used.
        seed: Seed of the RandomSource, enough to replay the run.
        n_attempts: Flip attempts performed.
        n_flips: Flip attempts that changed a cell.
        stopped_early: Whether stop_check ended the run.
    """
    snapshots: List[Lattice]
    params: SimulationParams
    seed: int
    n_attempts: int
    n_flips: int
    stopped_early: bool = False

    @property
    def final(self) -> Lattice:
        return self.snapshots[-1]

    @property
    def acceptance_rate(self) -> float:
        if self.n_attempts == 0:
            return 0.0
        return self.n_flips / self.n_attempts

    def to_array(self) -> np.ndarray:
        """Snapshots as a (updates, rows, cols) stack."""
        return np.stack([snap.to_array() for snap in self.snapshots])


class KineticIsingRunner:
    """
    Simulation driver for one run.
    """

    def __init__(self, lattice, params: SimulationParams, seed: Optional[int] = 42):
        """
        Args:
            lattice: Initial grid (Lattice or 2-D array-like). It is copied,
                the caller's data is never modified.
            params: Simulation parameters.
            seed: Seed of the run's RandomSource.
        """
        params.check()
        self.params = params
        self.lattice = Lattice.from_array(lattice)
        self.evaluator = LocalFieldEvaluator(params.B, params.J, params.inertia)
        self.rule = FlipDecisionRule()
        self.rng = RandomSource(seed)

    def step(self) -> bool:
        """
        One flip attempt on a uniformly chosen cell.

        Returns:
            True if the chosen cell flipped.
        """
        row, col = self.rng.cell(self.lattice.rows, self.lattice.cols)
        field = self.evaluator.field_at(self.lattice, row, col)
        return self.rule.apply(self.lattice, row, col, field, self.rng)

    def run(self, stop_check: Optional[Callable[[], bool]] = None) -> SimulationResult:
        """
        Run all updates.

        Args:
            stop_check: Optional callable consulted after every flip attempt;
                returning True ends the run with the current lattice.

        Returns:
            SimulationResult with one snapshot per completed update.
        """
        p = self.params
        Logger.log(
            f"start KineticIsingRunner.run(B={p.B}, J={p.J}, iterations={p.iterations}, "
            f"inertia={p.inertia}, updates={p.updates}, seed={self.rng.seed}, "
            f"shape={self.lattice.shape})"
        )

        snapshots = []
        attempts = 0
        stopped = False

        for _ in range(p.updates):
            for _ in range(p.iterations):
                self.step()
                attempts += 1
                if stop_check is not None and stop_check():
                    stopped = True
                    break
            snapshots.append(self.lattice.copy())
            if stopped:
                Logger.log(f"Run stopped early after {attempts} flip attempts", Logger.LogPriority.WARNING)
                break

        Logger.log(
            f"end KineticIsingRunner.run: {attempts} attempts, {self.rule.flip_count} flips",
            Logger.LogPriority.INFO
        )

        return SimulationResult(
            snapshots=snapshots,
            params=p,
            seed=self.rng.seed,
            n_attempts=attempts,
            n_flips=self.rule.flip_count,
            stopped_early=stopped
        )


def simulate(
    lattice,
    B: float,
    J: float,
    iter: int,
    inertia: float = 0.0,
    seed: Optional[int] = 42
) -> Lattice:
    """
    Run the kinetic Ising model and return the final lattice.

    Args:
        lattice: Initial grid of -1/+1 values (never modified).
        B: External pressure strength.
        J: Coupling strength, >= 0.
        iter: Number of flip attempts, >= 0. 0 returns an equal copy.
        inertia: Damping of -1 -> +1 flips in uniform -1 areas, >= 0.
        seed: RandomSource seed; identical inputs give identical output.

    Returns:
        New Lattice with the dimensions of the input.

    Raises:
        InvalidParameter: Invalid parameter or non-binary input cells.
    """
    params = SimulationParams(B=B, J=J, iterations=iter, inertia=inertia)
    return KineticIsingRunner(lattice, params, seed).run().final


def kinetic_ising(
    grid,
    B: float,
    J: float,
    iter: int,
    inertia: float = 0.0,
    updates: int = 1,
    seed: Optional[int] = 42
) -> np.ndarray:
    """
    Array-in, array-out front end of the simulation.

    Each update continues from the previous one and performs `iter` more
    flip attempts.

    Returns:
        2-D array when updates == 1, otherwise a (updates, rows, cols) stack.
    """
    params = SimulationParams(B=B, J=J, iterations=iter, inertia=inertia, updates=updates)
    result = KineticIsingRunner(grid, params, seed).run()
    if updates == 1:
        return result.final.to_array()
    return result.to_array()
