"""
Glauber flip decision and its random source.

Given the local field h of a cell holding value v, the probability of
flipping the cell is the logistic (Glauber) rate:

    p = 1 / (1 + exp(2 * h * v))

- h = 0 gives p = 0.5
- a field opposing the current value (h * v < 0) gives p > 0.5
- a field agreeing with the current value gives p < 0.5

One uniform variate u is drawn per decision and the cell flips iff u < p.

Determinism Guarantee:
- Every draw comes from the RandomSource owned by one simulation run
- Given identical (seed, lattice, parameters), decisions are identical
- No process-global RNG state is touched
"""

import math
import numpy as np
from typing import Optional, Tuple

from .lattice import Lattice
from .exceptions import InvalidParameter

# exp(700) is close to the float64 limit; beyond it p is exactly 0 or 1
MAX_EXPONENT = 700.0


class RandomSource:
    """
    Seeded uniform stream owned by exactly one simulation run.

    Uses numpy PCG64 with an explicit seed. With seed=None fresh entropy is
    drawn and exposed through `seed`, so the run can still be replayed.
    """

    def __init__(self, seed: Optional[int] = 42):
        self._seed = self._resolve_seed(seed)
        self._rng = np.random.Generator(np.random.PCG64(self._seed))
        self._draw_count = 0

    @staticmethod
    def _resolve_seed(seed: Optional[int]) -> int:
        if seed is None:
            return int(np.random.SeedSequence().entropy)
        if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
            raise InvalidParameter(f"seed must be an integer, got {seed!r}")
        if seed < 0:
            raise InvalidParameter(f"seed must be >= 0, got {seed}")
        return int(seed)

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def draw_count(self) -> int:
        """Number of variates drawn since construction or the last reset."""
        return self._draw_count

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Restart the stream.

        Args:
            seed: New seed (uses the current seed if None)
        """
        if seed is not None:
            self._seed = self._resolve_seed(seed)
        self._rng = np.random.Generator(np.random.PCG64(self._seed))
        self._draw_count = 0

    def uniform(self) -> float:
        """One variate in [0, 1)."""
        self._draw_count += 1
        return float(self._rng.random())

    def index(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        self._draw_count += 1
        return int(self._rng.integers(n))

    def cell(self, rows: int, cols: int) -> Tuple[int, int]:
        """Uniformly random cell coordinate, row drawn before column."""
        row = self.index(rows)
        col = self.index(cols)
        return row, col


def flip_probability(field: float, value: int) -> float:
    """
    Glauber flip probability p = 1 / (1 + exp(2 * h * v)).

    Args:
        field: Local field h.
        value: Current cell value v (-1 or +1).

    Returns:
        Probability in [0, 1]. Extreme fields return exactly 0 or 1
        instead of overflowing.
    """
    exponent = 2.0 * field * value
    if exponent >= MAX_EXPONENT:
        return 0.0
    if exponent <= -MAX_EXPONENT:
        return 1.0
    return 1.0 / (1.0 + math.exp(exponent))


class FlipDecisionRule:
    """
    Biased-coin flip of a single cell.

    This is the only operation that mutates a lattice during a simulation.
    """

    def __init__(self):
        self._flip_count = 0

    @property
    def flip_count(self) -> int:
        return self._flip_count

    def decide(self, field: float, value: int, rng: RandomSource) -> bool:
        """Draw one variate and return True if the cell should flip."""
        return rng.uniform() < flip_probability(field, value)

    def apply(
        self,
        lattice: Lattice,
        row: int,
        col: int,
        field: float,
        rng: RandomSource
    ) -> bool:
        """
        Decide and, on success, flip cell (row, col) in place.

        Returns:
            True if the cell flipped.
        """
        value = lattice.get(row, col)
        if self.decide(field, value, rng):
            lattice.flip(row, col)
            self._flip_count += 1
            return True
        return False
