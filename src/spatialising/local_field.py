"""
Local field of a lattice cell.

The local field h combines three influences on a cell holding value v:

    h = B + J * sum(neighbours) - inertia_term

- B: external pressure, sign-meaningful (B > 0 pushes cells towards +1)
- J: neighbour coupling, J >= 0 (favours agreement with neighbours)
- inertia_term: equals `inertia` only when v = -1 and every present
  neighbour is also -1, otherwise 0. It lowers the field that would turn
  such a cell into +1, so spontaneous -1 -> +1 transitions inside uniform
  -1 areas become less likely. It never makes a transition more likely.

This module is PURE: no random sampling, no lattice mutation. The flip
decision itself lives in flip_rule.py.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .lattice import Lattice
from .exceptions import InvalidParameter


@dataclass(frozen=True)
class LocalFieldEvaluator:
    """
    Evaluates the local field for fixed (B, J, inertia).

    Attributes:
        B: External pressure strength.
        J: Coupling strength, must be >= 0.
        inertia: Damping of -1 -> +1 flips in uniform -1 areas, must be >= 0.
    """
    B: float
    J: float
    inertia: float = 0.0

    def __post_init__(self):
        is_valid, error = self.validate()
        if not is_valid:
            raise InvalidParameter(error)

    def validate(self) -> Tuple[bool, Optional[str]]:
        for name in ("B", "J", "inertia"):
            if not math.isfinite(getattr(self, name)):
                return False, f"{name} must be finite"
        if self.J < 0:
            return False, f"J must be >= 0, got {self.J}"
        if self.inertia < 0:
            return False, f"inertia must be >= 0, got {self.inertia}"
        return True, None

    def inertia_term(self, value: int, neighbors: Sequence[int]) -> float:
        """Inertia contribution for a cell, 0 unless the cell sits in a uniform -1 patch."""
        if self.inertia == 0 or value != -1:
            return 0.0
        if all(n == -1 for n in neighbors):
            return self.inertia
        return 0.0

    def field(self, value: int, neighbors: Sequence[int]) -> float:
        """
        Local field for a cell with the given value and present neighbours.

        Args:
            value: Current cell value (-1 or +1).
            neighbors: Values of the present neighbours (0 to 4 entries).

        Returns:
            h = B + J * sum(neighbors) - inertia_term
        """
        return self.B + self.J * sum(neighbors) - self.inertia_term(value, neighbors)

    def field_at(self, lattice: Lattice, row: int, col: int) -> float:
        """Local field of lattice cell (row, col)."""
        return self.field(lattice.get(row, col), lattice.neighbors(row, col))
