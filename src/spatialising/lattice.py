"""
Binary lattice representation.

A lattice is a rectangular rows x cols grid whose cells hold -1 or +1.
Neighbourhoods are 4-connected (top, left, bottom, right). Cells outside
the grid are absent: boundary cells simply have fewer neighbours, there is
no wraparound.

Stacks of lattices (several time points of the same area) are plain
(layers, rows, cols) arrays or sequences of equally sized grids.
"""

import numpy as np
from typing import List, Sequence, Tuple, Union

from .exceptions import InvalidParameter, OutOfBounds, DimensionMismatch


CELL_VALUES = (-1, 1)

# (row offset, col offset) in neighbour order: top, left, bottom, right
NEIGHBOR_OFFSETS = ((-1, 0), (0, -1), (1, 0), (0, 1))


def _check_binary(data: np.ndarray) -> None:
    if data.size == 0:
        raise InvalidParameter("Lattice must contain at least one cell")
    if not np.all(np.isin(data, CELL_VALUES)):
        bad = np.unique(data[~np.isin(data, CELL_VALUES)])
        raise InvalidParameter(
            f"Lattice cells must be -1 or +1, found {bad[:5].tolist()}"
        )


class Lattice:
    """
    Grid of -1/+1 cells answering neighbour queries.

    The lattice owns its storage: constructing one copies the input data.
    """

    def __init__(self, data):
        try:
            array = np.array(data)
        except ValueError as exc:
            raise DimensionMismatch("Lattice rows must share the same length") from exc
        if array.ndim != 2:
            raise InvalidParameter(
                f"Lattice must be 2-dimensional, got {array.ndim} dimensions"
            )
        _check_binary(array)
        self._cells = array.astype(np.int8)

    @classmethod
    def from_array(cls, data) -> "Lattice":
        """Build a lattice from any 2-D array-like of -1/+1 values."""
        if isinstance(data, Lattice):
            return data.copy()
        return cls(data)

    @classmethod
    def filled(cls, rows: int, cols: int, value: int = 1) -> "Lattice":
        """Uniform lattice of the given size."""
        if rows < 1 or cols < 1:
            raise InvalidParameter("rows and cols must be >= 1")
        return cls(np.full((rows, cols), value, dtype=np.int8))

    @property
    def shape(self) -> Tuple[int, int]:
        return self._cells.shape

    @property
    def rows(self) -> int:
        return self._cells.shape[0]

    @property
    def cols(self) -> int:
        return self._cells.shape[1]

    @property
    def n_cells(self) -> int:
        return int(self._cells.size)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the cells."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def to_array(self) -> np.ndarray:
        """Independent copy of the cells."""
        return self._cells.copy()

    def copy(self) -> "Lattice":
        return Lattice(self._cells)

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def _check_bounds(self, row: int, col: int) -> None:
        if not self.contains(row, col):
            raise OutOfBounds(
                f"Cell ({row}, {col}) outside lattice of shape {self.shape}"
            )

    def get(self, row: int, col: int) -> int:
        self._check_bounds(row, col)
        return int(self._cells[row, col])

    def set(self, row: int, col: int, value: int) -> None:
        self._check_bounds(row, col)
        if value not in CELL_VALUES:
            raise InvalidParameter(f"Cell value must be -1 or +1, got {value}")
        self._cells[row, col] = value

    def flip(self, row: int, col: int) -> None:
        """Multiply one cell by -1."""
        self._check_bounds(row, col)
        self._cells[row, col] = -self._cells[row, col]

    def neighbors(self, row: int, col: int) -> List[int]:
        """
        Values of the present neighbours of a cell.

        Returns:
            Up to 4 values in order top, left, bottom, right.
        """
        self._check_bounds(row, col)
        cells = self._cells
        found = []
        for d_row, d_col in NEIGHBOR_OFFSETS:
            r = row + d_row
            c = col + d_col
            if 0 <= r < self.rows and 0 <= c < self.cols:
                found.append(int(cells[r, c]))
        return found

    def __eq__(self, other):
        if not isinstance(other, Lattice):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._cells, other._cells))

    def __repr__(self):
        return f"Lattice(rows={self.rows}, cols={self.cols})"


GridLike = Union[Lattice, np.ndarray, Sequence]


def as_layers(grid_or_stack: GridLike) -> Tuple[List[np.ndarray], bool]:
    """
    Normalize a grid or a stack of grids into a list of 2-D layers.

    Args:
        grid_or_stack: Lattice, 2-D array, (layers, rows, cols) array,
            or a sequence of Lattices / 2-D arrays.

    Returns:
        (layers, is_stack). A single grid gives a one-element list and
        is_stack=False.

    Raises:
        InvalidParameter: Non-binary cells or unsupported dimensionality.
        DimensionMismatch: Layers of a stack differ in shape.
    """
    if isinstance(grid_or_stack, Lattice):
        return [grid_or_stack.values], False

    if isinstance(grid_or_stack, (list, tuple)) and grid_or_stack and all(
        isinstance(layer, (Lattice, np.ndarray)) for layer in grid_or_stack
    ):
        layers = [
            layer.values if isinstance(layer, Lattice) else np.asarray(layer)
            for layer in grid_or_stack
        ]
        for layer in layers:
            if layer.ndim != 2:
                raise InvalidParameter("Every layer of a stack must be 2-dimensional")
        first_shape = layers[0].shape
        for idx, layer in enumerate(layers[1:], start=1):
            if layer.shape != first_shape:
                raise DimensionMismatch(
                    f"Layer {idx} has shape {layer.shape}, expected {first_shape}"
                )
        for layer in layers:
            _check_binary(layer)
        return layers, True

    try:
        array = np.asarray(grid_or_stack)
    except ValueError as exc:
        # ragged nested sequences
        raise DimensionMismatch("Stack layers must share identical dimensions") from exc
    if array.dtype == object:
        raise DimensionMismatch("Stack layers must share identical dimensions")
    if array.ndim == 2:
        _check_binary(array)
        return [array], False
    if array.ndim == 3:
        if array.shape[0] == 0:
            raise InvalidParameter("Stack must contain at least one layer")
        _check_binary(array)
        return [array[i] for i in range(array.shape[0])], True

    raise InvalidParameter(
        f"Expected a 2-D grid or 3-D stack, got {array.ndim} dimensions"
    )
