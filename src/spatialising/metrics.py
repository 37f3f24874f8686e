"""
Pattern metrics for binary lattices.

Composition index:
    mean cell value, in [-1, 1]. 1 for all +1, -1 for all -1, and
    (n_plus - n_minus) / n_cells in general.

Texture index:
    mean over all cells of t = |v - mean(present neighbours)| / 2, in [0, 1].
    Since v is -1 or +1, t is exactly the fraction of a cell's present
    4-connected neighbours that disagree with it. Absent neighbours at the
    grid edges are ignored (no wraparound); a cell without neighbours
    (1 x 1 grid) contributes 0.

    Fixed reference values:
        uniform grid        -> 0.0
        strict checkerboard -> 1.0 (the maximum)

All functions accept a single grid or a stack of layers and return one value
per layer. They are read-only.
"""

import numpy as np
from typing import List, NamedTuple, Union

from .lattice import NEIGHBOR_OFFSETS, GridLike, as_layers

TEXTURE_MAX = 1.0


class MetricVector(NamedTuple):
    """(composition, texture) summary of one layer."""
    composition: float
    texture: float


def _neighbor_sum_and_count(layer: np.ndarray):
    rows, cols = layer.shape
    values = np.pad(layer.astype(np.float64), 1, mode="constant", constant_values=0.0)
    present = np.pad(np.ones((rows, cols)), 1, mode="constant", constant_values=0.0)
    sums = np.zeros((rows, cols))
    counts = np.zeros((rows, cols))
    for d_row, d_col in NEIGHBOR_OFFSETS:
        window = (slice(1 + d_row, 1 + d_row + rows), slice(1 + d_col, 1 + d_col + cols))
        sums += values[window]
        counts += present[window]
    return sums, counts


def _layer_texture_map(layer: np.ndarray) -> np.ndarray:
    sums, counts = _neighbor_sum_and_count(layer)
    means = sums / np.maximum(counts, 1.0)
    local = np.abs(layer - means) / 2.0
    return np.where(counts > 0, local, 0.0)


def _layer_composition(layer: np.ndarray) -> float:
    return float(np.mean(layer, dtype=np.float64))


def _layer_texture(layer: np.ndarray) -> float:
    return float(np.mean(_layer_texture_map(layer)))


def composition_index(grid_or_stack: GridLike) -> Union[float, List[float]]:
    """
    Composition index per layer.

    Returns:
        A float for a single grid, a list of floats for a stack.
    """
    layers, is_stack = as_layers(grid_or_stack)
    values = [_layer_composition(layer) for layer in layers]
    return values if is_stack else values[0]


def texture_index(grid_or_stack: GridLike) -> Union[float, List[float]]:
    """
    Texture index per layer, in [0, 1].

    Returns:
        A float for a single grid, a list of floats for a stack.
    """
    layers, is_stack = as_layers(grid_or_stack)
    values = [_layer_texture(layer) for layer in layers]
    return values if is_stack else values[0]


def texture_map(grid) -> np.ndarray:
    """Per-cell disagreement fraction; a stack gives a (layers, rows, cols) array."""
    layers, is_stack = as_layers(grid)
    if is_stack:
        return np.stack([_layer_texture_map(layer) for layer in layers])
    return _layer_texture_map(layers[0])


def metric_vector(grid_or_stack: GridLike) -> Union[MetricVector, List[MetricVector]]:
    """(composition, texture) per layer."""
    layers, is_stack = as_layers(grid_or_stack)
    vectors = [MetricVector(_layer_composition(layer), _layer_texture(layer)) for layer in layers]
    return vectors if is_stack else vectors[0]
