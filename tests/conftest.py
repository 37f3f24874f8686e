"""
Pytest configuration for spatialising tests.

Puts src/ on sys.path so the tests run from a plain checkout, and resets the
static Logger between tests.
"""

import sys
import os

import numpy as np
import pytest

_src_root = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if _src_root not in sys.path:
    sys.path.insert(0, _src_root)

from spatialising.logger import Logger


@pytest.fixture(autouse=True)
def reset_logger():
    Logger.reset()
    yield
    Logger.reset()


@pytest.fixture
def checkerboard():
    rows, cols = np.indices((6, 8))
    return np.where((rows + cols) % 2 == 0, 1, -1).astype(np.int8)


@pytest.fixture
def half_split():
    grid = np.ones((10, 10), dtype=np.int8)
    grid[:, :5] = -1
    return grid
