"""
spatialising - kinetic Ising simulation of binary land-cover change.

Simulates land-cover change on a -1/+1 grid with Glauber dynamics and
calibrates external pressure B and coupling J so that a simulation started
from an observed pattern reproduces the composition and texture of a later
observed pattern.
"""

__version__ = "0.1.0"

from .exceptions import InvalidParameter, OutOfBounds, DimensionMismatch
from .lattice import Lattice, as_layers
from .local_field import LocalFieldEvaluator
from .flip_rule import RandomSource, FlipDecisionRule, flip_probability
from .kinetic_ising import (
    SimulationParams,
    SimulationResult,
    KineticIsingRunner,
    simulate,
    kinetic_ising
)
from .metrics import (
    MetricVector,
    composition_index,
    texture_index,
    texture_map,
    metric_vector
)
from .objective import objective, ObjectiveFunction, make_objective
from .calibration import (
    ParameterBounds,
    Optimizer,
    OptimizationResult,
    GridSearchOptimizer,
    CalibrationResult,
    calibrate,
    SweepResult,
    run_sweep,
    analyze_sweep_results
)
from .config import SpatialisingConfig, load_config, parse_config
from .exporters import export_calibration, export_sweep
