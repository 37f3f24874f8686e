"""
Configuration loading and validation for simulation and calibration runs.

Loads YAML config and validates all parameters against model constraints.

Example:
    simulation:
      B: 0.3
      J: 0.9
      sweeps: 3          # iter = sweeps * number of cells
      inertia: 150
      seed: 42
    calibration:
      lower: [-0.9, 0.0]
      upper: [0.9, 0.9]
      start: [0.0, 0.0]
      points_per_axis: 7
      n_replicates: 10
    output:
      out_dir: output
      run_name: maine_2013_2016
"""

import math
import yaml
from dataclasses import dataclass, field
from typing import Optional, List
from pathlib import Path

from .calibration import ParameterBounds
from .kinetic_ising import SimulationParams
from .exceptions import InvalidParameter


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_real(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class SimulationSection:
    """Kinetic Ising parameters. Exactly one of iter / sweeps is used."""
    B: float = 0.0
    J: float = 0.0
    iter: Optional[int] = None
    sweeps: Optional[float] = 3.0
    inertia: float = 0.0
    updates: int = 1
    seed: int = 42

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.iter is None and self.sweeps is None:
            return False, "either iter or sweeps must be given"
        if self.iter is not None and (not _is_int(self.iter) or self.iter < 0):
            return False, f"iter must be an integer >= 0, got {self.iter!r}"
        if self.sweeps is not None and (
            not _is_real(self.sweeps) or not math.isfinite(self.sweeps) or self.sweeps < 0
        ):
            return False, f"sweeps must be a finite value >= 0, got {self.sweeps!r}"
        if not _is_int(self.seed) or self.seed < 0:
            return False, f"seed must be an integer >= 0, got {self.seed!r}"
        return SimulationParams(
            B=self.B,
            J=self.J,
            iterations=self.iter if self.iter is not None else 0,
            inertia=self.inertia,
            updates=self.updates
        ).validate()

    def iterations_for(self, n_cells: int) -> int:
        """Flip attempts for a lattice with n_cells cells."""
        if self.iter is not None:
            return self.iter
        return int(round(self.sweeps * n_cells))

    def to_params(self, n_cells: int) -> SimulationParams:
        return SimulationParams(
            B=self.B,
            J=self.J,
            iterations=self.iterations_for(n_cells),
            inertia=self.inertia,
            updates=self.updates
        )


@dataclass
class CalibrationSection:
    """Search bounds and strategy settings."""
    lower: List[float] = field(default_factory=lambda: [-0.9, 0.0])
    upper: List[float] = field(default_factory=lambda: [0.9, 0.9])
    start: Optional[List[float]] = None
    points_per_axis: int = 5
    n_replicates: int = 10

    def validate(self) -> tuple[bool, Optional[str]]:
        if not _is_int(self.points_per_axis) or self.points_per_axis < 2:
            return False, f"points_per_axis must be an integer >= 2, got {self.points_per_axis!r}"
        if not _is_int(self.n_replicates) or self.n_replicates < 1:
            return False, f"n_replicates must be an integer >= 1, got {self.n_replicates!r}"
        return self.bounds.validate()

    @property
    def bounds(self) -> ParameterBounds:
        return ParameterBounds(lower=self.lower, upper=self.upper, start=self.start)


@dataclass
class OutputSection:
    """Output configuration."""
    out_dir: str = "output"
    run_name: str = "spatialising_run"

    def validate(self) -> tuple[bool, Optional[str]]:
        if not isinstance(self.run_name, str) or not self.run_name:
            return False, "run_name must be a non-empty string"
        return True, None


@dataclass
class SpatialisingConfig:
    """Complete run configuration."""
    simulation: SimulationSection = field(default_factory=SimulationSection)
    calibration: CalibrationSection = field(default_factory=CalibrationSection)
    output: OutputSection = field(default_factory=OutputSection)

    def validate(self) -> tuple[bool, Optional[str]]:
        for section_name in ["simulation", "calibration", "output"]:
            section = getattr(self, section_name)
            is_valid, error = section.validate()
            if not is_valid:
                return False, f"{section_name}: {error}"
        return True, None


def _section(raw: dict, name: str, cls):
    data = raw.get(name) or {}
    if not isinstance(data, dict):
        raise InvalidParameter(f"Invalid configuration: {name} must be a mapping")
    try:
        return cls(**data)
    except TypeError as e:
        raise InvalidParameter(f"Invalid configuration: {name}: {e}") from e


def parse_config(raw: Optional[dict]) -> SpatialisingConfig:
    """
    Build and validate a configuration from an already parsed mapping.

    Raises:
        InvalidParameter: If config is invalid.
    """
    raw = raw or {}
    if not isinstance(raw, dict):
        raise InvalidParameter("Invalid configuration: top level must be a mapping")

    simulation = _section(raw, "simulation", SimulationSection)
    # an explicit iter replaces the default sweeps
    if "iter" in (raw.get("simulation") or {}) and "sweeps" not in raw["simulation"]:
        simulation.sweeps = None

    config = SpatialisingConfig(
        simulation=simulation,
        calibration=_section(raw, "calibration", CalibrationSection),
        output=_section(raw, "output", OutputSection)
    )

    is_valid, error = config.validate()
    if not is_valid:
        raise InvalidParameter(f"Invalid configuration: {error}")

    return config


def load_config(path: Path) -> SpatialisingConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated SpatialisingConfig.

    Raises:
        InvalidParameter: If config is invalid.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f)
    return parse_config(raw)
