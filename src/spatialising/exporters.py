"""
Export calibration and sweep results to CSV and JSON.

Calibration:
    <run_name>_history.csv    B, J, objective for every evaluation
    <run_name>_metadata.json  best parameters, metrics, run settings
Sweep:
    <run_name>_sweep.csv          one row per (B, J, replicate)
    <run_name>_sweep_summary.csv  statistics per (B, J)
"""

import json
import pandas as pd
from dataclasses import asdict, fields
from pathlib import Path
from typing import List
from datetime import datetime

from . import __version__
from .calibration import CalibrationResult, SweepResult, analyze_sweep_results


def calibration_to_dict(result: CalibrationResult) -> dict:
    """Convert calibration result (without history) to a serializable dict."""
    return {
        "best": {
            "B": result.B,
            "J": result.J,
            "objective": result.value
        },
        "metrics": {
            "simulated": result.metrics._asdict(),
            "target": result.target_metrics._asdict()
        },
        "settings": {
            "iterations": result.iterations,
            "inertia": result.inertia,
            "seed": result.seed
        },
        "n_evaluations": result.n_evaluations
    }


def export_calibration(result: CalibrationResult, out_dir: Path, run_name: str) -> dict:
    """
    Export calibration history and metadata.

    Returns:
        Dict with paths to exported files.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    csv_path = out_dir / f"{run_name}_history.csv"
    json_path = out_dir / f"{run_name}_metadata.json"

    result.history.to_csv(csv_path, index=False)

    metadata = {
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        **calibration_to_dict(result)
    }
    with open(json_path, 'w') as f:
        json.dump(metadata, f, indent=2)

    return {
        "csv": str(csv_path),
        "metadata": str(json_path)
    }


def export_sweep(results: List[SweepResult], out_dir: Path, run_name: str) -> dict:
    """
    Export raw sweep runs and their per-combination summary.

    Returns:
        Dict with paths to exported files.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    runs_path = out_dir / f"{run_name}_sweep.csv"
    summary_path = out_dir / f"{run_name}_sweep_summary.csv"

    runs = pd.DataFrame(
        [asdict(r) for r in results],
        columns=[f.name for f in fields(SweepResult)]
    )
    runs.to_csv(runs_path, index=False)
    analyze_sweep_results(results).to_csv(summary_path, index=False)

    return {
        "runs": str(runs_path),
        "summary": str(summary_path)
    }
