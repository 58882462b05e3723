"""Parameter auto-calibration by grid search over shape quality.

This module provides:
- Data-anchored parameter grids (global and per-trace presets)
- Seeded random capping of large grids
- Parallel, cancellable evaluation of combinations across traces
- Single-trace calibrate-then-resolve

Examples
--------
>>> from resolvefast.calibration import CalibrationSettings, calibrate
>>> result = calibrate(traces, CalibrationSettings.global_search(n_workers=8))
>>> result.parameters
"""

from .grid import (
    CalibrationSettings,
    grid_anchors,
    generate_parameter_grid,
)

from .calibrator import (
    CalibrationResult,
    pack_traces,
    evaluate_combination,
    calibrate,
    resolve_auto,
)

__all__ = [
    # Grid
    'CalibrationSettings',
    'grid_anchors',
    'generate_parameter_grid',

    # Calibration
    'CalibrationResult',
    'pack_traces',
    'evaluate_combination',
    'calibrate',
    'resolve_auto',
]
