"""Local-minimum peak resolution.

This module provides:
- Single-pass local-minimum segmentation (numba-optimized)
- Shape validation (length, height, apex/edge ratio)
- Splitting of regions with several significant maxima
- Single-trace and parallel batch resolution

Examples
--------
>>> from resolvefast.resolver import resolve_trace, resolve_traces
>>> intervals = resolve_trace(trace, parameters=calibration)
>>> by_feature = resolve_traces(traces, parameters=calibration, n_workers=8)
"""

from .validation import (
    check_peak_shape,
    adjust_start_and_end,
    effective_min_height,
)

from .segmentation import find_peak_regions

from .splitting import (
    find_significant_maxima,
    split_region,
    split_multi_maxima,
)

from .engine import (
    prepare_intensities,
    resolve_arrays,
    resolve_trace,
    resolve_traces,
)

__all__ = [
    # Validation
    'check_peak_shape',
    'adjust_start_and_end',
    'effective_min_height',

    # Segmentation
    'find_peak_regions',

    # Splitting
    'find_significant_maxima',
    'split_region',
    'split_multi_maxima',

    # Resolution
    'prepare_intensities',
    'resolve_arrays',
    'resolve_trace',
    'resolve_traces',
]
