"""resolvefast - Numba-accelerated chromatographic peak resolution.

Partitions 1-D intensity traces (chromatograms over retention time,
mobilograms over ion mobility) into non-overlapping peak intervals by
local-minimum search, with robust noise thresholds, multi-maxima splitting
and grid-search auto-calibration driven by peak shape quality.

Examples
--------
>>> import resolvefast as rf
>>> result = rf.calibrate(traces)
>>> intervals = rf.resolve_trace(traces[0], parameters=result)
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from resolvefast import baseline
from resolvefast import resolver
from resolvefast import quality
from resolvefast import calibration

from resolvefast.exceptions import (
    ResolveFastError,
    InvalidInputError,
    UncalibratedStateError,
    CalibrationError,
    ResolutionCancelled,
)
from resolvefast.types import (
    Trace,
    PeakInterval,
    ParameterCombination,
    ResolverSettings,
)
from resolvefast.resolver import resolve_trace, resolve_traces
from resolvefast.quality import QualityWeights, QualityScore, score_peak, score_peaks
from resolvefast.calibration import (
    CalibrationSettings,
    CalibrationResult,
    calibrate,
    resolve_auto,
)

__all__ = [
    "baseline",
    "resolver",
    "quality",
    "calibration",
    # Errors
    "ResolveFastError",
    "InvalidInputError",
    "UncalibratedStateError",
    "CalibrationError",
    "ResolutionCancelled",
    # Types
    "Trace",
    "PeakInterval",
    "ParameterCombination",
    "ResolverSettings",
    # Entry points
    "resolve_trace",
    "resolve_traces",
    "QualityWeights",
    "QualityScore",
    "score_peak",
    "score_peaks",
    "CalibrationSettings",
    "CalibrationResult",
    "calibrate",
    "resolve_auto",
]
