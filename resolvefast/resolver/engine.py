"""Trace resolution: thresholding, segmentation and splitting.

`resolve_trace` turns one trace into an ordered list of non-overlapping
PeakInterval objects. `resolve_traces` does the same for many traces on a
thread pool; the Numba kernels release the GIL so threads scale.

Pipeline per trace
------------------
1. Private float64 copy of the intensities (caller data is never modified)
2. Optional Gaussian smoothing
3. Optional noise threshold (median + k * MAD over the low slice, the whole
   trace or a sliding window)
4. Zeroing below the combination's chrom_threshold
5. Local-minimum segmentation with shape validation
6. Optional multi-maxima splitting

Example
-------
>>> from resolvefast import ParameterCombination, resolve_trace
>>> intervals = resolve_trace(rt, intensities, ParameterCombination(search_width=0.1))
>>> [(p.start, p.end) for p in intervals]
"""

import logging
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Hashable, Iterable, List, Optional, Union

import numpy as np

from ..baseline.smoothing import smooth_gaussian_1d
from ..baseline.threshold import apply_threshold, estimate_threshold
from ..exceptions import (
    InvalidInputError,
    ResolutionCancelled,
    UncalibratedStateError,
)
from ..types import ParameterCombination, PeakInterval, ResolverSettings, Trace
from .segmentation import find_peak_regions
from .splitting import split_multi_maxima
from .validation import effective_min_height

logger = logging.getLogger(__name__)


def _resolve_parameters(parameters, x: np.ndarray, settings: ResolverSettings) -> ParameterCombination:
    """Accept a ParameterCombination or CalibrationResult, or fall back."""
    from ..calibration.calibrator import CalibrationResult

    if isinstance(parameters, ParameterCombination):
        return parameters
    if isinstance(parameters, CalibrationResult):
        return parameters.parameters
    if parameters is None:
        if not settings.allow_uncalibrated_fallback:
            raise UncalibratedStateError(
                "No parameter combination given. Run calibrate() first or pass "
                "ParameterCombination explicitly."
            )
        fallback = ParameterCombination.fallback_for(x)
        warnings.warn(
            f"Resolving without calibration, using fallback parameters {fallback}",
            UserWarning,
            stacklevel=3,
        )
        return fallback
    raise TypeError(
        f"parameters must be ParameterCombination or CalibrationResult, "
        f"got {type(parameters).__name__}"
    )


def _default_settings(parameters) -> ResolverSettings:
    return getattr(parameters, 'resolver_settings', None) or ResolverSettings()


def prepare_intensities(
    y: np.ndarray,
    parameters: ParameterCombination,
    settings: ResolverSettings,
) -> np.ndarray:
    """Working copy of y after smoothing and thresholding."""
    work = np.array(y, dtype=np.float64, copy=True)

    if settings.smoothing_sigma > 0:
        work = smooth_gaussian_1d(work, settings.smoothing_sigma)

    if settings.noise_factor is not None:
        threshold = estimate_threshold(
            work, settings.noise_window, settings.noise_factor, settings.noise_fraction
        )
        work = apply_threshold(work, threshold)

    if parameters.chrom_threshold > 0:
        work[work < parameters.chrom_threshold] = 0.0

    return work


def _to_intervals(x, y, starts, ends, apexes) -> List[PeakInterval]:
    return [
        PeakInterval(
            start=float(x[s]),
            end=float(x[e]),
            start_index=int(s),
            end_index=int(e),
            apex_index=int(a),
            apex_intensity=float(y[a]),
        )
        for s, e, a in zip(starts, ends, apexes)
    ]


def resolve_arrays(
    x: np.ndarray,
    y: np.ndarray,
    parameters: ParameterCombination,
    settings: ResolverSettings,
) -> List[PeakInterval]:
    """Resolve validated float64 arrays with an explicit combination."""
    work = prepare_intensities(y, parameters, settings)
    min_height = effective_min_height(work, parameters.min_height, settings.min_relative_height)

    starts, ends, apexes = find_peak_regions(
        x, work,
        float(parameters.search_width),
        float(parameters.min_ratio),
        float(min_height),
        int(parameters.min_data_points),
        bool(settings.confirm_local_minimum),
    )
    if settings.split_multi_maxima and starts.size > 0:
        starts, ends, apexes = split_multi_maxima(work, starts, ends)

    return _to_intervals(x, y, starts, ends, apexes)


def resolve_trace(
    trace_or_x: Union[Trace, np.ndarray],
    y: Optional[np.ndarray] = None,
    parameters=None,
    settings: Optional[ResolverSettings] = None,
) -> List[PeakInterval]:
    """Partition one trace into peak intervals.

    Parameters
    ----------
    trace_or_x : Trace or array-like
        A Trace, or the domain values when `y` is given
    y : array-like, optional
        Intensities (only with raw domain values)
    parameters : ParameterCombination or CalibrationResult
        Segmentation parameters. None raises UncalibratedStateError unless
        `settings.allow_uncalibrated_fallback` is set.
    settings : ResolverSettings, optional
        Behavioural switches. Defaults to the settings stored in a
        CalibrationResult, otherwise ResolverSettings()

    Returns
    -------
    intervals : list of PeakInterval
        Ordered by start, pairwise disjoint in sample indices. Empty when
        nothing qualifies.

    Raises
    ------
    InvalidInputError
        Empty, mismatched or otherwise invalid arrays
    UncalibratedStateError
        No parameters and no fallback allowed
    """
    if settings is None:
        settings = _default_settings(parameters)

    if isinstance(trace_or_x, Trace):
        if y is not None:
            raise TypeError("Pass either a Trace or (x, y), not both")
        trace = trace_or_x
    else:
        if y is None:
            raise TypeError("Intensities are required when passing raw domain values")
        trace = Trace(trace_or_x, y)

    combination = _resolve_parameters(parameters, trace.x, settings)
    return resolve_arrays(trace.x, trace.y, combination, settings)


def resolve_traces(
    traces: Iterable[Trace],
    parameters=None,
    settings: Optional[ResolverSettings] = None,
    n_workers: int = 4,
    cancel_event: Optional[threading.Event] = None,
    skip_invalid: bool = True,
) -> Dict[Hashable, List[PeakInterval]]:
    """Resolve many traces in parallel.

    Args:
        traces: Traces (or (x, y) pairs) to resolve
        parameters: Shared ParameterCombination or CalibrationResult
        settings: Resolver settings shared by all traces
        n_workers: Thread pool size (1 runs inline)
        cancel_event: Set to abort; checked before each trace
        skip_invalid: Log invalid traces and map them to [] instead of raising

    Returns:
        Dict keyed by feature_id (or position when a trace has none), in
        input order regardless of completion order.

    Raises:
        ResolutionCancelled: If cancel_event is set before the run completes
    """
    if settings is None:
        settings = _default_settings(parameters)
    if n_workers < 1:
        raise ValueError(f"n_workers must be >= 1, got {n_workers}")

    items = list(traces)
    keys = []
    for i, item in enumerate(items):
        key = getattr(item, 'feature_id', None)
        keys.append(i if key is None else key)
    if len(set(keys)) != len(keys):
        raise ValueError("feature_id values must be unique within a batch")

    # Parameter errors are not per-trace failures
    if parameters is None and not settings.allow_uncalibrated_fallback:
        raise UncalibratedStateError(
            "No parameter combination given. Run calibrate() first or pass "
            "ParameterCombination explicitly."
        )

    def work(item) -> List[PeakInterval]:
        if cancel_event is not None and cancel_event.is_set():
            raise ResolutionCancelled("Resolution cancelled")
        try:
            trace = item if isinstance(item, Trace) else Trace(*item)
        except InvalidInputError as e:
            if not skip_invalid:
                raise
            logger.warning(f"Skipping invalid trace: {e}")
            return []
        return resolve_trace(trace, parameters=parameters, settings=settings)

    results: Dict[Hashable, List[PeakInterval]] = {}
    if n_workers == 1:
        for key, item in zip(keys, items):
            results[key] = work(item)
    else:
        collected = [None] * len(items)
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            futures = {pool.submit(work, item): i for i, item in enumerate(items)}
            try:
                for fut in as_completed(futures):
                    collected[futures[fut]] = fut.result()
            except BaseException:
                for fut in futures:
                    fut.cancel()
                raise
        for key, value in zip(keys, collected):
            results[key] = value

    if cancel_event is not None and cancel_event.is_set():
        raise ResolutionCancelled("Resolution cancelled")

    n_peaks = sum(len(v) for v in results.values())
    logger.info(f"Resolved {len(items):,} traces into {n_peaks:,} peaks")
    return results
