"""Grid-search auto-calibration of segmentation parameters.

Every candidate ParameterCombination is run over every calibration trace:
threshold, segment, optionally split, then score each peak's shape. A trace
scores the mean peak quality plus `count_bonus` per peak; the combination
score is the mean over traces that produced at least one peak. The best
combination (earliest in grid order on ties) is returned as an immutable
CalibrationResult that callers pass to resolve_trace explicitly.

Traces are packed into flat arrays with start/length offsets so that one
Numba call evaluates a combination across all traces without Python
overhead. Combinations are evaluated in chunks on a thread pool.

Example
-------
>>> from resolvefast.calibration import calibrate
>>> result = calibrate(traces)
>>> intervals = resolve_trace(traces[0], parameters=result)
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from numba import njit

from ..constants import MIN_CALIBRATION_POINTS, NO_PEAKS_SCORE
from ..exceptions import CalibrationError, ResolutionCancelled
from ..quality.scoring import peak_quality
from ..resolver.engine import prepare_intensities, resolve_arrays
from ..resolver.segmentation import find_peak_regions
from ..resolver.splitting import split_multi_maxima
from ..types import ParameterCombination, PeakInterval, ResolverSettings, Trace
from .grid import CalibrationSettings, generate_parameter_grid, grid_anchors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of a calibration run.

    Attributes
    ----------
    parameters : ParameterCombination
        Best combination
    score : float
        Its mean trace score
    n_combinations : int
        Combinations evaluated
    n_traces : int
        Traces with at least MIN_CALIBRATION_POINTS samples
    n_peaks : int
        Peaks found by the best combination over all traces
    baseline, span : float
        Grid anchors
    resolver_settings : ResolverSettings
        Settings the combination was calibrated under; resolve_trace uses them
        when given this result without explicit settings
    """

    parameters: ParameterCombination
    score: float
    n_combinations: int
    n_traces: int
    n_peaks: int
    baseline: float
    span: float
    resolver_settings: ResolverSettings


# ========== Flat storage ==========

def pack_traces(traces: Sequence[Trace]) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Concatenate traces into (x_flat, y_flat, trace_starts, trace_lengths)."""
    lengths = np.array([len(t) for t in traces], dtype=np.int64)
    starts = np.zeros(len(traces), dtype=np.int64)
    if len(traces) > 1:
        starts[1:] = np.cumsum(lengths)[:-1]
    x_flat = np.concatenate([t.x for t in traces]).astype(np.float64)
    y_flat = np.concatenate([t.y for t in traces]).astype(np.float64)
    return x_flat, y_flat, starts, lengths


@njit(nogil=True, cache=True)
def evaluate_combination(
    x_flat, y_flat, trace_starts, trace_lengths,
    chrom_threshold, search_width, min_ratio, min_height, min_data_points,
    min_relative_height, confirm_local_minimum, split, count_bonus, weights,
):
    """Score one combination over all packed traces.

    Returns
    -------
    score_sum : float
        Sum of trace scores over traces with peaks
    n_scored : int
        Number of such traces
    n_peaks : int
        Total peaks found
    """
    score_sum = 0.0
    n_scored = 0
    n_peaks = 0
    for t in range(trace_starts.size):
        n = trace_lengths[t]
        if n < MIN_CALIBRATION_POINTS:
            continue
        lo = trace_starts[t]
        x = x_flat[lo:lo + n]
        y = y_flat[lo:lo + n].copy()

        top = 0.0
        for i in range(n):
            if y[i] < chrom_threshold:
                y[i] = 0.0
            if y[i] > top:
                top = y[i]
        height = max(min_height, min_relative_height * top)

        starts, ends, apexes = find_peak_regions(
            x, y, search_width, min_ratio, height, min_data_points, confirm_local_minimum
        )
        if split and starts.size > 0:
            starts, ends, apexes = split_multi_maxima(y, starts, ends)
        if starts.size == 0:
            continue

        quality = 0.0
        for p in range(starts.size):
            quality += peak_quality(x, y, starts[p], ends[p], weights)
        score_sum += quality / starts.size + count_bonus * starts.size
        n_scored += 1
        n_peaks += starts.size

    return score_sum, n_scored, n_peaks


# ========== Calibration ==========

def _as_traces(traces: Iterable) -> List[Trace]:
    return [t if isinstance(t, Trace) else Trace(*t) for t in traces]


def _chunks(n: int, n_chunks: int) -> List[range]:
    bounds = np.linspace(0, n, n_chunks + 1).astype(np.int64)
    return [range(bounds[i], bounds[i + 1]) for i in range(n_chunks) if bounds[i] < bounds[i + 1]]


def calibrate(
    traces: Iterable,
    settings: Optional[CalibrationSettings] = None,
    resolver_settings: Optional[ResolverSettings] = None,
    cancel_event: Optional[threading.Event] = None,
    combinations: Optional[Sequence[ParameterCombination]] = None,
) -> CalibrationResult:
    """Pick the parameter combination with the best shape-quality score.

    Parameters
    ----------
    traces : iterable of Trace or (x, y)
        Calibration traces
    settings : CalibrationSettings, optional
        Grid and search options, defaults to the global search grid
    resolver_settings : ResolverSettings, optional
        Settings used during evaluation and stored in the result; defaults to
        ResolverSettings.global_auto() (no multi-maxima splitting)
    cancel_event : threading.Event, optional
        Set to abort; checked between combinations
    combinations : sequence of ParameterCombination, optional
        Explicit candidates instead of the generated grid

    Returns
    -------
    result : CalibrationResult

    Raises
    ------
    CalibrationError
        No trace has at least 3 samples, or no combination finds a peak
    ResolutionCancelled
        cancel_event was set
    """
    if settings is None:
        settings = CalibrationSettings()
    if resolver_settings is None:
        resolver_settings = ResolverSettings.global_auto()

    trace_list = _as_traces(traces)
    usable = [t for t in trace_list if len(t) >= MIN_CALIBRATION_POINTS]
    if not usable:
        raise CalibrationError(
            f"No calibration trace has at least {MIN_CALIBRATION_POINTS} samples"
        )

    anchors = grid_anchors(usable)
    if combinations is None:
        combos = generate_parameter_grid(usable, settings, anchors)
    else:
        combos = list(combinations)
        if not combos:
            raise CalibrationError("No parameter combinations to evaluate")

    # Combination-independent preprocessing (smoothing, noise threshold)
    neutral = ParameterCombination(chrom_threshold=0.0)
    prepared = [
        Trace(t.x, prepare_intensities(t.y, neutral, resolver_settings), t.feature_id)
        for t in usable
    ]
    x_flat, y_flat, trace_starts, trace_lengths = pack_traces(prepared)
    weights = settings.weights.as_array()

    n = len(combos)
    score_sums = np.zeros(n, dtype=np.float64)
    n_scored = np.zeros(n, dtype=np.int64)
    n_peaks = np.zeros(n, dtype=np.int64)

    # Stops the remaining chunks once one of them has failed
    abort = threading.Event()

    def work(indices: range) -> None:
        for i in indices:
            if abort.is_set():
                return
            if cancel_event is not None and cancel_event.is_set():
                raise ResolutionCancelled("Calibration cancelled")
            pc = combos[i]
            s, c, p = evaluate_combination(
                x_flat, y_flat, trace_starts, trace_lengths,
                float(pc.chrom_threshold), float(pc.search_width),
                float(pc.min_ratio), float(pc.min_height), int(pc.min_data_points),
                float(resolver_settings.min_relative_height),
                bool(resolver_settings.confirm_local_minimum),
                bool(resolver_settings.split_multi_maxima),
                float(settings.count_bonus), weights,
            )
            # Each index is written by exactly one chunk
            score_sums[i] = s
            n_scored[i] = c
            n_peaks[i] = p
            if c > 0:
                logger.debug(f"Combo {pc}: score={s / c:.3f}, traces={c}, peaks={p}")
            else:
                logger.debug(f"Combo {pc}: no peaks")

    t0 = time.time()
    logger.info(
        f"Calibrating on {len(usable):,} traces with {n:,} parameter combinations"
    )
    if settings.n_workers == 1 or n == 1:
        work(range(n))
    else:
        with ThreadPoolExecutor(max_workers=settings.n_workers) as pool:
            futures = [pool.submit(work, r) for r in _chunks(n, settings.n_workers * 4)]
            try:
                for fut in as_completed(futures):
                    fut.result()
            except BaseException:
                abort.set()
                for fut in futures:
                    fut.cancel()
                raise

    if cancel_event is not None and cancel_event.is_set():
        raise ResolutionCancelled("Calibration cancelled")

    scores = np.full(n, NO_PEAKS_SCORE, dtype=np.float64)
    has_peaks = n_scored > 0
    scores[has_peaks] = score_sums[has_peaks] / n_scored[has_peaks]

    if not np.any(has_peaks):
        raise CalibrationError(
            f"None of the {n:,} parameter combinations found a peak"
        )

    # np.argmax returns the first maximum, i.e. the earliest grid position
    best = int(np.argmax(scores))
    elapsed = time.time() - t0
    logger.info(
        f"Best combination: {combos[best]} (score={scores[best]:.3f}, "
        f"peaks={int(n_peaks[best]):,}, {elapsed:.2f}s)"
    )

    return CalibrationResult(
        parameters=combos[best],
        score=float(scores[best]),
        n_combinations=n,
        n_traces=len(usable),
        n_peaks=int(n_peaks[best]),
        baseline=float(anchors[0]),
        span=float(anchors[1]),
        resolver_settings=resolver_settings,
    )


def resolve_auto(
    trace_or_x,
    y: Optional[np.ndarray] = None,
    settings: Optional[CalibrationSettings] = None,
    resolver_settings: Optional[ResolverSettings] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[PeakInterval]:
    """Calibrate on a single trace, then resolve it with the best combination.

    Uses the per-trace grid and multi-maxima splitting by default. A trace in
    which no combination finds a peak resolves to an empty list.
    """
    trace = trace_or_x if isinstance(trace_or_x, Trace) else Trace(trace_or_x, y)
    if settings is None:
        settings = CalibrationSettings.per_trace(n_workers=1)
    if resolver_settings is None:
        resolver_settings = ResolverSettings.auto()

    try:
        result = calibrate([trace], settings, resolver_settings, cancel_event)
    except CalibrationError as e:
        logger.debug(f"No usable calibration for trace {trace.feature_id}: {e}")
        return []

    return resolve_arrays(trace.x, trace.y, result.parameters, resolver_settings)
