"""Combined peak quality score.

total = w_asym * asymmetry + w_r2 * R^2 + w_kurt * kurtosis_score
        + w_tail * tailing_score - zigzag_penalty - maxima_penalty

The score has no absolute scale. It is only meaningful for ranking peaks (and
parameter combinations) against each other.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from numba import njit

from ..constants import (
    DEFAULT_ASYMMETRY_WEIGHT,
    DEFAULT_KURTOSIS_WEIGHT,
    DEFAULT_R2_WEIGHT,
    DEFAULT_TAILING_FRACTION,
    DEFAULT_TAILING_WEIGHT,
    EXTRA_MAXIMUM_PENALTY,
    ZIGZAG_PENALTY,
)
from ..types import PeakInterval, Trace
from .shape_metrics import (
    asymmetry_score,
    count_extra_maxima,
    gaussian_fit_r2,
    kurtosis_score,
    pearson_kurtosis,
    tailing_factor,
    tailing_score,
    zigzag_count,
)


@dataclass
class QualityWeights:
    """Weights and penalties of the combined quality score."""

    asymmetry: float = DEFAULT_ASYMMETRY_WEIGHT
    gaussian_r2: float = DEFAULT_R2_WEIGHT
    kurtosis: float = DEFAULT_KURTOSIS_WEIGHT
    tailing: float = DEFAULT_TAILING_WEIGHT
    zigzag_penalty: float = ZIGZAG_PENALTY
    maxima_penalty: float = EXTRA_MAXIMUM_PENALTY
    tailing_fraction: float = DEFAULT_TAILING_FRACTION

    def __post_init__(self):
        for name in ('asymmetry', 'gaussian_r2', 'kurtosis', 'tailing',
                     'zigzag_penalty', 'maxima_penalty'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0.0 < self.tailing_fraction < 1.0:
            raise ValueError(
                f"tailing_fraction must be within (0, 1), got {self.tailing_fraction}"
            )

    def as_array(self) -> np.ndarray:
        """Pack into the layout expected by the Numba kernels."""
        return np.array([
            self.asymmetry, self.gaussian_r2, self.kurtosis, self.tailing,
            self.zigzag_penalty, self.maxima_penalty, self.tailing_fraction,
        ], dtype=np.float64)


@dataclass(frozen=True)
class QualityScore:
    """Sub-metrics and total of one scored peak."""

    asymmetry: float
    zigzag_penalty: float
    gaussian_r2: float
    kurtosis: float
    kurtosis_score: float
    tailing_factor: float
    tailing_score: float
    extra_maxima: int
    maxima_penalty: float
    total: float


@njit(nogil=True, cache=True)
def quality_components(x, y, start, end, weights):
    """All sub-metrics plus total for [start, end] as a float64 array.

    Layout: asymmetry, zigzag penalty, R^2, kurtosis, kurtosis score,
    tailing factor, tailing score, extra maxima, maxima penalty, total.
    A single-sample range scores a total of 0.
    """
    out = np.empty(10, dtype=np.float64)
    asym = asymmetry_score(y, start, end)
    zig = zigzag_count(y, start, end) * weights[4]
    r2 = gaussian_fit_r2(x, y, start, end)
    kurt = pearson_kurtosis(y, start, end)
    k_score = kurtosis_score(kurt)
    tf = tailing_factor(x, y, start, end, weights[6])
    t_score = tailing_score(tf)
    extra = count_extra_maxima(y, start, end)
    max_pen = extra * weights[5]

    out[0] = asym
    out[1] = zig
    out[2] = r2
    out[3] = kurt
    out[4] = k_score
    out[5] = tf
    out[6] = t_score
    out[7] = extra
    out[8] = max_pen
    if end <= start:
        out[9] = 0.0
    else:
        out[9] = (weights[0] * asym + weights[1] * r2 + weights[2] * k_score
                  + weights[3] * t_score - zig - max_pen)
    return out


@njit(nogil=True, cache=True)
def peak_quality(x, y, start, end, weights):
    """Total quality score of [start, end]."""
    return quality_components(x, y, start, end, weights)[9]


def score_peak(
    trace: Trace,
    interval: PeakInterval,
    weights: Optional[QualityWeights] = None,
) -> QualityScore:
    """Score one resolved interval of a trace.

    Args:
        trace: Trace the interval was resolved from
        interval: Interval to score (its indices are used)
        weights: Score weights, defaults to QualityWeights()

    Returns:
        QualityScore with every sub-metric
    """
    if weights is None:
        weights = QualityWeights()
    c = quality_components(trace.x, trace.y, interval.start_index,
                           interval.end_index, weights.as_array())
    return QualityScore(
        asymmetry=float(c[0]),
        zigzag_penalty=float(c[1]),
        gaussian_r2=float(c[2]),
        kurtosis=float(c[3]),
        kurtosis_score=float(c[4]),
        tailing_factor=float(c[5]),
        tailing_score=float(c[6]),
        extra_maxima=int(c[7]),
        maxima_penalty=float(c[8]),
        total=float(c[9]),
    )


def score_peaks(
    trace: Trace,
    intervals: List[PeakInterval],
    weights: Optional[QualityWeights] = None,
) -> np.ndarray:
    """Total quality scores for a list of intervals of one trace."""
    if weights is None:
        weights = QualityWeights()
    w = weights.as_array()
    scores = np.zeros(len(intervals), dtype=np.float64)
    for i, interval in enumerate(intervals):
        scores[i] = peak_quality(trace.x, trace.y, interval.start_index,
                                 interval.end_index, w)
    return scores


def filter_by_quality(
    intervals: List[PeakInterval],
    quality_scores: np.ndarray,
    min_quality: float,
) -> List[PeakInterval]:
    """Keep intervals whose quality score reaches min_quality.

    Args:
        intervals: Resolved intervals
        quality_scores: Array of total scores, aligned with intervals
        min_quality: Minimum total score

    Returns:
        Filtered list, order preserved
    """
    quality_scores = np.asarray(quality_scores, dtype=np.float64)
    if quality_scores.size != len(intervals):
        raise ValueError(
            f"Got {quality_scores.size} scores for {len(intervals)} intervals"
        )
    mask = quality_scores >= min_quality
    return [intervals[i] for i in range(len(intervals)) if mask[i]]
