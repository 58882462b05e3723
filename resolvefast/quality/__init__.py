"""Peak shape quality scoring.

This module provides:
- Shape sub-metrics (asymmetry, zigzag, Gaussian R^2, kurtosis, tailing)
- A weighted combined score used to rank peaks and parameter combinations
- Quality filtering of resolved intervals
"""

from .shape_metrics import (
    find_apex,
    asymmetry_score,
    zigzag_count,
    gaussian_fit_r2,
    pearson_kurtosis,
    kurtosis_score,
    tailing_factor,
    tailing_score,
    count_extra_maxima,
)

from .scoring import (
    QualityWeights,
    QualityScore,
    quality_components,
    peak_quality,
    score_peak,
    score_peaks,
    filter_by_quality,
)

__all__ = [
    # Sub-metrics
    'find_apex',
    'asymmetry_score',
    'zigzag_count',
    'gaussian_fit_r2',
    'pearson_kurtosis',
    'kurtosis_score',
    'tailing_factor',
    'tailing_score',
    'count_extra_maxima',

    # Combined score
    'QualityWeights',
    'QualityScore',
    'quality_components',
    'peak_quality',
    'score_peak',
    'score_peaks',
    'filter_by_quality',
]
