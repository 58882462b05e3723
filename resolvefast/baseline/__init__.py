"""Baseline, noise threshold and smoothing utilities.

This module provides:
- Lowest-decile baseline estimation
- Robust median + k * MAD noise thresholds (global or sliding window)
- Gaussian pre-smoothing with automatic sigma selection
"""

from .threshold import (
    median_absolute_deviation,
    estimate_baseline,
    estimate_threshold,
    apply_threshold,
)

from .smoothing import (
    smooth_gaussian_1d,
    sigma_for_peak_width,
    auto_smooth_trace,
)

__all__ = [
    # Thresholds
    'median_absolute_deviation',
    'estimate_baseline',
    'estimate_threshold',
    'apply_threshold',

    # Smoothing
    'smooth_gaussian_1d',
    'sigma_for_peak_width',
    'auto_smooth_trace',
]
