"""Gaussian pre-smoothing of intensity traces.

Light smoothing before segmentation suppresses single-scan spikes that would
otherwise end a region early. Smoothing always returns a new array.
"""

import numpy as np
from numba import njit


@njit(nogil=True, cache=True)
def _gaussian_kernel_1d(sigma: float, truncate: float = 3.0) -> np.ndarray:
    """Normalized Gaussian kernel truncated at `truncate` standard deviations."""
    radius = int(truncate * sigma + 0.5)
    offsets = np.arange(-radius, radius + 1).astype(np.float64)
    kernel = np.exp(-0.5 * (offsets / sigma) ** 2)
    return kernel / np.sum(kernel)


@njit(nogil=True, cache=True)
def smooth_gaussian_1d(
    intensities: np.ndarray,
    sigma: float,
    truncate: float = 3.0
) -> np.ndarray:
    """Apply Gaussian smoothing to a 1D array (numba-optimized).

    Args:
        intensities: Input intensity array
        sigma: Standard deviation of the kernel in samples
        truncate: Truncate kernel at this many standard deviations

    Returns:
        Smoothed float64 array of the same length. The kernel is renormalized
        at the trace edges, and exact zeros between peaks stay zero only if
        their whole neighbourhood is zero.
    """
    n = len(intensities)
    smoothed = np.empty(n, dtype=np.float64)
    if sigma <= 0.0:
        for i in range(n):
            smoothed[i] = intensities[i]
        return smoothed

    kernel = _gaussian_kernel_1d(sigma, truncate)
    radius = len(kernel) // 2

    for i in range(n):
        start_kernel = max(0, radius - i)
        end_kernel = min(len(kernel), radius + (n - i))
        start_data = max(0, i - radius)

        weight = 0.0
        acc = 0.0
        for k in range(start_kernel, end_kernel):
            w = kernel[k]
            weight += w
            acc += w * intensities[start_data + k - start_kernel]
        smoothed[i] = acc / weight

    return smoothed


def sigma_for_peak_width(
    x: np.ndarray,
    expected_peak_width: float,
    min_sigma: float = 0.5,
    max_sigma: float = 10.0,
) -> float:
    """Smoothing sigma in samples for an expected peak FWHM in domain units.

    For a Gaussian, FWHM = 2.355 * sigma. A third of the peak sigma smooths
    noise while keeping the peak shape.
    """
    if len(x) < 2:
        return min_sigma

    spacing = np.diff(x)
    median_spacing = float(np.median(spacing[spacing > 0]))

    sigma_peak = expected_peak_width / 2.355
    sigma_samples = (sigma_peak / 3.0) / median_spacing
    return max(min_sigma, min(max_sigma, sigma_samples))


def auto_smooth_trace(
    x: np.ndarray,
    y: np.ndarray,
    expected_peak_width: float,
) -> np.ndarray:
    """Smooth a trace with a sigma derived from its sampling density.

    Examples:
        >>> smoothed = auto_smooth_trace(rt, intensities, expected_peak_width=0.15)
    """
    sigma = sigma_for_peak_width(x, expected_peak_width)
    return smooth_gaussian_1d(np.asarray(y, dtype=np.float64), sigma)
