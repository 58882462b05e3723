"""Peak shape sub-metrics (numba-optimized).

Every metric works on the inclusive index range [start, end] of a trace so
the calibrator can score peaks in place without slicing.

Metrics
-------
- Asymmetry: apex against the mean of the two edges
- Zigzag: slope sign changes (noise)
- Gaussian R^2: quadratic fit of log(y), a Gaussian is a parabola in log space
- Pearson kurtosis: 3 for a normal shape
- Tailing factor: wider over narrower apex-to-edge width at a low height
- Extra maxima: significant local maxima besides the apex
"""

import numpy as np
from numba import njit

from ..constants import (
    DEFAULT_TAILING_FRACTION,
    GAUSSIAN_KURTOSIS,
    SIGNIFICANT_MAXIMUM_FRACTION,
    SINGULAR_PIVOT,
    ZIGZAG_SLOPE_EPSILON,
)


@njit(nogil=True, cache=True)
def find_apex(y, start, end):
    """Index of the first maximum in [start, end]."""
    apex_idx = start
    for i in range(start + 1, end + 1):
        if y[i] > y[apex_idx]:
            apex_idx = i
    return apex_idx


@njit(nogil=True, cache=True)
def asymmetry_score(y, start, end):
    """2 - |apex / mean_edge - 1|; a zero mean edge counts as ratio 1."""
    apex = y[find_apex(y, start, end)]
    mean_edge = 0.5 * (y[start] + y[end])
    ratio = apex / mean_edge if mean_edge > 0.0 else 1.0
    return 2.0 - abs(ratio - 1.0)


@njit(nogil=True, cache=True)
def zigzag_count(y, start, end):
    """Number of slope sign changes.

    Near-flat slopes (|slope| <= 1e-7) do not replace the previous slope.
    """
    count = 0
    prev_slope = 0.0
    for i in range(start + 1, end + 1):
        slope = y[i] - y[i - 1]
        if prev_slope != 0.0 and slope * prev_slope < 0.0:
            count += 1
        if abs(slope) > ZIGZAG_SLOPE_EPSILON:
            prev_slope = slope
    return count


@njit(nogil=True, cache=True)
def _solve_3x3(a, b):
    """Gaussian elimination with partial pivoting on a 3x3 system.

    Returns (solution, ok). `a` and `b` are modified in place.
    """
    sol = np.zeros(3, dtype=np.float64)
    for col in range(3):
        pivot = col
        for r in range(col + 1, 3):
            if abs(a[r, col]) > abs(a[pivot, col]):
                pivot = r
        if abs(a[pivot, col]) < SINGULAR_PIVOT:
            return sol, False
        if pivot != col:
            for c in range(3):
                tmp = a[col, c]
                a[col, c] = a[pivot, c]
                a[pivot, c] = tmp
            tmp = b[col]
            b[col] = b[pivot]
            b[pivot] = tmp
        for r in range(col + 1, 3):
            f = a[r, col] / a[col, col]
            for c in range(col, 3):
                a[r, c] -= f * a[col, c]
            b[r] -= f * b[col]

    for r in range(2, -1, -1):
        acc = b[r]
        for c in range(r + 1, 3):
            acc -= a[r, c] * sol[c]
        sol[r] = acc / a[r, r]
    return sol, True


@njit(nogil=True, cache=True)
def gaussian_fit_r2(x, y, start, end):
    """R^2 of a least-squares quadratic fit to log(y) over positive samples.

    x is centred and scaled before fitting; R^2 does not depend on that
    transform but the normal equations stay well conditioned.

    Returns:
        R^2 clamped to [0, 1]. 0 for fewer than 3 positive samples, a
        constant log-intensity or a singular system.
    """
    n_pos = 0
    x_mean = 0.0
    for i in range(start, end + 1):
        if y[i] > 0.0:
            n_pos += 1
            x_mean += x[i]
    if n_pos < 3:
        return 0.0
    x_mean /= n_pos

    scale = 0.0
    for i in range(start, end + 1):
        if y[i] > 0.0 and abs(x[i] - x_mean) > scale:
            scale = abs(x[i] - x_mean)
    if scale == 0.0:
        return 0.0

    u = np.empty(n_pos, dtype=np.float64)
    v = np.empty(n_pos, dtype=np.float64)
    k = 0
    for i in range(start, end + 1):
        if y[i] > 0.0:
            u[k] = (x[i] - x_mean) / scale
            v[k] = np.log(y[i])
            k += 1

    # Normal equations (X^T X) c = X^T v for columns [1, u, u^2]
    xtx = np.zeros((3, 3), dtype=np.float64)
    xtv = np.zeros(3, dtype=np.float64)
    row = np.empty(3, dtype=np.float64)
    for i in range(n_pos):
        row[0] = 1.0
        row[1] = u[i]
        row[2] = u[i] * u[i]
        for r in range(3):
            xtv[r] += row[r] * v[i]
            for c in range(3):
                xtx[r, c] += row[r] * row[c]

    coeff, ok = _solve_3x3(xtx, xtv)
    if not ok:
        return 0.0

    v_mean = 0.0
    for i in range(n_pos):
        v_mean += v[i]
    v_mean /= n_pos

    ss_res = 0.0
    ss_tot = 0.0
    for i in range(n_pos):
        pred = coeff[0] + coeff[1] * u[i] + coeff[2] * u[i] * u[i]
        ss_res += (v[i] - pred) ** 2
        ss_tot += (v[i] - v_mean) ** 2
    if ss_tot < 1e-12:
        return 0.0

    r2 = 1.0 - ss_res / ss_tot
    return min(1.0, max(0.0, r2))


@njit(nogil=True, cache=True)
def pearson_kurtosis(y, start, end):
    """Pearson kurtosis of the intensities (normal = 3).

    Variance uses n - 1, the fourth moment uses n. Fewer than 4 samples or a
    near-constant range returns 3.
    """
    n = end - start + 1
    if n < 4:
        return GAUSSIAN_KURTOSIS

    mean = 0.0
    for i in range(start, end + 1):
        mean += y[i]
    mean /= n

    s2 = 0.0
    s4 = 0.0
    for i in range(start, end + 1):
        d2 = (y[i] - mean) ** 2
        s2 += d2
        s4 += d2 * d2

    var = s2 / (n - 1)
    if var < 1e-12:
        return GAUSSIAN_KURTOSIS
    return (s4 / n) / (var * var)


@njit(nogil=True, cache=True)
def kurtosis_score(kurtosis):
    return max(0.0, 2.0 - abs(kurtosis - GAUSSIAN_KURTOSIS) / 3.0)


@njit(nogil=True, cache=True)
def tailing_factor(x, y, start, end, fraction=DEFAULT_TAILING_FRACTION):
    """Wider over narrower apex-to-edge width at `fraction` of the apex.

    Each side is walked from the apex while intensities stay at or above the
    level. Returns 1 for a zero apex or a zero-width side.
    """
    apex_idx = find_apex(y, start, end)
    apex = y[apex_idx]
    if apex < 1e-12:
        return 1.0
    level = fraction * apex

    left = apex_idx
    for i in range(apex_idx, start - 1, -1):
        if y[i] < level:
            break
        left = i

    right = apex_idx
    for i in range(apex_idx, end + 1):
        if y[i] < level:
            break
        right = i

    left_width = x[apex_idx] - x[left]
    right_width = x[right] - x[apex_idx]
    smaller = min(left_width, right_width)
    if smaller < 1e-12:
        return 1.0
    return max(left_width, right_width) / smaller


@njit(nogil=True, cache=True)
def tailing_score(tf):
    return max(0.0, 2.0 - abs(tf - 1.0))


@njit(nogil=True, cache=True)
def count_extra_maxima(y, start, end, fraction=SIGNIFICANT_MAXIMUM_FRACTION):
    """Strict local maxima >= fraction * apex, excluding the apex itself."""
    apex_idx = find_apex(y, start, end)
    level = fraction * y[apex_idx]
    count = 0
    for i in range(start + 1, end):
        if i != apex_idx and y[i] > y[i - 1] and y[i] > y[i + 1] and y[i] >= level:
            count += 1
    return count
