"""Local-minimum segmentation of intensity traces.

A single left-to-right pass grows a region from the first non-zero sample
until it hits a zero, the end of the trace, or a local minimum at least
`search_width` away from the region start that lies `min_ratio` below the
running apex. Every finalized region goes through the shape validator;
accepted regions are expanded onto neighbouring zeros and recorded.

Scanning always resumes after the region end, so the pass terminates and no
two intervals share a sample.

Example
-------
>>> starts, ends, apexes = find_peak_regions(x, y, 0.05, 1.2, 1.0, 3, True)
"""

import numpy as np
from numba import njit

from .validation import adjust_start_and_end, check_peak_shape


@njit(nogil=True, cache=True)
def _is_local_minimum(x, y, idx, search_width):
    """True if no sample within +/- search_width of idx is lower than y[idx].

    Immediate neighbours are always compared, even when they lie further
    away than search_width.
    """
    n = y.size
    value = y[idx]
    if idx > 0 and y[idx - 1] < value:
        return False
    if idx < n - 1 and y[idx + 1] < value:
        return False

    j = idx - 2
    while j >= 0 and x[idx] - x[j] <= search_width:
        if y[j] < value:
            return False
        j -= 1

    j = idx + 2
    while j < n and x[j] - x[idx] <= search_width:
        if y[j] < value:
            return False
        j += 1

    return True


@njit(nogil=True, cache=True)
def find_peak_regions(
    x: np.ndarray,
    y: np.ndarray,
    search_width: float,
    min_ratio: float,
    min_height: float,
    min_data_points: int,
    confirm_local_minimum: bool,
):
    """Partition a trace into non-overlapping peak regions.

    Parameters
    ----------
    x : np.ndarray
        Strictly increasing domain values
    y : np.ndarray
        Working intensities (already thresholded)
    search_width : float
        Minimum domain distance from the region start before a local
        minimum can end the region
    min_ratio : float
        Minimum apex / edge intensity ratio
    min_height : float
        Minimum apex intensity
    min_data_points : int
        Minimum samples per region (before zero expansion)
    confirm_local_minimum : bool
        Require the boundary to be the lowest sample within +/- search_width

    Returns
    -------
    starts, ends, apexes : np.ndarray
        int64 index arrays, one entry per accepted region, ordered by start
    """
    n = y.size
    starts = np.empty(n, dtype=np.int64)
    ends = np.empty(n, dtype=np.int64)
    apexes = np.empty(n, dtype=np.int64)
    count = 0

    claimed = -1
    start = 0
    while start < n:
        if y[start] == 0.0:
            start += 1
            continue

        end = start
        top = y[start]
        top_idx = start
        while True:
            if y[end] > top:
                top = y[end]
                top_idx = end

            if end == n - 1 or y[end + 1] == 0.0:
                break

            if (end > start
                    and x[end] - x[start] >= search_width
                    and top >= y[end] * min_ratio):
                if not confirm_local_minimum or _is_local_minimum(x, y, end, search_width):
                    break

            end += 1

        if check_peak_shape(end - start + 1, top, y[start], y[end],
                            min_data_points, min_height, min_ratio):
            s, e = adjust_start_and_end(y, start, end, claimed)
            starts[count] = s
            ends[count] = e
            apexes[count] = top_idx
            count += 1
            claimed = e

        start = max(end + 1, claimed + 1)

    return starts[:count].copy(), ends[:count].copy(), apexes[:count].copy()
