"""Splitting of regions that hold more than one significant maximum.

A strict local maximum strictly inside a region counts as significant when it
reaches SIGNIFICANT_MAXIMUM_FRACTION of the region apex. A region with two or
more of them is cut at the lowest sample between each consecutive pair; the
minimum stays with the left part. The resulting sub-intervals tile the
original region exactly.
"""

import numpy as np
from numba import njit

from ..constants import SIGNIFICANT_MAXIMUM_FRACTION


@njit(nogil=True, cache=True)
def find_significant_maxima(y, start, end, fraction=SIGNIFICANT_MAXIMUM_FRACTION):
    """Indices of strict local maxima in (start, end) at or above fraction * apex."""
    apex = 0.0
    for i in range(start, end + 1):
        if y[i] > apex:
            apex = y[i]

    out = np.empty(max(0, end - start), dtype=np.int64)
    count = 0
    for i in range(start + 1, end):
        if y[i] > y[i - 1] and y[i] > y[i + 1] and y[i] >= fraction * apex:
            out[count] = i
            count += 1
    return out[:count]


@njit(nogil=True, cache=True)
def _argmax(y, start, end):
    best = start
    for i in range(start + 1, end + 1):
        if y[i] > y[best]:
            best = i
    return best


@njit(nogil=True, cache=True)
def split_region(y, start, end):
    """Cut one region at the minima between its significant maxima.

    Returns
    -------
    starts, ends : np.ndarray
        Inclusive sub-interval bounds; a single (start, end) pair when the
        region holds fewer than two significant maxima.
    """
    maxima = find_significant_maxima(y, start, end)
    n_parts = max(1, maxima.size)
    starts = np.empty(n_parts, dtype=np.int64)
    ends = np.empty(n_parts, dtype=np.int64)

    if maxima.size < 2:
        starts[0] = start
        ends[0] = end
        return starts, ends

    current = start
    for m in range(maxima.size - 1):
        # Lowest sample strictly between the two maxima, earliest on ties
        cut = maxima[m] + 1
        for i in range(maxima[m] + 2, maxima[m + 1]):
            if y[i] < y[cut]:
                cut = i
        starts[m] = current
        ends[m] = cut
        current = cut + 1

    starts[n_parts - 1] = current
    ends[n_parts - 1] = end
    return starts, ends


@njit(nogil=True, cache=True)
def split_multi_maxima(y, starts, ends):
    """Apply split_region to every region.

    Returns
    -------
    starts, ends, apexes : np.ndarray
        Sub-interval bounds in order, with the apex index of each part
    """
    total = 0
    for r in range(starts.size):
        total += ends[r] - starts[r] + 1

    out_starts = np.empty(total, dtype=np.int64)
    out_ends = np.empty(total, dtype=np.int64)
    out_apexes = np.empty(total, dtype=np.int64)
    count = 0
    for r in range(starts.size):
        sub_starts, sub_ends = split_region(y, starts[r], ends[r])
        for k in range(sub_starts.size):
            out_starts[count] = sub_starts[k]
            out_ends[count] = sub_ends[k]
            out_apexes[count] = _argmax(y, sub_starts[k], sub_ends[k])
            count += 1

    return out_starts[:count].copy(), out_ends[:count].copy(), out_apexes[:count].copy()
