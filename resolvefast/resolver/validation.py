"""Shape validation and boundary adjustment for candidate peak regions."""

import numpy as np
from numba import njit


@njit(nogil=True, cache=True)
def check_peak_shape(
    n_points: int,
    apex: float,
    left_edge: float,
    right_edge: float,
    min_data_points: int,
    min_height: float,
    min_ratio: float,
) -> bool:
    """Accept a region if it is long, high and prominent enough.

    A zero edge gives an apex/edge ratio of +inf and always passes the ratio
    test.
    """
    if n_points < min_data_points:
        return False
    if apex < min_height:
        return False
    if left_edge > 0.0 and apex < left_edge * min_ratio:
        return False
    if right_edge > 0.0 and apex < right_edge * min_ratio:
        return False
    return True


@njit(nogil=True, cache=True)
def adjust_start_and_end(y: np.ndarray, start: int, end: int, claimed: int):
    """Extend a region by one sample onto exactly-zero neighbours.

    Args:
        y: Working intensities
        start, end: Inclusive region indices
        claimed: Last index owned by the previous interval (-1 if none)

    Returns:
        (start, end) after expansion
    """
    if start - 1 > claimed and y[start - 1] == 0.0:
        start -= 1
    if end + 1 < y.size and y[end + 1] == 0.0:
        end += 1
    return start, end


def effective_min_height(y: np.ndarray, min_height: float, min_relative_height: float) -> float:
    """Minimum apex height including the relative-height floor."""
    if min_relative_height <= 0.0 or y.size == 0:
        return float(min_height)
    return max(float(min_height), min_relative_height * float(np.max(y)))
