"""Core value types: traces, peak intervals, parameter sets and resolver settings.

All containers are dataclasses. Traces hold NumPy float64 arrays so they can be
handed to Numba kernels without conversion; everything else is a small value
object that is safe to share between threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional

import numpy as np

from .constants import (
    BASELINE_FRACTION,
    DEFAULT_MIN_DATA_POINTS,
    DEFAULT_MIN_HEIGHT,
    DEFAULT_MIN_RATIO,
    DEFAULT_SEARCH_WIDTH,
    FALLBACK_MIN_HEIGHT,
    FALLBACK_SEARCH_FRACTION,
)
from .exceptions import InvalidInputError


def validate_arrays(x, y) -> tuple[np.ndarray, np.ndarray]:
    """Convert (x, y) to contiguous float64 arrays and check trace invariants.

    Parameters
    ----------
    x : array-like
        Domain values (retention time or mobility), strictly increasing
    y : array-like
        Intensities, non-negative, same length as x

    Returns
    -------
    x, y : np.ndarray
        float64 arrays (no copy when the input already is float64)

    Raises
    ------
    InvalidInputError
        Empty, mismatched, multi-dimensional, non-finite, negative or
        non-monotonic input.
    """
    x_arr = np.ascontiguousarray(x, dtype=np.float64)
    y_arr = np.ascontiguousarray(y, dtype=np.float64)

    if x_arr.ndim != 1 or y_arr.ndim != 1:
        raise InvalidInputError(
            f"Trace arrays must be 1-D, got shapes {x_arr.shape} and {y_arr.shape}"
        )
    if x_arr.size == 0:
        raise InvalidInputError("Trace is empty")
    if x_arr.size != y_arr.size:
        raise InvalidInputError(
            f"Length mismatch: {x_arr.size} domain values vs {y_arr.size} intensities"
        )
    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        raise InvalidInputError("Trace contains NaN or infinite values")
    if np.any(y_arr < 0.0):
        raise InvalidInputError("Intensities must be non-negative")
    if x_arr.size > 1 and np.any(np.diff(x_arr) <= 0.0):
        raise InvalidInputError("Domain values must be strictly increasing")

    return x_arr, y_arr


@dataclass
class Trace:
    """One chromatogram or mobilogram.

    The arrays are validated on construction. They may alias the caller's
    arrays, resolvefast never writes to them.
    """

    x: np.ndarray
    y: np.ndarray
    feature_id: Optional[Hashable] = None

    def __post_init__(self):
        self.x, self.y = validate_arrays(self.x, self.y)

    def __len__(self) -> int:
        return int(self.x.size)

    @property
    def span(self) -> float:
        """Domain width covered by the trace."""
        return float(self.x[-1] - self.x[0])


@dataclass(frozen=True)
class PeakInterval:
    """Closed interval [start, end] over the trace domain.

    The index fields refer to the trace the interval was resolved from and are
    what a feature builder needs to slice the parent data points.
    """

    start: float
    end: float
    start_index: int
    end_index: int
    apex_index: int
    apex_intensity: float

    @property
    def n_points(self) -> int:
        return self.end_index - self.start_index + 1

    @property
    def width(self) -> float:
        return self.end - self.start

    def contains(self, value: float) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class ParameterCombination:
    """One full set of tunable segmentation parameters.

    Attributes
    ----------
    chrom_threshold : float
        Samples below this intensity are zeroed before segmentation
    search_width : float
        Domain distance scanned before a local minimum may end a region
    min_ratio : float
        Minimum apex / edge intensity ratio
    min_height : float
        Minimum apex intensity
    min_data_points : int
        Minimum number of samples in a peak
    """

    chrom_threshold: float = 0.0
    search_width: float = DEFAULT_SEARCH_WIDTH
    min_ratio: float = DEFAULT_MIN_RATIO
    min_height: float = DEFAULT_MIN_HEIGHT
    min_data_points: int = DEFAULT_MIN_DATA_POINTS

    def __post_init__(self):
        if self.chrom_threshold < 0:
            raise ValueError(f"chrom_threshold must be >= 0, got {self.chrom_threshold}")
        if self.search_width < 0:
            raise ValueError(f"search_width must be >= 0, got {self.search_width}")
        if self.min_ratio <= 0:
            raise ValueError(f"min_ratio must be > 0, got {self.min_ratio}")
        if self.min_height < 0:
            raise ValueError(f"min_height must be >= 0, got {self.min_height}")
        if self.min_data_points < 1:
            raise ValueError(f"min_data_points must be >= 1, got {self.min_data_points}")

    @classmethod
    def fallback_for(cls, x: np.ndarray) -> 'ParameterCombination':
        """Conservative combination for traces resolved without calibration.

        Args:
            x: Domain values of the trace

        Returns:
            ParameterCombination with a search width of 10% of the trace span
        """
        span = float(x[-1] - x[0]) if len(x) > 1 else 0.0
        return cls(
            chrom_threshold=0.0,
            search_width=span * FALLBACK_SEARCH_FRACTION,
            min_ratio=DEFAULT_MIN_RATIO,
            min_height=FALLBACK_MIN_HEIGHT,
            min_data_points=DEFAULT_MIN_DATA_POINTS,
        )


@dataclass(frozen=True)
class ResolverSettings:
    """Behavioural switches of the resolver that are not calibrated.

    Presets cover the three resolver flavours: the auto resolver (default), the
    classic local-minimum resolver and the globally calibrated resolver.
    """

    # Require the boundary sample to be minimal within +/- search_width
    confirm_local_minimum: bool = True

    # Split regions holding several maxima >= 50% of the apex
    split_multi_maxima: bool = True

    # Effective min height = max(min_height, min_relative_height * max(y))
    min_relative_height: float = 0.0

    # Noise threshold = median + noise_factor * MAD (None disables it)
    noise_factor: Optional[float] = None

    # Sliding window in samples for local noise thresholds (None = global)
    noise_window: Optional[int] = None

    # Share of sorted intensities behind the global threshold (1.0 = whole trace)
    noise_fraction: float = BASELINE_FRACTION

    # Gaussian pre-smoothing sigma in samples (0 disables it)
    smoothing_sigma: float = 0.0

    # Use ParameterCombination.fallback_for() instead of raising when uncalibrated
    allow_uncalibrated_fallback: bool = False

    def __post_init__(self):
        if not 0.0 <= self.min_relative_height <= 1.0:
            raise ValueError(
                f"min_relative_height must be within [0, 1], got {self.min_relative_height}"
            )
        if self.noise_factor is not None and self.noise_factor < 0:
            raise ValueError(f"noise_factor must be >= 0, got {self.noise_factor}")
        if self.noise_window is not None and self.noise_window < 1:
            raise ValueError(f"noise_window must be >= 1, got {self.noise_window}")
        if not 0.0 < self.noise_fraction <= 1.0:
            raise ValueError(f"noise_fraction must be within (0, 1], got {self.noise_fraction}")
        if self.smoothing_sigma < 0:
            raise ValueError(f"smoothing_sigma must be >= 0, got {self.smoothing_sigma}")

    @classmethod
    def auto(cls) -> 'ResolverSettings':
        """Auto-calibrating resolver with multi-maxima splitting."""
        return cls()

    @classmethod
    def classic(cls, min_relative_height: float = 0.0) -> 'ResolverSettings':
        """Classic local-minimum resolver.

        Samples below median + 2 * MAD of the whole trace are dropped before
        segmentation.
        """
        return cls(
            confirm_local_minimum=True,
            split_multi_maxima=False,
            min_relative_height=min_relative_height,
            noise_factor=2.0,
            noise_fraction=1.0,
        )

    @classmethod
    def global_auto(cls) -> 'ResolverSettings':
        """Globally calibrated resolver, one feature per local-minimum region."""
        return cls(split_multi_maxima=False)

