"""Unit tests for baseline and noise-threshold estimation."""

import numpy as np
import pytest

from resolvefast.baseline.threshold import (
    apply_threshold,
    estimate_baseline,
    estimate_threshold,
    median_absolute_deviation,
)
from resolvefast.exceptions import InvalidInputError


class TestBaseline:
    """Test lowest-decile baseline estimation."""

    def test_lowest_decile_median(self):
        y = np.arange(100, dtype=np.float64)
        np.random.shuffle(y)
        # Lowest 10 values are 0..9
        assert estimate_baseline(y) == pytest.approx(4.5)

    def test_short_trace_uses_minimum(self):
        """n * 0.1 < 1 falls back to a single-value slice."""
        y = np.array([7.0, 3.0, 9.0, 5.0, 4.0])
        assert estimate_baseline(y) == pytest.approx(3.0)

    def test_list_of_traces_is_merged(self):
        traces = [np.arange(50, dtype=np.float64), np.arange(50, 100, dtype=np.float64)]
        assert estimate_baseline(traces) == pytest.approx(4.5)

    def test_input_not_modified(self):
        y = np.array([5.0, 1.0, 3.0, 2.0, 4.0])
        original = y.copy()
        estimate_baseline(y)
        np.testing.assert_array_equal(y, original)

    def test_empty_raises(self):
        with pytest.raises(InvalidInputError):
            estimate_baseline(np.array([]))

    def test_invalid_fraction(self):
        with pytest.raises(ValueError):
            estimate_baseline(np.ones(10), fraction=0.0)


class TestMAD:
    """Test the unscaled median absolute deviation."""

    def test_robust_to_outlier(self):
        assert median_absolute_deviation(np.array([1.0, 2.0, 3.0, 4.0, 100.0])) == pytest.approx(1.0)

    def test_constant_is_zero(self):
        assert median_absolute_deviation(np.full(8, 3.0)) == 0.0


class TestThreshold:
    """Test global and sliding-window thresholds."""

    def test_global_threshold(self):
        y = np.arange(1, 101, dtype=np.float64)
        # Low slice 1..10: median 5.5, MAD 2.5
        assert estimate_threshold(y, factor=2.0) == pytest.approx(10.5)

    def test_zero_mad_gives_median(self):
        y = np.concatenate([np.full(10, 2.0), np.arange(90, dtype=np.float64) + 100.0])
        assert estimate_threshold(y, factor=5.0) == pytest.approx(2.0)

    def test_local_threshold_values(self):
        y = np.array([0.0, 2.0, 4.0, 6.0, 8.0])
        thresholds = estimate_threshold(y, window_size=3, factor=2.0)

        assert isinstance(thresholds, np.ndarray)
        assert thresholds.shape == y.shape
        np.testing.assert_allclose(thresholds, [3.0, 6.0, 8.0, 10.0, 9.0])

    def test_even_window_size(self):
        """An even window holds window_size samples, the extra one right of i."""
        y = np.array([0.0, 2.0, 4.0, 6.0, 8.0])
        thresholds = estimate_threshold(y, window_size=4, factor=2.0)
        # i = 2 sees [2, 4, 6, 8]: median 5, MAD 2
        assert thresholds[2] == pytest.approx(9.0)
        np.testing.assert_allclose(estimate_threshold(y, window_size=2, factor=2.0),
                                   [3.0, 5.0, 7.0, 9.0, 8.0])

    def test_whole_trace_fraction(self):
        y = np.arange(1, 21, dtype=np.float64)
        # Median 10.5, MAD 5
        assert estimate_threshold(y, factor=2.0, fraction=1.0) == pytest.approx(20.5)

    def test_invalid_fraction(self):
        with pytest.raises(ValueError):
            estimate_threshold(np.ones(5), fraction=0.0)

    def test_window_larger_than_trace(self):
        """Oversized windows clamp to the whole trace."""
        y = np.array([1.0, 1.0, 1.0, 10.0, 1.0, 1.0, 1.0])
        thresholds = estimate_threshold(y, window_size=100, factor=2.0)
        np.testing.assert_allclose(thresholds, np.ones(7))

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            estimate_threshold(np.ones(5), window_size=0)

    def test_empty_raises(self):
        with pytest.raises(InvalidInputError):
            estimate_threshold(np.array([]))


class TestApplyThreshold:
    """Test zeroing of sub-threshold samples."""

    def test_scalar_threshold(self):
        y = np.array([1.0, 5.0, 2.0, 8.0])
        result = apply_threshold(y, 2.0)
        np.testing.assert_array_equal(result, [0.0, 5.0, 2.0, 8.0])

    def test_per_sample_threshold(self):
        y = np.array([1.0, 5.0, 2.0, 8.0])
        result = apply_threshold(y, np.array([0.5, 6.0, 1.0, 9.0]))
        np.testing.assert_array_equal(result, [1.0, 0.0, 2.0, 0.0])

    def test_returns_copy(self):
        y = np.array([1.0, 5.0, 2.0, 8.0])
        apply_threshold(y, 3.0)
        np.testing.assert_array_equal(y, [1.0, 5.0, 2.0, 8.0])
