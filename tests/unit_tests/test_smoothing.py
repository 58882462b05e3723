"""Unit tests for Gaussian pre-smoothing."""

import numpy as np
import pytest

from resolvefast.baseline.smoothing import (
    auto_smooth_trace,
    sigma_for_peak_width,
    smooth_gaussian_1d,
)


class TestGaussianSmoothing:
    """Test the numba Gaussian smoother."""

    def test_constant_signal_unchanged(self):
        """Edge renormalization keeps a flat trace flat."""
        y = np.full(30, 7.0)
        smoothed = smooth_gaussian_1d(y, 2.0)
        np.testing.assert_allclose(smoothed, y)

    def test_length_and_dtype(self):
        y = np.random.uniform(0, 100, 50)
        smoothed = smooth_gaussian_1d(y, 1.5)
        assert smoothed.shape == y.shape
        assert smoothed.dtype == np.float64

    def test_spike_is_flattened(self):
        y = np.zeros(41)
        y[20] = 100.0
        smoothed = smooth_gaussian_1d(y, 2.0)

        assert smoothed[20] < 100.0
        assert np.argmax(smoothed) == 20
        # Interior spike: area is preserved
        assert np.sum(smoothed) == pytest.approx(100.0, rel=1e-6)

    def test_zero_sigma_is_identity(self):
        y = np.array([0.0, 3.0, 1.0, 4.0])
        np.testing.assert_array_equal(smooth_gaussian_1d(y, 0.0), y)

    def test_input_not_modified(self):
        y = np.array([0.0, 10.0, 50.0, 10.0, 0.0])
        original = y.copy()
        smooth_gaussian_1d(y, 1.0)
        np.testing.assert_array_equal(y, original)

    def test_noise_reduced(self):
        x = np.linspace(-5, 5, 101)
        clean = 1000.0 * np.exp(-0.5 * x ** 2)
        noisy = clean + np.random.normal(0, 50, x.size)
        smoothed = smooth_gaussian_1d(noisy, 2.0)

        assert np.std(smoothed - clean) < np.std(noisy - clean)


class TestAutoSigma:
    """Test sigma selection from sampling density."""

    def test_sigma_from_peak_width(self):
        x = np.arange(100) * 0.01
        # FWHM 0.15 -> peak sigma 0.0637 -> third of it in 0.01 steps
        assert sigma_for_peak_width(x, 0.15) == pytest.approx(0.15 / 2.355 / 3.0 / 0.01)

    def test_sigma_clamped(self):
        x = np.arange(100, dtype=np.float64)
        assert sigma_for_peak_width(x, 0.01) == 0.5
        assert sigma_for_peak_width(x, 1000.0) == 10.0

    def test_short_trace(self):
        assert sigma_for_peak_width(np.array([1.0]), 5.0) == 0.5

    def test_auto_smooth_trace(self):
        x = np.arange(50, dtype=np.float64)
        y = np.zeros(50)
        y[25] = 10.0
        smoothed = auto_smooth_trace(x, y, expected_peak_width=20.0)
        assert smoothed.shape == y.shape
        assert smoothed[25] < 10.0
