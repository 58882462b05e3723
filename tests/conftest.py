"""Pytest configuration for resolvefast tests.

Provides common synthetic traces. Everything is in-memory, no I/O.
"""

import numpy as np
import pytest

from resolvefast.types import Trace


@pytest.fixture
def single_bump():
    """Scenario trace: one symmetric bump with zero edges."""
    x = np.arange(7, dtype=np.float64)
    y = np.array([0, 2, 8, 15, 8, 2, 0], dtype=np.float64)
    return x, y


@pytest.fixture
def two_bumps():
    """Two bumps separated by a single zero sample."""
    x = np.arange(9, dtype=np.float64)
    y = np.array([0, 3, 9, 3, 0, 4, 12, 4, 0], dtype=np.float64)
    return x, y


@pytest.fixture
def shoulder_peak():
    """Peak with a ripple on its descending flank (apex 100 at index 3)."""
    return np.array([0, 10, 40, 100, 60, 70, 30, 10, 0], dtype=np.float64)


@pytest.fixture
def gaussian_peak():
    """Gaussian on a uniform grid with exactly-zero end samples."""
    x = np.linspace(-5.0, 5.0, 51)
    y = 1000.0 * np.exp(-0.5 * x ** 2)
    y[0] = 0.0
    y[-1] = 0.0
    return x, y


def _random_trace(n_points=200, n_peaks=4):
    spacing = np.random.uniform(0.5, 1.5, n_points)
    x = np.cumsum(spacing)
    y = np.random.uniform(0.0, 20.0, n_points)
    for _ in range(n_peaks):
        center = np.random.uniform(x[0], x[-1])
        width = np.random.uniform(2.0, 8.0)
        height = np.random.uniform(200.0, 5000.0)
        y += height * np.exp(-0.5 * ((x - center) / width) ** 2)
    y[y < 15.0] = 0.0
    return x, y


@pytest.fixture
def random_traces():
    """Noisy multi-peak traces with random, strictly increasing sampling."""
    traces = []
    for i in range(20):
        x, y = _random_trace(n_peaks=np.random.randint(1, 7))
        traces.append(Trace(x, y, feature_id=f"trace_{i}"))
    return traces


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
