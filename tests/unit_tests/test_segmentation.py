"""Unit tests for local-minimum segmentation and trace resolution.

Covers the reference scenarios (single bump, two separated bumps, rejected
low-contrast bump), trace boundaries and structural properties that must hold
for any valid trace.
"""

import numpy as np
import pytest

from resolvefast.resolver.engine import resolve_trace
from resolvefast.resolver.segmentation import find_peak_regions
from resolvefast.types import ParameterCombination, ResolverSettings, Trace


def _bounds(intervals):
    return [(p.start_index, p.end_index) for p in intervals]


class TestScenarios:
    """Reference traces with hand-verified boundaries."""

    def test_single_bump(self, single_bump):
        """One bump with zero edges -> one interval covering the whole trace."""
        x, y = single_bump
        intervals = resolve_trace(x, y, ParameterCombination())

        assert len(intervals) == 1
        peak = intervals[0]
        assert (peak.start, peak.end) == (0.0, 6.0)
        assert peak.apex_index == 3
        assert peak.apex_intensity == 15.0

    def test_two_separated_bumps(self, two_bumps):
        """The shared zero sample belongs to the first interval only."""
        x, y = two_bumps
        intervals = resolve_trace(x, y, ParameterCombination())

        assert _bounds(intervals) == [(0, 4), (5, 8)]
        assert [p.apex_index for p in intervals] == [2, 6]
        assert intervals[0].end < intervals[1].start

    def test_low_contrast_bump_rejected(self):
        """Apex / edge = 1.1 < min_ratio."""
        x = np.arange(5, dtype=np.float64)
        y = np.array([0.0, 10.0, 11.0, 10.0, 0.0])
        assert resolve_trace(x, y, ParameterCombination()) == []

    def test_local_minimum_boundary(self):
        """A dip deep enough relative to the apex ends a region."""
        x = np.arange(11, dtype=np.float64)
        y = np.array([0, 10, 50, 100, 50, 10, 50, 100, 50, 10, 0], dtype=np.float64)
        pc = ParameterCombination(search_width=1.0)
        intervals = resolve_trace(x, y, pc, ResolverSettings(split_multi_maxima=False))

        # First region ends at the dip (index 5); second region's left edge is
        # 50 (index 6): 100 / 50 passes min_ratio
        assert _bounds(intervals) == [(0, 5), (6, 10)]


class TestLocalMinimumConfirmation:
    """Test the +/- search_width minimum check."""

    # Dip at index 3 is not the lowest sample within +/- 2
    y = np.array([0, 10, 100, 80, 90, 70, 20, 0], dtype=np.float64)
    x = np.arange(8, dtype=np.float64)
    pc = ParameterCombination(search_width=2.0)

    def test_without_confirmation(self):
        settings = ResolverSettings(confirm_local_minimum=False, split_multi_maxima=False)
        intervals = resolve_trace(self.x, self.y, self.pc, settings)
        # Region [1, 3] accepted, remainder [4, 6] fails 90 >= 90 * 1.2
        assert _bounds(intervals) == [(0, 3)]

    def test_with_confirmation(self):
        settings = ResolverSettings(confirm_local_minimum=True, split_multi_maxima=False)
        intervals = resolve_trace(self.x, self.y, self.pc, settings)
        assert _bounds(intervals) == [(0, 7)]

    def test_with_confirmation_and_splitting(self):
        """Maxima at 2 and 4 are both >= 50% of the apex -> split at 3."""
        settings = ResolverSettings(confirm_local_minimum=True, split_multi_maxima=True)
        intervals = resolve_trace(self.x, self.y, self.pc, settings)
        assert _bounds(intervals) == [(0, 3), (4, 7)]
        assert [p.apex_index for p in intervals] == [2, 4]


class TestBoundaries:
    """Degenerate and minimal traces."""

    def test_all_zero(self):
        x = np.arange(10, dtype=np.float64)
        assert resolve_trace(x, np.zeros(10), ParameterCombination()) == []

    def test_single_sample_default_rejected(self):
        x = np.arange(3, dtype=np.float64)
        y = np.array([0.0, 5.0, 0.0])
        assert resolve_trace(x, y, ParameterCombination()) == []

    def test_single_sample_accepted(self):
        """One sample: edges equal the apex, so min_ratio must be <= 1."""
        x = np.arange(3, dtype=np.float64)
        y = np.array([0.0, 5.0, 0.0])
        pc = ParameterCombination(min_data_points=1, min_ratio=1.0)
        intervals = resolve_trace(x, y, pc)

        assert _bounds(intervals) == [(0, 2)]
        assert intervals[0].apex_index == 1

    def test_single_point_trace(self):
        pc = ParameterCombination(min_data_points=1, min_ratio=1.0)
        intervals = resolve_trace(np.array([2.5]), np.array([7.0]), pc)
        assert len(intervals) == 1
        assert intervals[0].start == intervals[0].end == 2.5

    def test_peak_at_trace_edges(self):
        """Regions touching the first/last sample are not expanded past them."""
        x = np.arange(5, dtype=np.float64)
        y = np.array([5.0, 20.0, 50.0, 20.0, 5.0])
        intervals = resolve_trace(x, y, ParameterCombination())
        assert _bounds(intervals) == [(0, 4)]

    def test_kernel_returns_index_arrays(self, two_bumps):
        x, y = two_bumps
        starts, ends, apexes = find_peak_regions(x, y, 0.05, 1.2, 1.0, 3, True)
        np.testing.assert_array_equal(starts, [0, 5])
        np.testing.assert_array_equal(ends, [4, 8])
        np.testing.assert_array_equal(apexes, [2, 6])


class TestProperties:
    """Structural guarantees on random traces."""

    @pytest.mark.parametrize("split", [False, True])
    def test_bounds_order_and_disjointness(self, random_traces, split):
        settings = ResolverSettings(split_multi_maxima=split)
        pc = ParameterCombination(search_width=5.0, min_height=50.0)

        for trace in random_traces:
            intervals = resolve_trace(trace, parameters=pc, settings=settings)
            for p in intervals:
                assert trace.x[0] <= p.start <= p.end <= trace.x[-1]
                assert p.start_index <= p.apex_index <= p.end_index
                assert p.start == trace.x[p.start_index]
                assert p.end == trace.x[p.end_index]
            for a, b in zip(intervals, intervals[1:]):
                assert a.end_index < b.start_index
                assert a.start < b.start

    def test_idempotent(self, random_traces):
        pc = ParameterCombination(search_width=5.0, min_height=50.0)
        for trace in random_traces:
            first = resolve_trace(trace, parameters=pc)
            second = resolve_trace(trace, parameters=pc)
            assert first == second

    def test_input_not_modified(self, random_traces):
        trace = random_traces[0]
        x_before = trace.x.copy()
        y_before = trace.y.copy()
        pc = ParameterCombination(chrom_threshold=100.0, search_width=5.0)
        resolve_trace(trace, parameters=pc, settings=ResolverSettings.classic())

        np.testing.assert_array_equal(trace.x, x_before)
        np.testing.assert_array_equal(trace.y, y_before)

    def test_min_height_monotone(self, random_traces):
        """Raising min_height never adds intervals."""
        for trace in random_traces[:5]:
            counts = [
                len(resolve_trace(trace, parameters=ParameterCombination(
                    search_width=5.0, min_height=h)))
                for h in (0.0, 100.0, 500.0, 2000.0, 10000.0)
            ]
            assert counts == sorted(counts, reverse=True)

    def test_min_ratio_monotone_for_separated_bumps(self):
        """Zero-separated bumps with edge ratios 2, 1.25 and 5."""
        y = np.array([0, 5, 10, 5, 0, 8, 10, 8, 0, 2, 10, 2, 0], dtype=np.float64)
        x = np.arange(y.size, dtype=np.float64)

        counts = []
        for ratio in (1.1, 1.5, 3.0, 6.0):
            pc = ParameterCombination(search_width=100.0, min_ratio=ratio)
            counts.append(len(resolve_trace(x, y, pc)))
        assert counts == [3, 2, 1, 0]

    @pytest.mark.parametrize("settings, counts", [
        (ResolverSettings.global_auto(), [0, 1]),
        (ResolverSettings.auto(), [0, 2]),
    ])
    def test_min_ratio_also_moves_boundaries(self, settings, counts):
        """A higher ratio can merge two short regions into one that passes.

        At 1.2 the dip at index 3 ends the first region, leaving [1, 3] and
        [4, 5], both shorter than 4 samples. At 2.5 the dip no longer
        qualifies, so [1, 5] is kept (and split in two when splitting).
        """
        y = np.array([0, 1, 10, 5, 10, 1, 0], dtype=np.float64)
        x = np.arange(y.size, dtype=np.float64)

        found = []
        for ratio in (1.2, 2.5):
            pc = ParameterCombination(search_width=1.0, min_ratio=ratio, min_data_points=4)
            found.append(len(resolve_trace(x, y, pc, settings)))
        assert found == counts
