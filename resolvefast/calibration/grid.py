"""Parameter grids for auto-calibration.

Grid values are anchored on the data: intensity parameters are multiples of
the lowest-decile baseline over all traces, search widths are fractions of
the widest trace span. Two presets reproduce the grids of the globally
calibrated resolver and the single-trace auto resolver.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..baseline.threshold import estimate_baseline
from ..constants import DEFAULT_COUNT_BONUS, DEFAULT_MAX_COMBINATIONS
from ..quality.scoring import QualityWeights
from ..types import ParameterCombination, Trace

logger = logging.getLogger(__name__)


@dataclass
class CalibrationSettings:
    """Grid definition and search options.

    Intensity factors are multiplied by the baseline, search-width fractions
    by the largest trace span. The defaults are the global search grid
    (7 x 6 x 10 x 5 x 5 = 10,500 combinations, capped by random sampling).
    """

    chrom_threshold_factors: Tuple[float, ...] = (0.0, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0)
    search_width_fractions: Tuple[float, ...] = (0.01, 0.02, 0.05, 0.1, 0.2, 0.3)
    min_ratios: Tuple[float, ...] = (1.2, 1.3, 1.4, 1.5, 1.6, 1.7, 1.8, 1.9, 2.0, 2.1)
    min_height_factors: Tuple[float, ...] = (0.0, 0.5, 1.0, 2.0, 5.0)
    min_data_points: Tuple[int, ...] = (3, 5, 7, 10, 15)

    # Score bonus per detected peak, rewards combinations that find more features
    count_bonus: float = DEFAULT_COUNT_BONUS

    # Larger grids are replaced by a seeded random subset (None = no cap)
    max_combinations: Optional[int] = DEFAULT_MAX_COMBINATIONS
    seed: int = 0

    n_workers: int = 4
    weights: QualityWeights = field(default_factory=QualityWeights)

    def __post_init__(self):
        for name in ('chrom_threshold_factors', 'search_width_fractions',
                     'min_ratios', 'min_height_factors', 'min_data_points'):
            values = tuple(getattr(self, name))
            if len(values) == 0:
                raise ValueError(f"{name} must not be empty")
            if min(values) < 0:
                raise ValueError(f"{name} must be non-negative, got {values}")
            setattr(self, name, values)
        if min(self.min_ratios) <= 0:
            raise ValueError(f"min_ratios must be > 0, got {self.min_ratios}")
        if min(self.min_data_points) < 1:
            raise ValueError(f"min_data_points must be >= 1, got {self.min_data_points}")
        if self.max_combinations is not None and self.max_combinations < 1:
            raise ValueError(f"max_combinations must be >= 1, got {self.max_combinations}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")

    @classmethod
    def global_search(cls, **overrides) -> 'CalibrationSettings':
        """Grid shared across all traces of a run, with a per-peak count bonus."""
        return cls(**overrides)

    @classmethod
    def per_trace(cls, **overrides) -> 'CalibrationSettings':
        """Smaller grid (5 x 5 x 5 x 4 x 4) tuned on a single trace, no count bonus."""
        params = dict(
            chrom_threshold_factors=(0.5, 0.8, 1.0, 1.2, 1.5),
            search_width_fractions=(0.01, 0.05, 0.1, 0.2, 0.3),
            min_ratios=(1.1, 1.2, 1.3, 1.5, 1.8),
            min_height_factors=(1.0, 2.0, 3.0, 5.0),
            min_data_points=(3, 5, 7, 9),
            count_bonus=0.0,
        )
        params.update(overrides)
        return cls(**params)

    @property
    def grid_size(self) -> int:
        """Number of combinations before deduplication and capping."""
        return (len(self.chrom_threshold_factors) * len(self.search_width_fractions)
                * len(self.min_ratios) * len(self.min_height_factors)
                * len(self.min_data_points))


def grid_anchors(traces: Sequence[Trace]) -> Tuple[float, float]:
    """(baseline, span): lowest-decile median of all intensities, widest trace span."""
    baseline = estimate_baseline([t.y for t in traces])
    span = max((t.span for t in traces), default=0.0)
    return baseline, span


def generate_parameter_grid(
    traces: Sequence[Trace],
    settings: Optional[CalibrationSettings] = None,
    anchors: Optional[Tuple[float, float]] = None,
) -> List[ParameterCombination]:
    """Build the candidate ParameterCombination list.

    Parameters
    ----------
    traces : sequence of Trace
        Calibration traces, used to anchor the grid
    settings : CalibrationSettings, optional
        Grid definition, defaults to the global search grid
    anchors : (baseline, span), optional
        Precomputed grid_anchors(traces)

    Returns
    -------
    combinations : list of ParameterCombination
        Duplicates removed, grid order kept. When the grid exceeds
        `max_combinations`, a random subset drawn with `seed` is returned,
        still in grid order, so the same inputs always give the same list.
    """
    if settings is None:
        settings = CalibrationSettings()
    baseline, span = anchors if anchors is not None else grid_anchors(traces)

    seen = {}
    for cth, sw, ratio, mh, dp in itertools.product(
        settings.chrom_threshold_factors,
        settings.search_width_fractions,
        settings.min_ratios,
        settings.min_height_factors,
        settings.min_data_points,
    ):
        key = (cth * baseline, sw * span, float(ratio), mh * baseline, int(dp))
        if key not in seen:
            seen[key] = ParameterCombination(*key)
    combos = list(seen.values())

    if settings.max_combinations is not None and len(combos) > settings.max_combinations:
        rng = np.random.default_rng(settings.seed)
        keep = np.sort(rng.choice(len(combos), size=settings.max_combinations, replace=False))
        logger.info(
            f"Sampling {settings.max_combinations:,} of {len(combos):,} parameter combinations"
        )
        combos = [combos[i] for i in keep]

    logger.info(
        f"Generated {len(combos):,} parameter combinations "
        f"(baseline={baseline:.4g}, span={span:.4g})"
    )
    return combos
