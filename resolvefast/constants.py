"""Numeric constants shared by the resolver, quality scorer and calibrator.

Values follow the local-minimum resolvers used for LC-MS and IMS feature
detection. Everything here is a plain float/int so it can be used directly
inside Numba-compiled code.

Key Groups
----------
- Baseline estimation (lowest-decile median)
- Segmentation defaults (search width, top/edge ratio, minimum height)
- Quality scoring (weights, penalties, significance fractions)
- Calibration sentinels and count bonus
"""

# =============================================================================
# Baseline Estimation
# =============================================================================

# Fraction of the sorted intensities used as the "noise" slice
BASELINE_FRACTION = 0.1

# Default multiple of MAD added to the baseline median
DEFAULT_NOISE_FACTOR = 2.0

# =============================================================================
# Segmentation Defaults
# =============================================================================

# Minimum search range RT/mobility (absolute), classic resolver default
DEFAULT_SEARCH_WIDTH = 0.05

# Minimum ratio between region apex and edge intensities
DEFAULT_MIN_RATIO = 1.2

# Minimum admissible apex intensity
DEFAULT_MIN_HEIGHT = 1.0

# Minimum number of samples in a peak
DEFAULT_MIN_DATA_POINTS = 3

# Fallback combination used when resolving without calibration
FALLBACK_SEARCH_FRACTION = 0.1
FALLBACK_MIN_HEIGHT = 1000.0

# =============================================================================
# Quality Scoring
# =============================================================================

# Local maxima at or above this fraction of the apex count as sub-peaks
SIGNIFICANT_MAXIMUM_FRACTION = 0.5

# Height fraction at which the tailing factor is measured (5% of apex)
DEFAULT_TAILING_FRACTION = 0.05

# Slopes smaller than this are treated as flat by the zigzag counter
ZIGZAG_SLOPE_EPSILON = 1e-7

# Penalty per slope sign change / per extra significant maximum
ZIGZAG_PENALTY = 0.2
EXTRA_MAXIMUM_PENALTY = 0.5

# Pearson kurtosis of a normal distribution
GAUSSIAN_KURTOSIS = 3.0

# Default weights: asymmetry, Gaussian R^2, kurtosis score, tailing score
DEFAULT_ASYMMETRY_WEIGHT = 1.0
DEFAULT_R2_WEIGHT = 0.5
DEFAULT_KURTOSIS_WEIGHT = 0.5
DEFAULT_TAILING_WEIGHT = 0.5

# Pivot magnitude below which the 3x3 normal equations are singular
SINGULAR_PIVOT = 1e-12

# =============================================================================
# Calibration
# =============================================================================

# Score assigned to a combination that finds no peak in any trace
NO_PEAKS_SCORE = -99999.0

# Bonus per detected peak (global calibration)
DEFAULT_COUNT_BONUS = 0.05

# Upper bound on evaluated combinations before random sampling kicks in
DEFAULT_MAX_COMBINATIONS = 2000

# Traces shorter than this are ignored during calibration
MIN_CALIBRATION_POINTS = 3
