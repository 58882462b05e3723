"""Exception hierarchy for resolvefast.

An empty peak list is a valid result and never raised as an error.
"""


class ResolveFastError(Exception):
    """Base class for all resolvefast errors."""


class InvalidInputError(ResolveFastError, ValueError):
    """Trace arrays are empty, mismatched, non-finite or not strictly increasing."""


class UncalibratedStateError(ResolveFastError, RuntimeError):
    """Resolution was requested without a parameter combination or calibration."""


class CalibrationError(ResolveFastError, RuntimeError):
    """No parameter combination produced peaks on the calibration traces."""


class ResolutionCancelled(ResolveFastError):
    """A cooperative cancellation request aborted the run."""
