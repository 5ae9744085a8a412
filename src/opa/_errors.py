"""
Error and warning types raised by the OPA core.

Configuration and shape problems are raised by preflight before any
computation starts. ``DegenerateRowError`` is raised while scoring, at the
row that cannot form a single ordinal relation.
"""

from typing import Optional


class OpaError(Exception):
    """Base class for every error raised by ``opa``."""


class ShapeMismatchError(OpaError, ValueError):
    """Hypothesis, data, grouping vector or replicate lengths disagree."""


class InvalidConfigError(OpaError, ValueError):
    """Unrecognised option or out-of-range parameter."""


class DegenerateRowError(OpaError, ValueError):
    """A data row has fewer than 2 non-missing values.

    Parameters
    ----------
    message : str
        Human-readable description.
    row : int, optional
        Position of the offending row in the data matrix.
    """

    def __init__(self, message: str, row: Optional[int] = None):
        super().__init__(message)
        self.row = row


class FitTimeoutError(OpaError, TimeoutError):
    """Chance-value computation ran past its deadline."""


class CombinatorialBlowupWarning(UserWarning):
    """Exact chance-values requested for rows with many finite values."""
