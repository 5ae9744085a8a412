"""
Row scoring.

Compares the ordinal relations of one data row with those of the
hypothesis. Missing values in the row are dropped together with the
hypothesis entries at the same positions before either side is encoded.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ._errors import DegenerateRowError
from ._ordering import conform, ordering


@dataclass(frozen=True)
class RowFit:
    """Result of scoring one row.

    Attributes
    ----------
    pcc : float
        ``correct_pairs / n_pairs * 100``.
    n_pairs : int
        Relations evaluated (fewer than the full count when values are missing).
    correct_pairs : int
        Relations whose sign matches the hypothesis.
    """
    pcc: float
    n_pairs: int
    correct_pairs: int


def finite_part(xs, h, row: Optional[int] = None):
    """Return ``(row_values, conformed_hypothesis)`` with missing entries removed."""
    x = np.asarray(xs, dtype=float)
    missing = np.isnan(x)
    if missing.any():
        h_conformed = conform(x, h)
        x = x[~missing]
    else:
        h_conformed = np.asarray(h, dtype=float)
    if len(x) < 2:
        where = f"row {row}" if row is not None else "row"
        raise DegenerateRowError(
            f"{where} has {len(x)} non-missing value(s); at least 2 are needed "
            f"to form an ordinal relation",
            row=row,
        )
    return x, h_conformed


def row_pcc(
    xs,
    h,
    pairing_type: str = "pairwise",
    diff_threshold: float = 0.0,
    row: Optional[int] = None,
) -> RowFit:
    """Score one data row against a hypothesis.

    Parameters
    ----------
    xs : array-like
        Data row; NaN marks a missing value.
    h : array-like
        Raw hypothesis values, same length as ``xs``.
    pairing_type : {"pairwise", "adjacent"}
        Pairing scheme.
    diff_threshold : float, default=0.0
        Threshold applied to the data row only.
    row : int, optional
        Row position, reported in ``DegenerateRowError``.

    Returns
    -------
    RowFit

    Examples
    --------
    >>> row_pcc([2, 1, 6, 8], [1, 2, 3, 4])
    RowFit(pcc=83.33333333333334, n_pairs=6, correct_pairs=5)
    """
    x, h_conformed = finite_part(xs, h, row=row)
    h_ord = ordering(h_conformed, pairing_type, 0.0)
    x_ord = ordering(x, pairing_type, diff_threshold)
    match = x_ord == h_ord
    n_pairs = len(match)
    correct = int(match.sum())
    return RowFit(pcc=correct / n_pairs * 100, n_pairs=n_pairs, correct_pairs=correct)


def score_rows(
    matrix: np.ndarray,
    h,
    pairing_type: str = "pairwise",
    diff_threshold: float = 0.0,
    row_ids: Optional[np.ndarray] = None,
) -> List[RowFit]:
    """Apply ``row_pcc`` to every row of ``matrix``.

    A degenerate row aborts the whole pass. ``row_ids`` maps local rows back
    to positions in the caller's data for error messages.
    """
    fits = []
    for r in range(matrix.shape[0]):
        rid = int(row_ids[r]) if row_ids is not None else r
        fits.append(row_pcc(matrix[r], h, pairing_type, diff_threshold, row=rid))
    return fits
