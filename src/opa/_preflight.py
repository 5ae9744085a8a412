"""
Preflight validation.

Every check here runs before scoring starts, so configuration and shape
errors surface immediately instead of part-way through a fit. Raises the
typed errors from ``_errors``; non-fatal concerns go through
``warnings.warn``.
"""

import math
import warnings
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ._errors import (
    CombinatorialBlowupWarning,
    InvalidConfigError,
    ShapeMismatchError,
)
from ._hypothesis import Hypothesis

# Exact chance-values enumerate n! orderings per row.
_EXACT_WARN_VALUES = 10


def as_matrix(data) -> Tuple[np.ndarray, Tuple[str, ...]]:
    """Convert wide-format input to a read-only float ``N x K`` matrix.

    Parameters
    ----------
    data : pd.DataFrame or array-like
        One row per individual, one column per condition. Missing values
        may be ``NaN`` / ``None`` / ``pd.NA``.

    Returns
    -------
    matrix : np.ndarray
        Float copy of the data.
    columns : tuple of str
        Column labels (``"1"``, ``"2"``, ... for non-DataFrame input).
    """
    if isinstance(data, pd.DataFrame):
        non_numeric = [
            c for c in data.columns if not pd.api.types.is_numeric_dtype(data[c])
        ]
        if non_numeric:
            raise InvalidConfigError(
                f"data columns must be numeric; non-numeric columns: {non_numeric}"
            )
        matrix = data.to_numpy(dtype=float, na_value=np.nan)
        columns = tuple(str(c) for c in data.columns)
    else:
        try:
            matrix = np.array(data, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"data must be numeric: {e}") from e
        columns = None

    if matrix.ndim != 2:
        raise InvalidConfigError(
            f"data must be 2-D (rows x conditions), got {matrix.ndim} dimension(s)"
        )
    if matrix.shape[0] < 1:
        raise InvalidConfigError("data has no rows")
    if np.isinf(matrix).any():
        raise InvalidConfigError("data contains infinite values")
    if columns is None:
        columns = tuple(str(c + 1) for c in range(matrix.shape[1]))

    matrix.setflags(write=False)
    return matrix, columns


def check_shapes(matrix: np.ndarray, hypothesis: Hypothesis) -> None:
    if matrix.shape[1] != hypothesis.n_conditions:
        raise ShapeMismatchError(
            f"hypothesis has {hypothesis.n_conditions} values but data has "
            f"{matrix.shape[1]} columns"
        )


def resolve_groups(group, n_rows: int) -> Tuple[np.ndarray, Tuple]:
    """Validate a grouping vector and resolve its levels.

    Levels follow the category order of a categorical input and sorted
    order otherwise. Unused categories are dropped.

    Returns
    -------
    labels : np.ndarray
        One label per row (object dtype).
    levels : tuple
        Distinct group levels, at least 2.
    """
    if len(group) != n_rows:
        raise ShapeMismatchError(
            f"group has {len(group)} labels but data has {n_rows} rows"
        )
    cat = pd.Categorical(group)
    if cat.isna().any():
        raise InvalidConfigError("group contains missing labels")
    cat = cat.remove_unused_categories()
    levels = tuple(cat.categories)
    if len(levels) < 2:
        raise InvalidConfigError(
            f"grouping requires at least 2 distinct levels, got {len(levels)}"
        )
    labels = np.asarray(cat.astype(object))
    return labels, levels


def check_exact_workload(matrix: np.ndarray, stacklevel: int = 4) -> Optional[int]:
    """Warn when exact chance-values would enumerate too many orderings.

    Returns the largest per-row permutation count.
    """
    n_finite = (~np.isnan(matrix)).sum(axis=1)
    largest = int(n_finite.max()) if len(n_finite) else 0
    n_perms = math.factorial(largest)
    if largest > _EXACT_WARN_VALUES:
        est_bytes = n_perms * matrix.shape[0] * 8
        warnings.warn(
            f"Exact chance-values enumerate {largest}! = {n_perms:,} orderings "
            f"per row for {matrix.shape[0]} row(s) (~{est_bytes / 1024**3:.1f} GB "
            f"of replicate PCCs). Consider cval_method='stochastic'.",
            CombinatorialBlowupWarning,
            stacklevel=stacklevel,
        )
    return n_perms
