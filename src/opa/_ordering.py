"""
Ordinal encoding of numeric sequences.

A sequence of K values is turned into a relation vector of signs, one per
pair of positions. ``pairwise`` uses every ``i < j`` pair, enumerated with
``i`` ascending and then ``j`` ascending; ``adjacent`` uses consecutive
pairs only. The enumeration order is shared with the vectorised replicate
scorer in ``_engine`` through ``pair_indices``.
"""

from functools import lru_cache
from typing import Tuple

import numpy as np

from ._errors import InvalidConfigError, ShapeMismatchError

PAIRING_TYPES = ("pairwise", "adjacent")


def check_pairing_type(pairing_type: str) -> None:
    if pairing_type not in PAIRING_TYPES:
        raise InvalidConfigError(
            f"pairing_type must be 'pairwise' or 'adjacent', got {pairing_type!r}"
        )


def n_relations(k: int, pairing_type: str) -> int:
    """Number of ordinal relations formed by ``k`` values."""
    check_pairing_type(pairing_type)
    if pairing_type == "pairwise":
        return (k * (k - 1)) // 2
    return max(k - 1, 0)


@lru_cache(maxsize=64)
def pair_indices(n: int, pairing_type: str) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(i, j)`` index arrays of the relations over ``n`` positions.

    The arrays are cached and read-only.
    """
    check_pairing_type(pairing_type)
    if pairing_type == "pairwise":
        i, j = np.triu_indices(n, k=1)
    else:
        i = np.arange(n - 1)
        j = np.arange(1, n)
    i.setflags(write=False)
    j.setflags(write=False)
    return i, j


def sign_with_threshold(xs, diff_threshold: float):
    """Sign of every element of ``xs`` relative to a difference threshold.

    Returns 1 where ``x > diff_threshold``, -1 where ``x < -diff_threshold``
    and 0 otherwise. Missing (NaN) inputs stay NaN. Equivalent to
    ``np.sign`` when ``diff_threshold == 0``.

    Parameters
    ----------
    xs : scalar or array-like
        Differences to classify.
    diff_threshold : float
        Non-negative threshold.

    Returns
    -------
    np.ndarray or numpy scalar
        Float values in ``{1.0, -1.0, 0.0, nan}``, same shape as ``xs``.

    Examples
    --------
    >>> float(sign_with_threshold(0.3, 1))
    0.0
    >>> sign_with_threshold([3, -2, np.nan], 1)
    array([ 1., -1., nan])
    """
    x = np.asarray(xs, dtype=float)
    out = np.where(x > diff_threshold, 1.0, np.where(x < -diff_threshold, -1.0, 0.0))
    out[np.isnan(x)] = np.nan
    return out[()]


def all_diffs(xs) -> np.ndarray:
    """Difference ``xs[j] - xs[i]`` for every pair ``i < j``."""
    x = np.asarray(xs, dtype=float)
    i, j = pair_indices(len(x), "pairwise")
    return x[j] - x[i]


def adjacent_diffs(xs) -> np.ndarray:
    """Difference between each pair of consecutive elements."""
    return np.diff(np.asarray(xs, dtype=float))


def ordering(xs, pairing_type: str = "pairwise", diff_threshold: float = 0.0) -> np.ndarray:
    """Encode ``xs`` as a relation vector.

    Parameters
    ----------
    xs : array-like
        At least 2 values. Missing values must be stripped by the caller;
        any left in place propagate as NaN relations.
    pairing_type : {"pairwise", "adjacent"}
        Which pairs of positions form relations.
    diff_threshold : float, default=0.0
        Differences within ``[-diff_threshold, diff_threshold]`` encode as 0.
        Hypotheses are always encoded with 0.

    Returns
    -------
    np.ndarray
        Relation vector of length ``n_relations(len(xs), pairing_type)``.

    Examples
    --------
    >>> ordering([4.3, 2.1, 3.5, 1.7], "pairwise", 0)
    array([-1., -1., -1.,  1., -1., -1.])
    """
    check_pairing_type(pairing_type)
    x = np.asarray(xs, dtype=float)
    if x.ndim != 1 or len(x) < 2:
        raise InvalidConfigError(
            f"ordering requires a 1-D sequence of at least 2 values, got shape {x.shape}"
        )
    if pairing_type == "pairwise":
        diffs = all_diffs(x)
    else:
        diffs = adjacent_diffs(x)
    return np.atleast_1d(sign_with_threshold(diffs, diff_threshold))


def conform(xs, h) -> np.ndarray:
    """Drop the entries of ``h`` at the positions where ``xs`` is missing.

    Examples
    --------
    >>> conform([1, np.nan, 3, 4], [1, 2, 3, 4])
    array([1., 3., 4.])
    """
    x = np.asarray(xs, dtype=float)
    hyp = np.asarray(h, dtype=float)
    if x.shape != hyp.shape:
        raise ShapeMismatchError(
            f"conform needs equal lengths, got {x.shape} and {hyp.shape}"
        )
    return hyp[~np.isnan(x)]
