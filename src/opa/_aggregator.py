"""
Pooling rules.

PCCs and chance-values at group level are pooled ratios: total successes
over total trials across rows (or across groups). They are never the mean
of the per-row rates, which differ whenever rows contribute different
numbers of relations.
"""

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ._ordering import sign_with_threshold
from ._scoring import RowFit


@dataclass(frozen=True)
class PooledCounts:
    """Pooled tally of correct and total relations."""
    correct_pairs: int
    total_pairs: int

    @property
    def pcc(self) -> float:
        if self.total_pairs == 0:
            return float("nan")
        return self.correct_pairs / self.total_pairs * 100

    def __add__(self, other: "PooledCounts") -> "PooledCounts":
        return PooledCounts(
            correct_pairs=self.correct_pairs + other.correct_pairs,
            total_pairs=self.total_pairs + other.total_pairs,
        )


def pool_rows(row_fits: Iterable[RowFit]) -> PooledCounts:
    """Pool row fits into a group tally."""
    total = PooledCounts(0, 0)
    for f in row_fits:
        total = total + PooledCounts(f.correct_pairs, f.n_pairs)
    return total


def pool_counts(tallies: Iterable[PooledCounts]) -> PooledCounts:
    """Sum several pooled tallies (e.g. one per group)."""
    total = PooledCounts(0, 0)
    for t in tallies:
        total = total + t
    return total


def pooled_ratio(successes: Iterable[int], trials: Iterable[int]) -> float:
    """``sum(successes) / sum(trials)``; NaN when there are no trials."""
    s = int(np.sum(list(successes)))
    n = int(np.sum(list(trials)))
    return s / n if n > 0 else float("nan")


def condition_pair_pccs(
    matrix: np.ndarray,
    h: np.ndarray,
    diff_threshold: float = 0.0,
) -> np.ndarray:
    """Observed PCC for every pair of conditions.

    Entry ``[j, i]`` (``i < j``) is the percentage of rows complete in both
    columns whose ordering of conditions ``i`` and ``j`` matches the
    hypothesis. The diagonal and upper triangle are NaN, as is any pair
    without complete rows.
    """
    k = matrix.shape[1]
    out = np.full((k, k), np.nan)
    h = np.asarray(h, dtype=float)
    for i in range(k - 1):
        for j in range(i + 1, k):
            pair = matrix[:, [i, j]]
            pair = pair[~np.isnan(pair).any(axis=1)]
            if len(pair) == 0:
                continue
            data_sign = sign_with_threshold(pair[:, 1] - pair[:, 0], diff_threshold)
            h_sign = sign_with_threshold(h[j] - h[i], 0.0)
            out[j, i] = float(np.mean(data_sign == h_sign)) * 100
    return out
