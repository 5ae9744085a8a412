"""
Result containers.

Every result is a frozen dataclass carrying a class-level ``kind`` tag, so
presentation code can dispatch on ``result.kind`` instead of on Python
types:

- ``single_group``           -> ``SingleGroupFit``
- ``multi_group``            -> ``MultiGroupFit``
- ``hypothesis_comparison``  -> ``HypothesisComparison``
- ``group_comparison``       -> ``GroupComparison``
- ``condition_comparison``   -> ``ConditionComparison``

Arrays stored on results are read-only.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from ._aggregator import PooledCounts, pool_counts, pooled_ratio
from ._errors import InvalidConfigError
from ._hypothesis import Hypothesis
from ._spec import FitSpec


def readonly(arr, dtype=None) -> np.ndarray:
    """Return a read-only copy of ``arr``."""
    out = np.array(arr, dtype=dtype)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class ChanceValues:
    """Chance-values and reference distribution for one group of rows.

    Attributes
    ----------
    method : str
        ``"exact"`` or ``"stochastic"``.
    nreps : int or None
        Reorderings per row for ``"stochastic"``; ``None`` for ``"exact"``.
    group_cval : float
        Pooled chance-value: replicates at least as good as observed, summed
        over rows, divided by total replicates.
    individual_cvals : np.ndarray, shape (n_rows,)
        Per-row chance-values.
    individual_n_permutations : np.ndarray, shape (n_rows,)
        Replicates scored per row (the per-row denominator).
    individual_pccs_geq_observed : np.ndarray, shape (n_rows,)
        Replicates per row with PCC >= the row's observed PCC.
    pcc_replicates : np.ndarray, shape (n_replicates, n_rows)
        Replicate PCCs, one column per row. Exact rows with fewer
        permutations than the longest row are NaN padded.
    group_replicate_pccs : np.ndarray or None, shape (n_replicates,)
        Pooled PCC of each replicate draw across rows. ``None`` when rows
        have different replicate counts.
    seed_entropy : int or None
        Entropy of the root ``SeedSequence`` (stochastic, integer or
        ``None`` seeds only), enough to reproduce the draws.
    """
    method: str
    nreps: Optional[int]
    group_cval: float
    individual_cvals: np.ndarray
    individual_n_permutations: np.ndarray
    individual_pccs_geq_observed: np.ndarray
    pcc_replicates: np.ndarray
    group_replicate_pccs: Optional[np.ndarray]
    seed_entropy: Optional[int] = None

    @property
    def n_permutations(self) -> int:
        return int(np.sum(self.individual_n_permutations))

    @property
    def pccs_geq_observed(self) -> int:
        return int(np.sum(self.individual_pccs_geq_observed))

    @property
    def resolution(self) -> float:
        """Smallest non-zero group chance-value the test can report."""
        return 1.0 / self.n_permutations


@dataclass(frozen=True, eq=False)
class SingleGroupFit:
    """PCCs (and, once computed, chance-values) for one group of rows.

    ``group_pcc`` is the pooled ratio ``correct_pairs / total_pairs * 100``.
    """
    kind: ClassVar[str] = "single_group"

    hypothesis: Hypothesis
    spec: FitSpec
    data: np.ndarray
    columns: Tuple[str, ...]
    row_ids: np.ndarray
    individual_pccs: np.ndarray
    individual_correct_pairs: np.ndarray
    individual_n_pairs: np.ndarray
    correct_pairs: int
    total_pairs: int
    condition_pccs: np.ndarray
    chance: Optional[ChanceValues] = None
    label: Any = None

    # ── scoring ──────────────────────────────────────────────────────

    @property
    def group_pcc(self) -> float:
        return self.correct_pairs / self.total_pairs * 100

    @property
    def incorrect_pairs(self) -> int:
        return self.total_pairs - self.correct_pairs

    @property
    def pairing_type(self) -> str:
        return self.spec.pairing_type

    @property
    def diff_threshold(self) -> float:
        return self.spec.diff_threshold

    @property
    def n_rows(self) -> int:
        return self.data.shape[0]

    # ── chance-values ────────────────────────────────────────────────

    @property
    def has_chance_values(self) -> bool:
        return self.chance is not None

    def _require_chance(self) -> ChanceValues:
        if self.chance is None:
            raise InvalidConfigError(
                "chance-values have not been computed; call add_chance_values() first"
            )
        return self.chance

    @property
    def group_cval(self) -> float:
        return self._require_chance().group_cval

    @property
    def individual_cvals(self) -> np.ndarray:
        return self._require_chance().individual_cvals

    @property
    def n_permutations(self) -> int:
        return self._require_chance().n_permutations

    @property
    def pccs_geq_observed(self) -> int:
        return self._require_chance().pccs_geq_observed

    @property
    def pcc_replicates(self) -> np.ndarray:
        return self._require_chance().pcc_replicates

    @property
    def group_replicate_pccs(self) -> Optional[np.ndarray]:
        return self._require_chance().group_replicate_pccs

    @property
    def cval_method(self) -> str:
        return self._require_chance().method

    @property
    def nreps(self) -> Optional[int]:
        return self._require_chance().nreps


@dataclass(frozen=True, eq=False)
class MultiGroupFit:
    """One ``SingleGroupFit`` per group level plus pooled totals.

    Per-row arrays are returned in the original row order; ``group_labels``
    gives each row's level and each per-group fit's ``row_ids`` maps its
    rows back to the original data.
    """
    kind: ClassVar[str] = "multi_group"

    hypothesis: Hypothesis
    spec: FitSpec
    data: np.ndarray
    columns: Tuple[str, ...]
    levels: Tuple[Any, ...]
    group_labels: np.ndarray
    groups: Mapping[Any, SingleGroupFit]

    def __post_init__(self):
        object.__setattr__(self, "groups", dict(self.groups))

    def __getitem__(self, level) -> SingleGroupFit:
        return self.groups[level]

    def _scatter(self, fn) -> np.ndarray:
        out = np.full(self.data.shape[0], np.nan)
        for g in self.groups.values():
            out[g.row_ids] = fn(g)
        out.setflags(write=False)
        return out

    # ── scoring ──────────────────────────────────────────────────────

    @property
    def pairing_type(self) -> str:
        return self.spec.pairing_type

    @property
    def diff_threshold(self) -> float:
        return self.spec.diff_threshold

    def _pooled(self) -> PooledCounts:
        return pool_counts(
            PooledCounts(g.correct_pairs, g.total_pairs) for g in self.groups.values()
        )

    @property
    def correct_pairs(self) -> int:
        return self._pooled().correct_pairs

    @property
    def total_pairs(self) -> int:
        return self._pooled().total_pairs

    @property
    def incorrect_pairs(self) -> int:
        return self.total_pairs - self.correct_pairs

    @property
    def pooled_pcc(self) -> float:
        return self._pooled().pcc

    @property
    def group_pccs(self) -> pd.Series:
        return pd.Series(
            [self.groups[lv].group_pcc for lv in self.levels],
            index=pd.Index(self.levels, name="group"),
            name="PCC",
        )

    @property
    def individual_pccs(self) -> np.ndarray:
        return self._scatter(lambda g: g.individual_pccs)

    @property
    def condition_pccs(self) -> Dict[Any, np.ndarray]:
        return {lv: self.groups[lv].condition_pccs for lv in self.levels}

    # ── chance-values ────────────────────────────────────────────────

    @property
    def has_chance_values(self) -> bool:
        return all(g.has_chance_values for g in self.groups.values())

    @property
    def n_permutations(self) -> int:
        return sum(g.n_permutations for g in self.groups.values())

    @property
    def pccs_geq_observed(self) -> int:
        return sum(g.pccs_geq_observed for g in self.groups.values())

    @property
    def pooled_cval(self) -> float:
        groups = [self.groups[lv].chance for lv in self.levels]
        if any(c is None for c in groups):
            raise InvalidConfigError(
                "chance-values have not been computed; call add_chance_values() first"
            )
        return pooled_ratio(
            [c.pccs_geq_observed for c in groups], [c.n_permutations for c in groups]
        )

    @property
    def group_cvals(self) -> pd.Series:
        return pd.Series(
            [self.groups[lv].group_cval for lv in self.levels],
            index=pd.Index(self.levels, name="group"),
            name="cval",
        )

    @property
    def individual_cvals(self) -> np.ndarray:
        return self._scatter(lambda g: g.individual_cvals)

    @property
    def group_replicate_pccs(self) -> Dict[Any, Optional[np.ndarray]]:
        return {lv: self.groups[lv].group_replicate_pccs for lv in self.levels}

    @property
    def cval_method(self) -> str:
        return self.groups[self.levels[0]].cval_method

    @property
    def nreps(self) -> Optional[int]:
        return self.groups[self.levels[0]].nreps


@dataclass(frozen=True, eq=False)
class HypothesisComparison:
    """Difference in group PCC between two hypotheses fit to the same data."""
    kind: ClassVar[str] = "hypothesis_comparison"

    h1: Hypothesis
    h2: Hypothesis
    h1_pcc: float
    h2_pcc: float
    pcc_diff: float
    cval: float
    pcc_diff_dist: np.ndarray
    two_tailed: bool = True

    @property
    def n_replicates(self) -> int:
        return len(self.pcc_diff_dist)


@dataclass(frozen=True, eq=False)
class GroupComparison:
    """Difference in group PCC between two levels of a grouped fit."""
    kind: ClassVar[str] = "group_comparison"

    group1: Any
    group2: Any
    group1_pcc: float
    group2_pcc: float
    pcc_diff: float
    cval: float
    pcc_diff_dist: np.ndarray
    two_tailed: bool = True

    @property
    def n_replicates(self) -> int:
        return len(self.pcc_diff_dist)


@dataclass(frozen=True, eq=False)
class ConditionComparison:
    """PCCs and chance-values for every pair of conditions.

    ``pccs[j, i]`` and ``cvals[j, i]`` (``i < j``) hold the result of the
    two-condition fit of columns ``i`` and ``j``; the diagonal and upper
    triangle are NaN.
    """
    kind: ClassVar[str] = "condition_comparison"

    columns: Tuple[str, ...]
    pccs: np.ndarray
    cvals: np.ndarray
    n_permutations: np.ndarray
    method: str
    nreps: Optional[int]

    @property
    def n_conditions(self) -> int:
        return len(self.columns)


OpaFit = Union[SingleGroupFit, MultiGroupFit]
OpaResult = Union[
    SingleGroupFit,
    MultiGroupFit,
    HypothesisComparison,
    GroupComparison,
    ConditionComparison,
]
