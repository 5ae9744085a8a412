"""
Comparisons between fitted models.

Hypothesis and group comparisons pair up two group-level replicate PCC
sequences draw by draw and ask how often the replicate difference is at
least as large as the observed difference. Condition comparisons re-run the
whole fit on every two-column sub-problem.
"""

import logging
from typing import Optional

import numpy as np

from ._engine import SeedLike, add_chance_values, root_seed, spawn_seeds
from ._errors import DegenerateRowError, InvalidConfigError, ShapeMismatchError
from ._fit import fit
from ._hypothesis import hypothesis as make_hypothesis
from ._results import (
    ConditionComparison,
    GroupComparison,
    HypothesisComparison,
    readonly,
)
from ._spec import CvalSpec

logger = logging.getLogger(__name__)


def _diff_cval(dist: np.ndarray, pcc_diff: float, two_tailed: bool) -> float:
    if two_tailed:
        return float(np.mean(np.abs(dist) >= pcc_diff))
    return float(np.mean(dist >= pcc_diff))


def _replicate_pair(r1, r2, what: str):
    if r1 is None or r2 is None:
        raise InvalidConfigError(
            f"{what}: group-level replicate PCCs are unavailable because rows have "
            f"different permutation counts; refit with cval_method='stochastic'"
        )
    if len(r1) != len(r2):
        raise ShapeMismatchError(
            f"{what}: replicate counts differ ({len(r1)} vs {len(r2)})"
        )
    return np.asarray(r1) - np.asarray(r2)


def compare_hypotheses(m1, m2, two_tailed: bool = True) -> HypothesisComparison:
    """Chance-value of the difference in PCC produced by two hypotheses.

    Both models must be ungrouped fits of the same data with chance-values
    computed the same way. For stochastic fits, use the same ``seed`` so
    that replicate ``r`` of each model scores the same reordering.

    Parameters
    ----------
    m1, m2 : SingleGroupFit
        Fits with chance-values.
    two_tailed : bool, default=True
        Count ``|d| >= pcc_diff`` if True, ``d >= pcc_diff`` otherwise, where
        ``d`` is ``m1`` minus ``m2`` per replicate.

    Returns
    -------
    HypothesisComparison
    """
    for m in (m1, m2):
        if m.kind != "single_group":
            raise InvalidConfigError(
                "multi-group fits cannot be compared with compare_hypotheses(); "
                "use compare_groups()"
            )
        if not m.has_chance_values:
            raise InvalidConfigError(
                "compare_hypotheses() needs fits with chance-values"
            )
    if m1.cval_method != m2.cval_method or m1.nreps != m2.nreps:
        raise InvalidConfigError(
            "models have different chance-value settings: "
            f"{m1.cval_method}/{m1.nreps} vs {m2.cval_method}/{m2.nreps}"
        )
    if m1.data.shape != m2.data.shape:
        raise ShapeMismatchError(
            f"models were fit to data of different shapes: {m1.data.shape} vs {m2.data.shape}"
        )

    dist = _replicate_pair(m1.group_replicate_pccs, m2.group_replicate_pccs,
                           "compare_hypotheses")
    pcc_diff = abs(m1.group_pcc - m2.group_pcc)
    return HypothesisComparison(
        h1=m1.hypothesis,
        h2=m2.hypothesis,
        h1_pcc=m1.group_pcc,
        h2_pcc=m2.group_pcc,
        pcc_diff=pcc_diff,
        cval=_diff_cval(dist, pcc_diff, two_tailed),
        pcc_diff_dist=readonly(dist),
        two_tailed=two_tailed,
    )


def compare_groups(model, group1, group2, two_tailed: bool = True) -> GroupComparison:
    """Chance-value of the difference in PCC between two groups.

    Parameters
    ----------
    model : MultiGroupFit
        Grouped fit with chance-values.
    group1, group2
        Levels of the grouping variable.
    two_tailed : bool, default=True
        See ``compare_hypotheses``.

    Returns
    -------
    GroupComparison
    """
    if model.kind != "multi_group":
        raise InvalidConfigError(
            "compare_groups() needs a model fit with at least 2 groups"
        )
    for level in (group1, group2):
        if level not in model.groups:
            raise InvalidConfigError(
                f"unknown group {level!r}; levels are {list(model.levels)}"
            )
    if not model.has_chance_values:
        raise InvalidConfigError("compare_groups() needs a fit with chance-values")

    g1, g2 = model.groups[group1], model.groups[group2]
    dist = _replicate_pair(g1.group_replicate_pccs, g2.group_replicate_pccs,
                           "compare_groups")
    pcc_diff = abs(g1.group_pcc - g2.group_pcc)
    return GroupComparison(
        group1=group1,
        group2=group2,
        group1_pcc=g1.group_pcc,
        group2_pcc=g2.group_pcc,
        pcc_diff=pcc_diff,
        cval=_diff_cval(dist, pcc_diff, two_tailed),
        pcc_diff_dist=readonly(dist),
        two_tailed=two_tailed,
    )


def compare_conditions(
    model,
    *,
    cval_method: Optional[str] = None,
    nreps: Optional[int] = None,
    seed: SeedLike = None,
    n_jobs: int = 1,
) -> ConditionComparison:
    """PCCs and chance-values for every pair of conditions.

    Each pair ``i < j`` is fit as its own two-condition problem: the rows
    with both values present, the two hypothesis values, the model's
    difference threshold. Grouped models are pooled across groups.

    Parameters
    ----------
    model : SingleGroupFit or MultiGroupFit
        Fitted model.
    cval_method : {"stochastic", "exact"}, optional
        Defaults to the model's method, or ``"stochastic"`` if the model has
        no chance-values.
    nreps : int, optional
        Defaults to the model's ``nreps``, or 1000.
    seed : None, int, SeedSequence or Generator
        One child stream is spawned per condition pair.
    n_jobs : int, default=1
        Passed to ``add_chance_values``.

    Returns
    -------
    ConditionComparison
    """
    if model.kind not in ("single_group", "multi_group"):
        raise InvalidConfigError(
            f"compare_conditions() needs a fitted model, got {model.kind!r}"
        )
    if cval_method is None:
        cval_method = model.cval_method if model.has_chance_values else "stochastic"
    if nreps is None:
        nreps = (model.nreps if model.has_chance_values else None) or 1000
    CvalSpec(method=cval_method, nreps=nreps)

    matrix = model.data
    h = model.hypothesis.values
    k = matrix.shape[1]
    n_pairs = k * (k - 1) // 2
    if cval_method == "stochastic":
        pair_seeds = spawn_seeds(root_seed(seed), n_pairs)
    else:
        pair_seeds = [None] * n_pairs

    pccs = np.full((k, k), np.nan)
    cvals = np.full((k, k), np.nan)
    n_perms = np.full((k, k), np.nan)
    n = 0
    for i in range(k - 1):
        for j in range(i + 1, k):
            sub = matrix[:, [i, j]]
            sub = sub[~np.isnan(sub).any(axis=1)]
            if len(sub) == 0:
                raise DegenerateRowError(
                    f"conditions {model.columns[i]!r} and {model.columns[j]!r} "
                    f"have no rows with both values present"
                )
            sub_fit = fit(
                sub,
                make_hypothesis(h[[i, j]], "pairwise"),
                diff_threshold=model.diff_threshold,
            )
            sub_fit = add_chance_values(
                sub_fit, cval_method, nreps, seed=pair_seeds[n], n_jobs=n_jobs,
            )
            pccs[j, i] = sub_fit.group_pcc
            cvals[j, i] = sub_fit.group_cval
            n_perms[j, i] = sub_fit.n_permutations
            logger.debug(
                f"Conditions {model.columns[i]} vs {model.columns[j]}: "
                f"PCC={sub_fit.group_pcc:.2f}, cval={sub_fit.group_cval:.3f}"
            )
            n += 1

    return ConditionComparison(
        columns=model.columns,
        pccs=readonly(pccs),
        cvals=readonly(cvals),
        n_permutations=readonly(n_perms),
        method=cval_method,
        nreps=nreps if cval_method == "stochastic" else None,
    )
