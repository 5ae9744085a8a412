"""
Fitting ordinal pattern analysis models.

``fit()`` computes PCCs for every row and pools them; ``opa()`` also
attaches chance-values. Grouped fits are a fold over group levels: each
level is fit independently into its own immutable ``SingleGroupFit`` and
the grand totals are pooled from those.
"""

import logging
from typing import Any, Optional

import numpy as np

from ._aggregator import condition_pair_pccs, pool_rows
from ._engine import SeedLike, add_chance_values
from ._hypothesis import Hypothesis, hypothesis as make_hypothesis
from ._preflight import as_matrix, check_shapes, resolve_groups
from ._results import MultiGroupFit, OpaFit, SingleGroupFit, readonly
from ._scoring import score_rows
from ._spec import CvalSpec, FitSpec

logger = logging.getLogger(__name__)


def _fit_group(
    matrix: np.ndarray,
    columns,
    h: Hypothesis,
    spec: FitSpec,
    row_ids: np.ndarray,
    label: Any = None,
) -> SingleGroupFit:
    row_fits = score_rows(matrix, h.values, spec.pairing_type, spec.diff_threshold, row_ids)
    pooled = pool_rows(row_fits)
    return SingleGroupFit(
        hypothesis=h,
        spec=spec,
        data=readonly(matrix),
        columns=columns,
        row_ids=readonly(row_ids, dtype=np.intp),
        individual_pccs=readonly([f.pcc for f in row_fits], dtype=float),
        individual_correct_pairs=readonly([f.correct_pairs for f in row_fits], dtype=np.int64),
        individual_n_pairs=readonly([f.n_pairs for f in row_fits], dtype=np.int64),
        correct_pairs=pooled.correct_pairs,
        total_pairs=pooled.total_pairs,
        condition_pccs=readonly(condition_pair_pccs(matrix, h.values, spec.diff_threshold)),
        label=label,
    )


def fit(
    data,
    hypothesis,
    group=None,
    *,
    pairing_type: Optional[str] = None,
    diff_threshold: float = 0.0,
) -> OpaFit:
    """Compute PCCs of a hypothesis against wide-format data.

    Parameters
    ----------
    data : pd.DataFrame or array-like, shape (n_rows, n_conditions)
        One row per individual, one numeric column per condition. Missing
        values are allowed; each row needs at least 2 present values.
    hypothesis : Hypothesis or sequence of float
        Hypothesised relative ordering, one value per column.
    group : array-like, optional
        Group label per row (at least 2 levels). Categorical input keeps its
        category order.
    pairing_type : {"pairwise", "adjacent"}, optional
        Defaults to the hypothesis' own pairing type, else ``"pairwise"``.
    diff_threshold : float, default=0.0
        Data differences within ``+/- diff_threshold`` count as ties.

    Returns
    -------
    SingleGroupFit or MultiGroupFit
        Without chance-values; see ``add_chance_values``.

    Examples
    --------
    >>> m = fit([[1, 2, 4], [3, 2, 1], [1, 1, 1], [1, 2, 1]], [1, 2, 3])
    >>> m.correct_pairs, m.total_pairs
    (4, 12)
    """
    h = make_hypothesis(hypothesis, pairing_type)
    spec = FitSpec(pairing_type=h.pairing_type, diff_threshold=diff_threshold)
    matrix, columns = as_matrix(data)
    check_shapes(matrix, h)
    n_rows = matrix.shape[0]

    if group is None:
        logger.debug(f"Fitting {n_rows} rows x {matrix.shape[1]} conditions")
        return _fit_group(matrix, columns, h, spec, np.arange(n_rows))

    labels, levels = resolve_groups(group, n_rows)
    logger.debug(
        f"Fitting {n_rows} rows x {matrix.shape[1]} conditions in {len(levels)} groups"
    )
    groups = {}
    for level in levels:
        idx = np.flatnonzero(labels == level)
        groups[level] = _fit_group(matrix[idx], columns, h, spec, idx, label=level)

    return MultiGroupFit(
        hypothesis=h,
        spec=spec,
        data=matrix,
        columns=columns,
        levels=levels,
        group_labels=readonly(labels, dtype=object),
        groups=groups,
    )


def opa(
    data,
    hypothesis,
    group=None,
    *,
    pairing_type: Optional[str] = None,
    diff_threshold: float = 0.0,
    cval_method: str = "stochastic",
    nreps: int = 1000,
    seed: SeedLike = None,
    n_jobs: int = 1,
    progress: bool = False,
    timeout: Optional[float] = None,
) -> OpaFit:
    """Fit an ordinal pattern analysis model with chance-values.

    Equivalent to ``add_chance_values(fit(...), ...)``, with every option
    validated before any scoring starts.

    Parameters
    ----------
    data, hypothesis, group, pairing_type, diff_threshold
        See ``fit``.
    cval_method : {"stochastic", "exact"}
        How reference distributions are built. ``"exact"`` grows with the
        factorial of the number of conditions.
    nreps : int, default=1000
        Random reorderings per row for ``"stochastic"``.
    seed, n_jobs, progress, timeout
        See ``add_chance_values``.

    Examples
    --------
    >>> import pandas as pd
    >>> dat = pd.DataFrame({"t1": [9, 4, 8, 10], "t2": [8, 8, 12, 10], "t3": [8, 5, 10, 11]})
    >>> m = opa(dat, [1, 2, 3], seed=1)
    >>> m.group_pcc
    50.0
    """
    CvalSpec(method=cval_method, nreps=nreps)
    model = fit(
        data,
        hypothesis,
        group,
        pairing_type=pairing_type,
        diff_threshold=diff_threshold,
    )
    return add_chance_values(
        model,
        cval_method,
        nreps,
        seed=seed,
        n_jobs=n_jobs,
        progress=progress,
        timeout=timeout,
    )
