"""
Ordinal Pattern Analysis.

Scores how well a hypothesised relative ordering of repeated measurements
matches each individual's data (percent correct classification, PCC), and
estimates how often a random reordering of the data would match at least
as well (chance-value), either exhaustively or by Monte Carlo sampling.

Usage::

    import opa

    h = opa.hypothesis([1, 2, 3, 4])
    m = opa.opa(df, h, nreps=1000, seed=42)
    print(opa.summary(m))

    # Two-step form
    m = opa.fit(df, h, diff_threshold=0.5)
    m = opa.add_chance_values(m, method="exact")

    # Comparisons
    c = opa.compare_hypotheses(m1, m2)          # same data, same seed
    g = opa.compare_groups(grouped, "a", "b")
    p = opa.compare_conditions(m)

References
----------
Grice, J. W., Craig, D. P. A., & Abramson, C. I. (2015). A Simple and
Transparent Alternative to Repeated Measures ANOVA. SAGE Open, 5(3).

Thorngate, W. (1987). Ordinal Pattern Analysis: A Method for Assessing
Theory-Data Fit. Advances in Psychology, 40, 345-364.
"""

from ._errors import (
    OpaError,
    ShapeMismatchError,
    InvalidConfigError,
    DegenerateRowError,
    FitTimeoutError,
    CombinatorialBlowupWarning,
)
from ._hypothesis import Hypothesis, hypothesis
from ._ordering import (
    sign_with_threshold,
    all_diffs,
    adjacent_diffs,
    ordering,
    conform,
    n_relations,
)
from ._spec import FitSpec, CvalSpec
from ._scoring import RowFit, row_pcc
from ._aggregator import PooledCounts, pool_rows, condition_pair_pccs
from ._results import (
    ChanceValues,
    SingleGroupFit,
    MultiGroupFit,
    HypothesisComparison,
    GroupComparison,
    ConditionComparison,
    OpaFit,
    OpaResult,
)
from ._engine import add_chance_values
from ._fit import fit, opa
from ._compare import compare_hypotheses, compare_groups, compare_conditions
from .report import (
    summary,
    group_results,
    individual_results,
    condition_tables,
    format_cval,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "OpaError",
    "ShapeMismatchError",
    "InvalidConfigError",
    "DegenerateRowError",
    "FitTimeoutError",
    "CombinatorialBlowupWarning",
    # Hypotheses and encoding
    "Hypothesis",
    "hypothesis",
    "sign_with_threshold",
    "all_diffs",
    "adjacent_diffs",
    "ordering",
    "conform",
    "n_relations",
    # Configuration
    "FitSpec",
    "CvalSpec",
    # Scoring
    "RowFit",
    "row_pcc",
    "PooledCounts",
    "pool_rows",
    "condition_pair_pccs",
    # Results
    "ChanceValues",
    "SingleGroupFit",
    "MultiGroupFit",
    "HypothesisComparison",
    "GroupComparison",
    "ConditionComparison",
    "OpaFit",
    "OpaResult",
    # Fitting and significance
    "fit",
    "opa",
    "add_chance_values",
    # Comparisons
    "compare_hypotheses",
    "compare_groups",
    "compare_conditions",
    # Presentation
    "summary",
    "group_results",
    "individual_results",
    "condition_tables",
    "format_cval",
]
