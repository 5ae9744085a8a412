"""
Text and table presentation of OPA results.

All functions read public fields of the result containers only and
dispatch on ``result.kind``.
"""

from typing import Tuple

import numpy as np
import pandas as pd

from ._errors import InvalidConfigError


def format_cval(cval: float, n_permutations: int, digits: int = 2) -> str:
    """Format a chance-value, showing 0 as ``<1/n_permutations``.

    Examples
    --------
    >>> format_cval(0.0, 1000)
    '<0.001'
    >>> format_cval(0.4567, 1000)
    '0.46'
    """
    if np.isnan(cval):
        return "-"
    if cval == 0:
        return f"<{1 / n_permutations:g}"
    return str(round(float(cval), digits))


def _fmt_values(values) -> str:
    return " ".join(f"{v:g}" for v in values)


# ── tables ───────────────────────────────────────────────────────────

def group_results(model, digits: int = 2) -> pd.DataFrame:
    """Group-level PCC and chance-value.

    One row (``"pooled"``) for an ungrouped fit; one row per level plus a
    ``"pooled"`` row for a grouped fit. The ``cval`` column is present only
    once chance-values have been computed.
    """
    if model.kind == "single_group":
        rows = {"pooled": _group_row(model.group_pcc, model, "group_cval")}
    elif model.kind == "multi_group":
        rows = {lv: _group_row(g.group_pcc, g, "group_cval") for lv, g in model.groups.items()}
        rows["pooled"] = _group_row(model.pooled_pcc, model, "pooled_cval")
    else:
        raise InvalidConfigError(f"group_results() needs a fitted model, got {model.kind!r}")
    out = pd.DataFrame.from_dict(rows, orient="index")
    out.index.name = "group"
    return out.round(digits)


def _group_row(pcc: float, source, cval_attr: str) -> dict:
    row = {"PCC": pcc}
    if source.has_chance_values:
        row["cval"] = getattr(source, cval_attr)
    return row


def individual_results(model, digits: int = 2) -> pd.DataFrame:
    """Per-row PCCs (and chance-values), in original row order."""
    if model.kind not in ("single_group", "multi_group"):
        raise InvalidConfigError(
            f"individual_results() needs a fitted model, got {model.kind!r}"
        )
    out = pd.DataFrame({"PCC": model.individual_pccs})
    if model.kind == "multi_group":
        out.insert(0, "group", model.group_labels)
    if model.has_chance_values:
        out["cval"] = model.individual_cvals
    out.index.name = "row"
    return out.round(digits)


def condition_tables(
    comparison, digits: int = 3,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Render a ``ConditionComparison`` as two lower-triangular tables.

    Cells on or above the diagonal hold ``"-"``; zero chance-values are
    shown as ``<1/n``.
    """
    if comparison.kind != "condition_comparison":
        raise InvalidConfigError(
            f"condition_tables() needs a condition comparison, got {comparison.kind!r}"
        )
    k = comparison.n_conditions
    pccs = np.full((k, k), "-", dtype=object)
    cvals = np.full((k, k), "-", dtype=object)
    for j in range(k):
        for i in range(j):
            pccs[j, i] = str(round(float(comparison.pccs[j, i]), digits))
            cvals[j, i] = format_cval(
                comparison.cvals[j, i], int(comparison.n_permutations[j, i]), digits,
            )
    labels = list(comparison.columns)
    return (
        pd.DataFrame(pccs, index=labels, columns=labels),
        pd.DataFrame(cvals, index=labels, columns=labels),
    )


# ── summaries ────────────────────────────────────────────────────────

def summary(result, digits: int = 2) -> str:
    """Human-readable summary of any OPA result or hypothesis."""
    kind = getattr(result, "kind", None)
    if kind == "hypothesis":
        return _summary_hypothesis(result)
    elif kind in ("single_group", "multi_group"):
        return _summary_fit(result, digits)
    elif kind == "hypothesis_comparison":
        return _summary_hypothesis_comparison(result, digits)
    elif kind == "group_comparison":
        return _summary_group_comparison(result, digits)
    elif kind == "condition_comparison":
        return _summary_condition_comparison(result)
    else:
        raise InvalidConfigError(f"no summary available for {type(result).__name__}")


def _summary_hypothesis(h) -> str:
    return "\n".join([
        "********** Ordinal Hypothesis **********",
        f"Hypothesis: {_fmt_values(h.raw)}",
        f"Ordinal relations: {_fmt_values(h.ordering)}",
        f"N conditions: {h.n_conditions}",
        f"N {h.pairing_type} ordinal relations: {h.n_relations}",
    ])


def _summary_fit(model, digits: int) -> str:
    n_rows, k = model.data.shape
    n_groups = 1 if model.kind == "single_group" else len(model.levels)
    lines = [
        f"Ordinal Pattern Analysis of {k} observations for {n_rows} individuals "
        f"in {n_groups} group{'s' if n_groups > 1 else ''}",
        "",
        "Between subjects results:",
        group_results(model, digits).to_string(),
        "",
        "Within subjects results:",
        individual_results(model, digits).to_string(),
        "",
        f"PCCs were calculated for {model.pairing_type} ordinal relationships "
        f"using a difference threshold of {model.diff_threshold:g}.",
    ]
    if model.has_chance_values:
        lines.append(
            f"Chance-values were calculated using the {model.cval_method} method "
            f"({model.n_permutations} reorderings in total)."
        )
    return "\n".join(lines)


def _summary_hypothesis_comparison(c, digits: int) -> str:
    return "\n".join([
        "********* Hypothesis Comparison **********",
        f"H1: {_fmt_values(c.h1.raw)}",
        f"H2: {_fmt_values(c.h2.raw)}",
        f"H1 PCC: {round(c.h1_pcc, digits)}",
        f"H2 PCC: {round(c.h2_pcc, digits)}",
        f"PCC difference: {round(c.pcc_diff, digits)}",
        f"cval: {format_cval(c.cval, c.n_replicates, digits)}",
    ])


def _summary_group_comparison(c, digits: int) -> str:
    return "\n".join([
        "********* Group Comparison **********",
        f"Group 1: {c.group1}",
        f"Group 2: {c.group2}",
        f"Group 1 PCC: {round(c.group1_pcc, digits)}",
        f"Group 2 PCC: {round(c.group2_pcc, digits)}",
        f"PCC difference: {round(c.pcc_diff, digits)}",
        f"cval: {format_cval(c.cval, c.n_replicates, digits)}",
    ])


def _summary_condition_comparison(c) -> str:
    pccs, cvals = condition_tables(c)
    return "\n".join([
        "Pairwise PCCs:",
        pccs.to_string(),
        "",
        "Pairwise chance-values:",
        cvals.to_string(),
    ])
