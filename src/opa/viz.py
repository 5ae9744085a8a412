"""
Plots of OPA results.

Every function draws onto the ``Axes`` it is given (or a new figure when
none is passed) and returns the axes. Nothing here changes matplotlib's
global style state.
"""

from typing import Optional, Sequence

import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
import numpy as np

from ._errors import InvalidConfigError


def _new_axes(ax, figsize=(5, 4)):
    if ax is None:
        _, ax = plt.subplots(figsize=figsize)
    return ax


def _require_fit(model, fn_name: str):
    if model.kind not in ("single_group", "multi_group"):
        raise InvalidConfigError(f"{fn_name}() needs a fitted model, got {model.kind!r}")


def _row_colors(model, default: str):
    """Per-row colours (by group for grouped fits) and legend handles."""
    n = model.data.shape[0]
    if model.kind != "multi_group":
        return [default] * n, []
    cmap = plt.get_cmap("tab10")
    lookup = {lv: cmap(k % 10) for k, lv in enumerate(model.levels)}
    handles = [
        Line2D([], [], marker="o", linestyle="", color=c, label=str(lv))
        for lv, c in lookup.items()
    ]
    return [lookup[lv] for lv in model.group_labels], handles


def _lollipop(ax, values: np.ndarray, colors, xlabel: str):
    rows = np.arange(len(values))
    ax.hlines(rows, 0, values, color="black", linewidth=0.6)
    ax.scatter(values, rows, c=colors, edgecolors="black", zorder=3)
    ax.set_yticks(rows)
    ax.set_yticklabels([str(r) for r in rows])
    ax.invert_yaxis()
    ax.set_xlabel(xlabel)
    ax.grid(axis="x", alpha=0.3)


def plot_pccs(model, axes: Optional[Sequence] = None):
    """Per-row PCCs and, if computed, chance-values as dot plots.

    Parameters
    ----------
    model : SingleGroupFit or MultiGroupFit
    axes : sequence of Axes, optional
        One axes (PCCs only) or two (PCCs, chance-values).

    Returns
    -------
    list of Axes
    """
    _require_fit(model, "plot_pccs")
    n_panels = 2 if model.has_chance_values else 1
    if axes is None:
        _, axes = plt.subplots(1, n_panels, figsize=(4 * n_panels, 4), squeeze=False)
        axes = list(axes[0])
    axes = list(axes)
    if len(axes) < n_panels:
        raise InvalidConfigError(f"plot_pccs() needs {n_panels} axes, got {len(axes)}")

    colors, handles = _row_colors(model, "royalblue")
    _lollipop(axes[0], model.individual_pccs, colors, "PCC")
    axes[0].set_ylabel("Individual")
    if n_panels == 2:
        _lollipop(axes[1], model.individual_cvals, colors, "c-value")
    if handles:
        axes[0].legend(handles=handles, title="group", loc="lower right", fontsize=8)
    return axes


def pcc_threshold_plot(model, pcc_threshold: float = 75, ax=None):
    """Per-row PCCs relative to a PCC threshold (dashed red line)."""
    _require_fit(model, "pcc_threshold_plot")
    ax = _new_axes(ax)
    colors, handles = _row_colors(model, "royalblue")
    _lollipop(ax, model.individual_pccs, colors, "PCC")
    ax.axvline(pcc_threshold, color="red", linestyle="--", linewidth=1)
    ax.set_ylabel("Individual")
    if handles:
        ax.legend(handles=handles, title="group", loc="lower right", fontsize=8)
    return ax


def plot_hypothesis(
    h,
    xlabels: Optional[Sequence] = None,
    ax=None,
    point_size: float = 80,
    fill_color: str = "#CCCCCC",
):
    """Draw a hypothesis as points on a relative Lower/Higher scale."""
    if getattr(h, "kind", None) != "hypothesis":
        raise InvalidConfigError("plot_hypothesis() needs a Hypothesis")
    values = h.values
    if xlabels is None:
        xlabels = [str(k + 1) for k in range(len(values))]
    if len(xlabels) != len(values):
        raise InvalidConfigError("xlabels must be the same length as the hypothesis")

    ax = _new_axes(ax)
    x = np.arange(len(values))
    ax.scatter(x, values, s=point_size, c=fill_color, edgecolors="black", zorder=3)
    ax.set_xticks(x)
    ax.set_xticklabels([str(v) for v in xlabels])
    ax.set_xlim(-0.3, len(values) - 0.7)
    lo, hi = values.min(), values.max()
    ax.set_ylim(lo - 0.3, hi + 0.3)
    ax.set_yticks([lo, hi] if hi > lo else [lo])
    ax.set_yticklabels(["Lower", "Higher"] if hi > lo else ["Equal"])
    ax.set_ylabel("Relative value")
    return ax


def plot_comparison(comparison, ax=None, bins: int = 30):
    """Histogram of replicate PCC differences with the observed difference."""
    if comparison.kind not in ("hypothesis_comparison", "group_comparison"):
        raise InvalidConfigError(
            f"plot_comparison() needs a hypothesis or group comparison, got {comparison.kind!r}"
        )
    ax = _new_axes(ax)
    ax.hist(comparison.pcc_diff_dist, bins=bins, color="#CCCCCC", edgecolor="black")
    ax.axvline(comparison.pcc_diff, color="red", linestyle="--", linewidth=1)
    if comparison.two_tailed and comparison.pcc_diff > 0:
        ax.axvline(-comparison.pcc_diff, color="red", linestyle="--", linewidth=1)
    ax.set_xlabel("PCC difference")
    ax.set_ylabel("Replicates")
    ax.set_title(f"c-value = {comparison.cval:.3f}")
    return ax


def plot_reference_distribution(model, ax=None, bins: int = 30):
    """Histogram of group-level replicate PCCs with the observed group PCC."""
    _require_fit(model, "plot_reference_distribution")
    if not model.has_chance_values:
        raise InvalidConfigError("plot_reference_distribution() needs chance-values")
    ax = _new_axes(ax)
    if model.kind == "single_group":
        series = {None: (model.group_replicate_pccs, model.group_pcc)}
    else:
        series = {
            lv: (g.group_replicate_pccs, g.group_pcc) for lv, g in model.groups.items()
        }
    cmap = plt.get_cmap("tab10")
    for k, (lv, (reps, observed)) in enumerate(series.items()):
        if reps is None:
            raise InvalidConfigError(
                "group-level replicate PCCs are unavailable (unequal permutation counts)"
            )
        color = cmap(k % 10)
        label = None if lv is None else str(lv)
        ax.hist(reps, bins=bins, color=color, alpha=0.5, label=label)
        ax.axvline(observed, color=color, linestyle="--", linewidth=1)
    if model.kind == "multi_group":
        ax.legend(title="group", fontsize=8)
    ax.set_xlabel("Replicate PCC")
    ax.set_ylabel("Replicates")
    return ax
