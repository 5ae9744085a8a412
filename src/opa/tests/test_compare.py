"""Tests for _compare.py."""

import numpy as np
import pandas as pd
import pytest

from opa import compare_conditions, compare_groups, compare_hypotheses, fit, opa
from opa._errors import DegenerateRowError, InvalidConfigError, ShapeMismatchError


# ── helpers ──────────────────────────────────────────────────────────

def _pcc_dat():
    return pd.DataFrame({
        "t1": [9, 4, 8, 10],
        "t2": [8, 8, 12, 10],
        "t3": [8, 5, 10, 11],
    })


def _grouped(seed=0):
    rng = np.random.default_rng(seed)
    base = np.arange(4, dtype=float)
    rising = base + rng.normal(scale=0.5, size=(10, 4))
    noise = rng.normal(size=(10, 4))
    dat = pd.DataFrame(np.vstack([rising, noise]), columns=list("abcd"))
    return dat, ["rising"] * 10 + ["noise"] * 10


# ── compare_hypotheses ───────────────────────────────────────────────

class TestCompareHypotheses:
    def test_self_comparison(self):
        m = opa(_pcc_dat(), [1, 2, 3], nreps=200, seed=1)
        c = compare_hypotheses(m, m)
        assert c.kind == "hypothesis_comparison"
        assert c.pcc_diff == 0
        assert c.cval == 1.0
        np.testing.assert_array_equal(c.pcc_diff_dist, np.zeros(200))

    def test_observed_difference(self):
        m1 = opa(_pcc_dat(), [1, 2, 3], nreps=500, seed=1)
        m2 = opa(_pcc_dat(), [1, 3, 2], nreps=500, seed=1)
        c = compare_hypotheses(m1, m2)
        assert c.h1_pcc == pytest.approx(m1.group_pcc)
        assert c.h2_pcc == pytest.approx(m2.group_pcc)
        assert c.pcc_diff == pytest.approx(abs(m1.group_pcc - m2.group_pcc))
        assert c.n_replicates == 500
        assert 0 <= c.cval <= 1

    def test_symmetric(self):
        m1 = opa(_pcc_dat(), [1, 2, 3], nreps=300, seed=4)
        m2 = opa(_pcc_dat(), [3, 2, 1], nreps=300, seed=4)
        assert compare_hypotheses(m1, m2).cval == compare_hypotheses(m2, m1).cval

    def test_one_tailed_not_above_two_tailed(self):
        m1 = opa(_pcc_dat(), [1, 2, 3], nreps=300, seed=4)
        m2 = opa(_pcc_dat(), [2, 1, 3], nreps=300, seed=4)
        two = compare_hypotheses(m1, m2, two_tailed=True)
        one = compare_hypotheses(m1, m2, two_tailed=False)
        assert one.cval <= two.cval
        assert not one.two_tailed

    def test_requires_chance_values(self):
        m = fit(_pcc_dat(), [1, 2, 3])
        with pytest.raises(InvalidConfigError, match="chance-values"):
            compare_hypotheses(m, m)

    def test_mismatched_settings(self):
        m1 = opa(_pcc_dat(), [1, 2, 3], nreps=100, seed=1)
        m2 = opa(_pcc_dat(), [1, 3, 2], nreps=200, seed=1)
        with pytest.raises(InvalidConfigError, match="different chance-value settings"):
            compare_hypotheses(m1, m2)

    def test_mismatched_data(self):
        m1 = opa(_pcc_dat(), [1, 2, 3], nreps=100, seed=1)
        m2 = opa(_pcc_dat().iloc[:3], [1, 2, 3], nreps=100, seed=1)
        with pytest.raises(ShapeMismatchError):
            compare_hypotheses(m1, m2)

    def test_rejects_grouped(self):
        dat, g = _grouped()
        m = opa(dat, [1, 2, 3, 4], group=g, nreps=50, seed=0)
        with pytest.raises(InvalidConfigError, match="compare_groups"):
            compare_hypotheses(m, m)

    def test_unequal_exact_counts(self):
        dat = pd.DataFrame({"t1": [1, np.nan], "t2": [2, 1], "t3": [3, 2]})
        m = opa(dat, [1, 2, 3], cval_method="exact")
        with pytest.raises(InvalidConfigError, match="permutation counts"):
            compare_hypotheses(m, m)


# ── compare_groups ───────────────────────────────────────────────────

class TestCompareGroups:
    def test_difference(self):
        dat, g = _grouped()
        m = opa(dat, [1, 2, 3, 4], group=g, nreps=500, seed=0)
        c = compare_groups(m, "rising", "noise")
        assert c.kind == "group_comparison"
        assert c.group1_pcc > c.group2_pcc
        assert c.pcc_diff == pytest.approx(c.group1_pcc - c.group2_pcc)
        assert c.cval < 0.05

    def test_same_group(self):
        dat, g = _grouped()
        m = opa(dat, [1, 2, 3, 4], group=g, nreps=100, seed=0)
        c = compare_groups(m, "noise", "noise")
        assert c.pcc_diff == 0
        assert c.cval == 1.0

    def test_unknown_group(self):
        dat, g = _grouped()
        m = opa(dat, [1, 2, 3, 4], group=g, nreps=50, seed=0)
        with pytest.raises(InvalidConfigError, match="unknown group"):
            compare_groups(m, "rising", "flat")

    def test_requires_grouped_model(self):
        m = opa(_pcc_dat(), [1, 2, 3], nreps=50, seed=0)
        with pytest.raises(InvalidConfigError, match="at least 2 groups"):
            compare_groups(m, "a", "b")


# ── compare_conditions ───────────────────────────────────────────────

class TestCompareConditions:
    def test_pccs(self):
        m = opa(_pcc_dat(), [1, 2, 3], nreps=200, seed=2)
        c = compare_conditions(m, seed=2)
        assert c.kind == "condition_comparison"
        assert c.columns == ("t1", "t2", "t3")
        assert c.pccs[1, 0] == pytest.approx(50.0)
        assert c.pccs[2, 0] == pytest.approx(75.0)
        assert c.pccs[2, 1] == pytest.approx(25.0)
        assert np.isnan(c.pccs[0, 1])
        assert np.isnan(c.cvals[0, 0])
        assert c.method == "stochastic"
        assert c.nreps == 200

    def test_exact(self):
        dat = pd.DataFrame({"t1": [1, 1, 1, 1], "t2": [2, 2, 2, 2], "t3": [3, 3, 3, 0]})
        m = fit(dat, [1, 2, 3])
        c = compare_conditions(m, cval_method="exact")
        assert c.nreps is None
        assert c.pccs[1, 0] == 100.0
        # Every row of a two-value problem has 2 orderings.
        assert c.n_permutations[1, 0] == 8
        assert c.cvals[1, 0] == pytest.approx(0.5)

    def test_defaults_from_model(self):
        m = opa(_pcc_dat(), [1, 2, 3], nreps=123, seed=0)
        c = compare_conditions(m, seed=0)
        assert c.nreps == 123

    def test_missing_values_use_complete_pairs(self):
        dat = pd.DataFrame({"t1": [1, 1, np.nan], "t2": [2, 0, 2], "t3": [3, 3, 1]})
        c = compare_conditions(fit(dat, [1, 2, 3]), nreps=50, seed=0)
        assert c.pccs[1, 0] == pytest.approx(50.0)
        assert c.n_permutations[1, 0] == 100
        assert c.n_permutations[2, 1] == 150

    def test_no_complete_rows(self):
        dat = pd.DataFrame({"t1": [1, np.nan], "t2": [np.nan, 2], "t3": [3, 3]})
        with pytest.raises(DegenerateRowError):
            compare_conditions(fit(dat, [1, 2, 3]), nreps=10, seed=0)

    def test_grouped_pooled(self):
        dat, g = _grouped()
        m = fit(dat, [1, 2, 3, 4], group=g)
        c = compare_conditions(m, nreps=20, seed=0)
        assert c.n_conditions == 4
        assert c.n_permutations[3, 0] == 20 * 20
