"""Tests for _fit.py: PCCs and exact chance-values on small reference data."""

import numpy as np
import pandas as pd
import pytest

from opa import fit, hypothesis, opa
from opa._errors import DegenerateRowError, InvalidConfigError, ShapeMismatchError


# ── helpers ──────────────────────────────────────────────────────────

def _test_dat():
    return pd.DataFrame({
        "t1": [1, 3, 1, 1],
        "t2": [2, 2, 1, 2],
        "t3": [4, 1, 1, 1],
    })


H = [1, 2, 3]


# ── pairwise ─────────────────────────────────────────────────────────

class TestPairwise:
    def test_counts(self):
        m = fit(_test_dat(), H)
        assert m.kind == "single_group"
        assert m.total_pairs == 12
        assert m.correct_pairs == 4
        assert m.incorrect_pairs == 8
        assert m.group_pcc == pytest.approx(100 / 3)

    def test_individual_pccs(self):
        m = fit(_test_dat(), H)
        np.testing.assert_allclose(m.individual_pccs, [100, 0, 0, 100 / 3])
        np.testing.assert_array_equal(m.individual_n_pairs, [3, 3, 3, 3])

    def test_exact_cvals(self):
        m = opa(_test_dat(), H, cval_method="exact")
        np.testing.assert_allclose(m.individual_cvals, [1 / 6, 1, 1, 4 / 6])
        assert m.n_permutations == 24
        assert m.pccs_geq_observed == 17
        assert m.group_cval == pytest.approx(17 / 24)
        assert m.nreps is None
        assert m.cval_method == "exact"

    def test_columns_kept(self):
        m = fit(_test_dat(), H)
        assert m.columns == ("t1", "t2", "t3")


# ── adjacent ─────────────────────────────────────────────────────────

class TestAdjacent:
    def test_counts(self):
        m = fit(_test_dat(), H, pairing_type="adjacent")
        assert m.pairing_type == "adjacent"
        assert m.total_pairs == 8
        assert m.correct_pairs == 3
        assert m.group_pcc == pytest.approx(37.5)
        np.testing.assert_allclose(m.individual_pccs, [100, 0, 0, 50])

    def test_exact_cvals(self):
        m = opa(_test_dat(), H, pairing_type="adjacent", cval_method="exact")
        np.testing.assert_allclose(m.individual_cvals, [1 / 6, 1, 1, 4 / 6])

    def test_hypothesis_pairing_type_used(self):
        m = fit(_test_dat(), hypothesis(H, "adjacent"))
        assert m.total_pairs == 8


# ── difference threshold ─────────────────────────────────────────────

class TestDiffThreshold:
    def test_counts(self):
        m = fit(_test_dat(), H, diff_threshold=1)
        assert m.diff_threshold == 1.0
        assert m.correct_pairs == 2
        assert m.group_pcc == pytest.approx(200 / 12)
        np.testing.assert_allclose(m.individual_pccs, [200 / 3, 0, 0, 0])

    def test_exact_cvals(self):
        m = opa(_test_dat(), H, diff_threshold=1, cval_method="exact")
        np.testing.assert_allclose(m.individual_cvals, [1 / 3, 1, 1, 1])

    def test_negative_threshold(self):
        with pytest.raises(InvalidConfigError):
            fit(_test_dat(), H, diff_threshold=-0.5)


# ── degenerate inputs ────────────────────────────────────────────────

class TestEdgeCases:
    def test_all_wrong(self):
        dat = pd.DataFrame({"t1": [3, 3, 3], "t2": [2, 2, 2], "t3": [1, 1, 1]})
        m = opa(dat, H, cval_method="exact")
        assert m.total_pairs == 9
        assert m.correct_pairs == 0
        assert m.group_pcc == 0
        np.testing.assert_array_equal(m.individual_cvals, [1, 1, 1])
        assert m.group_cval == 1

    def test_missing_values(self):
        dat = pd.DataFrame({"t1": [1, np.nan], "t2": [2, 2], "t3": [3, 3]})
        m = fit(dat, H)
        np.testing.assert_array_equal(m.individual_n_pairs, [3, 1])
        assert m.total_pairs == 4
        assert m.group_pcc == 100

    def test_pooled_pcc_is_not_row_mean(self):
        dat = pd.DataFrame({"t1": [1, np.nan], "t2": [2, 2], "t3": [3, 1]})
        m = fit(dat, H)
        np.testing.assert_array_equal(m.individual_pccs, [100, 0])
        assert m.group_pcc == pytest.approx(75.0)
        assert m.group_pcc != pytest.approx(np.mean(m.individual_pccs))

    def test_degenerate_row(self):
        dat = pd.DataFrame({"t1": [1, np.nan], "t2": [2, np.nan], "t3": [3, 3]})
        with pytest.raises(DegenerateRowError) as exc:
            fit(dat, H)
        assert exc.value.row == 1

    def test_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            fit(_test_dat(), [1, 2])

    def test_bad_cval_method_fails_before_scoring(self):
        dat = pd.DataFrame({"t1": [np.nan], "t2": [np.nan], "t3": [1]})
        with pytest.raises(InvalidConfigError, match="cval_method"):
            opa(dat, H, cval_method="bootstrap")

    def test_arrays_read_only(self):
        m = fit(_test_dat(), H)
        with pytest.raises(ValueError):
            m.individual_pccs[0] = 0
        with pytest.raises(ValueError):
            m.data[0, 0] = 0

    def test_chance_values_required(self):
        m = fit(_test_dat(), H)
        assert not m.has_chance_values
        with pytest.raises(InvalidConfigError, match="add_chance_values"):
            m.group_cval

    def test_input_not_modified(self):
        dat = _test_dat()
        before = dat.copy()
        opa(dat, H, nreps=20, seed=0)
        pd.testing.assert_frame_equal(dat, before)


# ── grouped fits ─────────────────────────────────────────────────────

class TestGrouped:
    def test_group_pccs(self):
        m = fit(_test_dat(), H, group=["b", "a", "b", "a"])
        assert m.kind == "multi_group"
        assert m.levels == ("a", "b")
        # a: rows 1, 3 -> 0 + 1 of 6; b: rows 0, 2 -> 3 + 0 of 6
        assert m.group_pccs["a"] == pytest.approx(100 / 6)
        assert m.group_pccs["b"] == pytest.approx(50.0)
        assert m.pooled_pcc == pytest.approx(100 / 3)

    def test_individual_in_original_order(self):
        m = fit(_test_dat(), H, group=["b", "a", "b", "a"])
        np.testing.assert_allclose(m.individual_pccs, [100, 0, 0, 100 / 3])
        np.testing.assert_array_equal(m["a"].row_ids, [1, 3])

    def test_pooled_cval(self):
        m = opa(_test_dat(), H, group=["b", "a", "b", "a"], cval_method="exact")
        assert m.n_permutations == 24
        assert m.pooled_cval == pytest.approx(17 / 24)
        assert m.group_cvals["a"] == pytest.approx(10 / 12)
        np.testing.assert_allclose(m.individual_cvals, [1 / 6, 1, 1, 4 / 6])

    def test_group_degenerate_row_reports_original_position(self):
        dat = _test_dat().astype(float)
        dat.iloc[3, :2] = np.nan
        with pytest.raises(DegenerateRowError) as exc:
            fit(dat, H, group=["b", "a", "b", "a"])
        assert exc.value.row == 3

    def test_single_level_rejected(self):
        with pytest.raises(InvalidConfigError):
            fit(_test_dat(), H, group=["a"] * 4)


# ── stochastic ───────────────────────────────────────────────────────

class TestStochastic:
    def test_docstring_example(self):
        dat = pd.DataFrame({"t1": [9, 4, 8, 10], "t2": [8, 8, 12, 10], "t3": [8, 5, 10, 11]})
        m = opa(dat, H, seed=1)
        assert m.group_pcc == 50.0
        assert m.nreps == 1000
        assert m.n_permutations == 4000
        assert 0 <= m.group_cval <= 1

    def test_replicate_shapes(self):
        m = opa(_test_dat(), H, nreps=200, seed=3)
        assert m.pcc_replicates.shape == (200, 4)
        assert m.group_replicate_pccs.shape == (200,)
        np.testing.assert_array_equal(m.chance.individual_n_permutations, [200] * 4)

    def test_constant_row_cval_is_one(self):
        m = opa(_test_dat(), H, nreps=100, seed=5)
        assert m.individual_cvals[2] == 1.0
        assert m.individual_cvals[1] == 1.0
