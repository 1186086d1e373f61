"""
Tests for the standardized residual computation.
"""

import logging

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose
from pandas.testing import assert_series_equal

from cacomp import DimensionError, comp_std_residuals, var_rows


class TestCompStdResiduals:
    def test_scenario_totals_and_masses(self, scenario_matrix):
        res = comp_std_residuals(scenario_matrix)

        assert res.tot == 30
        assert_allclose(res.rowm.to_numpy(), [10 / 30, 10 / 30, 10 / 30])
        assert_allclose(res.colm.to_numpy(), [15 / 30, 15 / 30])
        assert list(res.rowm.index) == ["r1", "r2", "r3"]
        assert list(res.colm.index) == ["c1", "c2"]

    def test_scenario_residuals(self, scenario_matrix):
        # every expected value is 10 * 15 / 30 = 5
        S = comp_std_residuals(scenario_matrix).S
        root5 = np.sqrt(5)

        assert S.shape == (3, 2)
        assert_allclose(S.to_numpy(), [[root5, -root5], [-root5, root5], [0.0, 0.0]])

    def test_masses_sum_to_one(self, count_matrix):
        res = comp_std_residuals(count_matrix)

        assert res.rowm.sum() == pytest.approx(1.0)
        assert res.colm.sum() == pytest.approx(1.0)
        assert (res.rowm >= 0).all() and (res.colm >= 0).all()

    def test_residual_zero_when_observed_equals_expected(self):
        # rank one matrix: observed == expected in every cell
        mat = pd.DataFrame([[1, 2], [2, 4]], index=["a", "b"], columns=["x", "y"])

        S = comp_std_residuals(mat).S

        assert_allclose(S.to_numpy(), np.zeros((2, 2)), atol=1e-12)

    def test_zero_total_row_and_column(self):
        mat = pd.DataFrame([[0, 0, 0], [1, 0, 2], [3, 0, 1]], index=["a", "b", "c"], columns=["x", "y", "z"])

        res = comp_std_residuals(mat)

        assert np.isfinite(res.S.to_numpy()).all()
        assert (res.S.loc["a"] == 0).all()
        assert (res.S["y"] == 0).all()
        assert res.rowm["a"] == 0
        assert res.colm["y"] == 0
        assert res.rowm.sum() == pytest.approx(1.0)
        assert res.colm.sum() == pytest.approx(1.0)

    def test_zero_grand_total(self, caplog):
        mat = pd.DataFrame(np.zeros((2, 2)), index=["a", "b"], columns=["x", "y"])

        with caplog.at_level(logging.WARNING):
            res = comp_std_residuals(mat)

        assert res.tot == 0
        assert (res.rowm == 0).all() and (res.colm == 0).all()
        assert (res.S.to_numpy() == 0).all()
        assert "zero" in caplog.text

    def test_negative_entries_are_logged(self, caplog):
        mat = pd.DataFrame([[5, -1], [2, 3]], index=["a", "b"], columns=["x", "y"])

        with caplog.at_level(logging.WARNING):
            comp_std_residuals(mat)

        assert "negative" in caplog.text

    def test_input_not_mutated(self, scenario_matrix):
        before = scenario_matrix.copy()

        comp_std_residuals(scenario_matrix, top=2)

        pd.testing.assert_frame_equal(scenario_matrix, before)

    def test_top_restricts_to_first_rows(self, count_matrix):
        res = comp_std_residuals(count_matrix, top=5)
        expected = comp_std_residuals(count_matrix.iloc[:5])

        assert list(res.rowm.index) == list(count_matrix.index[:5])
        assert res.tot == expected.tot
        assert_series_equal(res.rowm, expected.rowm)
        assert_series_equal(res.colm, expected.colm)

    @pytest.mark.parametrize("top", [0, -1, 9, 2.5])
    def test_invalid_top(self, count_matrix, top):
        with pytest.raises(DimensionError):
            comp_std_residuals(count_matrix, top=top)

    def test_without_residuals(self, count_matrix):
        res = comp_std_residuals(count_matrix, residuals=False)
        full = comp_std_residuals(count_matrix)

        assert res.S is None
        assert res.tot == full.tot
        assert_series_equal(res.rowm, full.rowm)
        assert_series_equal(res.colm, full.colm)


class TestVarRows:
    @pytest.fixture
    def mat(self):
        return pd.DataFrame(
            [[10, 10], [10, 10], [30, 0], [10, 10]],
            index=["a", "b", "c", "d"],
            columns=["x", "y"],
        )

    def test_highest_variance_first(self, mat):
        assert list(var_rows(mat, 1).index) == ["c"]

    def test_ties_keep_input_order(self, mat):
        assert list(var_rows(mat, 3).index) == ["c", "a", "b"]

    def test_all_rows_unchanged(self, mat):
        pd.testing.assert_frame_equal(var_rows(mat, 4), mat.astype(float))

    def test_too_many_rows(self, mat):
        with pytest.raises(DimensionError):
            var_rows(mat, 5)
