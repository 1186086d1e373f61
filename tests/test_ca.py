"""
Tests for the SVD based correspondence analysis that produces complete CA results.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from cacomp import DimensionError, cacomp, comp_std_residuals, total_inertia


def test_shapes_and_labels(full_cacomp, count_matrix):
    assert full_cacomp.dims == 4
    assert len(full_cacomp.D) == 4
    assert full_cacomp.top_rows == 8
    assert full_cacomp.prin_coords_rows.shape == (8, 4)
    assert full_cacomp.std_coords_cols.shape == (5, 4)
    assert list(full_cacomp.prin_coords_rows.index) == list(count_matrix.index)
    assert list(full_cacomp.std_coords_cols.index) == list(count_matrix.columns)
    assert list(full_cacomp.U.columns) == ["Dim1", "Dim2", "Dim3", "Dim4"]
    assert full_cacomp.is_complete


def test_singular_values_sorted(full_cacomp):
    assert np.all(np.diff(full_cacomp.D) <= 0)
    assert np.all(full_cacomp.D > 0)


def test_singular_vectors_orthonormal(full_cacomp):
    assert_allclose(full_cacomp.U.T.to_numpy() @ full_cacomp.U.to_numpy(), np.eye(4), atol=1e-10)
    assert_allclose(full_cacomp.V.T.to_numpy() @ full_cacomp.V.to_numpy(), np.eye(4), atol=1e-10)


def test_standard_coordinates_are_centered(full_cacomp):
    # mass-weighted average of standard coordinates is zero, weighted variance is one
    r = full_cacomp.row_masses.to_numpy()
    c = full_cacomp.col_masses.to_numpy()
    rows = full_cacomp.std_coords_rows.to_numpy()
    cols = full_cacomp.std_coords_cols.to_numpy()

    assert_allclose(r @ rows, np.zeros(4), atol=1e-10)
    assert_allclose(c @ cols, np.zeros(4), atol=1e-10)
    assert_allclose(r @ rows**2, np.ones(4))
    assert_allclose(c @ cols**2, np.ones(4))


def test_eigenvalues_add_up_to_total_inertia(full_cacomp, count_matrix):
    res = comp_std_residuals(count_matrix)
    chi2 = float(np.sum(res.S.to_numpy() ** 2))

    assert np.sum(full_cacomp.D**2) == pytest.approx(total_inertia(count_matrix))
    assert total_inertia(count_matrix) == pytest.approx(chi2 / res.tot)


def test_reconstructs_residuals(full_cacomp, count_matrix):
    res = comp_std_residuals(count_matrix)
    S = res.S.to_numpy() / np.sqrt(res.tot)

    reconstructed = full_cacomp.U.to_numpy() @ np.diag(full_cacomp.D) @ full_cacomp.V.to_numpy().T

    assert_allclose(reconstructed, S, atol=1e-10)


def test_fewer_dimensions(count_matrix, full_cacomp):
    caobj = cacomp(count_matrix, dims=2)

    assert caobj.dims == 2
    assert caobj.prin_coords_rows.shape == (8, 2)
    assert_allclose(caobj.D, full_cacomp.D[:2])


@pytest.mark.parametrize("dims", [0, 5])
def test_invalid_dimensions(count_matrix, dims):
    with pytest.raises(DimensionError):
        cacomp(count_matrix, dims=dims)


def test_top_rows(count_matrix):
    caobj = cacomp(count_matrix, top=6)

    assert caobj.top_rows == 6
    assert list(caobj.prin_coords_rows.index) == list(count_matrix.index[:6])
    assert caobj.row_masses.sum() == pytest.approx(1.0)


def test_zero_row_gets_zero_coordinates(count_matrix):
    mat = pd.concat([count_matrix, pd.DataFrame([[0] * 5], index=["empty"], columns=count_matrix.columns)])

    caobj = cacomp(mat)

    assert caobj.row_masses["empty"] == 0
    assert np.isfinite(caobj.std_coords_rows.to_numpy()).all()
    assert (caobj.prin_coords_rows.loc["empty"] == 0).all()


def test_independent_table_has_no_dimensions():
    mat = pd.DataFrame([[1, 2], [2, 4]], index=["a", "b"], columns=["x", "y"])

    with pytest.raises(DimensionError):
        cacomp(mat)


def test_empty_table():
    mat = pd.DataFrame(np.zeros((2, 2)), index=["a", "b"], columns=["x", "y"])

    with pytest.raises(ValueError):
        cacomp(mat)
