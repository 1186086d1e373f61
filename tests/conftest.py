import numpy as np
import pandas as pd
import pytest

from cacomp import CAComp, cacomp


@pytest.fixture
def scenario_matrix():
    """3 x 2 count matrix with equal row totals and equal column totals."""
    return pd.DataFrame(
        [[10, 0], [0, 10], [5, 5]],
        index=["r1", "r2", "r3"],
        columns=["c1", "c2"],
    )


@pytest.fixture
def scenario_cacomp():
    """Synthetic one-dimensional partial CA result matching scenario_matrix labels."""
    return CAComp(
        std_coords_cols=pd.DataFrame([[1.0], [-1.0]], index=["c1", "c2"], columns=["Dim1"]),
        D=np.array([1.0]),
        prin_coords_rows=pd.DataFrame([[0.5], [-0.5], [0.0]], index=["r1", "r2", "r3"], columns=["Dim1"]),
        top_rows=3,
        dims=1,
    )


@pytest.fixture
def count_matrix():
    rng = np.random.default_rng(42)
    return pd.DataFrame(
        rng.integers(1, 50, size=(8, 5)),
        index=[f"gene{i}" for i in range(8)],
        columns=[f"cell{j}" for j in range(5)],
    )


@pytest.fixture
def full_cacomp(count_matrix):
    return cacomp(count_matrix)


def partial_of(caobj: CAComp) -> CAComp:
    """Keeps only the fields a stored CA result holds."""
    return CAComp(
        std_coords_cols=caobj.std_coords_cols.copy(),
        D=caobj.D.copy(),
        prin_coords_rows=caobj.prin_coords_rows.copy(),
        top_rows=caobj.top_rows,
        dims=caobj.dims,
    )


@pytest.fixture
def partial_cacomp(full_cacomp):
    return partial_of(full_cacomp)
