import logging

import numpy as np
import pandas as pd

from cacomp.errors import DimensionError
from cacomp.matrix import as_matrix
from cacomp.recompute import ROW_SELECTION_ORDER, select_rows
from cacomp.residuals import comp_std_residuals
from cacomp.result import CAComp

LOGGER = logging.getLogger(__name__)

# Eigenvalues (squared singular values) at or below this value are treated as zero.
EIGENVALUE_THRESHOLD = 1e-12


def dim_names(dims: int) -> list:
    return [f"Dim{i + 1}" for i in range(dims)]


def _ca_residuals(mat, top, row_selection):
    """
    Selects the rows and returns the residual decomposition together with the CA residual matrix.

    comp_std_residuals works on counts; dividing by sqrt(total) gives the residuals of the correspondence
    matrix P = N / n, whose squared sum is the total inertia.
    """
    mat = as_matrix(mat)
    if top is not None:
        mat = select_rows(mat, top, row_selection)
    res = comp_std_residuals(mat)
    if res.tot == 0:
        raise ValueError("Correspondence analysis is undefined for a matrix whose entries sum to zero.")
    return res, res.S.to_numpy() / np.sqrt(res.tot)


def total_inertia(mat, top: int = None, row_selection: str = ROW_SELECTION_ORDER) -> float:
    """
    Total inertia (chi-square statistic divided by the grand total) of the considered rows of the matrix.
    """
    _, S = _ca_residuals(mat, top, row_selection)
    return float(np.sum(S**2))


def _std_coords(vectors, masses):
    """Singular vectors divided by the square root of the masses; zero-mass entries get coordinate 0."""
    sqrt_masses = np.sqrt(masses)[:, None]
    return np.divide(vectors, sqrt_masses, out=np.zeros_like(vectors), where=sqrt_masses > 0)


def cacomp(
    mat,
    dims: int = None,
    top: int = None,
    row_selection: str = ROW_SELECTION_ORDER,
    threshold: float = EIGENVALUE_THRESHOLD,
) -> CAComp:
    """
    Correspondence analysis of a count matrix via the singular value decomposition of its standardized residuals.

    S = U * D * V^T
    - std_coords_rows[i, k] = U[i, k] / sqrt(r[i]), std_coords_cols[j, k] = V[j, k] / sqrt(c[j])
    - prin_coords_rows[i, k] = std_coords_rows[i, k] * D[k]
    where r and c are the row and column masses. Dimensions whose eigenvalue D[k]² is not above `threshold`
    are dropped.

    Args:
        mat: Labelled count matrix.
        dims: Number of dimensions to keep; all non-trivial dimensions by default.
        top: Number of rows to consider; all rows by default.
        row_selection: How the `top` rows are picked, see `cacomp.recompute.select_rows`.
        threshold: Minimum eigenvalue of a kept dimension.

    Returns:
        A complete CAComp.
    """
    res, S = _ca_residuals(mat, top, row_selection)

    U, singular_vals, VT = np.linalg.svd(S, full_matrices=False)
    valid = singular_vals**2 > threshold
    available = int(np.sum(valid))
    if available == 0:
        raise DimensionError("SVD failed: no eigenvalues passed the threshold.", field="D")

    if dims is None:
        dims = available
    elif dims < 1 or dims > available:
        raise DimensionError(
            f"Cannot keep {dims} dimensions: only {available} dimensions with non-zero inertia are available.",
            field="dims",
        )

    U = U[:, :dims]
    V = VT[:dims, :].T
    D = singular_vals[:dims]
    rowm = res.rowm.to_numpy()
    colm = res.colm.to_numpy()
    columns = dim_names(dims)

    std_coords_rows = pd.DataFrame(_std_coords(U, rowm), index=res.rowm.index, columns=columns)
    std_coords_cols = pd.DataFrame(_std_coords(V, colm), index=res.colm.index, columns=columns)

    LOGGER.info(f"Computed CA with {dims} of {available} dimensions on {S.shape[0]} x {S.shape[1]} matrix")
    return CAComp(
        std_coords_cols=std_coords_cols,
        D=D,
        prin_coords_rows=std_coords_rows * D,
        top_rows=S.shape[0],
        dims=dims,
        row_masses=res.rowm.copy(),
        col_masses=res.colm.copy(),
        std_coords_rows=std_coords_rows,
        U=pd.DataFrame(U, index=res.rowm.index, columns=columns),
        V=pd.DataFrame(V, index=res.colm.index, columns=columns),
    )
