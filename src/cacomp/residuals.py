import logging
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from cacomp.errors import DimensionError
from cacomp.matrix import as_matrix, count_negative_values

LOGGER = logging.getLogger(__name__)


class StdResiduals(NamedTuple):
    """Standardized residuals of a count matrix together with its totals and masses."""

    S: Optional[pd.DataFrame]
    tot: float
    rowm: pd.Series
    colm: pd.Series


def first_rows(mat: pd.DataFrame, top: int) -> pd.DataFrame:
    """
    Restricts the matrix to its first `top` rows, keeping the current order.
    """
    if isinstance(top, bool) or not isinstance(top, (int, np.integer)) or top < 1:
        raise DimensionError(f"Number of top rows must be a positive integer, got {top!r}.", field="top_rows")
    if top > mat.shape[0]:
        raise DimensionError(
            f"Cannot select the top {top} rows from a matrix with only {mat.shape[0]} rows.",
            field="top_rows",
        )
    return mat.iloc[: int(top)]


def comp_std_residuals(mat, top: int = None, residuals: bool = True) -> StdResiduals:
    """
    Computes the standardized residuals, grand total and row/column masses of a count matrix.

    For every cell:
        expected = row_total * col_total / grand_total
        S = (observed - expected) / sqrt(expected)

    A row or column with total zero has expected value zero for all its cells. The division is guarded and such
    cells get residual 0; the row/column itself is kept with mass 0.

    Args:
        mat: Labelled numeric matrix (rows x columns).
        top: Only the first `top` rows (by current order) are considered.
        residuals: If False, S is not materialised and returned as None. Masses and total are unaffected.
    """
    mat = as_matrix(mat)
    if top is not None:
        mat = first_rows(mat, top)

    negative = count_negative_values(mat)
    if negative:
        LOGGER.warning(f"Matrix contains {negative} negative entries; masses may be meaningless.")

    values = mat.to_numpy()
    tot = float(values.sum())
    row_tot = values.sum(axis=1)
    col_tot = values.sum(axis=0)

    if tot == 0:
        LOGGER.warning("Grand total of the matrix is zero; all masses and residuals are set to zero.")
        rowm = np.zeros_like(row_tot)
        colm = np.zeros_like(col_tot)
    else:
        rowm = row_tot / tot
        colm = col_tot / tot

    S = None
    if residuals:
        if tot == 0:
            S_values = np.zeros_like(values)
        else:
            expected = np.outer(row_tot, col_tot) / tot
            S_values = np.zeros_like(values)
            # cells of zero-total rows/columns keep residual 0
            np.divide(
                values - expected,
                np.sqrt(expected, where=expected > 0, out=np.zeros_like(expected)),
                out=S_values,
                where=expected > 0,
            )
        S = pd.DataFrame(S_values, index=mat.index, columns=mat.columns)

    LOGGER.debug(f"Computed masses for {mat.shape[0]} rows and {mat.shape[1]} columns (total {tot})")
    return StdResiduals(
        S=S,
        tot=tot,
        rowm=pd.Series(rowm, index=mat.index, name="row_masses"),
        colm=pd.Series(colm, index=mat.columns, name="col_masses"),
    )


def var_rows(mat, top: int) -> pd.DataFrame:
    """
    Keeps the `top` rows whose standardized residuals have the largest variance.

    The rows are returned in decreasing order of variance; rows with equal variance keep their input order.
    If `top` equals the number of rows the matrix is returned unchanged.
    """
    mat = as_matrix(mat)
    first_rows(mat, top)
    if top == mat.shape[0]:
        return mat

    S = comp_std_residuals(mat).S
    variances = S.var(axis=1, ddof=1).to_numpy()
    order = np.argsort(-variances, kind="mergesort")[: int(top)]
    LOGGER.debug(f"Selected {top} of {mat.shape[0]} rows by residual variance")
    return mat.iloc[order]
