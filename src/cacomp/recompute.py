import logging

import numpy as np
import pandas as pd

from cacomp.errors import AlignmentError, TypeMismatchError
from cacomp.matrix import as_matrix, preview_labels
from cacomp.residuals import comp_std_residuals, first_rows, var_rows
from cacomp.result import CAComp, validate_cacomp

LOGGER = logging.getLogger(__name__)

# How the rows considered by the decomposition are picked from the original matrix.
ROW_SELECTION_ORDER = "order"
ROW_SELECTION_VARIANCE = "variance"
ROW_SELECTIONS = (ROW_SELECTION_ORDER, ROW_SELECTION_VARIANCE)


def select_rows(mat: pd.DataFrame, top: int, row_selection: str = ROW_SELECTION_ORDER) -> pd.DataFrame:
    """
    Restricts the matrix to the `top` rows the decomposition was computed on.

    "order" keeps the first `top` rows as they are, "variance" keeps the `top` rows with the largest variance of
    their standardized residuals.
    """
    if row_selection == ROW_SELECTION_ORDER:
        return first_rows(mat, top)
    elif row_selection == ROW_SELECTION_VARIANCE:
        return var_rows(mat, top)
    else:
        raise ValueError(f"Unknown row selection '{row_selection}'. Use one of {ROW_SELECTIONS}.")


def align_masses(masses: pd.Series, labels: pd.Index, field: str) -> pd.Series:
    """
    Orders the masses like the given labels. Matching is done by label, never by position.
    @return: masses indexed by labels, in the order of labels
    """
    missing = [label for label in labels if label not in masses.index]
    if missing:
        raise AlignmentError(
            f"{len(missing)} label(s) of '{field}' not found in the supplied matrix: {preview_labels(missing)}. "
            f"The matrix must contain every row and column the CA result refers to.",
            field=field,
            labels=missing,
        )
    return masses.reindex(labels)


def recompute(caobj: CAComp, mat, row_selection: str = ROW_SELECTION_ORDER) -> CAComp:
    """
    Recomputes the missing values of a CA result.

    The CA result needs std_coords_cols, prin_coords_rows and D (plus top_rows). From these and the matrix the
    result derives from, the row and column masses, std_coords_rows, U and V are calculated:

        std_coords_rows = prin_coords_rows / D           (column-wise)
        U = std_coords_rows * sqrt(row_masses)          (row-wise)
        V = std_coords_cols * sqrt(col_masses)          (row-wise)

    The input object is left untouched; a completed copy is returned.

    Args:
        caobj: Partial CA result.
        mat: Labelled numeric matrix the CA result was computed from. Its row and column labels must be a superset
            of the labels in prin_coords_rows and std_coords_cols. Masses are taken over all columns of mat, so
            additional columns change them.
        row_selection: How the first top_rows rows of mat are picked, see `select_rows`.

    Returns:
        A new CAComp with row_masses, col_masses, std_coords_rows, U and V filled in.
    """
    if not isinstance(caobj, CAComp):
        raise TypeMismatchError(f"Expected a CAComp object, got {type(caobj).__name__}.", field="caobj")
    validate_cacomp(caobj)
    mat = as_matrix(mat)

    mat = select_rows(mat, caobj.top_rows, row_selection)
    res = comp_std_residuals(mat, residuals=False)

    row_masses = align_masses(res.rowm, caobj.prin_coords_rows.index, "prin_coords_rows")
    col_masses = align_masses(res.colm, caobj.std_coords_cols.index, "std_coords_cols")

    D = np.asarray(caobj.D, dtype=float)
    std_coords_rows = caobj.prin_coords_rows.astype(float) / D
    U = std_coords_rows.mul(np.sqrt(row_masses.to_numpy()), axis=0)
    V = caobj.std_coords_cols.astype(float).mul(np.sqrt(col_masses.to_numpy()), axis=0)

    completed = caobj.copy()
    completed.row_masses = row_masses.rename("row_masses")
    completed.col_masses = col_masses.rename("col_masses")
    completed.std_coords_rows = std_coords_rows
    completed.U = U
    completed.V = V

    LOGGER.info(
        f"Recomputed CA result: {len(row_masses)} rows, {len(col_masses)} columns, {len(D)} dimensions"
    )
    return completed
