"""
Completion of correspondence analysis results.

A CA result restored from storage usually only keeps the column standard coordinates, the singular values and
the row principal coordinates. `recompute` derives the masses, the row standard coordinates and the mass-scaled
factor matrices U and V from those and the original matrix.
"""

from cacomp.ca import cacomp, total_inertia
from cacomp.convert import ContainerAdapter, as_cacomp, register_adapter
from cacomp.errors import AlignmentError, CACompError, DimensionError, MissingInputError, TypeMismatchError
from cacomp.matrix import as_matrix, frame_to_matrix
from cacomp.recompute import ROW_SELECTION_ORDER, ROW_SELECTION_VARIANCE, recompute, select_rows
from cacomp.residuals import StdResiduals, comp_std_residuals, var_rows
from cacomp.result import CAComp, new_cacomp, validate_cacomp

__all__ = [
    "AlignmentError",
    "CAComp",
    "CACompError",
    "ContainerAdapter",
    "DimensionError",
    "MissingInputError",
    "ROW_SELECTION_ORDER",
    "ROW_SELECTION_VARIANCE",
    "StdResiduals",
    "TypeMismatchError",
    "as_cacomp",
    "as_matrix",
    "cacomp",
    "comp_std_residuals",
    "frame_to_matrix",
    "new_cacomp",
    "recompute",
    "register_adapter",
    "select_rows",
    "total_inertia",
    "validate_cacomp",
    "var_rows",
]
