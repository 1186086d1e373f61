import copy
import logging
from typing import Mapping

import numpy as np
import pandas as pd

from cacomp.errors import DimensionError, MissingInputError, TypeMismatchError

LOGGER = logging.getLogger(__name__)

# Fields every (partial) CA result needs to be completed.
REQUIRED_FIELDS = ("std_coords_cols", "D", "prin_coords_rows")
# Fields filled by recompute.
DERIVED_FIELDS = ("row_masses", "col_masses", "std_coords_rows", "U", "V")


class CAComp:
    """
    Result of a correspondence analysis.

    The decomposition itself is represented by the singular values `D`, the row principal coordinates and the
    column standard coordinates. The remaining fields (masses, row standard coordinates and the mass-scaled
    factor matrices `U` and `V`) can be derived from those and the original matrix, see `recompute`.

    Coordinate matrices are DataFrames indexed by row (resp. column) label with one column per dimension.
    """

    def __init__(
        self,
        std_coords_cols: pd.DataFrame = None,
        D=None,
        prin_coords_rows: pd.DataFrame = None,
        top_rows: int = None,
        dims: int = None,
        row_masses: pd.Series = None,
        col_masses: pd.Series = None,
        std_coords_rows: pd.DataFrame = None,
        U: pd.DataFrame = None,
        V: pd.DataFrame = None,
    ):
        self.std_coords_cols = std_coords_cols
        self.D = D
        self.prin_coords_rows = prin_coords_rows
        self.top_rows = top_rows
        self.dims = dims
        self.row_masses = row_masses
        self.col_masses = col_masses
        self.std_coords_rows = std_coords_rows
        self.U = U
        self.V = V

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, name) is not None for name in REQUIRED_FIELDS + DERIVED_FIELDS)

    def copy(self) -> "CAComp":
        return copy.deepcopy(self)

    def to_dict(self, derived: bool = True) -> dict:
        """
        Plain mapping of the result, e.g. for pickling into a binary port.
        With derived=False only the fields needed to rebuild the result are stored.
        """
        fields = REQUIRED_FIELDS + ("top_rows", "dims")
        if derived:
            fields += DERIVED_FIELDS
        return {name: copy.deepcopy(getattr(self, name)) for name in fields}

    def __repr__(self):
        present = [name for name in REQUIRED_FIELDS + DERIVED_FIELDS if getattr(self, name) is not None]
        return f"CAComp(dims={self.dims}, top_rows={self.top_rows}, fields={present})"


def validate_cacomp(caobj: CAComp) -> None:
    """
    Checks that the fields needed by recompute are present and consistent.
    Raises MissingInputError, TypeMismatchError (e.g. for non-numeric coordinates) or DimensionError (e.g. for an
    empty D).
    """
    if not isinstance(caobj, CAComp):
        raise TypeMismatchError(f"Expected a CAComp object, got {type(caobj).__name__}.", field="caobj")

    for name in REQUIRED_FIELDS:
        if getattr(caobj, name) is None:
            raise MissingInputError(f"CA result is missing the required field '{name}'.", field=name)

    for name in ("std_coords_cols", "prin_coords_rows"):
        if not isinstance(getattr(caobj, name), pd.DataFrame):
            raise TypeMismatchError(
                f"'{name}' must be a DataFrame indexed by label, got {type(getattr(caobj, name)).__name__}.",
                field=name,
            )
        non_numeric = [
            str(col)
            for col, dtype in getattr(caobj, name).dtypes.items()
            if not pd.api.types.is_numeric_dtype(dtype) or pd.api.types.is_bool_dtype(dtype)
        ]
        if non_numeric:
            raise TypeMismatchError(
                f"'{name}' must only contain numeric coordinates, but column(s) {', '.join(non_numeric)} are not.",
                field=name,
            )

    try:
        D = np.asarray(caobj.D, dtype=float)
    except (TypeError, ValueError):
        raise TypeMismatchError("'D' must be a sequence of real numbers.", field="D")
    if D.ndim != 1:
        raise DimensionError(f"'D' must be one-dimensional, got shape {D.shape}.", field="D")
    if len(D) == 0:
        raise DimensionError("'D' must hold at least one singular value.", field="D")
    if caobj.dims is not None and caobj.dims < 1:
        raise DimensionError(f"'dims' must be a positive integer, got {caobj.dims}.", field="dims")
    if caobj.dims is not None and caobj.dims != len(D):
        raise DimensionError(f"'dims' is {caobj.dims} but D holds {len(D)} singular values.", field="dims")

    for name in ("prin_coords_rows", "std_coords_cols"):
        n_cols = getattr(caobj, name).shape[1]
        if n_cols != len(D):
            raise DimensionError(
                f"'{name}' has {n_cols} dimensions but D holds {len(D)} singular values.",
                field=name,
            )

    if not np.all(np.isfinite(D)) or np.any(D <= 0):
        raise DimensionError("All singular values in 'D' must be positive and finite.", field="D")

    top_rows = caobj.top_rows
    if top_rows is None:
        raise MissingInputError("CA result is missing the required field 'top_rows'.", field="top_rows")
    if isinstance(top_rows, bool) or not isinstance(top_rows, (int, np.integer)):
        raise TypeMismatchError(f"'top_rows' must be an integer, got {type(top_rows).__name__}.", field="top_rows")
    if top_rows != caobj.prin_coords_rows.shape[0]:
        raise DimensionError(
            f"'top_rows' is {top_rows} but prin_coords_rows has {caobj.prin_coords_rows.shape[0]} rows.",
            field="top_rows",
        )


def new_cacomp(obj: Mapping) -> CAComp:
    """
    Creates a CAComp from a mapping of its fields and validates it.

    `top_rows` defaults to the number of rows in `prin_coords_rows` and `dims` to the number of singular values.
    Unknown keys are ignored.
    """
    if not isinstance(obj, Mapping):
        raise TypeMismatchError(f"Expected a mapping of CA fields, got {type(obj).__name__}.")

    missing = [name for name in REQUIRED_FIELDS if obj.get(name) is None]
    if missing:
        raise MissingInputError(f"CA result is missing the required field(s): {', '.join(missing)}.", field=missing[0])

    fields = {name: obj.get(name) for name in REQUIRED_FIELDS + ("top_rows", "dims") + DERIVED_FIELDS}
    if fields["top_rows"] is None and isinstance(fields["prin_coords_rows"], pd.DataFrame):
        fields["top_rows"] = fields["prin_coords_rows"].shape[0]
    if fields["dims"] is None:
        fields["dims"] = len(np.atleast_1d(fields["D"]))

    caobj = CAComp(**fields)
    validate_cacomp(caobj)
    caobj.D = np.asarray(caobj.D, dtype=float)
    LOGGER.debug(f"Created {caobj!r}")
    return caobj
