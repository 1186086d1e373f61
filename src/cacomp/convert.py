"""
Conversion of stored CA results into CAComp objects.

Each kind of container that can hold a CA result gets its own adapter. An adapter only knows how to pull
std_coords_cols, D and prin_coords_rows (and optionally the original matrix) out of its container; everything
else is done by `new_cacomp` and `recompute`, which never look at the container type.
"""

import logging
from typing import Mapping

import pandas as pd

from cacomp.errors import MissingInputError, TypeMismatchError
from cacomp.recompute import ROW_SELECTION_ORDER, recompute as recompute_cacomp
from cacomp.result import CAComp, new_cacomp

LOGGER = logging.getLogger(__name__)

# Attributes of a reduced-dimension frame holding the parts of the decomposition that are not coordinates.
SINGVAL_ATTR = "singval"
PRIN_COORDS_ROWS_ATTR = "prin_coords_rows"
PERC_INERTIA_ATTR = "percInertia"


class ContainerAdapter:
    """
    Extracts a partial CA result from one kind of container.
    """

    name = "container"
    # False for containers that already hold a finished result
    converts = True

    def accepts(self, obj) -> bool:
        raise NotImplementedError()

    def extract(self, obj) -> CAComp:
        raise NotImplementedError()

    def matrix(self, obj, assay: str = None) -> pd.DataFrame:
        """
        The original matrix stored in the container, needed to recompute masses.
        Containers without stored matrices ask for an explicit one.
        """
        raise MissingInputError(
            f"A {self.name} does not store the original matrix. Pass the matrix explicitly to recompute.",
            field="mat",
        )


class CACompAdapter(ContainerAdapter):
    """A CAComp is returned as it is, without any calculation."""

    name = "CAComp"
    converts = False

    def accepts(self, obj) -> bool:
        return isinstance(obj, CAComp)

    def extract(self, obj) -> CAComp:
        return obj


class ReducedDimFrameAdapter(ContainerAdapter):
    """
    A DataFrame of column standard coordinates whose `attrs` carry the singular values and the row principal
    coordinates. Operations such as subsetting can drop the attrs; such frames cannot be converted.
    """

    name = "reduced-dimension frame"

    def accepts(self, obj) -> bool:
        return isinstance(obj, pd.DataFrame)

    def extract(self, obj) -> CAComp:
        for attr in (SINGVAL_ATTR, PRIN_COORDS_ROWS_ATTR):
            if obj.attrs.get(attr) is None:
                raise MissingInputError(
                    f"Attribute '{attr}' of the reduced-dimension frame is empty. "
                    f"This can happen after subsetting the frame.",
                    field=attr,
                )

        std_coords_cols = obj.copy()
        std_coords_cols.attrs = {
            key: value
            for key, value in obj.attrs.items()
            if key not in (SINGVAL_ATTR, PRIN_COORDS_ROWS_ATTR, PERC_INERTIA_ATTR)
        }
        return new_cacomp(
            {
                "std_coords_cols": std_coords_cols,
                "D": obj.attrs[SINGVAL_ATTR],
                "prin_coords_rows": obj.attrs[PRIN_COORDS_ROWS_ATTR],
            }
        )


class MappingAdapter(ContainerAdapter):
    """
    A mapping with the CA fields as keys, e.g. a result unpickled from a binary port.
    Original matrices may be stored under "assays" as a mapping from assay name to matrix.
    """

    name = "mapping"

    def accepts(self, obj) -> bool:
        return isinstance(obj, Mapping)

    def extract(self, obj) -> CAComp:
        return new_cacomp(obj)

    def matrix(self, obj, assay: str = None) -> pd.DataFrame:
        assays = obj.get("assays") or {}
        if not assays:
            return super().matrix(obj, assay)
        if assay is None:
            raise MissingInputError("Assay is needed to recompute the CA result.", field="assay")
        if assay not in assays:
            raise MissingInputError(
                f"Assay '{assay}' not found. Available assays: {', '.join(map(str, assays))}",
                field="assay",
            )
        return assays[assay]


ADAPTERS = [CACompAdapter(), ReducedDimFrameAdapter(), MappingAdapter()]


def register_adapter(adapter: ContainerAdapter) -> None:
    """
    Adds support for another container kind. Adapters registered later are tried first.
    """
    ADAPTERS.insert(0, adapter)


def get_adapter(obj) -> ContainerAdapter:
    for adapter in ADAPTERS:
        if adapter.accepts(obj):
            return adapter
    raise TypeMismatchError(
        f"as_cacomp does not know how to handle objects of class {type(obj).__name__}. "
        f"Supported containers: {', '.join(adapter.name for adapter in ADAPTERS)}."
    )


def as_cacomp(obj, mat=None, assay: str = None, recompute: bool = True, row_selection: str = ROW_SELECTION_ORDER):
    """
    Creates a CAComp from a container holding a stored CA result.

    By default std_coords_cols, D, prin_coords_rows, top_rows and dims are extracted. If recompute is True the
    masses, std_coords_rows, U and V are additionally recalculated (without rerunning the SVD) from `mat`, or
    from the container's stored matrix named `assay` when no matrix is given.

    A CAComp input is returned as it is.
    """
    adapter = get_adapter(obj)
    caobj = adapter.extract(obj)
    if not adapter.converts:
        return caobj

    LOGGER.debug(f"Extracted {caobj!r} from {adapter.name}")
    if recompute:
        if mat is None:
            mat = adapter.matrix(obj, assay)
        caobj = recompute_cacomp(caobj, mat, row_selection=row_selection)
    return caobj
