import logging

import numpy as np
import pandas as pd

from cacomp.errors import AlignmentError, TypeMismatchError

LOGGER = logging.getLogger(__name__)

# Number of labels shown in error messages before the list is cut.
LABEL_PREVIEW = 5


def preview_labels(labels) -> str:
    """
    Formats a list of labels for an error message.
    @return: comma separated labels, shortened to LABEL_PREVIEW entries.
    """
    labels = [str(label) for label in labels]
    shown = ", ".join(f"'{label}'" for label in labels[:LABEL_PREVIEW])
    if len(labels) > LABEL_PREVIEW:
        shown += f" (and {len(labels) - LABEL_PREVIEW} more)"
    return shown


def as_matrix(mat, name: str = "mat") -> pd.DataFrame:
    """
    Checks that mat is a plain numeric matrix with row and column labels and returns a float copy.

    A pandas DataFrame is required because masses are aligned by label; bare numpy arrays carry no labels.
    Row and column labels must be unique, otherwise the alignment would be ambiguous.
    """
    if not isinstance(mat, pd.DataFrame):
        raise TypeMismatchError(
            f"'{name}' must be a labelled numeric matrix (pandas DataFrame), got {type(mat).__name__}.",
            field=name,
        )

    non_numeric = [
        str(col)
        for col, dtype in mat.dtypes.items()
        if not pd.api.types.is_numeric_dtype(dtype) or pd.api.types.is_bool_dtype(dtype)
    ]
    if non_numeric:
        raise TypeMismatchError(
            f"'{name}' must only contain numeric columns. Non-numeric columns: {preview_labels(non_numeric)}",
            field=name,
        )

    if mat.isnull().to_numpy().any():
        raise TypeMismatchError(f"'{name}' contains missing values.", field=name)

    for axis, labels in (("row", mat.index), ("column", mat.columns)):
        if not labels.is_unique:
            duplicated = labels[labels.duplicated()].unique()
            raise AlignmentError(
                f"'{name}' has duplicated {axis} labels: {preview_labels(duplicated)}",
                field=name,
                labels=duplicated,
            )

    return mat.astype(float)


def frame_to_matrix(df: pd.DataFrame, label_column: str = None, value_columns=None) -> pd.DataFrame:
    """
    Turns a table into a labelled count matrix.

    The label column (converted to string) becomes the row index, the value columns become the matrix columns.
    Without value columns every numeric column except the label column is used.
    """
    if label_column is not None:
        if label_column not in df.columns:
            raise TypeMismatchError(f"Label column '{label_column}' not available in input table.", field=label_column)
        labels = df[label_column].astype(str)
    else:
        labels = df.index.astype(str)

    if not value_columns:
        value_columns = [
            col for col in df.columns if col != label_column and pd.api.types.is_numeric_dtype(df[col])
        ]

    missing_columns = [col for col in value_columns if col not in df.columns]
    if missing_columns:
        raise TypeMismatchError(f"Input table is missing required columns: {missing_columns}")

    mat = df[list(value_columns)].copy()
    mat.index = pd.Index(labels.to_numpy(), name=label_column)
    mat.columns = mat.columns.astype(str)
    LOGGER.debug(f"Built {mat.shape[0]} x {mat.shape[1]} matrix from table")
    return as_matrix(mat)


def count_negative_values(mat: pd.DataFrame) -> int:
    """
    This function counts the number of negative values in the matrix.
    @return: number of entries below zero.
    """
    return int(np.sum(mat.to_numpy() < 0))
