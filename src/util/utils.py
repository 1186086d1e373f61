"""
Several utility functions are reused from Harvard's spatial data lab repository for Geospatial Analytics Extension.
https://github.com/spatial-data-lab/knime-geospatial-extension/blob/main/knime_extension/src/util/knime_utils.py
"""

import knime.extension as knext
import pandas as pd
from typing import Callable
import logging

from cacomp import ROW_SELECTION_ORDER, ROW_SELECTION_VARIANCE

LOGGER = logging.getLogger(__name__)

# Port object id shared by the analyzer (writer) and the recomputer (reader)
CA_MODEL_PORT_ID = "ca_recompute.model"


def is_numeric(column: knext.Column) -> bool:
    """
    Checks if column is numeric e.g. int, long or double.
    @return: True if Column is numeric
    """
    return column.ktype == knext.double() or column.ktype == knext.int32() or column.ktype == knext.int64()


def is_string(column: knext.Column) -> bool:
    """
    Checks if column is a string type.
    @return: True if Column is a string
    """
    return column.ktype == knext.string()


############################################
# Shared node settings
############################################


class RowSelectionOptions(knext.EnumParameterOptions):
    FIRST_ROWS = (
        "First rows",
        "Use the first rows of the table in their current order.",
    )
    TOP_VARIANCE = (
        "Top variance rows",
        "Use the rows whose standardized residuals vary the most.",
    )


def row_selection_method(option_name: str) -> str:
    """
    Maps the selected RowSelectionOptions entry to the row selection of the cacomp library.
    """
    if option_name == RowSelectionOptions.TOP_VARIANCE.name:
        return ROW_SELECTION_VARIANCE
    return ROW_SELECTION_ORDER


############################################
# General Helper Class
############################################


def column_exists_or_preset(
    context: knext.ConfigurationContext,
    column: str,
    schema: knext.Schema,
    func: Callable[[knext.Column], bool] = None,
    none_msg: str = "No compatible column found in input table",
) -> str:
    """
    Checks that the given column is not None and exists in the given schema. If none is selected it returns the
    first column that is compatible with the provided function. If none is compatible it throws an exception.
    """
    if column is None:
        for c in schema:
            if func(c):
                context.set_warning(f"Preset column to: {c.name}")
                return c.name
        raise knext.InvalidParametersError(none_msg)
    __check_col_and_type(column, schema, func)
    return column


def __check_col_and_type(
    column: str,
    schema: knext.Schema,
    check_type: Callable[[knext.Column], bool] = None,
) -> None:
    """
    Checks that the given column exists in the given schema and that it matches the given type_check function.
    """
    # Check that the column exists in the schema and that it has a compatible type
    try:
        existing_column = schema[column]
        if check_type is not None and not check_type(existing_column):
            raise knext.InvalidParametersError(f"Column '{str(column)}' has incompatible data type")
    except IndexError:
        raise knext.InvalidParametersError(f"Column '{str(column)}' not available in input table")


def count_columns_or_all(columns, schema: knext.Schema, label_column: str) -> list:
    """
    Returns the selected count columns, or every numeric column except the label column if none is selected.
    """
    if columns:
        for column in columns:
            __check_col_and_type(column, schema, is_numeric)
        return list(columns)
    numeric = [c.name for c in schema if is_numeric(c) and c.name != label_column]
    if not numeric:
        raise knext.InvalidParametersError("Input table does not contain any numeric count column.")
    return numeric


############################################
# Generic pandas dataframe/series helper function
############################################


def count_missing_values(column: pd.Series) -> int:
    """
    This function counts the number of missing values in the Pandas Series.
    @return: sum of boolean 1s if missing value exists.
    """
    return column.isnull().sum()


def number_of_rows(df: pd.Series) -> int:
    """
    This function returns the number of rows in the dataframe.
    @return: numerical value, denoting length of Pandas Series.
    """
    return len(df.index)


def count_negative_values(column: pd.Series) -> int:
    """
    This function counts the number of negative values in the Pandas Series.
    @return: number of entries below zero.
    """
    return int((column < 0).sum())


def check_count_table(df: pd.DataFrame, label_column: str, count_columns: list) -> list:
    """
    Validates a table holding a count matrix. Problems that make the analysis impossible raise
    InvalidParametersError, the others are returned as warning messages.
    """
    if number_of_rows(df) == 0:
        raise knext.InvalidParametersError("Input table is empty. Please provide a table with at least one row.")

    for column in [label_column] + list(count_columns):
        missing = count_missing_values(df[column])
        if missing > 0:
            raise knext.InvalidParametersError(
                f"Column '{column}' contains {missing} missing value(s). Please remove or impute them first."
            )

    duplicated = df[label_column].astype(str).duplicated()
    if duplicated.any():
        raise knext.InvalidParametersError(
            f"Row labels must be unique, but column '{label_column}' contains duplicates such as "
            f"'{df[label_column].astype(str)[duplicated].iloc[0]}'."
        )

    warnings = []
    for column in count_columns:
        negative = count_negative_values(df[column])
        if negative > 0:
            warnings.append(f"Column '{column}' contains {negative} negative value(s); counts are expected.")
    return warnings
