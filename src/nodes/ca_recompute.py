import logging
import knime.extension as knext
from util import utils as kutil
import ca_ext

LOGGER = logging.getLogger(__name__)


@knext.node(
    name="CA Recomputer",
    node_type=knext.NodeType.PREDICTOR,
    icon_path="../icons/icon.png",
    category=ca_ext.main_category,
    id="ca_recompute",
)
@knext.input_table(
    name="Original Table",
    description="The contingency table the stored CA result was computed from: a string column with the row labels and the numeric count columns. The rows the result was computed on must come first.",
)
@knext.input_binary(
    name="Model",
    description="Stored CA result from the Correspondence Analyzer node.",
    id=kutil.CA_MODEL_PORT_ID,
)
@knext.output_table(
    name="Row Results",
    description="Mass, standard coordinates and mass-scaled factor matrix U for every row of the stored result.",
)
@knext.output_table(
    name="Column Results",
    description="Mass, standard coordinates and mass-scaled factor matrix V for every column of the stored result.",
)
@knext.output_binary(
    name="Completed Model",
    description="The CA result with masses, row standard coordinates, U and V filled in.",
    id=kutil.CA_MODEL_PORT_ID,
)
class CARecomputeNode:
    """
    Completes a stored Correspondence Analysis result without rerunning the singular value decomposition.

    **Recomputed Values:**
    The stored result only holds the column standard coordinates, the singular values D and the row principal
    coordinates. From these and the original table the node derives:
    1. **Row and column masses** from the first rows of the table (the rows the analysis was computed on).
    2. **Row standard coordinates**: row principal coordinates divided by the singular value of each dimension.
    3. **U**: row standard coordinates scaled by the square root of the row mass.
    4. **V**: column standard coordinates scaled by the square root of the column mass.

    **Original Table:** with "First rows", the rows the stored result was computed on must be the first rows of the
    table; further rows may follow and are ignored. The masses are taken over all selected count
    columns, so select exactly the columns the analysis was run on. Masses are matched to the stored coordinates by
    label. If a row or column of the stored result is missing, the node fails and names the missing labels.

    **Row Selection:** must match the setting used when the stored result was computed.
    """

    label_column = knext.ColumnParameter(
        label="Row Label Column",
        description="String column holding the unique label of each row.",
        column_filter=kutil.is_string,
    )

    count_columns = knext.MultiColumnParameter(
        label="Count Columns",
        description="Numeric columns holding the counts. If none are selected, all numeric columns are used.",
        column_filter=kutil.is_numeric,
    )

    n_components = knext.IntParameter(
        label="Number of Dimensions to output",
        description="Number of dimensions of the stored result to output.",
        default_value=2,
        min_value=1,
        max_value=100,
    )

    row_selection = knext.EnumParameter(
        label="Row Selection",
        description="How the rows the stored result was computed on are picked from the table.",
        default_value=kutil.RowSelectionOptions.FIRST_ROWS.name,
        enum=kutil.RowSelectionOptions,
    )

    def configure(
        self,
        configure_context: knext.ConfigurationContext,
        input_schema: knext.Schema,
        input_model: knext.BinaryPortObjectSpec,
    ):
        """
        Defines the row and column output schemas for the requested number of dimensions.
        """
        self.label_column = kutil.column_exists_or_preset(
            configure_context, self.label_column, input_schema, kutil.is_string, "No string column for the row labels found"
        )
        kutil.count_columns_or_all(self.count_columns, input_schema, self.label_column)
        max_dims = self.n_components

        row_schema = knext.Schema(
            [knext.string(), knext.double()] + [knext.double()] * (2 * max_dims),
            ["Label", "Mass"]
            + [f"Standard Coordinate (Dim {i + 1})" for i in range(max_dims)]
            + [f"U (Dim {i + 1})" for i in range(max_dims)],
        )
        column_schema = knext.Schema(
            [knext.string(), knext.double()] + [knext.double()] * (2 * max_dims),
            ["Label", "Mass"]
            + [f"Standard Coordinate (Dim {i + 1})" for i in range(max_dims)]
            + [f"V (Dim {i + 1})" for i in range(max_dims)],
        )

        return (
            row_schema,
            column_schema,
            knext.BinaryPortObjectSpec(kutil.CA_MODEL_PORT_ID),
        )

    def execute(self, exec_context: knext.ExecutionContext, input_table: knext.Table, model_binary: bytes):
        """
        Loads the stored result, recomputes its missing values from the table and outputs them.
        """
        # Import heavy dependencies only when needed
        import pickle
        import pandas as pd
        from cacomp import CACompError, as_cacomp, frame_to_matrix

        model_data = pickle.loads(model_binary)

        df = input_table.to_pandas()
        count_columns = kutil.count_columns_or_all(self.count_columns, input_table.schema, self.label_column)
        for warning in kutil.check_count_table(df, self.label_column, count_columns):
            exec_context.set_warning(warning)
            LOGGER.warning(warning)

        try:
            mat = frame_to_matrix(df, self.label_column, count_columns)
            caobj = as_cacomp(model_data, mat=mat, row_selection=kutil.row_selection_method(self.row_selection))
        except CACompError as e:
            raise knext.InvalidParametersError(str(e))

        max_dims = self.n_components
        if caobj.dims < max_dims:
            raise knext.InvalidParametersError(
                f"Requested {max_dims} dimensions, but the stored CA result only holds {caobj.dims} dimensions."
            )

        def results_table(masses, std_coords, scaled, scaled_name):
            table = pd.DataFrame({"Label": std_coords.index.astype(str), "Mass": masses.to_numpy()})
            for i in range(max_dims):
                table[f"Standard Coordinate (Dim {i + 1})"] = std_coords.iloc[:, i].to_numpy()
            for i in range(max_dims):
                table[f"{scaled_name} (Dim {i + 1})"] = scaled.iloc[:, i].to_numpy()
            return table

        row_df = results_table(caobj.row_masses, caobj.std_coords_rows, caobj.U, "U")
        col_df = results_table(caobj.col_masses, caobj.std_coords_cols, caobj.V, "V")

        return (
            knext.Table.from_pandas(row_df),
            knext.Table.from_pandas(col_df),
            pickle.dumps(caobj.to_dict()),
        )
