import logging
import knime.extension as knext
from util import utils as kutil
import ca_ext

LOGGER = logging.getLogger(__name__)


@knext.node(
    name="Correspondence Analyzer",
    node_type=knext.NodeType.LEARNER,
    icon_path="../icons/icon.png",
    category=ca_ext.main_category,
    id="correspondence_analysis",
)
@knext.input_table(
    name="Contingency Table",
    description="Count matrix to analyze: one string column holding the row labels and numeric count columns. Each column of counts is one category of the column variable.",
)
@knext.output_table(
    name="Variance Explained",
    description="Eigenvalue decomposition results showing dimension importance: eigenvalues, explained variance ratios, and cumulative variance.",
)
@knext.output_table(
    name="Coordinates",
    description="Mass and principal coordinates of every row and column category in the retained dimensions.",
)
@knext.output_image(
    name="Factor Map",
    description="2D biplot of row and column categories in the first two factorial dimensions.",
)
@knext.output_binary(
    name="Model",
    description="Stored CA result holding only the column standard coordinates, the singular values and the row principal coordinates. The CA Recomputer node completes it.",
    id=kutil.CA_MODEL_PORT_ID,
)
class CorrespondenceAnalysisNode:
    """
    Runs a Correspondence Analysis (CA) on a contingency table and stores the result in compact form.

    ## Mathematical Foundation

    The count matrix N is turned into the correspondence matrix P = N / n. With the row masses r and column masses c
    the standardized residuals S = D_r^(-1/2) (P - r c^T) D_c^(-1/2) are decomposed by a singular value
    decomposition S = U D V^T. The standard coordinates are the singular vectors divided by the square root of the
    masses; principal coordinates are standard coordinates multiplied by the singular values.

    ## Row Selection

    Large tables can be restricted to a number of top rows before the decomposition:
    - **First rows**: the first rows of the table in their current order.
    - **Top variance rows**: the rows whose standardized residuals have the largest variance.

    ## Stored Model

    The binary output only keeps the column standard coordinates, the singular values and the row principal
    coordinates, together with the number of considered rows. Masses, row standard coordinates and the scaled factor
    matrices are regenerated from the original table by the **CA Recomputer** node, without rerunning the
    decomposition.

    **Reference:** Greenacre, M. (2017). *Correspondence analysis in practice* (3rd ed.). Chapman and Hall/CRC.
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
        label="Number of Output Dimensions",
        description="Principal dimensions to keep. Cannot exceed the number of dimensions with non-zero inertia, which is at most min(rows, columns) - 1.",
        default_value=2,
        min_value=1,
        max_value=100,
    )

    top_rows = knext.IntParameter(
        label="Number of Top Rows",
        description="Number of rows the analysis is computed on. 0 uses all rows.",
        default_value=0,
        min_value=0,
    )

    row_selection = knext.EnumParameter(
        label="Row Selection",
        description="How the top rows are picked from the table.",
        default_value=kutil.RowSelectionOptions.FIRST_ROWS.name,
        enum=kutil.RowSelectionOptions,
    )

    def configure(self, configure_context: knext.ConfigurationContext, input_schema: knext.Schema):
        self.label_column = kutil.column_exists_or_preset(
            configure_context, self.label_column, input_schema, kutil.is_string, "No string column for the row labels found"
        )
        kutil.count_columns_or_all(self.count_columns, input_schema, self.label_column)
        max_dims = self.n_components

        variance_explained_schema = knext.Schema(
            [knext.double(), knext.double(), knext.double()],
            ["Eigenvalue", "Explained Variance Ratio", "Cumulative Explained Variance"],
        )

        coordinates_schema = knext.Schema(
            [knext.string(), knext.string(), knext.double()] + [knext.double()] * max_dims,
            ["Type", "Label", "Mass"] + [f"Coordinate (Dim {i + 1})" for i in range(max_dims)],
        )

        return (
            variance_explained_schema,
            coordinates_schema,
            knext.ImagePortObjectSpec(knext.ImageFormat.SVG),
            knext.BinaryPortObjectSpec(kutil.CA_MODEL_PORT_ID),
        )

    def execute(self, exec_context: knext.ExecutionContext, input_table: knext.Table):
        # Import heavy dependencies only when needed
        import pickle
        import pandas as pd
        import numpy as np
        import matplotlib.pyplot as plt
        from io import BytesIO
        from cacomp import CACompError, cacomp, frame_to_matrix, total_inertia

        df = input_table.to_pandas()
        count_columns = kutil.count_columns_or_all(self.count_columns, input_table.schema, self.label_column)
        for warning in kutil.check_count_table(df, self.label_column, count_columns):
            exec_context.set_warning(warning)
            LOGGER.warning(warning)

        top = self.top_rows if self.top_rows > 0 else None
        row_selection = kutil.row_selection_method(self.row_selection)

        try:
            mat = frame_to_matrix(df, self.label_column, count_columns)
            caobj = cacomp(mat, dims=self.n_components, top=top, row_selection=row_selection)
            inertia = total_inertia(mat, top=top, row_selection=row_selection)
        except (CACompError, ValueError) as e:
            raise knext.InvalidParametersError(str(e))

        max_dims = caobj.dims
        eigenvals = caobj.D**2
        explained_ratio = eigenvals / inertia

        # Principal coordinates of the columns for the biplot
        prin_coords_cols = caobj.std_coords_cols * caobj.D

        coords_df = pd.concat(
            [
                pd.DataFrame(
                    {"Type": "Row", "Label": caobj.prin_coords_rows.index.astype(str), "Mass": caobj.row_masses.to_numpy()}
                ),
                pd.DataFrame(
                    {"Type": "Column", "Label": prin_coords_cols.index.astype(str), "Mass": caobj.col_masses.to_numpy()}
                ),
            ],
            ignore_index=True,
        )
        scores_matrix = np.vstack([caobj.prin_coords_rows.to_numpy(), prin_coords_cols.to_numpy()])
        for i in range(max_dims):
            coords_df[f"Coordinate (Dim {i + 1})"] = scores_matrix[:, i]

        # === Create  factor map ===
        fig, ax = plt.subplots(figsize=(12, 6))
        ax.axhline(0, color="gray", lw=1)
        ax.axvline(0, color="gray", lw=1)
        ax.grid(True, linestyle="--", alpha=0.5)

        x = scores_matrix[:, 0]
        y = scores_matrix[:, 1] if max_dims > 1 else np.zeros_like(x)

        styles = {
            "Row": {"color": plt.get_cmap("tab10").colors[0], "marker": "o"},
            "Column": {"color": plt.get_cmap("tab10").colors[1], "marker": "s"},
        }
        for point_type, style in styles.items():
            mask = (coords_df["Type"] == point_type).to_numpy()
            ax.scatter(
                x[mask],
                y[mask],
                color=style["color"],
                marker=style["marker"],
                edgecolor="black",
                s=70,
                alpha=0.9,
                zorder=3,
                label=point_type,
            )

        base_offset = 0.015 * max(np.ptp(x), np.ptp(y), 1e-9)
        for xi, yi, label in zip(x, y, coords_df["Label"]):
            ax.text(
                xi + base_offset,
                yi + base_offset,
                label,
                fontsize=9,
                ha="left",
                va="bottom",
                bbox=dict(facecolor="white", alpha=0.7, edgecolor="none", pad=1.5),
            )

        # === Axis labels and final layout ===
        ax.set_xlabel(f"Dimension 1 ({explained_ratio[0] * 100:.1f}%)", fontsize=12)
        if max_dims > 1:
            ax.set_ylabel(f"Dimension 2 ({explained_ratio[1] * 100:.1f}%)", fontsize=12)
        ax.set_title("Correspondence Analysis – Factor Map", fontsize=14, weight="bold")
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        ax.legend(loc="best", fontsize=9, title="Type")

        # Save as SVG to in-memory buffer
        buf = BytesIO()
        fig.savefig(buf, format="svg")
        plt.close(fig)
        buf.seek(0)

        # Variance explained output
        result_df = pd.DataFrame(
            {
                "Eigenvalue": eigenvals,
                "Explained Variance Ratio": explained_ratio,
                "Cumulative Explained Variance": explained_ratio.cumsum(),
            }
        )

        model_binary = pickle.dumps(caobj.to_dict(derived=False))
        LOGGER.info(f"Stored CA result with {max_dims} dimensions and {caobj.top_rows} rows")

        return (
            knext.Table.from_pandas(result_df),
            knext.Table.from_pandas(coords_df),
            buf.getvalue(),
            model_binary,
        )
