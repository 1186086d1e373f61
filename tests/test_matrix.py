import numpy as np
import pandas as pd
import pytest

from cacomp import AlignmentError, TypeMismatchError, as_matrix, frame_to_matrix
from cacomp.matrix import count_negative_values


class TestAsMatrix:
    def test_returns_float_copy(self, scenario_matrix):
        mat = as_matrix(scenario_matrix)

        assert (mat.dtypes == float).all()
        assert mat is not scenario_matrix
        assert list(mat.index) == ["r1", "r2", "r3"]

    def test_rejects_array(self):
        with pytest.raises(TypeMismatchError, match="labelled numeric matrix"):
            as_matrix(np.ones((2, 2)))

    def test_rejects_strings(self, scenario_matrix):
        with pytest.raises(TypeMismatchError, match="c3"):
            as_matrix(scenario_matrix.assign(c3=["a", "b", "c"]))

    def test_rejects_booleans(self, scenario_matrix):
        with pytest.raises(TypeMismatchError):
            as_matrix(scenario_matrix > 2)

    def test_rejects_missing_values(self, scenario_matrix):
        mat = scenario_matrix.astype(float)
        mat.iloc[0, 0] = np.nan

        with pytest.raises(TypeMismatchError, match="missing"):
            as_matrix(mat)

    def test_rejects_duplicated_labels(self, scenario_matrix):
        mat = scenario_matrix.rename(index={"r3": "r1"})

        with pytest.raises(AlignmentError) as excinfo:
            as_matrix(mat)

        assert excinfo.value.labels == ["r1"]


class TestFrameToMatrix:
    @pytest.fixture
    def table(self):
        return pd.DataFrame(
            {
                "gene": ["g1", "g2", "g3"],
                "cell_a": [1, 2, 3],
                "note": ["x", "y", "z"],
                "cell_b": [4.0, 5.0, 6.0],
            }
        )

    def test_uses_label_column_and_numeric_columns(self, table):
        mat = frame_to_matrix(table, "gene")

        assert list(mat.index) == ["g1", "g2", "g3"]
        assert list(mat.columns) == ["cell_a", "cell_b"]
        assert mat.loc["g2", "cell_b"] == 5.0

    def test_selected_columns(self, table):
        mat = frame_to_matrix(table, "gene", ["cell_b"])

        assert list(mat.columns) == ["cell_b"]

    def test_labels_become_strings(self):
        mat = frame_to_matrix(pd.DataFrame({"id": [1, 2], "n": [3, 4]}), "id", ["n"])

        assert list(mat.index) == ["1", "2"]

    def test_unknown_label_column(self, table):
        with pytest.raises(TypeMismatchError):
            frame_to_matrix(table, "cell")

    def test_unknown_value_column(self, table):
        with pytest.raises(TypeMismatchError):
            frame_to_matrix(table, "gene", ["cell_c"])


def test_count_negative_values(scenario_matrix):
    assert count_negative_values(scenario_matrix) == 0
    assert count_negative_values(scenario_matrix.assign(c3=[-1, 0, -2])) == 2
