"""
Tests for coefficient tables and the association filter.
"""

import numpy as np
import pandas as pd
import pytest

from rs_assoc.data.schema import (
    COL_CI_LOWER,
    COL_CI_UPPER,
    COL_ESTIMATE,
    COL_INDEX,
    COL_ODDS_RATIO,
    COL_P_ADJ,
    COL_P_VALUE,
    COL_VARIABLE,
    INTERCEPT_TERM,
    TABLE_COLS,
)
from rs_assoc.evaluation.reports import (
    combine_coefficient_tables,
    filter_associations,
    to_table,
)
from rs_assoc.models.glm import ModelRequest, fit_logistic


@pytest.fixture
def strong_model(strong_cohort):
    return fit_logistic(ModelRequest("RS1", ["X", "N1"]), strong_cohort)


class TestToTable:
    """Model-to-table formatting."""

    def test_columns_and_rows(self, strong_model):
        table = to_table(strong_model)
        assert list(table.columns) == TABLE_COLS
        assert table[COL_VARIABLE].tolist() == [INTERCEPT_TERM, "X", "N1"]

    def test_odds_ratio_is_exp_estimate(self, strong_model):
        table = to_table(strong_model)
        np.testing.assert_allclose(table[COL_ODDS_RATIO], np.exp(table[COL_ESTIMATE]))

    def test_ci_is_exp_native_ci(self, strong_model):
        table = to_table(strong_model).set_index(COL_VARIABLE)
        ci = strong_model.conf_int(alpha=0.05)
        np.testing.assert_allclose(table[COL_CI_LOWER], np.exp(ci[0]))
        np.testing.assert_allclose(table[COL_CI_UPPER], np.exp(ci[1]))
        assert (table[COL_CI_LOWER] < table[COL_ODDS_RATIO]).all()
        assert (table[COL_ODDS_RATIO] < table[COL_CI_UPPER]).all()

    def test_ci_level(self, strong_model):
        wide = to_table(strong_model, ci_level=0.99).set_index(COL_VARIABLE)
        narrow = to_table(strong_model, ci_level=0.90).set_index(COL_VARIABLE)
        assert narrow.loc["X", COL_CI_LOWER] > wide.loc["X", COL_CI_LOWER]
        assert narrow.loc["X", COL_CI_UPPER] < wide.loc["X", COL_CI_UPPER]

    def test_invalid_ci_level(self, strong_model):
        with pytest.raises(ValueError, match="ci_level"):
            to_table(strong_model, ci_level=1.0)


def _table(rows):
    return pd.DataFrame(rows, columns=[COL_VARIABLE, COL_P_VALUE, COL_ODDS_RATIO]).reindex(
        columns=TABLE_COLS
    )


class TestCombineCoefficientTables:
    """Stacking per-signature tables."""

    def test_index_and_padj(self):
        tables = {
            "RS1": _table([[INTERCEPT_TERM, 0.5, 1.0], ["X", 0.001, 3.0]]),
            "RS2": _table([[INTERCEPT_TERM, 0.001, 1.0], ["age", 0.04, 0.4]]),
        }
        combined = combine_coefficient_tables(tables)
        assert combined.columns[0] == COL_INDEX
        assert combined[COL_INDEX].tolist() == ["RS1", "RS1", "RS2", "RS2"]

        is_intercept = combined[COL_VARIABLE] == INTERCEPT_TERM
        assert combined.loc[is_intercept, COL_P_ADJ].isna().all()
        # BH over the two non-intercept rows
        terms = combined[~is_intercept].set_index(COL_VARIABLE)
        assert terms.loc["X", COL_P_ADJ] == pytest.approx(0.002)
        assert terms.loc["age", COL_P_ADJ] == pytest.approx(0.04)

    def test_empty_tables_skipped(self):
        combined = combine_coefficient_tables({"RS1": _table([]), "RS2": None})
        assert combined.empty
        assert COL_P_ADJ in combined.columns

    def test_from_models(self, strong_model):
        combined = combine_coefficient_tables({"RS1": to_table(strong_model)})
        assert len(combined) == 3
        assert combined[COL_P_ADJ].notna().sum() == 2


class TestFilterAssociations:
    """padj and odds-ratio filter."""

    def test_filter_rules(self):
        combined = pd.DataFrame(
            {
                COL_VARIABLE: ["X", "Y", "Z", "W"],
                COL_P_ADJ: [0.01, 0.01, 0.2, 0.05],
                COL_ODDS_RATIO: [3.0, 1.2, 4.0, 0.3],
            }
        )
        result = filter_associations(combined)
        assert result[COL_VARIABLE].tolist() == ["X", "W"]

    def test_boundaries_exclusive(self):
        combined = pd.DataFrame(
            {
                COL_VARIABLE: ["A", "B", "C"],
                COL_P_ADJ: [0.1, 0.01, 0.01],
                COL_ODDS_RATIO: [3.0, 1.5, 0.5],
            }
        )
        assert filter_associations(combined).empty

    def test_intercept_never_included(self):
        combined = pd.DataFrame(
            {
                COL_VARIABLE: [INTERCEPT_TERM, "X"],
                COL_P_ADJ: [1e-9, 1e-3],
                COL_ODDS_RATIO: [10.0, 2.0],
            }
        )
        result = filter_associations(combined)
        assert INTERCEPT_TERM not in result[COL_VARIABLE].tolist()
        assert result[COL_VARIABLE].tolist() == ["X"]

    def test_intercept_never_included_end_to_end(self, strong_cohort):
        model = fit_logistic(ModelRequest("RS1", ["X"]), strong_cohort)
        combined = combine_coefficient_tables({"RS1": to_table(model)})
        result = filter_associations(combined, padj_threshold=1.0, or_lower=1.0, or_upper=1.0)
        assert INTERCEPT_TERM not in result[COL_VARIABLE].tolist()

    def test_custom_thresholds(self):
        combined = pd.DataFrame(
            {COL_VARIABLE: ["X"], COL_P_ADJ: [0.15], COL_ODDS_RATIO: [1.3]}
        )
        assert filter_associations(combined).empty
        result = filter_associations(combined, padj_threshold=0.2, or_upper=1.25)
        assert len(result) == 1
