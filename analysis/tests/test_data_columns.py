"""
Tests for data.columns module (column resolution logic).
"""

import pandas as pd
import pytest

from rs_assoc.config.schema import ColumnsConfig, CovariateSpec
from rs_assoc.data.columns import (
    CovariateSchema,
    infer_kind,
    resolve_columns,
    validate_cohort_table,
)


class TestInferKind:
    """Dtype-based kind inference for auto mode."""

    def test_object_is_categorical(self):
        assert infer_kind(pd.Series(["A", "B", "A"])) == "categorical"

    def test_category_dtype(self):
        assert infer_kind(pd.Series(["A", "B"], dtype="category")) == "categorical"

    def test_zero_one_is_binary(self):
        assert infer_kind(pd.Series([0, 1, 1, 0])) == "binary"
        assert infer_kind(pd.Series([0.0, 1.0, None])) == "binary"

    def test_bool_is_binary(self):
        assert infer_kind(pd.Series([True, False])) == "binary"

    def test_continuous_is_numeric(self):
        assert infer_kind(pd.Series([0.1, 2.5, 3.0])) == "numeric"


class TestResolveColumns:
    """Auto and explicit column resolution."""

    def test_auto_mode(self, grouped_cohort):
        schema = resolve_columns(grouped_cohort, ColumnsConfig(signatures=["RS1", "RS2"]))
        assert schema.id_col == "sample"
        assert schema.covariate_names == ["stage", "sub_a", "sub_b", "age"]
        assert schema.kind("stage") == "categorical"
        assert schema.kind("sub_a") == "binary"
        assert schema.kind("age") == "numeric"

    def test_auto_mode_declared_overrides_inference(self, grouped_cohort):
        config = ColumnsConfig(
            signatures=["RS1", "RS2"],
            covariates=[CovariateSpec(name="sub_a", kind="binary", group="subtype")],
        )
        schema = resolve_columns(grouped_cohort, config)
        assert schema.group_of("sub_a") == "subtype"
        assert schema.group_of("sub_b") == "sub_b"

    def test_auto_mode_exclude(self, grouped_cohort):
        config = ColumnsConfig(signatures=["RS1", "RS2"], exclude=["age"])
        schema = resolve_columns(grouped_cohort, config)
        assert "age" not in schema.covariate_names

    def test_explicit_mode(self, grouped_cohort, grouped_columns):
        schema = resolve_columns(grouped_cohort, grouped_columns)
        assert schema.covariate_names == ["stage", "sub_a", "sub_b", "age"]
        assert schema.group_members("subtype") == ["sub_a", "sub_b"]

    def test_explicit_missing_declared_warns(self, grouped_cohort, caplog):
        config = ColumnsConfig(
            mode="explicit",
            signatures=["RS1"],
            covariates=[CovariateSpec(name="age"), CovariateSpec(name="bmi")],
        )
        with caplog.at_level("WARNING"):
            schema = resolve_columns(grouped_cohort, config)
        assert schema.covariate_names == ["age"]
        assert "bmi" in caplog.text

    def test_missing_signature(self, grouped_cohort):
        with pytest.raises(ValueError, match="Signature columns not found"):
            resolve_columns(grouped_cohort, ColumnsConfig(signatures=["RS9"]))

    def test_missing_id(self, grouped_cohort):
        with pytest.raises(ValueError, match="Identifier column"):
            resolve_columns(grouped_cohort.drop(columns="sample"), ColumnsConfig())

    def test_no_covariates(self):
        df = pd.DataFrame({"sample": ["a", "b"], "RS1": [0, 1]})
        with pytest.raises(ValueError, match="No covariate"):
            resolve_columns(df, ColumnsConfig(signatures=["RS1"]))

    def test_column_list_input(self):
        schema = resolve_columns(["sample", "RS1", "age"], ColumnsConfig(signatures=["RS1"]))
        assert schema.covariate_names == ["age"]
        assert schema.kind("age") == "numeric"


class TestCovariateSchema:
    """Candidate sets and group merging."""

    @pytest.fixture
    def schema(self):
        return CovariateSchema(
            id_col="sample",
            signatures=["RS1", "RS2"],
            covariates=[
                CovariateSpec(name="age"),
                CovariateSpec(name="sub_a", kind="binary", group="subtype"),
                CovariateSpec(name="sub_b", kind="binary", group="subtype"),
                CovariateSpec(name="stage", kind="categorical"),
            ],
        )

    def test_candidates_exclude_signatures(self):
        schema = CovariateSchema(
            id_col="sample",
            signatures=["RS1", "RS2"],
            covariates=[CovariateSpec(name="age"), CovariateSpec(name="RS2")],
        )
        assert schema.candidate_covariates("RS1") == ["age"]

    def test_merge_terms_collapses_groups(self, schema):
        assert schema.merge_terms(["stage", "sub_b"]) == ["stage", "subtype"]

    def test_merge_terms_no_duplicates(self, schema):
        assert schema.merge_terms(["sub_a", "sub_b", "age", "sub_a"]) == ["subtype", "age"]

    def test_design_groups(self, schema):
        assert schema.design_groups() == {"subtype": ["sub_a", "sub_b"]}

    def test_group_name_clashes_with_column(self, grouped_cohort):
        config = ColumnsConfig(
            signatures=["RS1", "RS2"],
            covariates=[CovariateSpec(name="sub_a", kind="binary", group="age")],
        )
        with pytest.raises(ValueError, match="Group names collide"):
            resolve_columns(grouped_cohort, config)

    def test_unknown_covariate(self, schema):
        with pytest.raises(KeyError, match="Unknown covariate"):
            schema.kind("bmi")


class TestValidateCohortTable:
    """Cohort-table invariants."""

    def test_valid(self, grouped_cohort, grouped_columns):
        validate_cohort_table(grouped_cohort, resolve_columns(grouped_cohort, grouped_columns))

    def test_duplicate_ids(self, grouped_cohort, grouped_columns):
        df = grouped_cohort.copy()
        df.loc[1, "sample"] = df.loc[0, "sample"]
        with pytest.raises(ValueError, match="Duplicate sample identifiers"):
            validate_cohort_table(df, resolve_columns(df, grouped_columns))

    def test_non_binary_signature(self, grouped_cohort, grouped_columns):
        df = grouped_cohort.copy()
        df.loc[0, "RS1"] = 2
        with pytest.raises(ValueError, match="not coded"):
            validate_cohort_table(df, resolve_columns(df, grouped_columns))
