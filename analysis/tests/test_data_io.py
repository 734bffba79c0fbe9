"""
Tests for data I/O module.
"""

import pandas as pd
import pytest

from rs_assoc.data.io import (
    get_data_stats,
    read_cohort_file,
    validate_required_columns,
)


class TestReadCohortFile:
    """CSV / TSV reading and column checks."""

    def test_read_csv(self, cohort_csv, strong_cohort):
        df = read_cohort_file(cohort_csv, required=["RS1"])
        assert len(df) == len(strong_cohort)
        assert list(df.columns) == list(strong_cohort.columns)

    def test_read_tsv(self, tmp_path, strong_cohort):
        path = tmp_path / "cohort.tsv"
        strong_cohort.to_csv(path, sep="\t", index=False)
        df = read_cohort_file(path)
        assert df.shape == strong_cohort.shape

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_cohort_file(tmp_path / "missing.csv")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "cohort.xlsx"
        path.write_text("x")
        with pytest.raises(ValueError, match="Unsupported file format"):
            read_cohort_file(path)

    def test_missing_required_column(self, cohort_csv):
        with pytest.raises(ValueError, match="Required columns missing"):
            read_cohort_file(cohort_csv, required=["RS9"])

    def test_custom_id_col(self, tmp_path, strong_cohort):
        path = tmp_path / "cohort.csv"
        strong_cohort.rename(columns={"sample": "donor"}).to_csv(path, index=False)
        with pytest.raises(ValueError):
            read_cohort_file(path)
        assert "donor" in read_cohort_file(path, id_col="donor").columns


class TestDataStats:
    def test_validate_required_columns(self):
        validate_required_columns(pd.DataFrame({"a": [1]}), ["a"])
        with pytest.raises(ValueError):
            validate_required_columns(pd.DataFrame({"a": [1]}), ["b"])

    def test_get_data_stats(self, strong_cohort):
        stats = get_data_stats(strong_cohort, ["RS1", "RS9"])
        assert stats["n_samples"] == 100
        assert stats["signature_positives"] == {"RS1": 50}
        assert stats["n_columns_with_missing"] == 0
