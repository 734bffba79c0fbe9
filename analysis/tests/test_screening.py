"""
Tests for univariate covariate screening.
"""

import numpy as np
import pytest

from rs_assoc.config.schema import ColumnsConfig
from rs_assoc.data.columns import resolve_columns
from rs_assoc.data.schema import COL_COVARIATE, COL_P_ADJ, COL_P_VALUE, SCREEN_COLS
from rs_assoc.errors import ConvergenceFailure
from rs_assoc.features import screening
from rs_assoc.features.screening import (
    empty_screen,
    reduced_screening_verbosity,
    screen_univariate,
)


class TestScreenUnivariate:
    """Raw-p screen with FDR over retained rows."""

    def test_strong_covariate_retained(self, strong_cohort):
        screen = screen_univariate("RS1", strong_cohort)
        assert list(screen.index) == ["X"]
        assert list(screen.columns) == SCREEN_COLS
        assert screen.loc["X", COL_COVARIATE] == "X"
        assert screen.loc["X", COL_P_VALUE] < 1e-6

    def test_never_returns_raw_p_above_threshold(self, grouped_cohort, grouped_columns):
        schema = resolve_columns(grouped_cohort, grouped_columns)
        for threshold in (0.05, 0.01, 1e-4):
            screen = screen_univariate(
                "RS1", grouped_cohort, schema=schema, p_threshold=threshold
            )
            assert (screen[COL_P_VALUE] < threshold).all()

    def test_fdr_monotone_in_raw_p(self, grouped_cohort, grouped_columns):
        """Rows are sorted by raw p and the adjustment preserves that order."""
        schema = resolve_columns(grouped_cohort, grouped_columns)
        screen = screen_univariate("RS1", grouped_cohort, schema=schema)
        assert len(screen) >= 2
        assert screen[COL_P_VALUE].is_monotonic_increasing
        assert screen[COL_P_ADJ].is_monotonic_increasing
        assert (screen[COL_P_ADJ] >= screen[COL_P_VALUE] - 1e-15).all()

    def test_fdr_over_retained_rows_only(self, grouped_cohort, grouped_columns):
        """Smallest p_adj equals n_retained * min p (BH over retained rows)."""
        schema = resolve_columns(grouped_cohort, grouped_columns)
        screen = screen_univariate("RS1", grouped_cohort, schema=schema)
        n = len(screen)
        expected = min(1.0, np.min(screen[COL_P_VALUE].to_numpy() * n / np.arange(1, n + 1)))
        assert screen[COL_P_ADJ].iloc[0] == pytest.approx(expected)

    def test_categorical_rows_per_level(self, grouped_cohort, grouped_columns):
        """Categorical covariates contribute one row per dummy level."""
        schema = resolve_columns(grouped_cohort, grouped_columns)
        screen = screen_univariate("RS1", grouped_cohort, schema=schema)
        assert "stage[T.B]" in screen.index
        assert "stage[T.C]" in screen.index
        assert set(screen.loc[["stage[T.B]", "stage[T.C]"], COL_COVARIATE]) == {"stage"}

    def test_other_signatures_excluded(self, grouped_cohort, grouped_columns):
        """No signature column is screened as a covariate of another."""
        schema = resolve_columns(grouped_cohort, grouped_columns)
        screen = screen_univariate("RS1", grouped_cohort, schema=schema, p_threshold=1.0)
        assert "RS2" not in set(screen[COL_COVARIATE])
        assert "sample" not in set(screen[COL_COVARIATE])

    def test_noise_only_is_empty(self, noise_cohort):
        screen = screen_univariate("RS1", noise_cohort)
        assert screen.empty
        assert list(screen.columns) == SCREEN_COLS

    def test_explicit_covariate_list(self, strong_cohort):
        screen = screen_univariate("RS1", strong_cohort, covariates=["N1", "N2"])
        assert screen.empty

    def test_convergence_failure_drops_covariate(self, strong_cohort, monkeypatch):
        """A covariate whose fit fails is skipped; the screen still completes."""
        real_fit = screening.fit_logistic
        attempted = []

        def flaky_fit(request, table, **kwargs):
            attempted.extend(request.terms)
            if request.terms == ("X",):
                raise ConvergenceFailure("forced", terms=["X"])
            return real_fit(request, table, **kwargs)

        monkeypatch.setattr(screening, "fit_logistic", flaky_fit)
        screen = screen_univariate("RS1", strong_cohort)
        assert screen.empty
        assert attempted == ["X", "N1", "N2", "N3", "N4", "N5"]

    def test_bonferroni_adjustment(self, grouped_cohort, grouped_columns):
        schema = resolve_columns(grouped_cohort, grouped_columns)
        screen = screen_univariate("RS1", grouped_cohort, schema=schema, fdr_method="bonferroni")
        n = len(screen)
        expected = np.minimum(screen[COL_P_VALUE].to_numpy() * n, 1.0)
        assert screen[COL_P_ADJ].to_numpy() == pytest.approx(expected)

    def test_separated_covariate_dropped(self, strong_cohort):
        """A perfectly separating covariate fails its fit and is left out."""
        df = strong_cohort.assign(S=strong_cohort["RS1"] * 2.0 + 0.1)
        screen = screen_univariate("RS1", df)
        assert list(screen.index) == ["X"]

    def test_table_not_modified(self, strong_cohort):
        before = strong_cohort.copy()
        screen_univariate("RS1", strong_cohort)
        assert strong_cohort.equals(before)


class TestScreeningHelpers:
    """Empty result and verbosity toggle."""

    def test_empty_screen(self):
        screen = empty_screen()
        assert screen.empty
        assert screen.index.name == "variable"

    def test_reduced_verbosity_restores_flag(self):
        assert screening._REDUCED_VERBOSITY is False
        with reduced_screening_verbosity():
            assert screening._REDUCED_VERBOSITY is True
        assert screening._REDUCED_VERBOSITY is False

    def test_reduced_verbosity_logs_at_debug(self, strong_cohort, caplog):
        schema = resolve_columns(strong_cohort, ColumnsConfig(signatures=["RS1"]))
        with caplog.at_level("DEBUG", logger="rs_assoc"):
            with reduced_screening_verbosity():
                screen_univariate("RS1", strong_cohort, schema=schema)
        screened = [r for r in caplog.records if r.getMessage().startswith("Screened RS1")]
        assert screened
        assert all(r.levelname == "DEBUG" for r in screened)
