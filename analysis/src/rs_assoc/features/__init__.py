"""Univariate screening, stepwise model selection and stability aggregation."""

from .screening import empty_screen, reduced_screening_verbosity, screen_univariate
from .selection import select_model, significant_covariates
from .stability import (
    aggregate_stability,
    compute_retention_frequencies,
    retained_coefficients,
    run_stability,
)

__all__ = [
    "empty_screen",
    "reduced_screening_verbosity",
    "screen_univariate",
    "select_model",
    "significant_covariates",
    "aggregate_stability",
    "compute_retention_frequencies",
    "retained_coefficients",
    "run_stability",
]
