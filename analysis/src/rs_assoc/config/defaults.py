"""
Default configuration values.

Single source of truth for the thresholds used by the association analysis.
"""

from typing import Any

# Default train fractions for the stability branch (1.0 = full cohort)
DEFAULT_FRACTIONS = [0.5, 0.6, 0.7, 0.8, 0.9, 1.0]

DEFAULT_COLUMNS_CONFIG: dict[str, Any] = {
    "mode": "auto",
    "id_col": "sample",
    "signatures": [],
    "covariates": [],
    "exclude": [],
}

DEFAULT_SCREENING_CONFIG: dict[str, Any] = {
    "p_threshold": 0.05,
    "maxiter": 1000,
    "fdr_method": "fdr_bh",
}

DEFAULT_SELECTION_CONFIG: dict[str, Any] = {
    "fdr_threshold": 0.05,
    "direction": "both",
    "max_steps": 1000,
}

DEFAULT_STABILITY_CONFIG: dict[str, Any] = {
    "enabled": True,
    "fractions": list(DEFAULT_FRACTIONS),
    "n_replicates": 10,
    "p_threshold": 0.05,
    "seed": 0,
    "n_jobs": 1,
    "partitions_dir": None,
}

DEFAULT_REPORT_CONFIG: dict[str, Any] = {
    "padj_threshold": 0.1,
    "or_lower": 0.5,
    "or_upper": 1.5,
    "ci_level": 0.95,
}
