"""
Shared pytest fixtures for rs_assoc tests.

Cohort construction notes:
- ``X`` tracks the signature with 5/50 flips per class plus small noise, so
  its univariate Wald p-value is far below 1e-6.
- "Mirrored" noise covariates hold the same values in the positive and the
  negative half of the table; their logistic coefficient is exactly zero and
  they never pass the screen.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from rs_assoc.config.schema import ColumnsConfig, CovariateSpec
from rs_assoc.data.columns import resolve_columns

N_PER_CLASS = 50
N_FLIPS = 5


def mirrored(rng: np.random.Generator, n_per_class: int = N_PER_CLASS) -> np.ndarray:
    """Covariate whose values are identical across the two response classes."""
    half = rng.normal(size=n_per_class)
    return np.concatenate([half, half])


def make_cohort(
    seed: int = 0,
    n_noise: int = 5,
    strong: bool = True,
    n_per_class: int = N_PER_CLASS,
) -> pd.DataFrame:
    """Balanced cohort: first half RS1=0, second half RS1=1."""
    rng = np.random.default_rng(seed)
    n = 2 * n_per_class
    y = np.repeat([0, 1], n_per_class)

    data = {
        "sample": [f"S{i:03d}" for i in range(n)],
        "RS1": y,
    }
    if strong:
        x = y.astype(float)
        x[:N_FLIPS] = 1.0
        x[n_per_class : n_per_class + N_FLIPS] = 0.0
        data["X"] = x + rng.normal(scale=0.1, size=n)
    for i in range(n_noise):
        data[f"N{i + 1}"] = mirrored(rng, n_per_class)
    return pd.DataFrame(data)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo CLI logger setup so caplog sees package records in every test."""
    yield
    pkg_logger = logging.getLogger("rs_assoc")
    for handler in list(pkg_logger.handlers):
        handler.close()
    pkg_logger.handlers.clear()
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def strong_cohort():
    """100 samples, one strong covariate X and five mirrored noise covariates."""
    return make_cohort(seed=0)


@pytest.fixture
def noise_cohort():
    """100 samples with mirrored noise covariates only."""
    return make_cohort(seed=1, strong=False, n_noise=4)


@pytest.fixture
def strong_schema(strong_cohort):
    return resolve_columns(strong_cohort, ColumnsConfig(signatures=["RS1"]))


@pytest.fixture
def grouped_cohort():
    """
    Cohort with a categorical covariate and a dummy-coded group.

    ``stage`` has levels A/B/C with C enriched in positives; ``sub_a`` and
    ``sub_b`` are the 0/1 member columns of group ``subtype``.
    """
    rng = np.random.default_rng(7)
    n = 2 * N_PER_CLASS
    y = np.repeat([0, 1], N_PER_CLASS)
    stage_neg = ["A"] * 25 + ["B"] * 20 + ["C"] * 5
    stage_pos = ["A"] * 5 + ["B"] * 20 + ["C"] * 25
    sub_a = np.array([1.0] * 10 + [0.0] * 40 + [1.0] * 40 + [0.0] * 10)
    sub_b = np.array([0.0] * 10 + [1.0] * 20 + [0.0] * 20 + [0.0] * 40 + [1.0] * 5 + [0.0] * 5)
    return pd.DataFrame(
        {
            "sample": [f"G{i:03d}" for i in range(n)],
            "RS1": y,
            "RS2": rng.integers(0, 2, size=n),
            "stage": stage_neg + stage_pos,
            "sub_a": sub_a,
            "sub_b": sub_b,
            "age": mirrored(rng),
        }
    )


@pytest.fixture
def grouped_columns():
    return ColumnsConfig(
        mode="explicit",
        signatures=["RS1", "RS2"],
        covariates=[
            CovariateSpec(name="stage", kind="categorical"),
            CovariateSpec(name="sub_a", kind="binary", group="subtype"),
            CovariateSpec(name="sub_b", kind="binary", group="subtype"),
            CovariateSpec(name="age", kind="numeric"),
        ],
    )


@pytest.fixture
def cohort_csv(tmp_path, strong_cohort):
    """Strong cohort written to CSV."""
    path = tmp_path / "regression_input.csv"
    strong_cohort.to_csv(path, index=False)
    return path


@pytest.fixture
def subtype_cohort():
    """
    300 samples, three-level subtype stored as complete one-hot columns.

    RS1 prevalence is 10% in luminal, 80% in basal and 50% in HER2 tumours.
    """
    blocks = [("lum", 10), ("bas", 80), ("her2", 50)]
    rs1, labels = [], []
    for label, n_pos in blocks:
        rs1.extend([1] * n_pos + [0] * (100 - n_pos))
        labels.extend([label] * 100)
    labels = np.array(labels)
    return pd.DataFrame(
        {
            "sample": [f"T{i:03d}" for i in range(300)],
            "RS1": rs1,
            "subtype_lum": (labels == "lum").astype(float),
            "subtype_bas": (labels == "bas").astype(float),
            "subtype_her2": (labels == "her2").astype(float),
        }
    )


@pytest.fixture
def subtype_columns():
    return ColumnsConfig(
        mode="explicit",
        signatures=["RS1"],
        covariates=[
            CovariateSpec(name="subtype_lum", kind="binary", group="subtype"),
            CovariateSpec(name="subtype_bas", kind="binary", group="subtype"),
            CovariateSpec(name="subtype_her2", kind="binary", group="subtype"),
        ],
    )
