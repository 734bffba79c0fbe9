"""
rs_assoc: Rearrangement-signature association analysis

Per-signature logistic association models between binary rearrangement
signature presence and clinical / genomic covariates, with a stability
analysis over repeated stratified sub-sampling.
"""

# Enable pandas Copy-on-Write; every derived table is a new object
import pandas as pd

pd.options.mode.copy_on_write = True

__version__ = "1.0.0"

from rs_assoc import (  # noqa: E402
    config,
    data,
    evaluation,
    features,
    metrics,
    models,
    utils,
)

__all__ = [
    "__version__",
    "config",
    "data",
    "evaluation",
    "features",
    "metrics",
    "models",
    "utils",
]
