"""
Models package for rs_assoc.

- Structured model requests and design-matrix construction
- Binomial/logit GLM fitting with convergence checks
- Stepwise AIC selection
"""

from .glm import (
    DEFAULT_MAXITER,
    DesignMatrix,
    FittedModel,
    ModelRequest,
    build_design,
    dummy_name,
    expand_terms,
    fit_logistic,
)
from .stepwise import stepwise_aic

__all__ = [
    "DEFAULT_MAXITER",
    "DesignMatrix",
    "FittedModel",
    "ModelRequest",
    "build_design",
    "dummy_name",
    "expand_terms",
    "fit_logistic",
    "stepwise_aic",
]
