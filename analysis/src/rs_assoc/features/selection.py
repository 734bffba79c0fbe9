"""
Multivariate model selection for one signature.

Builds a multivariate logistic model from the covariates whose univariate
coefficients survive the FDR filter, then prunes it by stepwise AIC.
Dummy-coded members of a declared group are merged back into one group term
before the multivariate fit, so stepwise adds and drops the group as a unit.
"""

import logging

import pandas as pd

from rs_assoc.config.schema import ColumnsConfig, ScreeningConfig, SelectionConfig
from rs_assoc.data.columns import CovariateSchema, resolve_columns
from rs_assoc.data.schema import COL_COVARIATE, COL_P_ADJ
from rs_assoc.errors import ConvergenceFailure, FitError
from rs_assoc.features.screening import screen_univariate
from rs_assoc.models.glm import FittedModel, ModelRequest, fit_logistic
from rs_assoc.models.stepwise import stepwise_aic

logger = logging.getLogger(__name__)


def significant_covariates(screen: pd.DataFrame, fdr_threshold: float = 0.05) -> list[str]:
    """Covariates with at least one coefficient at ``p_adj < fdr_threshold``, in screen order."""
    if screen.empty:
        return []
    passed = screen[screen[COL_P_ADJ] < fdr_threshold]
    return list(dict.fromkeys(passed[COL_COVARIATE].tolist()))


def select_model(
    response: str,
    table: pd.DataFrame,
    *,
    schema: CovariateSchema | None = None,
    screening: ScreeningConfig | None = None,
    selection: SelectionConfig | None = None,
) -> FittedModel | None:
    """
    Screen, fit and stepwise-reduce a multivariate model for ``response``.

    Args:
        response: Binary signature column
        table: Cohort table or a partition's training subset
        schema: Resolved column roles (auto-detected when omitted)
        screening: Univariate screen settings
        selection: FDR threshold and stepwise settings

    Returns:
        The stepwise-selected FittedModel, or None when no covariate passes
        the univariate + FDR filter

    Raises:
        FitError: If the initial multivariate model fails to converge
    """
    screening = screening or ScreeningConfig()
    selection = selection or SelectionConfig()
    if schema is None:
        schema = resolve_columns(table, ColumnsConfig(signatures=[response]))

    screen = screen_univariate(
        response,
        table,
        schema=schema,
        p_threshold=screening.p_threshold,
        fdr_method=screening.fdr_method,
        maxiter=screening.maxiter,
    )
    covariates = significant_covariates(screen, selection.fdr_threshold)
    if not covariates:
        logger.debug(f"{response}: no covariate passed FDR<{selection.fdr_threshold}")
        return None

    terms = schema.merge_terms(covariates)
    kinds = {c.name: c.kind for c in schema.covariates}
    groups = schema.design_groups()
    request = ModelRequest(response, tuple(terms))

    try:
        initial = fit_logistic(
            request, table, kinds=kinds, groups=groups, maxiter=screening.maxiter
        )
    except ConvergenceFailure as e:
        raise FitError(response, f"multivariate model did not converge: {e}") from e

    model = stepwise_aic(
        initial,
        table,
        kinds=kinds,
        groups=groups,
        direction=selection.direction,
        max_steps=selection.max_steps,
        maxiter=screening.maxiter,
    )
    logger.debug(
        f"{response}: {len(terms)} terms in, {len(model.terms)} kept "
        f"(AIC {initial.aic:.2f} -> {model.aic:.2f})"
    )
    return model
