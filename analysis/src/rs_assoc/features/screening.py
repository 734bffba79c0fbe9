"""
Univariate covariate screening.

For one binary signature response, fits one single-covariate logistic model
per candidate covariate and keeps the coefficients whose Wald p-value passes
the raw threshold. Adjusted p-values (Benjamini-Hochberg by default) are then
computed over the retained coefficients only; the multivariate step filters on those.
"""

import contextlib
import logging

import pandas as pd

from rs_assoc.config.schema import ColumnsConfig
from rs_assoc.data.columns import CovariateSchema, resolve_columns
from rs_assoc.data.schema import (
    COL_COVARIATE,
    COL_ESTIMATE,
    COL_P_ADJ,
    COL_P_VALUE,
    COL_STATISTIC,
    COL_STD_ERROR,
    COL_VARIABLE,
    INTERCEPT_TERM,
    SCREEN_COLS,
)
from rs_assoc.errors import ConvergenceFailure
from rs_assoc.metrics.multitest import fdr_bh
from rs_assoc.models.glm import DEFAULT_MAXITER, ModelRequest, fit_logistic

logger = logging.getLogger(__name__)

# Global flag for reduced verbosity mode (e.g., during resampled stability runs)
_REDUCED_VERBOSITY = False


@contextlib.contextmanager
def reduced_screening_verbosity():
    """Context manager to temporarily reduce screening log verbosity.

    Use this around the stability replicates, where one screen per partition
    creates noise without adding value.

    Example:
        >>> with reduced_screening_verbosity():
        ...     summary = aggregate_stability("RS1", partitions_by_fraction)
    """
    global _REDUCED_VERBOSITY
    old_value = _REDUCED_VERBOSITY
    _REDUCED_VERBOSITY = True
    try:
        yield
    finally:
        _REDUCED_VERBOSITY = old_value


def empty_screen() -> pd.DataFrame:
    """Screen result with no rows and the standard columns."""
    df = pd.DataFrame(columns=SCREEN_COLS)
    df.index.name = COL_VARIABLE
    return df


def screen_univariate(
    response: str,
    table: pd.DataFrame,
    *,
    schema: CovariateSchema | None = None,
    covariates: list[str] | None = None,
    p_threshold: float = 0.05,
    fdr_method: str = "fdr_bh",
    maxiter: int = DEFAULT_MAXITER,
) -> pd.DataFrame:
    """
    Screen candidate covariates for association with ``response``.

    Parameters
    ----------
    response : str
        Binary signature column
    table : pd.DataFrame
        Cohort table or a partition's training subset
    schema : CovariateSchema, optional
        Resolved column roles; defaults to auto-detection with ``response`` as
        the only signature
    covariates : List[str], optional
        Explicit candidate list (overrides the schema's candidate set)
    p_threshold : float, default=0.05
        Raw p-value threshold (strict ``<``)
    fdr_method : str, default="fdr_bh"
        statsmodels ``multipletests`` method for ``p_adj``
    maxiter : int, default=1000
        Maximum IRLS iterations per fit

    Returns
    -------
    screen : pd.DataFrame
        Indexed by coefficient name (``variable``; one row per dummy level for
        categorical covariates) with columns:
        - covariate: covariate the coefficient belongs to
        - estimate, std_error, statistic, p_value: Wald coefficient row
        - p_adj: adjusted p-value across the retained rows
        Sorted by p_value ascending. Empty (same columns) when nothing passes.

    Notes
    -----
    - A covariate whose fit raises ConvergenceFailure is dropped, not retried.
    - The FDR adjustment covers only coefficients that passed the
      raw threshold, not the whole candidate set.
    """
    if schema is None:
        schema = resolve_columns(table, ColumnsConfig(signatures=[response]))
    if covariates is None:
        covariates = schema.candidate_covariates(response)
    kinds = {c.name: c.kind for c in schema.covariates}

    if len(covariates) == 0:
        logger.debug(f"Screening {response}: no candidate covariates")
        return empty_screen()

    rows = []
    n_failed = 0
    for covariate in covariates:
        try:
            model = fit_logistic(
                ModelRequest(response, (covariate,)), table, kinds=kinds, maxiter=maxiter
            )
        except ConvergenceFailure as e:
            n_failed += 1
            logger.debug(f"Screen {response} ~ {covariate} dropped: {e}")
            continue

        for coef in model.coef_names:
            if coef == INTERCEPT_TERM:
                continue
            rows.append(
                {
                    COL_VARIABLE: coef,
                    COL_COVARIATE: covariate,
                    COL_ESTIMATE: float(model.params[coef]),
                    COL_STD_ERROR: float(model.bse[coef]),
                    COL_STATISTIC: float(model.tvalues[coef]),
                    COL_P_VALUE: float(model.pvalues[coef]),
                }
            )

    log_level = logger.debug if _REDUCED_VERBOSITY else logger.info
    if n_failed:
        log_level(f"Screen {response}: {n_failed}/{len(covariates)} covariate fits did not converge")

    if not rows:
        log_level(f"Screened {response}: 0/{len(covariates)} covariates (n={len(table)})")
        return empty_screen()

    stats = pd.DataFrame(rows).set_index(COL_VARIABLE)
    retained = stats[stats[COL_P_VALUE] < p_threshold].copy()
    retained = retained.sort_values(COL_P_VALUE, kind="mergesort")
    retained[COL_P_ADJ] = fdr_bh(retained[COL_P_VALUE].to_numpy(), method=fdr_method)

    log_level(
        f"Screened {response}: {retained[COL_COVARIATE].nunique()}/{len(covariates)} covariates "
        f"({len(retained)} coefficients, n={len(table)}, p<{p_threshold})"
    )
    if len(retained) > 0:
        logger.debug(
            f"  P-value range: [{retained[COL_P_VALUE].min():.2e}, {retained[COL_P_VALUE].max():.2e}], "
            f"q<0.05={int((retained[COL_P_ADJ] < 0.05).sum())}"
        )

    return retained[SCREEN_COLS]
