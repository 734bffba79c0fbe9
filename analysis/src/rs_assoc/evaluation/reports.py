"""
Coefficient tables.

Turns fitted models into tidy coefficient tables (estimate, Wald statistics,
odds ratio with confidence interval), stacks per-signature tables into one
combined table with an FDR column, and filters the combined table down to the
reportable associations.
"""

import logging

import numpy as np
import pandas as pd

from rs_assoc.data.schema import (
    COL_CI_LOWER,
    COL_CI_UPPER,
    COL_ESTIMATE,
    COL_INDEX,
    COL_ODDS_RATIO,
    COL_P_ADJ,
    COL_P_VALUE,
    COL_STATISTIC,
    COL_STD_ERROR,
    COL_VARIABLE,
    INTERCEPT_TERM,
    TABLE_COLS,
)
from rs_assoc.metrics.multitest import fdr_bh
from rs_assoc.models.glm import FittedModel

logger = logging.getLogger(__name__)

COMBINED_COLS = [COL_INDEX] + TABLE_COLS + [COL_P_ADJ]


def empty_table() -> pd.DataFrame:
    return pd.DataFrame(columns=TABLE_COLS)


def to_table(model: FittedModel, *, ci_level: float = 0.95) -> pd.DataFrame:
    """
    Coefficient table for a fitted model.

    One row per coefficient, intercept included, in model order. Odds ratio
    and interval bounds are the exponentiated estimate and Wald interval.

    Args:
        model: Fitted logistic model
        ci_level: Confidence level of the interval

    Returns:
        DataFrame with columns variable, estimate, std_error, statistic,
        p_value, odds_ratio, ci_lower, ci_upper
    """
    if not 0.0 < ci_level < 1.0:
        raise ValueError(f"ci_level must be in (0, 1), got {ci_level}")

    ci = model.conf_int(alpha=1.0 - ci_level)
    names = model.coef_names
    estimate = model.params[names].to_numpy(dtype=float)

    return pd.DataFrame(
        {
            COL_VARIABLE: names,
            COL_ESTIMATE: estimate,
            COL_STD_ERROR: model.bse[names].to_numpy(dtype=float),
            COL_STATISTIC: model.tvalues[names].to_numpy(dtype=float),
            COL_P_VALUE: model.pvalues[names].to_numpy(dtype=float),
            COL_ODDS_RATIO: np.exp(estimate),
            COL_CI_LOWER: np.exp(ci.loc[names, 0].to_numpy(dtype=float)),
            COL_CI_UPPER: np.exp(ci.loc[names, 1].to_numpy(dtype=float)),
        },
        columns=TABLE_COLS,
    )


def combine_coefficient_tables(tables: dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Stack coefficient tables keyed by signature into one table.

    Adds an ``index`` column (the dict key) and a ``p_adj`` column holding
    Benjamini-Hochberg adjusted p-values across every non-intercept row of
    the combined table. Intercept rows get NaN.

    Returns:
        DataFrame with columns index + coefficient-table columns + p_adj
    """
    frames = []
    for key, table in tables.items():
        if table is None or table.empty:
            continue
        frame = table.copy()
        frame.insert(0, COL_INDEX, key)
        frames.append(frame)

    if not frames:
        return pd.DataFrame(columns=COMBINED_COLS)

    combined = pd.concat(frames, ignore_index=True)
    combined[COL_P_ADJ] = np.nan
    is_term = combined[COL_VARIABLE] != INTERCEPT_TERM
    if is_term.any():
        combined.loc[is_term, COL_P_ADJ] = fdr_bh(combined.loc[is_term, COL_P_VALUE].to_numpy())
    return combined[COMBINED_COLS]


def filter_associations(
    table: pd.DataFrame,
    padj_threshold: float = 0.1,
    or_lower: float = 0.5,
    or_upper: float = 1.5,
) -> pd.DataFrame:
    """
    Keep rows with ``p_adj < padj_threshold`` and an odds ratio outside
    ``[or_lower, or_upper]``. Intercept rows are never kept.
    """
    if table.empty:
        return table.copy()

    keep = (
        (table[COL_VARIABLE] != INTERCEPT_TERM)
        & (table[COL_P_ADJ] < padj_threshold)
        & ((table[COL_ODDS_RATIO] > or_upper) | (table[COL_ODDS_RATIO] < or_lower))
    )
    filtered = table[keep].reset_index(drop=True)
    logger.debug(
        f"Associations: {len(filtered)}/{len(table)} rows pass "
        f"p_adj<{padj_threshold}, OR outside [{or_lower}, {or_upper}]"
    )
    return filtered
