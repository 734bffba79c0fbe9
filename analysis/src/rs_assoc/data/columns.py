"""
Column resolution for cohort tables.

Column roles come from an explicit declaration (signature columns plus typed
covariates) or, in auto mode, from dtype inference over the remaining
columns. The resolved schema answers two questions the models need:

- which covariates are candidates for a given response (every covariate
  except the identifier, the response itself and the other signatures)
- which covariates belong together (dummy-coded members of one group)
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from ..config.schema import ColumnsConfig, CovariateSpec
from .schema import KIND_BINARY, KIND_CATEGORICAL, KIND_NUMERIC

logger = logging.getLogger(__name__)


@dataclass
class CovariateSchema:
    """Resolved column roles for one cohort table."""

    id_col: str
    signatures: list[str]
    covariates: list[CovariateSpec] = field(default_factory=list)

    def __post_init__(self):
        self._by_name = {c.name: c for c in self.covariates}

    @property
    def covariate_names(self) -> list[str]:
        return [c.name for c in self.covariates]

    def spec(self, name: str) -> CovariateSpec:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown covariate: {name!r}") from None

    def kind(self, name: str) -> str:
        return self.spec(name).kind

    def group_of(self, name: str) -> str:
        """Group label of a covariate (its own name when ungrouped)."""
        return self.spec(name).group or name

    def group_members(self, group: str) -> list[str]:
        """Covariates declared under ``group``, in declaration order."""
        members = [c.name for c in self.covariates if c.group == group]
        if not members and group in self._by_name:
            return [group]
        return members

    def candidate_covariates(self, response: str) -> list[str]:
        """Candidate covariate set for ``response``.

        Excludes the identifier, the response and every other signature column
        so that no signature is ever used to explain another.
        """
        excluded = {self.id_col, response, *self.signatures}
        return [name for name in self.covariate_names if name not in excluded]

    def merge_terms(self, covariates: list[str]) -> list[str]:
        """Model terms for ``covariates``: grouped members collapse to their group term.

        Preserves first-seen order without duplicates.
        """
        merged: list[str] = []
        for name in covariates:
            spec = self._by_name.get(name)
            term = spec.group if spec is not None and spec.group else name
            if term not in merged:
                merged.append(term)
        return merged

    def design_groups(self) -> dict[str, list[str]]:
        """Group term -> member columns, for every declared group."""
        names = dict.fromkeys(c.group for c in self.covariates if c.group)
        return {group: self.group_members(group) for group in names}


def infer_kind(series: pd.Series) -> str:
    """Infer covariate kind from a column's dtype and values."""
    if (
        isinstance(series.dtype, pd.CategoricalDtype)
        or pd.api.types.is_object_dtype(series)
        or pd.api.types.is_string_dtype(series)
    ):
        return KIND_CATEGORICAL
    if pd.api.types.is_bool_dtype(series):
        return KIND_BINARY
    values = pd.unique(series.dropna())
    if len(values) > 0 and set(np.asarray(values, dtype=float).tolist()) <= {0.0, 1.0}:
        return KIND_BINARY
    return KIND_NUMERIC


def resolve_columns(
    df_or_columns: pd.DataFrame | list[str],
    config: ColumnsConfig,
) -> CovariateSchema:
    """
    Resolve column roles based on configuration and available data.

    Parameters
    ----------
    df_or_columns : pd.DataFrame or List[str]
        DataFrame, or list of column names (kinds then default to numeric
        unless declared).
    config : ColumnsConfig
        Column configuration specifying mode, signatures and covariates.

    Returns
    -------
    CovariateSchema

    Raises
    ------
    ValueError
        If the id column or a declared signature is missing, or no covariate
        remains after resolution.
    """
    if isinstance(df_or_columns, pd.DataFrame):
        df = df_or_columns
        available_cols = df.columns.tolist()
    else:
        df = None
        available_cols = list(df_or_columns)

    available_set = set(available_cols)

    if config.id_col not in available_set:
        raise ValueError(f"Identifier column '{config.id_col}' not found in data.")

    missing_sigs = [s for s in config.signatures if s not in available_set]
    if missing_sigs:
        raise ValueError(f"Signature columns not found in data: {missing_sigs}")

    declared = {c.name: c for c in config.covariates}
    missing_declared = [name for name in declared if name not in available_set]
    if missing_declared:
        logger.warning(f"Declared covariates not found in data (skipped): {missing_declared}")

    if config.mode == "explicit":
        covariates = [c for c in config.covariates if c.name in available_set]
    else:
        reserved = {config.id_col, *config.signatures, *config.exclude}
        covariates = []
        for col in available_cols:
            if col in reserved:
                continue
            if col in declared:
                covariates.append(declared[col])
            elif df is not None:
                covariates.append(CovariateSpec(name=col, kind=infer_kind(df[col])))
            else:
                covariates.append(CovariateSpec(name=col, kind=KIND_NUMERIC))

    if not covariates:
        raise ValueError("No covariate columns resolved from data.")

    group_names = {c.group for c in covariates if c.group}
    clash = sorted(group_names & {c.name for c in covariates})
    if clash:
        raise ValueError(f"Group names collide with covariate columns: {clash}")

    n_cat = sum(c.kind == KIND_CATEGORICAL for c in covariates)
    n_grouped = sum(c.group is not None for c in covariates)
    logger.debug(
        f"Resolved columns ({config.mode}): {len(config.signatures)} signatures, "
        f"{len(covariates)} covariates ({n_cat} categorical, {n_grouped} grouped)"
    )

    return CovariateSchema(
        id_col=config.id_col,
        signatures=list(config.signatures),
        covariates=covariates,
    )


def validate_cohort_table(df: pd.DataFrame, schema: CovariateSchema) -> None:
    """
    Check cohort-table invariants.

    Raises
    ------
    ValueError
        If sample identifiers are duplicated or a signature column is not
        coded {0, 1}.
    """
    ids = df[schema.id_col]
    if ids.duplicated().any():
        dupes = ids[ids.duplicated()].unique().tolist()[:5]
        raise ValueError(f"Duplicate sample identifiers in '{schema.id_col}': {dupes}")

    for sig in schema.signatures:
        values = set(pd.unique(df[sig].dropna()).tolist())
        if not values <= {0, 1}:
            raise ValueError(f"Signature column '{sig}' is not coded {{0,1}}: {sorted(values)[:5]}")
