"""
Logistic GLM fitting.

Models are requested as a structured ``ModelRequest`` (response + ordered
terms) instead of a formula string. ``build_design`` expands the request into
a numeric design matrix (intercept first, treatment-coded dummies for
categorical terms) and remembers which covariate every coefficient column came
from. ``fit_logistic`` fits a binomial/logit GLM with statsmodels and raises
``ConvergenceFailure`` for any fit whose estimates cannot be used.
"""

import logging
import warnings
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from rs_assoc.data.schema import INTERCEPT_TERM, KIND_CATEGORICAL
from rs_assoc.errors import ConvergenceFailure

logger = logging.getLogger(__name__)

DEFAULT_MAXITER = 1000


@dataclass(frozen=True)
class ModelRequest:
    """A logistic model to fit: ``response ~ terms``."""

    response: str
    terms: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "terms", tuple(self.terms))
        if self.response in self.terms:
            raise ValueError(f"Response '{self.response}' cannot also be a model term")
        if len(set(self.terms)) != len(self.terms):
            raise ValueError(f"Duplicate model terms: {list(self.terms)}")

    def with_terms(self, terms) -> "ModelRequest":
        return ModelRequest(response=self.response, terms=tuple(terms))

    @property
    def columns(self) -> list[str]:
        return [self.response, *self.terms]


@dataclass
class DesignMatrix:
    """Numeric design for one ModelRequest."""

    X: pd.DataFrame
    y: pd.Series
    column_sources: dict[str, str] = field(default_factory=dict)
    n_dropped: int = 0

    @property
    def nobs(self) -> int:
        return int(len(self.y))


def dummy_name(term: str, level) -> str:
    """Coefficient name for one non-reference level of a categorical term."""
    return f"{term}[T.{level}]"


def expand_terms(terms, groups: dict[str, list[str]] | None = None) -> list[str]:
    """Table columns behind ``terms``; a group term stands for all of its member columns."""
    groups = groups or {}
    columns: list[str] = []
    for term in terms:
        for col in groups.get(term, [term]):
            if col not in columns:
                columns.append(col)
    return columns


def _group_columns(data: pd.DataFrame, members: list[str]) -> list[str]:
    """Member columns that enter the design for one group term.

    Members never set on these rows are left out. When the remaining members
    form a complete one-hot coding (exactly one set per row), the first is the
    reference level and is left out too.
    """
    values = data[members].apply(pd.to_numeric, errors="raise").astype(float)
    present = [m for m in members if (values[m] != 0).any()]
    if present and np.allclose(values[present].sum(axis=1), 1.0):
        return present[1:]
    return present


def _is_categorical(series: pd.Series, kind: str | None) -> bool:
    if kind is not None:
        return kind == KIND_CATEGORICAL
    return (
        isinstance(series.dtype, pd.CategoricalDtype)
        or pd.api.types.is_object_dtype(series)
        or pd.api.types.is_string_dtype(series)
    )


def build_design(
    request: ModelRequest,
    table: pd.DataFrame,
    kinds: dict[str, str] | None = None,
    groups: dict[str, list[str]] | None = None,
) -> DesignMatrix:
    """
    Build the design matrix for ``request`` from ``table``.

    Rows with a missing response or term value are dropped (complete cases).
    Categorical terms are treatment coded against their first sorted level;
    a categorical term with a single observed level contributes no column.
    A term named in ``groups`` is one categorical predictor stored as 0/1
    member columns; see ``_group_columns`` for its reference level.

    Raises:
        KeyError: If the response or a term is not a column of ``table``
    """
    groups = groups or {}
    columns = [request.response, *expand_terms(request.terms, groups)]
    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise KeyError(f"Columns not found in table: {missing}")

    kinds = kinds or {}
    data = table[columns].dropna()
    n_dropped = int(len(table) - len(data))

    parts = [pd.Series(1.0, index=data.index, name=INTERCEPT_TERM)]
    column_sources = {INTERCEPT_TERM: INTERCEPT_TERM}

    for term in request.terms:
        if term in groups:
            for member in _group_columns(data, groups[term]):
                parts.append(pd.to_numeric(data[member]).astype(float).rename(member))
                column_sources[member] = term
            continue

        col = data[term]
        if _is_categorical(col, kinds.get(term)):
            levels = sorted(pd.unique(col.astype(str)))
            for level in levels[1:]:
                name = dummy_name(term, level)
                parts.append((col.astype(str) == level).astype(float).rename(name))
                column_sources[name] = term
        else:
            parts.append(pd.to_numeric(col, errors="raise").astype(float).rename(term))
            column_sources[term] = term

    X = pd.concat(parts, axis=1)
    y = pd.to_numeric(data[request.response], errors="raise").astype(float)
    return DesignMatrix(X=X, y=y, column_sources=column_sources, n_dropped=n_dropped)


@dataclass
class FittedModel:
    """A converged logistic GLM and the request that produced it."""

    request: ModelRequest
    result: object
    column_sources: dict[str, str]
    nobs: int

    @property
    def response(self) -> str:
        return self.request.response

    @property
    def terms(self) -> tuple[str, ...]:
        return self.request.terms

    @property
    def coef_names(self) -> list[str]:
        return list(self.result.params.index)

    @property
    def params(self) -> pd.Series:
        return self.result.params

    @property
    def bse(self) -> pd.Series:
        return self.result.bse

    @property
    def tvalues(self) -> pd.Series:
        return self.result.tvalues

    @property
    def pvalues(self) -> pd.Series:
        return self.result.pvalues

    @property
    def aic(self) -> float:
        return float(self.result.aic)

    def conf_int(self, alpha: float = 0.05) -> pd.DataFrame:
        """Wald confidence interval on the log-odds scale (columns 0 = lower, 1 = upper)."""
        return self.result.conf_int(alpha=alpha)

    def covariate_of(self, coef_name: str) -> str:
        return self.column_sources[coef_name]


def fit_logistic(
    request: ModelRequest,
    table: pd.DataFrame,
    *,
    kinds: dict[str, str] | None = None,
    groups: dict[str, list[str]] | None = None,
    maxiter: int = DEFAULT_MAXITER,
) -> FittedModel:
    """
    Fit ``request`` as a binomial GLM with logit link.

    Args:
        request: Response and terms
        table: Cohort table (or partition subset)
        kinds: Optional covariate kinds (``categorical`` terms are dummy coded)
        groups: Group term -> member columns (each group is one term)
        maxiter: Maximum IRLS iterations

    Returns:
        FittedModel

    Raises:
        ConvergenceFailure: If the response has a single class, the design has
            no residual degrees of freedom, IRLS does not converge, the data
            are perfectly separated, or estimates are not finite.
    """
    design = build_design(request, table, kinds, groups)
    X, y = design.X, design.y

    if y.nunique() < 2:
        raise ConvergenceFailure(
            f"Response '{request.response}' has a single class after dropping missing rows",
            terms=list(request.terms),
        )
    if X.shape[0] <= X.shape[1]:
        raise ConvergenceFailure(
            f"Not enough observations ({X.shape[0]}) for {X.shape[1]} coefficients",
            terms=list(request.terms),
        )

    with warnings.catch_warnings():
        warnings.filterwarnings("error", category=PerfectSeparationWarning)
        warnings.filterwarnings("error", category=ConvergenceWarning)
        try:
            result = sm.GLM(y, X, family=sm.families.Binomial()).fit(maxiter=maxiter)
        except (
            PerfectSeparationError,
            PerfectSeparationWarning,
            ConvergenceWarning,
            np.linalg.LinAlgError,
            ValueError,
        ) as e:
            raise ConvergenceFailure(
                f"GLM fit failed for {request.response} ~ {list(request.terms)}: "
                f"{type(e).__name__}: {e}",
                terms=list(request.terms),
            ) from e

    if not getattr(result, "converged", True):
        raise ConvergenceFailure(
            f"GLM did not converge within {maxiter} iterations for "
            f"{request.response} ~ {list(request.terms)}",
            terms=list(request.terms),
        )

    if not (np.all(np.isfinite(result.params)) and np.all(np.isfinite(result.bse))):
        raise ConvergenceFailure(
            f"Non-finite estimates for {request.response} ~ {list(request.terms)}",
            terms=list(request.terms),
        )

    if design.n_dropped:
        logger.debug(
            f"{request.response} ~ {list(request.terms)}: dropped {design.n_dropped} incomplete rows"
        )

    return FittedModel(
        request=request,
        result=result,
        column_sources=design.column_sources,
        nobs=design.nobs,
    )
