"""
Stepwise model selection by AIC.

Greedy bidirectional search over the terms of an initial model: at each step
every single-term removal (and, for ``direction="both"``, every re-addition of
a term from the initial scope) is fitted, and the move with the lowest AIC is
taken if it lowers the current AIC. The search stops when no single move
improves the criterion.

All candidate fits use the same rows (complete cases over the full scope) so
AIC values are comparable between steps.
"""

import logging

import pandas as pd

from rs_assoc.errors import ConvergenceFailure
from rs_assoc.models.glm import (
    DEFAULT_MAXITER,
    FittedModel,
    ModelRequest,
    expand_terms,
    fit_logistic,
)

logger = logging.getLogger(__name__)

# Minimum AIC decrease that counts as an improvement
AIC_TOL = 1e-8


def stepwise_aic(
    initial: FittedModel,
    table: pd.DataFrame,
    *,
    scope: list[str] | None = None,
    kinds: dict[str, str] | None = None,
    groups: dict[str, list[str]] | None = None,
    direction: str = "both",
    max_steps: int = 1000,
    maxiter: int = DEFAULT_MAXITER,
) -> FittedModel:
    """
    Reduce ``initial`` by stepwise AIC search.

    Args:
        initial: Converged starting model
        table: Data the starting model was fitted on
        scope: Terms that may be re-added (default: the initial model's terms)
        kinds: Covariate kinds passed through to the fits
        groups: Group term -> member columns; a group is added or dropped
            as one term
        direction: "both" (drop and re-add) or "backward" (drop only)
        max_steps: Maximum number of accepted moves
        maxiter: Maximum IRLS iterations per fit

    Returns:
        The selected FittedModel (may be intercept-only)

    Notes:
        Candidate fits that raise ConvergenceFailure are skipped.
    """
    if direction not in ("both", "backward"):
        raise ValueError(f"Unknown stepwise direction: {direction}. Valid: 'both', 'backward'")

    response = initial.response
    scope = list(scope) if scope is not None else list(initial.terms)
    terms_in_scope = list(dict.fromkeys([*scope, *initial.terms]))
    data = table[[response, *expand_terms(terms_in_scope, groups)]].dropna()

    cache: dict[frozenset, FittedModel | None] = {}

    def fit(terms: tuple[str, ...]) -> FittedModel | None:
        key = frozenset(terms)
        if key not in cache:
            try:
                cache[key] = fit_logistic(
                    ModelRequest(response, terms), data, kinds=kinds, groups=groups, maxiter=maxiter
                )
            except ConvergenceFailure as e:
                logger.debug(f"Stepwise candidate skipped: {e}")
                cache[key] = None
        return cache[key]

    current = initial
    if initial.nobs != len(data):
        refit = fit(initial.terms)
        if refit is None:
            return initial
        current = refit
    cache[frozenset(current.terms)] = current

    logger.debug(f"Stepwise start {response}: AIC={current.aic:.3f} terms={list(current.terms)}")

    for step in range(max_steps):
        moves: list[tuple[str, str, tuple[str, ...]]] = []
        for term in current.terms:
            moves.append(("-", term, tuple(t for t in current.terms if t != term)))
        if direction == "both":
            for term in scope:
                if term not in current.terms:
                    moves.append(("+", term, (*current.terms, term)))

        best = None
        best_move = None
        for sign, term, terms in moves:
            candidate = fit(terms)
            if candidate is None:
                continue
            if best is None or candidate.aic < best.aic:
                best = candidate
                best_move = f"{sign} {term}"

        if best is None or best.aic >= current.aic - AIC_TOL:
            break

        logger.debug(
            f"  Step {step + 1}: {best_move} (AIC {current.aic:.3f} -> {best.aic:.3f})"
        )
        current = best

    logger.debug(f"Stepwise end {response}: AIC={current.aic:.3f} terms={list(current.terms)}")
    return current
