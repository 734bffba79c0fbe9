"""Covariate stability under repeated stratified sub-sampling.

For one signature, re-runs the screen -> FDR -> multivariate -> stepwise
selection on the training subset of every partition and records which
coefficients end up in the selected model at ``p < p_threshold``.

Design:
- Retention frequency = (#replicates where the coefficient is retained) / (#replicates)
- A replicate whose selection fails (FitError) or selects nothing contributes
  no variables but still counts in the denominator
- One column per train fraction, outer-joined on the coefficient name
- Replicates are independent; with ``n_jobs != 1`` they run on joblib workers
  and results are collected in replicate order
"""

import logging

import pandas as pd
from joblib import Parallel, delayed

from rs_assoc.config.schema import ColumnsConfig, ScreeningConfig, SelectionConfig
from rs_assoc.data.columns import CovariateSchema, resolve_columns
from rs_assoc.data.persistence import load_partition_indices
from rs_assoc.data.schema import (
    COL_P_VALUE,
    COL_VARIABLE,
    ID_COL,
    INTERCEPT_TERM,
    format_fraction,
)
from rs_assoc.data.splits import Partition, make_partitions
from rs_assoc.errors import FitError, InvalidArgument
from rs_assoc.evaluation.reports import empty_table, to_table
from rs_assoc.features.screening import reduced_screening_verbosity
from rs_assoc.features.selection import select_model
from rs_assoc.utils.random import get_partition_seed, make_rng

logger = logging.getLogger(__name__)


def retained_coefficients(
    partition: Partition,
    *,
    schema: CovariateSchema,
    screening: ScreeningConfig | None = None,
    selection: SelectionConfig | None = None,
    p_threshold: float = 0.05,
) -> pd.DataFrame:
    """Coefficient rows (intercept excluded) retained in one replicate's selected model.

    Returns an empty coefficient table when selection raises FitError or
    selects nothing.
    """
    try:
        model = select_model(
            partition.response,
            partition.train,
            schema=schema,
            screening=screening,
            selection=selection,
        )
    except FitError as e:
        logger.debug(f"{partition.label}: {e}")
        return empty_table()

    if model is None:
        return empty_table()

    table = to_table(model)
    keep = (table[COL_VARIABLE] != INTERCEPT_TERM) & (table[COL_P_VALUE] < p_threshold)
    return table[keep].reset_index(drop=True)


def compute_retention_frequencies(tables: list[pd.DataFrame], n_replicates: int) -> pd.Series:
    """Retention frequency per coefficient across replicate tables.

    Each coefficient counts at most once per table.

    Args:
        tables: Retained coefficient tables, one per replicate
        n_replicates: Denominator (replicates attempted, including empty ones)

    Returns:
        Series indexed by variable, values in [0, 1]

    Example:
        >>> a = pd.DataFrame({"variable": ["X", "age"]})
        >>> b = pd.DataFrame({"variable": ["X"]})
        >>> compute_retention_frequencies([a, b], 10).to_dict()
        {'X': 0.2, 'age': 0.1}
    """
    if n_replicates < 1:
        raise ValueError(f"n_replicates must be >= 1, got {n_replicates}")

    counts: dict[str, int] = {}
    for table in tables:
        if table is None or table.empty:
            continue
        for variable in set(table[COL_VARIABLE].tolist()):
            counts[variable] = counts.get(variable, 0) + 1

    freqs = pd.Series(
        {variable: count / n_replicates for variable, count in counts.items()},
        dtype=float,
    )
    freqs.index.name = COL_VARIABLE
    return freqs.sort_index()


def _sort_column(columns: list[str], fractions: list[float]) -> str | None:
    full = format_fraction(1.0)
    if full in columns:
        return full
    if fractions:
        return format_fraction(max(fractions))
    return None


def aggregate_stability(
    signature: str,
    partitions_by_fraction: dict[float, list[Partition]],
    *,
    schema: CovariateSchema | None = None,
    screening: ScreeningConfig | None = None,
    selection: SelectionConfig | None = None,
    p_threshold: float = 0.05,
    n_jobs: int = 1,
) -> pd.DataFrame:
    """Stability summary for one signature.

    Args:
        signature: Signature (response) the partitions were stratified on
        partitions_by_fraction: Train fraction -> its partition set
        schema: Resolved column roles (auto-detected from the first partition
            when omitted)
        screening: Univariate screen settings for every replicate
        selection: FDR threshold and stepwise settings for every replicate
        p_threshold: A coefficient counts as retained when its p-value in the
            selected model is below this
        n_jobs: joblib workers for the replicate loop (1 = sequential)

    Returns:
        DataFrame indexed by variable, one column per fraction (label
        ``format_fraction(f)``), cells = retention frequency or NaN when the
        coefficient never appeared at that fraction. Sorted ascending by the
        ``"1"`` column (largest fraction if absent), NaN first.
    """
    fractions = sorted(float(f) for f in partitions_by_fraction)
    if schema is None:
        first = next((p for f in fractions for p in partitions_by_fraction[f]), None)
        if first is None:
            raise ValueError(f"No partitions supplied for {signature}")
        schema = resolve_columns(first.train, ColumnsConfig(signatures=[signature]))

    columns = {}
    with reduced_screening_verbosity():
        for fraction in fractions:
            partitions = partitions_by_fraction[fraction]
            if not partitions:
                continue

            kwargs = {
                "schema": schema,
                "screening": screening,
                "selection": selection,
                "p_threshold": p_threshold,
            }
            if n_jobs == 1:
                tables = [retained_coefficients(p, **kwargs) for p in partitions]
            else:
                # Process workers: fit_logistic edits the warnings filters, which are per-process
                tables = Parallel(n_jobs=n_jobs)(
                    delayed(retained_coefficients)(p, **kwargs) for p in partitions
                )

            freqs = compute_retention_frequencies(tables, len(partitions))
            n_selected = sum(1 for t in tables if not t.empty)
            logger.info(
                f"  {signature} @ {fraction:g}: {n_selected}/{len(partitions)} replicates "
                f"retained >=1 coefficient, {len(freqs)} distinct"
            )
            columns[format_fraction(fraction)] = freqs

    if not columns:
        summary = pd.DataFrame(columns=[format_fraction(f) for f in fractions], dtype=float)
        summary.index.name = COL_VARIABLE
        return summary

    summary = pd.concat(columns, axis=1, join="outer").sort_index()
    summary.index.name = COL_VARIABLE

    sort_col = _sort_column(list(summary.columns), fractions)
    if sort_col is not None and sort_col in summary.columns:
        summary = summary.sort_values(sort_col, ascending=True, na_position="first", kind="mergesort")
    return summary


def run_stability(
    signature: str,
    table: pd.DataFrame,
    fractions: list[float],
    replicate_count: int = 10,
    seed: int = 0,
    *,
    signature_idx: int = 0,
    schema: CovariateSchema | None = None,
    screening: ScreeningConfig | None = None,
    selection: SelectionConfig | None = None,
    p_threshold: float = 0.05,
    n_jobs: int = 1,
    id_col: str = ID_COL,
    partitions_dir: str | None = None,
) -> pd.DataFrame:
    """Partition ``table`` at every fraction and aggregate the stability summary.

    Each fraction gets its own Generator seeded with
    ``get_partition_seed(seed, fraction_idx, signature_idx)``, so a fixed seed
    reproduces the summary exactly. A fraction whose partition request is
    rejected is logged and left out of the summary.

    With ``partitions_dir`` set, the partitions written by ``save-partitions``
    are replayed instead; ``fractions``, ``replicate_count`` and ``seed`` are
    then taken from the saved files.

    Raises:
        InvalidArgument: If the partition request fails for every fraction
        FileNotFoundError: If ``partitions_dir`` lacks this signature's files
    """
    if schema is None:
        schema = resolve_columns(table, ColumnsConfig(id_col=id_col, signatures=[signature]))

    if partitions_dir is not None:
        partitions_by_fraction = load_partition_indices(
            str(partitions_dir), signature, table, id_col=id_col
        )
        configured = sorted(float(f) for f in fractions)
        if sorted(partitions_by_fraction) != configured:
            logger.warning(
                f"{signature}: saved fractions {sorted(partitions_by_fraction)} differ from "
                f"configured {configured}; using the saved partitions"
            )
    else:
        partitions_by_fraction = {}
        last_error = None
        for fraction_idx, fraction in enumerate(sorted(float(f) for f in fractions)):
            rng = make_rng(get_partition_seed(seed, fraction_idx, signature_idx))
            try:
                partitions_by_fraction[fraction] = make_partitions(
                    signature, fraction, table, replicate_count, rng=rng, id_col=id_col
                )
            except InvalidArgument as e:
                logger.warning(f"{signature} @ {fraction:g}: fraction skipped ({e})")
                last_error = e
        if not partitions_by_fraction and last_error is not None:
            raise last_error

    return aggregate_stability(
        signature,
        partitions_by_fraction,
        schema=schema,
        screening=screening,
        selection=selection,
        p_threshold=p_threshold,
        n_jobs=n_jobs,
    )
