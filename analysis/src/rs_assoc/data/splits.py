"""
Partition generation for the stability analysis.

Each partition is a stratified draw of a training subset at a given train
fraction, preserving the class balance of one binary signature column. The
test subset is the complement of the training subset by sample identifier,
never a second independent draw.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from rs_assoc.data.schema import ID_COL
from rs_assoc.errors import InvalidArgument
from rs_assoc.utils.random import draw_seeds, make_rng

logger = logging.getLogger(__name__)


@dataclass
class Partition:
    """One (train, test) pair of a cohort table."""

    train: pd.DataFrame
    test: pd.DataFrame
    response: str
    train_fraction: float
    replicate: int
    seed: int | None = None

    @property
    def label(self) -> str:
        return f"{self.response}_f{self.train_fraction:g}_r{self.replicate}"


# ============================================================================
# Validation
# ============================================================================


def validate_partition_request(
    response: str,
    train_fraction: float,
    table: pd.DataFrame,
    replicate_count: int,
    id_col: str = ID_COL,
) -> pd.Series:
    """
    Validate a partition request and return the response column as ints.

    Raises:
        InvalidArgument: If the response is missing, not binary, has a single
            class or missing values; if the fraction is outside (0, 1]; or if
            replicate_count < 1.
    """
    if not (0.0 < float(train_fraction) <= 1.0):
        raise InvalidArgument(f"train_fraction must be in (0, 1], got {train_fraction}")
    if int(replicate_count) < 1:
        raise InvalidArgument(f"replicate_count must be >= 1, got {replicate_count}")
    if id_col not in table.columns:
        raise InvalidArgument(f"Identifier column '{id_col}' not found in table")
    if response not in table.columns:
        raise InvalidArgument(f"Response column '{response}' not found in table")

    y = table[response]
    if y.isna().any():
        raise InvalidArgument(f"Response column '{response}' contains missing values")

    values = set(pd.unique(y).tolist())
    if not values <= {0, 1}:
        raise InvalidArgument(f"Response column '{response}' is not binary: {sorted(values)[:5]}")
    if len(values) < 2:
        raise InvalidArgument(f"Response column '{response}' has a single class: {sorted(values)}")

    return y.astype(int)


# ============================================================================
# Partition Generation
# ============================================================================


def make_partitions(
    response: str,
    train_fraction: float,
    table: pd.DataFrame,
    replicate_count: int = 10,
    *,
    rng: np.random.Generator | int | None = None,
    id_col: str = ID_COL,
) -> list[Partition]:
    """
    Draw independent stratified train/test partitions.

    Args:
        response: Binary column used for stratification
        train_fraction: Fraction of rows in each training subset, in (0, 1]
        table: Cohort table (not modified)
        replicate_count: Number of independent draws
        rng: Explicit random source (Generator or integer seed)
        id_col: Sample identifier column

    Returns:
        List of ``replicate_count`` Partitions

    Raises:
        InvalidArgument: For malformed requests, or when a class is too small
            for a stratified draw at this fraction

    Example:
        >>> parts = make_partitions("RS1", 0.7, df, rng=np.random.default_rng(0))
        >>> len(parts)
        10
    """
    y = validate_partition_request(response, train_fraction, table, replicate_count, id_col)
    rng = make_rng(rng)
    seeds = draw_seeds(rng, int(replicate_count))
    ids = table[id_col].to_numpy()

    partitions = []
    for replicate, seed in enumerate(seeds):
        if float(train_fraction) >= 1.0:
            order = np.random.default_rng(seed).permutation(len(table))
            train = table.iloc[order]
            test = table.iloc[0:0]
        else:
            try:
                train_ids, _ = train_test_split(
                    ids,
                    train_size=float(train_fraction),
                    random_state=seed,
                    stratify=y.to_numpy(),
                )
            except ValueError as e:
                raise InvalidArgument(
                    f"Cannot draw stratified partition of '{response}' at "
                    f"train_fraction={train_fraction}: {e}"
                ) from e
            in_train = table[id_col].isin(train_ids)
            train = table[in_train]
            test = table[~in_train]

        partitions.append(
            Partition(
                train=train,
                test=test,
                response=response,
                train_fraction=float(train_fraction),
                replicate=replicate,
                seed=seed,
            )
        )

    logger.debug(
        f"Partitions {response} @ {train_fraction:g}: {replicate_count} replicates, "
        f"n_train={len(partitions[0].train)}, n_test={len(partitions[0].test)}"
    )
    return partitions


# ============================================================================
# Partition Summary Utilities
# ============================================================================


def compute_split_id(ids: np.ndarray) -> str:
    """
    Generate reproducible hash ID for a set of sample identifiers.

    Returns:
        12-character hex hash (independent of row order)

    Example:
        >>> split_id = compute_split_id(np.array(["s1", "s2"]))
        >>> assert len(split_id) == 12
    """
    sorted_ids = sorted(str(i) for i in ids)
    hash_obj = hashlib.md5("\x1f".join(sorted_ids).encode("utf-8"))
    return hash_obj.hexdigest()[:12]


def summarize_partition(partition: Partition, id_col: str = ID_COL) -> dict[str, Any]:
    """
    Compute summary statistics for a partition.

    Returns:
        Dictionary with counts, prevalence and split IDs
    """
    y_train = partition.train[partition.response].astype(int)
    y_test = partition.test[partition.response].astype(int)
    return {
        "response": partition.response,
        "train_fraction": partition.train_fraction,
        "replicate": partition.replicate,
        "seed": partition.seed,
        "n_train": int(len(y_train)),
        "n_test": int(len(y_test)),
        "n_train_pos": int(y_train.sum()),
        "n_test_pos": int(y_test.sum()),
        "prevalence_train": float(y_train.mean()) if len(y_train) > 0 else 0.0,
        "prevalence_test": float(y_test.mean()) if len(y_test) > 0 else 0.0,
        "split_id_train": compute_split_id(partition.train[id_col].to_numpy()),
        "split_id_test": compute_split_id(partition.test[id_col].to_numpy()),
    }
