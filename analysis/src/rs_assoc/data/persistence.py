"""Partition validation and persistence utilities.

Saves the training-subset identifiers of every partition to CSV plus one JSON
metadata file per signature, so a stability run can be audited, or replayed
through ``stability.partitions_dir``.

Design:
    - validate_partition_ids(): no overlap, test is the exact complement
    - save_partition_indices(): one CSV per (fraction, replicate) with train ids
    - save_partitions_metadata(): JSON with per-partition summaries
    - load_partition_indices(): rebuild Partitions from a saved directory
"""

import json
import os
from typing import Any

import numpy as np
import pandas as pd

from .schema import ID_COL, PARTITIONS_META_FILE, format_fraction
from .splits import Partition, summarize_partition

# ============================================================================
# Partition Validation
# ============================================================================


def validate_partition_ids(
    train_ids: np.ndarray,
    test_ids: np.ndarray,
    all_ids: np.ndarray | None = None,
) -> tuple[bool, str]:
    """Validate partition identifiers for integrity.

    Args:
        train_ids: Training subset identifiers
        test_ids: Test subset identifiers
        all_ids: Cohort identifiers (for complement check)

    Returns:
        Tuple of (is_valid, error_message). error_message is empty string if valid.
    """
    if len(train_ids) == 0:
        return False, "TRAIN set is empty"

    train_set = set(train_ids.tolist())
    test_set = set(test_ids.tolist())

    if len(train_set) != len(train_ids):
        return False, "TRAIN contains duplicate identifiers"

    overlap = train_set & test_set
    if overlap:
        return False, f"TRAIN/TEST overlap: {len(overlap)} samples"

    if all_ids is not None:
        expected_test = set(all_ids.tolist()) - train_set
        if expected_test != test_set:
            return False, (
                f"TEST is not the complement of TRAIN "
                f"(expected {len(expected_test)}, got {len(test_set)})"
            )

    return True, ""


# ============================================================================
# Partition Persistence
# ============================================================================


def partition_file_name(signature: str, fraction: float, replicate: int) -> str:
    return f"train_ids_{signature}_f{format_fraction(fraction)}_r{replicate}.csv"


def check_partition_files_exist(
    outdir: str, signature: str, fractions: list[float], n_replicates: int
) -> tuple[bool, list[str]]:
    """Return (any_exist, existing_paths) for a signature's partition files."""
    existing = []
    for fraction in fractions:
        for replicate in range(n_replicates):
            path = os.path.join(outdir, partition_file_name(signature, fraction, replicate))
            if os.path.exists(path):
                existing.append(path)
    return len(existing) > 0, existing


def save_partition_indices(
    outdir: str,
    signature: str,
    partitions_by_fraction: dict[float, list[Partition]],
    id_col: str = ID_COL,
    overwrite: bool = False,
) -> list[str]:
    """Save the training identifiers of every partition to CSV.

    Args:
        outdir: Output directory path
        signature: Response column the partitions were stratified on
        partitions_by_fraction: Mapping train fraction -> list of Partitions
        id_col: Sample identifier column
        overwrite: Whether to overwrite existing files

    Returns:
        List of written file paths

    Raises:
        FileExistsError: If files exist and overwrite=False
        ValueError: If a partition fails validation

    Output format:
        CSV with single column named after ``id_col``, sorted ascending.
    """
    fractions = sorted(partitions_by_fraction)
    n_replicates = max((len(p) for p in partitions_by_fraction.values()), default=0)
    files_exist, existing = check_partition_files_exist(outdir, signature, fractions, n_replicates)
    if files_exist and not overwrite:
        raise FileExistsError(
            "Partition files already exist:\n"
            + "\n".join(f"  {p}" for p in existing[:10])
            + "\nUse overwrite=True to replace them."
        )

    os.makedirs(outdir, exist_ok=True)
    paths = []
    for fraction in fractions:
        for partition in partitions_by_fraction[fraction]:
            train_ids = partition.train[id_col].to_numpy()
            test_ids = partition.test[id_col].to_numpy()
            is_valid, error_msg = validate_partition_ids(train_ids, test_ids)
            if not is_valid:
                raise ValueError(f"Invalid partition {partition.label}: {error_msg}")

            path = os.path.join(
                outdir, partition_file_name(signature, fraction, partition.replicate)
            )
            pd.DataFrame({id_col: np.sort(train_ids)}).to_csv(path, index=False)
            paths.append(path)

    return paths


def save_partitions_metadata(
    outdir: str,
    signature: str,
    partitions_by_fraction: dict[float, list[Partition]],
    id_col: str = ID_COL,
    extra: dict[str, Any] | None = None,
) -> str:
    """Save per-partition summaries for one signature to JSON.

    Metadata schema:
        {
            "signature": str,
            "id_col": str,
            "fractions": [float],
            "partitions": [summarize_partition(...) dicts],
            ... extra
        }
    """
    meta: dict[str, Any] = {
        "signature": signature,
        "id_col": id_col,
        "fractions": sorted(float(f) for f in partitions_by_fraction),
        "partitions": [
            summarize_partition(p, id_col=id_col)
            for fraction in sorted(partitions_by_fraction)
            for p in partitions_by_fraction[fraction]
        ],
    }
    if extra:
        meta.update(extra)

    os.makedirs(outdir, exist_ok=True)
    meta_path = os.path.join(outdir, f"{signature}_{PARTITIONS_META_FILE}")
    with open(meta_path, "w") as f:
        json.dump(meta, f, indent=2)
    return meta_path


def load_partition_indices(
    outdir: str,
    signature: str,
    table: pd.DataFrame,
    id_col: str = ID_COL,
) -> dict[float, list[Partition]]:
    """Rebuild partitions for ``signature`` from a saved directory.

    The metadata file lists the fractions and replicates; training rows are
    looked up in ``table`` by identifier and the test subset is recomputed
    as the complement.

    Raises:
        FileNotFoundError: If the metadata file or a partition file is missing
    """
    meta_path = os.path.join(outdir, f"{signature}_{PARTITIONS_META_FILE}")
    if not os.path.exists(meta_path):
        raise FileNotFoundError(f"Partition metadata not found: {meta_path}")

    with open(meta_path) as f:
        meta = json.load(f)

    result: dict[float, list[Partition]] = {}
    for summary in meta["partitions"]:
        fraction = float(summary["train_fraction"])
        replicate = int(summary["replicate"])
        path = os.path.join(outdir, partition_file_name(signature, fraction, replicate))
        if not os.path.exists(path):
            raise FileNotFoundError(f"Partition file not found: {path}")
        train_ids = pd.read_csv(path, dtype={id_col: table[id_col].dtype})[id_col]
        in_train = table[id_col].isin(train_ids)
        result.setdefault(fraction, []).append(
            Partition(
                train=table[in_train],
                test=table[~in_train],
                response=signature,
                train_fraction=fraction,
                replicate=replicate,
                seed=summary.get("seed"),
            )
        )
    return result
