"""
Data I/O utilities for cohort tables.

Reads the regression and expression inputs (CSV, TSV or Parquet) keyed by
sample identifier, with required-column checks and a compact load summary.
"""

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from rs_assoc.data.schema import ID_COL

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".tsv", ".txt", ".parquet")


def read_cohort_file(
    filepath: str | Path,
    *,
    id_col: str = ID_COL,
    required: list[str] | None = None,
    low_memory: bool = False,
    validate: bool = True,
) -> pd.DataFrame:
    """
    Read a cohort table from CSV, TSV or Parquet.

    Args:
        filepath: Path to the table
        id_col: Sample identifier column
        required: Additional columns that must be present (e.g. signature columns)
        low_memory: Passed to pd.read_csv (ignored for Parquet)
        validate: Whether to validate required columns after loading

    Returns:
        DataFrame with one row per sample

    Raises:
        FileNotFoundError: If filepath does not exist
        ValueError: If the format is unsupported or required columns are missing

    Example:
        >>> df = read_cohort_file("data/regression_input.csv", required=["RS1"])
        >>> assert "sample" in df.columns
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = filepath.suffix.lower()
    if suffix == ".csv":
        logger.info(f"Reading CSV: {filepath}")
        df = pd.read_csv(filepath, low_memory=low_memory)
    elif suffix in (".tsv", ".txt"):
        logger.info(f"Reading TSV: {filepath}")
        df = pd.read_csv(filepath, sep="\t", low_memory=low_memory)
    elif suffix == ".parquet":
        logger.info(f"Reading Parquet: {filepath}")
        df = pd.read_parquet(filepath, engine="pyarrow")
    else:
        raise ValueError(
            f"Unsupported file format: {suffix}. "
            f"Expected one of {', '.join(SUPPORTED_SUFFIXES)}. "
            f"File: {filepath}"
        )

    logger.info(f"Loaded {len(df):,} rows × {len(df.columns):,} columns")

    if validate:
        validate_required_columns(df, [id_col] + list(required or []))

    return df


def validate_required_columns(df: pd.DataFrame, required: list[str]) -> None:
    """
    Validate that required columns are present in DataFrame.

    Raises:
        ValueError: If required columns are missing
    """
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(
            f"Required columns missing: {missing}. " f"Available columns: {list(df.columns)}"
        )
    logger.debug(f"Validated required columns: {required}")


def get_data_stats(df: pd.DataFrame, signatures: list[str]) -> dict[str, Any]:
    """
    Summary statistics for a cohort table.

    Returns:
        Dict with n_samples, n_columns, per-signature positive counts and
        the number of columns with missing values.
    """
    stats: dict[str, Any] = {
        "n_samples": int(len(df)),
        "n_columns": int(len(df.columns)),
        "n_columns_with_missing": int(df.isna().any(axis=0).sum()),
        "signature_positives": {},
    }
    for sig in signatures:
        if sig in df.columns:
            stats["signature_positives"][sig] = int(pd.to_numeric(df[sig], errors="coerce").sum())
    return stats


def log_data_summary(df: pd.DataFrame, signatures: list[str]) -> None:
    """Log a compact summary of a loaded cohort table."""
    stats = get_data_stats(df, signatures)
    logger.info(f"Samples: {stats['n_samples']:,}  Columns: {stats['n_columns']:,}")
    for sig, n_pos in stats["signature_positives"].items():
        prevalence = n_pos / stats["n_samples"] if stats["n_samples"] else 0.0
        logger.info(f"  {sig}: {n_pos:,} positive ({prevalence:.1%})")
    if stats["n_columns_with_missing"]:
        logger.warning(f"{stats['n_columns_with_missing']} columns contain missing values")
