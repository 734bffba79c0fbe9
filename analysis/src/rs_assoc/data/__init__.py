"""Data handling and schema definitions."""

from rs_assoc.data.columns import (
    CovariateSchema,
    infer_kind,
    resolve_columns,
    validate_cohort_table,
)
from rs_assoc.data.io import log_data_summary, read_cohort_file
from rs_assoc.data.persistence import (
    load_partition_indices,
    save_partition_indices,
    save_partitions_metadata,
    validate_partition_ids,
)
from rs_assoc.data.schema import (
    ID_COL,
    INTERCEPT_TERM,
    TABLE_COLS,
    format_fraction,
)
from rs_assoc.data.splits import (
    Partition,
    compute_split_id,
    make_partitions,
    summarize_partition,
)

__all__ = [
    # Schema
    "ID_COL",
    "INTERCEPT_TERM",
    "TABLE_COLS",
    "format_fraction",
    # Columns
    "CovariateSchema",
    "infer_kind",
    "resolve_columns",
    "validate_cohort_table",
    # I/O
    "read_cohort_file",
    "log_data_summary",
    # Partitions
    "Partition",
    "make_partitions",
    "compute_split_id",
    "summarize_partition",
    # Persistence
    "validate_partition_ids",
    "save_partition_indices",
    "save_partitions_metadata",
    "load_partition_indices",
]
