"""Coefficient tables and results output."""

from rs_assoc.evaluation.reports import (
    combine_coefficient_tables,
    empty_table,
    filter_associations,
    to_table,
)
from rs_assoc.evaluation.writer import OutputDirectories, ResultsWriter

__all__ = [
    "OutputDirectories",
    "ResultsWriter",
    "combine_coefficient_tables",
    "empty_table",
    "filter_associations",
    "to_table",
]
