"""
ResultsWriter: output directory layout and results serialization.

Provides:
- OutputDirectories: Directory structure creation and path management
- ResultsWriter: High-level API for saving coefficient tables, stability
  summaries and run metadata

Layout:
    {outdir}/
        full_cohort_coefficients.csv
        full_cohort_associations.csv
        expression_coefficients.csv
        expression_associations.csv
        stability/{signature}_stability.csv
        config.yaml
        run_metadata.json
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from rs_assoc.data.schema import (
    DIR_STABILITY,
    EXPRESSION_ASSOC_FILE,
    EXPRESSION_COEF_FILE,
    FULL_COHORT_ASSOC_FILE,
    FULL_COHORT_COEF_FILE,
    METADATA_FILE,
)
from rs_assoc.utils.serialization import save_json

logger = logging.getLogger(__name__)

# Branch name -> (coefficients file, associations file)
BRANCH_FILES = {
    "full_cohort": (FULL_COHORT_COEF_FILE, FULL_COHORT_ASSOC_FILE),
    "expression": (EXPRESSION_COEF_FILE, EXPRESSION_ASSOC_FILE),
}


@dataclass
class OutputDirectories:
    """
    Structured output directory paths.

    Attributes:
        root: Base output directory (coefficient tables, config, metadata)
        stability: Per-signature stability summaries
    """

    root: str
    stability: str

    @classmethod
    def create(cls, root: str | Path, exist_ok: bool = True) -> "OutputDirectories":
        """
        Create output directory structure.

        Raises:
            OSError: If directory creation fails
        """
        root_path = Path(root)
        structure = {"stability": DIR_STABILITY}

        root_path.mkdir(parents=True, exist_ok=exist_ok)
        paths = {"root": str(root_path)}
        for key, rel_path in structure.items():
            abs_path = root_path / rel_path
            abs_path.mkdir(parents=True, exist_ok=True)
            paths[key] = str(abs_path)

        logger.debug(f"Created output structure at: {root}")
        return cls(**paths)

    def get_path(self, category: str, filename: str) -> str:
        """
        Construct full path for a file in a specific category.

        Raises:
            ValueError: If category is invalid
        """
        if category not in ("root", "stability"):
            raise ValueError(f"Unknown output category: {category}")
        return os.path.join(getattr(self, category), filename)


class ResultsWriter:
    """
    High-level API for writing analysis results.

    Usage:
        writer = ResultsWriter(OutputDirectories.create("results"))
        writer.save_coefficients(table, branch="full_cohort")
        writer.save_stability(summary, signature="RS1")
    """

    def __init__(self, output_dirs: OutputDirectories):
        self.dirs = output_dirs

    def _branch_files(self, branch: str) -> tuple[str, str]:
        if branch not in BRANCH_FILES:
            raise ValueError(f"Unknown branch: {branch}. Valid: {list(BRANCH_FILES)}")
        return BRANCH_FILES[branch]

    def save_coefficients(self, table: pd.DataFrame, branch: str) -> str:
        """Save the combined coefficient table of one branch."""
        path = self.dirs.get_path("root", self._branch_files(branch)[0])
        table.to_csv(path, index=False)
        logger.info(f"Saved coefficients ({len(table)} rows): {path}")
        return str(path)

    def save_associations(self, table: pd.DataFrame, branch: str) -> str:
        """Save the filtered association table of one branch."""
        path = self.dirs.get_path("root", self._branch_files(branch)[1])
        table.to_csv(path, index=False)
        logger.info(f"Saved associations ({len(table)} rows): {path}")
        return str(path)

    def save_stability(self, summary: pd.DataFrame, signature: str) -> str:
        """Save one signature's stability summary (index = variable)."""
        path = self.dirs.get_path("stability", f"{signature}_stability.csv")
        summary.to_csv(path, index=True)
        logger.info(f"Saved stability summary ({len(summary)} variables): {path}")
        return str(path)

    def save_run_metadata(self, metadata: dict[str, Any]) -> str:
        path = self.dirs.get_path("root", METADATA_FILE)
        save_json(metadata, path)
        logger.info(f"Saved run metadata: {path}")
        return str(path)
