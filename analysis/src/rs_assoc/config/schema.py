"""
Configuration schema for the rearrangement-signature association pipeline.

Defines Pydantic models for every pipeline parameter. Defaults reproduce the
thresholds of the published analysis (raw p < 0.05 screen, FDR < 0.05 for the
multivariate model, 10 replicates per train fraction, padj < 0.1 and
OR outside [0.5, 1.5] for reported associations).
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# ============================================================================
# Column Declarations
# ============================================================================


class CovariateSpec(BaseModel):
    """Declared covariate.

    ``group`` ties dummy-coded subcategories stored as separate columns back to
    their parent categorical predictor; selecting any member brings the whole
    group into the multivariate model.
    """

    name: str
    kind: Literal["numeric", "categorical", "binary"] = "numeric"
    group: str | None = None


class ColumnsConfig(BaseModel):
    """Configuration for column roles in a cohort table."""

    mode: Literal["auto", "explicit"] = "auto"
    id_col: str = "sample"
    signatures: list[str] = Field(default_factory=list)
    covariates: list[CovariateSpec] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_explicit_covariates(self):
        """Explicit mode needs a declared covariate list."""
        if self.mode == "explicit" and not self.covariates:
            raise ValueError("columns.mode='explicit' requires columns.covariates to be set.")
        names = [c.name for c in self.covariates]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate covariate declarations: {dupes}")
        overlap = sorted(set(names) & set(self.signatures))
        if overlap:
            raise ValueError(f"Columns declared as both signature and covariate: {overlap}")
        groups = {c.group for c in self.covariates if c.group}
        clash = sorted(groups & (set(names) | set(self.signatures)))
        if clash:
            raise ValueError(f"Group names must differ from column names: {clash}")
        return self


# ============================================================================
# Modelling Configuration
# ============================================================================


class ScreeningConfig(BaseModel):
    """Univariate screen settings."""

    p_threshold: float = Field(default=0.05, gt=0.0, le=1.0)
    maxiter: int = Field(default=1000, ge=1)
    fdr_method: Literal["fdr_bh", "fdr_by", "bonferroni", "holm"] = "fdr_bh"


class SelectionConfig(BaseModel):
    """Multivariate model construction and stepwise search settings."""

    fdr_threshold: float = Field(default=0.05, gt=0.0, le=1.0)
    direction: Literal["both", "backward"] = "both"
    max_steps: int = Field(default=1000, ge=0)


class StabilityConfig(BaseModel):
    """Resampled stability settings."""

    enabled: bool = True
    fractions: list[float] = Field(default_factory=lambda: [0.5, 0.6, 0.7, 0.8, 0.9, 1.0])
    n_replicates: int = Field(default=10, ge=1)
    p_threshold: float = Field(default=0.05, gt=0.0, le=1.0)
    seed: int = Field(default=0, ge=0)
    n_jobs: int = Field(default=1, ge=-1)
    partitions_dir: Path | None = None

    @field_validator("fractions")
    @classmethod
    def validate_fractions(cls, v: list[float]) -> list[float]:
        if not v:
            raise ValueError("stability.fractions must not be empty")
        bad = [f for f in v if not (0.0 < f <= 1.0)]
        if bad:
            raise ValueError(f"stability.fractions must lie in (0, 1], got {bad}")
        return sorted(set(v))


class ReportConfig(BaseModel):
    """Filter applied to the combined full-cohort coefficient tables."""

    padj_threshold: float = Field(default=0.1, gt=0.0, le=1.0)
    or_lower: float = Field(default=0.5, gt=0.0)
    or_upper: float = Field(default=1.5, gt=0.0)
    ci_level: float = Field(default=0.95, gt=0.0, lt=1.0)

    @model_validator(mode="after")
    def validate_or_band(self):
        if self.or_lower > self.or_upper:
            raise ValueError(
                f"report.or_lower ({self.or_lower}) must not exceed report.or_upper ({self.or_upper})"
            )
        return self


# ============================================================================
# Top-Level Configuration
# ============================================================================


class AnalysisConfig(BaseModel):
    """Complete configuration for one association run."""

    infile: Path | None = None
    expression_file: Path | None = None
    outdir: Path = Field(default=Path("results"))
    run_id: str | None = None

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    expression_columns: ColumnsConfig | None = None
    screening: ScreeningConfig = Field(default_factory=ScreeningConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    stability: StabilityConfig = Field(default_factory=StabilityConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    strictness: Literal["off", "warn", "error"] = "warn"

    @property
    def resolved_expression_columns(self) -> ColumnsConfig:
        """Expression table column roles; falls back to auto-detection with the same signatures."""
        if self.expression_columns is not None:
            return self.expression_columns
        return ColumnsConfig(
            mode="auto",
            id_col=self.columns.id_col,
            signatures=list(self.columns.signatures),
            exclude=list(self.columns.exclude),
        )


class PartitionsConfig(BaseModel):
    """Configuration for the save-partitions command."""

    infile: Path | None = None
    outdir: Path = Field(default=Path("partitions"))
    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    stability: StabilityConfig = Field(default_factory=StabilityConfig)
    overwrite: bool = False
