"""Configuration management for rs_assoc."""

from rs_assoc.config.defaults import (
    DEFAULT_FRACTIONS,
    DEFAULT_REPORT_CONFIG,
    DEFAULT_SCREENING_CONFIG,
    DEFAULT_SELECTION_CONFIG,
    DEFAULT_STABILITY_CONFIG,
)
from rs_assoc.config.loader import (
    load_analysis_config,
    load_partitions_config,
    save_config,
)
from rs_assoc.config.schema import (
    AnalysisConfig,
    ColumnsConfig,
    CovariateSpec,
    PartitionsConfig,
    ReportConfig,
    ScreeningConfig,
    SelectionConfig,
    StabilityConfig,
)
from rs_assoc.config.validation import ConfigValidationError, validate_analysis_config

__all__ = [
    "DEFAULT_FRACTIONS",
    "DEFAULT_SCREENING_CONFIG",
    "DEFAULT_SELECTION_CONFIG",
    "DEFAULT_STABILITY_CONFIG",
    "DEFAULT_REPORT_CONFIG",
    "load_analysis_config",
    "load_partitions_config",
    "save_config",
    "AnalysisConfig",
    "ColumnsConfig",
    "CovariateSpec",
    "PartitionsConfig",
    "ScreeningConfig",
    "SelectionConfig",
    "StabilityConfig",
    "ReportConfig",
    "ConfigValidationError",
    "validate_analysis_config",
]
