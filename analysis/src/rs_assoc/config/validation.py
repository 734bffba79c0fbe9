"""
Configuration validation and safety checks.

Checks that are cheap to state on the config alone; table-dependent checks
live in ``rs_assoc.data.columns``.
"""

import warnings

from rs_assoc.config.schema import AnalysisConfig


class ConfigValidationError(Exception):
    """Raised when configuration validation fails in strict mode."""

    pass


class ConfigValidationWarning(UserWarning):
    """Warning for potential configuration issues."""

    pass


def validate_analysis_config(config: AnalysisConfig):
    """
    Validate analysis configuration for inconsistencies.

    Args:
        config: AnalysisConfig instance
    """
    issues = []

    if not config.columns.signatures:
        issues.append("columns.signatures is empty; no response columns will be modelled.")

    if config.stability.enabled and 1.0 not in config.stability.fractions:
        issues.append(
            "stability.fractions does not include 1.0; summaries will be sorted by "
            f"the largest fraction ({max(config.stability.fractions)})."
        )

    if config.screening.p_threshold < config.selection.fdr_threshold:
        issues.append(
            f"screening.p_threshold ({config.screening.p_threshold}) is below "
            f"selection.fdr_threshold ({config.selection.fdr_threshold}); the FDR "
            "filter cannot admit anything the raw screen rejected."
        )

    declared = {c.name for c in config.columns.covariates}
    excluded = declared & set(config.columns.exclude)
    if excluded:
        issues.append(f"Covariates both declared and excluded: {sorted(excluded)}")

    if config.expression_file is None and config.expression_columns is not None:
        issues.append("expression_columns set but no expression_file given; it will be ignored.")

    _handle_issues(issues, config.strictness, "Analysis configuration")


def _handle_issues(issues: list[str], strictness: str, context: str):
    """
    Handle validation issues based on strictness level.

    Args:
        issues: List of issue descriptions
        strictness: "off", "warn", or "error"
        context: Context description for error messages
    """
    if not issues:
        return

    if strictness == "off":
        return

    message = f"{context} validation issues:\n" + "\n".join(f"  - {i}" for i in issues)

    if strictness == "error":
        raise ConfigValidationError(message)

    warnings.warn(message, ConfigValidationWarning, stacklevel=3)
