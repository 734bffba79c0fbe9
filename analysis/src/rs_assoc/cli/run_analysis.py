"""
CLI implementation for the run command.

Full-cohort branch: one screened, stepwise-selected logistic model per
signature on the regression table (and on the expression table when given),
stacked into a combined coefficient table with FDR and filtered to the
reportable associations.

Stability branch: for every signature, repeated stratified partitions of the
regression table at each train fraction (or the partitions written by
save-partitions, when stability.partitions_dir is set), re-running the
selection on every training subset and summarising how often each coefficient
is retained.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from rs_assoc import __version__
from rs_assoc.config.loader import load_analysis_config, print_config_summary, save_config
from rs_assoc.config.schema import AnalysisConfig, ColumnsConfig
from rs_assoc.config.validation import validate_analysis_config
from rs_assoc.data.columns import CovariateSchema, resolve_columns, validate_cohort_table
from rs_assoc.data.io import log_data_summary, read_cohort_file
from rs_assoc.data.schema import CONFIG_FILE
from rs_assoc.errors import FitError, InvalidArgument
from rs_assoc.evaluation.reports import combine_coefficient_tables, filter_associations, to_table
from rs_assoc.evaluation.writer import OutputDirectories, ResultsWriter
from rs_assoc.features.selection import select_model
from rs_assoc.features.stability import run_stability
from rs_assoc.utils.logging import auto_log_path, log_section, setup_logger

logger = logging.getLogger(__name__)

# CLI argument -> config key
CLI_OVERRIDE_KEYS = {
    "infile": "infile",
    "expression_file": "expression_file",
    "outdir": "outdir",
    "run_id": "run_id",
    "seed": "stability.seed",
    "n_jobs": "stability.n_jobs",
    "partitions_dir": "stability.partitions_dir",
}


def build_overrides(cli_args: dict[str, Any] | None, overrides: list[str] | None) -> list[str]:
    """Merge explicit CLI options into the dot-notation override list."""
    all_overrides = list(overrides) if overrides else []
    if not cli_args:
        return all_overrides

    for key, config_key in CLI_OVERRIDE_KEYS.items():
        value = cli_args.get(key)
        if value is not None:
            all_overrides.append(f"{config_key}={value}")

    if cli_args.get("signatures"):
        all_overrides.append(f"columns.signatures={','.join(cli_args['signatures'])}")
    if cli_args.get("no_stability"):
        all_overrides.append("stability.enabled=false")

    return all_overrides


def run_signature_models(
    table: pd.DataFrame,
    signatures: list[str],
    schema: CovariateSchema,
    config: AnalysisConfig,
) -> dict[str, pd.DataFrame]:
    """
    Fit the selected model of every signature and tabulate it.

    Signatures whose initial multivariate fit fails are logged and skipped;
    signatures with no covariate passing the FDR filter have no table.

    Returns:
        Mapping signature -> coefficient table (intercept included)
    """
    tables = {}
    for signature in signatures:
        try:
            model = select_model(
                signature,
                table,
                schema=schema,
                screening=config.screening,
                selection=config.selection,
            )
        except FitError as e:
            logger.warning(f"{signature}: skipped ({e})")
            continue

        if model is None:
            logger.info(f"{signature}: no covariate passed the univariate + FDR filter")
            continue

        tables[signature] = to_table(model, ci_level=config.report.ci_level)
        logger.info(f"{signature}: selected {list(model.terms)} (AIC={model.aic:.2f})")
    return tables


def _load_table(path: Path, columns: ColumnsConfig) -> tuple[pd.DataFrame, CovariateSchema]:
    df = read_cohort_file(path, id_col=columns.id_col, required=list(columns.signatures))
    schema = resolve_columns(df, columns)
    validate_cohort_table(df, schema)
    log_data_summary(df, schema.signatures)
    return df, schema


def _run_branch(
    branch: str,
    table: pd.DataFrame,
    schema: CovariateSchema,
    config: AnalysisConfig,
    writer: ResultsWriter,
) -> dict[str, Any]:
    tables = run_signature_models(table, schema.signatures, schema, config)
    combined = combine_coefficient_tables(tables)
    associations = filter_associations(
        combined,
        padj_threshold=config.report.padj_threshold,
        or_lower=config.report.or_lower,
        or_upper=config.report.or_upper,
    )
    writer.save_coefficients(combined, branch)
    writer.save_associations(associations, branch)
    return {
        "n_samples": int(len(table)),
        "signatures_modelled": list(tables),
        "signatures_without_model": [s for s in schema.signatures if s not in tables],
        "n_coefficients": int(len(combined)),
        "n_associations": int(len(associations)),
    }


def run_analysis(
    config_file: str | None = None,
    cli_args: dict[str, Any] | None = None,
    overrides: list[str] | None = None,
    verbose: int = 0,
) -> dict[str, Any]:
    """
    Run the association analysis end to end.

    Args:
        config_file: Path to YAML config file (optional)
        cli_args: Dictionary of CLI arguments (optional)
        overrides: List of config overrides (optional)
        verbose: Verbosity level (0=INFO, 1=DEBUG)

    Returns:
        Run metadata (also written to run_metadata.json)

    Raises:
        ValueError: If the configuration is invalid or no input table is given
    """
    log_level = 20 - (min(verbose, 1) * 10)  # INFO=20, DEBUG=10
    setup_logger("rs_assoc", level=log_level)

    config = load_analysis_config(
        config_file=config_file, overrides=build_overrides(cli_args, overrides)
    )
    run_id = config.run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = auto_log_path("run", config.outdir, run_id)
    setup_logger("rs_assoc", level=log_level, log_file=log_path)

    log_section(logger, f"RS association analysis (run {run_id})")
    logger.info(f"Log file: {log_path}")

    validate_analysis_config(config)
    if verbose:
        print_config_summary(config, logger=logger)
    if config.infile is None:
        raise ValueError("infile must be provided via config or --infile")
    if not config.columns.signatures:
        raise ValueError("No signature columns configured (columns.signatures)")

    dirs = OutputDirectories.create(config.outdir)
    writer = ResultsWriter(dirs)
    config_path = Path(dirs.root) / CONFIG_FILE
    save_config(config, config_path)
    logger.info(f"Saved resolved config to: {config_path}")

    started = datetime.now()
    metadata: dict[str, Any] = {
        "run_id": run_id,
        "version": __version__,
        "started": started.isoformat(timespec="seconds"),
        "infile": str(config.infile),
        "expression_file": str(config.expression_file) if config.expression_file else None,
        "signatures": list(config.columns.signatures),
    }

    log_section(logger, "Full cohort: regression table", char="-")
    table, schema = _load_table(config.infile, config.columns)
    metadata["full_cohort"] = _run_branch("full_cohort", table, schema, config, writer)

    if config.expression_file is not None:
        log_section(logger, "Full cohort: expression table", char="-")
        expr_table, expr_schema = _load_table(
            config.expression_file, config.resolved_expression_columns
        )
        metadata["expression"] = _run_branch("expression", expr_table, expr_schema, config, writer)

    stability_meta: dict[str, Any] = {}
    if config.stability.enabled:
        log_section(logger, "Stability", char="-")
        logger.info(
            f"Fractions: {config.stability.fractions}, replicates: {config.stability.n_replicates}, "
            f"seed: {config.stability.seed}, n_jobs: {config.stability.n_jobs}"
        )
        if config.stability.partitions_dir is not None:
            logger.info(f"Replaying saved partitions from {config.stability.partitions_dir}")
        for signature_idx, signature in enumerate(schema.signatures):
            try:
                summary = run_stability(
                    signature,
                    table,
                    config.stability.fractions,
                    config.stability.n_replicates,
                    config.stability.seed,
                    signature_idx=signature_idx,
                    schema=schema,
                    screening=config.screening,
                    selection=config.selection,
                    p_threshold=config.stability.p_threshold,
                    n_jobs=config.stability.n_jobs,
                    id_col=schema.id_col,
                    partitions_dir=config.stability.partitions_dir,
                )
            except InvalidArgument as e:
                logger.warning(f"{signature}: stability skipped ({e})")
                stability_meta[signature] = {"skipped": str(e)}
                continue
            writer.save_stability(summary, signature)
            stability_meta[signature] = {"n_variables": int(len(summary))}
    metadata["stability"] = stability_meta

    metadata["finished"] = datetime.now().isoformat(timespec="seconds")
    writer.save_run_metadata(metadata)

    log_section(logger, "Analysis complete")
    logger.info(f"Results: {dirs.root}")
    return metadata
