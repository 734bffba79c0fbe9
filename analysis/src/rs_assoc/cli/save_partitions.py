"""
CLI implementation for the save-partitions command.

Draws the stability partitions for every configured signature and writes the
training identifiers plus per-signature metadata, without fitting any model.
Uses the same seeding as the run command, so saved partitions match the ones
a stability run with the same config draws.
"""

import logging
from pathlib import Path
from typing import Any

from rs_assoc.config.loader import load_partitions_config, print_config_summary, save_config
from rs_assoc.data.columns import resolve_columns, validate_cohort_table
from rs_assoc.data.io import log_data_summary, read_cohort_file
from rs_assoc.data.persistence import save_partition_indices, save_partitions_metadata
from rs_assoc.data.splits import make_partitions, summarize_partition
from rs_assoc.utils.logging import log_section, setup_logger
from rs_assoc.utils.random import get_partition_seed, make_rng

logger = logging.getLogger(__name__)


def run_save_partitions(
    config_file: str | None = None,
    cli_args: dict[str, Any] | None = None,
    overrides: list[str] | None = None,
    verbose: int = 0,
) -> list[str]:
    """
    Generate and save stability partitions.

    Args:
        config_file: Path to YAML config file (optional)
        cli_args: Dictionary of CLI arguments (optional)
        overrides: List of config overrides (optional)
        verbose: Verbosity level (0=INFO, 1=DEBUG)

    Returns:
        Paths of the metadata files written (one per signature)

    Raises:
        FileExistsError: If partition files exist and overwrite is not set
        InvalidArgument: If a signature cannot be partitioned at a fraction
    """
    log_level = 20 - (min(verbose, 1) * 10)
    setup_logger("rs_assoc", level=log_level)

    log_section(logger, "RS partition generation")

    # Build overrides list from CLI args
    all_overrides = list(overrides) if overrides else []
    if cli_args:
        for key in ("infile", "outdir"):
            if cli_args.get(key) is not None:
                all_overrides.append(f"{key}={cli_args[key]}")
        if cli_args.get("seed") is not None:
            all_overrides.append(f"stability.seed={cli_args['seed']}")
        if cli_args.get("signatures"):
            all_overrides.append(f"columns.signatures={','.join(cli_args['signatures'])}")
        if cli_args.get("overwrite"):
            all_overrides.append("overwrite=true")

    logger.info("Loading configuration...")
    config = load_partitions_config(config_file=config_file, overrides=all_overrides)
    if verbose:
        print_config_summary(config, logger=logger)

    if config.infile is None:
        raise ValueError("infile must be provided via config or --infile")
    if not config.columns.signatures:
        raise ValueError("No signature columns configured (columns.signatures)")

    outdir = Path(config.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    config_path = outdir / "partitions_config.yaml"
    save_config(config, config_path)
    logger.info(f"Saved resolved config to: {config_path}")

    stability = config.stability
    logger.info(f"Signatures: {', '.join(config.columns.signatures)}")
    logger.info(f"Fractions: {stability.fractions}")
    logger.info(f"Replicates: {stability.n_replicates} (seed {stability.seed})")

    df = read_cohort_file(
        config.infile, id_col=config.columns.id_col, required=list(config.columns.signatures)
    )
    schema = resolve_columns(df, config.columns)
    validate_cohort_table(df, schema)
    log_data_summary(df, schema.signatures)

    meta_paths = []
    for signature_idx, signature in enumerate(schema.signatures):
        log_section(logger, f"{signature}", char="-")
        partitions_by_fraction = {}
        for fraction_idx, fraction in enumerate(stability.fractions):
            rng = make_rng(get_partition_seed(stability.seed, fraction_idx, signature_idx))
            partitions = make_partitions(
                signature,
                fraction,
                df,
                stability.n_replicates,
                rng=rng,
                id_col=schema.id_col,
            )
            partitions_by_fraction[fraction] = partitions
            first = summarize_partition(partitions[0], id_col=schema.id_col)
            logger.info(
                f"  f={fraction:g}: n_train={first['n_train']:,} "
                f"(prev {first['prevalence_train']:.3f}), n_test={first['n_test']:,}"
            )

        paths = save_partition_indices(
            str(outdir),
            signature,
            partitions_by_fraction,
            id_col=schema.id_col,
            overwrite=config.overwrite,
        )
        meta_path = save_partitions_metadata(
            str(outdir),
            signature,
            partitions_by_fraction,
            id_col=schema.id_col,
            extra={
                "seed": stability.seed,
                "signature_idx": signature_idx,
                "n_replicates": stability.n_replicates,
                "infile": str(config.infile),
            },
        )
        logger.info(f"  Saved {len(paths)} partition files, metadata: {meta_path}")
        meta_paths.append(meta_path)

    log_section(logger, "Partition generation complete")
    logger.info(f"Output directory: {outdir}")
    return meta_paths
