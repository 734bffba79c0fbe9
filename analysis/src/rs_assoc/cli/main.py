"""
Main CLI entry point for the rs_assoc pipeline.

Provides subcommands:
  - rs-assoc run: Full-cohort association models and stability analysis
  - rs-assoc save-partitions: Generate and save stability partitions
"""

import click

from rs_assoc import __version__


@click.group()
@click.version_option(version=__version__, prog_name="rs-assoc")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v for DEBUG)",
)
@click.pass_context
def cli(ctx, verbose):
    """
    rs-assoc: Rearrangement-signature association analysis

    Screens covariates for association with binary rearrangement-signature
    presence, fits stepwise-selected logistic models, and measures how stable
    the selected covariates are under repeated sub-sampling.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command("run")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to YAML configuration file",
)
@click.option(
    "--infile",
    type=click.Path(exists=True),
    default=None,
    help="Regression table (CSV, TSV or Parquet)",
)
@click.option(
    "--expression-file",
    type=click.Path(exists=True),
    default=None,
    help="Optional expression table modelled with the same signatures",
)
@click.option(
    "--outdir",
    type=click.Path(),
    default=None,
    help="Output directory for results (default: results/)",
)
@click.option(
    "--run-id",
    default=None,
    help="Run identifier (default: timestamp)",
)
@click.option(
    "--signatures",
    multiple=True,
    default=None,
    help="Signature columns to model (can be repeated)",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Base seed for stability partitions",
)
@click.option(
    "--n-jobs",
    type=int,
    default=None,
    help="joblib workers for the stability replicate loop",
)
@click.option(
    "--partitions-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Replay partitions written by save-partitions instead of drawing new ones",
)
@click.option(
    "--no-stability",
    is_flag=True,
    default=False,
    help="Skip the stability branch",
)
@click.option(
    "--override",
    multiple=True,
    help="Override config values (format: key=value or nested.key=value)",
)
@click.pass_context
def run(ctx, config, **kwargs):
    """Fit per-signature association models and stability summaries."""
    from rs_assoc.cli.run_analysis import run_analysis

    cli_args = {k: v for k, v in kwargs.items() if k != "override"}
    overrides = list(kwargs.get("override", []))

    run_analysis(
        config_file=config,
        cli_args=cli_args,
        overrides=overrides,
        verbose=ctx.obj.get("verbose", 0),
    )


@cli.command("save-partitions")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to YAML configuration file",
)
@click.option(
    "--infile",
    type=click.Path(exists=True),
    default=None,
    help="Regression table (CSV, TSV or Parquet)",
)
@click.option(
    "--outdir",
    type=click.Path(),
    default=None,
    help="Output directory for partitions (default: partitions/)",
)
@click.option(
    "--signatures",
    multiple=True,
    default=None,
    help="Signature columns to partition on (can be repeated)",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Base seed for partitions",
)
@click.option(
    "--overwrite",
    is_flag=True,
    help="Overwrite existing partition files",
)
@click.option(
    "--override",
    multiple=True,
    help="Override config values (format: key=value or nested.key=value)",
)
@click.pass_context
def save_partitions(ctx, config, **kwargs):
    """Generate stratified stability partitions without fitting models."""
    from rs_assoc.cli.save_partitions import run_save_partitions

    cli_args = {k: v for k, v in kwargs.items() if k != "override"}
    overrides = list(kwargs.get("override", []))

    run_save_partitions(
        config_file=config,
        cli_args=cli_args,
        overrides=overrides,
        verbose=ctx.obj.get("verbose", 0),
    )


if __name__ == "__main__":
    cli()
