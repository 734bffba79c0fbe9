"""
Consistent logging setup for the rs_assoc pipeline.
"""

import logging
import sys
from pathlib import Path


def setup_logger(
    name: str = "rs_assoc",
    level: int = logging.INFO,
    log_file: Path | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Setup a logger with console and optional file output.

    USAGE PATTERN:
        - CLI entrypoints: Call this function to create a logger with handlers
        - Library modules: Use logging.getLogger(__name__) directly (no handlers)
        - Child loggers automatically propagate to parent logger with handlers

    Args:
        name: Logger name (typically "rs_assoc" for the CLI)
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        format_string: Custom format string (default: timestamp + level + message)

    Returns:
        Configured logger instance with handlers attached
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    # Handlers live on this logger only; library child loggers propagate up to it.
    logger.propagate = False

    if format_string is None:
        format_string = "[%(asctime)s] %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def auto_log_path(
    command: str,
    outdir: Path | str = "results",
    run_id: str | None = None,
) -> Path:
    """Build an automatic log file path based on command context.

    Log directory structure:
        logs/
          analysis/run_{ID}.log
          partitions/run_{ID}.log

    Args:
        command: CLI command name (run, save-partitions).
        outdir: Results output directory (used to resolve logs/ sibling).
        run_id: Run identifier (falls back to "unknown" if None).

    Returns:
        Absolute Path for the log file. Parent directories are created by
        ``setup_logger(log_file=...)``.
    """
    outdir = Path(outdir).resolve()
    logs_root = outdir.parent / "logs" if outdir.name != "logs" else outdir
    rid = run_id or "unknown"

    if command == "run":
        return logs_root / "analysis" / f"run_{rid}.log"
    if command == "save-partitions":
        return logs_root / "partitions" / f"run_{rid}.log"

    # Fallback
    return logs_root / "misc" / f"{command}_{rid}.log"


def log_section(logger: logging.Logger, title: str, width: int = 80, char: str = "="):
    """Log a section header."""
    logger.info(char * width)
    logger.info(title)
    logger.info(char * width)
