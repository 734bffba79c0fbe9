"""Utility functions for rs_assoc."""

from rs_assoc.utils.logging import auto_log_path, log_section, setup_logger
from rs_assoc.utils.random import draw_seeds, get_partition_seed, make_rng
from rs_assoc.utils.serialization import load_json, save_json

__all__ = [
    "setup_logger",
    "auto_log_path",
    "log_section",
    "get_partition_seed",
    "make_rng",
    "draw_seeds",
    "save_json",
    "load_json",
]
