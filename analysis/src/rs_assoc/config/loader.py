"""
Configuration loading and merging logic.

Supports:
1. Loading from YAML files (with ``_base`` inheritance)
2. CLI argument overrides (dot-notation: e.g., stability.n_replicates=20)
3. Validation and resolution
"""

import copy
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from rs_assoc.config.defaults import (
    DEFAULT_COLUMNS_CONFIG,
    DEFAULT_REPORT_CONFIG,
    DEFAULT_SCREENING_CONFIG,
    DEFAULT_SELECTION_CONFIG,
    DEFAULT_STABILITY_CONFIG,
)
from rs_assoc.config.schema import AnalysisConfig, PartitionsConfig


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into *base* (overlay wins on leaf conflicts).

    Returns a new dict; neither input is mutated.
    """
    merged = base.copy()
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml(file_path: str | Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    Supports a ``_base`` key: if present, the referenced YAML file is loaded
    first and the current file's values are deep-merged on top.  The ``_base``
    path is resolved relative to the directory containing *file_path*.
    """
    file_path = Path(file_path).resolve()
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path) as f:
        config_dict = yaml.safe_load(f) or {}

    base_ref = config_dict.pop("_base", None)
    if base_ref is not None:
        base_path = (file_path.parent / base_ref).resolve()
        base_dict = load_yaml(base_path)
        config_dict = _deep_merge(base_dict, config_dict)

    return config_dict


# Keys whose values are paths and are resolved relative to the config file
PATH_LIKE_KEYS = ("infile", "expression_file", "outdir", "stability.partitions_dir")


def resolve_paths_relative_to_config(
    config_dict: dict[str, Any], config_file: Path
) -> dict[str, Any]:
    """Resolve relative input/output paths against the config file directory."""
    config_dir = config_file.resolve().parent
    resolved = copy.deepcopy(config_dict)
    for key in PATH_LIKE_KEYS:
        *parents, leaf = key.split(".")
        section = resolved
        for part in parents:
            section = section.get(part)
            if not isinstance(section, dict):
                break
        else:
            value = section.get(leaf)
            if isinstance(value, str) and value and not Path(value).is_absolute():
                section[leaf] = str(config_dir / value)
    return resolved


def apply_overrides(config_dict: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """
    Apply CLI overrides to config dictionary.

    Supports dot-notation for nested keys:
        stability.n_replicates=20 -> config_dict['stability']['n_replicates'] = 20
        columns.signatures=RS1,RS2 -> config_dict['columns']['signatures'] = ['RS1', 'RS2']

    Args:
        config_dict: Base configuration dictionary
        overrides: List of "key=value" or "nested.key=value" strings

    Returns:
        Updated config dictionary
    """
    # Keys that should always be lists
    LIST_KEYS = {
        "signatures",
        "fractions",
        "exclude",
    }

    # Keys that should always be strings (not parsed as int/float)
    STRING_KEYS = {
        "run_id",
        "id_col",
    }

    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Invalid override format: {override}. Expected 'key=value'")

        key_path, value_str = override.split("=", 1)
        keys = key_path.split(".")

        target = config_dict
        for key in keys[:-1]:
            if key not in target or target[key] is None:
                target[key] = {}
            target = target[key]

        final_key = keys[-1]
        value = _parse_value(
            value_str,
            force_list=final_key in LIST_KEYS,
            force_string=final_key in STRING_KEYS,
        )
        target[final_key] = value

    return config_dict


def _parse_value(value_str: str, force_list: bool = False, force_string: bool = False) -> Any:
    """
    Parse string value to appropriate Python type.

    Args:
        value_str: String to parse
        force_list: If True, always return a list (for comma-separated or single values)
        force_string: If True, always return a string (skip int/float parsing)
    """
    if force_string:
        return value_str

    if value_str.lower() in ("true", "yes"):
        return [True] if force_list else True
    if value_str.lower() in ("false", "no"):
        return [False] if force_list else False

    if value_str.lower() in ("none", "null"):
        return [] if force_list else None

    if "," in value_str or force_list:
        return [_parse_scalar(v.strip()) for v in value_str.split(",") if v.strip()]

    return _parse_scalar(value_str)


def _parse_scalar(value_str: str) -> Any:
    try:
        return int(value_str)
    except ValueError:
        pass
    try:
        return float(value_str)
    except ValueError:
        pass
    return value_str


def _default_sections() -> dict[str, Any]:
    return {
        "columns": copy.deepcopy(DEFAULT_COLUMNS_CONFIG),
        "screening": DEFAULT_SCREENING_CONFIG.copy(),
        "selection": DEFAULT_SELECTION_CONFIG.copy(),
        "stability": copy.deepcopy(DEFAULT_STABILITY_CONFIG),
        "report": DEFAULT_REPORT_CONFIG.copy(),
    }


def _build_config_dict(
    defaults: dict[str, Any],
    config_file: str | Path | None,
    overrides: list[str] | None,
) -> dict[str, Any]:
    config_dict = defaults

    if config_file is not None:
        config_file_path = Path(config_file)
        file_config = load_yaml(config_file_path)
        file_config = resolve_paths_relative_to_config(file_config, config_file_path)
        config_dict = _deep_merge(config_dict, file_config)

    if overrides:
        config_dict = apply_overrides(config_dict, overrides)

    return config_dict


def load_analysis_config(
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
) -> AnalysisConfig:
    """
    Load analysis configuration from file and CLI overrides.

    Args:
        config_file: Path to YAML config file (optional)
        overrides: List of CLI overrides in "key=value" format (optional)

    Returns:
        Validated AnalysisConfig instance
    """
    config_dict = _build_config_dict(_default_sections(), config_file, overrides)
    try:
        return AnalysisConfig(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Invalid analysis configuration:\n{e}") from e


def load_partitions_config(
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
) -> PartitionsConfig:
    """Load save-partitions configuration; shares ``columns`` and ``stability`` with the analysis config."""
    defaults = {
        "columns": copy.deepcopy(DEFAULT_COLUMNS_CONFIG),
        "stability": copy.deepcopy(DEFAULT_STABILITY_CONFIG),
    }
    config_dict = _build_config_dict(defaults, config_file, overrides)
    known = set(PartitionsConfig.model_fields)
    config_dict = {k: v for k, v in config_dict.items() if k in known}
    try:
        return PartitionsConfig(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Invalid partitions configuration:\n{e}") from e


def save_config(config: AnalysisConfig | PartitionsConfig, output_path: str | Path):
    """Save resolved configuration to YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="json")

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def print_config_summary(config: AnalysisConfig | PartitionsConfig, logger=None):
    """Print human-readable configuration summary."""
    lines = []
    lines.append("=" * 80)
    lines.append("Configuration Summary")
    lines.append("=" * 80)

    def format_dict(d, indent=0):
        result = []
        for key, value in d.items():
            if isinstance(value, dict):
                result.append(f"{'  ' * indent}{key}:")
                result.extend(format_dict(value, indent + 1))
            else:
                result.append(f"{'  ' * indent}{key}: {value}")
        return result

    lines.extend(format_dict(config.model_dump(mode="json")))
    lines.append("=" * 80)

    summary = "\n".join(lines)

    if logger:
        logger.info(summary)
    else:
        print(summary)
