"""Configuration loader for the multi-edit server.

Loads and validates configuration from the workspace with smart defaults.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.errors import DiagnosticOptions
from .file_helpers import DEFAULT_BACKUP_SUFFIX

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "editing": {
        "backup_suffix": DEFAULT_BACKUP_SUFFIX,
        "default_backup": True,
    },
    "diagnostics": {
        "no_match_context_lines": 7,
        "fallback_head_lines": 15,
        "ambiguous_context_lines": 3,
        "max_match_locations": 5,
        "preview_length": 40,
    },
    "logging": {
        "level": "WARNING",
    },
}

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ToolSettings:
    """Settings the tools pass explicitly into the engine and diagnostics."""

    backup_suffix: str = DEFAULT_BACKUP_SUFFIX
    default_backup: bool = True
    diagnostics: DiagnosticOptions = field(default_factory=DiagnosticOptions)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Override values replace base values. Lists are replaced entirely (not merged).

    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _find_config_file(workspace_root: Path) -> Path | None:
    """Find config file in workspace.

    Search order:
    1. mcp_config.json
    2. .mcp/config.json

    """
    candidates = [
        workspace_root / "mcp_config.json",
        workspace_root / ".mcp" / "config.json",
    ]

    for path in candidates:
        if path.exists():
            return path

    return None


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load and parse config file."""
    try:
        with config_path.open(encoding="utf-8") as f:
            result = json.load(f)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in config file {config_path}: {e}"
        raise ValueError(msg) from e
    except OSError as e:
        msg = f"Failed to read config file {config_path}: {e}"
        raise ValueError(msg) from e

    if not isinstance(result, dict):
        msg = f"Config file {config_path} must contain a JSON object"
        raise ValueError(msg)
    return result


def _validate_config(config: dict) -> list[str]:
    """Validate config against expected structure.

    Returns list of warning messages (empty if valid).

    """
    warnings = []

    editing = config.get("editing", {})
    suffix = editing.get("backup_suffix")
    if not isinstance(suffix, str) or not suffix or "/" in suffix:
        warnings.append(f"editing.backup_suffix must be a non-empty file suffix, got {suffix!r}")
    if not isinstance(editing.get("default_backup"), bool):
        warnings.append("editing.default_backup must be a boolean")

    for key, value in config.get("diagnostics", {}).items():
        if key not in DEFAULT_CONFIG["diagnostics"]:
            warnings.append(f"Unknown diagnostics option: {key}")
        elif not isinstance(value, int) or isinstance(value, bool) or value < 0:
            warnings.append(f"diagnostics.{key} must be a non-negative integer, got {value!r}")

    level = config.get("logging", {}).get("level")
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        warnings.append(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}")

    return warnings


def load_config(workspace_root: Path) -> dict[str, Any]:
    """Load configuration for a workspace.

    Invalid values are reported as warnings and replaced by defaults.

    Raises:
        ValueError: If the config file exists but cannot be parsed

    """
    config_path = _find_config_file(workspace_root)
    if config_path is None:
        logger.debug("No config file found, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    user_config = _load_config_file(config_path)
    config = _deep_merge(DEFAULT_CONFIG, user_config)

    warnings = _validate_config(config)
    if warnings:
        for warning in warnings:
            logger.warning(f"Config {config_path}: {warning}")
        return copy.deepcopy(DEFAULT_CONFIG)

    return config


def settings_from_config(config: dict[str, Any]) -> ToolSettings:
    """Build ToolSettings from a (merged) config dict."""
    merged = _deep_merge(DEFAULT_CONFIG, config)
    editing = merged["editing"]
    known = {k: v for k, v in merged["diagnostics"].items() if k in DEFAULT_CONFIG["diagnostics"]}
    return ToolSettings(
        backup_suffix=editing["backup_suffix"],
        default_backup=editing["default_backup"],
        diagnostics=DiagnosticOptions(**known),
    )
