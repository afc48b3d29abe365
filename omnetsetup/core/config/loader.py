"""
Configuration loader — omnet-setup.yml to SetupConfig.

No file is needed: SetupConfig's defaults are the standard OMNeT++
6.2.0 setup. A file found next to (or above) the working directory,
or named with ``--config``, overrides any subset of them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from omnetsetup.core.models.setup import SetupConfig

logger = logging.getLogger(__name__)

SETUP_CONFIG_FILE = "omnet-setup.yml"
_MAX_DEPTH = 20


class ConfigError(Exception):
    """Raised when setup configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest omnet-setup.yml at or above ``start_dir`` (default: cwd)."""
    start = (start_dir or Path.cwd()).resolve()
    for directory in [start, *start.parents][:_MAX_DEPTH]:
        candidate = directory / SETUP_CONFIG_FILE
        if candidate.is_file():
            logger.debug("Using %s", candidate)
            return candidate
    return None


def load_config(path: Path | None = None, *, search: bool = True) -> SetupConfig:
    """Load and validate setup configuration.

    Args:
        path: Explicit config file; it must exist.
        search: Without ``path``, look for omnet-setup.yml upward from
            the cwd. Defaults are used when nothing is found.

    Raises:
        ConfigError: Missing explicit file, bad YAML, or schema violation.
    """
    if path is None and search:
        path = find_config_file()
    if path is None:
        logger.debug("No %s, using built-in defaults", SETUP_CONFIG_FILE)
        return SetupConfig()

    data = _read_mapping(path)
    try:
        config = SetupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid setup configuration in {path}:\n{e}") from e

    logger.info(
        "Loaded %s: OMNeT++ %s, environment '%s'",
        path.name,
        config.release.version,
        config.environment.name,
    )
    return config


def _read_mapping(path: Path) -> dict[str, Any]:
    """YAML file → dict; an empty file is an empty mapping."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {path}, got {type(data).__name__}"
        )
    return data
