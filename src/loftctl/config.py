"""CLI configuration management.

Handles persistent CLI configuration stored in ~/.loft/config.yaml.
Supports environment variable overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .shared.logging import get_logger
from .shared.paths import CONFIG_FILE, ensure_dirs
from .start.constants import LOFT_CHART_REPO

logger = get_logger(__name__)

# Environment variable mappings
ENV_VARS = {
    "last_install_context": "LOFT_LAST_INSTALL_CONTEXT",
    "chart_repo": "LOFT_CHART_REPO",
}

CONFIG_KEYS = tuple(ENV_VARS)


@dataclass
class CLIConfig:
    """CLI configuration."""

    last_install_context: str | None = None
    chart_repo: str = LOFT_CHART_REPO

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")


def get_config_path(override: str | Path | None = None) -> Path:
    """Get the CLI config file path.

    Args:
        override: Path given with ``--config``, if any.

    Returns:
        Path to ~/.loft/config.yaml unless overridden
    """
    return Path(override) if override else CONFIG_FILE


def _read_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("config.unreadable", path=str(config_path), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("config.not_a_mapping", path=str(config_path))
        return {}
    return data


def load_config(path: str | Path | None = None) -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.loft/config.yaml)
    3. Defaults

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}

    file_config = _read_file(get_config_path(path))
    if file_config.get("last_install_context"):
        config.last_install_context = str(file_config["last_install_context"])
        sources["last_install_context"] = "config file"
    if file_config.get("chart_repo"):
        config.chart_repo = str(file_config["chart_repo"])
        sources["chart_repo"] = "config file"

    if os.environ.get(ENV_VARS["last_install_context"]):
        config.last_install_context = os.environ[ENV_VARS["last_install_context"]]
        sources["last_install_context"] = "environment"
    if os.environ.get(ENV_VARS["chart_repo"]):
        config.chart_repo = os.environ[ENV_VARS["chart_repo"]]
        sources["chart_repo"] = "environment"

    config._sources = sources
    return config


def save_config(key: str, value: Any, path: str | Path | None = None) -> None:
    """Save a config value to the config file.

    Args:
        key: Config key (last_install_context, chart_repo)
        value: Value to save
        path: Config file to write instead of the default
    """
    if key not in CONFIG_KEYS:
        raise ValueError(f"Unknown config key: {key}")

    config_path = get_config_path(path)
    existing = _read_file(config_path)
    existing[key] = value

    if config_path == CONFIG_FILE:
        ensure_dirs()
    else:
        config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)
