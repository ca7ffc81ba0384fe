# windspire_console/config/loader.py
"""
Configuration loading with auto-creation of defaults.

Uses platformdirs for cross-platform config directory management.
"""

import logging
from pathlib import Path

import yaml
from platformdirs import user_config_path

from .schema import WindspireConfig

logger = logging.getLogger(__name__)

APP_NAME = "windspire-console"


def get_config_dir() -> Path:
    return user_config_path(APP_NAME, ensure_exists=True)


def get_config_path() -> Path:
    """Get path to config file, ensuring config directory exists."""
    return get_config_dir() / "config.yaml"


def get_db_path(config: WindspireConfig) -> Path:
    """SQLite path for marker and job history."""
    if config.storage.db_path:
        return Path(config.storage.db_path).expanduser()
    return get_config_dir() / "console.db"


def load_config(config_path: Path | None = None) -> WindspireConfig:
    """
    Load configuration from YAML file.

    If config file doesn't exist, creates it with defaults.
    Returns validated Pydantic model.
    """
    config_path = config_path or get_config_path()

    if not config_path.exists():
        default_config = WindspireConfig()
        config_dict = default_config.model_dump(mode="json")

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w") as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Created default config at {config_path}")
        return default_config

    with config_path.open("r") as f:
        config_data = yaml.safe_load(f) or {}

    config = WindspireConfig(**config_data)
    logger.info(f"Loaded config from {config_path}")
    return config
