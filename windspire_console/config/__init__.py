# windspire_console/config/__init__.py
"""Configuration system for windspire-console."""

from .loader import get_config_path, get_db_path, load_config
from .schema import (
    DuplicateConfig,
    GenerationConfig,
    OutputConfig,
    ServiceConfig,
    StorageConfig,
    WindspireConfig,
)

__all__ = [
    "WindspireConfig",
    "ServiceConfig",
    "GenerationConfig",
    "DuplicateConfig",
    "StorageConfig",
    "OutputConfig",
    "load_config",
    "get_config_path",
    "get_db_path",
]
