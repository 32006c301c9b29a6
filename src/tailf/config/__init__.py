"""Layered YAML configuration for tailf.

Example usage:
    from tailf.config import load_config

    config = load_config(root="/path/to/project")
    print(config.tail.mode)
"""

from tailf.config.loader import (
    config_paths,
    get_config,
    load_config,
    reset_config,
)
from tailf.config.schema import (
    Config,
    LoggingConfig,
    TailDefaults,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "config_paths",
    "LoggingConfig",
    "TailDefaults",
]
