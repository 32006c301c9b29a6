"""Configuration file loading and caching.

Config files are read in order, later ones overriding earlier ones:
system (/etc/tailf/config.yaml), user ($XDG_CONFIG_HOME/tailf/config.yaml,
default ~/.config), project ($root/.tailf/config.yaml), an explicit file,
then TAILF_* environment variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from tailf.config.schema import Config, LoggingConfig, TailDefaults

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("tailf.config")

CONFIG_FILENAME = "config.yaml"

_cached_config: Config | None = None


def config_paths(root: str | Path | None = None) -> list[Path]:
    """Config file locations, lowest priority first. Files may not exist."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    user_dir = Path(xdg_config) if xdg_config else Path.home() / ".config"
    paths = [
        Path("/etc/tailf") / CONFIG_FILENAME,
        user_dir / "tailf" / CONFIG_FILENAME,
    ]
    if root:
        paths.append(Path(root) / ".tailf" / CONFIG_FILENAME)
    return paths


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Nested sections merge key by key; any other value replaces the base
    value, except None, which leaves it unchanged.
    """
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        _log.warning("Ignoring %s=%r: not an integer", name, raw)
        return None


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Recognized variables: TAILF_LOG, TAILF_LOG_LEVEL, TAILF_POLL_MS.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("TAILF_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    log_level = os.environ.get("TAILF_LOG_LEVEL")
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level

    poll_ms = _env_int("TAILF_POLL_MS")
    if poll_ms is not None:
        overrides.setdefault("tail", {})["poll_interval_ms"] = poll_ms

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.
    """
    defaults = TailDefaults()
    tail_data = data.get("tail") or {}
    tail = TailDefaults(
        mode=str(tail_data.get("mode", defaults.mode)),
        init_delay_ms=int(tail_data.get("init_delay_ms", defaults.init_delay_ms)),
        poll_interval_ms=tail_data.get("poll_interval_ms"),
        fs_events=tail_data.get("fs_events"),
        chunk_size=int(tail_data.get("chunk_size", defaults.chunk_size)),
        encoding=str(tail_data.get("encoding", defaults.encoding)),
        debug=bool(tail_data.get("debug", defaults.debug)),
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"tail", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(tail=tail, logging=logging_config, extra=extra)


def load_config(
    root: str | Path | None = None,
    config_file: str | Path | None = None,
    reload: bool = False,
) -> Config:
    """Load and merge config from all sources, environment variables last.

    Args:
        root: Project directory for project-level config.
        config_file: Additional config file, e.g. from ``--config``.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    is_global = root is None and config_file is None
    if _cached_config is not None and not reload and is_global:
        return _cached_config

    paths = config_paths(root)
    if config_file is not None:
        paths.append(Path(config_file))

    merged: dict[str, Any] = {}
    for path in paths:
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            merged = merge(merged, config_data)

    config = dict_to_config(merge(merged, env_overrides()))

    if is_global:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config.

    Useful for testing or forcing a reload.
    """
    global _cached_config
    _cached_config = None
