"""Configuration schema dataclasses for tailf.

All fields are optional to support partial configs that merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TailDefaults:
    """Engine defaults applied when a caller does not override them.

    Example config.yaml:
        tail:
          mode: line
          init_delay_ms: 50
          poll_interval_ms: 500
          fs_events: false
    """

    mode: str = "binary"  # "binary" or "line"
    init_delay_ms: int = 100
    poll_interval_ms: int | None = None  # None disables polling
    fs_events: bool | None = None  # None: enabled unless polling is set
    chunk_size: int = 1000  # Bytes per positioned read
    encoding: str = "utf-8"  # Line mode only
    debug: bool = False  # Log every file event at info level


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    tail: TailDefaults = field(default_factory=TailDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)  # Unknown top-level keys
