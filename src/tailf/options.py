"""Construction options for a tail engine."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from tailf.errors import ConfigError
from tailf.reader import DEFAULT_CHUNK_SIZE
from tailf.sinks import CALLER
from tailf.state import Mode

if TYPE_CHECKING:
    from tailf.config.schema import TailDefaults

DEFAULT_INIT_DELAY_MS = 100


@dataclass(frozen=True)
class TailOptions:
    """Immutable engine configuration, validated on creation.

    Polling and filesystem events are mutually exclusive. ``fs_events_enabled``
    left as None means "use filesystem events unless polling is configured";
    setting it to True together with ``poll_interval_ms`` is rejected.

    Raises:
        ConfigError: Invalid or conflicting values.
    """

    path: str
    sink: Any = CALLER
    mode: Mode = Mode.BINARY
    init_delay_ms: int = DEFAULT_INIT_DELAY_MS
    poll_interval_ms: int | None = None
    fs_events_enabled: bool | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = "utf-8"
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.path:
            raise ConfigError("path is required")
        object.__setattr__(self, "path", os.fspath(self.path))

        try:
            object.__setattr__(self, "mode", Mode.parse(self.mode))
        except ValueError:
            raise ConfigError(f"mode must be 'binary' or 'line', got {self.mode!r}") from None

        if self.init_delay_ms < 0:
            raise ConfigError(f"init_delay_ms must be >= 0, got {self.init_delay_ms}")
        if self.poll_interval_ms is not None and self.poll_interval_ms <= 0:
            raise ConfigError(f"poll_interval_ms must be > 0, got {self.poll_interval_ms}")
        if self.chunk_size <= 0:
            raise ConfigError(f"chunk_size must be > 0, got {self.chunk_size}")
        if self.fs_events_enabled and self.poll_interval_ms is not None:
            raise ConfigError("poll_interval_ms and fs_events_enabled are mutually exclusive")

        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ConfigError(f"unknown encoding: {self.encoding!r}") from None

    @property
    def fs_events(self) -> bool:
        """Whether the filesystem-event trigger is active."""
        if self.fs_events_enabled is None:
            return self.poll_interval_ms is None
        return self.fs_events_enabled

    @classmethod
    def from_defaults(cls, path: str, defaults: TailDefaults, **overrides: Any) -> TailOptions:
        """Build options from config defaults; ``overrides`` win over them.

        Overrides whose value is None are ignored, except ``sink`` where
        None selects the stdout sink.
        """
        values: dict[str, Any] = {
            "mode": defaults.mode,
            "init_delay_ms": defaults.init_delay_ms,
            "poll_interval_ms": defaults.poll_interval_ms,
            "fs_events_enabled": defaults.fs_events,
            "chunk_size": defaults.chunk_size,
            "encoding": defaults.encoding,
            "debug": defaults.debug,
        }
        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known or key == "path":
                raise ConfigError(f"unknown option: {key}")
            if value is not None or key == "sink":
                values[key] = value
        # An explicit poll interval from the caller beats a configured fs_events default
        explicit_poll = overrides.get("poll_interval_ms") is not None
        if explicit_poll and overrides.get("fs_events_enabled") is None:
            values["fs_events_enabled"] = None
        return cls(path=path, **values)
