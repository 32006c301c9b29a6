"""Engine state records.

EngineState is owned by one engine's control loop and replaced wholesale
(``dataclasses.replace``) on every transition. StatusSnapshot is the
read-only view handed out to callers.
"""

from __future__ import annotations

import asyncio
import codecs
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from tailf.reader import FileHandle
    from tailf.sinks import Sink
    from tailf.watching import FsWatcher

# Formatted payload: bytes (binary mode), lines (line mode) or a watcher stop tuple
Content = Union[bytes, list[str], tuple[Any, ...]]


class Mode(Enum):
    """Formatting applied to drained bytes before delivery."""

    BINARY = "binary"
    LINE = "line"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Mode | str) -> Mode:
        """Accept a Mode or its string value ("binary", "line")."""
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


@dataclass(frozen=True)
class EngineState:
    """Mutable-by-replacement state of a single tail engine."""

    path: str
    handle: FileHandle
    sink: Sink
    mode: Mode = Mode.BINARY
    offset: int = 0
    buffer: bytes = b""
    watcher: FsWatcher | None = None
    poll_timer: asyncio.TimerHandle | None = None
    poll_interval_ms: int | None = None
    # Line mode only: carries an incomplete multi-byte sequence between drains
    decoder: codecs.IncrementalDecoder | None = None


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time view of an engine, for diagnostics and tests."""

    path: str
    buffer: bytes
    offset: int
    mode: Mode
    watcher: FsWatcher | None
    poll_timer: asyncio.TimerHandle | None
    poll_interval_ms: int | None
    sink: Sink
    running: bool

    @classmethod
    def from_state(cls, state: EngineState, running: bool) -> StatusSnapshot:
        return cls(
            path=state.path,
            buffer=state.buffer,
            offset=state.offset,
            mode=state.mode,
            watcher=state.watcher,
            poll_timer=state.poll_timer,
            poll_interval_ms=state.poll_interval_ms,
            sink=state.sink,
            running=running,
        )
