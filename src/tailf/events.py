"""Inbound events and outbound actions of the engine state machine.

Every input to an engine (startup timer, poll tick, filesystem notification,
status query) is one of the event types below, delivered through the
engine's inbox and handled strictly in arrival order. ``transition`` answers
each with the next state and a sequence of actions for the engine to run.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from tailf.state import Content, EngineState, StatusSnapshot
    from tailf.watching import FsWatcher

FILE_EVENT = "file_event"
STOP = "stop"


@dataclass(frozen=True)
class Initialize:
    """Deferred first read, scheduled once at startup."""


@dataclass(frozen=True)
class ReReadTick:
    """Poll timer fired."""


@dataclass(frozen=True)
class WatcherChange:
    """Filesystem watcher saw a change under the watched directory."""

    watcher: FsWatcher
    path: str
    change_kind: str


@dataclass(frozen=True)
class WatcherStop:
    """Filesystem watcher terminated."""

    watcher: FsWatcher

    def as_tuple(self) -> tuple[str, FsWatcher, str]:
        """The stop signal as delivered to sinks: ("file_event", watcher, "stop")."""
        return (FILE_EVENT, self.watcher, STOP)


@dataclass(frozen=True, eq=False)
class StatusQuery:
    """Request for a status snapshot, answered through ``reply``."""

    reply: asyncio.Future[StatusSnapshot]


Event = Union[Initialize, ReReadTick, WatcherChange, WatcherStop, StatusQuery]


@dataclass(frozen=True)
class ArmPollTimer:
    """Cancel any pending poll tick and schedule the next one."""


@dataclass(frozen=True)
class Deliver:
    """Hand ``content`` to the engine's sink."""

    content: Content


@dataclass(frozen=True, eq=False)
class Reply:
    """Resolve a pending status query."""

    future: asyncio.Future[StatusSnapshot]
    snapshot: StatusSnapshot


Action = Union[ArmPollTimer, Deliver, Reply]


@dataclass(frozen=True)
class Transition:
    """Result of handling one event."""

    state: EngineState
    actions: tuple[Action, ...] = field(default_factory=tuple)
