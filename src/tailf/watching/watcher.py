"""Filesystem watcher built on watchdog.

Watchdog calls its handlers on the observer thread. FsWatcher hops every
notification onto the subscriber's event loop with ``call_soon_threadsafe``
so the subscriber only ever sees events from its own loop.
"""

from __future__ import annotations

import asyncio
import os
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from tailf.events import WatcherChange, WatcherStop
from tailf.logging import get_logger

if TYPE_CHECKING:
    from tailf.events import Event

log = get_logger("watching")

# Event kinds that can mean new content; open/access notifications are dropped
CHANGE_KINDS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED, EVENT_TYPE_CLOSED}
)

# The watched directory itself going away ends the watch
TERMINAL_KINDS = frozenset({EVENT_TYPE_DELETED, EVENT_TYPE_MOVED})

DEFAULT_JOIN_TIMEOUT = 2.0


class _ForwardingHandler(FileSystemEventHandler):
    """Turns watchdog events into WatcherChange events.

    Removal of the watched directory stops the watcher instead.
    """

    def __init__(self, watcher: FsWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            if event.event_type in TERMINAL_KINDS and self._is_watched(event.src_path):
                log.info("Watched directory %s was %s", self._watcher.directory, event.event_type)
                # Runs on the observer thread; stop() skips the join there
                self._watcher.stop()
            return
        if event.event_type not in CHANGE_KINDS:
            return
        self._watcher._emit(
            WatcherChange(self._watcher, os.fsdecode(event.src_path), event.event_type)
        )
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            self._watcher._emit(
                WatcherChange(self._watcher, os.fsdecode(dest_path), event.event_type)
            )

    def _is_watched(self, path: bytes | str) -> bool:
        return os.path.normpath(os.fsdecode(path)) == self._watcher.directory


class FsWatcher:
    """Watches one directory and reports changes to a single subscriber.

    The subscriber gets WatcherStop when ``stop()`` is called or when the
    watched directory is deleted or moved away.

    Example:
        watcher = FsWatcher.subscribe("/var/log", callback=inbox.put_nowait)
        ...
        watcher.stop()  # subscriber receives WatcherStop(watcher)
    """

    def __init__(
        self,
        directory: str,
        callback: Callable[[Event], object],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.directory = os.path.realpath(directory)
        self._callback = callback
        self._loop = loop
        self._observer = Observer()
        self._lock = threading.Lock()
        self._stopped = False

    @classmethod
    def subscribe(
        cls,
        directory: str | os.PathLike[str],
        callback: Callable[[Event], object],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> FsWatcher:
        """Start watching ``directory``; events go to ``callback`` on ``loop``.

        Args:
            directory: Directory to watch (non-recursive)
            callback: Receives WatcherChange and WatcherStop events
            loop: Loop to deliver on; defaults to the running loop

        Returns:
            The started watcher
        """
        watcher = cls(os.fspath(directory), callback, loop or asyncio.get_running_loop())
        watcher.start()
        return watcher

    @property
    def running(self) -> bool:
        return not self._stopped and self._observer.is_alive()

    def start(self) -> None:
        self._observer.schedule(_ForwardingHandler(self), self.directory, recursive=False)
        self._observer.start()
        log.debug("Watching %s", self.directory)

    def stop(self, notify: bool = True, timeout: float = DEFAULT_JOIN_TIMEOUT) -> None:
        """Stop the observer.

        Blocks for up to ``timeout`` seconds joining the observer thread.

        Args:
            notify: Send WatcherStop to the subscriber
            timeout: Seconds to wait for the observer thread
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        self._observer.stop()
        if self._observer.is_alive() and threading.current_thread() is not self._observer:
            self._observer.join(timeout)
        log.debug("Stopped watching %s", self.directory)

        if notify:
            self._emit(WatcherStop(self), force=True)

    def _emit(self, event: Event, force: bool = False) -> None:
        if self._stopped and not force:
            return
        try:
            self._loop.call_soon_threadsafe(self._callback, event)
        except RuntimeError:
            # Subscriber's loop already closed
            log.debug("Dropped %r: event loop closed", event)

    def __repr__(self) -> str:
        return f"<FsWatcher {self.directory!r}>"
