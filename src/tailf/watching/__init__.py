"""Filesystem change notifications for tailf.

Wraps a watchdog observer on one directory and forwards its notifications
into an asyncio event loop as WatcherChange / WatcherStop events.
"""

from tailf.watching.watcher import FsWatcher

__all__ = [
    "FsWatcher",
]
