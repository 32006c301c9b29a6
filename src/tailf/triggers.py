"""Poll trigger: a single repeating deferred wake-up.

The event trigger lives in ``tailf.watching``; both feed the same engine
inbox.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from tailf.events import ReReadTick


class PollTimer:
    """Schedules ReReadTick events, keeping at most one pending.

    Args:
        interval_ms: Delay between ticks in milliseconds
        post: Receives each ReReadTick (normally the engine inbox)
        loop: Loop to schedule on
    """

    def __init__(
        self,
        interval_ms: int,
        post: Callable[[ReReadTick], object],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.interval_ms = interval_ms
        self._post = post
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def handle(self) -> asyncio.TimerHandle | None:
        return self._handle

    def arm(self, since: float | None = None) -> asyncio.TimerHandle:
        """Cancel the pending tick, if any, and schedule the next one.

        Args:
            since: Loop time the interval counts from; defaults to now
        """
        self.cancel()
        start = self._loop.time() if since is None else since
        self._handle = self._loop.call_at(
            start + self.interval_ms / 1000, self._post, ReReadTick()
        )
        return self._handle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
