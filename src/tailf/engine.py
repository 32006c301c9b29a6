"""The tail engine: one control loop per tailed file.

Timers, filesystem notifications and status queries all arrive as events on
the engine's inbox. A single task takes them off one at a time, runs
``transition`` and executes the returned actions, so engine state is never
touched concurrently and deliveries reach the sink in the order the events
were handled.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from dataclasses import replace
from types import TracebackType
from typing import Any

from tailf.config import Config, get_config
from tailf.errors import TailReadError
from tailf.events import (
    Action,
    ArmPollTimer,
    Deliver,
    Event,
    Initialize,
    ReReadTick,
    Reply,
    StatusQuery,
    Transition,
    WatcherChange,
    WatcherStop,
)
from tailf.logging import get_logger
from tailf.options import TailOptions
from tailf.reader import FileHandle, OffsetReader
from tailf.sinks import CALLER, make_sink
from tailf.state import EngineState, StatusSnapshot
from tailf.triggers import PollTimer
from tailf.watching import FsWatcher

log = get_logger("engine")


def _drain(state: EngineState, reader: OffsetReader) -> tuple[EngineState, list[Action]]:
    state, content = reader.drain(state)
    if content is None:
        return state, []
    return state, [Deliver(content)]


def transition(
    state: EngineState,
    event: Event,
    reader: OffsetReader,
    *,
    running: bool = True,
    debug: bool = False,
) -> Transition:
    """Handle one event.

    Args:
        state: Current engine state
        event: The event to handle
        reader: Reader used for drains
        running: Reported in status snapshots
        debug: Log every file event at info level

    Returns:
        The next state and the actions to execute, in order.

    Raises:
        TailReadError: A drain hit a read error other than EOF.
    """
    if isinstance(event, Initialize):
        log.debug("initialize: %s offset=%d", state.path, state.offset)
        state, actions = _drain(state, reader)
        if state.poll_interval_ms is not None:
            actions.append(ArmPollTimer())
        return Transition(state, tuple(actions))

    if isinstance(event, ReReadTick):
        # The next tick is timed from when this one was handled, not from
        # after the drain, and armed before anything is delivered
        state, actions = _drain(state, reader)
        return Transition(state, (ArmPollTimer(), *actions))

    if isinstance(event, WatcherChange):
        if state.watcher is None or event.watcher is not state.watcher:
            log.warning("unknown info event: %r", event)
            return Transition(state)
        if debug:
            log.info("file_event: %s %s", event.path, event.change_kind)
        if os.path.realpath(event.path) != state.path:
            return Transition(state)
        state, actions = _drain(state, reader)
        return Transition(state, tuple(actions))

    if isinstance(event, WatcherStop):
        if state.watcher is None or event.watcher is not state.watcher:
            log.warning("unknown info event: %r", event)
            return Transition(state)
        return Transition(state, (Deliver(event.as_tuple()),))

    if isinstance(event, StatusQuery):
        snapshot = StatusSnapshot.from_state(state, running=running)
        return Transition(state, (Reply(event.reply, snapshot),))

    log.warning("unknown info event: %r", event)
    return Transition(state)


class TailF:
    """Tails one file and delivers appended content to a sink.

    The engine reads the file's existing content ``init_delay_ms`` after
    ``start()``, then re-reads whenever its trigger fires: a filesystem event
    for the file (default) or a poll tick every ``poll_interval_ms``.

    With the default sink, content arrives on ``engine.messages`` as
    ``("tail_f", content)`` tuples.

    Example:
        async with TailF("/var/log/app.log", mode="line") as tail:
            tag, lines = await tail.messages.get()
    """

    def __init__(self, path: str | os.PathLike[str], **options: Any) -> None:
        self._init(TailOptions(path=os.fspath(path), **options))

    @classmethod
    def from_options(cls, options: TailOptions) -> TailF:
        engine = cls.__new__(cls)
        engine._init(options)
        return engine

    @classmethod
    def from_config(
        cls,
        path: str | os.PathLike[str],
        config: Config | None = None,
        **overrides: Any,
    ) -> TailF:
        """Build an engine whose defaults come from the layered config."""
        config = config or get_config()
        options = TailOptions.from_defaults(os.fspath(path), config.tail, **overrides)
        return cls.from_options(options)

    def _init(self, options: TailOptions) -> None:
        self.options = options
        self.messages: asyncio.Queue[Any] = asyncio.Queue()
        self._inbox: asyncio.Queue[Event] = asyncio.Queue()
        self._reader = OffsetReader(options.chunk_size, options.encoding)
        self._state: EngineState | None = None
        self._task: asyncio.Task[None] | None = None
        self._init_timer: asyncio.TimerHandle | None = None
        self._poll: PollTimer | None = None
        self._handled_at: float | None = None
        self._error: TailReadError | None = None
        self._closed = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def error(self) -> TailReadError | None:
        """The read error that stopped the engine, if any."""
        return self._error

    async def start(self) -> TailF:
        """Open the file, subscribe the trigger and start the control loop.

        Raises:
            OSError: The file cannot be opened.
            RuntimeError: Already started.
        """
        if self._task is not None:
            raise RuntimeError("engine already started")

        opts = self.options
        loop = asyncio.get_running_loop()
        log.info("Starting tailf for file: %s", opts.path)
        log.debug("options: %r", opts)

        sink = make_sink(self.messages if opts.sink is CALLER else opts.sink)
        handle = FileHandle.open(opts.path)
        state = EngineState(
            path=handle.path,
            handle=handle,
            sink=sink,
            mode=opts.mode,
            poll_interval_ms=opts.poll_interval_ms,
            decoder=self._reader.new_decoder(opts.mode),
        )

        if opts.fs_events:
            try:
                watcher = FsWatcher.subscribe(
                    os.path.dirname(handle.path), self._inbox.put_nowait, loop
                )
            except Exception:
                handle.close()
                raise
            state = replace(state, watcher=watcher)

        if opts.poll_interval_ms is not None:
            self._poll = PollTimer(opts.poll_interval_ms, self._inbox.put_nowait, loop)

        self._state = state
        self._init_timer = loop.call_later(
            opts.init_delay_ms / 1000, self._inbox.put_nowait, Initialize()
        )
        self._task = asyncio.create_task(self._run(), name=f"tailf:{handle.path}")
        return self

    def post(self, event: Event) -> None:
        """Queue an event for the control loop. Must be called on the loop."""
        self._inbox.put_nowait(event)

    async def status(self) -> StatusSnapshot:
        """Snapshot of the engine state, taken after all queued events."""
        if not self.running:
            return self.snapshot()
        reply: asyncio.Future[StatusSnapshot] = asyncio.get_running_loop().create_future()
        self.post(StatusQuery(reply))
        return await reply

    def snapshot(self) -> StatusSnapshot:
        """Snapshot of the engine state as of now."""
        if self._state is None:
            raise RuntimeError("engine not started")
        return StatusSnapshot.from_state(self._state, running=self.running)

    async def close(self) -> None:
        """Stop the engine: cancel timers, stop the watcher, close the file."""
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def wait_closed(self) -> None:
        """Wait until the engine stops.

        Raises:
            TailReadError: The engine stopped because a read failed.
        """
        await self._closed.wait()
        if self._error is not None:
            raise self._error

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            while True:
                event = await self._inbox.get()
                self._handled_at = loop.time()
                try:
                    result = transition(
                        self._state, event, self._reader, debug=self.options.debug
                    )
                except TailReadError as e:
                    log.error("Stopping tailf for %s: %s", self.options.path, e)
                    self._error = e
                    return
                self._state = result.state
                for action in result.actions:
                    self._execute(action)
        finally:
            await self._teardown()

    def _execute(self, action: Action) -> None:
        if isinstance(action, ArmPollTimer):
            if self._poll is not None:
                handle = self._poll.arm(since=self._handled_at)
                self._state = replace(self._state, poll_timer=handle)
        elif isinstance(action, Deliver):
            self._state.sink.deliver(action.content)
        elif isinstance(action, Reply):
            if not action.future.done():
                action.future.set_result(action.snapshot)

    async def _teardown(self) -> None:
        if self._init_timer is not None:
            self._init_timer.cancel()
            self._init_timer = None
        if self._poll is not None:
            self._poll.cancel()

        state = self._state
        state.handle.close()
        self._state = replace(state, poll_timer=None)

        try:
            if state.watcher is not None:
                # Joining the observer thread blocks; keep it off the loop
                await asyncio.to_thread(state.watcher.stop, notify=False)
        finally:
            # Answer status queries that will never reach the loop
            while not self._inbox.empty():
                event = self._inbox.get_nowait()
                if isinstance(event, StatusQuery) and not event.reply.done():
                    snapshot = StatusSnapshot.from_state(self._state, running=False)
                    event.reply.set_result(snapshot)
            self._closed.set()
            log.info("Stopped tailf for file: %s", self.options.path)

    async def __aenter__(self) -> TailF:
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<TailF {self.options.path!r} mode={self.options.mode}>"
