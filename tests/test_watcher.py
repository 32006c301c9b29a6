"""Tests for the watchdog-backed filesystem watcher."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from tailf.events import WatcherChange, WatcherStop
from tailf.watching import FsWatcher
from tests.utils import append, receive


class TestFsWatcher:
    @pytest.mark.asyncio
    async def test_reports_changes_on_the_loop(self, tail_path: Path) -> None:
        """Test a write under the directory arrives as WatcherChange."""
        events: asyncio.Queue[Any] = asyncio.Queue()
        watcher = FsWatcher.subscribe(tail_path.parent, events.put_nowait)
        try:
            append(tail_path, "more")
            event = await receive(events)
            assert isinstance(event, WatcherChange)
            assert event.watcher is watcher
            assert Path(event.path).resolve() == tail_path.resolve()
        finally:
            watcher.stop(notify=False)

    @pytest.mark.asyncio
    async def test_stop_notifies_subscriber(self, tmp_path: Path) -> None:
        events: asyncio.Queue[Any] = asyncio.Queue()
        watcher = FsWatcher.subscribe(tmp_path, events.put_nowait)
        assert watcher.running
        watcher.stop()
        assert not watcher.running
        assert await receive(events) == WatcherStop(watcher)

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, tmp_path: Path) -> None:
        events: asyncio.Queue[Any] = asyncio.Queue()
        watcher = FsWatcher.subscribe(tmp_path, events.put_nowait)
        watcher.stop()
        watcher.stop()
        await asyncio.sleep(0.05)
        assert events.qsize() == 1

    @pytest.mark.asyncio
    async def test_silent_stop(self, tmp_path: Path) -> None:
        events: asyncio.Queue[Any] = asyncio.Queue()
        watcher = FsWatcher.subscribe(tmp_path, events.put_nowait)
        watcher.stop(notify=False)
        await asyncio.sleep(0.05)
        assert events.empty()

    @pytest.mark.asyncio
    async def test_deleted_directory_stops_watcher(self, tmp_path: Path) -> None:
        """Test the watch ends with WatcherStop when its directory is removed."""
        watched = tmp_path / "watched"
        watched.mkdir()
        events: asyncio.Queue[Any] = asyncio.Queue()
        watcher = FsWatcher.subscribe(watched, events.put_nowait)
        try:
            watched.rmdir()
            event = await receive(events)
            while isinstance(event, WatcherChange):
                event = await receive(events)
            assert event == WatcherStop(watcher)
            assert not watcher.running
        finally:
            watcher.stop(notify=False)

    def test_stop_tuple(self) -> None:
        watcher = object()
        stop = WatcherStop(watcher)  # type: ignore[arg-type]
        assert stop.as_tuple() == ("file_event", watcher, "stop")
