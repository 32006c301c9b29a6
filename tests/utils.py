"""Shared test helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from tailf.reader import FileHandle
from tailf.sinks import CallbackSink
from tailf.state import EngineState, Mode

TEST_CONTENT = "line 1\nline 2\n"


class FailingHandle(FileHandle):
    """FileHandle whose reads fail after ``ok_reads`` successful ones."""

    def __init__(self, path: str, ok_reads: int = 0) -> None:
        super().__init__(path)
        self.ok_reads = ok_reads

    def read_at(self, offset: int, max_bytes: int) -> bytes:
        if self.ok_reads <= 0:
            raise OSError(5, "Input/output error")
        self.ok_reads -= 1
        return super().read_at(offset, max_bytes)


class Recorder:
    """Callback collecting every delivery."""

    def __init__(self) -> None:
        self.received: list[Any] = []

    def __call__(self, content: Any) -> None:
        self.received.append(content)


def make_state(path: str, mode: Mode = Mode.BINARY, **kwargs: Any) -> tuple[EngineState, Recorder]:
    recorder = Recorder()
    handle = kwargs.pop("handle", None) or FileHandle.open(path)
    state = EngineState(
        path=handle.path,
        handle=handle,
        sink=CallbackSink(recorder),
        mode=mode,
        **kwargs,
    )
    return state, recorder


def append(path: Path, data: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(data)


async def receive(queue: asyncio.Queue[Any], timeout: float = 5.0) -> Any:
    """Next item from ``queue``, failing the test after ``timeout`` seconds."""
    return await asyncio.wait_for(queue.get(), timeout)
