"""Notification sinks.

A sink receives each chunk of new content. There is one class per sink shape,
all behind ``Sink.deliver``, which never raises: failures are logged and the
engine carries on.

Shapes:
- MessageSink: puts ("tail_f", content) on an asyncio.Queue (fire-and-forget)
- FunctionSink: calls module.function(content)
- BoundFunctionSink: calls module.function(*args, content)
- CallbackSink: calls callback(content)
- StdoutSink: prints "tail_f: <content>"
"""

from __future__ import annotations

import asyncio
import importlib
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, TextIO

from tailf.errors import ConfigError
from tailf.logging import get_logger

log = get_logger("sinks")

# Tag on every message put on a MessageSink queue
TAG = "tail_f"


class _Caller:
    """Sentinel: deliver to the constructing caller's message queue."""

    def __repr__(self) -> str:
        return "CALLER"


CALLER: Any = _Caller()


class Sink(ABC):
    """Destination for formatted content."""

    def deliver(self, content: Any) -> None:
        """Deliver ``content``. Errors are logged, never raised."""
        try:
            self._invoke(content)
        except Exception:
            log.warning("%r failed to handle content", self, exc_info=True)

    @abstractmethod
    def _invoke(self, content: Any) -> None: ...


@dataclass
class MessageSink(Sink):
    """Send ("tail_f", content) to a queue without waiting."""

    queue: asyncio.Queue[Any]

    def _invoke(self, content: Any) -> None:
        self.queue.put_nowait((TAG, content))


def _resolve_module(module: ModuleType | str) -> ModuleType:
    if isinstance(module, ModuleType):
        return module
    return importlib.import_module(module)


@dataclass
class FunctionSink(Sink):
    """Call ``module.function(content)``.

    ``module`` may be a module object or a dotted name; the function is looked
    up on every delivery so reloaded modules are picked up.
    """

    module: ModuleType | str
    function: str

    def _invoke(self, content: Any) -> None:
        getattr(_resolve_module(self.module), self.function)(content)


@dataclass
class BoundFunctionSink(Sink):
    """Call ``module.function(*args, content)``."""

    module: ModuleType | str
    function: str
    args: list[Any] = field(default_factory=list)

    def _invoke(self, content: Any) -> None:
        getattr(_resolve_module(self.module), self.function)(*self.args, content)


@dataclass
class CallbackSink(Sink):
    """Call ``callback(content)``."""

    callback: Callable[[Any], Any]

    def _invoke(self, content: Any) -> None:
        self.callback(content)


@dataclass
class StdoutSink(Sink):
    """Print content to standard output with a fixed label."""

    stream: TextIO | None = None
    label: str = TAG

    def _invoke(self, content: Any) -> None:
        if isinstance(content, bytes):
            text = content.decode("utf-8", errors="replace")
        elif isinstance(content, str):
            text = content
        else:
            text = repr(content)
        print(f"{self.label}: {text}", file=self.stream or sys.stdout, flush=True)


def _parse_target(target: str) -> FunctionSink:
    module, sep, function = target.partition(":")
    if not sep or not module or not function:
        raise ConfigError(f"sink must look like 'package.module:function', got {target!r}")
    return FunctionSink(module, function)


def make_sink(target: Any) -> Sink:
    """Build a Sink from any accepted sink description.

    Accepted:
        Sink instance            -> used as is
        None                     -> StdoutSink
        asyncio.Queue            -> MessageSink
        "pkg.mod:func"           -> FunctionSink
        (module, "func")         -> FunctionSink
        (module, "func", [args]) -> BoundFunctionSink
        callable                 -> CallbackSink

    Raises:
        ConfigError: ``target`` matches none of the shapes above.
    """
    if isinstance(target, Sink):
        return target
    if target is None:
        return StdoutSink()
    if target is CALLER:
        raise ConfigError("CALLER must be resolved to a queue before building a sink")
    if isinstance(target, asyncio.Queue):
        return MessageSink(target)
    if isinstance(target, str):
        return _parse_target(target)
    if isinstance(target, tuple):
        if len(target) == 2 and isinstance(target[1], str):
            return FunctionSink(target[0], target[1])
        if (
            len(target) == 3
            and isinstance(target[1], str)
            and isinstance(target[2], Sequence)
            and not isinstance(target[2], str)
        ):
            return BoundFunctionSink(target[0], target[1], list(target[2]))
        raise ConfigError(f"unsupported sink tuple: {target!r}")
    if callable(target):
        return CallbackSink(target)
    raise ConfigError(f"unsupported sink: {target!r}")
