"""tailf: follow a file and deliver appended content to a sink."""

__version__ = "0.1.0"

from tailf.engine import TailF, transition
from tailf.errors import ConfigError, TailError, TailReadError
from tailf.events import FILE_EVENT, STOP
from tailf.options import TailOptions
from tailf.sinks import (
    CALLER,
    TAG,
    BoundFunctionSink,
    CallbackSink,
    FunctionSink,
    MessageSink,
    Sink,
    StdoutSink,
    make_sink,
)
from tailf.state import Mode, StatusSnapshot
from tailf.watching import FsWatcher

__all__ = [
    # Engine
    "TailF",
    "TailOptions",
    "Mode",
    "StatusSnapshot",
    "transition",
    # Sinks
    "Sink",
    "MessageSink",
    "FunctionSink",
    "BoundFunctionSink",
    "CallbackSink",
    "StdoutSink",
    "make_sink",
    "CALLER",
    "TAG",
    # Watcher
    "FsWatcher",
    "FILE_EVENT",
    "STOP",
    # Errors
    "TailError",
    "ConfigError",
    "TailReadError",
]
