"""Offset reader: positioned reads from the tailed file.

The reader pulls everything between the engine's offset and end-of-file in
fixed-size chunks, then formats the accumulated bytes for delivery.
"""

from __future__ import annotations

import codecs
import os
from dataclasses import replace
from types import TracebackType

from tailf.errors import TailReadError
from tailf.logging import TRACE, get_logger
from tailf.state import Content, EngineState, Mode

log = get_logger("reader")

DEFAULT_CHUNK_SIZE = 1000


class FileHandle:
    """Read handle supporting positioned reads.

    ``read_at`` returns ``b""`` at end of file.
    """

    def __init__(self, path: str) -> None:
        self.path = os.path.realpath(path)
        self._fp = open(self.path, "rb")

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> FileHandle:
        """Open ``path`` for reading. Raises OSError if it cannot be opened."""
        return cls(os.fspath(path))

    @property
    def closed(self) -> bool:
        return self._fp.closed

    def read_at(self, offset: int, max_bytes: int) -> bytes:
        self._fp.seek(offset)
        return self._fp.read(max_bytes)

    def close(self) -> None:
        if not self._fp.closed:
            self._fp.close()
            log.debug("Closed %s", self.path)

    def __enter__(self) -> FileHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<FileHandle {self.path!r} {state}>"


class OffsetReader:
    """Drains a file from the state's offset to EOF and formats the result.

    Args:
        chunk_size: Maximum bytes per positioned read
        encoding: Text encoding used in line mode
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, encoding: str = "utf-8") -> None:
        self.chunk_size = chunk_size
        self.encoding = encoding

    def new_decoder(self, mode: Mode) -> codecs.IncrementalDecoder | None:
        """Decoder to carry in EngineState, or None in binary mode."""
        if mode is Mode.LINE:
            return codecs.getincrementaldecoder(self.encoding)(errors="replace")
        return None

    def drain(self, state: EngineState) -> tuple[EngineState, Content | None]:
        """Read all available bytes from ``state.offset`` onward.

        Returns:
            The next state (offset advanced, buffer empty) and the formatted
            content, or None when nothing new was read.

        Raises:
            TailReadError: A read failed with something other than EOF.
        """
        buffer = state.buffer
        offset = state.offset

        while True:
            try:
                data = state.handle.read_at(offset, self.chunk_size)
            except OSError as e:
                raise TailReadError(state.path, offset, e) from e
            if not data:
                break
            buffer += data
            offset += len(data)
            log.log(TRACE, "read %d bytes from %s, offset now %d", len(data), state.path, offset)

        if not buffer:
            return state, None

        content = self.format(state, buffer)
        return replace(state, buffer=b"", offset=offset), content

    def format(self, state: EngineState, buffer: bytes) -> Content | None:
        if state.mode is Mode.LINE:
            decoder = state.decoder or self.new_decoder(Mode.LINE)
            text = decoder.decode(buffer)
            if not text:
                # Only an incomplete multi-byte sequence so far
                return None
            return text.split("\n")
        return bytes(buffer)
