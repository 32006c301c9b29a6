"""Exception types raised by tailf."""

from __future__ import annotations


class TailError(Exception):
    """Base class for all tailf errors."""


class ConfigError(TailError, ValueError):
    """Invalid engine or sink configuration."""


class TailReadError(TailError):
    """A read from the tailed file failed with something other than EOF.

    Attributes:
        path: The file being tailed
        offset: Byte offset the failed read started at
    """

    def __init__(self, path: str, offset: int, cause: OSError) -> None:
        super().__init__(f"read failed for {path} at offset {offset}: {cause}")
        self.path = path
        self.offset = offset
        self.__cause__ = cause
