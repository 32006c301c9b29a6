"""Tests for the offset reader and file handle."""

from __future__ import annotations

from pathlib import Path

import pytest

from tailf.errors import TailReadError
from tailf.reader import FileHandle, OffsetReader
from tailf.state import Mode
from tests.utils import TEST_CONTENT, FailingHandle, append, make_state


class TestFileHandle:
    """Tests for positioned reads."""

    def test_read_at_offsets(self, tail_path: Path) -> None:
        """Test reads start at the given offset."""
        with FileHandle.open(tail_path) as handle:
            assert handle.read_at(0, 4) == b"line"
            assert handle.read_at(5, 3) == b"1\nl"

    def test_read_at_eof_returns_empty(self, tail_path: Path) -> None:
        """Test reading at end of file yields b''."""
        with FileHandle.open(tail_path) as handle:
            assert handle.read_at(len(TEST_CONTENT), 1000) == b""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Test opening a missing file fails immediately."""
        with pytest.raises(FileNotFoundError):
            FileHandle.open(tmp_path / "missing")

    def test_close_is_idempotent(self, tail_path: Path) -> None:
        handle = FileHandle.open(tail_path)
        handle.close()
        handle.close()
        assert handle.closed


class TestDrain:
    """Tests for OffsetReader.drain."""

    def test_drains_existing_content(self, tail_path: Path) -> None:
        """Test the first drain returns the whole file."""
        state, _ = make_state(str(tail_path))
        state, content = OffsetReader().drain(state)
        assert content == TEST_CONTENT.encode()
        assert state.offset == len(TEST_CONTENT)
        assert state.buffer == b""

    def test_nothing_new_is_a_noop(self, tail_path: Path) -> None:
        """Test a drain at EOF returns the same state and no content."""
        reader = OffsetReader()
        state, _ = make_state(str(tail_path))
        state, _ = reader.drain(state)
        again, content = reader.drain(state)
        assert content is None
        assert again is state

    def test_only_new_bytes_are_returned(self, tail_path: Path) -> None:
        """Test appended bytes are delivered without repeating old ones."""
        reader = OffsetReader()
        state, _ = make_state(str(tail_path))
        state, _ = reader.drain(state)
        append(tail_path, "\nanother line")
        state, content = reader.drain(state)
        assert content == b"\nanother line"
        assert state.offset == len(TEST_CONTENT) + len("\nanother line")

    def test_small_chunks_accumulate(self, tail_path: Path) -> None:
        """Test several chunk reads are joined into one delivery."""
        state, _ = make_state(str(tail_path))
        state, content = OffsetReader(chunk_size=3).drain(state)
        assert content == TEST_CONTENT.encode()
        assert state.offset == len(TEST_CONTENT)

    def test_offset_never_exceeds_file_length(self, tail_path: Path) -> None:
        reader = OffsetReader(chunk_size=5)
        state, _ = make_state(str(tail_path))
        for chunk in ["a", "bb\n", "", "cccccccccccc"]:
            append(tail_path, chunk)
            state, _ = reader.drain(state)
            assert state.offset == tail_path.stat().st_size

    def test_read_error_raises_tail_read_error(self, tail_path: Path) -> None:
        """Test a non-EOF read failure surfaces as TailReadError."""
        state, _ = make_state(str(tail_path), handle=FailingHandle(str(tail_path), ok_reads=1))
        with pytest.raises(TailReadError) as exc_info:
            OffsetReader(chunk_size=4).drain(state)
        assert exc_info.value.offset == 4
        assert isinstance(exc_info.value.__cause__, OSError)


class TestLineMode:
    """Tests for line-mode formatting."""

    def test_split_keeps_trailing_empty_string(self, tail_path: Path) -> None:
        """Test content ending in a newline yields a trailing ''."""
        reader = OffsetReader()
        state, _ = make_state(str(tail_path), Mode.LINE, decoder=reader.new_decoder(Mode.LINE))
        _, content = reader.drain(state)
        assert content == ["line 1", "line 2", ""]

    def test_split_without_trailing_newline(self, tail_path: Path) -> None:
        reader = OffsetReader()
        state, _ = make_state(str(tail_path), Mode.LINE, decoder=reader.new_decoder(Mode.LINE))
        state, _ = reader.drain(state)
        append(tail_path, "\nanother line")
        _, content = reader.drain(state)
        assert content == ["", "another line"]

    def test_cumulative_lines_match_raw_split(self, tail_path: Path) -> None:
        """Test joining deliveries reproduces a split of the raw bytes."""
        reader = OffsetReader(chunk_size=4)
        state, _ = make_state(str(tail_path), Mode.LINE, decoder=reader.new_decoder(Mode.LINE))
        delivered: list[list[str]] = []
        for chunk in ["", "abc", "\n", "def\nghi", "\n\n"]:
            append(tail_path, chunk)
            state, content = reader.drain(state)
            if content is not None:
                delivered.append(content)
        joined = "".join("\n".join(lines) for lines in delivered)
        raw = tail_path.read_text(encoding="utf-8")
        assert joined.split("\n") == raw.split("\n")

    def test_multibyte_character_split_across_drains(self, tmp_path: Path) -> None:
        """Test a character cut in half by a drain is not mangled."""
        path = tmp_path / "utf8"
        encoded = "é\n".encode()
        path.write_bytes(encoded[:1])
        reader = OffsetReader()
        state, _ = make_state(str(path), Mode.LINE, decoder=reader.new_decoder(Mode.LINE))

        state, content = reader.drain(state)
        assert content is None
        assert state.offset == 1

        with open(path, "ab") as f:
            f.write(encoded[1:])
        state, content = reader.drain(state)
        assert content == ["é", ""]


class TestBinaryMode:
    def test_bytes_pass_through_unchanged(self, tmp_path: Path) -> None:
        path = tmp_path / "blob"
        payload = bytes(range(256))
        path.write_bytes(payload)
        state, _ = make_state(str(path))
        _, content = OffsetReader(chunk_size=100).drain(state)
        assert content == payload
