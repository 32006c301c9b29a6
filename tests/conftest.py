"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.utils import TEST_CONTENT

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def tail_path(tmp_path: Path) -> Path:
    """A file holding TEST_CONTENT."""
    path = tmp_path / "tail_f"
    path.write_text(TEST_CONTENT, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's own config and env out of the tests."""
    from tailf.config import reset_config

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("TAILF_LOG", "TAILF_LOG_LEVEL", "TAILF_POLL_MS"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
