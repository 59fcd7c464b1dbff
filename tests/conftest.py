"""
Shared fixtures for selpg tests.
"""

import sys
from pathlib import Path

import pytest

from selpg.config import reset_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from SELPG_* variables and the settings singleton."""
    for name in (
        "SELPG_LOG_LEVEL",
        "SELPG_LOG_FILE",
        "SELPG_DEV_MODE",
        "SELPG_PAGE_LENGTH",
        "SELPG_CHUNK_SIZE",
        "SELPG_PRINT_COMMAND",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    """Directory for input files."""
    return tmp_path


@pytest.fixture
def numbered_lines():
    """Return ``count`` numbered lines as bytes."""

    def _make(count: int) -> bytes:
        return b"".join(f"line {i}\n".encode() for i in range(1, count + 1))

    return _make


# Stand-in print commands; each ignores the trailing "-d <destination>".
@pytest.fixture
def echo_upper_command() -> list[str]:
    """Print command that echoes its input upper-cased."""
    return [
        sys.executable,
        "-c",
        "import sys; data = sys.stdin.buffer.read(); sys.stdout.buffer.write(data.upper())",
    ]


@pytest.fixture
def silent_command() -> list[str]:
    """Print command that consumes its input and prints nothing."""
    return [sys.executable, "-c", "import sys; sys.stdin.buffer.read()"]
