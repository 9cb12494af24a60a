"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from stylus_import_resolver.source import FileSystemSource, ReadError


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """
    Create a project tree under tmp_path.

    Returns a function taking a mapping of relative path to file content,
    writing every file (creating parent directories) and returning tmp_path.
    """

    def write(files: dict[str, str]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return write


class RecordingSource(FileSystemSource):
    """File-system source that records reads and can fail selected files."""

    def __init__(self, failing: tuple[str, ...] = ()) -> None:
        self.reads: list[str] = []
        self.failing = failing

    async def read_file(self, path: str) -> bytes:
        self.reads.append(path)
        if path.endswith(self.failing):
            raise ReadError(path, OSError("simulated read failure"))
        return await super().read_file(path)


@pytest.fixture
def recording_source() -> RecordingSource:
    return RecordingSource()
