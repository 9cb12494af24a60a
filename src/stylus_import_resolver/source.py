"""
File access for the build.

The resolver reads every imported file through a source accessor so that a
build can be backed by something other than the local disk. The default
implementation reads from the file system on a worker thread.
"""

from __future__ import annotations

import asyncio
from pathlib import Path


class ReadError(Exception):
    """Raised when a source file cannot be read."""

    def __init__(self, path: str, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Could not read {path}: {cause}")


class FileSystemSource:
    """Reads style-sheet sources from the local file system."""

    async def read_file(self, path: str) -> bytes:
        """
        Read the raw content of ``path``.

        Raises:
            ReadError: If the file cannot be read
        """
        try:
            return await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            raise ReadError(path, e) from e

    def is_directory(self, path: str) -> bool:
        return Path(path).is_dir()
