"""Async file-system access for the analysis engine.

Every operation is a cooperative suspension point backed by aiofiles, so
many analyses can interleave their I/O on one event loop.
"""

import os
from pathlib import Path

import aiofiles
import aiofiles.os

from smart_select.core.exceptions import UnreadableFileError
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)


class AsyncFileSystem:
    """File-system collaborator used by the resolver, filter and analyzer.

    Reads raise UnreadableFileError. Existence and stat checks never raise;
    a permission error or a missing file simply reports "absent".
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    async def read_text(self, file_path: str | Path) -> str:
        """Read a whole file as text.

        Args:
            file_path: Path to the file.

        Returns:
            File content, undecodable bytes replaced.

        Raises:
            UnreadableFileError: If the file cannot be opened or read.
        """
        try:
            async with aiofiles.open(
                file_path, "r", encoding=self._encoding, errors="replace"
            ) as f:
                return await f.read()
        except (OSError, ValueError) as e:
            logger.debug("Failed to read file", file_path=str(file_path), error=str(e))
            raise UnreadableFileError(str(file_path), cause=e) from e

    async def stat_mtime(self, file_path: str | Path) -> float | None:
        """Return the modification time of a path, or None if it cannot be stat'ed."""
        try:
            stat = await aiofiles.os.stat(file_path)
        except (OSError, ValueError):
            return None
        return stat.st_mtime

    async def is_file(self, file_path: str | Path) -> bool:
        """Check whether a path is an existing regular file."""
        try:
            return await aiofiles.os.path.isfile(file_path)
        except (OSError, ValueError):
            return False

    async def is_dir(self, file_path: str | Path) -> bool:
        """Check whether a path is an existing directory."""
        try:
            return await aiofiles.os.path.isdir(file_path)
        except (OSError, ValueError):
            return False

    async def list_dir(self, dir_path: str | Path) -> list[str]:
        """List entry names of a directory, empty when it cannot be listed."""
        try:
            entries = await aiofiles.os.listdir(dir_path)
        except (OSError, ValueError):
            return []
        return sorted(entries)


def normalize_path(file_path: str | Path) -> str:
    """Return the absolute, normalized form used as a graph identifier."""
    return os.path.normpath(os.path.abspath(os.fspath(file_path)))
