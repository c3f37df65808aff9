"""Local filesystem primitives used by the scanner.

Every blocking call runs in the default executor via ``asyncio.to_thread``
so directory listings and small reads never stall the event loop. Missing
or unreadable paths are reported as empty results or ``None`` and logged;
they are never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from stat import S_ISDIR

logger = logging.getLogger(__name__)

FAILURE_MARKER = "fail"
OBSERVED_MARKER = "observed"


@dataclass(frozen=True)
class TextFile:
    """Content and last-write time of a small text file."""

    content: str
    last_write_time: datetime


def _to_utc(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _scan_names(path: Path, *, dirs: bool, files: bool) -> list[str]:
    """List entry names under ``path``, sorted for stable ordering."""
    names: list[str] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue
            if (is_dir and dirs) or (not is_dir and files):
                names.append(entry.name)
    names.sort()
    return names


def _read_text(path: Path, max_bytes: int) -> TextFile | None:
    try:
        stat = path.stat()
    except FileNotFoundError:
        logger.warning("File does not exist: %s", path)
        return None
    if stat.st_size > max_bytes:
        logger.warning(
            "File %s is too large (%d bytes), skipping", path, stat.st_size
        )
        return None
    content = path.read_text(encoding="utf-8", errors="replace")
    return TextFile(content=content, last_write_time=_to_utc(stat.st_mtime))


def _stat_mtime(path: Path, *, directory: bool) -> datetime | None:
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    if directory != S_ISDIR(st.st_mode):
        return None
    return _to_utc(st.st_mtime)


class LocalFileSystem:
    """Async facade over the local filesystem."""

    async def _list(self, path: Path, *, dirs: bool, files: bool) -> list[str]:
        try:
            return await asyncio.to_thread(_scan_names, path, dirs=dirs, files=files)
        except FileNotFoundError:
            logger.error("Path does not exist: %s", path)
        except OSError as e:
            logger.error("Cannot list %s: %s", path, e)
        return []

    async def list_subdirectories(self, path: Path) -> list[str]:
        """Names of the child directories of ``path``."""
        return await self._list(path, dirs=True, files=False)

    async def list_files(self, path: Path) -> list[str]:
        """Names of the regular files directly inside ``path``."""
        return await self._list(path, dirs=False, files=True)

    async def list_entries(self, path: Path) -> list[str]:
        """Names of every entry (files and directories) in ``path``."""
        return await self._list(path, dirs=True, files=True)

    async def read_text_file(self, path: Path, max_bytes: int) -> TextFile | None:
        """Read a text file no larger than ``max_bytes``.

        Returns:
            TextFile, or None when the file is missing, oversized or unreadable.
        """
        try:
            return await asyncio.to_thread(_read_text, path, max_bytes)
        except OSError as e:
            logger.error("Error reading file %s: %s", path, e)
            return None

    async def _mtime(self, path: Path, *, directory: bool) -> datetime | None:
        try:
            return await asyncio.to_thread(_stat_mtime, path, directory=directory)
        except OSError as e:
            logger.error("Error getting last write time for %s: %s", path, e)
            return None

    async def file_mtime(self, path: Path) -> datetime | None:
        """Last-write time of a regular file, or None if it is missing."""
        return await self._mtime(path, directory=False)

    async def directory_mtime(self, path: Path) -> datetime | None:
        """Last-write time of the directory itself, or None if it is missing."""
        return await self._mtime(path, directory=True)

    async def find_file_containing(self, path: Path, needle: str) -> str | None:
        """First file name in ``path`` containing ``needle`` (case-insensitive)."""
        folded = needle.casefold()
        for name in await self.list_files(path):
            if folded in name.casefold():
                return name
        return None

    async def find_image(self, path: Path, extensions: Iterable[str]) -> Path | None:
        """First file in ``path`` whose extension is a supported image type."""
        wanted = {ext.casefold() for ext in extensions}
        for name in await self.list_files(path):
            if Path(name).suffix.casefold() in wanted:
                return path / name
        return None

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.exists)
