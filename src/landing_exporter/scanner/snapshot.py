"""Failure reason snapshots (``reasons_all.json`` / ``reasons_recent.json``).

Entries are streamed into ``*.tmp`` siblings while the traversal runs and
renamed over the real files only when the scan completes, so readers never
see a partial document.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import IO, Any

from landing_exporter.scanner.models import FailureMatch

logger = logging.getLogger(__name__)

ALL_REASONS_FILENAME = "reasons_all.json"
RECENT_REASONS_FILENAME = "reasons_recent.json"


class SnapshotWriteError(Exception):
    """A snapshot member could not be written; the snapshot is unusable."""


class _JsonObjectStream:
    """Writes one indented JSON object, one member at a time."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.tmp_path = path.with_name(path.name + ".tmp")
        self._fh: IO[str] | None = None
        self._count = 0

    def open(self) -> None:
        self._fh = self.tmp_path.open("w", encoding="utf-8")
        self._fh.write("{")

    def write(self, key: str, value: Any) -> None:
        assert self._fh is not None
        body = json.dumps(value, indent=2, ensure_ascii=False).replace("\n", "\n  ")
        separator = ",\n" if self._count else "\n"
        self._fh.write(f"{separator}  {json.dumps(key, ensure_ascii=False)}: {body}")
        self._count += 1

    def finish(self) -> None:
        assert self._fh is not None
        self._fh.write("\n}\n" if self._count else "}\n")
        self._fh.flush()
        os.fsync(self._fh.fileno())
        self._fh.close()
        self._fh = None

    def abort(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
        self.tmp_path.unlink(missing_ok=True)

    @property
    def count(self) -> int:
        return self._count


class ReasonSnapshotWriter:
    """Streams failure entries into the two reason snapshots.

    Use as a context manager and call :meth:`commit` once the traversal
    finished. Leaving the block without committing (normally or through
    an exception) removes the temporary files and leaves any previous
    snapshot untouched.

    A write error while adding an entry marks the writer as failed:
    later entries are dropped and :meth:`commit` raises
    :class:`SnapshotWriteError`, so a half-written document is never
    moved into place.

    Example:
        with ReasonSnapshotWriter(scan_path) as snapshot:
            ...  # snapshot.add(failure, recent=...) from classify callbacks
            snapshot.commit()
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._all = _JsonObjectStream(directory / ALL_REASONS_FILENAME)
        self._recent = _JsonObjectStream(directory / RECENT_REASONS_FILENAME)
        self._lock = threading.Lock()
        self._committed = False
        self._write_error: OSError | None = None

    def __enter__(self) -> ReasonSnapshotWriter:
        try:
            self._all.open()
            self._recent.open()
        except OSError:
            self.discard()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._committed:
            self.discard()

    def add(self, failure: FailureMatch, *, recent: bool) -> None:
        """Append a failure to the all-snapshot and, if recent, the recent one."""
        entry = failure.to_snapshot_entry()
        key = str(failure.path)
        with self._lock:
            if self._write_error is not None:
                return
            try:
                self._all.write(key, entry)
                if recent:
                    self._recent.write(key, entry)
            except OSError as e:
                self._write_error = e
                raise

    def commit(self) -> None:
        """Close both documents and atomically move them into place."""
        with self._lock:
            if self._write_error is not None:
                raise SnapshotWriteError(
                    f"Failed to write snapshot in {self.directory}: {self._write_error}"
                ) from self._write_error
            self._all.finish()
            self._recent.finish()
            os.replace(self._all.tmp_path, self._all.path)
            os.replace(self._recent.tmp_path, self._recent.path)
            self._committed = True
        logger.debug(
            "Wrote %d failure reasons (%d recent) to %s",
            self._all.count,
            self._recent.count,
            self.directory,
        )

    def discard(self) -> None:
        """Drop the temporary files."""
        with self._lock:
            self._all.abort()
            self._recent.abort()
