"""Aggregate report accumulated by one traversal."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path


class _GroupCounter:
    """Case-insensitive group path counter.

    The first spelling seen for a path is kept as its display key.
    """

    def __init__(self) -> None:
        self._counts: dict[str, list] = {}

    def increment(self, group: str) -> None:
        key = group.casefold()
        entry = self._counts.get(key)
        if entry is None:
            self._counts[key] = [group, 1]
        else:
            entry[1] += 1

    def get(self, group: str) -> int:
        entry = self._counts.get(group.casefold())
        return entry[1] if entry else 0

    def as_dict(self) -> dict[str, int]:
        return {display: count for display, count in self._counts.values()}


class AggregateReport:
    """Thread-safe match counters for one scan.

    Every match is recorded in a single critical section, so
    ``recent_count <= total_count`` and, for every group,
    ``recent <= all`` hold at every instant, not only after the walk.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._recent = 0
        self._groups_all = _GroupCounter()
        self._groups_recent = _GroupCounter()

    def record_match(self, groups: Iterable[str | Path], *, recent: bool) -> int:
        """Count one match and attribute it to ``groups``.

        Args:
            groups: Group folder paths the match belongs to.
            recent: Whether the match falls inside the recent window.

        Returns:
            Total match count after this match.
        """
        group_keys = [str(group) for group in groups]
        with self._lock:
            self._total += 1
            for key in group_keys:
                self._groups_all.increment(key)
            if recent:
                self._recent += 1
                for key in group_keys:
                    self._groups_recent.increment(key)
            return self._total

    @property
    def total_count(self) -> int:
        with self._lock:
            return self._total

    @property
    def recent_count(self) -> int:
        with self._lock:
            return self._recent

    def group_counts(self, *, recent: bool = False) -> dict[str, int]:
        """Copy of the per-group counts (all matches, or recent ones only)."""
        with self._lock:
            counter = self._groups_recent if recent else self._groups_all
            return counter.as_dict()

    def group_count(self, group: str | Path, *, recent: bool = False) -> int:
        with self._lock:
            counter = self._groups_recent if recent else self._groups_all
            return counter.get(str(group))

    def as_dict(self) -> dict[str, object]:
        """Serializable view used by the CLI and tests."""
        with self._lock:
            return {
                "total_count": self._total,
                "recent_count": self._recent,
                "group_counts_all": self._groups_all.as_dict(),
                "group_counts_recent": self._groups_recent.as_dict(),
            }


def attributed_groups(path: Path, groups: Iterable[Path]) -> list[Path]:
    """Groups a match at ``path`` counts towards: every group except itself."""
    folded = str(path).casefold()
    return [group for group in groups if str(group).casefold() != folded]
