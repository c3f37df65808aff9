"""Bounded-concurrency directory walker.

The walk itself is a single coroutine popping an explicit stack, so tree
depth never grows the Python call stack. Each node below the root is handed
to the caller's classify callback as a separate task; an
``asyncio.Semaphore`` sized to ``max_concurrent_directory_scans`` bounds how
many of those run at once, and the walk blocks on it before dispatching the
next node. All dispatched tasks are joined before the report is returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING

from landing_exporter.scanner.report import AggregateReport

if TYPE_CHECKING:
    from landing_exporter.config.models import ScannerConfig
    from landing_exporter.scanner.filesystem import LocalFileSystem

logger = logging.getLogger(__name__)

ClassifyFn = Callable[[Path, tuple[Path, ...], AggregateReport], Awaitable[None]]
"""``classify(path, groups, report)``; may only add to the report."""


class TraversalEngine:
    """Walks a tenant subtree and aggregates classifier results."""

    def __init__(self, filesystem: LocalFileSystem, config: ScannerConfig) -> None:
        self._fs = filesystem
        self._config = config

    async def traverse(
        self, root: Path, tenant: str, classify: ClassifyFn
    ) -> AggregateReport:
        """Walk ``root`` and classify every directory below it.

        Children of ``root`` become the group list of their whole subtree.
        Grouped tenants descend to ``max_depth``; flat tenants stop at
        depth 1. The walk stops dispatching once more than ``max_items``
        matches were counted, but work already dispatched still finishes,
        so the final count may exceed the cap.

        Args:
            root: Scan root. Never classified itself.
            tenant: Normalised tenant name (selects the depth bound).
            classify: Per-node callback.

        Returns:
            The populated report, after every classification has finished.
        """
        report = AggregateReport()
        max_depth = self._config.max_depth_for(tenant)
        max_items = self._config.max_items
        gate = asyncio.Semaphore(self._config.max_concurrent_directory_scans)
        pending: set[asyncio.Task[None]] = set()

        stack: list[tuple[Path, int, tuple[Path, ...]]] = [(root, 0, ())]

        while stack:
            if report.total_count > max_items:
                logger.info(
                    "Reached max_items limit of %d, stopping traversal for %s",
                    max_items,
                    tenant,
                )
                break

            path, depth, groups = stack.pop()
            try:
                if depth > 0:
                    await gate.acquire()
                    task = asyncio.create_task(
                        self._classify_node(classify, path, groups, report, gate)
                    )
                    pending.add(task)
                    task.add_done_callback(pending.discard)

                if depth < max_depth:
                    subdirs = await self._fs.list_subdirectories(path)
                    # Reversed so that children pop in listing order
                    for name in reversed(subdirs):
                        child = path / name
                        child_groups = groups + (child,) if depth == 0 else groups
                        stack.append((child, depth + 1, child_groups))
            except Exception:
                logger.exception("Error during directory traversal at %s", path)

        if pending:
            await asyncio.gather(*pending)

        return report

    @staticmethod
    async def _classify_node(
        classify: ClassifyFn,
        path: Path,
        groups: tuple[Path, ...],
        report: AggregateReport,
        gate: asyncio.Semaphore,
    ) -> None:
        try:
            await classify(path, groups, report)
        except Exception:
            logger.exception("Error classifying %s", path)
        finally:
            gate.release()
